"""Turn arbitrary list-endpoint payloads into a flat list of items."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..log import logger

# Paged results (Spring ``Page``) put rows under ``content``.
PAGED_FIELD = "content"
GENERIC_FIELD = "items"


@dataclass(frozen=True)
class NormalizedPayload:
    """Result of :func:`normalize_payload`.

    ``source`` names where the list was found: ``"array"`` for a bare list,
    the envelope key otherwise, or ``None`` when nothing matched.
    """

    items: list[Any] = field(default_factory=list)
    source: str | None = None

    @property
    def recognized(self) -> bool:
        return self.source is not None


def _describe(payload: Any) -> str:
    if isinstance(payload, Mapping):
        keys = ", ".join(str(key) for key in list(payload)[:10])
        return f"object with keys [{keys}]"
    return type(payload).__name__


def normalize_payload(payload: Any, alias: str | None = None) -> NormalizedPayload:
    """Return the list carried by ``payload`` and where it was found.

    Lookup order: the payload itself when it is a list, then the ``content``
    field, then the kind-specific ``alias`` field, then ``items``. Anything
    else yields an empty list and a logged warning; this function never
    raises.
    """
    if isinstance(payload, list):
        return NormalizedPayload(list(payload), "array")
    if isinstance(payload, Mapping):
        candidates = [PAGED_FIELD]
        if alias and alias not in (PAGED_FIELD, GENERIC_FIELD):
            candidates.append(alias)
        candidates.append(GENERIC_FIELD)
        for key in candidates:
            value = payload.get(key)
            if isinstance(value, list):
                return NormalizedPayload(list(value), key)
    logger.warning(
        "Unexpected %s payload format (%s); using an empty list",
        alias or "list",
        _describe(payload),
    )
    return NormalizedPayload()


def normalize(payload: Any, alias: str | None = None) -> list[Any]:
    """Return the flat list of items in ``payload`` (see :func:`normalize_payload`)."""
    return normalize_payload(payload, alias).items
