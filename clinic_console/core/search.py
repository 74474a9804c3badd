"""In-memory search helpers for records."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from enum import Enum
from typing import Any


def normalize_query(query: str | None) -> str:
    """Return ``query`` trimmed and lower-cased; ``None`` becomes ``""``."""
    return (query or "").strip().lower()


def field_text(record: Any, field: str) -> str:
    """Return the searchable text of ``field`` on ``record``.

    Missing and ``None`` values yield ``""``; enums are represented by their
    value and everything else through :class:`str`.
    """
    value = getattr(record, field, None)
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    return str(value)


def matches(record: Any, query: str, fields: Sequence[str]) -> bool:
    """Return ``True`` when any of ``fields`` contains ``query``.

    ``query`` must already be normalized with :func:`normalize_query`.
    """
    return any(query in field_text(record, field).lower() for field in fields)


def search_text(records: Iterable[Any], query: str | None, fields: Sequence[str]) -> list[Any]:
    """Perform case-insensitive substring search over ``fields``.

    An empty ``query`` (after trimming) returns every record; order is
    preserved either way.
    """
    items = list(records)
    q = normalize_query(query)
    if not q or not fields:
        return items
    return [record for record in items if matches(record, q, fields)]


def record_ids(records: Iterable[Any]) -> list[str]:
    """Return identifiers of ``records`` in order, skipping unsaved ones."""
    return [record.id for record in records if getattr(record, "id", None)]
