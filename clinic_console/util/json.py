"""JSON serialisation helpers."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any


def make_json_safe(
    value: Any,
    *,
    stringify_keys: bool = True,
    sort_sets: bool = True,
    default: Callable[[Any], str] | None = None,
    max_string_length: int | None = None,
) -> Any:
    """Return a structure compatible with :func:`json.dumps`.

    Dataclasses become mappings, enums collapse to their values and unknown
    objects are rendered through ``default`` (``repr`` unless overridden).
    """

    if default is None:
        default = repr

    def _text(text: str) -> str:
        if max_string_length is not None and len(text) > max_string_length:
            return text[: max(max_string_length - 1, 0)] + "…"
        return text

    def _convert(obj: Any) -> Any:
        if obj is None or isinstance(obj, (bool, int, float)):
            return obj
        if isinstance(obj, str):
            return _text(obj)
        if isinstance(obj, Enum):
            return _convert(obj.value)
        if is_dataclass(obj) and not isinstance(obj, type):
            return _convert(asdict(obj))
        if isinstance(obj, Mapping):
            result: dict[Any, Any] = {}
            for key, item in obj.items():
                if stringify_keys and not isinstance(key, str):
                    key = str(key)
                result[key] = _convert(item)
            return result
        if isinstance(obj, (set, frozenset)):
            items = [_convert(item) for item in obj]
            if sort_sets:
                try:
                    items.sort()
                except TypeError:
                    items.sort(key=repr)
            return items
        if isinstance(obj, (bytes, bytearray)):
            return _text(bytes(obj).decode("utf-8", errors="replace"))
        if isinstance(obj, Sequence):
            return [_convert(item) for item in obj]
        return _text(default(obj))

    return _convert(value)


__all__ = ["make_json_safe"]
