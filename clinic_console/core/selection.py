"""Selection bookkeeping for list views."""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class SelectionSet:
    """Track selected record identifiers in selection order."""

    def __init__(self) -> None:
        self._ids: dict[str, None] = {}

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"SelectionSet({list(self._ids)!r})"

    def ids(self) -> list[str]:
        """Return selected identifiers in the order they were selected."""
        return list(self._ids)

    def add(self, record_id: str) -> None:
        self._ids.setdefault(record_id, None)

    def discard(self, record_id: str) -> None:
        self._ids.pop(record_id, None)

    def toggle(self, record_id: str) -> bool:
        """Flip selection of ``record_id`` and return the new state."""
        if record_id in self._ids:
            del self._ids[record_id]
            return False
        self._ids[record_id] = None
        return True

    def clear(self) -> None:
        self._ids.clear()

    def retain(self, allowed: Iterable[str]) -> list[str]:
        """Drop identifiers not in ``allowed`` and return the dropped ones."""
        keep = set(allowed)
        dropped = [record_id for record_id in self._ids if record_id not in keep]
        for record_id in dropped:
            del self._ids[record_id]
        return dropped

    def all_selected(self, candidates: Iterable[str]) -> bool:
        """Return ``True`` when ``candidates`` is non-empty and fully selected."""
        ids = list(candidates)
        return bool(ids) and all(record_id in self._ids for record_id in ids)

    def toggle_all(self, candidates: Iterable[str]) -> bool:
        """Select every candidate, or deselect them all if already selected.

        Identifiers outside ``candidates`` are left untouched. Returns ``True``
        when the candidates end up selected.
        """
        ids = list(candidates)
        if self.all_selected(ids):
            for record_id in ids:
                self._ids.pop(record_id, None)
            return False
        for record_id in ids:
            self._ids.setdefault(record_id, None)
        return bool(ids)
