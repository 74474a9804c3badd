"""Generic list-view controller: load, filter and select records of one kind."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from ..core.kinds import ResourceKind
from ..core.model import Record
from ..core.normalize import normalize_payload
from ..core.outcome import LoadError, LoadOutcome, TimeoutPolicy
from ..core.search import normalize_query, record_ids, search_text
from ..core.selection import SelectionSet
from ..i18n import _
from .cycle import LoadCycleController
from .watchdog import Watchdog

logger = logging.getLogger(__name__)


class ListSource(Protocol):
    """The part of :class:`~clinic_console.api.client.ApiClient` list views use."""

    async def list_records(self, kind: str, q: str | None = None) -> Any:
        """Return the raw list payload for ``kind``."""
        raise NotImplementedError


def records_from_items(kind: ResourceKind, items: list[Any]) -> list[Record]:
    """Convert normalized ``items`` into records, skipping non-objects."""
    records: list[Record] = []
    skipped = 0
    for item in items:
        if not isinstance(item, Mapping):
            skipped += 1
            continue
        records.append(kind.from_wire(dict(item)))
    if skipped:
        logger.warning("Ignored %d malformed %s entries", skipped, kind.name)
    return records


class CollectionLoadController(LoadCycleController):
    """Maintain the Collection, Visible Set and Selection Set of one kind.

    The Collection is replaced wholesale by every successful :meth:`load`;
    the Visible Set follows the active query and the selection is kept a
    subset of the visible identifiers.
    """

    def __init__(
        self,
        client: ListSource,
        kind: ResourceKind,
        *,
        watchdog_ms: int,
        timeout_policy: TimeoutPolicy = TimeoutPolicy.CLEAR,
        watchdog: Watchdog | None = None,
        server_query: str | None = None,
    ) -> None:
        super().__init__(
            name=kind.name,
            watchdog_ms=watchdog_ms,
            timeout_policy=timeout_policy,
            watchdog=watchdog,
        )
        self.client = client
        self.kind = kind
        self.server_query = server_query
        self._all: list[Record] = []
        self._visible: list[Record] = []
        self._query = ""
        self.selection = SelectionSet()

    # loading ---------------------------------------------------------
    async def load(self) -> LoadOutcome:
        """Fetch the collection; see :class:`LoadCycleController` for the race."""
        return await self._run_cycle(
            lambda: self.client.list_records(self.kind.name, self.server_query)
        )

    def _build_success(
        self, generation: int, payload: Any, duration_ms: int
    ) -> LoadOutcome:
        normalized = normalize_payload(payload, self.kind.alias)
        diagnostic = None
        if not normalized.recognized:
            diagnostic = LoadError.unknown_format(type(payload).__name__)
        records = records_from_items(self.kind, normalized.items)
        return LoadOutcome.success(
            generation, records, diagnostic=diagnostic, duration_ms=duration_ms
        )

    def _apply_success(self, outcome: LoadOutcome) -> None:
        self._replace(list(outcome.data or []))

    def _apply_failure(self, outcome: LoadOutcome) -> None:
        if outcome.timed_out and self.timeout_policy is TimeoutPolicy.PRESERVE:
            return
        self._replace([])

    def _replace(self, records: list[Record]) -> None:
        self._all = records
        self.selection.clear()
        self._refresh()

    def _loading_message(self) -> str:
        return _("Loading {label}...").format(label=self.kind.display_label_plural())

    def _settled_message(self, outcome: LoadOutcome) -> str:
        if outcome.error is not None or outcome.diagnostic is not None:
            return super()._settled_message(outcome)
        return _("OK ({ms} ms) · {count} record(s)").format(
            ms=outcome.duration_ms, count=len(self._all)
        )

    # filtering -------------------------------------------------------
    @property
    def query(self) -> str:
        return self._query

    def set_query(self, text: str | None) -> None:
        """Filter the Visible Set by ``text`` and prune hidden selections."""
        self._query = normalize_query(text)
        self._refresh()

    def _refresh(self) -> None:
        self._visible = search_text(self._all, self._query, self.kind.search_fields)
        dropped = self.selection.retain(record_ids(self._visible))
        if dropped:
            logger.debug("Dropped %d hidden selection(s) from %s", len(dropped), self.name)

    # access ----------------------------------------------------------
    @property
    def records(self) -> list[Record]:
        """Return the full Collection in server order."""
        return list(self._all)

    @property
    def visible(self) -> list[Record]:
        """Return the records matching the current query."""
        return list(self._visible)

    def visible_ids(self) -> list[str]:
        return record_ids(self._visible)

    def get_by_id(self, record_id: str) -> Record | None:
        """Return the loaded record with ``record_id`` or ``None``."""
        for record in self._all:
            if record.id == record_id:
                return record
        return None

    # selection -------------------------------------------------------
    def toggle(self, record_id: str) -> bool:
        """Flip selection of a visible record; hidden identifiers are ignored."""
        if record_id not in self.visible_ids():
            return False
        return self.selection.toggle(record_id)

    def is_selected(self, record_id: str) -> bool:
        return record_id in self.selection

    def all_visible_selected(self) -> bool:
        return self.selection.all_selected(self.visible_ids())

    def select_all(self) -> bool:
        """Select every visible record, or deselect them if all already are."""
        return self.selection.toggle_all(self.visible_ids())

    def deselect_all(self) -> None:
        for record_id in self.visible_ids():
            self.selection.discard(record_id)

    def selected_ids(self) -> list[str]:
        return self.selection.ids()

    def selected_records(self) -> list[Record]:
        """Return selected records in Collection order."""
        return [record for record in self._all if record.id in self.selection]
