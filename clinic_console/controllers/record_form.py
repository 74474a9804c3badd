"""Controller behind the create/edit/view form of a single record."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Protocol

from ..api.errors import ApiError
from ..core.kinds import MEDICINES, PATIENTS, STAFF, ResourceKind
from ..core.model import Record
from ..core.normalize import normalize_payload
from ..core.outcome import LoadError, LoadOutcome, TimeoutPolicy
from ..i18n import _
from ..telemetry import log_event
from .actions import EditorMode
from .collection import records_from_items
from .cycle import LoadCycleController, WriteCycle
from .watchdog import Watchdog

logger = logging.getLogger(__name__)

_CHOICE_KINDS: tuple[ResourceKind, ...] = (PATIENTS, STAFF, MEDICINES)


class RecordSource(Protocol):
    async def get_record(self, kind: str, record_id: str) -> Any:
        raise NotImplementedError

    async def list_records(self, kind: str, q: str | None = None) -> Any:
        raise NotImplementedError

    async def create_record(self, kind: str, body: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    async def update_record(
        self, kind: str, record_id: str, body: Mapping[str, Any]
    ) -> Any:
        raise NotImplementedError


class RecordFormController(LoadCycleController):
    """Load one record into a form and write it back.

    Loading and saving are separate cycles, each guarded by a watchdog of
    ``watchdog_ms``. A failed load never discards what the form already
    shows unless a timeout occurs under :attr:`TimeoutPolicy.CLEAR`.
    """

    def __init__(
        self,
        client: RecordSource,
        kind: ResourceKind,
        *,
        mode: EditorMode = EditorMode.NEW,
        record_id: str | None = None,
        watchdog_ms: int,
        timeout_policy: TimeoutPolicy = TimeoutPolicy.PRESERVE,
        watchdog: Watchdog | None = None,
    ) -> None:
        watchdog = watchdog or Watchdog()
        super().__init__(
            name=f"{kind.name}-form",
            watchdog_ms=watchdog_ms,
            timeout_policy=timeout_policy,
            watchdog=watchdog,
        )
        self.client = client
        self.kind = kind
        self.mode = mode
        self.record_id = record_id
        self.record: Record = kind.record_type()
        self.choices: dict[str, list[Record]] = {k.name: [] for k in _CHOICE_KINDS}
        self._saver = WriteCycle(
            name=f"{kind.name}-save", watchdog_ms=watchdog_ms, watchdog=watchdog
        )

    @property
    def read_only(self) -> bool:
        return self.mode is EditorMode.VIEW

    @property
    def is_saving(self) -> bool:
        return self._saver.is_loading

    # loading ---------------------------------------------------------
    async def load(self, record_id: str | None = None) -> LoadOutcome:
        """Fetch the record shown by the form."""
        if record_id is not None:
            self.record_id = record_id
        if not self.record_id:
            raise ValueError("a record identifier is required to load the form")
        target = self.record_id
        return await self._run_cycle(
            lambda: self.client.get_record(self.kind.name, target)
        )

    def _build_success(
        self, generation: int, payload: Any, duration_ms: int
    ) -> LoadOutcome:
        if not isinstance(payload, Mapping):
            return LoadOutcome.success(
                generation,
                None,
                diagnostic=LoadError.unknown_format(type(payload).__name__),
                duration_ms=duration_ms,
            )
        return LoadOutcome.success(
            generation, self.kind.from_wire(dict(payload)), duration_ms=duration_ms
        )

    def _apply_success(self, outcome: LoadOutcome) -> None:
        if outcome.data is not None:
            self.record = outcome.data

    def _apply_failure(self, outcome: LoadOutcome) -> None:
        if outcome.timed_out and self.timeout_policy is TimeoutPolicy.CLEAR:
            self.record = self.kind.record_type()

    def _loading_message(self) -> str:
        return _("Loading {label}...").format(label=self.kind.display_label())

    async def load_choices(self) -> dict[str, list[Record]]:
        """Fetch patients, staff and medicines for the treatment pickers.

        A kind that fails to load leaves an empty list of choices.
        """
        results = await asyncio.gather(
            *(self._fetch_choices(kind) for kind in _CHOICE_KINDS)
        )
        self.choices = {kind.name: items for kind, items in zip(_CHOICE_KINDS, results)}
        return self.choices

    async def _fetch_choices(self, kind: ResourceKind) -> list[Record]:
        try:
            payload = await self.client.list_records(kind.name)
        except ApiError as exc:
            logger.warning("Loading %s choices failed: %s", kind.name, exc)
            return []
        return records_from_items(kind, normalize_payload(payload, kind.alias).items)

    # saving ----------------------------------------------------------
    def _refuse(self, message: str) -> None:
        self.status_message = message
        log_event(
            "SAVE_REFUSED",
            {"view": self.name, "mode": self.mode.value, "reason": message},
        )

    async def save(self, record: Record) -> LoadOutcome | None:
        """Create or update ``record``; return ``None`` when the save is refused."""
        if self.read_only:
            self._refuse(_("This form is read-only."))
            return None
        problem = self.kind.check(record)
        if problem:
            self._refuse(problem)
            return None
        if self.mode is EditorMode.NEW:
            body = self.kind.to_wire(record, include_id=False)
            outcome = await self._saver.run(
                lambda: self.client.create_record(self.kind.name, body)
            )
        else:
            if not self.record_id:
                self._refuse(_("There is no record to update."))
                return None
            record_id = self.record_id
            body = self.kind.to_wire(record)
            body["id"] = record_id
            outcome = await self._saver.run(
                lambda: self.client.update_record(self.kind.name, record_id, body)
            )
        if outcome.ok:
            self.record = record
            if isinstance(outcome.data, Mapping):
                saved = self.kind.from_wire(dict(outcome.data))
                self.record = saved
                if saved.id:
                    self.record_id = saved.id
        self.status_message = self._saver.status_message
        return outcome

    def close(self) -> None:
        self._saver.close()
        super().close()
