"""Treatment overview joining treatments with patients, staff and medicines."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from .. import confirm as interaction
from ..api.errors import ApiError
from ..core.kinds import KINDS, MEDICINES, PATIENTS, STAFF, TREATMENTS, ResourceKind
from ..core.model import Medicine, Patient, Record, Staff, Treatment
from ..core.normalize import normalize_payload
from ..core.outcome import LoadOutcome, TimeoutPolicy
from ..i18n import _
from ..telemetry import log_event
from .collection import records_from_items
from .cycle import LoadCycleController
from .watchdog import Watchdog

logger = logging.getLogger(__name__)

_JOINED: tuple[ResourceKind, ...] = (TREATMENTS, PATIENTS, STAFF, MEDICINES)


class OverviewSource(Protocol):
    async def list_records(self, kind: str, q: str | None = None) -> Any:
        raise NotImplementedError

    async def list_treatments_for_patient(self, patient_id: str) -> Any:
        raise NotImplementedError

    async def delete_record(self, kind: str, record_id: str) -> None:
        raise NotImplementedError


class TreatmentOverviewController(LoadCycleController):
    """Load the four collections a treatment table needs in one cycle.

    The fetches run concurrently and each one that fails is replaced by an
    empty list, so the cycle itself only fails on the watchdog. A timeout
    keeps whatever an earlier cycle loaded unless the policy says otherwise.
    """

    def __init__(
        self,
        client: OverviewSource,
        *,
        watchdog_ms: int,
        timeout_policy: TimeoutPolicy = TimeoutPolicy.PRESERVE,
        watchdog: Watchdog | None = None,
        patient_id: str | None = None,
    ) -> None:
        super().__init__(
            name="treatment-overview",
            watchdog_ms=watchdog_ms,
            timeout_policy=timeout_policy,
            watchdog=watchdog,
        )
        self.client = client
        self.patient_id = patient_id
        self.treatments: list[Treatment] = []
        self.patients: list[Patient] = []
        self.staff: list[Staff] = []
        self.medicines: list[Medicine] = []
        self.failed: list[str] = []

    # loading ---------------------------------------------------------
    async def load(self) -> LoadOutcome:
        return await self._run_cycle(self._fetch_all)

    async def _fetch_all(self) -> dict[str, Any]:
        results = await asyncio.gather(*(self._fetch_one(kind) for kind in _JOINED))
        return {kind.name: result for kind, result in zip(_JOINED, results)}

    async def _fetch_one(self, kind: ResourceKind) -> tuple[Any, str | None]:
        try:
            if kind is TREATMENTS and self.patient_id:
                payload = await self.client.list_treatments_for_patient(self.patient_id)
            else:
                payload = await self.client.list_records(kind.name)
        except ApiError as exc:
            logger.warning("Loading %s for the treatment overview failed: %s", kind.name, exc)
            return [], str(exc)
        return payload, None

    def _build_success(
        self, generation: int, payload: Any, duration_ms: int
    ) -> LoadOutcome:
        data: dict[str, list[Record]] = {}
        failed: list[str] = []
        for name, (raw, error) in payload.items():
            kind = KINDS[name]
            if error is not None:
                failed.append(name)
            data[name] = records_from_items(kind, normalize_payload(raw, kind.alias).items)
        outcome = LoadOutcome.success(generation, data, duration_ms=duration_ms)
        outcome.extra["failed"] = failed
        return outcome

    def _apply_success(self, outcome: LoadOutcome) -> None:
        data = outcome.data
        self.treatments = list(data.get(TREATMENTS.name, []))
        self.patients = list(data.get(PATIENTS.name, []))
        self.staff = list(data.get(STAFF.name, []))
        self.medicines = list(data.get(MEDICINES.name, []))
        self.failed = list(outcome.extra.get("failed", []))
        if self.failed:
            log_event(
                "OVERVIEW_PARTIAL",
                {"failed": self.failed},
                level=logging.WARNING,
            )

    def _apply_failure(self, outcome: LoadOutcome) -> None:
        if outcome.timed_out and self.timeout_policy is TimeoutPolicy.PRESERVE:
            return
        self.treatments, self.patients, self.staff, self.medicines = [], [], [], []

    def _loading_message(self) -> str:
        return _("Loading full treatments...")

    def _settled_message(self, outcome: LoadOutcome) -> str:
        if outcome.error is not None:
            return outcome.error.message
        return _("Loaded: {count} treatment(s)").format(count=len(self.treatments))

    # lookups ---------------------------------------------------------
    @staticmethod
    def _name_of(records: list[Any], record_id: str) -> str:
        for record in records:
            if record.id == record_id and record.name:
                return record.name
        return record_id

    def patient_name(self, record_id: str) -> str:
        return self._name_of(self.patients, record_id)

    def staff_name(self, record_id: str) -> str:
        return self._name_of(self.staff, record_id)

    def medicine_name(self, record_id: str) -> str:
        return self._name_of(self.medicines, record_id)

    def rows(self) -> list[dict[str, str]]:
        """Return treatments with identifiers resolved to display names."""
        return [
            {
                "id": treatment.id or "",
                "date": treatment.date,
                "patient": self.patient_name(treatment.patient_id),
                "staff": self.staff_name(treatment.staff_id),
                "medicine": self.medicine_name(treatment.medicine_id)
                if treatment.medicine_id
                else "",
                "description": treatment.description,
                "notes": treatment.notes,
            }
            for treatment in self.treatments
        ]

    # actions ---------------------------------------------------------
    async def delete(
        self,
        record_id: str | None,
        *,
        confirm: Callable[[str], bool] | None = None,
        notify: Callable[[str], None] | None = None,
    ) -> bool:
        """Delete treatment ``record_id`` after confirmation, then reload."""
        if not record_id:
            return False
        if not (confirm or interaction.confirm)(_("Delete this treatment?")):
            return False
        try:
            await self.client.delete_record(TREATMENTS.name, record_id)
        except ApiError as exc:
            logger.warning("Deleting treatment %s failed: %s", record_id, exc)
            (notify or interaction.notify)(_("Could not delete the treatment."))
            return False
        await self.load()
        return True
