"""Test doubles shared by the unit tests."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from typing import Any


class FakeClient:
    """In-memory stand-in for :class:`~clinic_console.api.client.ApiClient`.

    Responses are looked up by key (``"patients"`` for the list of patients,
    ``"patients/1"`` for a single record, ``"create:patients"`` for a POST and
    so on). A key listed in ``errors`` raises instead, and a key listed in
    ``gates`` waits for the event before answering.
    """

    def __init__(self) -> None:
        self.payloads: dict[str, Any] = {}
        self.errors: dict[str, Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[tuple[Any, ...]] = []

    async def _respond(self, key: str, default: Any = None) -> Any:
        gate = self.gates.get(key)
        if gate is not None:
            await gate.wait()
        error = self.errors.get(key)
        if error is not None:
            raise error
        return self.payloads.get(key, default)

    def count(self, action: str) -> int:
        return sum(1 for call in self.calls if call[0] == action)

    async def list_records(self, kind: str, q: str | None = None) -> Any:
        self.calls.append(("list", kind, q))
        return await self._respond(kind, [])

    async def list_treatments_for_patient(self, patient_id: str) -> Any:
        self.calls.append(("list_for_patient", patient_id))
        return await self._respond(f"treatments/patient/{patient_id}", [])

    async def get_record(self, kind: str, record_id: str) -> Any:
        self.calls.append(("get", kind, record_id))
        return await self._respond(f"{kind}/{record_id}")

    async def create_record(self, kind: str, body: Mapping[str, Any]) -> Any:
        self.calls.append(("create", kind, dict(body)))
        return await self._respond(f"create:{kind}", {**body, "id": "new-1"})

    async def update_record(
        self, kind: str, record_id: str, body: Mapping[str, Any]
    ) -> Any:
        self.calls.append(("update", kind, record_id, dict(body)))
        return await self._respond(f"update:{kind}", dict(body))

    async def delete_record(self, kind: str, record_id: str) -> None:
        self.calls.append(("delete", kind, record_id))
        await self._respond(f"delete:{kind}")

    async def delete_records(self, kind: str, record_ids: Sequence[str]) -> None:
        self.calls.append(("delete_many", kind, list(record_ids)))
        await self._respond(f"delete_many:{kind}")


async def drain(rounds: int = 10) -> None:
    """Let pending callbacks and tasks on the running loop make progress."""
    for _ in range(rounds):
        await asyncio.sleep(0)
