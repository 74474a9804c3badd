"""Tests for the collection load controller."""

import asyncio

import pytest

from clinic_console.api.errors import ApiNetworkError, ApiStatusError, ApiTimeoutError
from clinic_console.controllers.collection import CollectionLoadController
from clinic_console.core.kinds import MEDICINES, PATIENTS
from clinic_console.core.outcome import LoadErrorKind, LoadState, LoadStatus, TimeoutPolicy
from tests.fakes import drain

pytestmark = pytest.mark.unit


def _patients(count: int) -> list[dict]:
    return [
        {"id": str(i), "name": f"Patient {i}", "age": 20 + i, "medicalHistory": ""}
        for i in range(1, count + 1)
    ]


def _controller(client, kind=PATIENTS, **kwargs) -> CollectionLoadController:
    kwargs.setdefault("watchdog_ms", 1000)
    return CollectionLoadController(client, kind, **kwargs)


def test_successful_load_replaces_collection(fake_client):
    fake_client.payloads["patients"] = {"content": _patients(3), "total": 3}

    async def scenario():
        controller = _controller(fake_client)
        assert controller.state is LoadState.IDLE
        outcome = await controller.load()
        assert outcome.status is LoadStatus.SUCCESS
        assert controller.state is LoadState.SETTLED
        assert controller.error is None
        assert [r.id for r in controller.records] == ["1", "2", "3"]
        assert controller.visible == controller.records
        assert controller.status_message.endswith("3 record(s)")
        assert controller._watchdog.pending == 0

    asyncio.run(scenario())


def test_server_query_is_forwarded(fake_client):
    async def scenario():
        controller = _controller(fake_client, server_query="ana")
        await controller.load()

    asyncio.run(scenario())
    assert fake_client.calls == [("list", "patients", "ana")]


def test_unknown_format_is_a_successful_empty_load(fake_client):
    fake_client.payloads["medicines"] = {"data": []}

    async def scenario():
        controller = _controller(fake_client, MEDICINES)
        outcome = await controller.load()
        assert outcome.ok
        assert outcome.diagnostic is not None
        assert outcome.diagnostic.kind is LoadErrorKind.UNKNOWN_FORMAT
        assert controller.error is None
        assert controller.records == []
        assert controller.status_message == (
            "Unexpected response format; showing an empty list."
        )

    asyncio.run(scenario())


def test_malformed_items_are_skipped(fake_client):
    fake_client.payloads["patients"] = [{"id": "1", "name": "Ana"}, "junk", 3]

    async def scenario():
        controller = _controller(fake_client)
        await controller.load()
        assert [r.name for r in controller.records] == ["Ana"]

    asyncio.run(scenario())


@pytest.mark.parametrize(
    ("error", "kind", "fragment"),
    [
        (ApiNetworkError("connection refused"), LoadErrorKind.NETWORK, "status 0"),
        (ApiStatusError(503, "Service Unavailable"), LoadErrorKind.HTTP_STATUS, "HTTP error 503"),
        (ApiTimeoutError("read timeout"), LoadErrorKind.TIMEOUT, "did not answer in time"),
    ],
)
def test_failed_fetch_clears_collection_and_reports(fake_client, error, kind, fragment):
    fake_client.payloads["patients"] = _patients(2)

    async def scenario():
        controller = _controller(fake_client)
        await controller.load()
        controller.toggle("1")
        fake_client.errors["patients"] = error
        outcome = await controller.load()
        assert outcome.status is LoadStatus.FAILURE
        assert controller.error is not None
        assert controller.error.kind is kind
        assert fragment in controller.status_message
        assert controller.records == []
        assert controller.selected_ids() == []

    asyncio.run(scenario())


def test_reload_clears_previous_error_while_loading(fake_client):
    async def scenario():
        controller = _controller(fake_client)
        fake_client.errors["patients"] = ApiStatusError(500, "boom")
        failed = await controller.load()
        assert failed.error.kind is LoadErrorKind.HTTP_STATUS
        assert "HTTP error 500" in controller.status_message

        del fake_client.errors["patients"]
        gate = asyncio.Event()
        fake_client.gates["patients"] = gate
        fake_client.payloads["patients"] = _patients(2)
        pending = asyncio.create_task(controller.load())
        await drain()
        assert controller.is_loading
        assert controller.error is None
        assert controller.status_message == "Loading patients..."

        gate.set()
        outcome = await pending
        assert outcome.ok
        assert controller.error is None
        assert len(controller.records) == 2

    asyncio.run(scenario())


def test_unexpected_exception_becomes_unknown_error(fake_client):
    fake_client.errors["patients"] = ValueError("boom")

    async def scenario():
        controller = _controller(fake_client)
        outcome = await controller.load()
        assert outcome.error.kind is LoadErrorKind.UNKNOWN
        assert controller.status_message == "Unknown error: boom"

    asyncio.run(scenario())


def test_watchdog_timeout_clears_and_ignores_late_result(fake_client):
    async def scenario():
        fake_client.payloads["patients"] = _patients(2)
        controller = _controller(fake_client, watchdog_ms=20)
        await controller.load()
        assert len(controller.records) == 2

        gate = asyncio.Event()
        fake_client.gates["patients"] = gate
        fake_client.payloads["patients"] = _patients(5)
        outcome = await controller.load()
        assert outcome.timed_out
        assert controller.state is LoadState.SETTLED
        assert controller.records == []
        assert controller.status_message == (
            "Timeout: the request returned no usable response."
        )

        gate.set()
        await drain()
        assert controller.records == []
        assert controller.last_outcome is outcome
        assert controller.state is LoadState.SETTLED

    asyncio.run(scenario())


def test_watchdog_timeout_preserves_data_when_configured(fake_client):
    async def scenario():
        fake_client.payloads["patients"] = _patients(2)
        controller = _controller(
            fake_client, watchdog_ms=20, timeout_policy=TimeoutPolicy.PRESERVE
        )
        await controller.load()
        fake_client.gates["patients"] = asyncio.Event()
        outcome = await controller.load()
        assert outcome.timed_out
        assert len(controller.records) == 2
        controller.close()

    asyncio.run(scenario())


def test_settles_exactly_once_when_fetch_wins(fake_client):
    fake_client.payloads["patients"] = _patients(1)

    async def scenario():
        controller = _controller(fake_client, watchdog_ms=20)
        outcome = await controller.load()
        await asyncio.sleep(0.05)
        assert controller.last_outcome is outcome
        assert outcome.ok
        assert controller.generation == 1

    asyncio.run(scenario())


def test_new_load_supersedes_outstanding_cycle(fake_client):
    async def scenario():
        controller = _controller(fake_client)
        gate = asyncio.Event()
        fake_client.gates["patients"] = gate
        fake_client.payloads["patients"] = _patients(1)
        first = asyncio.create_task(controller.load())
        await drain()
        assert controller.is_loading

        del fake_client.gates["patients"]
        fake_client.payloads["patients"] = _patients(3)
        second = await controller.load()
        assert second.ok
        assert (await first).status is LoadStatus.SUPERSEDED

        gate.set()
        await drain()
        assert len(controller.records) == 3
        assert controller.last_outcome is second

    asyncio.run(scenario())


def test_close_cancels_timers_and_fetch(fake_client):
    async def scenario():
        controller = _controller(fake_client)
        fake_client.gates["patients"] = asyncio.Event()
        pending = asyncio.create_task(controller.load())
        await drain()
        controller.close()
        outcome = await pending
        assert outcome.status is LoadStatus.SUPERSEDED
        assert controller.state is LoadState.IDLE
        assert controller._watchdog.pending == 0
        await drain()
        assert not controller._tasks
        with pytest.raises(RuntimeError):
            await controller.load()

    asyncio.run(scenario())


def test_query_filters_and_prunes_selection(fake_client):
    fake_client.payloads["patients"] = [
        {"id": "1", "name": "Ana", "age": 30},
        {"id": "2", "name": "Bruno", "age": 45},
        {"id": "3", "name": "Carla", "age": 22},
        {"id": "4", "name": "Diana", "age": 61},
        {"id": "5", "name": "Elena", "age": 38},
    ]

    async def scenario():
        controller = _controller(fake_client)
        await controller.load()
        controller.toggle("1")
        controller.toggle("3")
        assert len(controller.selection) == 2

        controller.set_query("  AN ")
        assert controller.query == "an"
        assert controller.visible_ids() == ["1", "4"]
        assert controller.selected_ids() == ["1"]
        assert set(controller.selected_ids()) <= set(controller.visible_ids())

        controller.set_query("")
        assert controller.selected_ids() == ["1"]
        assert len(controller.visible) == 5

    asyncio.run(scenario())


def test_toggle_ignores_hidden_records(fake_client):
    fake_client.payloads["patients"] = _patients(3)

    async def scenario():
        controller = _controller(fake_client)
        await controller.load()
        controller.set_query("patient 2")
        assert controller.toggle("1") is False
        assert not controller.is_selected("1")
        assert controller.toggle("2") is True
        assert controller.is_selected("2")

    asyncio.run(scenario())


def test_select_all_toggles_visible_records(fake_client):
    fake_client.payloads["patients"] = _patients(3)

    async def scenario():
        controller = _controller(fake_client)
        await controller.load()
        assert controller.select_all() is True
        assert controller.all_visible_selected()
        assert controller.select_all() is False
        assert controller.selected_ids() == []

        controller.select_all()
        controller.deselect_all()
        assert controller.selected_ids() == []

    asyncio.run(scenario())


def test_reload_clears_selection_and_keeps_query(fake_client):
    fake_client.payloads["patients"] = _patients(3)

    async def scenario():
        controller = _controller(fake_client)
        await controller.load()
        controller.set_query("patient 1")
        controller.toggle("1")
        await controller.load()
        assert controller.selected_ids() == []
        assert controller.visible_ids() == ["1"]

    asyncio.run(scenario())


def test_selected_records_follow_collection_order(fake_client):
    fake_client.payloads["patients"] = _patients(3)

    async def scenario():
        controller = _controller(fake_client)
        await controller.load()
        controller.toggle("3")
        controller.toggle("1")
        assert [r.id for r in controller.selected_records()] == ["1", "3"]
        assert controller.get_by_id("2").name == "Patient 2"
        assert controller.get_by_id("9") is None

    asyncio.run(scenario())
