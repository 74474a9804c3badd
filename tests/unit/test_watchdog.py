"""Tests for watchdog timers."""

import asyncio

import pytest

from clinic_console.controllers.watchdog import Watchdog

pytestmark = pytest.mark.unit


def test_watchdog_fires_once_after_duration():
    async def scenario():
        watchdog = Watchdog()
        fired = []
        handle = watchdog.arm(10, lambda: fired.append("x"))
        assert watchdog.pending == 1
        await asyncio.sleep(0.05)
        assert fired == ["x"]
        assert handle.fired
        assert watchdog.pending == 0
        assert watchdog.disarm(handle) is False

    asyncio.run(scenario())


def test_disarm_prevents_firing_and_is_idempotent():
    async def scenario():
        watchdog = Watchdog()
        fired = []
        handle = watchdog.arm(10, lambda: fired.append("x"))
        assert watchdog.disarm(handle) is True
        assert watchdog.disarm(handle) is False
        assert watchdog.disarm(None) is False
        await asyncio.sleep(0.05)
        assert fired == []
        assert handle.disarmed and not handle.fired

    asyncio.run(scenario())


def test_disarm_all_cancels_every_pending_timer():
    async def scenario():
        watchdog = Watchdog()
        fired = []
        for _ in range(3):
            watchdog.arm(10, lambda: fired.append("x"))
        assert watchdog.disarm_all() == 3
        await asyncio.sleep(0.05)
        assert fired == []
        assert watchdog.pending == 0

    asyncio.run(scenario())


def test_arm_requires_running_loop():
    with pytest.raises(RuntimeError):
        Watchdog().arm(10, lambda: None)
