"""Cancelable "give up" timers for load cycles."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class WatchdogHandle:
    """One armed timer. Fires at most once; disarming is idempotent."""

    duration_ms: int
    callback: Callable[[], None]
    fired: bool = False
    disarmed: bool = False
    _timer: asyncio.TimerHandle | None = field(default=None, repr=False)

    @property
    def pending(self) -> bool:
        return not (self.fired or self.disarmed)


class Watchdog:
    """Arm and disarm timers on the running event loop."""

    def __init__(self) -> None:
        self._handles: set[WatchdogHandle] = set()

    @property
    def pending(self) -> int:
        """Return the number of armed timers that have neither fired nor been disarmed."""
        return sum(1 for handle in self._handles if handle.pending)

    def arm(self, duration_ms: int, on_fire: Callable[[], None]) -> WatchdogHandle:
        """Schedule ``on_fire`` after ``duration_ms`` milliseconds.

        Must be called from a coroutine or callback running on the event loop.
        """
        loop = asyncio.get_running_loop()
        handle = WatchdogHandle(duration_ms=duration_ms, callback=on_fire)
        handle._timer = loop.call_later(duration_ms / 1000, self._fire, handle)
        self._handles.add(handle)
        return handle

    def disarm(self, handle: WatchdogHandle | None) -> bool:
        """Cancel ``handle``; return ``True`` if it was still pending."""
        if handle is None or not handle.pending:
            return False
        handle.disarmed = True
        if handle._timer is not None:
            handle._timer.cancel()
        self._handles.discard(handle)
        return True

    def disarm_all(self) -> int:
        """Cancel every pending timer and return how many were cancelled."""
        return sum(1 for handle in list(self._handles) if self.disarm(handle))

    def _fire(self, handle: WatchdogHandle) -> None:
        self._handles.discard(handle)
        if not handle.pending:
            return
        handle.fired = True
        logger.debug("Watchdog fired after %d ms", handle.duration_ms)
        handle.callback()
