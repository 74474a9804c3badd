"""Generation-tagged load cycles raced against a watchdog timer.

Every call to :meth:`LoadCycleController._run_cycle` opens a new cycle with a
fresh generation number. The fetch task and the watchdog both report back
through :meth:`LoadCycleController._settle`, which only accepts an outcome
tagged with the current generation while the controller is still loading.
Whichever arrives first wins; later reports, and reports from superseded
cycles, are dropped without touching controller state.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from functools import partial
from typing import Any

from ..api.errors import ApiError
from ..core.outcome import (
    LoadError,
    LoadOutcome,
    LoadState,
    LoadStatus,
    TimeoutPolicy,
)
from ..i18n import _
from ..telemetry import log_event
from ..util.time import elapsed_ms
from .watchdog import Watchdog, WatchdogHandle

logger = logging.getLogger(__name__)

Fetch = Callable[[], Awaitable[Any]]


@dataclass(eq=False)
class _Cycle:
    generation: int
    settled: asyncio.Future
    started: float = field(default_factory=time.monotonic)
    watchdog: WatchdogHandle | None = None


class LoadCycleController:
    """Base class owning the load state machine shared by all views.

    Subclasses provide the fetch and decide how outcomes change their data by
    overriding :meth:`_build_success`, :meth:`_apply_success` and
    :meth:`_apply_failure`.
    """

    def __init__(
        self,
        *,
        name: str,
        watchdog_ms: int,
        timeout_policy: TimeoutPolicy = TimeoutPolicy.CLEAR,
        watchdog: Watchdog | None = None,
    ) -> None:
        self.name = name
        self.watchdog_ms = watchdog_ms
        self.timeout_policy = timeout_policy
        self._watchdog = watchdog or Watchdog()
        self._state = LoadState.IDLE
        self._generation = 0
        self._current: _Cycle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._closed = False
        self.last_outcome: LoadOutcome | None = None
        self.status_message = ""

    # state -----------------------------------------------------------
    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._state is LoadState.LOADING

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def error(self) -> LoadError | None:
        """Return the failure of the last settled cycle, ``None`` while loading."""
        if self._state is not LoadState.SETTLED or self.last_outcome is None:
            return None
        return self.last_outcome.error

    @property
    def closed(self) -> bool:
        return self._closed

    # cycle -----------------------------------------------------------
    async def _run_cycle(self, fetch: Fetch) -> LoadOutcome:
        """Start a cycle for ``fetch`` and wait until it settles."""
        if self._closed:
            raise RuntimeError(f"{self.name} controller is closed")
        cycle = self._begin_cycle()
        cycle.watchdog = self._watchdog.arm(
            self.watchdog_ms, partial(self._on_timeout, cycle.generation)
        )
        task = asyncio.create_task(self._drive(cycle.generation, cycle.started, fetch))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        # Shielded so a cancelled caller does not poison the shared future.
        return await asyncio.shield(cycle.settled)

    def _begin_cycle(self) -> _Cycle:
        previous = self._current
        if previous is not None and self._state is LoadState.LOADING:
            self._watchdog.disarm(previous.watchdog)
            if not previous.settled.done():
                previous.settled.set_result(LoadOutcome.superseded(previous.generation))
            log_event(
                "LOAD_SUPERSEDED",
                {"view": self.name, "generation": previous.generation},
                level=logging.DEBUG,
            )
        self._generation += 1
        cycle = _Cycle(
            generation=self._generation,
            settled=asyncio.get_running_loop().create_future(),
        )
        self._current = cycle
        self._state = LoadState.LOADING
        self.status_message = self._loading_message()
        log_event(
            "LOAD_STARTED",
            {"view": self.name, "generation": cycle.generation, "watchdog_ms": self.watchdog_ms},
            level=logging.DEBUG,
        )
        return cycle

    async def _drive(self, generation: int, started: float, fetch: Fetch) -> None:
        try:
            payload = await fetch()
        except ApiError as exc:
            outcome = LoadOutcome.failure(
                generation, exc.to_load_error(), duration_ms=elapsed_ms(started)
            )
        except Exception as exc:
            logger.exception("Unexpected failure while loading %s", self.name)
            outcome = LoadOutcome.failure(
                generation, LoadError.unknown(str(exc)), duration_ms=elapsed_ms(started)
            )
        else:
            try:
                outcome = self._build_success(generation, payload, elapsed_ms(started))
            except Exception as exc:
                logger.exception("Could not interpret %s response", self.name)
                outcome = LoadOutcome.failure(
                    generation, LoadError.unknown(str(exc)), duration_ms=elapsed_ms(started)
                )
        self._settle(generation, outcome)

    def _on_timeout(self, generation: int) -> None:
        cycle = self._current
        duration = elapsed_ms(cycle.started) if cycle is not None else self.watchdog_ms
        log_event(
            "WATCHDOG_FIRED",
            {"view": self.name, "generation": generation, "watchdog_ms": self.watchdog_ms},
            level=logging.WARNING,
        )
        self._settle(
            generation,
            LoadOutcome.failure(generation, LoadError.timeout(), duration_ms=duration),
        )

    def _settle(self, generation: int, outcome: LoadOutcome) -> bool:
        """Apply ``outcome`` if it belongs to the live cycle; return whether it did."""
        cycle = self._current
        if (
            self._closed
            or cycle is None
            or cycle.generation != generation
            or self._state is not LoadState.LOADING
        ):
            log_event(
                "LOAD_STALE",
                {
                    "view": self.name,
                    "generation": generation,
                    "current": self._generation,
                    "status": outcome.status.value,
                },
                level=logging.DEBUG,
            )
            return False
        self._watchdog.disarm(cycle.watchdog)
        self._state = LoadState.SETTLED
        self.last_outcome = outcome
        if outcome.status is LoadStatus.SUCCESS:
            self._apply_success(outcome)
        else:
            self._apply_failure(outcome)
        self.status_message = self._settled_message(outcome)
        payload: dict[str, Any] = {
            "view": self.name,
            "generation": generation,
            "status": outcome.status.value,
        }
        level = logging.INFO
        if outcome.error is not None:
            payload["error"] = outcome.error.kind.value
            level = logging.WARNING
        if outcome.diagnostic is not None:
            payload["diagnostic"] = outcome.diagnostic.kind.value
        log_event("LOAD_SETTLED", payload, start_time=cycle.started, level=level)
        if not cycle.settled.done():
            cycle.settled.set_result(outcome)
        return True

    def close(self) -> None:
        """Tear down: cancel timers and in-flight fetches; later results are ignored."""
        if self._closed:
            return
        self._closed = True
        self._watchdog.disarm_all()
        for task in list(self._tasks):
            task.cancel()
        cycle = self._current
        if cycle is not None and not cycle.settled.done():
            cycle.settled.set_result(LoadOutcome.superseded(cycle.generation))
        if self._state is LoadState.LOADING:
            self._state = LoadState.IDLE

    # hooks -----------------------------------------------------------
    def _build_success(
        self, generation: int, payload: Any, duration_ms: int
    ) -> LoadOutcome:
        """Turn a fetched ``payload`` into an outcome without mutating state."""
        return LoadOutcome.success(generation, payload, duration_ms=duration_ms)

    def _apply_success(self, outcome: LoadOutcome) -> None:
        """Install the data of a winning successful ``outcome``."""

    def _apply_failure(self, outcome: LoadOutcome) -> None:
        """React to a winning failed ``outcome``."""

    def _loading_message(self) -> str:
        return _("Loading...")

    def _settled_message(self, outcome: LoadOutcome) -> str:
        if outcome.error is not None:
            return outcome.error.message
        if outcome.diagnostic is not None:
            return outcome.diagnostic.message
        return _("OK ({ms} ms)").format(ms=outcome.duration_ms)


class WriteCycle(LoadCycleController):
    """Run create, update and delete calls under the same watchdog as loads.

    A write that has not answered after ``watchdog_ms`` settles as a
    :attr:`~clinic_console.core.outcome.LoadErrorKind.TIMEOUT` failure; its
    eventual reply is ignored.
    """

    async def run(self, call: Fetch) -> LoadOutcome:
        return await self._run_cycle(call)

    def _loading_message(self) -> str:
        return _("Saving...")

    def _settled_message(self, outcome: LoadOutcome) -> str:
        if outcome.error is not None:
            return outcome.error.message
        return _("Saved ({ms} ms)").format(ms=outcome.duration_ms)
