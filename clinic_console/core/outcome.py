"""Value types describing the result of one load cycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..i18n import _


class LoadState(str, Enum):
    """Lifecycle of a controller's current load cycle."""

    IDLE = "idle"
    LOADING = "loading"
    SETTLED = "settled"


class LoadStatus(str, Enum):
    """Terminal status of a load cycle."""

    SUCCESS = "success"
    FAILURE = "failure"
    # The cycle was replaced by a newer one before it settled.
    SUPERSEDED = "superseded"


class LoadErrorKind(str, Enum):
    """Failure taxonomy surfaced to frontends."""

    TIMEOUT = "timeout"
    NETWORK = "network"
    HTTP_STATUS = "http_status"
    UNKNOWN = "unknown"
    UNKNOWN_FORMAT = "unknown_format"


class TimeoutPolicy(str, Enum):
    """What a watchdog timeout does to data loaded by earlier cycles."""

    CLEAR = "clear"
    PRESERVE = "preserve"


@dataclass(frozen=True)
class LoadError:
    """Diagnostic attached to a failed (or oddly shaped) load."""

    kind: LoadErrorKind
    detail: str = ""
    status: int | None = None
    url: str = ""
    source: str = ""

    @classmethod
    def timeout(cls, detail: str = "", *, source: str = "watchdog") -> LoadError:
        return cls(LoadErrorKind.TIMEOUT, detail, source=source)

    @classmethod
    def network(cls, detail: str = "", *, url: str = "") -> LoadError:
        return cls(LoadErrorKind.NETWORK, detail, status=0, url=url)

    @classmethod
    def http_status(cls, status: int, detail: str = "", *, url: str = "") -> LoadError:
        return cls(LoadErrorKind.HTTP_STATUS, detail, status=status, url=url)

    @classmethod
    def unknown(cls, detail: str = "") -> LoadError:
        return cls(LoadErrorKind.UNKNOWN, detail)

    @classmethod
    def unknown_format(cls, detail: str = "") -> LoadError:
        return cls(LoadErrorKind.UNKNOWN_FORMAT, detail)

    @property
    def message(self) -> str:
        """Return a short human-readable status line for this error."""
        detail = self.detail or _("Unknown error")
        if self.kind is LoadErrorKind.TIMEOUT:
            if self.source == "transport":
                return _("Timeout: the server did not answer in time. {detail}").format(
                    detail=detail
                )
            return _("Timeout: the request returned no usable response.")
        if self.kind is LoadErrorKind.NETWORK:
            return _("Network/CORS error (status 0). {detail}").format(detail=detail)
        if self.kind is LoadErrorKind.HTTP_STATUS:
            where = f" ({self.url})" if self.url else ""
            return _("HTTP error {status}{where}: {detail}").format(
                status=self.status if self.status is not None else "?",
                where=where,
                detail=detail,
            )
        if self.kind is LoadErrorKind.UNKNOWN_FORMAT:
            return _("Unexpected response format; showing an empty list.")
        return _("Unknown error: {detail}").format(detail=detail)


@dataclass(frozen=True)
class LoadOutcome:
    """Authoritative result of load cycle ``generation``.

    ``data`` carries whatever the cycle produced on success (a list of
    records for collection views, a mapping for aggregate views, a single
    record for forms). ``error`` is set for failures; ``diagnostic`` is set
    for successful loads that still deserve a warning (unrecognized shape).
    """

    generation: int
    status: LoadStatus
    data: Any = None
    error: LoadError | None = None
    diagnostic: LoadError | None = None
    duration_ms: int = 0
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status is LoadStatus.SUCCESS

    @property
    def timed_out(self) -> bool:
        return self.error is not None and self.error.kind is LoadErrorKind.TIMEOUT

    @classmethod
    def success(
        cls,
        generation: int,
        data: Any = None,
        *,
        diagnostic: LoadError | None = None,
        duration_ms: int = 0,
    ) -> LoadOutcome:
        return cls(
            generation,
            LoadStatus.SUCCESS,
            data=data,
            diagnostic=diagnostic,
            duration_ms=duration_ms,
        )

    @classmethod
    def failure(
        cls, generation: int, error: LoadError, *, duration_ms: int = 0
    ) -> LoadOutcome:
        return cls(generation, LoadStatus.FAILURE, error=error, duration_ms=duration_ms)

    @classmethod
    def superseded(cls, generation: int) -> LoadOutcome:
        return cls(generation, LoadStatus.SUPERSEDED)
