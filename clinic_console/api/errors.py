"""Exceptions raised by :class:`~clinic_console.api.client.ApiClient`."""

from __future__ import annotations

from ..core.outcome import LoadError


class ApiError(RuntimeError):
    """Base class for every failure of an API call."""

    def __init__(self, message: str, *, url: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.url = url

    def to_load_error(self) -> LoadError:
        """Return the load diagnostic matching this failure."""
        return LoadError.unknown(self.message)


class ApiNetworkError(ApiError):
    """Raised when no HTTP response was received (status 0)."""

    status = 0

    def to_load_error(self) -> LoadError:
        return LoadError.network(self.message, url=self.url)


class ApiTimeoutError(ApiNetworkError):
    """Raised when the transport gave up waiting for the server."""

    def to_load_error(self) -> LoadError:
        return LoadError.timeout(self.message, source="transport")


class ApiStatusError(ApiError):
    """Raised when the server answers with a non-2xx status."""

    def __init__(self, status: int, message: str, *, url: str = "") -> None:
        super().__init__(message, url=url)
        self.status = status

    def __str__(self) -> str:
        return f"HTTP {self.status}: {self.message}"

    def to_load_error(self) -> LoadError:
        return LoadError.http_status(self.status, self.message, url=self.url)


__all__ = ["ApiError", "ApiNetworkError", "ApiStatusError", "ApiTimeoutError"]
