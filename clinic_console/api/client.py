"""Async HTTP client for the clinical-records REST API."""
from __future__ import annotations

import json
import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from ..settings import ApiSettings
from ..telemetry import log_debug_payload, log_event
from .errors import ApiError, ApiNetworkError, ApiStatusError, ApiTimeoutError

logger = logging.getLogger(__name__)

_PROBE_BODY_PREVIEW = 100


class ApiClient:
    """Thin wrapper issuing one call shape per resource operation.

    Every method either returns the decoded JSON body (``None`` for empty or
    non-JSON bodies) or raises an :class:`ApiError` subclass; transport and
    status failures never escape as ``httpx`` exceptions.
    """

    def __init__(
        self,
        settings: ApiSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize client with API ``settings``.

        ``transport`` replaces the network layer, which tests use to plug in
        :class:`httpx.MockTransport`.
        """
        self.settings = settings or ApiSettings()
        self._transport = transport

    # ------------------------------------------------------------------
    def _path(self, *segments: str) -> str:
        parts = [str(segment).strip("/") for segment in segments]
        return self.settings.prefix + "/" + "/".join(parts)

    def _headers(self, *, json_body: bool = False) -> dict[str, str]:
        """Return default headers for requests."""
        headers: dict[str, str] = {"Accept": "application/json"}
        if json_body:
            headers["Content-Type"] = "application/json"
        if self.settings.token:
            headers["Authorization"] = f"Bearer {self.settings.token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        timeout: float,
        params: Mapping[str, str] | None = None,
        json_body: Any | None = None,
    ) -> httpx.Response:
        """Execute *method* request and return the raw response."""
        headers = self._headers(json_body=json_body is not None)
        async with httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=httpx.Timeout(timeout),
            transport=self._transport,
        ) as client:
            return await client.request(
                method, path, params=params, json=json_body, headers=headers
            )

    async def _call(
        self,
        method: str,
        path: str,
        *,
        timeout: float,
        params: Mapping[str, str] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        """Perform an API call translating failures into :class:`ApiError`."""
        url = f"{self.settings.base_url}{path}"
        start = time.monotonic()
        log_debug_payload(
            "API_REQUEST",
            {"method": method, "url": url, "params": dict(params or {}), "body": json_body},
        )
        try:
            resp = await self._request(
                method, path, timeout=timeout, params=params, json_body=json_body
            )
        except httpx.TimeoutException as exc:
            log_event(
                "API_RESULT",
                {"method": method, "url": url, "error": "timeout"},
                start_time=start,
                level=logging.WARNING,
            )
            raise ApiTimeoutError(str(exc) or type(exc).__name__, url=url) from exc
        except httpx.HTTPError as exc:
            log_event(
                "API_RESULT",
                {"method": method, "url": url, "error": str(exc)},
                start_time=start,
                level=logging.WARNING,
            )
            raise ApiNetworkError(str(exc) or type(exc).__name__, url=url) from exc

        log_debug_payload(
            "API_RESPONSE",
            {"method": method, "url": url, "status": resp.status_code, "body": resp.text},
        )
        if not resp.is_success:
            message = _error_message(resp)
            log_event(
                "API_RESULT",
                {"method": method, "url": url, "status": resp.status_code, "error": message},
                start_time=start,
                level=logging.WARNING,
            )
            raise ApiStatusError(resp.status_code, message, url=url)

        log_event(
            "API_RESULT",
            {"method": method, "url": url, "status": resp.status_code},
            start_time=start,
        )
        return _decode_body(resp)

    # reads -------------------------------------------------------------
    async def list_records(self, kind: str, q: str | None = None) -> Any:
        """Return the raw list payload for ``kind``.

        ``q`` is forwarded for server-side filtering only when it is not blank.
        """
        params = None
        if q and q.strip():
            params = {"q": q.strip()}
        return await self._call(
            "GET", self._path(kind), timeout=self.settings.list_timeout, params=params
        )

    async def get_record(self, kind: str, record_id: str) -> Any:
        """Return a single record of ``kind``."""
        return await self._call(
            "GET", self._path(kind, record_id), timeout=self.settings.item_timeout
        )

    async def list_treatments_for_patient(self, patient_id: str) -> Any:
        """Return the raw list of treatments prescribed to ``patient_id``."""
        return await self._call(
            "GET",
            self._path("treatments", "patient", patient_id),
            timeout=self.settings.list_timeout,
        )

    # writes ------------------------------------------------------------
    async def create_record(self, kind: str, body: Mapping[str, Any]) -> Any:
        """Create a record of ``kind`` and return the server's copy."""
        return await self._call(
            "POST",
            self._path(kind),
            timeout=self.settings.write_timeout,
            json_body=dict(body),
        )

    async def update_record(
        self, kind: str, record_id: str, body: Mapping[str, Any]
    ) -> Any:
        """Replace record ``record_id`` of ``kind`` and return the server's copy."""
        return await self._call(
            "PUT",
            self._path(kind, record_id),
            timeout=self.settings.write_timeout,
            json_body=dict(body),
        )

    async def delete_record(self, kind: str, record_id: str) -> None:
        """Delete record ``record_id`` of ``kind``."""
        await self._call(
            "DELETE", self._path(kind, record_id), timeout=self.settings.write_timeout
        )

    async def delete_records(self, kind: str, record_ids: Sequence[str]) -> None:
        """Delete every record in ``record_ids`` with a single bulk call."""
        await self._call(
            "DELETE",
            self._path(kind),
            timeout=self.settings.write_timeout,
            json_body=list(record_ids),
        )

    # diagnostics -------------------------------------------------------
    async def probe(self, kind: str = "patients") -> dict[str, Any]:
        """Fetch ``kind`` and describe the raw response without judging it.

        Status errors are reported rather than raised; transport failures still
        raise :class:`ApiNetworkError`.
        """
        path = self._path(kind)
        try:
            resp = await self._request("GET", path, timeout=self.settings.list_timeout)
        except httpx.TimeoutException as exc:
            raise ApiTimeoutError(str(exc) or type(exc).__name__, url=path) from exc
        except httpx.HTTPError as exc:
            raise ApiNetworkError(str(exc) or type(exc).__name__, url=path) from exc
        body = resp.text
        report: dict[str, Any] = {
            "status": resp.status_code,
            "headers": dict(resp.headers),
            "body_start": body[:_PROBE_BODY_PREVIEW],
            "valid_json": False,
            "is_array": False,
            "keys": [],
        }
        try:
            data = json.loads(body)
        except ValueError:
            return report
        report["valid_json"] = True
        report["is_array"] = isinstance(data, list)
        if isinstance(data, dict):
            report["keys"] = list(data)
        return report


def _decode_body(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        logger.warning("Response from %s is not valid JSON", resp.request.url)
        return None


def _error_message(resp: httpx.Response) -> str:
    """Extract a short error description from a failed response."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, Mapping):
        for key in ("message", "error", "detail"):
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return resp.reason_phrase or f"status {resp.status_code}"


__all__ = ["ApiClient", "ApiError"]
