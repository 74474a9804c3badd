"""Typed application settings with Pydantic validation."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import tomllib
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_API_BASE_URL = "http://127.0.0.1:8081"
DEFAULT_API_PREFIX = "/api"

DEFAULT_LIST_TIMEOUT = 12.0
DEFAULT_ITEM_TIMEOUT = 5.0
DEFAULT_WRITE_TIMEOUT = 8.0

DEFAULT_FORM_WATCHDOG_MS = 5000
DEFAULT_AGGREGATE_WATCHDOG_MS = 12000
MIN_WATCHDOG_MS = 100
MAX_WATCHDOG_MS = 120000

# List views of the original console disagreed on their watchdogs; keep the
# same figures as defaults but make them configurable per kind.
DEFAULT_LIST_WATCHDOG_MS = {
    "patients": 9000,
    "staff": 5000,
    "medicines": 5000,
    "treatments": 8000,
}


def _coerce_watchdog_ms(value: int | str | None, default: int) -> int:
    """Return *value* as a watchdog duration clamped to the supported range."""
    if value is None:
        return default
    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            return default
        try:
            numeric = int(raw)
        except ValueError:  # pragma: no cover - delegated to Pydantic
            return value  # type: ignore[return-value]
    else:
        if isinstance(value, bool):
            raise TypeError("Boolean is not a valid watchdog duration")
        numeric = int(value)
    if numeric <= 0:
        return default
    return max(MIN_WATCHDOG_MS, min(MAX_WATCHDOG_MS, numeric))


class ApiSettings(BaseModel):
    """Settings for reaching the clinical-records HTTP API."""

    model_config = ConfigDict(validate_assignment=True)

    base_url: str = DEFAULT_API_BASE_URL
    prefix: str = DEFAULT_API_PREFIX
    token: str = ""
    list_timeout: float = Field(DEFAULT_LIST_TIMEOUT, gt=0)
    item_timeout: float = Field(DEFAULT_ITEM_TIMEOUT, gt=0)
    write_timeout: float = Field(DEFAULT_WRITE_TIMEOUT, gt=0)

    @field_validator("base_url", mode="before")
    @classmethod
    def _normalize_base_url(cls, value: str | None) -> str:
        """Strip whitespace and trailing slashes; blank means the default."""
        if value is None:
            return DEFAULT_API_BASE_URL
        text = str(value).strip().rstrip("/")
        return text or DEFAULT_API_BASE_URL

    @field_validator("prefix", mode="before")
    @classmethod
    def _normalize_prefix(cls, value: str | None) -> str:
        """Return the API prefix with exactly one leading slash."""
        if value is None:
            return DEFAULT_API_PREFIX
        text = str(value).strip().strip("/")
        return f"/{text}" if text else ""


class ResourceSettings(BaseModel):
    """Per-kind watchdog configuration for list views."""

    model_config = ConfigDict(validate_assignment=True)

    patients: int = DEFAULT_LIST_WATCHDOG_MS["patients"]
    staff: int = DEFAULT_LIST_WATCHDOG_MS["staff"]
    medicines: int = DEFAULT_LIST_WATCHDOG_MS["medicines"]
    treatments: int = DEFAULT_LIST_WATCHDOG_MS["treatments"]
    form: int = DEFAULT_FORM_WATCHDOG_MS
    aggregate: int = DEFAULT_AGGREGATE_WATCHDOG_MS

    @field_validator("patients", "staff", "medicines", "treatments", mode="before")
    @classmethod
    def _normalize_list_watchdog(cls, value: int | str | None, info) -> int:
        """Clamp list watchdog durations, falling back to the kind default."""
        return _coerce_watchdog_ms(value, DEFAULT_LIST_WATCHDOG_MS[info.field_name])

    @field_validator("form", mode="before")
    @classmethod
    def _normalize_form_watchdog(cls, value: int | str | None) -> int:
        return _coerce_watchdog_ms(value, DEFAULT_FORM_WATCHDOG_MS)

    @field_validator("aggregate", mode="before")
    @classmethod
    def _normalize_aggregate_watchdog(cls, value: int | str | None) -> int:
        return _coerce_watchdog_ms(value, DEFAULT_AGGREGATE_WATCHDOG_MS)

    def watchdog_for(self, kind: str) -> int:
        """Return the list watchdog duration configured for ``kind``."""
        return int(getattr(self, kind))


class UISettings(BaseModel):
    """Settings related to the user-facing frontends."""

    model_config = ConfigDict(validate_assignment=True)

    language: str | None = None
    log_level: int = Field(default=logging.INFO)

    @field_validator("language", mode="before")
    @classmethod
    def _normalise_language(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        return text or None


class AppSettings(BaseModel):
    """Aggregate settings for the application."""

    model_config = ConfigDict(validate_assignment=True)

    api: ApiSettings = Field(default_factory=ApiSettings)
    resources: ResourceSettings = Field(default_factory=ResourceSettings)
    ui: UISettings = Field(default_factory=UISettings)

    def to_dict(self) -> dict:
        """Return settings as a plain dictionary."""
        return self.model_dump()


def load_app_settings(path: str | Path) -> AppSettings:
    """Load :class:`AppSettings` from *path* with validation.

    Format is detected by file extension: ``.toml`` uses :mod:`tomllib`,
    everything else is treated as JSON.  Any validation errors are wrapped into
    :class:`ValueError` with a human-friendly message.
    """
    p = Path(path)
    with p.open("rb") as fh:
        data = tomllib.load(fh) if p.suffix.lower() == ".toml" else json.load(fh)
    try:
        return AppSettings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc
