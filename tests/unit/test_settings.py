"""Tests for application settings."""

import json
from pathlib import Path

import pytest

from clinic_console.settings import (
    DEFAULT_API_BASE_URL,
    MAX_WATCHDOG_MS,
    MIN_WATCHDOG_MS,
    ApiSettings,
    AppSettings,
    ResourceSettings,
    load_app_settings,
)

pytestmark = pytest.mark.unit


def test_defaults_match_console_configuration():
    settings = AppSettings()
    assert settings.api.base_url == DEFAULT_API_BASE_URL
    assert settings.api.prefix == "/api"
    assert settings.api.list_timeout == 12.0
    assert settings.api.item_timeout == 5.0
    assert settings.api.write_timeout == 8.0
    resources = settings.resources
    assert [resources.watchdog_for(k) for k in ("patients", "staff", "medicines", "treatments")] == [
        9000,
        5000,
        5000,
        8000,
    ]
    assert resources.form == 5000
    assert resources.aggregate == 12000


def test_api_settings_normalise_urls():
    api = ApiSettings(base_url="  http://example.test/// ", prefix="api/v1/")
    assert api.base_url == "http://example.test"
    assert api.prefix == "/api/v1"
    assert ApiSettings(base_url="").base_url == DEFAULT_API_BASE_URL
    assert ApiSettings(prefix="/").prefix == ""


def test_api_settings_reject_non_positive_timeouts():
    with pytest.raises(ValueError):
        ApiSettings(list_timeout=0)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, 9000),
        ("", 9000),
        (0, 9000),
        (-5, 9000),
        ("7000", 7000),
        (10, MIN_WATCHDOG_MS),
        (10**9, MAX_WATCHDOG_MS),
    ],
)
def test_watchdog_values_are_clamped(value, expected):
    assert ResourceSettings(patients=value).patients == expected


def test_watchdog_rejects_garbage():
    with pytest.raises(ValueError):
        ResourceSettings(staff="soon")


def test_assignment_is_validated():
    resources = ResourceSettings()
    resources.aggregate = 0
    assert resources.aggregate == 12000


def test_load_app_settings_from_toml(tmp_path: Path):
    path = tmp_path / "settings.toml"
    path.write_text(
        '[api]\nbase_url = "http://clinic:8080"\ntoken = "t"\n'
        "[resources]\npatients = 3000\n"
        '[ui]\nlanguage = " es "\n',
        encoding="utf-8",
    )
    settings = load_app_settings(path)
    assert settings.api.base_url == "http://clinic:8080"
    assert settings.resources.patients == 3000
    assert settings.ui.language == "es"


def test_load_app_settings_from_json(tmp_path: Path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"resources": {"treatments": 11000}}), encoding="utf-8")
    settings = load_app_settings(path)
    assert settings.resources.treatments == 11000
    assert settings.to_dict()["api"]["prefix"] == "/api"


def test_load_app_settings_wraps_validation_errors(tmp_path: Path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"api": {"write_timeout": -1}}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_app_settings(path)
