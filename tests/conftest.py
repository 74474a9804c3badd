"""Pytest configuration for the clinic console test suite."""

from __future__ import annotations

import pytest

from clinic_console import confirm, i18n
from tests.fakes import FakeClient


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture(autouse=True)
def _reset_interaction_state():
    """Keep callback registries and the active catalogue isolated per test."""
    yield
    confirm.set_confirm(None)
    confirm.set_notify(None)
    i18n.reset()
