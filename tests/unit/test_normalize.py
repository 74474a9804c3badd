"""Tests for the list payload normalizer."""

import pytest

from clinic_console.core.normalize import normalize, normalize_payload

pytestmark = pytest.mark.unit


def test_bare_array_is_returned_as_is():
    payload = [{"id": "1"}, {"id": "2"}]
    result = normalize_payload(payload, "patients")
    assert result.items == payload
    assert result.source == "array"
    assert result.recognized


def test_paged_content_envelope():
    payload = {"content": [{"id": "1", "name": "A"}], "total": 1}
    assert normalize(payload, "patients") == [{"id": "1", "name": "A"}]


def test_content_wins_over_alias_and_items():
    payload = {
        "items": [{"id": "items"}],
        "patients": [{"id": "alias"}],
        "content": [{"id": "content"}],
    }
    assert normalize(payload, "patients") == [{"id": "content"}]


def test_alias_wins_over_items():
    payload = {"items": [{"id": "items"}], "staff": [{"id": "alias"}]}
    result = normalize_payload(payload, "staff")
    assert result.items == [{"id": "alias"}]
    assert result.source == "staff"


def test_items_envelope_without_alias():
    assert normalize({"items": [1, 2]}) == [1, 2]


def test_non_list_envelope_values_are_skipped():
    payload = {"content": {"id": "1"}, "items": [{"id": "2"}]}
    assert normalize(payload, "patients") == [{"id": "2"}]


@pytest.mark.parametrize(
    "payload",
    [None, "", "oops", 42, {"data": [1]}, {"content": None}, {}],
)
def test_unrecognized_payload_yields_empty_list(payload, caplog):
    result = normalize_payload(payload, "medicines")
    assert result.items == []
    assert not result.recognized
    assert "Unexpected medicines payload format" in caplog.text


def test_result_is_a_copy():
    payload = [{"id": "1"}]
    items = normalize(payload)
    items.append({"id": "2"})
    assert payload == [{"id": "1"}]
