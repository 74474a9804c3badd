"""Tests for the selection set."""

import pytest

from clinic_console.core.selection import SelectionSet

pytestmark = pytest.mark.unit


def test_toggle_flips_membership():
    selection = SelectionSet()
    assert selection.toggle("1") is True
    assert "1" in selection
    assert selection.toggle("1") is False
    assert len(selection) == 0


def test_ids_preserve_selection_order():
    selection = SelectionSet()
    for record_id in ("3", "1", "2"):
        selection.add(record_id)
    selection.add("3")
    assert selection.ids() == ["3", "1", "2"]


def test_retain_drops_hidden_ids():
    selection = SelectionSet()
    for record_id in ("1", "2", "3"):
        selection.add(record_id)
    dropped = selection.retain(["1", "3", "4"])
    assert dropped == ["2"]
    assert selection.ids() == ["1", "3"]


def test_toggle_all_selects_then_deselects():
    selection = SelectionSet()
    selection.add("hidden")
    assert selection.toggle_all(["1", "2"]) is True
    assert selection.ids() == ["hidden", "1", "2"]
    assert selection.toggle_all(["1", "2"]) is False
    assert selection.ids() == ["hidden"]


def test_toggle_all_completes_partial_selection():
    selection = SelectionSet()
    selection.add("1")
    assert selection.toggle_all(["1", "2"]) is True
    assert selection.ids() == ["1", "2"]


@pytest.mark.parametrize("initial", [[], ["1", "2", "3"]])
def test_toggle_all_twice_restores_selection(initial):
    selection = SelectionSet()
    for record_id in initial:
        selection.add(record_id)
    candidates = ["1", "2", "3"]
    selection.toggle_all(candidates)
    selection.toggle_all(candidates)
    assert selection.ids() == initial


def test_all_selected_is_false_for_no_candidates():
    assert SelectionSet().all_selected([]) is False
    assert SelectionSet().toggle_all([]) is False
