"""Unit tests for the decision table."""

import itertools

import pytest

from index_bootstrap.decision import Decision, decide


class TestDecide:
    """Every row of the decision table selects exactly one decision."""

    def test_registered_valid_unchanged_is_synced(self):
        assert decide(True, True, False) is Decision.SYNCED

    def test_registered_valid_changed_is_refresh_only(self):
        assert decide(True, True, True) is Decision.REFRESH_ONLY

    @pytest.mark.parametrize("changed", [False, True])
    def test_registered_invalid_index_is_full_refresh(self, changed):
        assert decide(True, False, changed) is Decision.FULL_REFRESH_AND_WATCH

    @pytest.mark.parametrize("index_valid,changed", list(itertools.product([False, True], repeat=2)))
    def test_unregistered_always_registers(self, index_valid, changed):
        assert decide(False, index_valid, changed) is Decision.REGISTER_THEN_FULL_REFRESH_AND_WATCH

    def test_all_inputs_map_to_a_single_decision(self):
        outcomes = {
            decide(*inputs) for inputs in itertools.product([False, True], repeat=3)
        }
        assert outcomes == set(Decision)
