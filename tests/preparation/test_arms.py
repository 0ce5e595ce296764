"""
Tests for arm splitting.

Validates:
    - Level coding: 1 -> Control, 2 -> Intervention, other codings rejected
    - Counts: N1 + N2 == n, observed + missing == arm size
    - Original within-arm order and NaN preserved
"""

import numpy as np
import pytest

from missinghe.core.datasource import TrialData
from missinghe.core.exceptions import ArmCodingError, SchemaError
from missinghe.preparation.arms import CONTROL, INTERVENTION, arm_codes, split_arms


class TestArmCodes:

    @pytest.mark.parametrize("values", [
        [1, 2, 1], [1.0, 2.0, 2.0], ['1', '2', '1'], [' 2', '1 ', '1'],
    ])
    def test_accepted_codings(self, values):
        codes = arm_codes(np.array(values, dtype=object))
        assert set(codes) == {'1', '2'}

    def test_letters_rejected(self):
        with pytest.raises(ArmCodingError) as info:
            arm_codes(np.array(['A', 'B', 'A'], dtype=object))
        assert info.value.levels == ('A', 'B')

    def test_zero_one_rejected(self):
        with pytest.raises(ArmCodingError, match="'1' for the control"):
            arm_codes(np.array([0, 1, 1]))

    def test_single_level_rejected(self):
        with pytest.raises(ArmCodingError, match="1 level"):
            arm_codes(np.array([1, 1, 1]))

    def test_is_schema_error(self):
        with pytest.raises(SchemaError):
            arm_codes(np.array([1.5, 2.0]))


class TestSplitArms:

    def test_sizes(self, trial_frame):
        arms = split_arms(TrialData.from_dataframe(trial_frame))
        assert arms.arm_lengths == (150, 100)
        assert arms.n_total == 250
        assert arms.control.name == CONTROL
        assert arms.intervention.name == INTERVENTION

    def test_counts_partition(self, trial_frame):
        arms = split_arms(TrialData.from_dataframe(trial_frame))
        for outcome in ('e', 'c'):
            observed = arms.n_observed(outcome)
            missing = arms.n_missing(outcome)
            assert missing == (11, 11)
            assert observed[0] + missing[0] == 150
            assert observed[1] + missing[1] == 100

    def test_arm_properties(self, trial_frame):
        control = split_arms(TrialData.from_dataframe(trial_frame)).control
        assert control.n_missing_effects == 11
        assert control.n_observed_costs == 139
        assert len(control.observed_effects) == 139
        assert not np.any(np.isnan(control.observed_costs))

    def test_within_arm_order(self, small_frame):
        arms = split_arms(TrialData.from_dataframe(small_frame))
        np.testing.assert_array_equal(arms.control.rows, [0, 2, 4])
        np.testing.assert_array_equal(arms.intervention.rows, [1, 3, 5])
        np.testing.assert_array_equal(arms.control.effects, [0.5, 1.0, 1.0])
        np.testing.assert_array_equal(arms.intervention.costs, [0.0, 250.0, 40.0])
        assert np.isnan(arms.control.costs[1])

    def test_split_full_length_vector(self, small_frame):
        arms = split_arms(TrialData.from_dataframe(small_frame))
        first, second = arms.split(np.arange(6))
        np.testing.assert_array_equal(first, [0, 2, 4])
        np.testing.assert_array_equal(second, [1, 3, 5])

    def test_arrays_read_only(self, small_frame):
        arms = split_arms(TrialData.from_dataframe(small_frame))
        with pytest.raises(ValueError):
            arms.control.effects[0] = 0.0

    def test_outcome_lookup(self, small_frame):
        control = split_arms(TrialData.from_dataframe(small_frame)).control
        assert control.outcome('e') is control.effects
        with pytest.raises(KeyError):
            control.outcome('me')

    def test_ab_coding_rejected(self, trial_frame):
        frame = trial_frame.assign(t=np.where(trial_frame['t'] == 1, 'A', 'B'))
        with pytest.raises(ArmCodingError):
            split_arms(TrialData.from_dataframe(frame))
