"""
Tests for design matrix construction.

Validates:
    - Intercept-only descriptors give a single column of ones per arm
    - Column order: intercept, then covariates as declared
    - Outcome references never become columns
    - Centers: arm mean for continuous, 1 for binary and intercept,
      decided per arm
    - Categorical covariates become reference-coded indicators
"""

import numpy as np
import pytest

from missinghe.core.datasource import TrialData
from missinghe.core.exceptions import SchemaError, UnknownCovariateError
from missinghe.preparation.arms import split_arms
from missinghe.preparation.descriptors import ModelDescriptor, Role
from missinghe.preparation.design import INTERCEPT, build_design


def _build(frame, text, role):
    data = TrialData.from_dataframe(frame)
    arms = split_arms(data)
    return build_design(data, arms, ModelDescriptor.parse(text), role)


class TestInterceptOnly:

    def test_single_column_of_ones(self, trial_frame):
        pair = _build(trial_frame, "e ~ 1", Role.EFFECT)
        assert pair.columns == (INTERCEPT,)
        assert not pair.has_covariates
        assert pair.control.matrix.shape == (150, 1)
        assert pair.intervention.matrix.shape == (100, 1)
        for design in pair:
            assert design.is_intercept_only
            np.testing.assert_array_equal(design.matrix, 1.0)
            np.testing.assert_array_equal(design.centers, [1.0])
            assert not design.binary[0]

    def test_outcome_reference_only(self, trial_frame):
        """'me ~ e' has no covariates: the 'e' term is a flag, not a column."""
        pair = _build(trial_frame, "me ~ e", Role.MISSING_EFFECT)
        assert pair.columns == (INTERCEPT,)
        assert pair.references_outcome
        assert not pair.has_covariates


class TestColumns:

    def test_declared_order(self, trial_frame):
        pair = _build(trial_frame, "c ~ sex + e + age", Role.COST)
        assert pair.columns == (INTERCEPT, 'sex', 'age')
        assert pair.p == 3
        assert pair.references_outcome

    def test_raw_values_kept(self, small_frame):
        pair = _build(small_frame, "e ~ age", Role.EFFECT)
        np.testing.assert_array_equal(pair.control.matrix[:, 1], [30.0, 50.0, 70.0])
        np.testing.assert_array_equal(pair.intervention.matrix[:, 1], [40.0, 60.0, 80.0])

    def test_no_intercept(self, small_frame):
        pair = _build(small_frame, "e ~ age - 1", Role.EFFECT)
        assert pair.columns == ('age',)
        assert not pair.control.has_intercept

    def test_unknown_covariate(self, small_frame):
        with pytest.raises(UnknownCovariateError) as info:
            _build(small_frame, "e ~ bmi", Role.EFFECT)
        assert info.value.column == 'bmi'

    def test_matrices_read_only(self, small_frame):
        pair = _build(small_frame, "e ~ age", Role.EFFECT)
        with pytest.raises(ValueError):
            pair.control.matrix[0, 0] = 5.0
        with pytest.raises(ValueError):
            pair.control.centers[0] = 5.0


class TestCenters:

    def test_continuous_arm_mean(self, trial_frame):
        pair = _build(trial_frame, "e ~ age", Role.EFFECT)
        age = trial_frame['age'].to_numpy()
        t = trial_frame['t'].to_numpy()
        np.testing.assert_allclose(pair.control.centers, [1.0, age[t == 1].mean()])
        np.testing.assert_allclose(pair.intervention.centers, [1.0, age[t == 2].mean()])

    def test_binary_fixed_at_one(self, trial_frame):
        """A 0/1 column is centered at 1, not at its prevalence."""
        pair = _build(trial_frame, "e ~ sex", Role.EFFECT)
        for design in pair:
            assert design.binary[1]
            assert design.centers[1] == 1.0
            assert 0.0 < design.matrix[:, 1].mean() < 1.0

    def test_binary_in_one_arm_only(self, small_frame):
        """
        dose takes two values in the control arm and three in the
        intervention arm.
        """
        frame = small_frame.assign(dose=[5.0, 1.0, 10.0, 2.0, 5.0, 3.0])
        pair = _build(frame, "e ~ dose", Role.EFFECT)
        assert pair.control.binary[1]
        assert pair.control.centers[1] == 1.0
        assert not pair.intervention.binary[1]
        np.testing.assert_allclose(pair.intervention.centers[1], 2.0)

    def test_constant_column_is_binary(self, small_frame):
        frame = small_frame.assign(flag=[3.0] * 6)
        pair = _build(frame, "e ~ flag", Role.EFFECT)
        assert pair.control.centers[1] == 1.0


class TestCategorical:

    def test_reference_coding(self, small_frame):
        pair = _build(small_frame, "c ~ site", Role.COST)
        assert pair.columns == (INTERCEPT, 'siteb', 'sitec')
        # control sites: b, c, b
        np.testing.assert_array_equal(pair.control.matrix[:, 1], [1.0, 0.0, 1.0])
        np.testing.assert_array_equal(pair.control.matrix[:, 2], [0.0, 1.0, 0.0])
        np.testing.assert_array_equal(pair.control.centers, [1.0, 1.0, 1.0])

    def test_full_coding_without_intercept(self, small_frame):
        pair = _build(small_frame, "c ~ site - 1", Role.COST)
        assert pair.columns == ('sitea', 'siteb', 'sitec')
        # intervention sites: a, a, c
        np.testing.assert_array_equal(pair.intervention.matrix[:, 0], [1.0, 1.0, 0.0])
        np.testing.assert_array_equal(pair.intervention.matrix.sum(axis=1), 1.0)
        np.testing.assert_array_equal(pair.control.centers, [1.0, 1.0, 1.0])

    def test_only_first_categorical_fully_coded(self, small_frame):
        frame = small_frame.assign(grade=['x', 'y', 'y', 'x', 'y', 'x'])
        pair = _build(frame, "c ~ age + site + grade - 1", Role.COST)
        assert pair.columns == ('age', 'sitea', 'siteb', 'sitec', 'gradey')

    def test_single_level_rejected(self, small_frame):
        frame = small_frame.assign(site=['a'] * 6)
        with pytest.raises(SchemaError, match="at least 2 levels"):
            _build(frame, "c ~ site", Role.COST)
