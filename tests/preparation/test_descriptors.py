"""
Tests for model descriptors and roles.

Validates:
    - parse() of the 'response ~ a + b' shorthand, intercept handling
    - Rejection of formula syntax beyond plain names
    - Outcome-reference handling per role
    - Round trip of str() for the shorthand
"""

import pytest

from missinghe.core.exceptions import ValidationError
from missinghe.preparation.descriptors import RESERVED_NAMES, ModelDescriptor, Role


class TestParse:

    def test_intercept_only(self):
        d = ModelDescriptor.parse("me ~ 1")
        assert d.response == 'me'
        assert d.covariates == ()
        assert d.intercept
        assert not d.has_covariates

    def test_covariates_in_order(self):
        d = ModelDescriptor.parse("c ~ e + age + sex")
        assert d.covariates == ('e', 'age', 'sex')

    def test_whitespace_tolerated(self):
        assert ModelDescriptor.parse("e~age+sex").covariates == ('age', 'sex')

    @pytest.mark.parametrize("text", ["c ~ age - 1", "c ~ 0 + age", "c ~ -1 + age"])
    def test_intercept_removed(self, text):
        d = ModelDescriptor.parse(text)
        assert not d.intercept
        assert d.covariates == ('age',)

    @pytest.mark.parametrize("text", [
        "e ~ age * sex", "e ~ log(age)", "e ~ age:sex", "e ~ I(age^2)",
    ])
    def test_formula_syntax_rejected(self, text):
        with pytest.raises(ValidationError, match="unsupported term"):
            ModelDescriptor.parse(text)

    def test_missing_tilde(self):
        with pytest.raises(ValidationError, match="exactly one"):
            ModelDescriptor.parse("e + age")

    def test_empty_rhs(self):
        with pytest.raises(ValidationError, match="empty right-hand side"):
            ModelDescriptor.parse("e ~ ")

    @pytest.mark.parametrize("text", ["e ~ 1", "c ~ e + age", "c ~ age - 1", "mc ~ c"])
    def test_str_round_trip(self, text):
        assert str(ModelDescriptor.parse(text)) == text


class TestConstruction:

    def test_direct(self):
        d = ModelDescriptor('c', ['e', 'age'])
        assert d.covariates == ('e', 'age')

    def test_string_covariates_rejected(self):
        with pytest.raises(ValidationError, match="sequence of names"):
            ModelDescriptor('e', 'age')

    def test_coerce(self):
        d = ModelDescriptor('e')
        assert ModelDescriptor.coerce(d, 'model_eff') is d
        assert ModelDescriptor.coerce("e ~ 1", 'model_eff') == d

    def test_coerce_rejects_other(self):
        with pytest.raises(ValidationError, match="model_eff"):
            ModelDescriptor.coerce(42, 'model_eff')


class TestRoles:

    def test_outcome(self):
        assert Role.MISSING_EFFECT.outcome == 'e'
        assert Role.STRUCTURAL_COST.outcome == 'c'

    def test_reserved_names(self):
        assert RESERVED_NAMES == {'e', 'c', 'me', 'mc', 'se', 'sc', 't'}

    def test_cost_regressors_drop_effect(self):
        d = ModelDescriptor.parse("c ~ e + age")
        assert d.regressors(Role.COST) == ('age',)
        assert d.references_outcome(Role.COST)

    def test_missing_effect_reference(self):
        d = ModelDescriptor.parse("me ~ age + e")
        assert d.regressors(Role.MISSING_EFFECT) == ('age',)
        assert d.references_outcome(Role.MISSING_EFFECT)

    def test_effect_role_has_no_reference(self):
        assert Role.EFFECT.outcome_reference is None
        assert not ModelDescriptor.parse("e ~ age").references_outcome(Role.EFFECT)

    @pytest.mark.parametrize("role, forbidden", [
        (Role.EFFECT, {'e', 'c', 't'}),
        (Role.COST, {'c', 't'}),
        (Role.MISSING_EFFECT, {'c', 't', 'me', 'mc'}),
        (Role.MISSING_COST, {'e', 't', 'me', 'mc'}),
        (Role.STRUCTURAL_EFFECT, {'e', 'c', 't', 'se', 'sc'}),
    ])
    def test_forbidden(self, role, forbidden):
        assert role.forbidden == forbidden
