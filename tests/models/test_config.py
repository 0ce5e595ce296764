"""
Tests for sampler settings and the assembled ModelConfig.

Validates:
    - SamplerSettings defaults and validation
    - ModelConfig is frozen and every reachable array is read-only
    - to_data_dict() hands out fresh copies with the expected keys
    - Accessors raise KeyError for roles / priors not in use
"""

from dataclasses import FrozenInstanceError

import numpy as np
import pytest

from missinghe.core.exceptions import ValidationError
from missinghe.models import hurdle, selection
from missinghe.models.config import SamplerSettings
from missinghe.preparation.descriptors import Role


# ═══════════════════════════════════════════════════════════════════════
# SamplerSettings
# ═══════════════════════════════════════════════════════════════════════


class TestSamplerSettings:

    def test_defaults(self):
        s = SamplerSettings()
        assert s.n_chains == 2
        assert s.n_iter == 20000
        assert s.n_burnin == 10000
        assert s.n_thin == 1
        assert s.prob == (0.05, 0.95)

    def test_burnin_follows_iterations(self):
        assert SamplerSettings(n_iter=5000).n_burnin == 2500

    def test_burnin_not_below_iterations(self):
        with pytest.raises(ValidationError, match="n_burnin"):
            SamplerSettings(n_iter=1000, n_burnin=1000)

    @pytest.mark.parametrize("kwargs", [
        {'n_chains': 0}, {'n_iter': 1.5}, {'n_thin': -1},
        {'prob': (0.95, 0.05)}, {'prob': (0.0, 1.2)},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValidationError):
            SamplerSettings(**kwargs)


# ═══════════════════════════════════════════════════════════════════════
# ModelConfig
# ═══════════════════════════════════════════════════════════════════════


@pytest.fixture
def selection_config(trial_frame):
    return selection(
        trial_frame, "e ~ age", "c ~ e + sex", "me ~ age", "mc ~ 1",
        dist_e='norm', dist_c='gamma', type='MAR',
    ).config


@pytest.fixture
def hurdle_config(hurdle_frame):
    return hurdle(
        hurdle_frame, "e ~ 1", "c ~ 1", se=None, sc=0,
        dist_e='beta', dist_c='gamma', type='SCAR',
    ).config


class TestModelConfig:

    def test_frozen(self, selection_config):
        with pytest.raises(FrozenInstanceError):
            selection_config.priors = ()

    def test_every_array_read_only(self, selection_config):
        config = selection_config
        arrays = []
        for arm in config.arms:
            arrays += [arm.rows, arm.effects, arm.costs]
        for pair in config.designs:
            for design in pair:
                arrays += [design.matrix, design.centers, design.binary]
        for pair in config.indicators:
            arrays += [vector.values for vector in pair]
        assert all(not a.flags.writeable for a in arrays)

    def test_designs_ordered_by_role(self, selection_config):
        assert selection_config.roles == (
            Role.EFFECT, Role.COST, Role.MISSING_EFFECT, Role.MISSING_COST,
        )

    def test_design_lookup(self, selection_config):
        assert selection_config.design(Role.COST).columns == ('(Intercept)', 'sex')
        with pytest.raises(KeyError, match="model.se"):
            selection_config.design(Role.STRUCTURAL_EFFECT)

    def test_prior_lookup(self, selection_config):
        assert selection_config.prior('beta_f.prior') == (0.0, 1e-6)
        with pytest.raises(KeyError, match="gamma.prior.c"):
            selection_config.prior('gamma.prior.c')

    def test_prior_values_is_copy(self, selection_config):
        values = selection_config.prior_values
        values.clear()
        assert selection_config.prior_values

    def test_indicator_lookup(self, hurdle_config):
        assert hurdle_config.indicator('c', 'structural').structural_value == 0.0
        assert hurdle_config.indicator('e').kind == 'missing'
        with pytest.raises(KeyError):
            hurdle_config.indicator('e', 'structural')


class TestDataDict:

    def test_selection_keys(self, selection_config):
        data = selection_config.to_data_dict()
        assert data['N1'] == 150
        assert data['N2'] == 100
        assert data['pe'] == 2
        assert data['pc'] == 2
        assert data['ze'] == 2
        assert data['zc'] == 1
        assert data['X1_e'].shape == (150, 2)
        assert data['mean_cov_c2'].shape == (2,)
        assert data['m_eff1'].sum() == 11
        assert 'd_eff1' not in data
        assert 's_c' not in data

    def test_hurdle_keys(self, hurdle_config):
        data = hurdle_config.to_data_dict()
        assert data['s_c'] == 0.0
        assert 's_e' not in data
        assert 'd_cost1' in data and 'd_eff1' not in data
        assert 'Z1_c' in data and 'Z1_e' not in data
        assert 'm_cost1' in data

    def test_fresh_copies(self, selection_config):
        first = selection_config.to_data_dict()
        first['eff1'][:] = 0.0
        first['X1_e'][:] = 0.0
        second = selection_config.to_data_dict()
        assert np.isnan(second['eff1']).sum() == 11
        np.testing.assert_array_equal(second['X1_e'][:, 0], 1.0)
        assert second['eff1'] is not first['eff1']
