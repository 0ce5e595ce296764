"""
pytest configuration and shared fixtures.
"""

import numpy as np
import pandas as pd
import pytest

N_CONTROL = 150
N_INTERVENTION = 100
N_MISSING_PER_ARM = 11


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def trial_frame(rng):
    """
    250 subjects (150 control, 100 intervention), 11 missing effects and
    11 missing costs in each arm, plus a continuous and a binary covariate.
    """
    n = N_CONTROL + N_INTERVENTION
    t = np.repeat([1, 2], [N_CONTROL, N_INTERVENTION])
    e = np.clip(rng.normal(0.7, 0.1, n), 0.05, 0.95)
    c = rng.gamma(2.0, 500.0, n)
    age = rng.normal(50.0, 10.0, n)
    sex = rng.integers(0, 2, n)

    for start, size in ((0, N_CONTROL), (N_CONTROL, N_INTERVENTION)):
        e[start + rng.choice(size, N_MISSING_PER_ARM, replace=False)] = np.nan
        c[start + rng.choice(size, N_MISSING_PER_ARM, replace=False)] = np.nan

    return pd.DataFrame({'e': e, 'c': c, 't': t, 'age': age, 'sex': sex})


@pytest.fixture
def hurdle_frame(trial_frame):
    """
    trial_frame with structural values: the first 20 observed effects of
    each arm set to 1 and the first 30 observed costs of each arm set to 0.
    """
    df = trial_frame.copy()
    for arm in (1, 2):
        in_arm = (df['t'] == arm).to_numpy()
        e_rows = np.flatnonzero(in_arm & df['e'].notna().to_numpy())[:20]
        c_rows = np.flatnonzero(in_arm & df['c'].notna().to_numpy())[:30]
        df.loc[e_rows, 'e'] = 1.0
        df.loc[c_rows, 'c'] = 0.0
    return df


@pytest.fixture
def small_frame():
    """Six subjects, hand-checkable: three per arm, interleaved."""
    return pd.DataFrame({
        'e': [0.5, np.nan, 1.0, 0.8, 1.0, np.nan],
        'c': [100.0, 0.0, np.nan, 250.0, 0.0, 40.0],
        't': [1, 2, 1, 2, 1, 2],
        'age': [30.0, 40.0, 50.0, 60.0, 70.0, 80.0],
        'sex': [0, 1, 1, 0, 1, 1],
        'site': ['b', 'a', 'c', 'a', 'b', 'c'],
    })
