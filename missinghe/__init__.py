"""
missinghe: data preparation for Bayesian cost-effectiveness models with
missing or structural outcome values.

Turns two-arm trial data (effectiveness e, cost c, arm t, covariates) and
a set of model descriptors into an immutable configuration for an
external MCMC engine, resolving which model variant applies.

Submodules:
    core: Data container, result envelope, validation, exceptions
    preparation: Schema checks, arm split, design matrices, indicators
    models: Variant resolution, priors, public entry points
"""

__version__ = "0.1.0"

from missinghe.core.datasource import TrialData
from missinghe.models import hurdle, selection, PreparedModel, ModelConfig
from missinghe.preparation.descriptors import ModelDescriptor

__all__ = [
    "__version__",
    "selection",
    "hurdle",
    "PreparedModel",
    "ModelConfig",
    "ModelDescriptor",
    "TrialData",
]
