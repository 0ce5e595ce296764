"""
Model variant resolution and configuration.

Public API:
    selection(data, model_eff, model_cost, ...) -> PreparedModel   # MAR / MNAR
    hurdle(data, model_eff, model_cost, ...) -> PreparedModel      # SCAR / SAR

Example:
    >>> from missinghe.models import selection
    >>> model = selection(df, 'e ~ 1', 'c ~ 1', dist_e='norm',
    ...                   dist_c='norm', type='MAR')
    >>> print(model.summary())
    >>> model.config.to_data_dict()['N1']
"""

from missinghe.models.solvers import hurdle, selection
from missinghe.models.solution import PreparedModel
from missinghe.models.config import ModelConfig, SamplerSettings
from missinghe.models.variants import ModelVariant
from missinghe.models.priors import PRIOR_FAMILIES, PriorBinding

__all__ = [
    "selection",
    "hurdle",
    "PreparedModel",
    "ModelConfig",
    "SamplerSettings",
    "ModelVariant",
    "PRIOR_FAMILIES",
    "PriorBinding",
]
