"""
Prior hyperparameter families and their binding.

Every parameter family has a built-in default. The caller may override a
family by name with a vector of hyperparameters; the values are passed
through untouched to the inference engine. Which families can be
overridden depends on the resolved model: a family whose parameter does not
exist in the model (e.g. covariate coefficients of an intercept-only
component) is rejected rather than silently ignored.

Hyperparameter conventions, as read by the engine:
    location / coefficient families: (mean, precision) of a Normal
    sigma.prior.*: (lower, upper) of a Uniform on the standard deviation
    gamma0.prior.*: (location, scale) of a Logistic on the logit scale
    se.prior / sc.prior: single spread of the spike at the structural value
"""

from __future__ import annotations

import numbers
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

import numpy as np

from missinghe.core.exceptions import PriorBindingError
from missinghe.models._common import ModelFamily
from missinghe.models.variants import Classifiers

DEFAULT = 'default'


@dataclass(frozen=True)
class PriorFamily:
    """One overridable hyperparameter family."""
    name: str
    description: str
    default: tuple[float, ...]
    applies: Callable[[Classifiers], bool]

    @property
    def size(self) -> int:
        return len(self.default)


@dataclass(frozen=True)
class PriorBinding:
    """Hyperparameters bound to one family for one run."""
    name: str
    values: tuple[float, ...]
    user_supplied: bool


def _always(c: Classifiers) -> bool:
    return True


def _selection(c: Classifiers) -> bool:
    return c.family is ModelFamily.SELECTION


def _hurdle(c: Classifiers) -> bool:
    return c.family is ModelFamily.HURDLE


PRIOR_FAMILIES: tuple[PriorFamily, ...] = (
    PriorFamily('alpha0.prior', 'effect model intercept', (0.0, 1e-6), _always),
    PriorFamily('beta0.prior', 'cost model intercept', (0.0, 1e-6), _always),
    PriorFamily('sigma.prior.e', 'effect standard deviation', (0.0, 1000.0), _always),
    PriorFamily('sigma.prior.c', 'cost standard deviation', (0.0, 10000.0), _always),
    PriorFamily(
        'alpha.prior', 'effect model covariate coefficients', (0.0, 1e-6),
        lambda c: c.effect_covariates,
    ),
    PriorFamily(
        'beta.prior', 'cost model covariate coefficients', (0.0, 1e-6),
        lambda c: c.cost_covariates,
    ),
    PriorFamily(
        'gamma0.prior.e', 'effect mechanism intercept (logit scale)', (0.0, 1.0),
        lambda c: _selection(c) or c.structural_effects,
    ),
    PriorFamily(
        'gamma0.prior.c', 'cost mechanism intercept (logit scale)', (0.0, 1.0),
        lambda c: _selection(c) or c.structural_costs,
    ),
    PriorFamily(
        'gamma.prior.e', 'effect mechanism covariate coefficients', (0.0, 1e-4),
        lambda c: c.effect_mechanism_covariates,
    ),
    PriorFamily(
        'gamma.prior.c', 'cost mechanism covariate coefficients', (0.0, 1e-4),
        lambda c: c.cost_mechanism_covariates,
    ),
    PriorFamily(
        'delta.prior.e', 'effect not-at-random coefficient', (0.0, 1.0),
        lambda c: _selection(c) and c.effect_not_at_random,
    ),
    PriorFamily(
        'delta.prior.c', 'cost not-at-random coefficient', (0.0, 1.0),
        lambda c: _selection(c) and c.cost_not_at_random,
    ),
    PriorFamily(
        'se.prior', 'spread of the structural effect spike', (1e-7,),
        lambda c: _hurdle(c) and c.structural_effects,
    ),
    PriorFamily(
        'sc.prior', 'spread of the structural cost spike', (1e-7,),
        lambda c: _hurdle(c) and c.structural_costs,
    ),
    PriorFamily(
        'beta_f.prior', 'cost-on-effect dependence coefficient', (0.0, 1e-6),
        lambda c: c.joint,
    ),
)

_BY_NAME = {family.name: family for family in PRIOR_FAMILIES}


def bind_priors(prior: Any, classifiers: Classifiers) -> tuple[PriorBinding, ...]:
    """
    Resolve user overrides against the defaults of the applicable families.

    Args:
        prior: 'default' or None for defaults only; otherwise a mapping
            {name: values} or a sequence of (name, values) pairs
        classifiers: Shape summary of the resolved model

    Returns:
        One binding per applicable family, in catalogue order

    Raises:
        PriorBindingError: Unknown, duplicate or inapplicable name, or
            values of the wrong shape
    """
    overrides = _override_pairs(prior)

    bound: dict[str, tuple[float, ...]] = {}
    for name, value in overrides:
        family = _BY_NAME.get(name) if isinstance(name, str) else None
        if family is None:
            raise PriorBindingError(
                f"prior: unknown parameter name {name!r}; accepted names are "
                f"{[f.name for f in PRIOR_FAMILIES]}",
                name=str(name), reason='unknown',
            )
        if name in bound:
            raise PriorBindingError(
                f"prior: {name!r} supplied more than once",
                name=name, reason='duplicate',
            )
        if not family.applies(classifiers):
            raise PriorBindingError(
                f"prior: {name!r} ({family.description}) does not apply to "
                f"this model",
                name=name, reason='inapplicable',
            )
        bound[name] = _check_values(family, value)

    return tuple(
        PriorBinding(
            name=family.name,
            values=bound.get(family.name, family.default),
            user_supplied=family.name in bound,
        )
        for family in PRIOR_FAMILIES
        if family.applies(classifiers)
    )


def _override_pairs(prior: Any) -> list[tuple[Any, Any]]:
    if prior is None or (isinstance(prior, str) and prior == DEFAULT):
        return []
    if isinstance(prior, str):
        raise PriorBindingError(
            f"prior: expected 'default' or a mapping of overrides, got {prior!r}",
            name=prior, reason='unknown',
        )
    if isinstance(prior, Mapping):
        return list(prior.items())

    try:
        items = list(prior)
    except TypeError as e:
        raise PriorBindingError(
            f"prior: expected 'default', a mapping or (name, values) pairs, "
            f"got {prior!r}",
            name=str(prior), reason='shape',
        ) from e

    pairs = []
    for item in items:
        if not (isinstance(item, tuple) and len(item) == 2):
            raise PriorBindingError(
                f"prior: expected (name, values) pairs, got {item!r}",
                name=str(item), reason='shape',
            )
        pairs.append(item)
    return pairs


def _check_values(family: PriorFamily, value: Any) -> tuple[float, ...]:
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        value = [value]
    try:
        arr = np.asarray(value, dtype=np.float64).ravel()
    except (ValueError, TypeError) as e:
        raise PriorBindingError(
            f"prior: {family.name!r} needs {family.size} number(s), got {value!r}",
            name=family.name, reason='shape',
        ) from e

    if arr.shape != (family.size,) or not np.all(np.isfinite(arr)):
        raise PriorBindingError(
            f"prior: {family.name!r} needs {family.size} finite number(s), "
            f"got {value!r}",
            name=family.name, reason='shape',
        )
    if family.size == 1 and arr[0] <= 0:
        raise PriorBindingError(
            f"prior: {family.name!r} must be positive, got {arr[0]}",
            name=family.name, reason='shape',
        )
    return tuple(float(v) for v in arr)
