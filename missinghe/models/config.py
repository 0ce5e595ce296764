"""
Immutable model configuration handed to the inference engine.

assemble_config() is the single aggregation point of the preparation
pipeline. It gathers the arm partition, the design matrices, the
indicators, the resolved variant, the prior bindings and the sampler
settings into one frozen ModelConfig. Every array reachable from a
ModelConfig is read-only, so several sampling chains can share one
instance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from missinghe.core.exceptions import ValidationError
from missinghe.core.validation import check_positive_int, check_probability_pair
from missinghe.models._common import ModelFamily
from missinghe.models.priors import PriorBinding
from missinghe.models.variants import Classifiers, ModelVariant
from missinghe.preparation.arms import ArmData
from missinghe.preparation.design import DesignPair
from missinghe.preparation.descriptors import Role
from missinghe.preparation.indicators import IndicatorKind, IndicatorPair


@dataclass(frozen=True)
class SamplerSettings:
    """
    MCMC settings passed through untouched to the engine.

    Attributes:
        n_chains: Number of chains
        n_iter: Iterations per chain, including burn-in
        n_burnin: Discarded iterations; defaults to n_iter // 2
        n_thin: Thinning interval
        prob: Lower and upper probabilities of the credible intervals
    """
    n_chains: int = 2
    n_iter: int = 20000
    n_burnin: int | None = None
    n_thin: int = 1
    prob: tuple[float, float] = (0.05, 0.95)

    def __post_init__(self):
        n_chains = check_positive_int(self.n_chains, 'n_chains')
        n_iter = check_positive_int(self.n_iter, 'n_iter')
        n_burnin = n_iter // 2 if self.n_burnin is None else self.n_burnin
        n_burnin = check_positive_int(n_burnin, 'n_burnin')
        n_thin = check_positive_int(self.n_thin, 'n_thin')
        prob = check_probability_pair(self.prob, 'prob')

        if n_burnin >= n_iter:
            raise ValidationError(
                f"n_burnin: must be smaller than n_iter ({n_iter}), got {n_burnin}"
            )
        if prob[0] >= prob[1]:
            raise ValidationError(
                f"prob: lower bound must be below upper bound, got {prob}"
            )

        object.__setattr__(self, 'n_chains', n_chains)
        object.__setattr__(self, 'n_iter', n_iter)
        object.__setattr__(self, 'n_burnin', n_burnin)
        object.__setattr__(self, 'n_thin', n_thin)
        object.__setattr__(self, 'prob', prob)


@dataclass(frozen=True)
class ModelConfig:
    """
    Everything the inference engine needs for one run.

    Attributes:
        variant: Resolved model variant
        classifiers: Descriptor-shape summary the variant was resolved from
        arms: Per-arm raw outcomes
        designs: One DesignPair per role in use, outcome models first
        indicators: Missingness indicators of both outcomes, followed by
            the structural indicators of the declared outcomes (hurdle)
        priors: One binding per applicable prior family
        sampler: MCMC settings
    """
    variant: ModelVariant
    classifiers: Classifiers
    arms: ArmData
    designs: tuple[DesignPair, ...]
    indicators: tuple[IndicatorPair, ...]
    priors: tuple[PriorBinding, ...]
    sampler: SamplerSettings

    @property
    def family(self) -> ModelFamily:
        return self.variant.family

    @property
    def roles(self) -> tuple[Role, ...]:
        return tuple(pair.role for pair in self.designs)

    def design(self, role: Role) -> DesignPair:
        """Design matrices of one role; KeyError if the role is not in use."""
        for pair in self.designs:
            if pair.role is role:
                return pair
        raise KeyError(
            f"no design for model.{role.value}; roles in use: "
            f"{[r.value for r in self.roles]}"
        )

    def indicator(self, outcome: str, kind: IndicatorKind = 'missing') -> IndicatorPair:
        """Indicators of outcome 'e' or 'c'; KeyError if not in use."""
        for pair in self.indicators:
            if pair.outcome == outcome and pair.kind == kind:
                return pair
        raise KeyError(
            f"no {kind} indicators for outcome {outcome!r}; in use: "
            f"{[(p.outcome, p.kind) for p in self.indicators]}"
        )

    def prior(self, name: str) -> tuple[float, ...]:
        """Bound hyperparameters of one family; KeyError if inapplicable."""
        for binding in self.priors:
            if binding.name == name:
                return binding.values
        raise KeyError(
            f"prior {name!r} does not apply to this model; bound families: "
            f"{[b.name for b in self.priors]}"
        )

    @property
    def prior_values(self) -> dict[str, tuple[float, ...]]:
        """Fresh {family: values} dict."""
        return {binding.name: binding.values for binding in self.priors}

    def to_data_dict(self) -> dict[str, Any]:
        """
        Named data block for the engine.

        Keys per arm k in (1, 2): N{k}, eff{k}, cost{k}; X{k}_e, X{k}_c and
        mean_cov_e{k}, mean_cov_c{k} for the outcome models; Z{k}_e, Z{k}_c
        and mean_z_e{k}, mean_z_c{k} for the mechanism models in use;
        missingness indicators m_eff{k}, m_cost{k}; for hurdle models the
        structural indicators d_eff{k}, d_cost{k} with the structural
        values s_e, s_c of the declared outcomes. Column counts are pe, pc,
        ze, zc, with intercept.

        Every call returns new, writeable copies.
        """
        out: dict[str, Any] = {}
        for k, arm in enumerate(self.arms, start=1):
            out[f"N{k}"] = arm.n
            out[f"eff{k}"] = _copy(arm.effects)
            out[f"cost{k}"] = _copy(arm.costs)

        for role, matrix_key, center_key, count_key in _DESIGN_KEYS:
            if role not in self.roles:
                continue
            pair = self.design(role)
            out[count_key] = pair.p
            for k, design in enumerate(pair, start=1):
                out[matrix_key.format(k=k)] = _copy(design.matrix)
                out[center_key.format(k=k)] = _copy(design.centers)

        for pair in self.indicators:
            prefix = 'm' if pair.kind == 'missing' else 'd'
            label = 'eff' if pair.outcome == 'e' else 'cost'
            for k, vector in enumerate(pair, start=1):
                out[f"{prefix}_{label}{k}"] = _copy(vector.values)
            if pair.structural_value is not None:
                out[f"s_{pair.outcome}"] = pair.structural_value
        return out


_DESIGN_KEYS = (
    (Role.EFFECT, 'X{k}_e', 'mean_cov_e{k}', 'pe'),
    (Role.COST, 'X{k}_c', 'mean_cov_c{k}', 'pc'),
    (Role.MISSING_EFFECT, 'Z{k}_e', 'mean_z_e{k}', 'ze'),
    (Role.MISSING_COST, 'Z{k}_c', 'mean_z_c{k}', 'zc'),
    (Role.STRUCTURAL_EFFECT, 'Z{k}_e', 'mean_z_e{k}', 'ze'),
    (Role.STRUCTURAL_COST, 'Z{k}_c', 'mean_z_c{k}', 'zc'),
)


def _copy(array: NDArray) -> NDArray:
    return np.array(array, copy=True)


def assemble_config(
    *,
    variant: ModelVariant,
    classifiers: Classifiers,
    arms: ArmData,
    designs: dict[Role, DesignPair],
    indicators: list[IndicatorPair],
    priors: tuple[PriorBinding, ...],
    sampler: SamplerSettings,
) -> ModelConfig:
    """
    Merge the pipeline outputs into one ModelConfig.

    Designs are ordered by role (outcome models, then mechanism models)
    so that the resulting config does not depend on caller ordering.

    Raises:
        ValidationError: If the outcome models are missing, or a design
            was built for a role of the other model family
    """
    for role in (Role.EFFECT, Role.COST):
        if role not in designs:
            raise ValidationError(f"model.{role.value}: design matrix required")

    allowed = _FAMILY_ROLES[variant.family]
    stray = [role.value for role in designs if role not in allowed]
    if stray:
        raise ValidationError(
            f"{variant.family.value} models do not use descriptors {stray}"
        )

    ordered = tuple(designs[role] for role in Role if role in designs)
    return ModelConfig(
        variant=variant,
        classifiers=classifiers,
        arms=arms,
        designs=ordered,
        indicators=tuple(sorted(
            indicators, key=lambda p: (p.kind != 'missing', p.outcome != 'e')
        )),
        priors=tuple(priors),
        sampler=sampler,
    )


_FAMILY_ROLES = {
    ModelFamily.SELECTION: frozenset(
        (Role.EFFECT, Role.COST, Role.MISSING_EFFECT, Role.MISSING_COST)
    ),
    ModelFamily.HURDLE: frozenset(
        (Role.EFFECT, Role.COST, Role.STRUCTURAL_EFFECT, Role.STRUCTURAL_COST)
    ),
}
