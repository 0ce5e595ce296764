"""
Public entry points of the model layer.

Public API:
    selection(data, model_eff, model_cost, ...) -> PreparedModel
    hurdle(data, model_eff, model_cost, ...) -> PreparedModel

Both run the same one-directional pipeline:

    schema -> arms -> designs -> indicators -> variant -> priors -> config

Every stage returns a new immutable value; the first violated contract
raises, with error.stage naming the stage, and no partial configuration
is returned.
"""

from __future__ import annotations

import numbers
import warnings
from pathlib import Path
from typing import Any, Literal

import numpy as np
from numpy.typing import ArrayLike

from missinghe.core.datasource import TrialData
from missinghe.core.exceptions import IndicatorOverrideError, ValidationError
from missinghe.core.result import Result
from missinghe.core.timing import Timer
from missinghe.models._common import (
    ModelFamily,
    parse_cost_distribution,
    parse_effect_distribution,
    parse_mechanism,
)
from missinghe.models.config import ModelConfig, SamplerSettings, assemble_config
from missinghe.models.priors import bind_priors
from missinghe.models.solution import PreparedModel
from missinghe.models.variants import classify, resolve_variant
from missinghe.preparation.arms import ArmData, split_arms
from missinghe.preparation.descriptors import ModelDescriptor, Role
from missinghe.preparation.design import build_design
from missinghe.preparation.indicators import (
    IndicatorPair,
    missing_indicators,
    structural_indicators,
)
from missinghe.preparation.schema import validate_schema

SelectionMechanism = Literal['MAR', 'MNAR']
HurdleMechanism = Literal['SCAR', 'SAR']
EffectDist = Literal['norm', 'beta']
CostDist = Literal['norm', 'gamma', 'lnorm']
Descriptor = ModelDescriptor | str


def selection(
    data: Any,
    model_eff: Descriptor,
    model_cost: Descriptor,
    model_me: Descriptor = 'me ~ 1',
    model_mc: Descriptor = 'mc ~ 1',
    *,
    dist_e: EffectDist,
    dist_c: CostDist,
    type: SelectionMechanism,
    prior: Any = 'default',
    n_chains: int = 2,
    n_iter: int = 20000,
    n_burnin: int | None = None,
    n_thin: int = 1,
    prob: tuple[float, float] = (0.05, 0.95),
    save_model: str | Path | None = None,
) -> PreparedModel:
    """
    Configure a selection model for missing effects and costs.

    The missingness of each outcome is modelled with a logistic regression
    (model_me, model_mc). Including 'e' in model_me or 'c' in model_mc
    makes that missingness depend on the unobserved value itself (MNAR).
    Including 'e' in model_cost makes the costs depend on the effects.

    Args:
        data: DataFrame, CSV/TSV path or TrialData with columns e, c, t
            and any covariates
        model_eff: Effect model, e.g. 'e ~ age'
        model_cost: Cost model, e.g. 'c ~ e' for a joint model
        model_me: Missing-effect model, e.g. 'me ~ age + e'
        model_mc: Missing-cost model
        dist_e: 'norm' or 'beta' ('normal' accepted)
        dist_c: 'norm', 'gamma' or 'lnorm' ('normal', 'lognormal' accepted)
        type: 'MAR' or 'MNAR', case-insensitive
        prior: 'default', or overrides as {name: values} or (name, values)
            pairs, e.g. {'alpha0.prior': (0, 0.001)}
        n_chains, n_iter, n_burnin, n_thin, prob: Sampler settings passed
            through to the engine
        save_model: Path to write the model summary to; nothing is
            written when None

    Returns:
        PreparedModel whose .config is the immutable ModelConfig

    Raises:
        SchemaError: Invalid data or descriptors (including ArmCodingError
            and UnknownCovariateError)
        MechanismMismatchError: type disagrees with model_me / model_mc
        PriorBindingError: Invalid prior overrides
        ValidationError: Unknown distribution or mechanism names, invalid
            sampler settings

    Examples:
        >>> model = selection(df, 'e ~ 1', 'c ~ e', dist_e='norm',
        ...                   dist_c='gamma', type='MAR')
        >>> model.tag
        'MAR_joint_norm_gamma_car_car'
        >>> print(model.summary())
    """
    timer = Timer()
    timer.start()

    with timer.section('inputs'):
        family = ModelFamily.SELECTION
        mechanism = parse_mechanism(type, family)
        effect_dist = parse_effect_distribution(dist_e)
        cost_dist = parse_cost_distribution(dist_c)
        sampler = SamplerSettings(n_chains, n_iter, n_burnin, n_thin, prob)
        descriptors = {
            Role.EFFECT: ModelDescriptor.coerce(model_eff, 'model_eff'),
            Role.COST: ModelDescriptor.coerce(model_cost, 'model_cost'),
            Role.MISSING_EFFECT: ModelDescriptor.coerce(model_me, 'model_me'),
            Role.MISSING_COST: ModelDescriptor.coerce(model_mc, 'model_mc'),
        }
        trial = TrialData.build(data)

    with timer.section('schema'):
        validate_schema(trial, descriptors)

    with timer.section('arms'):
        arms = split_arms(trial)

    with timer.section('design'):
        designs = {
            role: build_design(trial, arms, descriptor, role)
            for role, descriptor in descriptors.items()
        }

    with timer.section('indicators'):
        indicators = [missing_indicators(arms, 'e'), missing_indicators(arms, 'c')]

    with timer.section('variant'):
        classifiers = classify(family, descriptors)
        variant = resolve_variant(mechanism, classifiers, effect_dist, cost_dist)

    with timer.section('priors'):
        priors = bind_priors(prior, classifiers)

    with timer.section('assemble'):
        config = assemble_config(
            variant=variant,
            classifiers=classifiers,
            arms=arms,
            designs=designs,
            indicators=indicators,
            priors=priors,
            sampler=sampler,
        )

    return _finish(config, trial, timer, [], save_model)


def hurdle(
    data: Any,
    model_eff: Descriptor,
    model_cost: Descriptor,
    model_se: Descriptor | None = 'se ~ 1',
    model_sc: Descriptor | None = 'sc ~ 1',
    se: float | None = 1,
    sc: float | None = 0,
    *,
    dist_e: EffectDist,
    dist_c: CostDist,
    type: HurdleMechanism,
    prior: Any = 'default',
    d_e: ArrayLike | None = None,
    d_c: ArrayLike | None = None,
    n_chains: int = 2,
    n_iter: int = 20000,
    n_burnin: int | None = None,
    n_thin: int = 1,
    prob: tuple[float, float] = (0.05, 0.95),
    save_model: str | Path | None = None,
) -> PreparedModel:
    """
    Configure a hurdle model for structural values in effects and costs.

    Each outcome is a mixture of a point mass at its structural value (se
    for effects, sc for costs) and a continuous distribution for the
    remaining values. The probability of a structural value is modelled
    with a logistic regression (model_se, model_sc). Pass se=None or
    sc=None for an outcome without structural values.

    Args:
        data: DataFrame, CSV/TSV path or TrialData with columns e, c, t
            and any covariates
        model_eff: Effect model, e.g. 'e ~ age'
        model_cost: Cost model, e.g. 'c ~ e' for a joint model
        model_se: Structural-effect model; may not include e or c
        model_sc: Structural-cost model; may not include e or c
        se: Structural value of the effects (e.g. 1 for perfect health),
            or None
        sc: Structural value of the costs (e.g. 0 for no use of care),
            or None
        dist_e: 'norm' or 'beta' ('normal' accepted)
        dist_c: 'norm', 'gamma' or 'lnorm' ('normal', 'lognormal' accepted)
        type: 'SCAR' or 'SAR', case-insensitive
        prior: 'default', or overrides as {name: values} or (name, values)
            pairs; 'se.prior' and 'sc.prior' take a single value
        d_e, d_c: Optional 0/1 structural indicators, one entry per row in
            data order, used instead of the derived ones
        n_chains, n_iter, n_burnin, n_thin, prob: Sampler settings passed
            through to the engine
        save_model: Path to write the model summary to; nothing is
            written when None

    Returns:
        PreparedModel whose .config is the immutable ModelConfig

    Raises:
        SchemaError: Invalid data or descriptors (including ArmCodingError
            and UnknownCovariateError)
        MechanismMismatchError: type disagrees with model_se / model_sc, or
            structural values and descriptors do not match up
        IndicatorOverrideError: Invalid d_e / d_c
        PriorBindingError: Invalid prior overrides
        ValidationError: Unknown distribution or mechanism names, invalid
            structural values or sampler settings

    Examples:
        >>> model = hurdle(df, 'e ~ 1', 'c ~ 1', se=None, sc=0,
        ...                dist_e='beta', dist_c='gamma', type='SCAR')
        >>> model.tag
        'HURDLE_c_ind_beta_gamma_none_car'
    """
    timer = Timer()
    timer.start()

    with timer.section('inputs'):
        family = ModelFamily.HURDLE
        mechanism = parse_mechanism(type, family)
        effect_dist = parse_effect_distribution(dist_e)
        cost_dist = parse_cost_distribution(dist_c)
        sampler = SamplerSettings(n_chains, n_iter, n_burnin, n_thin, prob)
        structural = {
            'e': _check_structural_value(se, 'se'),
            'c': _check_structural_value(sc, 'sc'),
        }
        overrides = {'e': d_e, 'c': d_c}
        for outcome, override in overrides.items():
            if override is not None and structural[outcome] is None:
                raise IndicatorOverrideError(
                    f"d_{outcome}: structural indicators supplied but no "
                    f"structural value declared for '{outcome}' "
                    f"(s{outcome}=None)",
                    outcome=outcome,
                )
        descriptors = {
            Role.EFFECT: ModelDescriptor.coerce(model_eff, 'model_eff'),
            Role.COST: ModelDescriptor.coerce(model_cost, 'model_cost'),
        }
        for role, value in ((Role.STRUCTURAL_EFFECT, model_se),
                            (Role.STRUCTURAL_COST, model_sc)):
            if value is not None:
                descriptors[role] = ModelDescriptor.coerce(value, f"model_{role.value}")
        trial = TrialData.build(data)

    with timer.section('schema'):
        validate_schema(trial, descriptors)

    with timer.section('arms'):
        arms = split_arms(trial)

    # structural descriptors of undeclared outcomes get no design
    active = {
        role: descriptor for role, descriptor in descriptors.items()
        if role in (Role.EFFECT, Role.COST) or structural[role.outcome] is not None
    }

    with timer.section('design'):
        designs = {
            role: build_design(trial, arms, descriptor, role)
            for role, descriptor in active.items()
        }

    notes: list[str] = []
    with timer.section('indicators'):
        indicators = [missing_indicators(arms, 'e'), missing_indicators(arms, 'c')]
        for outcome, value in structural.items():
            if value is None:
                continue
            pair = structural_indicators(
                arms, outcome, value, override=overrides[outcome]
            )
            indicators.append(pair)
            notes.extend(_unobserved_structural_notes(pair, arms))

    with timer.section('variant'):
        classifiers = classify(
            family, descriptors, se=structural['e'], sc=structural['c']
        )
        variant = resolve_variant(mechanism, classifiers, effect_dist, cost_dist)

    with timer.section('priors'):
        priors = bind_priors(prior, classifiers)

    with timer.section('assemble'):
        config = assemble_config(
            variant=variant,
            classifiers=classifiers,
            arms=arms,
            designs=designs,
            indicators=indicators,
            priors=priors,
            sampler=sampler,
        )

    for note in notes:
        warnings.warn(note, UserWarning, stacklevel=2)

    return _finish(config, trial, timer, notes, save_model)


def _check_structural_value(value: Any, name: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValidationError(f"{name}: expected a number or None, got {value!r}")
    if not np.isfinite(value):
        raise ValidationError(f"{name}: must be finite, got {value}")
    return float(value)


def _unobserved_structural_notes(pair: IndicatorPair, arms: ArmData) -> list[str]:
    if pair.overridden:
        return []
    notes = []
    for arm, vector in zip(arms, pair):
        if vector.n_flagged == 0:
            notes.append(
                f"structural value {pair.structural_value:g} never observed for "
                f"'{pair.outcome}' in the {arm.name} arm; its structural "
                f"indicator is all zero"
            )
    return notes


def _finish(
    config: ModelConfig,
    trial: TrialData,
    timer: Timer,
    notes: list[str],
    save_model: str | Path | None,
) -> PreparedModel:
    timer.stop()
    result = Result(
        params=config,
        info={
            'family': config.family.value,
            'mechanism': config.variant.mechanism.value,
            'structure': config.variant.structure.value,
            'tag': config.variant.tag,
            'n_observations': trial.n_observations,
            'source_path': trial.metadata.get('source_path'),
        },
        timing=timer.result(),
        warnings=tuple(notes),
    )
    model = PreparedModel(_result=result)
    if save_model is not None:
        model.save(save_model)
    return model
