"""
Model variant resolution.

The variant of a run is decided from descriptor shapes and structural-value
declarations only, never from the sampled data. classify() reduces the
inputs to a handful of booleans; resolve_variant() maps them through a
closed case table to exactly one Structure and checks that the declared
mechanism label agrees with what the descriptors express.

The case tables are total over their key space. _check_case_tables() runs
at import time, so a missing or duplicated entry stops the package from
loading instead of surfacing as a runtime surprise.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from itertools import product

from missinghe.core.exceptions import MechanismMismatchError
from missinghe.models._common import (
    CostDistribution,
    EffectDistribution,
    Mechanism,
    MechanismShape,
    ModelFamily,
    Structure,
)
from missinghe.preparation.descriptors import ModelDescriptor, Role


@dataclass(frozen=True)
class Classifiers:
    """Boolean summary of the descriptor shapes of one run."""
    family: ModelFamily
    effect_mechanism_covariates: bool
    cost_mechanism_covariates: bool
    effect_not_at_random: bool
    cost_not_at_random: bool
    joint: bool
    structural_effects: bool
    structural_costs: bool
    effect_covariates: bool
    cost_covariates: bool


@dataclass(frozen=True)
class ModelVariant:
    """
    One resolved combination of distributional and mechanism assumptions.

    Attributes:
        family: Selection or hurdle
        mechanism: Declared mechanism label
        structure: Structure tag from the case table
        effect_mechanism / cost_mechanism: Per-outcome component shape
        correlated: Costs depend on effects (joint model)
        effect_covariates / cost_covariates: Outcome models carry covariates
        dist_e / dist_c: Outcome distributions
    """
    family: ModelFamily
    mechanism: Mechanism
    structure: Structure
    effect_mechanism: MechanismShape
    cost_mechanism: MechanismShape
    correlated: bool
    effect_covariates: bool
    cost_covariates: bool
    dist_e: EffectDistribution
    dist_c: CostDistribution

    @property
    def tag(self) -> str:
        """Unique string, e.g. 'MAR_ind_norm_gamma_car_ar'."""
        return "_".join((
            self.structure.value,
            'joint' if self.correlated else 'ind',
            self.dist_e.value,
            self.dist_c.value,
            self.effect_mechanism.value,
            self.cost_mechanism.value,
        ))

    def describe(self) -> str:
        """One-line plain-language description."""
        kind = 'missingness' if self.family is ModelFamily.SELECTION else 'structural values'
        covariates = [
            name for name, flag in (
                ('effects', self.effect_covariates), ('costs', self.cost_covariates)
            ) if flag
        ]
        return (
            f"{self.family.value} model ({self.mechanism.value}), "
            f"{'correlated' if self.correlated else 'independent'} outcomes, "
            f"{kind}: effects {self.effect_mechanism.description}, "
            f"costs {self.cost_mechanism.description}; "
            f"covariates in outcome models: "
            f"{', '.join(covariates) if covariates else 'none'}"
        )


# (effect_not_at_random, cost_not_at_random) -> structure
_SELECTION_CASES: dict[tuple[bool, bool], Structure] = {
    (False, False): Structure.MAR,
    (True, False): Structure.MNAR_EFF,
    (False, True): Structure.MNAR_COST,
    (True, True): Structure.MNAR,
}

# (structural_effects, structural_costs) -> structure; None is a rejection
_HURDLE_CASES: dict[tuple[bool, bool], Structure | None] = {
    (False, False): None,
    (True, False): Structure.HURDLE_E,
    (False, True): Structure.HURDLE_C,
    (True, True): Structure.HURDLE_EC,
}


def _check_case_tables() -> None:
    keys = set(product((False, True), repeat=2))
    reached = []
    for family, table in (
        (ModelFamily.SELECTION, _SELECTION_CASES),
        (ModelFamily.HURDLE, _HURDLE_CASES),
    ):
        if set(table) != keys:
            raise RuntimeError(f"{family.value} case table is not total")
        for structure in table.values():
            if structure is not None and structure.family is not family:
                raise RuntimeError(f"{structure} listed under {family.value}")
            if structure is not None:
                reached.append(structure)
    if sorted(s.value for s in reached) != sorted(s.value for s in Structure):
        raise RuntimeError("case tables must reach every Structure exactly once")


_check_case_tables()


def classify(
    family: ModelFamily,
    descriptors: Mapping[Role, ModelDescriptor],
    *,
    se: float | None = None,
    sc: float | None = None,
) -> Classifiers:
    """
    Summarise descriptor shapes.

    Args:
        family: Selection or hurdle
        descriptors: Descriptors keyed by role; EFFECT and COST are required,
            the mechanism roles of the family are optional for hurdle
            outcomes without a structural value
        se, sc: Declared structural values (hurdle only), None if undeclared

    Raises:
        MechanismMismatchError: A structural value without its descriptor,
            or a structural descriptor with covariates but no declared value
    """
    effect = descriptors[Role.EFFECT]
    cost = descriptors[Role.COST]

    if family is ModelFamily.SELECTION:
        me = descriptors[Role.MISSING_EFFECT]
        mc = descriptors[Role.MISSING_COST]
        return Classifiers(
            family=family,
            effect_mechanism_covariates=bool(me.regressors(Role.MISSING_EFFECT)),
            cost_mechanism_covariates=bool(mc.regressors(Role.MISSING_COST)),
            effect_not_at_random=me.references_outcome(Role.MISSING_EFFECT),
            cost_not_at_random=mc.references_outcome(Role.MISSING_COST),
            joint=cost.references_outcome(Role.COST),
            structural_effects=False,
            structural_costs=False,
            effect_covariates=bool(effect.regressors(Role.EFFECT)),
            cost_covariates=bool(cost.regressors(Role.COST)),
        )

    flags = {}
    for role, value in ((Role.STRUCTURAL_EFFECT, se), (Role.STRUCTURAL_COST, sc)):
        descriptor = descriptors.get(role)
        if value is not None and descriptor is None:
            raise MechanismMismatchError(
                f"structural value {value} declared for '{role.outcome}' but "
                f"no model.{role.value} descriptor supplied",
                role=f"model.{role.value}",
            )
        has_covariates = descriptor is not None and descriptor.has_covariates
        if value is None and has_covariates:
            raise MechanismMismatchError(
                f"model.{role.value} has covariates but no structural value is "
                f"declared for '{role.outcome}'; a mechanism cannot be assumed "
                f"without structural values",
                role=f"model.{role.value}",
            )
        flags[role] = has_covariates

    return Classifiers(
        family=family,
        effect_mechanism_covariates=flags[Role.STRUCTURAL_EFFECT],
        cost_mechanism_covariates=flags[Role.STRUCTURAL_COST],
        effect_not_at_random=False,
        cost_not_at_random=False,
        joint=cost.references_outcome(Role.COST),
        structural_effects=se is not None,
        structural_costs=sc is not None,
        effect_covariates=bool(effect.regressors(Role.EFFECT)),
        cost_covariates=bool(cost.regressors(Role.COST)),
    )


def resolve_variant(
    mechanism: Mechanism,
    classifiers: Classifiers,
    dist_e: EffectDistribution,
    dist_c: CostDistribution,
) -> ModelVariant:
    """
    Map classifiers to exactly one ModelVariant.

    Raises:
        MechanismMismatchError: If the declared mechanism disagrees with
            the descriptor shapes
    """
    if mechanism.family is not classifiers.family:
        raise MechanismMismatchError(
            f"mechanism {mechanism.value} belongs to {mechanism.family.value} "
            f"models, descriptors describe a {classifiers.family.value} model",
            declared=mechanism.value,
        )

    if classifiers.family is ModelFamily.SELECTION:
        structure = _SELECTION_CASES[
            (classifiers.effect_not_at_random, classifiers.cost_not_at_random)
        ]
        _check_selection(mechanism, structure)
        effect_shape = _selection_shape(
            classifiers.effect_not_at_random, classifiers.effect_mechanism_covariates
        )
        cost_shape = _selection_shape(
            classifiers.cost_not_at_random, classifiers.cost_mechanism_covariates
        )
    else:
        structure = _HURDLE_CASES[
            (classifiers.structural_effects, classifiers.structural_costs)
        ]
        if structure is None:
            raise MechanismMismatchError(
                "hurdle models need a structural value for the effects (se), "
                "the costs (sc) or both; none was declared",
                declared=mechanism.value,
            )
        _check_hurdle(mechanism, classifiers)
        effect_shape = _hurdle_shape(
            classifiers.structural_effects, classifiers.effect_mechanism_covariates
        )
        cost_shape = _hurdle_shape(
            classifiers.structural_costs, classifiers.cost_mechanism_covariates
        )

    return ModelVariant(
        family=classifiers.family,
        mechanism=mechanism,
        structure=structure,
        effect_mechanism=effect_shape,
        cost_mechanism=cost_shape,
        correlated=classifiers.joint,
        effect_covariates=classifiers.effect_covariates,
        cost_covariates=classifiers.cost_covariates,
        dist_e=dist_e,
        dist_c=dist_c,
    )


def _check_selection(mechanism: Mechanism, structure: Structure) -> None:
    if mechanism is Mechanism.MAR and structure is not Structure.MAR:
        raise MechanismMismatchError(
            "MAR declared but model.me includes 'e' and/or model.mc includes "
            "'c'; remove them or declare MNAR",
            declared=mechanism.value,
        )
    if mechanism is Mechanism.MNAR and structure is Structure.MAR:
        raise MechanismMismatchError(
            "MNAR declared but neither model.me includes 'e' nor model.mc "
            "includes 'c'; add them or declare MAR",
            declared=mechanism.value,
        )


def _check_hurdle(mechanism: Mechanism, classifiers: Classifiers) -> None:
    active = []
    if classifiers.structural_effects:
        active.append(('model.se', classifiers.effect_mechanism_covariates))
    if classifiers.structural_costs:
        active.append(('model.sc', classifiers.cost_mechanism_covariates))

    if mechanism is Mechanism.SCAR:
        with_covariates = [role for role, flag in active if flag]
        if with_covariates:
            raise MechanismMismatchError(
                f"SCAR declared but {with_covariates[0]} has covariates; "
                f"remove them or declare SAR",
                declared=mechanism.value,
                role=with_covariates[0],
            )
    elif not any(flag for _, flag in active):
        raise MechanismMismatchError(
            "SAR declared but no structural descriptor has covariates; "
            "add covariates to model.se and/or model.sc or declare SCAR",
            declared=mechanism.value,
        )


def _selection_shape(not_at_random: bool, covariates: bool) -> MechanismShape:
    if not_at_random:
        return MechanismShape.NOT_AT_RANDOM
    if covariates:
        return MechanismShape.AT_RANDOM
    return MechanismShape.COMPLETELY_AT_RANDOM


def _hurdle_shape(declared: bool, covariates: bool) -> MechanismShape:
    if not declared:
        return MechanismShape.ABSENT
    if covariates:
        return MechanismShape.AT_RANDOM
    return MechanismShape.COMPLETELY_AT_RANDOM
