"""
Catalogues shared by the model layer.

This module is the single source of truth for the strings accepted at the
public API (mechanism labels, distribution names) and for the closed set of
model structures. Import the enums from here, never compare raw strings
downstream.
"""

from __future__ import annotations

from enum import Enum

from missinghe.core.exceptions import ValidationError


class ModelFamily(Enum):
    """Selection models (missingness) or hurdle models (structural values)."""
    SELECTION = 'selection'
    HURDLE = 'hurdle'


class Mechanism(Enum):
    """Declared mechanism label."""
    MAR = 'MAR'
    MNAR = 'MNAR'
    SCAR = 'SCAR'
    SAR = 'SAR'

    @property
    def family(self) -> ModelFamily:
        if self in (Mechanism.MAR, Mechanism.MNAR):
            return ModelFamily.SELECTION
        return ModelFamily.HURDLE


class EffectDistribution(Enum):
    NORM = 'norm'
    BETA = 'beta'


class CostDistribution(Enum):
    NORM = 'norm'
    GAMMA = 'gamma'
    LNORM = 'lnorm'


class Structure(Enum):
    """
    Mechanism structure of a resolved model.

    Selection structures say which outcomes carry a not-at-random term;
    hurdle structures say which outcomes carry a structural component.
    """
    MAR = 'MAR'
    MNAR_EFF = 'MNAR_eff'
    MNAR_COST = 'MNAR_cost'
    MNAR = 'MNAR'
    HURDLE_E = 'HURDLE_e'
    HURDLE_C = 'HURDLE_c'
    HURDLE_EC = 'HURDLE_ec'

    @property
    def family(self) -> ModelFamily:
        if self.name.startswith('HURDLE'):
            return ModelFamily.HURDLE
        return ModelFamily.SELECTION


class MechanismShape(Enum):
    """Per-outcome shape of the missingness / structural component."""
    ABSENT = 'none'                     # no component for this outcome
    COMPLETELY_AT_RANDOM = 'car'        # intercept only
    AT_RANDOM = 'ar'                    # covariates
    NOT_AT_RANDOM = 'nar'               # own-outcome term

    @property
    def description(self) -> str:
        return {
            'none': 'no component',
            'car': 'completely at random',
            'ar': 'at random',
            'nar': 'not at random',
        }[self.value]


_EFFECT_ALIASES = {'normal': 'norm'}
_COST_ALIASES = {'normal': 'norm', 'lognormal': 'lnorm'}


def parse_mechanism(value: str, family: ModelFamily) -> Mechanism:
    """
    Case-insensitive mechanism label for the given family.

    Raises:
        ValidationError: If the label is unknown or belongs to the other family
    """
    allowed = [m.value for m in Mechanism if m.family is family]
    if isinstance(value, Mechanism):
        value = value.value
    if not isinstance(value, str):
        raise ValidationError(
            f"type: expected one of {allowed}, got {value!r}"
        )
    label = value.strip().upper()
    if label not in allowed:
        raise ValidationError(
            f"type: {family.value} models accept {allowed}, got {value!r}"
        )
    return Mechanism(label)


def parse_effect_distribution(value: str) -> EffectDistribution:
    """
    Case-insensitive effect distribution ('norm', 'beta'; 'normal' alias).

    Raises:
        ValidationError: If the name is not in the catalogue
    """
    return _parse_distribution(value, EffectDistribution, _EFFECT_ALIASES, 'dist_e')


def parse_cost_distribution(value: str) -> CostDistribution:
    """
    Case-insensitive cost distribution ('norm', 'gamma', 'lnorm';
    'normal' and 'lognormal' aliases).

    Raises:
        ValidationError: If the name is not in the catalogue
    """
    return _parse_distribution(value, CostDistribution, _COST_ALIASES, 'dist_c')


def _parse_distribution(value, enum, aliases, name):
    allowed = [d.value for d in enum]
    if isinstance(value, enum):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{name}: expected one of {allowed}, got {value!r}")
    key = value.strip().lower()
    key = aliases.get(key, key)
    if key not in allowed:
        raise ValidationError(
            f"{name}: distributions available are {allowed}, got {value!r}"
        )
    return enum(key)
