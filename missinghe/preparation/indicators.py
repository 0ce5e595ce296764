"""
Missingness and structural-value indicators.

Missingness indicators are a pure function of the raw outcome vectors:
1 where the value is absent, 0 elsewhere. They are never supplied by the
caller.

Structural indicators flag observed outcomes equal to a declared
structural value (e.g. zero costs, perfect health). Where the outcome is
missing the structural status is unknown, so the indicator is NaN rather
than 0. A caller may replace the derived indicator with an override
vector aligned to the original row order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray

from missinghe.core.exceptions import IndicatorOverrideError
from missinghe.core.validation import readonly
from missinghe.preparation.arms import ArmData

IndicatorKind = Literal['missing', 'structural']


@dataclass(frozen=True)
class IndicatorVector:
    """0/1 flags of one outcome in one arm, parallel to the raw vector."""
    outcome: str
    kind: IndicatorKind
    arm: str
    values: NDArray[np.floating[Any]]

    @property
    def n(self) -> int:
        return len(self.values)

    @property
    def n_flagged(self) -> int:
        """Number of entries equal to 1."""
        return int(np.nansum(self.values))

    @property
    def n_undefined(self) -> int:
        """Number of entries with unknown status (NaN)."""
        return int(np.sum(np.isnan(self.values)))


@dataclass(frozen=True)
class IndicatorPair:
    """
    Control and Intervention indicators of one outcome.

    Attributes:
        structural_value: Declared value for structural indicators, None for
            missingness indicators
        overridden: True when the caller supplied the vector
    """
    outcome: str
    kind: IndicatorKind
    control: IndicatorVector
    intervention: IndicatorVector
    structural_value: float | None = None
    overridden: bool = False

    def __iter__(self) -> Iterator[IndicatorVector]:
        yield self.control
        yield self.intervention


def missing_indicators(arms: ArmData, outcome: str) -> IndicatorPair:
    """
    Derive missingness indicators for outcome 'e' or 'c'.

    Args:
        arms: Arm partition of the dataset
        outcome: 'e' or 'c'

    Returns:
        IndicatorPair of kind 'missing'; entries are exactly 0 or 1
    """
    vectors = [
        IndicatorVector(
            outcome=outcome,
            kind='missing',
            arm=arm.name,
            values=readonly(np.isnan(arm.outcome(outcome)).astype(np.float64)),
        )
        for arm in arms
    ]
    return IndicatorPair(
        outcome=outcome,
        kind='missing',
        control=vectors[0],
        intervention=vectors[1],
    )


def structural_indicators(
    arms: ArmData,
    outcome: str,
    value: float,
    *,
    override: ArrayLike | None = None,
) -> IndicatorPair:
    """
    Derive (or take over) structural-value indicators for one outcome.

    Args:
        arms: Arm partition of the dataset
        outcome: 'e' or 'c'
        value: Declared structural value
        override: Optional 0/1 vector, one entry per dataset row in
            original order, used instead of the derived indicator

    Returns:
        IndicatorPair of kind 'structural'

    Raises:
        IndicatorOverrideError: If the override has the wrong length or
            holds anything other than 0/1 (NaN only where the outcome is
            missing)
    """
    if override is not None:
        full = check_override(override, outcome, arms)
        parts = arms.split(full)
    else:
        parts = [derive_structural(arm.outcome(outcome), value) for arm in arms]

    vectors = [
        IndicatorVector(
            outcome=outcome,
            kind='structural',
            arm=arm.name,
            values=readonly(part, dtype=np.float64),
        )
        for arm, part in zip(arms, parts)
    ]
    return IndicatorPair(
        outcome=outcome,
        kind='structural',
        control=vectors[0],
        intervention=vectors[1],
        structural_value=float(value),
        overridden=override is not None,
    )


def derive_structural(raw: NDArray, value: float) -> NDArray:
    """1 where observed and equal to value, 0 where observed, NaN where missing."""
    flags = (raw == value).astype(np.float64)
    flags[np.isnan(raw)] = np.nan
    return flags


def check_override(
    override: ArrayLike,
    outcome: str,
    arms: ArmData,
) -> NDArray[np.floating[Any]]:
    """
    Validate a user-supplied structural indicator vector.

    Returns:
        The override as a full-length float64 array

    Raises:
        IndicatorOverrideError: On length mismatch or invalid entries
    """
    name = f"d_{outcome}"
    n = arms.n_total
    try:
        values = np.asarray(override, dtype=np.float64)
    except (ValueError, TypeError) as e:
        raise IndicatorOverrideError(
            f"{name}: must be a numeric 0/1 vector: {e}", outcome=outcome
        ) from e

    if values.ndim != 1 or values.shape[0] != n:
        raise IndicatorOverrideError(
            f"{name}: expected a vector of length {n} (one entry per row), "
            f"got shape {values.shape}",
            outcome=outcome,
            expected_length=n,
            actual_length=values.shape[0] if values.ndim >= 1 else 0,
        )

    undefined = np.isnan(values)
    invalid = ~undefined & ~np.isin(values, (0.0, 1.0))
    if np.any(invalid):
        first = int(np.flatnonzero(invalid)[0])
        raise IndicatorOverrideError(
            f"{name}: entries must be 0 or 1, got {values[first]} at row {first}",
            outcome=outcome,
        )

    outcome_missing = np.zeros(n, dtype=bool)
    for arm in arms:
        outcome_missing[arm.rows] = np.isnan(arm.outcome(outcome))
    stray = undefined & ~outcome_missing
    if np.any(stray):
        first = int(np.flatnonzero(stray)[0])
        raise IndicatorOverrideError(
            f"{name}: missing entry at row {first} where '{outcome}' is observed",
            outcome=outcome,
        )
    return values
