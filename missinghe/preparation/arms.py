"""
Arm splitting.

Maps the arm column onto Control ('1') and Intervention ('2') and
re-partitions the outcome vectors by arm, keeping the original row order
within each arm. No numeric transformation happens here: missing outcomes
stay NaN and every count is derived from the raw vectors.
"""

from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Any, Iterator

import numpy as np
from numpy.typing import NDArray

from missinghe.core.datasource import TrialData
from missinghe.core.exceptions import ArmCodingError
from missinghe.core.validation import check_numeric, readonly

CONTROL = 'Control'
INTERVENTION = 'Intervention'

# Recognised coding: level -> arm name
ARM_CODING = {'1': CONTROL, '2': INTERVENTION}


def arm_codes(values: NDArray) -> NDArray:
    """
    Normalise an arm column to the string levels '1' / '2'.

    Integral numbers (1, 2, 1.0) and their string forms are accepted.

    Raises:
        ArmCodingError: If the column does not hold exactly the levels 1 and 2
    """
    codes = np.array([_level(v) for v in np.asarray(values).ravel()], dtype=object)
    levels = tuple(sorted(set(codes)))

    if len(levels) != 2:
        raise ArmCodingError(
            f"t: a two-arm indicator is required, found {len(levels)} "
            f"level(s): {list(levels)}",
            levels=levels,
        )
    if levels != ('1', '2'):
        raise ArmCodingError(
            f"t: arms must be coded '1' for the control and '2' for the "
            f"intervention, found {list(levels)}",
            levels=levels,
        )
    return codes


def _level(value: Any) -> str:
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        if float(value).is_integer():
            return str(int(value))
        return str(value)
    return str(value).strip()


@dataclass(frozen=True)
class Arm:
    """
    Outcome data of one treatment arm.

    effects/costs are the raw vectors (NaN where missing) in original
    within-arm order; rows are their positions in the full dataset.
    """
    name: str
    code: str
    rows: NDArray[np.intp]
    effects: NDArray[np.floating[Any]]
    costs: NDArray[np.floating[Any]]

    @property
    def n(self) -> int:
        """Arm size."""
        return len(self.rows)

    @property
    def n_missing_effects(self) -> int:
        return int(np.sum(np.isnan(self.effects)))

    @property
    def n_missing_costs(self) -> int:
        return int(np.sum(np.isnan(self.costs)))

    @property
    def n_observed_effects(self) -> int:
        return self.n - self.n_missing_effects

    @property
    def n_observed_costs(self) -> int:
        return self.n - self.n_missing_costs

    @property
    def observed_effects(self) -> NDArray[np.floating[Any]]:
        """Complete-case effects."""
        return self.effects[~np.isnan(self.effects)]

    @property
    def observed_costs(self) -> NDArray[np.floating[Any]]:
        """Complete-case costs."""
        return self.costs[~np.isnan(self.costs)]

    def outcome(self, name: str) -> NDArray[np.floating[Any]]:
        """Raw vector for outcome 'e' or 'c'."""
        if name == 'e':
            return self.effects
        if name == 'c':
            return self.costs
        raise KeyError(f"unknown outcome {name!r}, expected 'e' or 'c'")


@dataclass(frozen=True)
class ArmData:
    """Control and Intervention arms of one dataset."""
    control: Arm
    intervention: Arm

    def __iter__(self) -> Iterator[Arm]:
        yield self.control
        yield self.intervention

    @property
    def n_total(self) -> int:
        return self.control.n + self.intervention.n

    @property
    def arm_lengths(self) -> tuple[int, int]:
        """(N1, N2)."""
        return self.control.n, self.intervention.n

    def n_observed(self, outcome: str) -> tuple[int, int]:
        """Observed (complete-case) counts per arm for 'e' or 'c'."""
        return tuple(
            arm.n - int(np.sum(np.isnan(arm.outcome(outcome)))) for arm in self
        )

    def n_missing(self, outcome: str) -> tuple[int, int]:
        """Missing counts per arm for 'e' or 'c'."""
        return tuple(int(np.sum(np.isnan(arm.outcome(outcome)))) for arm in self)

    def split(self, values: NDArray) -> tuple[NDArray, NDArray]:
        """Partition a full-length vector with the same arm assignment."""
        values = np.asarray(values)
        return values[self.control.rows], values[self.intervention.rows]


def split_arms(data: TrialData) -> ArmData:
    """
    Partition a validated dataset into its two arms.

    Args:
        data: Dataset that passed validate_schema()

    Returns:
        ArmData with raw per-arm outcome vectors

    Raises:
        ArmCodingError: If the arm column is not a two-level 1/2 coding
    """
    codes = arm_codes(data['t'])
    effects = check_numeric(data['e'], 'e')
    costs = check_numeric(data['c'], 'c')

    arms = []
    for code, name in ARM_CODING.items():
        rows = np.flatnonzero(codes == code)
        arms.append(Arm(
            name=name,
            code=code,
            rows=readonly(rows),
            effects=readonly(effects[rows]),
            costs=readonly(costs[rows]),
        ))
    return ArmData(control=arms[0], intervention=arms[1])
