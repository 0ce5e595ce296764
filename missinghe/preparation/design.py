"""
Design matrix construction.

For every descriptor and every arm, build_design() assembles the numeric
regression matrix consumed by the inference engine together with the
per-column offset values ("centers") used by the engine's mean
parameterisation:

    - intercept column: center 1
    - continuous covariate: arm-specific sample mean
    - binary-coded covariate (at most two distinct values in that arm):
      center 1, regardless of the observed prevalence

The matrix itself holds the raw covariate values; the centers travel
alongside it. Non-numeric covariates are expanded into 0/1 indicator
columns, which are binary by construction. The first level in sorted
order is the reference; in a descriptor without intercept the first
categorical covariate keeps a column for every level instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

import numpy as np
from numpy.typing import NDArray

from missinghe.core.datasource import TrialData
from missinghe.core.exceptions import SchemaError, UnknownCovariateError
from missinghe.core.validation import readonly
from missinghe.preparation.arms import ArmData
from missinghe.preparation.descriptors import ModelDescriptor, Role

INTERCEPT = '(Intercept)'


@dataclass(frozen=True)
class DesignMatrix:
    """
    Regression matrix of one descriptor in one arm.

    Attributes:
        role: Descriptor role
        arm: 'Control' or 'Intervention'
        columns: Column names, intercept first when present
        matrix: (n_arm, p) raw values
        centers: (p,) offset values, see module docstring
        binary: (p,) whether each column is binary-coded in this arm
    """
    role: Role
    arm: str
    columns: tuple[str, ...]
    matrix: NDArray[np.floating[Any]]
    centers: NDArray[np.floating[Any]]
    binary: NDArray[np.bool_]

    @property
    def n(self) -> int:
        return self.matrix.shape[0]

    @property
    def p(self) -> int:
        return self.matrix.shape[1]

    @property
    def has_intercept(self) -> bool:
        return len(self.columns) > 0 and self.columns[0] == INTERCEPT

    @property
    def is_intercept_only(self) -> bool:
        """A single column of ones: the 'no covariates' signal."""
        return self.columns == (INTERCEPT,)


@dataclass(frozen=True)
class DesignPair:
    """Control and Intervention design matrices of one descriptor."""
    descriptor: ModelDescriptor
    role: Role
    control: DesignMatrix
    intervention: DesignMatrix

    def __iter__(self) -> Iterator[DesignMatrix]:
        yield self.control
        yield self.intervention

    @property
    def columns(self) -> tuple[str, ...]:
        return self.control.columns

    @property
    def p(self) -> int:
        return self.control.p

    @property
    def has_covariates(self) -> bool:
        return not self.control.is_intercept_only

    @property
    def references_outcome(self) -> bool:
        """Own-outcome term present (joint cost model or MNAR mechanism)."""
        return self.descriptor.references_outcome(self.role)


def build_design(
    data: TrialData,
    arms: ArmData,
    descriptor: ModelDescriptor,
    role: Role,
) -> DesignPair:
    """
    Build per-arm design matrices for one descriptor.

    Args:
        data: Validated dataset
        arms: Arm partition of the same dataset
        descriptor: Response + ordered covariates
        role: Role of the descriptor

    Returns:
        DesignPair with one DesignMatrix per arm

    Raises:
        UnknownCovariateError: If a covariate is absent from the dataset
        SchemaError: If a categorical covariate has a single level
    """
    names: list[str] = []
    blocks: list[NDArray] = []

    if descriptor.intercept:
        names.append(INTERCEPT)
        blocks.append(np.ones(data.n_observations, dtype=np.float64))

    # without an intercept the first categorical keeps its reference level
    full_coding = not descriptor.intercept
    for covariate in descriptor.regressors(role):
        if covariate not in data:
            raise UnknownCovariateError(
                f"model.{role.value}: column '{covariate}' not found in data. "
                f"Available: {list(data.columns)}",
                role=f"model.{role.value}",
                column=covariate,
                available=data.columns,
            )
        expanded = _expand(data, covariate, role, full=full_coding)
        if not data.is_numeric(covariate):
            full_coding = False
        for name, column in expanded:
            names.append(name)
            blocks.append(column)

    full = np.column_stack(blocks)
    columns = tuple(names)

    per_arm = []
    for arm in arms:
        matrix = full[arm.rows]
        binary = np.array(
            [_is_binary(matrix[:, j]) for j in range(matrix.shape[1])],
            dtype=bool,
        )
        if descriptor.intercept:
            binary[0] = False
        centers = _centers(matrix, binary, descriptor.intercept)
        per_arm.append(DesignMatrix(
            role=role,
            arm=arm.name,
            columns=columns,
            matrix=readonly(matrix),
            centers=readonly(centers),
            binary=readonly(binary),
        ))

    return DesignPair(
        descriptor=descriptor,
        role=role,
        control=per_arm[0],
        intervention=per_arm[1],
    )


def _expand(
    data: TrialData,
    covariate: str,
    role: Role,
    *,
    full: bool = False,
) -> list[tuple[str, NDArray]]:
    """
    Numeric column as-is; categorical column as 0/1 dummies.

    The first sorted level is the reference and gets no column, unless
    full is set (one column per level).
    """
    values = data[covariate]
    if data.is_numeric(covariate):
        return [(covariate, np.asarray(values, dtype=np.float64))]

    labels = np.array([str(v) for v in values], dtype=object)
    levels = sorted(set(labels))
    if len(levels) < 2:
        raise SchemaError(
            f"model.{role.value}: categorical covariate '{covariate}' needs at "
            f"least 2 levels, got {levels}",
            field=covariate, expected='>= 2 levels', actual=levels,
        )
    return [
        (f"{covariate}{level}", (labels == level).astype(np.float64))
        for level in (levels if full else levels[1:])
    ]


def _is_binary(column: NDArray) -> bool:
    return len(np.unique(column)) <= 2


def _centers(matrix: NDArray, binary: NDArray, intercept: bool) -> NDArray:
    centers = matrix.mean(axis=0)
    centers[binary] = 1.0
    if intercept:
        centers[0] = 1.0
    return centers
