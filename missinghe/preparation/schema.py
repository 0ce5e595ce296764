"""
Schema validation for trial data and model descriptors.

validate_schema() is the boundary of the preparation pipeline: it checks
every naming, type and completeness contract up front so that the later
stages can trust their inputs. It is a pure predicate: it returns nothing
and raises on the first violation.
"""

from __future__ import annotations

from collections.abc import Mapping

import numpy as np

from missinghe.core.datasource import TrialData
from missinghe.core.exceptions import SchemaError, UnknownCovariateError
from missinghe.core.validation import check_no_missing, check_numeric
from missinghe.preparation.arms import arm_codes
from missinghe.preparation.descriptors import ModelDescriptor, Role

REQUIRED_COLUMNS = ('e', 'c', 't')


def validate_schema(
    data: TrialData,
    descriptors: Mapping[Role, ModelDescriptor],
) -> None:
    """
    Check a dataset and its descriptors against the modelling contracts.

    Args:
        data: The trial dataset
        descriptors: One descriptor per role in use

    Raises:
        SchemaError: Missing/misnamed/mistyped fields, missing covariate
            values, descriptor role violations, no missing outcome at all
        ArmCodingError: Arm column is not a two-level 1/2 coding
        UnknownCovariateError: A descriptor names an absent column
    """
    check_required_columns(data)

    effects = check_numeric(data['e'], 'e')
    costs = check_numeric(data['c'], 'c')

    for name in data.columns:
        if name not in ('e', 'c'):
            check_no_missing(data[name], name)

    arm_codes(data['t'])

    for role, descriptor in descriptors.items():
        check_descriptor(descriptor, role, data)

    if not (np.any(np.isnan(effects)) or np.any(np.isnan(costs))):
        raise SchemaError(
            "at least one missing value is required in either the effects "
            "or the costs",
            field='e/c', expected='>= 1 missing', actual=0,
        )


def check_required_columns(data: TrialData) -> None:
    """Verify the reserved outcome and arm columns are present."""
    absent = [name for name in REQUIRED_COLUMNS if name not in data]
    if absent:
        raise SchemaError(
            f"data must provide columns 'e', 'c' and 't' for effectiveness, "
            f"cost and treatment arm; missing: {absent}. "
            f"Available: {list(data.columns)}",
            field=absent[0], expected=REQUIRED_COLUMNS, actual=data.columns,
        )


def check_descriptor(
    descriptor: ModelDescriptor,
    role: Role,
    data: TrialData,
) -> None:
    """
    Verify one descriptor fits its role and the dataset.

    Raises:
        SchemaError: Wrong response, duplicate or forbidden covariate,
            descriptor without any column
        UnknownCovariateError: Covariate absent from the dataset
    """
    label = f"model.{role.value}"

    if descriptor.response != role.response:
        raise SchemaError(
            f"{label}: response must be '{role.response}', "
            f"got '{descriptor.response}'",
            field=label, expected=role.response, actual=descriptor.response,
        )

    seen = set()
    for name in descriptor.covariates:
        if name in seen:
            raise SchemaError(
                f"{label}: covariate '{name}' listed more than once",
                field=label, actual=descriptor.covariates,
            )
        seen.add(name)

    forbidden = [name for name in descriptor.covariates if name in role.forbidden]
    if forbidden:
        raise SchemaError(
            f"{label}: '{forbidden[0]}' may not appear on the right-hand side "
            f"of the '{role.response}' model (forbidden: {sorted(role.forbidden)})",
            field=label, expected=sorted(role.forbidden), actual=forbidden[0],
        )

    if not descriptor.intercept and not descriptor.regressors(role):
        raise SchemaError(
            f"{label}: a model without intercept needs at least one covariate",
            field=label, actual=str(descriptor),
        )

    for name in descriptor.covariates:
        if name not in data:
            raise UnknownCovariateError(
                f"{label}: column '{name}' not found in data. "
                f"Available: {list(data.columns)}",
                role=label, column=name, available=data.columns,
            )
