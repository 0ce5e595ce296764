"""
Core infrastructure for missinghe.

Key components:
    datasource: TrialData input container
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    timing: Per-stage timer
"""

from missinghe.core.datasource import TrialData
from missinghe.core.result import Result
from missinghe.core.exceptions import (
    MissingHEError,
    ValidationError,
    SchemaError,
    ArmCodingError,
    UnknownCovariateError,
    MechanismMismatchError,
    PriorBindingError,
    IndicatorOverrideError,
)

__all__ = [
    # Data
    "TrialData",
    # Result
    "Result",
    # Exceptions
    "MissingHEError",
    "ValidationError",
    "SchemaError",
    "ArmCodingError",
    "UnknownCovariateError",
    "MechanismMismatchError",
    "PriorBindingError",
    "IndicatorOverrideError",
]
