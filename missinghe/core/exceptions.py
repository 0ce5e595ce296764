"""
Exception hierarchy for missinghe.

All exceptions inherit from MissingHEError to allow catching any
library-specific error. Every failure is a deterministic input-shape
defect, so nothing here is ever retried.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""

from __future__ import annotations


class MissingHEError(Exception):
    """
    Base exception for all missinghe errors.

    Attributes:
        stage: Pipeline stage that raised ('schema', 'design', ...), set
            by selection() / hurdle(); None when raised outside a run
    """
    stage: str | None = None


class ValidationError(MissingHEError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks that are not
    covered by a more specific subclass (unknown distribution names,
    invalid sampler settings, malformed descriptor strings).
    """
    pass


class SchemaError(ValidationError):
    """
    Dataset or descriptor violates a naming, type or completeness contract.

    Attributes:
        field: Offending column or descriptor role, if known
        expected: What the contract requires
        actual: What was supplied
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        expected: object | None = None,
        actual: object | None = None,
    ):
        super().__init__(message)
        self.field = field
        self.expected = expected
        self.actual = actual


class ArmCodingError(SchemaError):
    """
    Arm column does not carry exactly the two recognised levels.

    Attributes:
        levels: The distinct levels observed in the arm column
    """

    def __init__(self, message: str, levels: tuple[str, ...] = ()):
        super().__init__(message, field='t', expected=('1', '2'), actual=levels)
        self.levels = levels


class UnknownCovariateError(SchemaError):
    """
    A descriptor references a column absent from the dataset.

    Attributes:
        role: Descriptor role that referenced the column
        column: The missing column name
        available: Columns present in the dataset
    """

    def __init__(
        self,
        message: str,
        role: str,
        column: str,
        available: tuple[str, ...] = (),
    ):
        super().__init__(message, field=role, expected=available, actual=column)
        self.role = role
        self.column = column
        self.available = available


class MechanismMismatchError(ValidationError):
    """
    Declared mechanism label disagrees with the descriptor shapes.

    Attributes:
        declared: The declared mechanism label ('MAR', 'SCAR', ...)
        role: Descriptor role at fault, if a single one can be named
    """

    def __init__(
        self,
        message: str,
        declared: str | None = None,
        role: str | None = None,
    ):
        super().__init__(message)
        self.declared = declared
        self.role = role


class PriorBindingError(ValidationError):
    """
    A prior override could not be bound.

    Attributes:
        name: Offending prior family name
        reason: 'unknown', 'inapplicable', 'duplicate' or 'shape'
    """

    def __init__(self, message: str, name: str, reason: str):
        super().__init__(message)
        self.name = name
        self.reason = reason


class IndicatorOverrideError(ValidationError):
    """
    A user-supplied structural indicator vector is unusable.

    Attributes:
        outcome: 'e' or 'c'
        expected_length: Number of rows in the dataset, if relevant
        actual_length: Length of the supplied vector, if relevant
    """

    def __init__(
        self,
        message: str,
        outcome: str,
        expected_length: int | None = None,
        actual_length: int | None = None,
    ):
        super().__init__(message)
        self.outcome = outcome
        self.expected_length = expected_length
        self.actual_length = actual_length
