"""
Model descriptors.

A descriptor names the response of one model component and the ordered
covariates on its right-hand side. Descriptors are plain values: they are
built once by the caller (directly or from the "y ~ a + b" shorthand) and
checked structurally by the schema validator. No formula language is
evaluated at preparation time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from missinghe.core.exceptions import ValidationError


class Role(Enum):
    """Role of a descriptor. The value is the reserved response name."""
    EFFECT = 'e'
    COST = 'c'
    MISSING_EFFECT = 'me'
    MISSING_COST = 'mc'
    STRUCTURAL_EFFECT = 'se'
    STRUCTURAL_COST = 'sc'

    @property
    def response(self) -> str:
        return self.value

    @property
    def outcome(self) -> str:
        """Outcome the component belongs to ('e' or 'c')."""
        return self.value[-1]

    @property
    def outcome_reference(self) -> str | None:
        """
        Outcome name that may legitimately appear on the right-hand side.

        It never becomes a design-matrix column; its presence is a
        structural flag (joint model for costs, MNAR for missingness).
        """
        return _OUTCOME_REFERENCE.get(self)

    @property
    def forbidden(self) -> frozenset[str]:
        """Names that may never appear on the right-hand side."""
        return _FORBIDDEN[self]


RESERVED_NAMES = frozenset(role.value for role in Role) | {'t'}

_OUTCOME_REFERENCE = {
    Role.COST: 'e',
    Role.MISSING_EFFECT: 'e',
    Role.MISSING_COST: 'c',
}

_FORBIDDEN = {
    Role.EFFECT: frozenset({'e', 'c', 't'}),
    Role.COST: frozenset({'c', 't'}),
    Role.MISSING_EFFECT: frozenset({'c', 't', 'me', 'mc'}),
    Role.MISSING_COST: frozenset({'e', 't', 'me', 'mc'}),
    Role.STRUCTURAL_EFFECT: frozenset({'e', 'c', 't', 'se', 'sc'}),
    Role.STRUCTURAL_COST: frozenset({'e', 'c', 't', 'se', 'sc'}),
}

_TERM = re.compile(r'^[A-Za-z_.][A-Za-z0-9_.]*$')


@dataclass(frozen=True)
class ModelDescriptor:
    """
    Response name plus ordered covariate names.

    An intercept-only descriptor has an empty covariate tuple.

    Construction:
        ModelDescriptor('c', ('e', 'age'))
        ModelDescriptor.parse('c ~ e + age')
        ModelDescriptor.parse('me ~ 1')
    """
    response: str
    covariates: tuple[str, ...] = ()
    intercept: bool = True

    def __post_init__(self):
        if not isinstance(self.response, str) or not self.response:
            raise ValidationError(
                f"descriptor response must be a non-empty string, got {self.response!r}"
            )
        if isinstance(self.covariates, str):
            raise ValidationError(
                f"{self.response}: covariates must be a sequence of names, "
                f"got the string {self.covariates!r}"
            )
        covariates = tuple(self.covariates)
        for name in covariates:
            if not isinstance(name, str) or not name:
                raise ValidationError(
                    f"{self.response}: covariate names must be non-empty strings, "
                    f"got {name!r}"
                )
        object.__setattr__(self, 'covariates', covariates)

    @classmethod
    def parse(cls, text: str) -> ModelDescriptor:
        """
        Build a descriptor from the 'response ~ a + b' shorthand.

        '1' on the right-hand side is the intercept; '-1' or '0' removes it.
        Anything beyond plain column names joined by '+' is rejected.
        """
        if text.count('~') != 1:
            raise ValidationError(
                f"descriptor {text!r}: expected exactly one '~'"
            )
        lhs, rhs = (part.strip() for part in text.split('~'))
        if not _TERM.match(lhs):
            raise ValidationError(
                f"descriptor {text!r}: invalid response name {lhs!r}"
            )

        intercept = True
        covariates = []
        for raw in rhs.replace('-', '+-').split('+'):
            term = raw.replace(' ', '')
            if term == '':
                continue
            if term == '1':
                continue
            if term in ('-1', '0'):
                intercept = False
                continue
            if not _TERM.match(term):
                raise ValidationError(
                    f"descriptor {text!r}: unsupported term {raw.strip()!r}; "
                    f"only column names joined by '+' are accepted"
                )
            covariates.append(term)

        if not rhs.strip():
            raise ValidationError(
                f"descriptor {text!r}: empty right-hand side, use '1' for "
                f"an intercept-only model"
            )
        return cls(lhs, tuple(covariates), intercept)

    @classmethod
    def coerce(cls, value: Any, name: str) -> ModelDescriptor:
        """Accept a descriptor or its string shorthand."""
        if isinstance(value, ModelDescriptor):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        raise ValidationError(
            f"{name}: expected a ModelDescriptor or a 'y ~ x' string, "
            f"got {type(value).__name__}"
        )

    @property
    def has_covariates(self) -> bool:
        return len(self.covariates) > 0

    def regressors(self, role: Role) -> tuple[str, ...]:
        """Covariates that become design-matrix columns for this role."""
        ref = role.outcome_reference
        return tuple(name for name in self.covariates if name != ref)

    def references_outcome(self, role: Role) -> bool:
        """Whether the role's outcome reference appears on the right-hand side."""
        ref = role.outcome_reference
        return ref is not None and ref in self.covariates

    def __str__(self) -> str:
        rhs = ' + '.join(self.covariates)
        if not self.intercept:
            rhs = f"{rhs} - 1" if rhs else '-1'
        elif not rhs:
            rhs = '1'
        return f"{self.response} ~ {rhs}"
