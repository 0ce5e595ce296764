"""
Data preparation stages.

Public API:
    validate_schema(data, descriptors) -> None
    split_arms(data) -> ArmData
    build_design(data, arms, descriptor, role) -> DesignPair
    missing_indicators(arms, outcome) -> IndicatorPair
    structural_indicators(arms, outcome, value, override=...) -> IndicatorPair

Each stage is a pure function of its inputs and returns a frozen value.
"""

from missinghe.preparation.descriptors import ModelDescriptor, Role
from missinghe.preparation.schema import validate_schema
from missinghe.preparation.arms import Arm, ArmData, split_arms
from missinghe.preparation.design import DesignMatrix, DesignPair, build_design
from missinghe.preparation.indicators import (
    IndicatorPair,
    IndicatorVector,
    missing_indicators,
    structural_indicators,
)

__all__ = [
    "ModelDescriptor",
    "Role",
    "validate_schema",
    "Arm",
    "ArmData",
    "split_arms",
    "DesignMatrix",
    "DesignPair",
    "build_design",
    "IndicatorPair",
    "IndicatorVector",
    "missing_indicators",
    "structural_indicators",
]
