"""
Input validation utilities for missinghe.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

from __future__ import annotations

import numbers
from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from missinghe.core.exceptions import SchemaError, ValidationError


def check_numeric(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert a column to a float64 array.

    NaN is allowed and is the only representation of a missing value.
    Rejects inputs that result in object, string, bool or datetime dtype.

    Args:
        array: Input to validate
        name: Column name for error messages

    Returns:
        numpy.ndarray of dtype float64

    Raises:
        SchemaError: If input cannot be read as numeric data
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise SchemaError(
            f"{name}: cannot convert to array: {e}", field=name
        ) from e

    if result.dtype == object:
        # pandas hands back object columns for numbers mixed with None
        bad = [
            v for v in result.ravel()
            if v is not None
            and (isinstance(v, bool) or not isinstance(v, numbers.Real))
        ]
        if bad:
            raise SchemaError(
                f"{name}: non-numeric values in column (first: {bad[0]!r})",
                field=name, expected='numeric', actual='object',
            )
        result = np.array(
            [np.nan if v is None else v for v in result.ravel()],
            dtype=np.float64,
        ).reshape(result.shape)

    if result.dtype == np.bool_ or not np.issubdtype(result.dtype, np.number):
        raise SchemaError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data",
            field=name, expected='numeric', actual=str(result.dtype),
        )

    return result.astype(np.float64)


def check_1d(array: NDArray, name: str) -> None:
    """
    Verify array is 1-dimensional.

    Raises:
        ValidationError: If array is not 1D
    """
    if array.ndim != 1:
        raise ValidationError(
            f"{name}: expected 1D array, got {array.ndim}D with shape {array.shape}"
        )


def check_no_missing(array: NDArray, name: str) -> None:
    """
    Verify a column has no missing entries.

    Works for numeric (NaN) and object columns (None, NaN, pd.NA, NaT).

    Raises:
        SchemaError: If any entry is missing
    """
    if np.issubdtype(array.dtype, np.floating):
        mask = np.isnan(array)
    elif array.dtype == object:
        import pandas as pd
        mask = np.asarray(pd.isna(array), dtype=bool)
    else:
        return

    n_missing = int(np.sum(mask))
    if n_missing > 0:
        raise SchemaError(
            f"{name}: no missing covariate or arm values are allowed, "
            f"found {n_missing}",
            field=name, expected=0, actual=n_missing,
        )


def check_positive_int(value: Any, name: str) -> int:
    """
    Verify a setting is a strictly positive integer.

    Raises:
        ValidationError: If value is not an integer >= 1
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ValidationError(f"{name}: expected an integer, got {value!r}")
    if value < 1:
        raise ValidationError(f"{name}: must be >= 1, got {value}")
    return int(value)


def check_probability_pair(value: Any, name: str) -> tuple[float, float]:
    """
    Verify a pair of probabilities in [0, 1].

    Raises:
        ValidationError: If value is not two numbers in [0, 1]
    """
    try:
        arr = np.asarray(value, dtype=np.float64)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: expected two numbers, got {value!r}") from e

    if arr.shape != (2,):
        raise ValidationError(
            f"{name}: expected two numbers, got shape {arr.shape}"
        )
    if np.any(np.isnan(arr)) or np.any(arr < 0) or np.any(arr > 1):
        raise ValidationError(
            f"{name}: values must lie in [0, 1], got {arr.tolist()}"
        )
    return float(arr[0]), float(arr[1])


def readonly(array: ArrayLike, dtype: Any = None) -> NDArray:
    """
    Return a private, write-protected copy of an array.

    Used for every array stored in a frozen container so that downstream
    consumers cannot mutate shared state.
    """
    result = np.array(array, dtype=dtype, copy=True)
    result.flags.writeable = False
    return result
