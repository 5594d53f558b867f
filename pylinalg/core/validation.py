"""
Input validation utilities for PyLinalg.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes and
      promotion of integer data to float64)
    - No padding or truncation of mismatched vectors
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

from typing import Any, Iterable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pylinalg.core.exceptions import ValidationError, DimensionError


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.inexact[Any]]:
    """
    Validate and convert input to numpy array.

    Accepts any array-like and converts to numpy array. Rejects inputs
    that result in object dtype (indicating mixed types or non-numeric data).
    Real and complex floating dtypes are preserved; integer and boolean
    data is promoted to float64.

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with floating or complex dtype

    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    if result.dtype == np.bool_:
        return result.astype(np.float64)

    # Reject non-numeric dtypes (strings, bytes, datetime, etc.)
    if not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    if not np.issubdtype(result.dtype, np.inexact):
        result = result.astype(np.float64)

    return result


def check_finite(array: NDArray[np.inexact[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Args:
        array: Array to check
        name: Parameter name for error messages

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_ndim(array: NDArray[np.inexact[Any]], ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.

    Raises:
        DimensionError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}",
            expected=ndim,
            actual=array.ndim,
        )


def check_1d(array: NDArray[np.inexact[Any]], name: str) -> None:
    """Verify array is 1-dimensional."""
    check_ndim(array, 1, name)


def check_2d(array: NDArray[np.inexact[Any]], name: str) -> None:
    """Verify array is 2-dimensional."""
    check_ndim(array, 2, name)


def check_square(array: NDArray[np.inexact[Any]], name: str) -> None:
    """
    Verify a 2D array is square.

    Raises:
        DimensionError: If array is not 2D or not square
    """
    check_2d(array, name)
    n, m = array.shape
    if n != m:
        raise DimensionError(
            f"{name}: expected square matrix, got shape {array.shape}",
            expected=(n, n),
            actual=array.shape,
        )


def check_hermitian(
    array: NDArray[np.inexact[Any]],
    name: str,
    atol: float = 1e-8,
) -> None:
    """
    Verify a square matrix equals its conjugate transpose.

    The comparison is relative to the largest entry so that scaled
    problems are not rejected.

    Raises:
        DimensionError: If array is not square
        ValidationError: If array is not Hermitian within tolerance
    """
    check_square(array, name)
    scale = max(float(np.max(np.abs(array))), 1.0) if array.size else 1.0
    deviation = float(np.max(np.abs(array - array.conj().T))) if array.size else 0.0
    if deviation > atol * scale:
        raise ValidationError(
            f"{name}: not symmetric/Hermitian (max |A - A^H| = {deviation:.3e}, "
            f"tolerance {atol * scale:.3e})"
        )


def check_vector_length(
    array: NDArray[np.inexact[Any]],
    dim: int,
    name: str,
) -> None:
    """
    Verify a vector has exactly `dim` entries.

    This is a programming contract: callers must never rely on padding
    or truncation.

    Raises:
        DimensionError: If array is not 1D or its length differs from dim
    """
    check_1d(array, name)
    if array.shape[0] != dim:
        raise DimensionError(
            f"{name}: length {array.shape[0]} does not match dimension {dim}",
            expected=dim,
            actual=array.shape[0],
        )


def check_positive_int(value: int, name: str, maximum: int | None = None) -> None:
    """
    Verify value is an integer >= 1 (and <= maximum, if given).

    Raises:
        ValidationError: If value is not a positive integer in range
    """
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ValidationError(f"{name}: expected integer, got {type(value).__name__}")
    if value < 1:
        raise ValidationError(f"{name}: must be at least 1, got {value}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"{name}: must be at most {maximum}, got {value}")


def check_choice(value: str, choices: Iterable[str], name: str) -> None:
    """
    Verify a string option is one of the accepted literals.

    Raises:
        ValidationError: If value is not among choices
    """
    choices = tuple(choices)
    if value not in choices:
        raise ValidationError(
            f"Unknown {name}: {value!r}. Use one of {', '.join(repr(c) for c in choices)}."
        )
