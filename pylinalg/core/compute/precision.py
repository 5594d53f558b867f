"""
Numerical precision constants and utilities.

Provides machine epsilon, the magnitude correction used to decide when a
singular value is numerically zero, and the phase of a scalar used by the
Householder reflections.
"""

import numpy as np
from numpy.typing import DTypeLike

# Cut-off multipliers on eps * largest eigenvalue below which an
# eigenvalue of A^H A is treated as zero (same factors as scipy's svds)
MAGNITUDE_CORRECTION_64: float = 1.0e6
MAGNITUDE_CORRECTION_32: float = 1.0e3


def real_dtype(dtype: DTypeLike) -> np.dtype:
    """
    Real counterpart of a (possibly complex) dtype.

    complex128 -> float64, complex64 -> float32, floats unchanged.
    """
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.complexfloating):
        return np.finfo(dtype).dtype
    if not np.issubdtype(dtype, np.floating):
        return np.dtype(np.float64)
    return dtype


def machine_epsilon(dtype: DTypeLike = np.float64) -> float:
    """
    Get machine epsilon for a given dtype.

    Complex dtypes report the epsilon of their real component.

    Args:
        dtype: NumPy dtype or type

    Returns:
        Machine epsilon for the dtype
    """
    return float(np.finfo(real_dtype(dtype)).eps)


def is_single_precision(dtype: DTypeLike) -> bool:
    """True for float32/complex64 (and anything coarser)."""
    return machine_epsilon(dtype) > 1e-8


def magnitude_correction(dtype: DTypeLike = np.float64) -> float:
    """
    Correction factor for the numerical-zero cut-off of singular values.

    Args:
        dtype: Element dtype of the decomposed matrix

    Returns:
        1e3 for single precision, 1e6 for double precision
    """
    if is_single_precision(dtype):
        return MAGNITUDE_CORRECTION_32
    return MAGNITUDE_CORRECTION_64


def phase(value: complex | float) -> complex | float:
    """
    Unit-modulus factor of a scalar: value / |value|, or 1 for zero.

    For real input this is the sign, with sign(0) taken as +1.
    """
    magnitude = abs(value)
    if magnitude == 0:
        return 1.0
    return value / magnitude
