"""
Tolerance tiers for numerical validation.

Defines precision expectations per element precision:
- FP64 (float64/complex128): near machine precision
- FP32 (float32/complex64): relaxed for single-precision arithmetic

Used by the test suite and to pick the default dependence tolerance of
orthogonalizers when the caller does not supply one.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import DTypeLike

from pylinalg.core.compute.precision import is_single_precision


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Double precision: orthogonality and QR reconstruction to ~1e-9
FP64 = ToleranceTier(
    rtol=1e-9,
    atol=1e-12,
    name='fp64',
    description='double precision (float64, complex128)',
)

# Single precision
FP32 = ToleranceTier(
    rtol=1e-5,
    atol=1e-6,
    name='fp32',
    description='single precision (float32, complex64)',
)


def select_tolerance(dtype: DTypeLike = np.float64) -> ToleranceTier:
    """Select appropriate tolerance tier for a given element dtype."""
    if is_single_precision(dtype):
        return FP32
    return FP64
