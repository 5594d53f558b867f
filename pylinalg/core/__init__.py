"""
Core infrastructure for PyLinalg.

This module provides shared abstractions and utilities used by the
domain-specific submodules (krylov, lobpcg).

Key components:
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    random: Seeded random test matrices
    compute: Timing, precision constants, dense LAPACK kernels
"""

from pylinalg.core.result import Result
from pylinalg.core.exceptions import (
    PyLinalgError,
    ValidationError,
    DimensionError,
    NumericalError,
    RankDeficiencyError,
    NotPositiveDefiniteError,
    DenseEigensolverError,
    ConvergenceError,
)

__all__ = [
    # Result
    "Result",
    # Exceptions
    "PyLinalgError",
    "ValidationError",
    "DimensionError",
    "NumericalError",
    "RankDeficiencyError",
    "NotPositiveDefiniteError",
    "DenseEigensolverError",
    "ConvergenceError",
]
