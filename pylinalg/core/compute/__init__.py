"""
Shared compute infrastructure for PyLinalg.

This module provides timing utilities, precision constants and the dense
linear algebra kernels shared by the iterative algorithms.

Submodules:
    timing: Execution timing utilities
    precision: Numerical precision constants and utilities
    tolerances: Precision-dependent tolerance tiers
    linalg: Dense LAPACK kernels (eigh, Cholesky, QR)
"""

from pylinalg.core.compute.timing import Timer, timed

__all__ = [
    # Timing
    "Timer",
    "timed",
]
