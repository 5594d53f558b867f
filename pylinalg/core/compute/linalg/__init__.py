"""
Dense linear algebra kernels for PyLinalg.

All functions follow these conventions:
    - CPU functions use NumPy/SciPy (LAPACK under the hood)
    - Each operation returns a structured result dataclass or array
    - Errors are raised immediately with clear messages

Submodules:
    dense: eigh, Cholesky, triangular solve
"""

from pylinalg.core.compute.linalg.dense import (
    CholeskyFactor,
    EighResult,
    cholesky_cpu,
    eigh_cpu,
    solve_upper_triangular_cpu,
)

__all__ = [
    "CholeskyFactor",
    "EighResult",
    "cholesky_cpu",
    "eigh_cpu",
    "solve_upper_triangular_cpu",
]
