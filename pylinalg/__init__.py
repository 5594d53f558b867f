"""
PyLinalg: iterative linear algebra building blocks for NumPy.

Incremental orthogonalization, online QR, Arnoldi iteration and
truncated eigen/singular value decompositions for dense matrices and
matrix-free operators.

Submodules:
    krylov: Orthogonalizers (MGS, Householder), online QR, Arnoldi
    lobpcg: LOBPCG, truncated eigendecomposition and SVD
"""

__version__ = "0.1.0"

from pylinalg import krylov
from pylinalg import lobpcg

__all__ = [
    "__version__",
    "krylov",
    "lobpcg",
]
