"""
Incremental orthogonalization and Krylov subspace methods.

Public API:
    MGS, Householder    - orthogonalizers building an orthonormal basis
                          one vector at a time
    qr()                - online QR decomposition with a dependency strategy
    mgs(), householder() - qr() with the corresponding orthogonalizer
    Arnoldi             - Arnoldi iteration (Krylov basis + Hessenberg matrix)
    arnoldi_mgs(), arnoldi_householder()
    Gmres, gmres()       - GMRES iteration for A x = b
    gmres_mgs(), gmres_householder()
    LinearOperator      - operator interface used by the iterative solvers
"""

from pylinalg.krylov._common import (
    STRATEGIES,
    AppendResult,
    Coefficients,
    Orthogonalizer,
    Strategy,
)
from pylinalg.krylov._mgs import MGS
from pylinalg.krylov._householder import Householder, calc_reflector, reflect
from pylinalg.krylov._arnoldi import Arnoldi, arnoldi_householder, arnoldi_mgs
from pylinalg.krylov._gmres import (
    Gmres,
    GmresStatus,
    apply_givens,
    givens_rotation,
    gmres,
    gmres_householder,
    gmres_mgs,
)
from pylinalg.krylov.operator import (
    FunctionOperator,
    GramOperator,
    LinearOperator,
    MatrixOperator,
    as_operator,
)
from pylinalg.krylov.solution import GmresParams, GmresSolution, QRParams, QRSolution
from pylinalg.krylov.solvers import householder, mgs, qr

__all__ = [
    # Orthogonalizers
    "Orthogonalizer",
    "AppendResult",
    "Coefficients",
    "MGS",
    "Householder",
    "calc_reflector",
    "reflect",
    # QR
    "Strategy",
    "STRATEGIES",
    "qr",
    "mgs",
    "householder",
    "QRParams",
    "QRSolution",
    # Arnoldi
    "Arnoldi",
    "arnoldi_mgs",
    "arnoldi_householder",
    # GMRES
    "Gmres",
    "GmresStatus",
    "GmresParams",
    "GmresSolution",
    "gmres",
    "gmres_mgs",
    "gmres_householder",
    "givens_rotation",
    "apply_givens",
    # Operators
    "LinearOperator",
    "MatrixOperator",
    "FunctionOperator",
    "GramOperator",
    "as_operator",
]
