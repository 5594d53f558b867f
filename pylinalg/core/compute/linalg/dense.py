"""
Dense LAPACK kernels.

Thin wrappers over SciPy/NumPy LAPACK drivers used by the iterative
algorithms for their small dense subproblems (the projected eigenproblem
of LOBPCG, Cholesky factors of Gram matrices and the triangular solve of
GMRES).

All functions follow these conventions:
    - Each operation returns a plain array or a structured result dataclass
    - LAPACK failures are translated into the PyLinalg exception hierarchy
      immediately, with the matrix name and size attached
"""

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy import linalg as sp_linalg

from pylinalg.core.exceptions import (
    DenseEigensolverError,
    NotPositiveDefiniteError,
    RankDeficiencyError,
)


@dataclass(frozen=True)
class EighResult:
    """
    Result of a dense symmetric/Hermitian eigendecomposition.

    Attributes:
        eigenvalues: Real eigenvalues in ascending order (k,)
        eigenvectors: Eigenvectors as columns (n x k)
    """
    eigenvalues: NDArray[np.floating[Any]]
    eigenvectors: NDArray[np.inexact[Any]]


@dataclass(frozen=True)
class CholeskyFactor:
    """
    Lower Cholesky factor of a Hermitian positive definite matrix.

    Attributes:
        L: Lower triangular factor with A = L L^H
    """
    L: NDArray[np.inexact[Any]]

    def solve(self, b: NDArray[np.inexact[Any]]) -> NDArray[np.inexact[Any]]:
        """Solve A x = b using the stored factor."""
        return sp_linalg.cho_solve((self.L, True), b)


def eigh_cpu(
    a: NDArray[np.inexact[Any]],
    b: NDArray[np.inexact[Any]] | None = None,
    matrix_name: str = 'A',
) -> EighResult:
    """
    Symmetric/Hermitian (generalized) eigendecomposition via LAPACK.

    Solves A x = lambda x, or A x = lambda B x when B is given (B must be
    Hermitian positive definite). Only the upper triangle is referenced.

    Args:
        a: Hermitian matrix (n x n)
        b: Optional Hermitian positive definite matrix (n x n)
        matrix_name: Name used in error messages

    Returns:
        EighResult with ascending eigenvalues

    Raises:
        NotPositiveDefiniteError: If B is not positive definite
        DenseEigensolverError: If LAPACK fails to converge
    """
    try:
        vals, vecs = sp_linalg.eigh(a, b, lower=False, check_finite=True)
    except (np.linalg.LinAlgError, ValueError) as e:
        if b is not None and 'positive definite' in str(e):
            raise NotPositiveDefiniteError(
                f"{matrix_name}: metric matrix of the generalized eigenproblem "
                f"is not positive definite: {e}",
                matrix_name=matrix_name,
            ) from e
        raise DenseEigensolverError(
            f"{matrix_name}: dense eigensolver failed on a {a.shape[0]}x{a.shape[0]} "
            f"problem: {e}",
            matrix_name=matrix_name,
            size=a.shape[0],
        ) from e
    return EighResult(eigenvalues=vals, eigenvectors=vecs)


def cholesky_cpu(
    a: NDArray[np.inexact[Any]],
    matrix_name: str = 'A',
) -> CholeskyFactor:
    """
    Lower Cholesky factorization A = L L^H via LAPACK.

    Raises:
        NotPositiveDefiniteError: If A is not positive definite
    """
    try:
        L = sp_linalg.cholesky(a, lower=True, check_finite=True)
    except (np.linalg.LinAlgError, ValueError) as e:
        raise NotPositiveDefiniteError(
            f"{matrix_name}: Cholesky factorization failed: {e}",
            matrix_name=matrix_name,
        ) from e
    return CholeskyFactor(L=L)



def solve_upper_triangular_cpu(
    r: NDArray[np.inexact[Any]],
    b: NDArray[np.inexact[Any]],
    matrix_name: str = 'R',
) -> NDArray[np.inexact[Any]]:
    """
    Back substitution R x = b for upper triangular R via LAPACK.

    Raises:
        RankDeficiencyError: If R has a zero on its diagonal
    """
    try:
        return sp_linalg.solve_triangular(r, b, lower=False, check_finite=True)
    except np.linalg.LinAlgError as e:
        n = r.shape[0]
        raise RankDeficiencyError(
            f"{matrix_name}: upper triangular system is singular: {e}",
            matrix_name=matrix_name,
            rank=int(np.count_nonzero(np.diag(r))),
            expected_rank=n,
        ) from e
