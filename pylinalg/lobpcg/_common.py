"""
Common data types for the truncated eigensolvers.

Contains the frozen parameter payloads that go inside Result[P] envelopes.
Each payload is a pure data container with no computation.

References:
    Knyazev, A. V. (2001). Toward the Optimal Preconditioned Eigensolver:
    Locally Optimal Block Preconditioned Conjugate Gradient Method.
    SIAM Journal on Scientific Computing, 23(2), 517-541.
"""

from dataclasses import dataclass
from typing import Any, Literal

import numpy as np
from numpy.typing import NDArray


# Which end of the spectrum to compute. Ordering is by algebraic value:
# 'largest' returns the largest eigenvalues first, 'smallest' the smallest
# first.
Order = Literal['largest', 'smallest']
ORDERS: tuple[str, ...] = ('largest', 'smallest')

# Residual norm above which a pair produced by the eigenpair iterator is
# considered unusable and the iteration stops.
ABORT_RESIDUAL_NORM = 0.1

# Multiple of eps * ||A||_F**2 below which a residual of the Gram operator
# A^H A is rounding noise; the SVD eigensolver tolerance never goes lower.
GRAM_ROUNDING_FACTOR = 100.0


@dataclass(frozen=True)
class LobpcgParams:
    """
    Parameter payload for a LOBPCG run.

    Holds the best iterate seen (smallest sum of residual norms), which is
    not necessarily the last one.

    Attributes:
        eigenvalues: Real Ritz values sorted by order (k,)
        eigenvectors: Ritz vectors as columns (n x k)
        residual_norms: ||A x_i - lambda_i x_i|| per pair (k,)
        converged: True if every pair fell below the tolerance
        n_iter: Number of subspace iterations performed
    """
    eigenvalues: NDArray[np.floating[Any]]
    eigenvectors: NDArray[np.inexact[Any]]
    residual_norms: NDArray[np.floating[Any]]
    converged: bool
    n_iter: int


@dataclass(frozen=True)
class SVDParams:
    """
    Parameter payload for a truncated SVD.

    The eigenvectors belong to the Gram operator the eigensolver ran on:
    right singular vectors when `normal` is True (A^H A), left singular
    vectors otherwise (A A^H).

    Attributes:
        eigenvalues: Gram eigenvalues clamped at zero, non-increasing (k,)
        eigenvectors: Matching Gram eigenvectors as columns
        normal: True if the Gram operator was A^H A
        cutoff: Eigenvalues at or below this are numerically zero
        converged: Convergence flag of the underlying eigensolver
    """
    eigenvalues: NDArray[np.floating[Any]]
    eigenvectors: NDArray[np.inexact[Any]]
    normal: bool
    cutoff: float
    converged: bool
