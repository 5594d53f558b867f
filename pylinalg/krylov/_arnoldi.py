"""
Arnoldi iteration.

Builds an orthonormal basis Q of the Krylov subspace
span{v, A v, A^2 v, ...} together with the upper Hessenberg matrix H of
the projected operator, so that A Q = Q H once the subspace is invariant.
Works for non-symmetric operators; the orthogonalization strategy is
pluggable.

References:
    Saad, Y. (2011). Numerical Methods for Large Eigenvalue Problems
    (2nd ed.), Section 6.2.
"""

from __future__ import annotations

from typing import Any, Callable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pylinalg.core.exceptions import ValidationError
from pylinalg.core.validation import check_array, check_vector_length
from pylinalg.krylov._common import Coefficients, Orthogonalizer
from pylinalg.krylov._householder import Householder
from pylinalg.krylov._mgs import MGS
from pylinalg.krylov.operator import LinearOperator, as_operator


class Arnoldi:
    """
    Arnoldi iteration as a Python iterator.

    Each step applies the operator to the newest basis vector and
    appends the result to the orthogonalizer. A step yields the new
    column of H. Iteration ends when the image is linearly dependent on
    the basis (the Krylov subspace is invariant) or the basis is full;
    once ended it stays ended.

    Example:
        >>> arnoldi = Arnoldi(a, v, MGS(len(v), tol=1e-9))
        >>> for h_col in arnoldi:
        ...     pass
        >>> Q, H = arnoldi.complete()
    """

    def __init__(
        self,
        a: LinearOperator | ArrayLike | Callable,
        v: ArrayLike,
        ortho: Orthogonalizer,
    ):
        """
        Args:
            a: Square operator (matrix, function on blocks, LinearOperator)
            v: Starting vector (any non-zero scale)
            ortho: Fresh orthogonalizer of dimension len(v), tolerance < 1
        """
        v = np.array(check_array(v, 'v'), copy=True)
        if not ortho.is_empty():
            raise ValidationError(
                f"Arnoldi: orthogonalizer must be empty, it holds {len(ortho)} vectors"
            )
        if ortho.tolerance >= 1:
            raise ValidationError(
                f"Arnoldi: orthogonalizer tolerance must be below 1, got {ortho.tolerance}"
            )
        check_vector_length(v, ortho.dim, 'v')
        self._a = as_operator(a, n=ortho.dim, dtype=v.dtype)
        if not self._a.is_square() or self._a.shape[0] != ortho.dim:
            raise ValidationError(
                f"Arnoldi: operator shape {self._a.shape} does not match dimension {ortho.dim}"
            )

        # Normalize before appending since |v| may be below the tolerance
        norm = np.linalg.norm(v)
        if norm == 0:
            raise ValidationError("Arnoldi: starting vector is zero")
        v = v / norm
        ortho.append(v)

        self._v = v
        self._ortho = ortho
        self._h: list[Coefficients] = []
        self._done = False

    @property
    def dim(self) -> int:
        """Dimension of the Krylov subspace built so far."""
        return len(self._ortho)

    @property
    def invariant(self) -> bool:
        """True once the iteration has ended."""
        return self._done

    def __iter__(self) -> Arnoldi:
        return self

    def __next__(self) -> Coefficients:
        if self._done:
            raise StopIteration
        w = self._a.apply(self._v)
        w = np.array(w, dtype=np.result_type(w.dtype, self._v.dtype), copy=True)
        if self._ortho.is_full():
            # Final column of H; the residual is zero up to rounding
            self._h.append(self._ortho.decompose(w))
            self._done = True
            raise StopIteration
        res = self._ortho.div_append(w)
        self._h.append(res.coefficients)
        if res.is_dependent:
            self._done = True
            raise StopIteration
        self._v = w
        return res.coefficients

    def complete(self) -> tuple[NDArray[np.inexact[Any]], NDArray[np.inexact[Any]]]:
        """
        Run the iteration to the end.

        Returns:
            (Q, H): Q is n x m with orthonormal columns, H is the m x m
            upper Hessenberg matrix with A Q = Q H
        """
        for _ in self:
            pass
        q = self._ortho.get_q()
        m = len(self._h)
        dtype = np.result_type(q.dtype, *(c.dtype for c in self._h))
        h = np.zeros((m, m), dtype=dtype)
        for i, col in enumerate(self._h):
            rows = min(m, i + 2)
            h[:rows, i] = col[:rows]
        return q, h


def arnoldi_mgs(
    a: LinearOperator | ArrayLike | Callable,
    v: ArrayLike,
    tol: float | None = None,
) -> tuple[NDArray[np.inexact[Any]], NDArray[np.inexact[Any]]]:
    """Arnoldi iteration to invariance with the modified Gram-Schmidt orthogonalizer."""
    v = check_array(v, 'v')
    return Arnoldi(a, v, MGS(v.shape[0], tol)).complete()


def arnoldi_householder(
    a: LinearOperator | ArrayLike | Callable,
    v: ArrayLike,
    tol: float | None = None,
) -> tuple[NDArray[np.inexact[Any]], NDArray[np.inexact[Any]]]:
    """Arnoldi iteration to invariance with the Householder orthogonalizer."""
    v = check_array(v, 'v')
    return Arnoldi(a, v, Householder(v.shape[0], tol)).complete()
