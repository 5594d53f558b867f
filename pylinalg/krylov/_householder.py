"""
Householder reflection orthogonalizer.

The basis is stored implicitly as reflectors v_0 .. v_{m-1}; reflector
v_k acts on the subrange [k, dim) only, P_k = I - 2 v_k v_k^H. Q is never
formed unless asked for.

Because each reflection leaves the entries below index k alone, a near-zero
residual component cannot feed rounding error back into components that
are already fixed. This makes the Householder strategy the more robust
choice for rank-deficient input sequences.

References:
    Golub, G. H., & Van Loan, C. F. (2013). Matrix Computations (4th ed.),
    Section 5.1.
"""

from typing import Any

import numpy as np
from numpy.typing import NDArray

from pylinalg.core.compute.precision import phase
from pylinalg.core.exceptions import DimensionError, ValidationError
from pylinalg.core.validation import check_vector_length
from pylinalg.krylov._common import AppendResult, Coefficients, Orthogonalizer


def calc_reflector(x: NDArray[np.inexact[Any]]) -> None:
    """
    Turn `x` into the unit reflector w with (I - 2 w w^H) x = alpha e_0.

    alpha = -phase(x_0) * |x| is chosen with the sign opposite to x_0 so
    that x_0 - alpha involves no cancellation.

    Args:
        x: Writable non-zero vector, overwritten in place
    """
    if x.shape[0] == 0:
        raise ValidationError("calc_reflector: empty vector")
    norm = np.linalg.norm(x)
    alpha = -phase(x[0]) * norm
    x[0] -= alpha
    x /= np.linalg.norm(x)


def reflect(w: NDArray[np.inexact[Any]], a: NDArray[np.inexact[Any]]) -> None:
    """
    Apply the reflection P = I - 2 w w^H to `a` in place.

    Raises:
        DimensionError: If the sizes of w and a differ
    """
    if w.shape != a.shape:
        raise DimensionError(
            f"reflect: reflector shape {w.shape} does not match {a.shape}",
            expected=w.shape,
            actual=a.shape,
        )
    c = 2 * np.vdot(w, a)
    a -= c * w


class Householder(Orthogonalizer):
    """
    Iterative orthogonalizer using Householder reflections.

    Produces the same Q and R as MGS (positive diagonal of R) for
    well-conditioned input: the phase of each reflection's diagonal is
    folded into the corresponding column of Q.
    """

    def __init__(
        self,
        dim: int,
        tol: float | None = None,
        dtype: np.dtype | type | None = None,
    ):
        super().__init__(dim, tol, dtype)
        # Full-length reflectors; entries below index k are zero
        self._v: list[NDArray[np.inexact[Any]]] = []
        # Phase of R's raw diagonal entry per reflector
        self._phases: list[complex | float] = []

    def __len__(self) -> int:
        return len(self._v)

    # === Reflections ===

    def _fundamental_reflection(self, k: int, a: NDArray[np.inexact[Any]]) -> None:
        reflect(self._v[k][k:], a[k:])

    def forward_reflection(self, a: NDArray[np.inexact[Any]]) -> None:
        """Apply P = P_{l-1} ... P_0 to `a` in place."""
        check_vector_length(a, self._dim, 'a')
        self._check_inplace(a)
        for k in range(len(self._v)):
            self._fundamental_reflection(k, a)

    def backward_reflection(self, a: NDArray[np.inexact[Any]]) -> None:
        """Apply P = P_0 ... P_{l-1} to `a` in place."""
        check_vector_length(a, self._dim, 'a')
        self._check_inplace(a)
        for k in reversed(range(len(self._v))):
            self._fundamental_reflection(k, a)

    # === Coefficients ===

    def _compose_coefficients(self, a: NDArray[np.inexact[Any]]) -> Coefficients:
        """Coefficients from an already forward-reflected vector."""
        k = len(self._v)
        res = np.linalg.norm(a[k:])
        coef = np.zeros(k + 1, dtype=np.result_type(a.dtype, self.dtype))
        if k:
            coef[:k] = a[:k] * np.conj(np.asarray(self._phases))
        coef[k] = res
        return coef

    def _construct_residual(self, a: NDArray[np.inexact[Any]]) -> None:
        """Map a forward-reflected vector back to its residual."""
        k = len(self._v)
        a[:k] = 0
        self.backward_reflection(a)

    def decompose(self, a: NDArray[np.inexact[Any]]) -> Coefficients:
        self.forward_reflection(a)
        coef = self._compose_coefficients(a)
        self._construct_residual(a)
        return coef

    def coeff(self, a) -> Coefficients:
        work = self._prepare(a)
        self.forward_reflection(work)
        return self._compose_coefficients(work)

    def _extend(self, a: NDArray[np.inexact[Any]], rtol: float) -> AppendResult:
        k = len(self._v)
        self.forward_reflection(a)
        coef = self._compose_coefficients(a)
        nrm = coef[k].real
        if nrm < rtol or nrm == 0:
            self._construct_residual(a)
            return AppendResult(coefficients=coef, is_dependent=True)

        alpha = -phase(a[k]) * nrm
        reflector = np.zeros(self._dim, dtype=a.dtype)
        reflector[k:] = a[k:]
        calc_reflector(reflector[k:])
        self._v.append(reflector)
        self._phases.append(phase(alpha))

        # Leave the new unit basis vector in `a`
        a[:] = 0
        a[k] = self._phases[k]
        self.backward_reflection(a)
        return AppendResult(coefficients=coef, is_dependent=False)

    def get_q(self) -> NDArray[np.inexact[Any]]:
        if not self._v:
            raise ValidationError("get_q: the basis is empty, append a vector first")
        dtype = np.result_type(self.dtype, *(np.asarray(p).dtype for p in self._phases))
        q = np.zeros((self._dim, len(self._v)), dtype=dtype)
        for i in range(len(self._v)):
            col = q[:, i]
            col[i] = self._phases[i]
            self.backward_reflection(col)
        return q
