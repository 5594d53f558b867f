"""
Modified Gram-Schmidt orthogonalizer.

Keeps the basis as explicit unit vectors q_0 .. q_{m-1}. A new vector is
projected against each stored vector in turn (the "modified" ordering,
which re-reads the partially orthogonalized vector at every step), at a
cost of O(m * dim) per append.
"""

from typing import Any

import numpy as np
from numpy.typing import NDArray

from pylinalg.core.exceptions import ValidationError
from pylinalg.core.validation import check_vector_length
from pylinalg.krylov._common import AppendResult, Coefficients, Orthogonalizer


class MGS(Orthogonalizer):
    """
    Iterative orthogonalizer using the modified Gram-Schmidt procedure.

    Example:
        >>> mgs = MGS(3, tol=1e-9)
        >>> mgs.append([0.0, 1.0, 0.0]).coefficients
        array([1.])
        >>> mgs.append([1.0, 1.0, 0.0]).coefficients
        array([1., 1.])
        >>> res = mgs.append([1.0, 2.0, 0.0])
        >>> res.is_dependent, res.coefficients
        (True, array([2., 1., 0.]))
    """

    def __init__(
        self,
        dim: int,
        tol: float | None = None,
        dtype: np.dtype | type | None = None,
    ):
        super().__init__(dim, tol, dtype)
        self._q: list[NDArray[np.inexact[Any]]] = []

    def __len__(self) -> int:
        return len(self._q)

    def decompose(self, a: NDArray[np.inexact[Any]]) -> Coefficients:
        check_vector_length(a, self._dim, 'a')
        self._check_inplace(a)
        coef = np.zeros(len(self._q) + 1, dtype=np.result_type(a.dtype, self.dtype))
        for i, q in enumerate(self._q):
            c = np.vdot(q, a)
            a -= c * q
            coef[i] = c
        coef[-1] = np.linalg.norm(a)
        return coef

    def _extend(self, a: NDArray[np.inexact[Any]], rtol: float) -> AppendResult:
        coef = self.decompose(a)
        nrm = coef[-1].real
        if nrm < rtol or nrm == 0:
            return AppendResult(coefficients=coef, is_dependent=True)
        a /= nrm
        self._q.append(a.copy())
        return AppendResult(coefficients=coef, is_dependent=False)

    def get_q(self) -> NDArray[np.inexact[Any]]:
        if not self._q:
            raise ValidationError("get_q: the basis is empty, append a vector first")
        return np.column_stack(self._q)
