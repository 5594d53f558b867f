"""
Shared types for incremental orthogonalization.

Defines the Orthogonalizer interface implemented by the modified
Gram-Schmidt and Householder strategies, the AppendResult returned by
every append, and the Strategy choices of the online QR driver.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pylinalg.core.compute.tolerances import select_tolerance
from pylinalg.core.exceptions import ValidationError
from pylinalg.core.validation import check_array, check_vector_length


# Policy for linearly dependent vectors in the online QR driver.
#   'terminate': stop consuming input at the first dependent vector
#   'skip':      drop the dependent vector and continue
#   'full':      keep its coefficients as a column of R (R becomes
#                non-square with a zero where its diagonal would be)
Strategy = Literal['terminate', 'skip', 'full']
STRATEGIES: tuple[str, ...] = ('terminate', 'skip', 'full')

# Coefficients of a vector against the current basis. Length is
# len(basis) + 1; the last entry is the residual norm.
Coefficients = NDArray[np.inexact[Any]]


@dataclass(frozen=True)
class AppendResult:
    """
    Outcome of Orthogonalizer.append.

    A dependent vector is an expected outcome, not an error: the basis
    was not extended, and the coefficients are still returned so the
    caller can use them (e.g. as a zero-padded column of R).

    Attributes:
        coefficients: Projection coefficients onto the basis as it was
            before the call, followed by the residual norm
        is_dependent: True if the residual fell below the tolerance and
            the basis was left unchanged
    """
    coefficients: Coefficients
    is_dependent: bool

    @property
    def is_added(self) -> bool:
        """True if the basis grew by one vector."""
        return not self.is_dependent

    @property
    def residual_norm(self) -> float:
        """Norm of the component orthogonal to the previous basis."""
        return float(abs(self.coefficients[-1]))


class Orthogonalizer(ABC):
    """
    Incrementally built orthonormal basis of a subspace of K^dim.

    The basis starts empty, grows by exactly one vector per successful
    append and never shrinks. Vectors whose length differs from `dim`
    are rejected with DimensionError.

    Subclasses implement `decompose`, `_extend` and `get_q`; the
    public append/orthogonalize operations are shared.
    """

    def __init__(
        self,
        dim: int,
        tol: float | None = None,
        dtype: np.dtype | type | None = None,
    ):
        """
        Args:
            dim: Dimension of the ambient space
            tol: Residual norm below which an appended vector counts as
                linearly dependent. None selects a tolerance from the
                element precision (1e-9 for double, 1e-5 for single).
            dtype: Element dtype of the basis. None takes the dtype of the
                first appended vector.
        """
        if dim < 0:
            raise ValidationError(f"dim: must be non-negative, got {dim}")
        if tol is not None and tol < 0:
            raise ValidationError(f"tol: must be non-negative, got {tol}")
        self._dim = int(dim)
        self._tol = tol
        self._dtype = np.dtype(dtype) if dtype is not None else None

    # === Size ===

    @property
    def dim(self) -> int:
        """Dimension of input vectors."""
        return self._dim

    @abstractmethod
    def __len__(self) -> int:
        """Number of basis vectors."""
        ...

    def len(self) -> int:
        """Number of basis vectors."""
        return len(self)

    def is_full(self) -> bool:
        """True if the basis spans the entire space."""
        return len(self) == self._dim

    def is_empty(self) -> bool:
        return len(self) == 0

    @property
    def tolerance(self) -> float:
        """Dependence tolerance used when append is called without rtol."""
        if self._tol is not None:
            return self._tol
        return select_tolerance(self.dtype).rtol

    @property
    def dtype(self) -> np.dtype:
        """Element dtype of the basis (float64 until a vector is seen)."""
        return self._dtype if self._dtype is not None else np.dtype(np.float64)

    # === Projection ===

    @abstractmethod
    def decompose(self, a: NDArray[np.inexact[Any]]) -> Coefficients:
        """
        Split `a` into its components in and orthogonal to the basis.

        `a` is overwritten with the residual (the orthogonal component).

        Args:
            a: Writable vector of length dim

        Returns:
            Coefficients to the current basis; the last entry is the
            residual norm
        """
        ...

    def coeff(self, a: ArrayLike) -> Coefficients:
        """Coefficients of `a` to the current basis; `a` is not modified."""
        work = self._prepare(a)
        return self.decompose(work)

    def orthogonalize(self, a: NDArray[np.inexact[Any]]) -> float:
        """
        Project `a` onto the orthogonal complement of the basis, in place.

        Args:
            a: Writable vector of length dim; becomes the residual

        Returns:
            L2 norm of the residual

        Raises:
            DimensionError: If len(a) != dim
            ValidationError: If a's dtype cannot hold the residual (a
                real vector against a complex basis)
        """
        coef = self.decompose(a)
        return float(abs(coef[-1]))

    # === Growth ===

    def append(self, a: ArrayLike, rtol: float | None = None) -> AppendResult:
        """
        Extend the basis with `a` unless it is linearly dependent.

        The input is copied; the caller's array is never stored or
        modified.

        Args:
            a: Vector of length dim
            rtol: Dependence threshold on the residual norm. Defaults to
                the tolerance given at construction.

        Returns:
            AppendResult; is_dependent is True when the residual norm is
            below rtol (or exactly zero) and the basis is unchanged
        """
        work = self._prepare(a)
        return self.div_append(work, rtol)

    def div_append(
        self,
        a: NDArray[np.inexact[Any]],
        rtol: float | None = None,
    ) -> AppendResult:
        """
        Like append, but works in place on `a`.

        On success `a` holds the new unit basis vector; when dependent it
        holds the (unnormalized) residual.
        """
        check_vector_length(a, self._dim, 'a')
        self._check_inplace(a)
        self._observe_dtype(a.dtype)
        threshold = self.tolerance if rtol is None else rtol
        return self._extend(a, threshold)

    @abstractmethod
    def _extend(self, a: NDArray[np.inexact[Any]], rtol: float) -> AppendResult:
        ...

    @abstractmethod
    def get_q(self) -> NDArray[np.inexact[Any]]:
        """
        Materialize the basis as a dim x len matrix with orthonormal columns.

        Raises:
            ValidationError: If the basis is empty
        """
        ...

    # === Helpers ===

    def _prepare(self, a: ArrayLike) -> NDArray[np.inexact[Any]]:
        """Owned, dtype-promoted copy of an input vector."""
        arr = check_array(a, 'a')
        check_vector_length(arr, self._dim, 'a')
        dtype = arr.dtype if self._dtype is None else np.result_type(self._dtype, arr.dtype)
        return np.array(arr, dtype=dtype, copy=True)

    def _check_inplace(self, a: NDArray[np.inexact[Any]]) -> None:
        """Reject a vector whose dtype cannot hold its own residual."""
        if not np.issubdtype(a.dtype, np.inexact):
            raise ValidationError(
                f"a: in-place operations need a floating point vector, got dtype {a.dtype}"
            )
        if self._dtype is not None and not np.can_cast(self._dtype, a.dtype, casting='same_kind'):
            raise ValidationError(
                f"a: dtype {a.dtype} cannot hold the residual against a {self._dtype} "
                f"basis; pass a {np.result_type(self._dtype, a.dtype)} vector"
            )

    def _observe_dtype(self, dtype: np.dtype) -> None:
        if self._dtype is None:
            self._dtype = np.dtype(dtype)
        else:
            self._dtype = np.result_type(self._dtype, dtype)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(dim={self._dim}, len={len(self)}, "
            f"tol={self.tolerance:g})"
        )
