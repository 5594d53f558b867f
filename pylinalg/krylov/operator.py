"""
Linear operators.

The iterative algorithms never need a matrix, only its action on vectors
or blocks of column vectors. A LinearOperator wraps that action:

    MatrixOperator    dense (or any object with @) matrix
    FunctionOperator  caller-supplied function on n x k blocks
    GramOperator      A^H A or A A^H, applied without forming the product

as_operator() adapts arrays, callables and operators to the interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Literal

import numpy as np
from numpy.typing import ArrayLike, DTypeLike, NDArray

from pylinalg.core.exceptions import DimensionError, ValidationError
from pylinalg.core.validation import check_2d, check_array


class LinearOperator(ABC):
    """Abstract linear map K^n -> K^m given by its action on blocks."""

    @property
    @abstractmethod
    def shape(self) -> tuple[int, int]:
        ...

    @property
    @abstractmethod
    def dtype(self) -> np.dtype:
        ...

    @abstractmethod
    def _apply_block(self, x: NDArray[np.inexact[Any]]) -> NDArray[np.inexact[Any]]:
        ...

    def apply_block(self, x: NDArray[np.inexact[Any]]) -> NDArray[np.inexact[Any]]:
        """
        Apply the operator to every column of an n x k block.

        Raises:
            DimensionError: If the block does not have n rows, or the
                operator returns a block of the wrong shape
        """
        check_2d(x, 'x')
        m, n = self.shape
        if x.shape[0] != n:
            raise DimensionError(
                f"operator of shape {self.shape} applied to block with {x.shape[0]} rows",
                expected=n,
                actual=x.shape[0],
            )
        y = np.asarray(self._apply_block(x))
        if y.shape != (m, x.shape[1]):
            raise DimensionError(
                f"operator returned block of shape {y.shape}, expected {(m, x.shape[1])}",
                expected=(m, x.shape[1]),
                actual=y.shape,
            )
        return y

    def apply(self, x: NDArray[np.inexact[Any]]) -> NDArray[np.inexact[Any]]:
        """Apply the operator to a single vector."""
        x = np.asarray(x)
        if x.ndim != 1:
            raise DimensionError(f"apply expects a 1D vector, got shape {x.shape}")
        return self.apply_block(x[:, np.newaxis])[:, 0]

    def __matmul__(self, x: NDArray[np.inexact[Any]]) -> NDArray[np.inexact[Any]]:
        x = np.asarray(x)
        if x.ndim == 1:
            return self.apply(x)
        return self.apply_block(x)

    def __call__(self, x: NDArray[np.inexact[Any]]) -> NDArray[np.inexact[Any]]:
        return self @ x

    def is_square(self) -> bool:
        m, n = self.shape
        return m == n

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(shape={self.shape}, dtype={self.dtype})"


class MatrixOperator(LinearOperator):
    """Operator backed by an explicit matrix."""

    def __init__(self, matrix: ArrayLike):
        matrix = check_array(matrix, 'matrix')
        check_2d(matrix, 'matrix')
        self._matrix = matrix

    @property
    def matrix(self) -> NDArray[np.inexact[Any]]:
        return self._matrix

    @property
    def shape(self) -> tuple[int, int]:
        return self._matrix.shape

    @property
    def dtype(self) -> np.dtype:
        return self._matrix.dtype

    def _apply_block(self, x):
        return self._matrix @ x


class FunctionOperator(LinearOperator):
    """
    Operator defined by a function mapping an n x k block to A @ block.

    The function must be side-effect free; it may be called many times.
    """

    def __init__(
        self,
        func: Callable[[NDArray[np.inexact[Any]]], ArrayLike],
        n: int,
        dtype: DTypeLike = np.float64,
        m: int | None = None,
    ):
        if n < 1:
            raise ValidationError(f"n: must be at least 1, got {n}")
        self._func = func
        self._shape = (n if m is None else m, n)
        self._dtype = np.dtype(dtype)

    @property
    def shape(self) -> tuple[int, int]:
        return self._shape

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    def _apply_block(self, x):
        return self._func(x)


class GramOperator(LinearOperator):
    """
    Gram operator of a rectangular matrix A (m x n), applied in two steps.

    side='normal' gives A^H A (n x n); side='outer' gives A A^H (m x m).
    """

    def __init__(
        self,
        matrix: ArrayLike,
        side: Literal['normal', 'outer'] = 'normal',
    ):
        if side not in ('normal', 'outer'):
            raise ValidationError(f"Unknown side: {side!r}. Use 'normal' or 'outer'.")
        matrix = check_array(matrix, 'matrix')
        check_2d(matrix, 'matrix')
        self._matrix = matrix
        self._side = side

    @property
    def side(self) -> str:
        return self._side

    @property
    def shape(self) -> tuple[int, int]:
        m, n = self._matrix.shape
        return (n, n) if self._side == 'normal' else (m, m)

    @property
    def dtype(self) -> np.dtype:
        return self._matrix.dtype

    def _apply_block(self, x):
        a = self._matrix
        if self._side == 'normal':
            return a.conj().T @ (a @ x)
        return a @ (a.conj().T @ x)


def as_operator(
    obj: LinearOperator | ArrayLike | Callable,
    n: int | None = None,
    dtype: DTypeLike = np.float64,
) -> LinearOperator:
    """
    Adapt a matrix, callable or operator to the LinearOperator interface.

    Args:
        obj: LinearOperator (returned as is), 2D array-like, or a callable
            on n x k blocks
        n: Size of the operator; required for callables
        dtype: Element dtype for callables

    Raises:
        ValidationError: If a callable is given without n
    """
    if isinstance(obj, LinearOperator):
        return obj
    if callable(obj) and not isinstance(obj, np.ndarray):
        if n is None:
            raise ValidationError("as_operator: n is required when the operator is a function")
        return FunctionOperator(obj, n, dtype)
    return MatrixOperator(obj)
