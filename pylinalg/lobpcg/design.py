"""
Problem validation for the truncated eigensolvers.

EigenDesign validates a symmetric/Hermitian eigenproblem given as a
dense matrix, a callable or a LinearOperator. SVDDesign validates a
rectangular matrix and picks the cheaper Gram operator for it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
from numpy.typing import ArrayLike, DTypeLike, NDArray

from pylinalg.core.compute.precision import machine_epsilon
from pylinalg.core.validation import (
    check_2d,
    check_array,
    check_finite,
    check_hermitian,
)
from pylinalg.core.exceptions import DimensionError, ValidationError
from pylinalg.krylov import GramOperator, LinearOperator, MatrixOperator, as_operator


@dataclass(frozen=True)
class EigenDesign:
    """Validated symmetric/Hermitian eigenproblem.

    Attributes:
        operator: The problem as a LinearOperator.
        n: Problem size.
        dtype: Element dtype of the operator.
        is_dense: True if the problem was given as an explicit matrix.
    """
    operator: LinearOperator
    n: int
    dtype: np.dtype
    is_dense: bool

    @staticmethod
    def validate(
        problem: LinearOperator | ArrayLike | Callable,
        n: int | None = None,
        dtype: DTypeLike = np.float64,
    ) -> 'EigenDesign':
        """Validate a problem and create an EigenDesign.

        Dense matrices are checked for finiteness and symmetry. Operators
        and callables are trusted to be Hermitian.

        Args:
            problem: Matrix, callable on n x k blocks, or LinearOperator.
            n: Problem size; required for callables.
            dtype: Element dtype for callables.

        Raises:
            ValidationError: If a dense matrix is not Hermitian or not
                finite, or a callable comes without n.
            DimensionError: If the operator is not square.
        """
        is_dense = not isinstance(problem, LinearOperator) and not (
            callable(problem) and not isinstance(problem, np.ndarray)
        )
        if is_dense:
            matrix = check_array(problem, 'problem')
            check_finite(matrix, 'problem')
            check_hermitian(matrix, 'problem', atol=np.sqrt(machine_epsilon(matrix.dtype)))
            operator: LinearOperator = MatrixOperator(matrix)
        else:
            operator = as_operator(problem, n=n, dtype=dtype)
            if isinstance(operator, MatrixOperator):
                is_dense = True

        if not operator.is_square():
            raise DimensionError(
                f"problem: eigenproblems need a square operator, got shape {operator.shape}",
                expected=(operator.shape[1], operator.shape[1]),
                actual=operator.shape,
            )
        size = operator.shape[0]
        if n is not None and n != size:
            raise DimensionError(
                f"problem: size {size} does not match n={n}",
                expected=n,
                actual=size,
            )
        if size < 1:
            raise ValidationError("problem: empty operator")

        return EigenDesign(
            operator=operator,
            n=size,
            dtype=np.dtype(operator.dtype),
            is_dense=is_dense,
        )


@dataclass(frozen=True)
class SVDDesign:
    """Validated truncated SVD problem.

    Attributes:
        matrix: The decomposed matrix A (m x n).
        m: Number of rows.
        n: Number of columns.
        normal: True if the eigensolver runs on A^H A (n <= m), False for
            A A^H.
        gram: The chosen Gram operator.
    """
    matrix: NDArray[np.inexact[Any]]
    m: int
    n: int
    normal: bool
    gram: GramOperator

    @property
    def size(self) -> int:
        """Size of the Gram operator."""
        return self.gram.shape[0]

    @property
    def dtype(self) -> np.dtype:
        return self.matrix.dtype

    @property
    def frobenius_norm(self) -> float:
        """||A||_F, an upper bound on the largest singular value."""
        return float(np.linalg.norm(self.matrix))

    @staticmethod
    def validate(matrix: ArrayLike) -> 'SVDDesign':
        """Validate a matrix and create an SVDDesign.

        Raises:
            ValidationError: If the matrix is empty or not finite.
            DimensionError: If the input is not 2D.
        """
        matrix = check_array(matrix, 'matrix')
        check_2d(matrix, 'matrix')
        check_finite(matrix, 'matrix')
        m, n = matrix.shape
        if m == 0 or n == 0:
            raise ValidationError(f"matrix: empty matrix with shape {matrix.shape}")
        normal = n <= m
        return SVDDesign(
            matrix=matrix,
            m=m,
            n=n,
            normal=normal,
            gram=GramOperator(matrix, 'normal' if normal else 'outer'),
        )
