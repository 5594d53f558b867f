"""
Exception hierarchy for PyLinalg.

All exceptions inherit from PyLinalgError to allow catching any
library-specific error. Domain-specific exceptions should inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
    - Expected numerical conditions (a linearly dependent vector, an
      eigensolver that ran out of iterations) are returned as data,
      not raised
"""


class PyLinalgError(Exception):
    """Base exception for all PyLinalg errors."""
    pass


class ValidationError(PyLinalgError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when a vector length does not match the dimension an
    orthogonalizer was built for, when an operator is not square, or
    when a block has the wrong number of rows.

    Attributes:
        expected: Expected length or shape, if known
        actual: Actual length or shape, if known
    """

    def __init__(
        self,
        message: str,
        expected: int | tuple[int, ...] | None = None,
        actual: int | tuple[int, ...] | None = None
    ):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class NumericalError(PyLinalgError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class RankDeficiencyError(NumericalError):
    """
    A block of vectors does not have the required number of independent
    directions.

    Raised when the initial block handed to the eigensolver collapses
    below the requested number of eigenpairs after orthonormalization.
    This is a setup failure and is distinct from non-convergence.

    Attributes:
        matrix_name: Name/description of the problematic block
        rank: Number of independent directions found
        expected_rank: Number of directions required
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.rank = rank
        self.expected_rank = expected_rank


class NotPositiveDefiniteError(NumericalError):
    """
    Matrix is not positive definite.

    Raised when an operation requires a positive definite matrix
    (e.g., Cholesky factorization of a Gram matrix) but the matrix fails
    this requirement.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        min_eigenvalue: Minimum eigenvalue, if computed
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        min_eigenvalue: float | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.min_eigenvalue = min_eigenvalue


class DenseEigensolverError(NumericalError):
    """
    The dense symmetric/Hermitian eigensolver (LAPACK) failed.

    Raised when the small projected eigenproblem of an iterative solver
    cannot be diagonalized, before any usable iterate exists.

    Attributes:
        matrix_name: Name/description of the projected matrix
        size: Order of the projected problem
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        size: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.size = size


class ConvergenceError(PyLinalgError):
    """
    Iterative algorithm failed to converge.

    Only raised when the caller asks for strict behavior. By default an
    eigensolver that exhausts its iteration budget returns its best
    partial result with converged=False.

    Attributes:
        iterations: Number of iterations completed
        final_change: Final residual norm or change
        reason: Why convergence failed (e.g., 'max_iterations', 'stagnation')
        threshold: The convergence threshold that was not met
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        final_change: float | None = None,
        reason: str | None = None,
        threshold: float | None = None
    ):
        super().__init__(message)
        self.iterations = iterations
        self.final_change = final_change
        self.reason = reason
        self.threshold = threshold
