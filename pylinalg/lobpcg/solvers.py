"""
Truncated eigensolver and truncated SVD.

Public API:
    TruncatedEig(problem, order, ...)   - k extreme eigenpairs of a
                                          symmetric/Hermitian operator
    TruncatedEigIterator                - eigenpairs one at a time
    TruncatedSVD(matrix, order, ...)    - k extreme singular triplets
"""

from __future__ import annotations

import copy
import warnings
from collections import deque
from typing import Any, Callable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pylinalg.core.compute.precision import machine_epsilon, magnitude_correction
from pylinalg.core.exceptions import (
    ConvergenceError,
    DenseEigensolverError,
    DimensionError,
    NotPositiveDefiniteError,
    RankDeficiencyError,
    ValidationError,
)
from pylinalg.core.random import RandomState, as_generator, random_matrix
from pylinalg.core.result import Result
from pylinalg.core.validation import (
    check_2d,
    check_array,
    check_choice,
    check_finite,
    check_positive_int,
)
from pylinalg.krylov import LinearOperator
from pylinalg.lobpcg._common import (
    ABORT_RESIDUAL_NORM,
    GRAM_ROUNDING_FACTOR,
    ORDERS,
    Order,
    SVDParams,
)
from pylinalg.lobpcg._lobpcg import lobpcg
from pylinalg.lobpcg.design import EigenDesign, SVDDesign
from pylinalg.lobpcg.solution import EigSolution, SVDSolution


def _check_tol(tol: float) -> float:
    if not np.isfinite(tol) or tol < 0:
        raise ValidationError(f"tol: must be a non-negative finite number, got {tol}")
    return float(tol)


def _check_max_iter(max_iter: int | None) -> int | None:
    if max_iter is None:
        return None
    if isinstance(max_iter, bool) or not isinstance(max_iter, (int, np.integer)):
        raise ValidationError(f"max_iter: expected integer, got {type(max_iter).__name__}")
    if max_iter < 0:
        raise ValidationError(f"max_iter: must be non-negative, got {max_iter}")
    return int(max_iter)


def _warn_not_converged(result: Result, strict: bool) -> None:
    """Raise in strict mode, otherwise surface the non-convergence warning."""
    params = result.params
    if params.converged:
        return
    max_norm = float(np.max(params.residual_norms))
    if strict:
        raise ConvergenceError(
            f"LOBPCG did not converge: max residual norm {max_norm:.3e} "
            f"> tol {result.info['tolerance']:g}",
            iterations=params.n_iter,
            final_change=max_norm,
            reason='max_iterations' if params.n_iter >= result.info['max_iter'] else 'stagnation',
            threshold=result.info['tolerance'],
        )
    warnings.warn(
        f"LOBPCG did not converge after {params.n_iter} iterations "
        f"(max residual norm {max_norm:.3e}). Results may be unreliable.",
        RuntimeWarning,
        stacklevel=3,
    )


class TruncatedEig:
    """
    Truncated eigenproblem solver.

    Wraps LOBPCG with builder-style configuration. Can be used for a single
    decomposition or iterated to produce eigenpairs one at a time.

    Example:
        >>> a = np.diag(np.arange(1.0, 21.0))
        >>> teig = TruncatedEig(a, 'largest', rng=0).precision(1e-5).maxiter(500)
        >>> vals, vecs = teig.decompose(3)
        >>> [round(v) for v in vals]
        [20, 19, 18]
    """

    def __init__(
        self,
        problem: LinearOperator | ArrayLike | Callable,
        order: Order = 'largest',
        *,
        n: int | None = None,
        initial: ArrayLike | None = None,
        tol: float = 1e-5,
        max_iter: int | None = None,
        constraints: ArrayLike | None = None,
        preconditioner: LinearOperator | ArrayLike | Callable | None = None,
        rng: RandomState = None,
        strict: bool = False,
        verbose: bool = False,
    ):
        """
        Args:
            problem: Hermitian matrix, callable on n x k blocks, or
                LinearOperator
            order: 'largest' or 'smallest' algebraic eigenvalues
            n: Problem size, required when problem is a callable
            initial: Initial block (n x k) for decompose(); random if None
            tol: Residual norm at which a pair counts as converged
            max_iter: Iteration budget (default 2n)
            constraints: Block (n x p) the eigenvectors must be orthogonal to
            preconditioner: Approximate inverse of the problem
            rng: Seed or Generator for random initial blocks
            strict: Raise ConvergenceError instead of warning when
                decompose() does not converge
            verbose: Print per-iteration progress
        """
        check_choice(order, ORDERS, 'order')
        self._design = EigenDesign.validate(problem, n=n)
        self._order = order
        self._tol = _check_tol(tol)
        self._max_iter = _check_max_iter(max_iter)
        self._constraints = None
        if constraints is not None:
            self.orthogonal_to(constraints)
        self._preconditioner = preconditioner
        self._initial = None
        if initial is not None:
            initial = check_array(initial, 'initial')
            check_2d(initial, 'initial')
            self._check_rows(initial, 'initial')
            self._initial = initial
        self._rng = as_generator(rng)
        self._strict = strict
        self._verbose = verbose

    # === Builder ===

    def precision(self, tol: float) -> TruncatedEig:
        """Set the residual norm at which each eigenpair is converged."""
        self._tol = _check_tol(tol)
        return self

    def maxiter(self, max_iter: int) -> TruncatedEig:
        """Set the iteration budget."""
        self._max_iter = _check_max_iter(max_iter)
        return self

    def orthogonal_to(self, constraints: ArrayLike) -> TruncatedEig:
        """
        Restrict the solution to the orthogonal complement of the
        columns of `constraints` (n x p, full column rank).
        """
        y = check_array(constraints, 'constraints')
        if y.ndim == 1:
            y = y[:, np.newaxis]
        check_2d(y, 'constraints')
        check_finite(y, 'constraints')
        self._check_rows(y, 'constraints')
        self._constraints = y
        return self

    def precondition_with(
        self,
        preconditioner: LinearOperator | ArrayLike | Callable,
    ) -> TruncatedEig:
        """Set a preconditioner approximating the inverse of the problem."""
        self._preconditioner = preconditioner
        return self

    # === Properties ===

    @property
    def n(self) -> int:
        return self._design.n

    @property
    def order(self) -> str:
        return self._order

    @property
    def tol(self) -> float:
        return self._tol

    @property
    def max_iter(self) -> int:
        return 2 * self.n if self._max_iter is None else self._max_iter

    @property
    def constraints(self) -> NDArray[np.inexact[Any]] | None:
        return self._constraints

    @property
    def n_constraints(self) -> int:
        return 0 if self._constraints is None else self._constraints.shape[1]

    # === Solving ===

    def decompose(self, k: int | None = None) -> EigSolution:
        """
        Compute the k extreme eigenpairs in a single LOBPCG run.

        Args:
            k: Number of pairs, 1 <= k <= n - n_constraints. Defaults to
                the number of columns of the initial block.

        Returns:
            EigSolution with eigenvalues sorted by order

        Raises:
            ValidationError: If k is out of range
            RankDeficiencyError: If the initial block is rank deficient
            ConvergenceError: If strict and the run did not converge
        """
        if k is None:
            if self._initial is None:
                raise ValidationError("decompose: k is required without an initial block")
            k = self._initial.shape[1]
        result = self._run(k, use_initial=True)
        _warn_not_converged(result, self._strict)
        return EigSolution(_result=result)

    def _run(self, k: int, use_initial: bool = False) -> Result:
        check_positive_int(k, 'k', maximum=self.n - self.n_constraints)
        if use_initial and self._initial is not None:
            if self._initial.shape[1] != k:
                raise ValidationError(
                    f"initial: block has {self._initial.shape[1]} columns, k={k} requested"
                )
            x = self._initial
        else:
            x = random_matrix((self.n, k), self._rng, self._design.dtype)
        return lobpcg(
            self._design.operator,
            x,
            m=self._preconditioner,
            y=self._constraints,
            tol=self._tol,
            max_iter=self.max_iter,
            order=self._order,
            verbose=self._verbose,
        )

    def _check_rows(self, block: NDArray[np.inexact[Any]], name: str) -> None:
        if block.shape[0] != self.n:
            raise DimensionError(
                f"{name}: block has {block.shape[0]} rows, problem size is {self.n}",
                expected=self.n,
                actual=block.shape[0],
            )

    # === Iteration ===

    def iter_pairs(self, step_size: int = 1, limit: int | None = None) -> TruncatedEigIterator:
        """
        Eigenpairs one at a time, in order.

        Args:
            step_size: Number of pairs solved for per LOBPCG run
            limit: Maximum number of pairs to produce (default: all that
                fit next to the constraints)
        """
        return TruncatedEigIterator(self, step_size=step_size, limit=limit)

    def __iter__(self) -> TruncatedEigIterator:
        return self.iter_pairs()

    def __repr__(self) -> str:
        return (
            f"TruncatedEig(n={self.n}, order={self._order!r}, tol={self._tol:g}, "
            f"max_iter={self.max_iter}, n_constraints={self.n_constraints})"
        )


class TruncatedEigIterator:
    """
    Iterator producing (eigenvalue, eigenvector) pairs of a truncated
    eigenproblem.

    Each refill solves for the next `step_size` pairs with every pair
    produced so far added to the constraints (locking), so pairs come out
    in order and never repeat. Iteration stops when

        - `limit` pairs (or every pair not excluded by constraints) have
          been produced,
        - a refill returns a pair with residual norm above 0.1, or
        - a refill fails during setup.

    Once stopped, the iterator stays exhausted. It owns a private copy of
    the solver configuration; the TruncatedEig it came from is unchanged.

    Example:
        >>> teig = TruncatedEig(a, 'largest', rng=0)
        >>> for value, vector in teig:
        ...     if value < 0.5:
        ...         break
    """

    def __init__(
        self,
        eig: TruncatedEig,
        step_size: int = 1,
        limit: int | None = None,
    ):
        check_positive_int(step_size, 'step_size')
        available = eig.n - eig.n_constraints
        if limit is not None:
            if isinstance(limit, bool) or not isinstance(limit, (int, np.integer)) or limit < 0:
                raise ValidationError(f"limit: must be a non-negative integer, got {limit}")
            available = min(available, int(limit))
        self._eig = copy.copy(eig)
        # Refills draw initial blocks from a generator the parent never sees
        self._eig._rng = copy.deepcopy(eig._rng)
        self._step_size = int(step_size)
        self._remaining = available
        self._pending: deque[tuple[float, NDArray[np.inexact[Any]]]] = deque()
        self._exhausted = False
        self._converged = True
        self._n_yielded = 0
        self.last_result: EigSolution | None = None
        self.stop_reason: str | None = None

    @property
    def converged(self) -> bool:
        """True if every refill so far converged to the requested tolerance."""
        return self._converged

    @property
    def n_yielded(self) -> int:
        return self._n_yielded

    @property
    def exhausted(self) -> bool:
        return self._exhausted and not self._pending

    def __iter__(self) -> TruncatedEigIterator:
        return self

    def __next__(self) -> tuple[float, NDArray[np.inexact[Any]]]:
        if not self._pending:
            self._refill()
        value, vector = self._pending.popleft()
        self._n_yielded += 1
        return value, vector

    def _stop(self, reason: str) -> None:
        self._exhausted = True
        self.stop_reason = reason
        raise StopIteration

    def _refill(self) -> None:
        if self._exhausted:
            raise StopIteration
        if self._remaining <= 0:
            self._stop('limit')

        step = min(self._step_size, self._remaining)
        try:
            result = self._eig._run(step)
        except (RankDeficiencyError, NotPositiveDefiniteError, DenseEigensolverError):
            self._converged = False
            self._stop('setup')

        solution = EigSolution(_result=result)
        self.last_result = solution
        if np.any(solution.residual_norms > ABORT_RESIDUAL_NORM):
            self._converged = False
            self._stop('residual')
        self._converged = self._converged and solution.converged

        vectors = solution.eigenvectors
        if self._eig.constraints is None:
            locked = vectors
        else:
            locked = np.hstack([self._eig.constraints, vectors])
        self._eig.orthogonal_to(locked)
        self._remaining -= step

        for i, value in enumerate(solution.eigenvalues):
            self._pending.append((float(value), vectors[:, i].copy()))


class TruncatedSVD:
    """
    Truncated singular value decomposition.

    Runs LOBPCG on the smaller Gram operator (A^H A for tall or square A,
    A A^H for wide A) and recovers the other factor from a product with A.

    Example:
        >>> a = np.array([[3.0, 2.0, 2.0], [2.0, 3.0, -2.0]])
        >>> svd = TruncatedSVD(a, rng=0).decompose(2)
        >>> np.round(svd.values, 6)
        array([5., 3.])
    """

    def __init__(
        self,
        matrix: ArrayLike,
        order: Order = 'largest',
        *,
        tol: float = 1e-5,
        max_iter: int | None = None,
        rng: RandomState = None,
        strict: bool = False,
        verbose: bool = False,
    ):
        """
        Args:
            matrix: Matrix to decompose (m x n)
            order: 'largest' or 'smallest' singular values
            tol: Precision of the singular vectors; the eigensolver runs
                with tol**2 since the Gram operator squares the spectrum,
                floored at GRAM_ROUNDING_FACTOR * eps * ||A||_F**2 where
                tol**2 would sit below the rounding error of A^H A
            max_iter: Iteration budget (default twice the Gram size)
            rng: Seed or Generator for the random initial block
            strict: Raise ConvergenceError instead of warning on
                non-convergence
            verbose: Print per-iteration progress
        """
        check_choice(order, ORDERS, 'order')
        self._design = SVDDesign.validate(matrix)
        self._order = order
        self._tol = _check_tol(tol)
        self._max_iter = _check_max_iter(max_iter)
        self._rng = as_generator(rng)
        self._strict = strict
        self._verbose = verbose

    def precision(self, tol: float) -> TruncatedSVD:
        """Set the precision of the singular vectors."""
        self._tol = _check_tol(tol)
        return self

    def maxiter(self, max_iter: int) -> TruncatedSVD:
        """Set the iteration budget."""
        self._max_iter = _check_max_iter(max_iter)
        return self

    @property
    def shape(self) -> tuple[int, int]:
        return self._design.matrix.shape

    @property
    def order(self) -> str:
        return self._order

    def decompose(self, k: int) -> SVDSolution:
        """
        Compute k singular values (and, lazily, vectors).

        Args:
            k: Number of components, 1 <= k <= min(m, n)

        Returns:
            SVDSolution with non-increasing singular values

        Raises:
            ValidationError: If k is out of range
            ConvergenceError: If strict and the eigensolver did not converge
        """
        design = self._design
        check_positive_int(k, 'k', maximum=design.size)

        eigen_tol = self._eigen_tolerance()
        x = random_matrix((design.size, k), self._rng, design.dtype)
        eig = lobpcg(
            design.gram,
            x,
            tol=eigen_tol,
            max_iter=self._max_iter,
            order=self._order,
            verbose=self._verbose,
        )
        _warn_not_converged(eig, self._strict)

        # Rounding can push eigenvalues of a semidefinite Gram matrix below zero
        eigenvalues = np.maximum(eig.params.eigenvalues, 0.0)
        idx = np.argsort(-eigenvalues, kind='stable')
        eigenvalues = eigenvalues[idx]
        eigenvectors = eig.params.eigenvectors[:, idx]

        largest = float(eigenvalues[0])
        cutoff = machine_epsilon(design.dtype) * magnitude_correction(design.dtype) * largest

        params = SVDParams(
            eigenvalues=eigenvalues,
            eigenvectors=eigenvectors,
            normal=design.normal,
            cutoff=cutoff,
            converged=eig.params.converged,
        )
        result = Result(
            params=params,
            info={
                'order': self._order,
                'tolerance': self._tol,
                'eigen_tolerance': eigen_tol,
                'gram': 'normal' if design.normal else 'outer',
                'converged': eig.params.converged,
                'iterations': eig.params.n_iter,
                'residual_norms': eig.params.residual_norms[idx],
                'restarts': eig.info['restarts'],
            },
            timing=eig.timing,
            backend_name='lobpcg',
            warnings=eig.warnings,
        )
        return SVDSolution(_result=result, _matrix=design.matrix)

    def _eigen_tolerance(self) -> float:
        design = self._design
        floor = GRAM_ROUNDING_FACTOR * machine_epsilon(design.dtype) * design.frobenius_norm ** 2
        return max(self._tol ** 2, floor)

    def __repr__(self) -> str:
        m, n = self.shape
        return f"TruncatedSVD(shape=({m}, {n}), order={self._order!r}, tol={self._tol:g})"
