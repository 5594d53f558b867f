"""
Generalized minimal residual method (GMRES).

Solves A x = b for a general square operator. Step j extends the Arnoldi
basis of the Krylov subspace of the initial residual r0 = b - A x0 and
minimizes |b - A x| over x0 + K_{j+1}. The Hessenberg least-squares
problem is kept in triangular form by Givens rotations, so the residual
norm is known after every step without forming x.

With a preconditioner M the iteration runs on A M (right
preconditioning) and the solution is x = x0 + M z.

References:
    Saad, Y., & Schultz, M. H. (1986). GMRES: A Generalized Minimal
    Residual Algorithm for Solving Nonsymmetric Linear Systems. SIAM
    Journal on Scientific and Statistical Computing, 7(3), 856-869.
"""

from __future__ import annotations

from typing import Any, Callable, Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pylinalg.core.compute.linalg import solve_upper_triangular_cpu
from pylinalg.core.compute.precision import phase
from pylinalg.core.compute.timing import Timer
from pylinalg.core.exceptions import DimensionError, ValidationError
from pylinalg.core.result import Result
from pylinalg.core.validation import check_1d, check_array, check_finite
from pylinalg.krylov._common import Coefficients, Orthogonalizer
from pylinalg.krylov._householder import Householder
from pylinalg.krylov._mgs import MGS
from pylinalg.krylov.operator import LinearOperator, as_operator
from pylinalg.krylov.solution import GmresParams, GmresSolution


# Why the iteration stopped (or 'not_converged' while it may continue).
#   'converged':        residual norm at or below the tolerance
#   'not_converged':    tolerance not reached yet
#   'krylov_dependent': the Krylov subspace became invariant before the
#                       tolerance was reached
GmresStatus = Literal['converged', 'not_converged', 'krylov_dependent']

DEFAULT_TOLERANCE = 1e-8


def givens_rotation(f: complex | float, g: complex | float) -> tuple[float, complex | float]:
    """
    Rotation (c, s) with [[c, s], [-conj(s), c]] @ [f, g] = [r, 0].

    c is real and non-negative. Both entries zero is a breakdown the
    caller must handle; (1, 0) is returned for it.
    """
    norm = float(np.hypot(abs(f), abs(g)))
    if norm == 0:
        return 1.0, 0.0
    return abs(f) / norm, phase(f) * np.conj(g) / norm


def apply_givens(
    h: NDArray[np.inexact[Any]],
    cs: list[float],
    sn: list[complex | float],
) -> tuple[float, complex | float]:
    """
    Rotate a new Hessenberg column in place.

    The k stored rotations are applied to h (length k + 2), then the
    rotation eliminating h[k + 1] is computed and applied.

    Returns:
        (c, s) of the new rotation
    """
    k = len(cs)
    for i in range(k):
        top = cs[i] * h[i] + sn[i] * h[i + 1]
        h[i + 1] = -np.conj(sn[i]) * h[i] + cs[i] * h[i + 1]
        h[i] = top
    c, s = givens_rotation(h[k], h[k + 1])
    h[k] = c * h[k] + s * h[k + 1]
    h[k + 1] = 0
    return c, s


class Gmres:
    """
    GMRES as a Python iterator.

    Each step yields the residual norm of the current least-squares
    solution. Iteration ends when the residual falls to the tolerance,
    the Krylov subspace becomes invariant, or `maxiter` steps were taken.
    `finalize` (or `complete`) assembles the solution.

    Example:
        >>> solver = Gmres(a, b, MGS(len(b), tol=1e-9)).tolerance(1e-10)
        >>> sol = solver.complete()
        >>> np.allclose(a @ sol.x, b)
        True
    """

    def __init__(
        self,
        a: LinearOperator | ArrayLike | Callable,
        b: ArrayLike,
        ortho: Orthogonalizer,
        x0: ArrayLike | None = None,
    ):
        """
        Args:
            a: Square operator (matrix, function on blocks, LinearOperator)
            b: Right-hand side
            ortho: Fresh orthogonalizer of dimension len(b), tolerance < 1
            x0: Initial guess (default zero)

        Raises:
            ValidationError: If ortho is not empty or its tolerance is not
                below 1, or b or x0 are not finite
            DimensionError: If the shapes of a, b, x0 and ortho disagree
        """
        b = check_array(b, 'b')
        check_1d(b, 'b')
        check_finite(b, 'b')
        n = b.shape[0]
        if not ortho.is_empty():
            raise ValidationError(
                f"Gmres: orthogonalizer must be empty, it holds {len(ortho)} vectors"
            )
        if ortho.tolerance >= 1:
            raise ValidationError(
                f"Gmres: orthogonalizer tolerance must be below 1, got {ortho.tolerance}"
            )
        if ortho.dim != n:
            raise DimensionError(
                f"Gmres: orthogonalizer dimension {ortho.dim} does not match len(b)={n}",
                expected=n,
                actual=ortho.dim,
            )
        self._a = self._check_operator(a, n, b.dtype, 'a')

        dtype = np.result_type(b.dtype, self._a.dtype)
        if x0 is None:
            x0 = np.zeros(n, dtype=dtype)
        else:
            x0 = check_array(x0, 'x0')
            check_1d(x0, 'x0')
            check_finite(x0, 'x0')
            if x0.shape[0] != n:
                raise DimensionError(
                    f"x0: length {x0.shape[0]} does not match len(b)={n}",
                    expected=n,
                    actual=x0.shape[0],
                )
            dtype = np.result_type(dtype, x0.dtype)
        self._dtype = dtype
        self._x0 = np.array(x0, dtype=dtype, copy=True)

        r0 = np.asarray(b, dtype=dtype) - self._a.apply(self._x0)
        norm = float(np.linalg.norm(r0))
        self._v: NDArray[np.inexact[Any]] | None = None
        if norm > 0:
            # Normalize before appending since |r0| may be below the tolerance
            self._v = r0 / norm
            ortho.append(self._v)

        self._ortho = ortho
        self._pc: LinearOperator | None = None
        self._tol = DEFAULT_TOLERANCE
        self._maxiter = n
        self._m = 0
        # R of the rotated Hessenberg matrix, column by column
        self._r: list[Coefficients] = []
        # Rotated right-hand side |r0| e_0
        self._g: list[complex | float] = [norm]
        self._cs: list[float] = []
        self._sn: list[complex | float] = []
        self._residual = norm
        self._status: GmresStatus = (
            'converged' if norm <= self._tol else 'not_converged'
        )

    @staticmethod
    def _check_operator(
        op: LinearOperator | ArrayLike | Callable,
        n: int,
        dtype: np.dtype,
        name: str,
    ) -> LinearOperator:
        op = as_operator(op, n=n, dtype=dtype)
        if op.shape != (n, n):
            raise DimensionError(
                f"{name}: operator shape {op.shape} does not match len(b)={n}",
                expected=(n, n),
                actual=op.shape,
            )
        return op

    # === Builder ===

    def maxiter(self, maxiter: int) -> Gmres:
        """Set the maximum number of steps (default len(b))."""
        if isinstance(maxiter, bool) or not isinstance(maxiter, (int, np.integer)) or maxiter < 0:
            raise ValidationError(f"maxiter: must be a non-negative integer, got {maxiter}")
        self._maxiter = int(maxiter)
        return self

    def tolerance(self, tol: float) -> Gmres:
        """Set the residual norm at which the iteration has converged."""
        if not np.isfinite(tol) or tol < 0:
            raise ValidationError(f"tol: must be a non-negative finite number, got {tol}")
        self._tol = float(tol)
        if self._status != 'krylov_dependent':
            self._status = 'converged' if self._residual <= self._tol else 'not_converged'
        return self

    def precondition_with(self, pc: LinearOperator | ArrayLike | Callable) -> Gmres:
        """Set a right preconditioner approximating the inverse of A."""
        if self._m > 0:
            raise ValidationError("precondition_with: the iteration has already started")
        self._pc = self._check_operator(pc, self.dim, self._dtype, 'pc')
        return self

    # === State ===

    @property
    def dim(self) -> int:
        """Dimension of the problem."""
        return self._x0.shape[0]

    @property
    def dim_krylov(self) -> int:
        """Dimension of the Krylov subspace built so far."""
        return len(self._ortho)

    @property
    def residual(self) -> float:
        """Residual norm of the current least-squares solution."""
        return self._residual

    @property
    def iteration(self) -> int:
        return self._m

    @property
    def status(self) -> GmresStatus:
        return self._status

    @property
    def tol(self) -> float:
        return self._tol

    # === Iteration ===

    def __iter__(self) -> Gmres:
        return self

    def __next__(self) -> float:
        if self._status != 'not_converged' or self._m >= self._maxiter:
            raise StopIteration
        j = self._m

        w = self._v if self._pc is None else self._pc.apply(self._v)
        w = self._a.apply(w)
        w = np.array(w, dtype=np.result_type(w.dtype, self._dtype), copy=True)
        if self._ortho.is_full():
            h = self._ortho.decompose(w)
            dependent = True
        else:
            res = self._ortho.div_append(w)
            h = res.coefficients
            dependent = res.is_dependent

        h = np.array(h, dtype=np.result_type(h.dtype, self._dtype), copy=True)
        c, s = apply_givens(h, self._cs, self._sn)
        if h[j] == 0:
            # A M v_j adds nothing to the range; the current solution is final
            self._status = 'krylov_dependent'
            raise StopIteration
        if dependent:
            self._status = 'krylov_dependent'
        else:
            self._v = w

        self._cs.append(c)
        self._sn.append(s)
        self._r.append(h[:-1].copy())
        self._g.append(-np.conj(s) * self._g[j])
        self._g[j] = c * self._g[j]

        self._residual = float(abs(self._g[-1]))
        if self._residual <= self._tol:
            self._status = 'converged'
        self._m += 1
        return self._residual

    def finalize(self) -> NDArray[np.inexact[Any]]:
        """
        Solution x0 + M Q y of the current least-squares problem.

        Raises:
            RankDeficiencyError: If the rotated Hessenberg matrix is
                singular
        """
        m = self._m
        if m == 0:
            return self._x0.copy()
        dtype = np.result_type(self._dtype, *(col.dtype for col in self._r))
        r = np.zeros((m, m), dtype=dtype)
        for j, col in enumerate(self._r):
            r[:len(col), j] = col
        g = np.asarray(self._g[:m], dtype=dtype)
        y = solve_upper_triangular_cpu(r, g, matrix_name='rotated Hessenberg matrix')
        z = self._ortho.get_q()[:, :m] @ y
        if self._pc is not None:
            z = self._pc.apply(z)
        return self._x0 + z

    def complete(self) -> GmresSolution:
        """Iterate until the iteration ends, then assemble the solution."""
        timer = Timer()
        timer.start()
        residuals = [self._residual]
        with timer.section('iterations'):
            for residual in self:
                residuals.append(residual)
        with timer.section('finalize'):
            x = self.finalize()
        timer.stop()

        warnings_list: list[str] = []
        if self._status == 'not_converged':
            warnings_list.append(
                f"GMRES did not converge after {self._m} iterations: "
                f"residual norm {self._residual:.3e} > tol {self._tol:g}"
            )
        elif self._status == 'krylov_dependent':
            warnings_list.append(
                f"GMRES stopped at iteration {self._m}: the Krylov subspace is "
                f"invariant with residual norm {self._residual:.3e} > tol {self._tol:g}"
            )

        params = GmresParams(
            x=x,
            residual_norms=np.asarray(residuals, dtype=np.float64),
            status=self._status,
            n_iter=self._m,
        )
        orthogonalizer = type(self._ortho).__name__.lower()
        result = Result(
            params=params,
            info={
                'status': self._status,
                'tolerance': self._tol,
                'max_iter': self._maxiter,
                'iterations': self._m,
                'krylov_dim': len(self._ortho),
                'orthogonalizer': orthogonalizer,
                'preconditioned': self._pc is not None,
            },
            timing=timer.result(),
            backend_name=f'gmres_{orthogonalizer}',
            warnings=tuple(warnings_list),
        )
        return GmresSolution(_result=result)

    def __repr__(self) -> str:
        return (
            f"Gmres(dim={self.dim}, iteration={self._m}, status={self._status!r}, "
            f"residual={self._residual:.3e})"
        )


def gmres(
    a: LinearOperator | ArrayLike | Callable,
    b: ArrayLike,
    ortho: Orthogonalizer,
    x0: ArrayLike | None = None,
    maxiter: int | None = None,
    tol: float = DEFAULT_TOLERANCE,
    pc: LinearOperator | ArrayLike | Callable | None = None,
) -> GmresSolution:
    """
    Solve A x = b with GMRES using an arbitrary orthogonalizer.

    Args:
        a: Square operator
        b: Right-hand side
        ortho: Fresh orthogonalizer of dimension len(b)
        x0: Initial guess (default zero)
        maxiter: Maximum number of steps (default len(b))
        tol: Residual norm at which the iteration has converged
        pc: Right preconditioner approximating the inverse of A

    Returns:
        GmresSolution; check `status` or `converged`
    """
    solver = Gmres(a, b, ortho, x0).tolerance(tol)
    if maxiter is not None:
        solver.maxiter(maxiter)
    if pc is not None:
        solver.precondition_with(pc)
    return solver.complete()


def gmres_mgs(
    a: LinearOperator | ArrayLike | Callable,
    b: ArrayLike,
    x0: ArrayLike | None = None,
    maxiter: int | None = None,
    tol_mgs: float | None = None,
    tol: float = DEFAULT_TOLERANCE,
    pc: LinearOperator | ArrayLike | Callable | None = None,
) -> GmresSolution:
    """
    GMRES with the modified Gram-Schmidt orthogonalizer.

    Example:
        >>> a = np.array([[4.0, 1.0], [2.0, 3.0]])
        >>> sol = gmres_mgs(a, [1.0, 2.0])
        >>> sol.status, np.round(sol.x, 6)
        ('converged', array([0.1, 0.6]))
    """
    n = check_array(b, 'b').shape[0]
    return gmres(a, b, MGS(n, tol_mgs), x0, maxiter, tol, pc)


def gmres_householder(
    a: LinearOperator | ArrayLike | Callable,
    b: ArrayLike,
    x0: ArrayLike | None = None,
    maxiter: int | None = None,
    tol_householder: float | None = None,
    tol: float = DEFAULT_TOLERANCE,
    pc: LinearOperator | ArrayLike | Callable | None = None,
) -> GmresSolution:
    """GMRES with the Householder orthogonalizer."""
    n = check_array(b, 'b').shape[0]
    return gmres(a, b, Householder(n, tol_householder), x0, maxiter, tol, pc)
