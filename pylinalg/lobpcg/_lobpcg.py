"""
Locally Optimal Block Preconditioned Conjugate Gradient (LOBPCG).

Computes the k largest or smallest eigenpairs of a symmetric/Hermitian
operator A, given only its action on blocks of vectors. Each iteration
runs a Rayleigh-Ritz projection on span{X, R, P}:

    X  current Ritz vectors (n x k)
    R  preconditioned residuals of the still active pairs
    P  previous search directions

Converged pairs are locked: their residuals leave the search space and
stay out for the rest of the run.

References:
    Knyazev, A. V. (2001). Toward the Optimal Preconditioned Eigensolver:
    Locally Optimal Block Preconditioned Conjugate Gradient Method.
    SIAM Journal on Scientific Computing, 23(2), 517-541.

    Hetmaniuk, U., & Lehoucq, R. (2006). Basis selection in LOBPCG.
    Journal of Computational Physics, 218(1), 324-332.
"""

from __future__ import annotations

from typing import Any, Callable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pylinalg.core.compute.linalg import (
    CholeskyFactor,
    cholesky_cpu,
    eigh_cpu,
)
from pylinalg.core.compute.timing import Timer
from pylinalg.core.compute.tolerances import select_tolerance
from pylinalg.core.exceptions import (
    DenseEigensolverError,
    DimensionError,
    NotPositiveDefiniteError,
    RankDeficiencyError,
    ValidationError,
)
from pylinalg.core.result import Result
from pylinalg.core.validation import check_2d, check_array, check_choice, check_finite
from pylinalg.krylov import MGS, LinearOperator, as_operator
from pylinalg.lobpcg._common import ORDERS, LobpcgParams, Order


Block = NDArray[np.inexact[Any]]


# === Dense helpers ===

def sorted_eig(
    a: Block,
    b: Block | None,
    size: int,
    order: Order,
) -> tuple[NDArray[np.floating[Any]], Block]:
    """
    Solve the (generalized) Hermitian eigenproblem and keep `size` pairs.

    Args:
        a: Hermitian matrix
        b: Optional Hermitian positive definite metric
        size: Number of pairs to keep
        order: 'largest' (largest first) or 'smallest' (smallest first)

    Returns:
        (eigenvalues, eigenvectors) with eigenvectors as columns

    Raises:
        DenseEigensolverError, NotPositiveDefiniteError
    """
    res = eigh_cpu(a, b, matrix_name='projected Gram matrix')
    n = a.shape[0]
    if order == 'largest':
        return res.eigenvalues[n - size:][::-1], res.eigenvectors[:, n - size:][:, ::-1]
    return res.eigenvalues[:size], res.eigenvectors[:, :size]


def _hermitian_part(a: Block) -> Block:
    return (a + a.conj().T) / 2


class _Constraints:
    """Projector onto the orthogonal complement of span(Y)."""

    def __init__(self, y: Block):
        self.y = y
        self.factor: CholeskyFactor = cholesky_cpu(y.conj().T @ y, matrix_name='Y^H Y')

    def apply(self, v: Block) -> Block:
        """Return V - Y (Y^H Y)^{-1} Y^H V."""
        return v - self.y @ self.factor.solve(self.y.conj().T @ v)


def _orthonormalize_block(
    v: Block,
    rtol: float,
    against: Block | None = None,
) -> tuple[Block, list[int]]:
    """
    Orthonormalize the columns of `v` with modified Gram-Schmidt.

    Every column is projected twice against the basis built so far
    (`against` followed by the earlier columns of `v`). A column whose
    residual drops below `rtol` times its original norm is linearly
    dependent and is dropped.

    Args:
        v: Block to orthonormalize (n x p)
        rtol: Relative dependence threshold
        against: Orthonormal block the result must also be orthogonal to

    Returns:
        (Q, kept): orthonormal block (n x len(kept)) and the indices of
        the columns of `v` that survived
    """
    n = v.shape[0]
    dtype = v.dtype if against is None else np.result_type(v.dtype, against.dtype)
    ortho = MGS(n, dtype=dtype)
    if against is not None:
        for col in against.T:
            ortho.append(col, rtol=0.0)
    start = len(ortho)
    kept = []
    for j in range(v.shape[1]):
        work = np.array(v[:, j], dtype=dtype, copy=True)
        scale = float(np.linalg.norm(work))
        ortho.orthogonalize(work)
        res = ortho.append(work, rtol=rtol * scale)
        if res.is_added:
            kept.append(j)
    if not kept:
        return np.zeros((n, 0), dtype=dtype), kept
    return ortho.get_q()[:, start:], kept


def _as_preconditioner(
    m: LinearOperator | ArrayLike | Callable | None,
    n: int,
    dtype: np.dtype,
) -> Callable[[Block], Block]:
    if m is None:
        return lambda r: r
    op = as_operator(m, n=n, dtype=dtype)
    if op.shape != (n, n):
        raise DimensionError(
            f"preconditioner: shape {op.shape} does not match problem size {n}",
            expected=(n, n),
            actual=op.shape,
        )
    return op.apply_block


# === Solver ===

def lobpcg(
    a: LinearOperator | ArrayLike | Callable,
    x: ArrayLike,
    m: LinearOperator | ArrayLike | Callable | None = None,
    y: ArrayLike | None = None,
    tol: float = 1e-5,
    max_iter: int | None = None,
    order: Order = 'largest',
    verbose: bool = False,
) -> Result[LobpcgParams]:
    """
    Block eigensolver for large symmetric/Hermitian problems.

    Args:
        a: The operator: a Hermitian matrix, a callable mapping an n x k
            block to A @ block, or a LinearOperator
        x: Initial approximation of the k eigenvectors (n x k), k <= n
        m: Preconditioner approximating the inverse of A (same forms as a)
        y: Constraints (n x p, full column rank); iterations stay in the
            orthogonal complement of its column space
        tol: Pairs whose residual norm is at or below tol are converged
            and locked
        max_iter: Iteration budget. Default 2n; never more than 10n.
        order: 'largest' or 'smallest' algebraic eigenvalues
        verbose: Print per-iteration progress

    Returns:
        Result[LobpcgParams] holding the best iterate. A run that ends
        without every pair converging returns converged=False and a
        warning rather than raising.

    Raises:
        ValidationError: If inputs are malformed
        DimensionError: If shapes of a, x, m and y disagree
        RankDeficiencyError: If x (after applying the constraints) has
            fewer than k independent columns
        NotPositiveDefiniteError: If y is not full column rank
        DenseEigensolverError: If the initial Rayleigh-Ritz step fails
    """
    check_choice(order, ORDERS, 'order')
    x = check_array(x, 'x')
    check_2d(x, 'x')
    check_finite(x, 'x')
    n, k = x.shape
    if k < 1 or k > n:
        raise ValidationError(f"x: block size must be between 1 and {n}, got {k}")
    if tol < 0:
        raise ValidationError(f"tol: must be non-negative, got {tol}")
    if max_iter is None:
        max_iter = 2 * n
    if max_iter < 0:
        raise ValidationError(f"max_iter: must be non-negative, got {max_iter}")
    budget = min(10 * n, max_iter)

    op = as_operator(a, n=n, dtype=x.dtype)
    if op.shape != (n, n):
        raise DimensionError(
            f"a: operator shape {op.shape} does not match block with {n} rows",
            expected=(n, n),
            actual=op.shape,
        )
    dtype = np.result_type(x.dtype, op.dtype)
    x = np.array(x, dtype=dtype, copy=True)
    precondition = _as_preconditioner(m, n, dtype)
    drop_tol = select_tolerance(dtype).rtol

    timer = Timer()
    timer.start()
    warnings_list: list[str] = []

    # === Initialization ===
    with timer.section('initialization'):
        constraints = None
        if y is not None:
            y = check_array(y, 'y')
            check_2d(y, 'y')
            check_finite(y, 'y')
            if y.shape[0] != n:
                raise DimensionError(
                    f"y: constraint block has {y.shape[0]} rows, expected {n}",
                    expected=n,
                    actual=y.shape[0],
                )
            constraints = _Constraints(np.asarray(y, dtype=np.result_type(dtype, y.dtype)))
            x = constraints.apply(x)

        x, kept = _orthonormalize_block(x, drop_tol)
        if len(kept) < k:
            raise RankDeficiencyError(
                f"x: initial block has only {len(kept)} independent columns "
                f"after orthonormalization, {k} required",
                matrix_name='x',
                rank=len(kept),
                expected_rank=k,
            )

        ax = op.apply_block(x)
        lam, vecs = sorted_eig(_hermitian_part(x.conj().T @ ax), None, k, order)
        x = x @ vecs
        ax = ax @ vecs

    active = np.ones(k, dtype=bool)
    history: list[NDArray[np.floating[Any]]] = []
    block_sizes: list[int] = []
    best: tuple | None = None
    prev_p: Block | None = None
    iteration = 0
    restarts = 0
    converged = False

    if verbose:
        print(f"LOBPCG: n={n}, k={k}, order={order}, tol={tol:g}, max_iter={budget}")

    while True:
        # === Residuals ===
        with timer.section('residuals'):
            r = ax - x * lam
            norms = np.linalg.norm(r, axis=0)
        history.append(norms)

        if best is None or best[2].sum() > norms.sum():
            best = (lam.copy(), x.copy(), norms.copy())

        active &= norms > tol
        n_active = int(active.sum())
        block_sizes.append(n_active)

        if verbose:
            print(f"  iter {iteration:4d}  max residual {norms.max():.3e}  active {n_active}/{k}")

        if n_active == 0:
            converged = True
            best = (lam.copy(), x.copy(), norms.copy())
            break
        if iteration >= budget:
            break

        with timer.section('residuals'):
            w = precondition(r[:, active])
            if constraints is not None:
                w = constraints.apply(w)
            w, kept = _orthonormalize_block(w, drop_tol, against=x)

        if not kept:
            warnings_list.append(
                f"LOBPCG stagnated at iteration {iteration}: every residual "
                f"direction is linearly dependent on the current block"
            )
            break
        n_w = w.shape[1]
        aw = op.apply_block(w)

        # Search directions of the previous step, restricted to active pairs
        p = ap = None
        if prev_p is not None:
            with timer.section('residuals'):
                p, kept_p = _orthonormalize_block(
                    prev_p[:, active], drop_tol, against=np.hstack([x, w])
                )
            if kept_p:
                ap = op.apply_block(p)
            else:
                p = None

        # === Rayleigh-Ritz ===
        with timer.section('rayleigh_ritz'):
            xax = _hermitian_part(x.conj().T @ ax)
            xaw = x.conj().T @ aw
            waw = _hermitian_part(w.conj().T @ aw)
            xx = x.conj().T @ x
            ww = w.conj().T @ w
            xw = x.conj().T @ w

            result = None
            if p is not None:
                xap = x.conj().T @ ap
                wap = w.conj().T @ ap
                pap = _hermitian_part(p.conj().T @ ap)
                xp = x.conj().T @ p
                wp = w.conj().T @ p
                pp = p.conj().T @ p
                gram_a = np.block([
                    [xax, xaw, xap],
                    [xaw.conj().T, waw, wap],
                    [xap.conj().T, wap.conj().T, pap],
                ])
                gram_b = np.block([
                    [xx, xw, xp],
                    [xw.conj().T, ww, wp],
                    [xp.conj().T, wp.conj().T, pp],
                ])
                try:
                    result = sorted_eig(gram_a, gram_b, k, order)
                except (DenseEigensolverError, NotPositiveDefiniteError):
                    restarts += 1
                    p = ap = None

            if result is None:
                gram_a = np.block([[xax, xaw], [xaw.conj().T, waw]])
                gram_b = np.block([[xx, xw], [xw.conj().T, ww]])
                try:
                    result = sorted_eig(gram_a, gram_b, k, order)
                except (DenseEigensolverError, NotPositiveDefiniteError) as e:
                    warnings_list.append(
                        f"LOBPCG stopped at iteration {iteration}: {e}"
                    )
                    break

        lam, vecs = result
        tau = vecs[:k]
        alpha = vecs[k:k + n_w]
        p_new = w @ alpha
        ap_new = aw @ alpha
        if p is not None:
            gamma = vecs[k + n_w:]
            p_new = p_new + p @ gamma
            ap_new = ap_new + ap @ gamma

        x = x @ tau + p_new
        ax = ax @ tau + ap_new
        prev_p = p_new
        iteration += 1

    timer.stop()

    lam, x, norms = best
    if not converged:
        warnings_list.append(
            f"LOBPCG did not converge after {iteration} iterations: "
            f"max residual norm {norms.max():.3e} > tol {tol:g}"
        )

    params = LobpcgParams(
        eigenvalues=np.asarray(lam),
        eigenvectors=x,
        residual_norms=norms,
        converged=converged,
        n_iter=iteration,
    )
    return Result(
        params=params,
        info={
            'order': order,
            'tolerance': tol,
            'max_iter': budget,
            'converged': converged,
            'iterations': iteration,
            'residual_norms_history': history,
            'active_block_sizes': block_sizes,
            'restarts': restarts,
            'n_constraints': 0 if constraints is None else constraints.y.shape[1],
        },
        timing=timer.result(),
        backend_name='lobpcg',
        warnings=tuple(warnings_list),
    )
