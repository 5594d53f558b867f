"""
Online QR drivers.

Public API:
    qr(vectors, ortho, ...) -> QRSolution
    mgs(vectors, dim, ...) -> QRSolution
    householder(vectors, dim, ...) -> QRSolution

The drivers consume a lazy sequence of column vectors, appending each to
an orthogonalizer and applying a Strategy whenever a vector turns out to
be linearly dependent on those before it.
"""

from typing import Any, Iterable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pylinalg.core.compute.timing import Timer
from pylinalg.core.exceptions import ValidationError
from pylinalg.core.result import Result
from pylinalg.core.validation import check_choice
from pylinalg.krylov._common import STRATEGIES, Orthogonalizer, Strategy
from pylinalg.krylov._householder import Householder
from pylinalg.krylov._mgs import MGS
from pylinalg.krylov.solution import QRParams, QRSolution


def qr(
    vectors: Iterable[ArrayLike] | NDArray[np.inexact[Any]],
    ortho: Orthogonalizer,
    strategy: Strategy = 'terminate',
    rtol: float | None = None,
) -> QRSolution:
    """
    Online QR decomposition using an arbitrary orthogonalizer.

    Each input vector is appended to `ortho`. When a vector is linearly
    dependent on the basis so far, `strategy` decides:
        - 'terminate': stop consuming input; its coefficients are dropped
        - 'skip': drop its column and continue with the next vector
        - 'full': keep its coefficients as a column of R and continue,
          so R may be non-square:

            x x x x x
            0 x x x x
            0 0 0 x x
            0 0 0 0 x

    'terminate' and 'skip' stop reading input once the basis spans the
    whole space, since every further vector is dependent.

    Args:
        vectors: Iterable of 1D vectors, or a 2D array whose columns are
            the vectors
        ortho: Freshly constructed orthogonalizer (empty basis)
        strategy: Dependency strategy
        rtol: Dependence threshold; defaults to the orthogonalizer's

    Returns:
        QRSolution with Q (dim x m) and R (m x p)

    Raises:
        ValidationError: If ortho is not empty, strategy is unknown, or
            no input vector is independent
        DimensionError: If a vector's length differs from ortho.dim
    """
    check_choice(strategy, STRATEGIES, 'strategy')
    if not ortho.is_empty():
        raise ValidationError(
            f"qr: orthogonalizer must be empty, it already holds {len(ortho)} vectors"
        )

    if isinstance(vectors, np.ndarray) and vectors.ndim == 2:
        vectors = vectors.T

    timer = Timer()
    timer.start()

    coefs = []
    dependent = []
    n_input = 0

    with timer.section('orthogonalization'):
        for index, a in enumerate(vectors):
            n_input = index + 1
            res = ortho.append(a, rtol)
            if res.is_added:
                coefs.append(res.coefficients)
            else:
                dependent.append(index)
                if strategy == 'terminate':
                    break
                if strategy == 'full':
                    coefs.append(res.coefficients)
            if strategy != 'full' and ortho.is_full():
                break

    if ortho.is_empty():
        raise ValidationError(
            f"qr: none of the {n_input} input vectors is linearly independent"
        )

    with timer.section('assemble'):
        q = ortho.get_q()
        n = len(ortho)
        dtype = np.result_type(q.dtype, *(c.dtype for c in coefs))
        r = np.zeros((n, len(coefs)), dtype=dtype)
        for j, c in enumerate(coefs):
            rows = min(n, len(c))
            r[:rows, j] = c[:rows]

    timer.stop()

    params = QRParams(
        Q=q,
        R=r,
        rank=n,
        n_input=n_input,
        dependent_indices=tuple(dependent),
    )
    result = Result(
        params=params,
        info={
            'strategy': strategy,
            'tolerance': ortho.tolerance if rtol is None else rtol,
            'dim': ortho.dim,
            'n_dependent': len(dependent),
        },
        timing=timer.result(),
        backend_name=type(ortho).__name__.lower(),
    )
    return QRSolution(_result=result)


def mgs(
    vectors: Iterable[ArrayLike] | NDArray[np.inexact[Any]],
    dim: int,
    rtol: float | None = None,
    strategy: Strategy = 'terminate',
) -> QRSolution:
    """
    Online QR decomposition using modified Gram-Schmidt.

    Example:
        >>> import numpy as np
        >>> a = np.random.default_rng(0).standard_normal((5, 5))
        >>> Q, R = mgs(a, 5, rtol=1e-9)
        >>> np.allclose(Q @ R, a)
        True
    """
    return qr(vectors, MGS(dim, rtol), strategy)


def householder(
    vectors: Iterable[ArrayLike] | NDArray[np.inexact[Any]],
    dim: int,
    rtol: float | None = None,
    strategy: Strategy = 'terminate',
) -> QRSolution:
    """Online QR decomposition using Householder reflections."""
    return qr(vectors, Householder(dim, rtol), strategy)
