"""
Krylov solver solution types.

Contains the parameter payloads and user-facing solution wrappers of the
online QR driver and GMRES.
"""

from dataclasses import dataclass
from typing import Any, Iterator

import numpy as np
from numpy.typing import NDArray

from pylinalg.core.result import Result


@dataclass(frozen=True)
class QRParams:
    """
    Parameter payload for an online QR decomposition.

    Immutable data computed by the QR driver.

    Attributes:
        Q: dim x m matrix with orthonormal columns
        R: m x p coefficient matrix, upper triangular in rows [0, m)
        rank: Number of basis vectors m
        n_input: Number of input vectors consumed
        dependent_indices: Input positions judged linearly dependent
    """
    Q: NDArray[np.inexact[Any]]
    R: NDArray[np.inexact[Any]]
    rank: int
    n_input: int
    dependent_indices: tuple[int, ...]


@dataclass
class QRSolution:
    """
    User-facing online QR results.

    Unpacks like a tuple for the common case:

        >>> Q, R = mgs(vectors, dim=3)
    """
    _result: Result[QRParams]

    def __iter__(self) -> Iterator[NDArray[np.inexact[Any]]]:
        yield self.Q
        yield self.R

    @property
    def Q(self) -> NDArray[np.inexact[Any]]:
        """Orthonormal basis as columns."""
        return self._result.params.Q

    @property
    def R(self) -> NDArray[np.inexact[Any]]:
        """Coefficient matrix, one column per recorded input vector."""
        return self._result.params.R

    @property
    def rank(self) -> int:
        """Number of independent directions found."""
        return self._result.params.rank

    @property
    def n_input(self) -> int:
        """Number of input vectors consumed."""
        return self._result.params.n_input

    @property
    def dependent_indices(self) -> tuple[int, ...]:
        """Positions of input vectors found to be linearly dependent."""
        return self._result.params.dependent_indices

    @property
    def n_dependent(self) -> int:
        return len(self._result.params.dependent_indices)

    @property
    def strategy(self) -> str:
        """Dependency strategy the decomposition was run with."""
        return self._result.info['strategy']

    @property
    def info(self) -> dict[str, Any]:
        """Driver metadata."""
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        """Execution timing breakdown."""
        return self._result.timing

    @property
    def backend_name(self) -> str:
        """Name of the orthogonalizer that produced this result."""
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        """Non-fatal warnings from computation."""
        return self._result.warnings

    def summary(self) -> str:
        """Generate summary output."""
        dim, rank = self.Q.shape
        lines = [
            "Online QR Decomposition",
            "=" * 60,
            f"Orthogonalizer: {self.backend_name}",
            f"Strategy: {self.strategy}",
            f"Dimension: {dim}",
            f"Input vectors: {self.n_input}",
            f"Rank: {rank}",
            f"Dependent vectors: {self.n_dependent}",
            f"R shape: {self.R.shape}",
        ]
        if self.dependent_indices:
            lines.append(f"Dependent at: {list(self.dependent_indices)}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"QRSolution(backend={self.backend_name!r}, Q={self.Q.shape}, "
            f"R={self.R.shape}, rank={self.rank})"
        )


@dataclass(frozen=True)
class GmresParams:
    """
    Parameter payload for a GMRES solve.

    Attributes:
        x: Approximate solution of A x = b
        residual_norms: Least-squares residual norm before the first
            step and after every step, non-increasing
        status: 'converged', 'not_converged' or 'krylov_dependent'
        n_iter: Number of Arnoldi steps taken
    """
    x: NDArray[np.inexact[Any]]
    residual_norms: NDArray[np.floating[Any]]
    status: str
    n_iter: int

    @property
    def converged(self) -> bool:
        return self.status == 'converged'


@dataclass
class GmresSolution:
    """
    User-facing GMRES results.

    A run that stops without reaching the tolerance is reported through
    `status` and `warnings`, not raised.
    """
    _result: Result[GmresParams]

    @property
    def x(self) -> NDArray[np.inexact[Any]]:
        """Approximate solution."""
        return self._result.params.x

    @property
    def residual(self) -> float:
        """Final least-squares residual norm |b - A x|."""
        return float(self._result.params.residual_norms[-1])

    @property
    def residual_norms(self) -> NDArray[np.floating[Any]]:
        return self._result.params.residual_norms

    @property
    def status(self) -> str:
        return self._result.params.status

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter

    @property
    def params(self) -> GmresParams:
        return self._result.params

    @property
    def info(self) -> dict[str, Any]:
        """Solver metadata."""
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def summary(self) -> str:
        """Generate summary output."""
        lines = [
            "GMRES",
            "=" * 60,
            f"Orthogonalizer: {self.info['orthogonalizer']}",
            f"Problem size: {len(self.x)}",
            f"Status: {self.status}",
            f"Iterations: {self.n_iter} (max {self.info['max_iter']})",
            f"Residual norm: {self.residual:.3e} (tol {self.info['tolerance']:g})",
            f"Preconditioned: {self.info['preconditioned']}",
        ]
        if self.warnings:
            lines.append("")
            lines.extend(f"Warning: {w}" for w in self.warnings)
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"GmresSolution(status={self.status!r}, n_iter={self.n_iter}, "
            f"residual={self.residual:.3e})"
        )
