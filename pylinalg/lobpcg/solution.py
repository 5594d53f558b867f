"""
Truncated eigensolver solution types.

User-facing wrappers around the LOBPCG and truncated SVD payloads.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

import numpy as np
from numpy.typing import NDArray

from pylinalg.core.result import Result
from pylinalg.krylov import MGS
from pylinalg.lobpcg._common import LobpcgParams, SVDParams


@dataclass
class EigSolution:
    """
    User-facing truncated eigendecomposition results.

    Unpacks like a tuple for the common case:

        >>> vals, vecs = TruncatedEig(a).decompose(3)
    """
    _result: Result[LobpcgParams]

    def __iter__(self) -> Iterator[NDArray[np.inexact[Any]]]:
        yield self.eigenvalues
        yield self.eigenvectors

    def __len__(self) -> int:
        return len(self._result.params.eigenvalues)

    @property
    def eigenvalues(self) -> NDArray[np.floating[Any]]:
        """Eigenvalues sorted by order (largest or smallest first)."""
        return self._result.params.eigenvalues

    @property
    def eigenvectors(self) -> NDArray[np.inexact[Any]]:
        """Eigenvectors as columns, matching eigenvalues."""
        return self._result.params.eigenvectors

    @property
    def residual_norms(self) -> NDArray[np.floating[Any]]:
        """||A x - lambda x|| for each pair."""
        return self._result.params.residual_norms

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter

    @property
    def order(self) -> str:
        return self._result.info['order']

    @property
    def params(self) -> LobpcgParams:
        return self._result.params

    @property
    def info(self) -> dict[str, Any]:
        """Solver metadata (residual history, block sizes, restarts)."""
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        """Non-fatal warnings from computation."""
        return self._result.warnings

    def summary(self) -> str:
        """Generate summary output."""
        lines = [
            "Truncated Eigendecomposition (LOBPCG)",
            "=" * 60,
            f"Order: {self.order}",
            f"Problem size: {self.eigenvectors.shape[0]}",
            f"Pairs: {len(self)}",
            f"Converged: {self.converged} ({self.n_iter} iterations, "
            f"tol={self.info['tolerance']:g})",
            "",
            f"{'':>4s} {'Eigenvalue':>16s} {'Residual':>12s}",
        ]
        for i, (val, res) in enumerate(zip(self.eigenvalues, self.residual_norms)):
            lines.append(f"{i:>4d} {val:16.8g} {res:12.3e}")
        if self.warnings:
            lines.append("")
            lines.extend(f"Warning: {w}" for w in self.warnings)
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"EigSolution(order={self.order!r}, k={len(self)}, "
            f"converged={self.converged}, n_iter={self.n_iter})"
        )


@dataclass
class SVDSolution:
    """
    User-facing truncated SVD results.

    Singular values are available immediately; the singular vectors of
    the factor the eigensolver did not produce are recovered on demand
    with one product by A and cached.
    """
    _result: Result[SVDParams]
    _matrix: NDArray[np.inexact[Any]]

    # Cached computations
    _factors: tuple[NDArray[np.inexact[Any]], NDArray[np.inexact[Any]]] | None = None

    @property
    def values(self) -> NDArray[np.floating[Any]]:
        """Singular values, non-negative and non-increasing."""
        return np.sqrt(self._result.params.eigenvalues)

    @property
    def degenerate(self) -> NDArray[np.bool_]:
        """True for singular values that are numerically zero."""
        params = self._result.params
        return params.eigenvalues <= params.cutoff

    @property
    def n_degenerate(self) -> int:
        return int(np.sum(self.degenerate))

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def params(self) -> SVDParams:
        return self._result.params

    @property
    def info(self) -> dict[str, Any]:
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

    def _recover(self) -> tuple[NDArray[np.inexact[Any]], NDArray[np.inexact[Any]]]:
        """
        Left and right singular vectors for every component.

        The recovered factor is A v / sigma (or A^H u / sigma) rescaled to
        unit norm, and re-orthogonalized if the columns drifted apart.
        Columns of degenerate components are NaN.
        """
        if self._factors is not None:
            return self._factors

        params = self._result.params
        known = params.eigenvectors
        a = self._matrix
        image = a @ known if params.normal else a.conj().T @ known

        degenerate = self.degenerate
        good = np.flatnonzero(~degenerate)
        recovered = np.full(image.shape, np.nan, dtype=image.dtype)
        if len(good):
            cols = image[:, good] / self.values[good]
            # Magnitude correction
            cols = cols / np.linalg.norm(cols, axis=0)
            drift = np.max(np.abs(cols.conj().T @ cols - np.eye(len(good))))
            if drift > self.info['tolerance']:
                cols = _reorthogonalize(cols)
            recovered[:, good] = cols

        if params.normal:
            self._factors = (recovered, known)
        else:
            self._factors = (known, recovered)
        return self._factors

    def values_vectors(
        self,
        drop_degenerate: bool = True,
    ) -> tuple[NDArray[np.inexact[Any]], NDArray[np.floating[Any]], NDArray[np.inexact[Any]]]:
        """
        Singular values with left and right singular vectors.

        Args:
            drop_degenerate: Leave out numerically zero singular values,
                whose recovered vectors are undefined. If False they are
                kept and their recovered columns are NaN.

        Returns:
            (U, S, Vh) with A ~= U @ diag(S) @ Vh
        """
        u, v = self._recover()
        s = self.values
        if drop_degenerate:
            keep = ~self.degenerate
            u, s, v = u[:, keep], s[keep], v[:, keep]
        return u, s, v.conj().T

    def reconstruct(self) -> NDArray[np.inexact[Any]]:
        """U diag(S) Vh over the non-degenerate components."""
        u, s, vh = self.values_vectors(drop_degenerate=True)
        return (u * s) @ vh

    def summary(self) -> str:
        """Generate summary output."""
        m, n = self._matrix.shape
        gram = 'A^H A' if self._result.params.normal else 'A A^H'
        lines = [
            "Truncated Singular Value Decomposition",
            "=" * 60,
            f"Matrix: {m} x {n}",
            f"Gram operator: {gram}",
            f"Components: {len(self.values)} ({self.n_degenerate} degenerate)",
            f"Converged: {self.converged}",
            "",
            f"{'':>4s} {'Singular value':>16s}",
        ]
        for i, (s, deg) in enumerate(zip(self.values, self.degenerate)):
            flag = "  (degenerate)" if deg else ""
            lines.append(f"{i:>4d} {s:16.8g}{flag}")
        if self.warnings:
            lines.append("")
            lines.extend(f"Warning: {w}" for w in self.warnings)
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"SVDSolution(shape={self._matrix.shape}, k={len(self.values)}, "
            f"n_degenerate={self.n_degenerate})"
        )


def _reorthogonalize(cols: NDArray[np.inexact[Any]]) -> NDArray[np.inexact[Any]]:
    """
    Gram-Schmidt pass over nearly orthonormal columns.

    The columns are unit vectors; a column that turns out dependent is
    kept as it is.
    """
    ortho = MGS(cols.shape[0], dtype=cols.dtype)
    out = cols.copy()
    for j in range(cols.shape[1]):
        res = ortho.append(cols[:, j], rtol=0.0)
        if res.is_added:
            out[:, j] = ortho.get_q()[:, -1]
    return out
