"""
Generic result container for all PyLinalg computations.

The Result class provides a standardized envelope that all domain-specific
results use. This enables shared tooling for timing, diagnostics and
reproducibility while allowing domains to define their own parameter
structures.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (converged, iterations, diagnostics)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for numerical computations.

    Type Parameters:
        P: The domain-specific parameter payload type

    Attributes:
        params: Domain-specific payload (Q and R, eigenpairs, singular values)
        info: Structured metadata (method, convergence, diagnostics)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the algorithm that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> # Direct method (no convergence notion)
        >>> Result(
        ...     params=QRParams(Q=Q, R=R, rank=3, ...),
        ...     info={'strategy': 'skip', 'n_dependent': 1},
        ...     timing=None,
        ...     backend_name='mgs'
        ... )

        >>> # Iterative method
        >>> Result(
        ...     params=LobpcgParams(eigenvalues=vals, ...),
        ...     info={'order': 'largest', 'converged': True, 'iterations': 23},
        ...     timing={'total_seconds': 0.5, 'rayleigh_ritz': 0.3},
        ...     backend_name='lobpcg'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
