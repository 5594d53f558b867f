"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from pylinalg.core.random import hermitian_with_spectrum, random_matrix


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def independent_vectors(rng):
    """Five well-conditioned vectors in R^5, as columns."""
    a = random_matrix((5, 5), rng)
    return a + 5.0 * np.eye(5)


@pytest.fixture
def dependent_vectors():
    """Columns where the third is the sum of the first two."""
    x1 = np.array([1.0, 0.0, 2.0, 1.0])
    x2 = np.array([0.0, 1.0, 1.0, -1.0])
    x4 = np.array([1.0, 1.0, 0.0, 0.0])
    return np.column_stack([x1, x2, x1 + x2, x4])


@pytest.fixture
def diagonal_problem():
    """Diagonal matrix with eigenvalues 1..20."""
    return np.diag(np.arange(1.0, 21.0))


@pytest.fixture
def constructed_problem(rng):
    """Dense symmetric 50x50 matrix with eigenvalues linspace(50, -50)."""
    n = 50
    return hermitian_with_spectrum(np.linspace(n, -n, n), rng)
