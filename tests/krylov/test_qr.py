"""
Tests for the online QR drivers and their dependency strategies.
"""

import numpy as np
import pytest

from pylinalg.core.exceptions import DimensionError, ValidationError
from pylinalg.krylov import MGS, Householder, QRSolution, householder, mgs, qr


# ═══════════════════════════════════════════════════════════════════════
# Independent input
# ═══════════════════════════════════════════════════════════════════════


class TestQRIndependent:

    @pytest.mark.parametrize("driver", [mgs, householder])
    def test_reconstruction(self, independent_vectors, driver):
        sol = driver(independent_vectors, 5)
        assert isinstance(sol, QRSolution)
        Q, R = sol
        np.testing.assert_allclose(Q @ R, independent_vectors, atol=1e-12)
        np.testing.assert_allclose(Q.T @ Q, np.eye(5), atol=1e-12)
        np.testing.assert_allclose(R, np.triu(R), atol=1e-14)

    def test_matches_lapack_up_to_signs(self, independent_vectors):
        sol = mgs(independent_vectors, 5)
        _, ref_r = np.linalg.qr(independent_vectors)
        assert sol.rank == 5
        np.testing.assert_allclose(np.abs(sol.R), np.abs(ref_r), atol=1e-12)

    def test_drivers_agree(self, independent_vectors):
        q1, r1 = mgs(independent_vectors, 5)
        q2, r2 = householder(independent_vectors, 5)
        np.testing.assert_allclose(q1, q2, atol=1e-12)
        np.testing.assert_allclose(r1, r2, atol=1e-12)

    def test_accepts_generator(self, independent_vectors):
        vectors = (col for col in independent_vectors.T)
        Q, R = mgs(vectors, 5)
        np.testing.assert_allclose(Q @ R, independent_vectors, atol=1e-12)


# ═══════════════════════════════════════════════════════════════════════
# Dependency strategies
# ═══════════════════════════════════════════════════════════════════════


class TestStrategies:
    """Third input column is the sum of the first two."""

    @pytest.mark.parametrize("driver", [mgs, householder])
    def test_terminate(self, dependent_vectors, driver):
        sol = driver(dependent_vectors, 4, strategy='terminate')
        assert sol.rank == 2
        assert sol.R.shape == (2, 2)
        assert sol.n_input == 3
        assert sol.dependent_indices == (2,)
        np.testing.assert_allclose(sol.Q @ sol.R, dependent_vectors[:, :2], atol=1e-12)

    @pytest.mark.parametrize("driver", [mgs, householder])
    def test_skip(self, dependent_vectors, driver):
        sol = driver(dependent_vectors, 4, strategy='skip')
        assert sol.rank == 3
        assert sol.R.shape == (3, 3)
        assert sol.n_input == 4
        kept = dependent_vectors[:, [0, 1, 3]]
        np.testing.assert_allclose(sol.Q @ sol.R, kept, atol=1e-12)

    @pytest.mark.parametrize("driver", [mgs, householder])
    def test_full(self, dependent_vectors, driver):
        sol = driver(dependent_vectors, 4, strategy='full')
        assert sol.rank == 3
        assert sol.R.shape == (3, 4)
        assert abs(sol.R[2, 2]) < 1e-12
        np.testing.assert_allclose(sol.Q @ sol.R, dependent_vectors, atol=1e-12)

    def test_skip_and_terminate_stop_when_full(self, rng):
        vectors = rng.standard_normal((3, 5))
        for strategy in ('skip', 'terminate'):
            sol = mgs(vectors, 3, strategy=strategy)
            assert sol.R.shape == (3, 3)
            assert sol.n_input == 3
            assert sol.dependent_indices == ()

    def test_full_keeps_every_column(self, rng):
        vectors = rng.standard_normal((3, 5))
        sol = householder(vectors, 3, strategy='full')
        assert sol.R.shape == (3, 5)
        assert sol.n_input == 5
        assert sol.dependent_indices == (3, 4)
        np.testing.assert_allclose(sol.Q @ sol.R, vectors, atol=1e-12)

    def test_loose_rtol_marks_more_dependent(self):
        vectors = np.array([[1.0, 1.0], [0.0, 1e-4]])
        assert mgs(vectors, 2, rtol=1e-9).rank == 2
        assert mgs(vectors, 2, rtol=1e-2).rank == 1


# ═══════════════════════════════════════════════════════════════════════
# Metadata and validation
# ═══════════════════════════════════════════════════════════════════════


class TestQRMetadata:

    def test_info_and_timing(self, dependent_vectors):
        sol = qr(dependent_vectors, MGS(4), strategy='skip', rtol=1e-8)
        assert sol.strategy == 'skip'
        assert sol.info['tolerance'] == 1e-8
        assert sol.info['n_dependent'] == 1
        assert sol.backend_name == 'mgs'
        assert 'orthogonalization' in sol.timing
        assert sol.warnings == ()

    def test_summary(self, dependent_vectors):
        sol = householder(dependent_vectors, 4, strategy='full')
        text = sol.summary()
        assert "Orthogonalizer: householder" in text
        assert "Strategy: full" in text
        assert "Dependent at: [2]" in text
        assert "QRSolution" in repr(sol)


class TestQRValidation:

    def test_unknown_strategy(self, independent_vectors):
        with pytest.raises(ValidationError, match="Unknown strategy"):
            mgs(independent_vectors, 5, strategy='restart')

    def test_nonempty_orthogonalizer(self, independent_vectors):
        ortho = Householder(5)
        ortho.append(independent_vectors[:, 0])
        with pytest.raises(ValidationError, match="must be empty"):
            qr(independent_vectors, ortho)

    def test_all_zero_input(self):
        with pytest.raises(ValidationError, match="none of the"):
            mgs(np.zeros((3, 2)), 3, strategy='skip')

    def test_dimension_mismatch(self, independent_vectors):
        with pytest.raises(DimensionError):
            mgs(independent_vectors, 4)
