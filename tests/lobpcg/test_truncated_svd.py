"""
Tests for TruncatedSVD and SVDSolution.
"""

import numpy as np
import pytest

from pylinalg.core.exceptions import ConvergenceError, ValidationError
from pylinalg.core.random import random_matrix, random_unitary
from pylinalg.core.result import Result
from pylinalg.lobpcg import SVDParams, SVDSolution, TruncatedSVD


def _with_singular_values(m, n, values, rng):
    u = random_unitary(m, rng)[:, :len(values)]
    v = random_unitary(n, rng)[:, :len(values)]
    return (u * values) @ v.T


# ═══════════════════════════════════════════════════════════════════════
# Known decompositions
# ═══════════════════════════════════════════════════════════════════════


class TestTruncatedSVD:

    def test_small_wide_matrix(self):
        a = np.array([[3.0, 2.0, 2.0], [2.0, 3.0, -2.0]])
        sol = TruncatedSVD(a, rng=0).decompose(2)
        assert isinstance(sol, SVDSolution)
        np.testing.assert_allclose(sol.values, [5.0, 3.0], atol=1e-10)
        assert sol.info['gram'] == 'outer'
        np.testing.assert_allclose(sol.reconstruct(), a, atol=1e-10)

    def test_full_rank_tall(self, rng):
        a = rng.standard_normal((50, 10))
        sol = TruncatedSVD(a, rng=rng).decompose(10)
        assert sol.info['gram'] == 'normal'
        np.testing.assert_allclose(sol.values, np.linalg.svd(a, compute_uv=False), rtol=1e-10)
        np.testing.assert_allclose(sol.reconstruct(), a, atol=1e-10)

    def test_factors_are_orthonormal(self, rng):
        a = rng.standard_normal((12, 6))
        u, s, vh = TruncatedSVD(a, rng=rng).decompose(6).values_vectors()
        assert u.shape == (12, 6)
        assert s.shape == (6,)
        assert vh.shape == (6, 6)
        np.testing.assert_allclose(u.T @ u, np.eye(6), atol=1e-8)
        np.testing.assert_allclose(vh @ vh.T, np.eye(6), atol=1e-8)
        np.testing.assert_allclose(a @ vh.T, u * s, atol=1e-8)

    def test_largest_components(self, rng):
        a = _with_singular_values(40, 20, np.arange(20.0, 0.0, -1.0), rng)
        svd = TruncatedSVD(a, rng=rng).maxiter(400)
        sol = svd.decompose(3)
        assert sol.converged
        np.testing.assert_allclose(sol.values, [20.0, 19.0, 18.0], atol=1e-6)

    def test_smallest_components(self, rng):
        a = _with_singular_values(8, 4, np.array([4.0, 3.0, 2.0, 1.0]), rng)
        sol = TruncatedSVD(a, 'smallest', rng=rng).decompose(2)
        np.testing.assert_allclose(sol.values, [2.0, 1.0], atol=1e-8)

    def test_complex_matrix(self, rng):
        a = random_matrix((6, 3), rng, np.complex128)
        sol = TruncatedSVD(a, rng=rng).decompose(3)
        np.testing.assert_allclose(sol.values, np.linalg.svd(a, compute_uv=False), rtol=1e-10)
        np.testing.assert_allclose(sol.reconstruct(), a, atol=1e-10)


# ═══════════════════════════════════════════════════════════════════════
# Degenerate singular values
# ═══════════════════════════════════════════════════════════════════════


class TestDegenerate:

    @pytest.fixture
    def rank_two(self, rng):
        return _with_singular_values(6, 4, np.array([3.0, 1.0]), rng)

    def test_zero_singular_values_flagged(self, rank_two, rng):
        sol = TruncatedSVD(rank_two, rng=rng).decompose(4)
        assert sol.n_degenerate == 2
        np.testing.assert_array_equal(sol.degenerate, [False, False, True, True])
        np.testing.assert_allclose(sol.values[:2], [3.0, 1.0], atol=1e-10)
        assert np.all(sol.values >= 0.0)

    def test_degenerate_columns_dropped(self, rank_two, rng):
        sol = TruncatedSVD(rank_two, rng=rng).decompose(4)
        u, s, vh = sol.values_vectors()
        assert u.shape == (6, 2)
        assert s.shape == (2,)
        assert vh.shape == (2, 4)
        np.testing.assert_allclose(sol.reconstruct(), rank_two, atol=1e-10)

    def test_degenerate_columns_kept_as_nan(self, rank_two, rng):
        sol = TruncatedSVD(rank_two, rng=rng).decompose(4)
        u, s, vh = sol.values_vectors(drop_degenerate=False)
        assert u.shape == (6, 4)
        assert np.all(np.isnan(u[:, 2:]))
        assert not np.any(np.isnan(vh))

    def test_drifted_factor_is_reorthogonalized(self, rng):
        a = _with_singular_values(8, 4, np.array([4.0, 3.0, 2.0, 1.0]), rng)
        _, s, vh = np.linalg.svd(a, full_matrices=False)
        v = vh.T + 1e-3 * rng.standard_normal((4, 4))
        v /= np.linalg.norm(v, axis=0)
        raw = a @ v
        raw /= np.linalg.norm(raw, axis=0)
        assert np.max(np.abs(raw.T @ raw - np.eye(4))) > 1e-6

        params = SVDParams(
            eigenvalues=s ** 2,
            eigenvectors=v,
            normal=True,
            cutoff=0.0,
            converged=True,
        )
        result = Result(params=params, info={'tolerance': 1e-6}, timing=None, backend_name='lobpcg')
        u, _, _ = SVDSolution(_result=result, _matrix=a).values_vectors()
        np.testing.assert_allclose(u.T @ u, np.eye(4), atol=1e-12)
        np.testing.assert_allclose(u[:, 0], raw[:, 0], atol=1e-14)

    def test_summary_marks_degenerate(self, rank_two, rng):
        text = TruncatedSVD(rank_two, rng=rng).decompose(4).summary()
        assert "Gram operator: A^H A" in text
        assert "(2 degenerate)" in text
        assert text.count("(degenerate)") == 2


# ═══════════════════════════════════════════════════════════════════════
# Configuration and validation
# ═══════════════════════════════════════════════════════════════════════


class TestConfiguration:

    def test_eigen_tolerance_is_squared(self, rng):
        sol = TruncatedSVD(np.eye(3), rng=rng).precision(1e-4).decompose(1)
        assert sol.info['tolerance'] == 1e-4
        assert sol.info['eigen_tolerance'] == pytest.approx(1e-8)

    def test_eigen_tolerance_floored_for_large_entries(self, rng):
        a = 1e3 * rng.standard_normal((40, 8))
        sol = TruncatedSVD(a, rng=rng, strict=True).decompose(3)
        assert sol.converged
        assert sol.info['eigen_tolerance'] > 1e-10
        expected = np.linalg.svd(a, compute_uv=False)[:3]
        np.testing.assert_allclose(sol.values, expected, rtol=1e-8)

    def test_shape_and_repr(self):
        svd = TruncatedSVD(np.ones((4, 2)), 'smallest')
        assert svd.shape == (4, 2)
        assert svd.order == 'smallest'
        assert repr(svd) == "TruncatedSVD(shape=(4, 2), order='smallest', tol=1e-05)"

    def test_strict_raises(self, rng):
        a = _with_singular_values(30, 10, np.arange(10.0, 0.0, -1.0), rng)
        svd = TruncatedSVD(a, rng=rng, strict=True).maxiter(0)
        with pytest.raises(ConvergenceError):
            svd.decompose(2)

    def test_non_convergence_warns(self, rng):
        a = _with_singular_values(30, 10, np.arange(10.0, 0.0, -1.0), rng)
        with pytest.warns(RuntimeWarning, match="did not converge"):
            sol = TruncatedSVD(a, rng=rng).maxiter(0).decompose(2)
        assert not sol.converged

    def test_k_out_of_range(self):
        svd = TruncatedSVD(np.ones((5, 3)))
        with pytest.raises(ValidationError, match="at most 3"):
            svd.decompose(4)
        with pytest.raises(ValidationError, match="at least 1"):
            svd.decompose(0)

    def test_rejects_non_finite(self):
        with pytest.raises(ValidationError, match="non-finite"):
            TruncatedSVD(np.array([[1.0, np.nan], [0.0, 1.0]]))

    def test_rejects_empty(self):
        with pytest.raises(ValidationError, match="empty"):
            TruncatedSVD(np.zeros((0, 3)))

    def test_unknown_order(self):
        with pytest.raises(ValidationError, match="Unknown order"):
            TruncatedSVD(np.eye(2), 'middle')
