"""
Tests for the Householder orthogonalizer and its reflector primitives.

The Householder strategy must agree with modified Gram-Schmidt on
well-conditioned input: same Q, same R, positive diagonal.
"""

import numpy as np
import pytest

from pylinalg.core.compute.precision import phase
from pylinalg.core.exceptions import DimensionError, ValidationError
from pylinalg.core.random import random_matrix
from pylinalg.krylov import MGS, Householder, calc_reflector, reflect


# ═══════════════════════════════════════════════════════════════════════
# Reflector primitives
# ═══════════════════════════════════════════════════════════════════════


class TestReflector:

    def test_real_reflector_maps_to_axis(self):
        x = np.array([3.0, 4.0, 0.0])
        w = x.copy()
        calc_reflector(w)
        assert np.linalg.norm(w) == pytest.approx(1.0)
        y = x.copy()
        reflect(w, y)
        np.testing.assert_allclose(y, [-5.0, 0.0, 0.0], atol=1e-14)

    def test_complex_reflector_maps_to_axis(self):
        x = np.array([1.0 + 1.0j, 2.0, -1.0j])
        w = x.copy()
        calc_reflector(w)
        y = x.copy()
        reflect(w, y)
        alpha = -phase(x[0]) * np.linalg.norm(x)
        np.testing.assert_allclose(y, [alpha, 0.0, 0.0], atol=1e-14)

    def test_reflection_is_involution(self, rng):
        w = rng.standard_normal(5)
        calc_reflector(w)
        a = rng.standard_normal(5)
        b = a.copy()
        reflect(w, b)
        reflect(w, b)
        np.testing.assert_allclose(b, a, atol=1e-14)

    def test_reflect_shape_mismatch(self):
        with pytest.raises(DimensionError, match="does not match"):
            reflect(np.ones(3), np.ones(2))

    def test_empty_reflector_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            calc_reflector(np.zeros(0))


# ═══════════════════════════════════════════════════════════════════════
# Appends
# ═══════════════════════════════════════════════════════════════════════


class TestHouseholderAppend:

    def test_coefficients_of_small_example(self):
        hh = Householder(3, tol=1e-9)
        np.testing.assert_allclose(hh.append([0.0, 1.0, 0.0]).coefficients, [1.0])
        np.testing.assert_allclose(hh.append([1.0, 1.0, 0.0]).coefficients, [1.0, 1.0])
        res = hh.append([1.0, 2.0, 0.0])
        assert res.is_dependent
        np.testing.assert_allclose(res.coefficients, [2.0, 1.0, 0.0], atol=1e-14)
        assert len(hh) == 2

    def test_duplicate_is_dependent(self, rng):
        x = rng.standard_normal(6)
        hh = Householder(6)
        hh.append(x)
        assert hh.append(x).is_dependent
        assert len(hh) == 1

    def test_div_append_leaves_unit_vector(self):
        hh = Householder(3)
        hh.append([1.0, 0.0, 0.0])
        a = np.array([2.0, 3.0, 0.0])
        assert hh.div_append(a).is_added
        np.testing.assert_allclose(a, [0.0, 1.0, 0.0], atol=1e-15)

    def test_dependent_div_append_leaves_residual(self):
        hh = Householder(3)
        hh.append([1.0, 0.0, 0.0])
        a = np.array([2.0, 1e-12, 0.0])
        res = hh.div_append(a, rtol=1e-9)
        assert res.is_dependent
        np.testing.assert_allclose(a, [0.0, 1e-12, 0.0], atol=1e-15)

    def test_orthogonalize_in_place(self):
        hh = Householder(3)
        hh.append([1.0, 0.0, 0.0])
        a = np.array([5.0, 3.0, 4.0])
        assert hh.orthogonalize(a) == pytest.approx(5.0)
        np.testing.assert_allclose(a, [0.0, 3.0, 4.0], atol=1e-14)


# ═══════════════════════════════════════════════════════════════════════
# Basis
# ═══════════════════════════════════════════════════════════════════════


class TestHouseholderBasis:

    def test_q_is_orthonormal(self, independent_vectors):
        hh = Householder(5)
        for col in independent_vectors.T:
            hh.append(col)
        q = hh.get_q()
        np.testing.assert_allclose(q.T @ q, np.eye(5), atol=1e-12)

    def test_get_q_is_repeatable(self, independent_vectors):
        hh = Householder(5)
        for col in independent_vectors.T[:3]:
            hh.append(col)
        np.testing.assert_array_equal(hh.get_q(), hh.get_q())

    def test_get_q_empty_raises(self):
        with pytest.raises(ValidationError, match="empty"):
            Householder(3).get_q()

    def test_wrong_length_raises(self):
        with pytest.raises(DimensionError):
            Householder(3).append(np.ones(4))

    def test_real_vector_on_complex_basis_rejected(self):
        hh = Householder(3)
        hh.append([1j, 1.0, 0.0])
        a = np.array([1.0, 2.0, 3.0])
        with pytest.raises(ValidationError, match="complex128"):
            hh.orthogonalize(a)
        np.testing.assert_array_equal(a, [1.0, 2.0, 3.0])
        np.testing.assert_allclose(hh.coeff(a)[-1], np.sqrt(11.5), rtol=1e-12)


# ═══════════════════════════════════════════════════════════════════════
# Agreement with MGS
# ═══════════════════════════════════════════════════════════════════════


class TestAgreementWithMGS:

    @pytest.mark.parametrize("dtype", [np.float64, np.complex128])
    def test_same_q_and_coefficients(self, rng, dtype):
        a = random_matrix((6, 4), rng, dtype)
        mgs, hh = MGS(6), Householder(6)
        for col in a.T:
            c_mgs = mgs.append(col).coefficients
            c_hh = hh.append(col).coefficients
            np.testing.assert_allclose(c_hh, c_mgs, atol=1e-12)
        np.testing.assert_allclose(hh.get_q(), mgs.get_q(), atol=1e-12)

    def test_positive_diagonal(self, independent_vectors):
        hh = Householder(5)
        for col in independent_vectors.T:
            assert hh.append(col).coefficients[-1].real > 0
