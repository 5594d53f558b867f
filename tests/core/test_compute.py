"""
Tests for shared compute infrastructure.

Validates:
    - Timer / timed section accounting
    - Precision helpers (real_dtype, machine_epsilon, magnitude_correction, phase)
    - Tolerance tier selection
    - Dense LAPACK wrappers translate failures into the exception hierarchy
    - Seeded random matrices
"""

import numpy as np
import pytest

from pylinalg.core.compute import Timer, timed
from pylinalg.core.compute.linalg import cholesky_cpu, eigh_cpu, solve_upper_triangular_cpu
from pylinalg.core.compute.precision import (
    machine_epsilon,
    magnitude_correction,
    phase,
    real_dtype,
)
from pylinalg.core.compute.tolerances import FP32, FP64, select_tolerance
from pylinalg.core.exceptions import NotPositiveDefiniteError, RankDeficiencyError
from pylinalg.core.random import (
    as_generator,
    hermitian_with_spectrum,
    random_matrix,
    random_unitary,
)


# ═══════════════════════════════════════════════════════════════════════
# Timing
# ═══════════════════════════════════════════════════════════════════════


class TestTimer:

    def test_sections_accumulate(self):
        timer = Timer()
        timer.start()
        for _ in range(3):
            with timer.section('residuals'):
                pass
        timer.stop()
        result = timer.result()
        assert set(result) == {'total_seconds', 'residuals'}
        assert result['residuals'] >= 0.0

    def test_result_before_stop_raises(self):
        timer = Timer()
        timer.start()
        with pytest.raises(RuntimeError, match="before stop"):
            timer.result()

    def test_stop_before_start_raises(self):
        with pytest.raises(RuntimeError, match="before start"):
            Timer().stop()

    def test_timed_context(self):
        with timed() as timer:
            pass
        assert timer.result()['total_seconds'] >= 0.0


# ═══════════════════════════════════════════════════════════════════════
# Precision
# ═══════════════════════════════════════════════════════════════════════


class TestPrecision:

    def test_real_dtype(self):
        assert real_dtype(np.complex128) == np.float64
        assert real_dtype(np.complex64) == np.float32
        assert real_dtype(np.float32) == np.float32
        assert real_dtype(np.int64) == np.float64

    def test_machine_epsilon(self):
        assert machine_epsilon(np.float64) == np.finfo(np.float64).eps
        assert machine_epsilon(np.complex64) == np.finfo(np.float32).eps

    def test_magnitude_correction(self):
        assert magnitude_correction(np.float64) == 1e6
        assert magnitude_correction(np.complex128) == 1e6
        assert magnitude_correction(np.float32) == 1e3

    def test_phase(self):
        assert phase(-3.0) == -1.0
        assert phase(0.0) == 1.0
        assert phase(3.0 + 4.0j) == pytest.approx(0.6 + 0.8j)

    def test_select_tolerance(self):
        assert select_tolerance(np.float64) is FP64
        assert select_tolerance(np.complex128) is FP64
        assert select_tolerance(np.complex64) is FP32


# ═══════════════════════════════════════════════════════════════════════
# Dense kernels
# ═══════════════════════════════════════════════════════════════════════


class TestDenseKernels:

    def test_eigh_ascending(self):
        res = eigh_cpu(np.diag([3.0, 1.0, 2.0]))
        np.testing.assert_allclose(res.eigenvalues, [1.0, 2.0, 3.0])

    def test_cholesky_solve(self, rng):
        b = rng.standard_normal((4, 4))
        a = b @ b.T + 4.0 * np.eye(4)
        factor = cholesky_cpu(a)
        rhs = rng.standard_normal(4)
        np.testing.assert_allclose(a @ factor.solve(rhs), rhs, atol=1e-12)

    def test_cholesky_failure_is_translated(self):
        with pytest.raises(NotPositiveDefiniteError) as exc_info:
            cholesky_cpu(np.diag([1.0, -1.0]), matrix_name='Y^H Y')
        assert exc_info.value.matrix_name == 'Y^H Y'

    def test_upper_triangular_solve(self):
        r = np.array([[2.0, 1.0], [0.0, 4.0]])
        np.testing.assert_allclose(solve_upper_triangular_cpu(r, np.array([4.0, 8.0])), [1.0, 2.0])

    def test_singular_triangular_system(self):
        r = np.array([[2.0, 1.0], [0.0, 0.0]])
        with pytest.raises(RankDeficiencyError) as exc_info:
            solve_upper_triangular_cpu(r, np.ones(2))
        assert exc_info.value.rank == 1
        assert exc_info.value.expected_rank == 2


# ═══════════════════════════════════════════════════════════════════════
# Random matrices
# ═══════════════════════════════════════════════════════════════════════


class TestRandom:

    def test_seed_is_reproducible(self):
        np.testing.assert_array_equal(random_matrix((3, 2), 5), random_matrix((3, 2), 5))

    def test_generator_passthrough(self, rng):
        assert as_generator(rng) is rng

    def test_complex_dtype(self, rng):
        a = random_matrix((3, 3), rng, np.complex64)
        assert a.dtype == np.complex64
        assert np.any(a.imag != 0)

    def test_unitary(self, rng):
        q = random_unitary(5, rng, np.complex128)
        np.testing.assert_allclose(q.conj().T @ q, np.eye(5), atol=1e-12)

    def test_hermitian_with_spectrum(self, rng):
        spectrum = np.array([3.0, -1.0, 0.5])
        a = hermitian_with_spectrum(spectrum, rng)
        np.testing.assert_allclose(a, a.T)
        np.testing.assert_allclose(np.linalg.eigvalsh(a), np.sort(spectrum), atol=1e-12)
