"""
Tests for input validation utilities.

Validates every function in core/validation.py:
    - check_array: conversion, dtype handling, object rejection
    - check_finite: NaN/Inf detection
    - check_ndim / check_1d / check_2d / check_square: shape checks
    - check_hermitian: symmetry within tolerance
    - check_vector_length: orthogonalizer dimension contract
    - check_positive_int / check_choice: option validation
"""

import numpy as np
import pytest

from pylinalg.core.exceptions import DimensionError, ValidationError
from pylinalg.core.validation import (
    check_1d,
    check_2d,
    check_array,
    check_choice,
    check_finite,
    check_hermitian,
    check_ndim,
    check_positive_int,
    check_square,
    check_vector_length,
)


# ═══════════════════════════════════════════════════════════════════════
# check_array
# ═══════════════════════════════════════════════════════════════════════


class TestCheckArray:
    """check_array converts to ndarray and rejects non-numeric data."""

    def test_list_to_float_array(self):
        result = check_array([1, 2, 3], "a")
        assert isinstance(result, np.ndarray)
        assert result.dtype == np.float64
        np.testing.assert_array_equal(result, [1.0, 2.0, 3.0])

    def test_bool_promoted_to_float(self):
        result = check_array(np.array([True, False]), "a")
        assert result.dtype == np.float64

    def test_float32_preserved(self):
        arr = np.array([1.0, 2.0], dtype=np.float32)
        assert check_array(arr, "a").dtype == np.float32

    def test_complex_preserved(self):
        arr = np.array([1.0 + 2.0j, 3.0 - 1.0j])
        result = check_array(arr, "a")
        assert result.dtype == np.complex128
        np.testing.assert_array_equal(result, arr)

    def test_complex64_preserved(self):
        arr = np.array([1.0 + 2.0j], dtype=np.complex64)
        assert check_array(arr, "a").dtype == np.complex64

    def test_rejects_mixed_types(self):
        with pytest.raises(ValidationError, match="object dtype"):
            check_array([None, 1, 2.0], "a")

    def test_rejects_strings(self):
        with pytest.raises(ValidationError, match="non-numeric dtype"):
            check_array(["a", "b", "c"], "a")

    def test_error_message_includes_name(self):
        with pytest.raises(ValidationError, match="my_var"):
            check_array([None, 1], "my_var")


# ═══════════════════════════════════════════════════════════════════════
# check_finite
# ═══════════════════════════════════════════════════════════════════════


class TestCheckFinite:

    def test_finite_passes(self):
        check_finite(np.array([1.0, 2.0, 3.0]), "a")

    def test_nan_rejected(self):
        with pytest.raises(ValidationError, match="1 NaN"):
            check_finite(np.array([1.0, np.nan, 3.0]), "a")

    def test_inf_rejected(self):
        with pytest.raises(ValidationError, match="1 Inf"):
            check_finite(np.array([1.0, np.inf, 3.0]), "a")

    def test_complex_nan_rejected(self):
        with pytest.raises(ValidationError):
            check_finite(np.array([1.0 + 0j, complex(np.nan, 1.0)]), "a")


# ═══════════════════════════════════════════════════════════════════════
# Shape checks
# ═══════════════════════════════════════════════════════════════════════


class TestCheckNdim:

    def test_wrong_ndim_raises(self):
        with pytest.raises(DimensionError, match="expected 2D"):
            check_ndim(np.array([1.0, 2.0]), 2, "a")

    def test_check_1d(self):
        check_1d(np.array([1.0, 2.0]), "a")
        with pytest.raises(DimensionError):
            check_1d(np.ones((2, 2)), "a")

    def test_check_2d(self):
        check_2d(np.ones((2, 3)), "a")
        with pytest.raises(DimensionError):
            check_2d(np.ones(3), "a")

    def test_error_attributes(self):
        with pytest.raises(DimensionError) as exc_info:
            check_ndim(np.ones((2, 2, 2)), 2, "a")
        assert exc_info.value.expected == 2
        assert exc_info.value.actual == 3


class TestCheckSquare:

    def test_square_passes(self):
        check_square(np.eye(3), "a")

    def test_rectangular_raises(self):
        with pytest.raises(DimensionError, match="square"):
            check_square(np.ones((2, 3)), "a")


class TestCheckHermitian:

    def test_symmetric_passes(self):
        check_hermitian(np.array([[2.0, 1.0], [1.0, 3.0]]), "a")

    def test_hermitian_passes(self):
        a = np.array([[2.0, 1.0 - 1.0j], [1.0 + 1.0j, 3.0]])
        check_hermitian(a, "a")

    def test_complex_symmetric_rejected(self):
        """Symmetric but not Hermitian."""
        a = np.array([[2.0, 1.0j], [1.0j, 3.0]])
        with pytest.raises(ValidationError, match="Hermitian"):
            check_hermitian(a, "a")

    def test_asymmetric_rejected(self):
        with pytest.raises(ValidationError):
            check_hermitian(np.array([[1.0, 2.0], [0.0, 1.0]]), "a")

    def test_tolerance_is_relative_to_scale(self):
        a = np.array([[1e6, 1.0], [1.0 + 1e-4, 1e6]])
        check_hermitian(a, "a", atol=1e-8)

    def test_rectangular_is_dimension_error(self):
        with pytest.raises(DimensionError):
            check_hermitian(np.ones((2, 3)), "a")


class TestCheckVectorLength:

    def test_matching_length_passes(self):
        check_vector_length(np.zeros(3), 3, "a")

    def test_mismatch_raises(self):
        with pytest.raises(DimensionError) as exc_info:
            check_vector_length(np.zeros(4), 3, "a")
        assert exc_info.value.expected == 3
        assert exc_info.value.actual == 4

    def test_matrix_rejected(self):
        with pytest.raises(DimensionError):
            check_vector_length(np.zeros((3, 1)), 3, "a")


# ═══════════════════════════════════════════════════════════════════════
# Option checks
# ═══════════════════════════════════════════════════════════════════════


class TestCheckPositiveInt:

    def test_valid(self):
        check_positive_int(3, "k")
        check_positive_int(np.int64(3), "k", maximum=3)

    def test_zero_rejected(self):
        with pytest.raises(ValidationError, match="at least 1"):
            check_positive_int(0, "k")

    def test_above_maximum_rejected(self):
        with pytest.raises(ValidationError, match="at most 5"):
            check_positive_int(6, "k", maximum=5)

    def test_float_rejected(self):
        with pytest.raises(ValidationError, match="expected integer"):
            check_positive_int(2.0, "k")

    def test_bool_rejected(self):
        with pytest.raises(ValidationError):
            check_positive_int(True, "k")


class TestCheckChoice:

    def test_valid(self):
        check_choice("skip", ("terminate", "skip", "full"), "strategy")

    def test_unknown_rejected(self):
        with pytest.raises(ValidationError, match="Unknown strategy"):
            check_choice("restart", ("terminate", "skip", "full"), "strategy")
