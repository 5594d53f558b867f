"""
Seeded random test vectors.

Every random block in PyLinalg comes from an explicit numpy Generator.
There is no process-wide random state: callers pass a seed or a
Generator, and tests thread the `rng` fixture through.
"""

from typing import Any

import numpy as np
from numpy.typing import DTypeLike, NDArray

from pylinalg.core.compute.precision import real_dtype

RandomState = int | np.random.Generator | None


def as_generator(rng: RandomState) -> np.random.Generator:
    """Normalize a seed, Generator or None into a Generator."""
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def random_matrix(
    shape: int | tuple[int, ...],
    rng: RandomState = None,
    dtype: DTypeLike = np.float64,
) -> NDArray[np.inexact[Any]]:
    """
    Standard normal entries of the requested shape and dtype.

    Complex dtypes get independent standard normal real and imaginary
    parts.

    Args:
        shape: Output shape
        rng: Seed or Generator
        dtype: float32, float64, complex64 or complex128

    Returns:
        Random array
    """
    gen = as_generator(rng)
    dtype = np.dtype(dtype)
    base = real_dtype(dtype)
    values = gen.standard_normal(shape)
    if np.issubdtype(dtype, np.complexfloating):
        values = values + 1j * gen.standard_normal(shape)
        return values.astype(dtype)
    return values.astype(base)


def random_unitary(
    n: int,
    rng: RandomState = None,
    dtype: DTypeLike = np.float64,
) -> NDArray[np.inexact[Any]]:
    """
    Random orthogonal (or unitary) n x n matrix from the QR of a Gaussian
    matrix, with the phases of R's diagonal folded into Q.
    """
    a = random_matrix((n, n), rng, dtype)
    q, r = np.linalg.qr(a)
    d = np.diag(r)
    d = np.where(np.abs(d) > 0, d / np.abs(d), 1.0)
    return (q * d).astype(dtype)


def hermitian_with_spectrum(
    eigenvalues: NDArray[np.floating[Any]],
    rng: RandomState = None,
    dtype: DTypeLike = np.float64,
) -> NDArray[np.inexact[Any]]:
    """
    Hermitian matrix V diag(eigenvalues) V^H with a random unitary V.

    Useful for eigensolver tests with a known spectrum.
    """
    eigenvalues = np.asarray(eigenvalues, dtype=real_dtype(dtype))
    v = random_unitary(len(eigenvalues), rng, dtype)
    a = (v * eigenvalues) @ v.conj().T
    return ((a + a.conj().T) / 2).astype(dtype)
