"""Dense linear-algebra primitives over flat buffers.

The signatures mirror the BLAS level-1/2/3 routines the layers are written
against: every matrix is a flat, row-major ``numpy`` buffer whose dimensions
are passed explicitly, and results are written into caller-owned buffers.
Nothing here checks that the dimensions agree with the buffer lengths.
"""

from __future__ import annotations

import numpy as np

from .types import Array


def _view(buffer: Array, rows: int, cols: int, transpose: bool) -> Array:
    matrix = buffer[: rows * cols].reshape(rows, cols)
    return matrix.T if transpose else matrix


def gemv(
    trans: bool,
    rows: int,
    cols: int,
    alpha: float,
    a: Array,
    x: Array,
    beta: float,
    y: Array,
) -> Array:
    """``y = alpha * op(A) @ x + beta * y`` for a row-major ``rows x cols`` ``A``.

    ``op`` transposes ``A`` when ``trans`` is true, in which case ``x`` has
    ``rows`` entries and ``y`` has ``cols``. With ``beta == 0`` the previous
    contents of ``y`` are ignored, so stale NaNs do not leak through.
    """

    matrix = _view(a, rows, cols, trans)
    out_len, in_len = matrix.shape
    product = matrix @ x[:in_len]
    if beta == 0.0:
        y[:out_len] = alpha * product
    else:
        y[:out_len] = alpha * product + beta * y[:out_len]
    return y


def gemm(
    trans_a: bool,
    trans_b: bool,
    m: int,
    n: int,
    k: int,
    alpha: float,
    a: Array,
    b: Array,
    beta: float,
    c: Array,
) -> Array:
    """``C = alpha * op(A) @ op(B) + beta * C`` with ``C`` row-major ``m x n``.

    ``op(A)`` is ``m x k`` and ``op(B)`` is ``k x n``; with ``k == 1`` this is
    the outer product of two vectors.
    """

    left = _view(a, k, m, True) if trans_a else _view(a, m, k, False)
    right = _view(b, n, k, True) if trans_b else _view(b, k, n, False)
    target = c[: m * n].reshape(m, n)
    product = left @ right
    if beta == 0.0:
        target[...] = alpha * product
    else:
        target[...] = alpha * product + beta * target
    return c


def vmul(n: int, a: Array, x: Array, y: Array) -> Array:
    """Elementwise ``y[i] = a[i] * x[i]``; ``y`` may alias ``x``."""

    np.multiply(a[:n], x[:n], out=y[:n], casting="unsafe")
    return y


def axpy(n: int, alpha: float, x: Array, y: Array) -> Array:
    """Scaled accumulate ``y += alpha * x`` in place."""

    y[:n] += np.asarray(alpha * x[:n], dtype=y.dtype)
    return y


__all__ = ["gemv", "gemm", "vmul", "axpy"]
