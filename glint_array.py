# -*- coding: utf-8 -*-
"""
Glint: Tabular BRDF/BTDF data in angular coordinate systems
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: glint_array.py — Numeric array helpers for angle axes.

Contents:
  1.  copy / append_element      generic container helpers used while a grid
                                 is being assembled.
  2.  create_exponential         non-uniform axis generation (dense near 0).
  3.  is_equal_interval          arithmetic-progression detection, cached by
                                 SampleSet to enable O(1) bound lookup.
  4.  find_bounds                bracketing pair for interpolation /
                                 extrapolation.  The index search is a Numba
                                 kernel shared with glint_interpolation.
"""

from __future__ import annotations

from typing import Any, MutableSequence, NamedTuple, Sequence, Union

import numpy as np
from numba import njit

__all__ = [
    "Bounds",
    "EQUAL_INTERVAL_RTOL",
    "EQUAL_INTERVAL_ATOL",
    "copy",
    "append_element",
    "create_exponential",
    "is_equal_interval",
    "find_bounds",
    "lower_index",
]

# Tolerances for the equal-interval test.  Axes are usually produced from
# degree tables (np.radians) or np.linspace, both within a few ULP of step*i.
EQUAL_INTERVAL_RTOL: float = 1e-6
EQUAL_INTERVAL_ATOL: float = 1e-9

ArrayLike = Union[np.ndarray, Sequence[float]]


# ═══════════════════════════════════════════════════════════════════════════════
# 1.  Typed return container
# ═══════════════════════════════════════════════════════════════════════════════
class Bounds(NamedTuple):
    """
    Bracketing sample pair around a query value.

    ``lower_index <= upper_index`` always holds.  Both indices are equal
    only for single-element axes.
    """
    lower_index: int
    upper_index: int
    lower_value: float
    upper_value: float


# ═══════════════════════════════════════════════════════════════════════════════
# 2.  Container helpers
# ═══════════════════════════════════════════════════════════════════════════════
def copy(src: ArrayLike, dest: MutableSequence[Any]) -> None:
    """
    Element-wise copy of *src* into the pre-sized container *dest*.

    The containers may be of different concrete types (list, tuple source,
    ndarray of another dtype).  Elements of *dest* beyond ``len(src)`` are
    left untouched.

    Raises:
        ValueError: If *dest* is shorter than *src*.
    """
    n = len(src)
    if len(dest) < n:
        raise ValueError(
            f"copy: destination length {len(dest)} < source length {n}"
        )
    for i, value in enumerate(src):
        dest[i] = value


def append_element(array: ArrayLike, value: float) -> np.ndarray:
    """
    Return a new array with *value* appended after the existing elements.

    NumPy arrays cannot grow in place, so this is an O(n) reallocation.  It
    is meant for incremental axis construction, not for hot loops.
    """
    arr = np.asarray(array)
    dtype = arr.dtype if arr.size else np.float64
    out = np.empty(arr.shape[0] + 1, dtype=dtype)
    out[:-1] = arr
    out[-1] = value
    return out


def create_exponential(
    num_elements: int, max_value: float, exponent: float
) -> np.ndarray:
    """
    Create a non-equal interval array from 0 to *max_value*.

    The array starts as ``linspace(0, max_value, num_elements)``; every
    interior point ``v`` is then replaced by ``(v / max_value)**exponent *
    max_value``.  Exponents > 1 concentrate samples near 0 (e.g. around the
    specular direction of a specular-centered grid), exponents < 1 near
    *max_value*.  The end points are never warped.

    Args:
        num_elements: Number of samples (> 0).
        max_value: Last sample value.
        exponent: Warp exponent; 1.0 yields plain linear spacing.

    Returns:
        float64 array of length *num_elements*.
    """
    if num_elements <= 0:
        raise ValueError(f"num_elements must be > 0, got {num_elements}")

    arr = np.linspace(0.0, max_value, num_elements, dtype=np.float64)
    if num_elements > 2 and max_value != 0.0:
        ratio = arr[1:-1] / max_value
        arr[1:-1] = np.power(ratio, exponent) * max_value
    return arr


def is_equal_interval(array: ArrayLike) -> bool:
    """
    True if *array* is an arithmetic progression starting at 0.

    Arrays with two or fewer elements are never classified as equal
    interval, and neither is a degenerate progression with a zero step.
    """
    arr = np.asarray(array, dtype=np.float64)
    n = arr.shape[0]
    if n <= 2:
        return False

    interval = arr[-1] / (n - 1)
    if not interval > 0.0:
        return False

    expected = interval * np.arange(n, dtype=np.float64)
    return bool(
        np.all(np.isclose(arr, expected,
                          rtol=EQUAL_INTERVAL_RTOL, atol=EQUAL_INTERVAL_ATOL))
    )


# ═══════════════════════════════════════════════════════════════════════════════
# 3.  Bounds search (Numba)
# ═══════════════════════════════════════════════════════════════════════════════
@njit(cache=True)
def lower_index(values: np.ndarray, value: float, equal_interval: bool) -> int:
    """
    Index ``i`` in ``[0, n-2]`` such that ``values[i], values[i+1]`` bracket
    *value*, or the nearest boundary pair when *value* is out of range.

    Returns 0 for single-element axes.
    """
    n = values.shape[0]
    if n < 2:
        return 0

    if equal_interval:
        # Out-of-range values must not reach int(): huge quotients overflow.
        if not value > values[0]:
            return 0
        if value >= values[n - 1]:
            return n - 2
        step = values[n - 1] / (n - 1)
        idx = int(np.floor(value / step))
    else:
        lo = 0
        hi = n - 1
        while hi - lo > 1:
            mid = (lo + hi) // 2
            if values[mid] <= value:
                lo = mid
            else:
                hi = mid
        idx = lo

    if idx < 0:
        idx = 0
    elif idx > n - 2:
        idx = n - 2

    # Arithmetic lookup can land one cell off by rounding.
    if equal_interval:
        if idx > 0 and value < values[idx]:
            idx -= 1
        elif idx < n - 2 and value > values[idx + 1]:
            idx += 1

    return idx


def find_bounds(
    values: ArrayLike, value: float, equal_interval: bool = False
) -> Bounds:
    """
    Find the neighbouring sample points of *value* in a monotonic axis.

    If *value* is out of ``[values[0], values[-1]]`` the two nearest
    boundary samples are returned so the caller can extrapolate.  Indices
    are always valid positions in *values*.

    Args:
        values: Strictly increasing axis samples.
        value: Query value.
        equal_interval: Use O(1) arithmetic lookup.  Only valid when
            ``is_equal_interval(values)`` holds.

    Returns:
        ``Bounds(lower_index, upper_index, lower_value, upper_value)``.
    """
    arr = np.ascontiguousarray(values, dtype=np.float64)
    if arr.shape[0] == 0:
        raise ValueError("find_bounds: empty axis.")

    if arr.shape[0] == 1:
        v = float(arr[0])
        return Bounds(0, 0, v, v)

    lo = int(lower_index(arr, float(value), bool(equal_interval)))
    return Bounds(lo, lo + 1, float(arr[lo]), float(arr[lo + 1]))
