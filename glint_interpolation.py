# -*- coding: utf-8 -*-
"""
Glint: Tabular BRDF/BTDF data in angular coordinate systems
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: glint_interpolation.py — Multilinear spectra lookup over the 4-angle grid.

Every query row (a0, a1, a2, a3) is bracketed independently on each axis
with ``glint_array.lower_index`` and the 16 surrounding cells are blended
with tensor-product linear weights.  Rows are independent, so the serial
and the ``prange`` kernel produce identical results.

Out-of-range queries are clamped to the nearest boundary sample of the
offending axis (no linear extrapolation past the grid).  Queries that sit
exactly on grid samples return the stored spectrum unchanged.

Runtime toggle:
    import glint_interpolation as gi
    gi.set_parallel(True)    # use the prange kernel
    gi.set_parallel(False)   # serial kernel (default)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numba import njit, prange

from glint_array import lower_index

if TYPE_CHECKING:
    from glint_sampleset import SampleSet

__all__ = [
    "set_parallel",
    "is_parallel",
    "interpolate_spectra",
]


# --- Runtime Configuration ---
# When True, batch lookups run on the parallel=True kernel.  Worth it for
# conversion grids (10^5..10^6 queries); thread start-up dominates for small
# batches.
_PARALLEL: bool = False


def set_parallel(enabled: bool = True) -> None:
    """
    Toggle between the serial (default) and the ``prange`` lookup kernel.

    Args:
        enabled: If True, use the parallel kernel.
    """
    global _PARALLEL
    _PARALLEL = bool(enabled)


def is_parallel() -> bool:
    return _PARALLEL


# =============================================================================
# 1. PER-AXIS WEIGHTS
# =============================================================================

@njit(cache=True)
def _axis_weight(values, value, equal_interval):
    """Return (lower, upper, t) with t in [0, 1] for one axis."""
    n = values.shape[0]
    if n < 2:
        return 0, 0, 0.0

    lo = lower_index(values, value, equal_interval)
    hi = lo + 1
    span = values[hi] - values[lo]
    if span <= 0.0:
        return lo, hi, 0.0

    t = (value - values[lo]) / span
    if t < 0.0:
        t = 0.0
    elif t > 1.0:
        t = 1.0
    return lo, hi, t


@njit(cache=True)
def _interpolate_row(a0, a1, a2, a3, eq, spectra, q, out):
    lo = np.empty(4, dtype=np.int64)
    hi = np.empty(4, dtype=np.int64)
    t = np.empty(4, dtype=np.float64)

    lo[0], hi[0], t[0] = _axis_weight(a0, q[0], eq[0])
    lo[1], hi[1], t[1] = _axis_weight(a1, q[1], eq[1])
    lo[2], hi[2], t[2] = _axis_weight(a2, q[2], eq[2])
    lo[3], hi[3], t[3] = _axis_weight(a3, q[3], eq[3])

    n_wl = spectra.shape[4]
    for k in range(n_wl):
        out[k] = 0.0

    idx = np.empty(4, dtype=np.int64)
    # 16 corners; bit j selects the upper sample on axis j.
    for corner in range(16):
        w = 1.0
        for j in range(4):
            if (corner >> j) & 1:
                w *= t[j]
                idx[j] = hi[j]
            else:
                w *= 1.0 - t[j]
                idx[j] = lo[j]
        if w == 0.0:
            continue
        for k in range(n_wl):
            out[k] += w * spectra[idx[0], idx[1], idx[2], idx[3], k]


# =============================================================================
# 2. BATCH KERNELS
# =============================================================================

@njit(cache=True)
def _batch_interpolate(a0, a1, a2, a3, eq, spectra, queries):
    n = queries.shape[0]
    res = np.empty((n, spectra.shape[4]), dtype=np.float64)
    for i in range(n):
        _interpolate_row(a0, a1, a2, a3, eq, spectra, queries[i], res[i])
    return res


@njit(cache=True, parallel=True)
def _batch_interpolate_parallel(a0, a1, a2, a3, eq, spectra, queries):
    n = queries.shape[0]
    res = np.empty((n, spectra.shape[4]), dtype=np.float64)
    for i in prange(n):
        _interpolate_row(a0, a1, a2, a3, eq, spectra, queries[i], res[i])
    return res


# =============================================================================
# 3. PUBLIC API
# =============================================================================

def interpolate_spectra(sample_set: SampleSet, angles: np.ndarray) -> np.ndarray:
    """
    Multilinear spectra lookup for a batch of angle tuples.

    Args:
        sample_set: Grid to sample.  Its cached equal-interval flags select
            the O(1) bracket search per axis.
        angles: (N, 4) or (4,) array of (a0, a1, a2, a3) in the grid's
            coordinate system.  Azimuth folding is the caller's job.

    Returns:
        (N, n_wavelengths) array, or (n_wavelengths,) for a single query.
    """
    q = np.asarray(angles, dtype=np.float64)
    single = q.ndim == 1
    q = np.ascontiguousarray(np.atleast_2d(q))
    if q.shape[1] != 4:
        raise ValueError(f"interpolate_spectra: expected (N, 4) angles, got {q.shape}")

    axes = [np.array(sample_set.get_angles(i), dtype=np.float64) for i in range(4)]
    eq = sample_set.equal_intervals
    spectra = np.ascontiguousarray(sample_set.spectra)

    kernel = _batch_interpolate_parallel if _PARALLEL else _batch_interpolate
    res = kernel(axes[0], axes[1], axes[2], axes[3], eq, spectra, q)
    return res[0] if single else res
