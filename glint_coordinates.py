# -*- coding: utf-8 -*-
"""
Glint: Tabular BRDF/BTDF data in angular coordinate systems
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: glint_coordinates.py — Angle tuples <-> (incoming, outgoing) directions.

A coordinate system is a closed tag (``CoordinateSystem``) plus a table of
pure vectorised functions (``CoordinateMapping``).  All functions take and
return batches: angles (N, 4), directions (N, 3), specular offsets (N,).

Conventions
-----------
  * Directions point away from the surface; the surface normal is +z.
  * Azimuths returned by the inverse mappings lie in [0, 2π).
  * The mappings are mutually inverse away from the poles.  At a pole the
    azimuth is undefined and comes back as 0.

Systems
-------
  SPHERICAL        (in_theta, in_phi, out_theta, out_phi)
  SPECULAR         (in_theta, in_phi, spec_theta, spec_phi): outgoing polar
                   coordinates around the mirror direction of the incoming
                   ray, optionally tilted by a specular offset.
  HALF_DIFFERENCE  (half_theta, half_phi, diff_theta, diff_phi): the
                   Rusinkiewicz parameterisation.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Final, NamedTuple, Optional, Tuple

import numpy as np

__all__ = [
    "CoordinateSystem",
    "CoordinateMapping",
    "get_mapping",
    "spherical_to_xyz",
    "xyz_to_spherical",
    "normalize",
    "rotate_y",
    "rotate_z",
    "is_downward_dir",
]

ArrayFloat = np.ndarray

PI: Final[float] = np.pi
TWO_PI: Final[float] = 2.0 * np.pi
HALF_PI: Final[float] = 0.5 * np.pi

_MAX_ANGLES: Final[Tuple[float, float, float, float]] = (HALF_PI, TWO_PI, HALF_PI, TWO_PI)


class CoordinateSystem(Enum):
    SPHERICAL = "spherical"
    SPECULAR = "specular"
    HALF_DIFFERENCE = "half_difference"


# =============================================================================
# 1. VECTOR HELPERS
# =============================================================================

def spherical_to_xyz(theta: ArrayFloat, phi: ArrayFloat) -> ArrayFloat:
    """Unit vectors (N, 3) from polar/azimuth angles."""
    theta = np.asarray(theta, dtype=np.float64)
    phi = np.asarray(phi, dtype=np.float64)
    sin_t = np.sin(theta)
    return np.stack((sin_t * np.cos(phi), sin_t * np.sin(phi), np.cos(theta)), axis=-1)


def xyz_to_spherical(vec: ArrayFloat) -> Tuple[ArrayFloat, ArrayFloat]:
    """
    Polar angle in [0, π] and azimuth in [0, 2π) of (N, 3) vectors.

    Vectors need not be normalised.
    """
    v = np.asarray(vec, dtype=np.float64)
    x, y, z = v[..., 0], v[..., 1], v[..., 2]
    # arctan2 keeps full precision near the poles, unlike arccos(z).
    theta = np.arctan2(np.hypot(x, y), z)

    phi = np.arctan2(y, x)
    phi = np.where(phi < 0.0, phi + TWO_PI, phi)
    # arctan2 of a tiny negative y lands exactly on 2π after the shift.
    phi = np.where(phi >= TWO_PI, 0.0, phi)
    return theta, phi


def normalize(vec: ArrayFloat) -> ArrayFloat:
    v = np.asarray(vec, dtype=np.float64)
    length = np.linalg.norm(v, axis=-1, keepdims=True)
    with np.errstate(invalid="ignore", divide="ignore"):
        return np.where(length > 0.0, v / length, v)


def rotate_y(vec: ArrayFloat, angle: ArrayFloat) -> ArrayFloat:
    """Rotate (N, 3) vectors about +y by per-row *angle*."""
    v = np.asarray(vec, dtype=np.float64)
    c = np.cos(angle)
    s = np.sin(angle)
    x, y, z = v[..., 0], v[..., 1], v[..., 2]
    return np.stack((x * c + z * s, y, -x * s + z * c), axis=-1)


def rotate_z(vec: ArrayFloat, angle: ArrayFloat) -> ArrayFloat:
    """Rotate (N, 3) vectors about +z by per-row *angle*."""
    v = np.asarray(vec, dtype=np.float64)
    c = np.cos(angle)
    s = np.sin(angle)
    x, y, z = v[..., 0], v[..., 1], v[..., 2]
    return np.stack((x * c - y * s, x * s + y * c, z), axis=-1)


def is_downward_dir(vec: ArrayFloat) -> np.ndarray:
    """True where the direction points below the surface (z < 0)."""
    return np.asarray(vec, dtype=np.float64)[..., 2] < 0.0


def _split(angles: ArrayFloat) -> Tuple[ArrayFloat, ArrayFloat, ArrayFloat, ArrayFloat]:
    a = np.atleast_2d(np.asarray(angles, dtype=np.float64))
    if a.shape[-1] != 4:
        raise ValueError(f"expected (N, 4) angles, got {a.shape}")
    return a[:, 0], a[:, 1], a[:, 2], a[:, 3]


def _offsets(offsets: Optional[ArrayFloat], n: int) -> ArrayFloat:
    if offsets is None:
        return np.zeros(n, dtype=np.float64)
    return np.broadcast_to(np.asarray(offsets, dtype=np.float64), (n,))


# =============================================================================
# 2. SPHERICAL
# =============================================================================

def _spherical_to_xyz(angles, offsets=None):
    in_t, in_p, out_t, out_p = _split(angles)
    return spherical_to_xyz(in_t, in_p), spherical_to_xyz(out_t, out_p)


def _spherical_from_xyz(in_dirs, out_dirs, offsets=None):
    in_t, in_p = xyz_to_spherical(np.atleast_2d(in_dirs))
    out_t, out_p = xyz_to_spherical(np.atleast_2d(out_dirs))
    return np.stack((in_t, in_p, out_t, out_p), axis=-1)


# =============================================================================
# 3. SPECULAR-CENTERED
# =============================================================================

def _specular_to_xyz(angles, offsets=None):
    in_t, in_p, spec_t, spec_p = _split(angles)
    off = _offsets(offsets, in_t.shape[0])

    in_dirs = spherical_to_xyz(in_t, in_p)
    local = spherical_to_xyz(spec_t, spec_p)
    # Pole of the local frame -> mirror direction (in_theta + offset, in_phi + π).
    out_dirs = rotate_z(rotate_y(local, in_t + off), in_p + PI)
    return in_dirs, normalize(out_dirs)


def _specular_from_xyz(in_dirs, out_dirs, offsets=None):
    in_v = np.atleast_2d(np.asarray(in_dirs, dtype=np.float64))
    out_v = np.atleast_2d(np.asarray(out_dirs, dtype=np.float64))
    in_t, in_p = xyz_to_spherical(in_v)
    off = _offsets(offsets, in_t.shape[0])

    local = rotate_y(rotate_z(out_v, -(in_p + PI)), -(in_t + off))
    spec_t, spec_p = xyz_to_spherical(local)
    return np.stack((in_t, in_p, spec_t, spec_p), axis=-1)


# =============================================================================
# 4. HALF-DIFFERENCE
# =============================================================================

def _half_diff_to_xyz(angles, offsets=None):
    half_t, half_p, diff_t, diff_p = _split(angles)
    half = spherical_to_xyz(half_t, half_p)
    diff = spherical_to_xyz(diff_t, diff_p)

    in_dirs = rotate_z(rotate_y(diff, half_t), half_p)
    cos_h = np.sum(in_dirs * half, axis=-1, keepdims=True)
    out_dirs = 2.0 * cos_h * half - in_dirs
    return in_dirs, normalize(out_dirs)


def _half_diff_from_xyz(in_dirs, out_dirs, offsets=None):
    in_v = normalize(np.atleast_2d(np.asarray(in_dirs, dtype=np.float64)))
    out_v = normalize(np.atleast_2d(np.asarray(out_dirs, dtype=np.float64)))

    half = in_v + out_v
    degenerate = np.linalg.norm(half, axis=-1) <= 0.0
    half[degenerate] = (0.0, 0.0, 1.0)
    half = normalize(half)

    half_t, half_p = xyz_to_spherical(half)
    diff = rotate_y(rotate_z(in_v, -half_p), -half_t)
    diff_t, diff_p = xyz_to_spherical(diff)
    return np.stack((half_t, half_p, diff_t, diff_p), axis=-1)


# =============================================================================
# 5. DISPATCH TABLE
# =============================================================================

ToXyz = Callable[..., Tuple[ArrayFloat, ArrayFloat]]
FromXyz = Callable[..., ArrayFloat]


class CoordinateMapping(NamedTuple):
    """
    Pure functions of one coordinate system.

    ``to_xyz(angles, offsets=None) -> (in_dirs, out_dirs)`` and
    ``from_xyz(in_dirs, out_dirs, offsets=None) -> angles``.  Offsets are
    per-row specular offsets and are ignored by the other systems.
    """
    system: CoordinateSystem
    angle_names: Tuple[str, str, str, str]
    max_angles: Tuple[float, float, float, float]
    to_xyz: ToXyz
    from_xyz: FromXyz


_MAPPINGS: Dict[CoordinateSystem, CoordinateMapping] = {
    CoordinateSystem.SPHERICAL: CoordinateMapping(
        CoordinateSystem.SPHERICAL,
        ("in_theta", "in_phi", "out_theta", "out_phi"),
        _MAX_ANGLES,
        _spherical_to_xyz,
        _spherical_from_xyz,
    ),
    CoordinateSystem.SPECULAR: CoordinateMapping(
        CoordinateSystem.SPECULAR,
        ("in_theta", "in_phi", "spec_theta", "spec_phi"),
        _MAX_ANGLES,
        _specular_to_xyz,
        _specular_from_xyz,
    ),
    CoordinateSystem.HALF_DIFFERENCE: CoordinateMapping(
        CoordinateSystem.HALF_DIFFERENCE,
        ("half_theta", "half_phi", "diff_theta", "diff_phi"),
        _MAX_ANGLES,
        _half_diff_to_xyz,
        _half_diff_from_xyz,
    ),
}


def get_mapping(system: CoordinateSystem) -> CoordinateMapping:
    return _MAPPINGS[CoordinateSystem(system)]
