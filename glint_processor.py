# -*- coding: utf-8 -*-
"""
Glint: Tabular BRDF/BTDF data in angular coordinate systems
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: glint_processor.py — Grid resampling, conversion and cleanup passes.

Two kinds of operations live here:

  Producers (return a new Brdf, input untouched)
    resample_angles            angle-space resampling onto new axes
    convert_coordinate_system  direction-space resampling into another system
    expand_angles              mirror one-sided data, extend axes to 0 / max
    resample_wavelengths       spectral resampling (scipy interpolators)

  In-place passes (mutate a Brdf the caller owns)
    fill_back_side, equalize_overlapping_samples,
    copy_spectra_from_phi_of_0_to_360, fix_energy_conservation,
    fill_spectra_at_in_theta_of_90

Angles that must coincide with 0, π/2 or 2π are compared with
``ANGLE_TOLERANCE``.
"""

from __future__ import annotations

import logging
import warnings
from typing import Callable, Dict, Final, Optional, Sequence

import numpy as np
from scipy.interpolate import (
    Akima1DInterpolator,
    CubicSpline,
    PchipInterpolator,
    make_interp_spline,
)

from glint_array import append_element
from glint_brdf import Brdf, fold_azimuth
from glint_coordinates import (
    HALF_PI,
    TWO_PI,
    CoordinateSystem,
    is_downward_dir,
    spherical_to_xyz,
)
from glint_interpolation import interpolate_spectra
from glint_sampleset import ColorModel, SampleSet

__all__ = [
    "ANGLE_TOLERANCE",
    "resample_angles",
    "convert_coordinate_system",
    "fill_back_side",
    "equalize_overlapping_samples",
    "expand_angles",
    "copy_spectra_from_phi_of_0_to_360",
    "compute_reflectance",
    "fix_energy_conservation",
    "fill_spectra_at_in_theta_of_90",
    "resample_wavelengths",
]

logger = logging.getLogger(__name__)

ANGLE_TOLERANCE: Final[float] = 1e-6

# Midpoint quadrature over the outgoing hemisphere.
_REFLECTANCE_THETA_SAMPLES: Final[int] = 45
_REFLECTANCE_PHI_SAMPLES: Final[int] = 90

ArrayLike = Sequence[float]


# ═══════════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════════
def _empty_like(
    brdf: Brdf,
    system: CoordinateSystem,
    axes: Sequence[ArrayLike],
    wavelengths: Optional[np.ndarray] = None,
) -> Brdf:
    """Zero-filled Brdf with *brdf*'s colour model, wavelengths and source type."""
    ss = brdf.sample_set
    wl = ss.wavelengths if wavelengths is None else wavelengths
    new = Brdf.from_angles(
        system, *axes,
        color_model=ss.color_model,
        num_wavelengths=len(wl),
        source_type=brdf.source_type,
    )
    new.sample_set.set_wavelengths(wl)
    return new


def _axis_slice(axis: int, index: int) -> tuple:
    sl = [slice(None)] * 5
    sl[axis] = index
    return tuple(sl)


def _has_seam(angles: np.ndarray) -> bool:
    """True if an azimuth axis holds both 0 and 2π."""
    return (
        angles.shape[0] > 1
        and abs(angles[0]) < ANGLE_TOLERANCE
        and abs(angles[-1] - TWO_PI) < ANGLE_TOLERANCE
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Producers
# ═══════════════════════════════════════════════════════════════════════════════
def resample_angles(
    brdf: Brdf,
    angles0: ArrayLike,
    angles1: ArrayLike,
    angles2: ArrayLike,
    angles3: ArrayLike,
) -> Brdf:
    """
    Resample *brdf* onto new axes of the same coordinate system.

    Interpolation runs in angle space.  Axis3 queries are folded when the
    source is one-sided, so a full-range destination is filled from
    mirrored data.  Specular offsets follow linearly in in_theta.
    """
    src = brdf.sample_set
    new = _empty_like(brdf, brdf.coordinate_system, (angles0, angles1, angles2, angles3))
    dst = new.sample_set

    mesh = np.meshgrid(*(dst.get_angles(i) for i in range(4)), indexing="ij")
    query = np.stack([m.ravel() for m in mesh], axis=-1)
    if src.is_one_side:
        query[:, 3] = fold_azimuth(query[:, 3], float(src.get_angles(3)[-1]))

    values = interpolate_spectra(src, query)
    dst.spectra[...] = values.reshape(dst.spectra.shape)

    new.set_specular_offsets(
        np.interp(dst.get_angles(0), src.get_angles(0), brdf.specular_offsets)
    )
    logger.debug("resample_angles: %s -> %s", src.shape, dst.shape)
    return new


def convert_coordinate_system(
    brdf: Brdf,
    system: CoordinateSystem,
    angles0: ArrayLike,
    angles1: ArrayLike,
    angles2: ArrayLike,
    angles3: ArrayLike,
) -> Brdf:
    """
    Resample *brdf* into another coordinate system.

    Every destination cell is mapped to an (in, out) direction pair and
    looked up in the source.  Cells whose outgoing direction points below
    the surface are not looked up: specular destinations rebuild them with
    ``fill_back_side``, other systems leave them at zero.
    """
    system = CoordinateSystem(system)
    new = _empty_like(brdf, system, (angles0, angles1, angles2, angles3))
    if system is CoordinateSystem.SPECULAR and brdf.coordinate_system is CoordinateSystem.SPECULAR:
        new.set_specular_offsets(
            np.interp(new.get_angles(0), brdf.get_angles(0), brdf.specular_offsets)
        )

    in_dirs, out_dirs = new.grid_directions()
    upward = ~is_downward_dir(out_dirs)

    flat = new.sample_set.spectra.reshape(-1, new.num_wavelengths)
    flat[upward] = brdf.get_spectra(in_dirs[upward], out_dirs[upward])

    if system is CoordinateSystem.SPECULAR:
        fill_back_side(new)

    logger.info(
        "convert_coordinate_system: %s %s -> %s %s (%d downward cells)",
        brdf.coordinate_system.value, brdf.sample_set.shape,
        system.value, new.sample_set.shape, int(np.count_nonzero(~upward)),
    )
    return new


def expand_angles(brdf: Brdf) -> Brdf:
    """
    New Brdf with a full-range axis3 and every axis spanning 0..max.

    A one-sided axis3 is mirrored (``2π - a``) and merged with itself.
    Axes that do not start at 0 or end at the system's max angle are
    extended; axis1 of isotropic data stays a single sample.
    """
    ss = brdf.sample_set
    axes = [np.array(ss.get_angles(i)) for i in range(4)]

    if ss.is_one_side:
        merged = np.sort(np.concatenate((axes[3], TWO_PI - axes[3])))
        keep = np.concatenate(([True], np.diff(merged) > ANGLE_TOLERANCE))
        axes[3] = merged[keep]

    for axis, max_angle in enumerate(brdf.max_angles):
        if axis == 1 and ss.is_isotropic:
            continue
        values = axes[axis]
        if values[0] > ANGLE_TOLERANCE:
            values = np.insert(values, 0, 0.0)
        if values[-1] < max_angle - ANGLE_TOLERANCE:
            values = append_element(values, max_angle)
        axes[axis] = values

    return resample_angles(brdf, *axes)


def resample_wavelengths(
    brdf: Brdf, wavelengths: ArrayLike, method: str = "linear"
) -> Brdf:
    """
    Resample a spectral Brdf onto a new wavelength grid.

    Args:
        brdf: SPECTRAL source.
        wavelengths: Target wavelengths (increasing).
        method: 'linear', 'cubicspline', 'pchip', 'akima', or 'makima'.

    Returns:
        New Brdf with the same axes and offsets.
    """
    ss = brdf.sample_set
    if ss.color_model is not ColorModel.SPECTRAL:
        raise ValueError(
            f"resample_wavelengths: needs spectral data, got {ss.color_model.value}"
        )

    src_wl = np.array(ss.wavelengths)
    dst_wl = np.asarray(wavelengths, dtype=np.float64)
    values = ss.spectra

    methods: Dict[str, Callable[[np.ndarray, np.ndarray], np.ndarray]] = {
        "linear": lambda w, v: make_interp_spline(w, v, k=1, axis=-1)(dst_wl),
        "cubicspline": lambda w, v: CubicSpline(
            w, v, axis=-1, extrapolate=True
        )(dst_wl),
        "pchip": lambda w, v: PchipInterpolator(
            w, v, axis=-1, extrapolate=True
        )(dst_wl),
        "akima": lambda w, v: Akima1DInterpolator(
            w, v, axis=-1, method="akima", extrapolate=True
        )(dst_wl),
        "makima": lambda w, v: Akima1DInterpolator(
            w, v, axis=-1, method="makima", extrapolate=True
        )(dst_wl),
    }
    if method not in methods:
        raise ValueError(
            f"Unknown interpolation type '{method}'. "
            f"Choose from: {list(methods.keys())}"
        )

    if dst_wl.min() < src_wl[0] or dst_wl.max() > src_wl[-1]:
        warnings.warn(
            f"resample_wavelengths: target range [{dst_wl.min()}, {dst_wl.max()}] "
            f"extends beyond the data [{src_wl[0]}, {src_wl[-1]}]; extrapolating.",
            stacklevel=2,
        )

    new = _empty_like(brdf, brdf.coordinate_system,
                      [ss.get_angles(i) for i in range(4)], wavelengths=dst_wl)
    new.sample_set.spectra[...] = methods[method](src_wl, values)
    new.set_specular_offsets(brdf.specular_offsets)
    return new


# ═══════════════════════════════════════════════════════════════════════════════
# In-place passes
# ═══════════════════════════════════════════════════════════════════════════════
def fill_back_side(brdf: Brdf) -> int:
    """
    Replace samples whose outgoing direction points below the surface.

    Walks spec_theta upward and copies the last sample that was still
    above the surface into every downward sample behind it.  Returns the
    number of replaced samples.
    """
    if brdf.coordinate_system is not CoordinateSystem.SPECULAR:
        raise ValueError(
            f"fill_back_side: needs a specular grid, got {brdf.coordinate_system.value}"
        )

    ss = brdf.sample_set
    _, out_dirs = brdf.grid_directions()
    downward = is_downward_dir(out_dirs).reshape(ss.shape)
    spectra = ss.spectra

    last = spectra[:, :, 0].copy()
    for i2 in range(ss.num_angles2):
        current = spectra[:, :, i2]
        mask = downward[:, :, i2]
        current[mask] = last[mask]
        last = current.copy()

    count = int(np.count_nonzero(downward))
    logger.debug("fill_back_side: %d downward samples replaced", count)
    return count


def equalize_overlapping_samples(brdf: Brdf) -> None:
    """
    Average samples that describe the same direction pair.

    * spec_theta/out_theta of 0: every axis3 sample is the pole.
    * Spherical in_theta of 0: every in_phi sample is the same direction.
    * Azimuth axes holding both 0 and 2π.
    """
    ss = brdf.sample_set
    spectra = ss.spectra

    if ss.num_angles3 > 1:
        for i2 in np.flatnonzero(np.abs(ss.get_angles(2)) < ANGLE_TOLERANCE):
            spectra[:, :, i2] = spectra[:, :, i2].mean(axis=2, keepdims=True)

    if brdf.coordinate_system is CoordinateSystem.SPHERICAL and ss.num_angles1 > 1:
        for i0 in np.flatnonzero(np.abs(ss.get_angles(0)) < ANGLE_TOLERANCE):
            spectra[i0] = spectra[i0].mean(axis=0, keepdims=True)

    for axis in (1, 3):
        if _has_seam(ss.get_angles(axis)):
            first = _axis_slice(axis, 0)
            last = _axis_slice(axis, -1)
            avg = 0.5 * (spectra[first] + spectra[last])
            spectra[first] = avg
            spectra[last] = avg


def copy_spectra_from_phi_of_0_to_360(sample_set: SampleSet) -> None:
    """Overwrite the 2π slice of azimuth axes 1 and 3 with their 0 slice."""
    spectra = sample_set.spectra
    for axis in (1, 3):
        if _has_seam(sample_set.get_angles(axis)):
            spectra[_axis_slice(axis, -1)] = spectra[_axis_slice(axis, 0)]


def compute_reflectance(brdf: Brdf, in_dir: np.ndarray) -> np.ndarray:
    """
    Directional-hemispherical reflectance per channel for one incoming
    direction (midpoint rule in θ and φ, weights cosθ sinθ dθ dφ).
    """
    d_theta = HALF_PI / _REFLECTANCE_THETA_SAMPLES
    d_phi = TWO_PI / _REFLECTANCE_PHI_SAMPLES
    theta = (np.arange(_REFLECTANCE_THETA_SAMPLES) + 0.5) * d_theta
    phi = (np.arange(_REFLECTANCE_PHI_SAMPLES) + 0.5) * d_phi

    tt, pp = np.meshgrid(theta, phi, indexing="ij")
    out_dirs = spherical_to_xyz(tt.ravel(), pp.ravel())
    weights = (np.cos(tt) * np.sin(tt)).ravel() * d_theta * d_phi

    in_dirs = np.broadcast_to(np.asarray(in_dir, dtype=np.float64), out_dirs.shape)
    values = brdf.get_spectra(in_dirs, out_dirs)
    return weights @ values


def fix_energy_conservation(brdf: Brdf) -> int:
    """
    Scale down incoming directions that reflect more than they receive.

    For every (axis0, axis1) incoming direction the reflectance of each
    channel is computed; channels above 1 are scaled by 1/R.  Returns the
    number of incoming directions that were modified.
    """
    if brdf.coordinate_system not in (CoordinateSystem.SPHERICAL, CoordinateSystem.SPECULAR):
        raise ValueError(
            f"fix_energy_conservation: unsupported coordinate system "
            f"{brdf.coordinate_system.value}"
        )

    ss = brdf.sample_set
    fixed = 0
    for i0 in range(ss.num_angles0):
        for i1 in range(ss.num_angles1):
            in_dir, _ = brdf.get_in_out_direction(i0, i1, 0, 0)
            reflectance = compute_reflectance(brdf, in_dir)
            if np.any(reflectance > 1.0):
                scale = np.where(reflectance > 1.0, 1.0 / reflectance, 1.0)
                ss.spectra[i0, i1] *= scale
                fixed += 1

    if fixed:
        logger.info("fix_energy_conservation: scaled %d incoming direction(s)", fixed)
    return fixed


def fill_spectra_at_in_theta_of_90(brdf: Brdf, value: float = 0.0) -> bool:
    """
    Set every spectrum at in_theta = π/2 to *value*.

    Does nothing (returns False) when the last axis0 sample is not π/2.
    """
    ss = brdf.sample_set
    if abs(ss.get_angles(0)[-1] - HALF_PI) > ANGLE_TOLERANCE:
        return False
    ss.spectra[-1] = value
    return True
