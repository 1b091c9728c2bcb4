# -*- coding: utf-8 -*-
"""
Glint: Tabular BRDF/BTDF data in angular coordinate systems
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: glint_color.py — Linear colour-model conversion of tabulated spectra.

Only linear (scene-referred) values are stored in a SampleSet, so no transfer
function is involved: RGB means linear sRGB primaries with a D65 white.
"""

from __future__ import annotations

from typing import Final

import numpy as np

from glint_brdf import Brdf, SourceType
from glint_sampleset import ColorModel

__all__ = [
    "M_XYZ_TO_SRGB_T",
    "M_SRGB_TO_XYZ_T",
    "xyz_to_srgb",
    "srgb_to_xyz",
    "to_monochrome",
    "convert_color_model",
]

ArrayFloat = np.ndarray

# sRGB Matrices
# Defined by IEC 61966-2-1.
# Pre-transposed so that row-vector data (..., 3) is converted with one
# matmul against a C-contiguous matrix.
_M_XYZ_TO_SRGB_BASE = np.array([
    [ 3.2404542, -1.5371385, -0.4985314],
    [-0.9692660,  1.8760108,  0.0415560],
    [ 0.0556434, -0.2040259,  1.0572252]
], dtype=np.float64)
M_XYZ_TO_SRGB_T: Final[ArrayFloat] = _M_XYZ_TO_SRGB_BASE.T.copy()

_M_SRGB_TO_XYZ_BASE = np.array([
    [ 0.4124564,  0.3575761,  0.1804375],
    [ 0.2126729,  0.7151522,  0.0721750],
    [ 0.0193339,  0.1191920,  0.9503041]
], dtype=np.float64)
M_SRGB_TO_XYZ_T: Final[ArrayFloat] = _M_SRGB_TO_XYZ_BASE.T.copy()


def _check_triplets(values: ArrayFloat, name: str) -> ArrayFloat:
    arr = np.asarray(values, dtype=np.float64)
    if arr.shape[-1] != 3:
        raise ValueError(f"{name}: expected (..., 3) values, got {arr.shape}")
    return arr


def xyz_to_srgb(xyz: ArrayFloat) -> ArrayFloat:
    """Linear sRGB from CIE XYZ, shape (..., 3)."""
    return _check_triplets(xyz, "xyz_to_srgb") @ M_XYZ_TO_SRGB_T


def srgb_to_xyz(rgb: ArrayFloat) -> ArrayFloat:
    """CIE XYZ from linear sRGB, shape (..., 3)."""
    return _check_triplets(rgb, "srgb_to_xyz") @ M_SRGB_TO_XYZ_T


def to_monochrome(values: ArrayFloat, color_model: ColorModel) -> ArrayFloat:
    """
    Single-channel value (..., 1): the channel mean for RGB, Y for XYZ.

    The RGB mean matches how monochromatic grids are tabulated from RGB
    reflectance models.
    """
    color_model = ColorModel(color_model)
    arr = np.asarray(values, dtype=np.float64)
    if color_model is ColorModel.MONOCHROMATIC:
        return arr.copy()
    if color_model is ColorModel.RGB:
        return _check_triplets(arr, "to_monochrome").mean(axis=-1, keepdims=True)
    if color_model is ColorModel.XYZ:
        return _check_triplets(arr, "to_monochrome")[..., 1:2].copy()
    raise ValueError("to_monochrome: spectral data needs colour-matching functions.")


def convert_color_model(brdf: Brdf, target: ColorModel) -> Brdf:
    """
    New Brdf with spectra expressed in *target*.

    Supports RGB <-> XYZ and RGB/XYZ -> MONOCHROMATIC.  Spectral sources or
    targets raise ValueError, as does MONOCHROMATIC -> RGB/XYZ.
    """
    target = ColorModel(target)
    ss = brdf.sample_set
    source = ss.color_model

    if source is target:
        return brdf.copy()

    if ColorModel.SPECTRAL in (source, target):
        raise ValueError(
            f"convert_color_model: {source.value} -> {target.value} is not supported "
            f"(spectral data needs colour-matching functions)."
        )

    if target is ColorModel.MONOCHROMATIC:
        spectra = to_monochrome(ss.spectra, source)
    elif source is ColorModel.RGB and target is ColorModel.XYZ:
        spectra = srgb_to_xyz(ss.spectra)
    elif source is ColorModel.XYZ and target is ColorModel.RGB:
        spectra = xyz_to_srgb(ss.spectra)
    else:
        raise ValueError(
            f"convert_color_model: {source.value} -> {target.value} is not supported."
        )

    new = Brdf.from_angles(
        brdf.coordinate_system,
        *(ss.get_angles(i) for i in range(4)),
        color_model=target,
        source_type=SourceType.EDITED,
    )
    if target is not ColorModel.MONOCHROMATIC:
        new.sample_set.set_wavelengths(ss.wavelengths)
    new.sample_set.spectra[...] = spectra
    new.set_specular_offsets(brdf.specular_offsets)
    return new
