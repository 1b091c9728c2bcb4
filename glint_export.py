# -*- coding: utf-8 -*-
"""
Glint: Tabular BRDF/BTDF data in angular coordinate systems
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: glint_export.py — Normalise a Brdf into the specular-centered layout
expected by exporters.

Pipeline (prepare_export):
  validate  ->  convert (any system -> specular grid)  ->  arrange (cleanup)

``convert`` and ``arrange`` never mutate their input; the in-place passes of
glint_processor only ever run on the copy produced here.
"""

from __future__ import annotations

import logging
import warnings
from typing import Final, Optional, Union

import numpy as np

from glint_array import create_exponential
from glint_brdf import Brdf, Btdf, DataType
from glint_coordinates import HALF_PI, TWO_PI, CoordinateSystem
from glint_processor import (
    convert_coordinate_system,
    copy_spectra_from_phi_of_0_to_360,
    equalize_overlapping_samples,
    expand_angles,
    fill_spectra_at_in_theta_of_90,
    fix_energy_conservation,
    resample_angles,
)

__all__ = [
    "MIN_SPEC_THETA_SAMPLES",
    "MIN_SPEC_PHI_SAMPLES",
    "convert",
    "arrange",
    "prepare_export",
]

logger = logging.getLogger(__name__)

# Minimum spec_theta / spec_phi resolution when converting spherical data.
MIN_SPEC_THETA_SAMPLES: Final[int] = 181
MIN_SPEC_PHI_SAMPLES: Final[int] = 73

# Default specular grid for any other source system.
DEFAULT_IN_THETA_SAMPLES: Final[int] = 19
DEFAULT_IN_PHI_SAMPLES: Final[int] = 37
DEFAULT_SPEC_THETA_SAMPLES: Final[int] = 91
DEFAULT_SPEC_THETA_EXPONENT: Final[float] = 2.0
DEFAULT_SPEC_PHI_SAMPLES: Final[int] = 73

# in_theta resolution used when the data holds a single incoming angle.
ARRANGED_IN_THETA_SAMPLES: Final[int] = 10


def convert(brdf: Brdf) -> Brdf:
    """Return a specular-centered copy of *brdf*."""
    system = brdf.coordinate_system

    if system is CoordinateSystem.SPECULAR:
        return brdf.copy()

    if system is CoordinateSystem.SPHERICAL:
        n_spec_theta = max(brdf.get_num_angles(2), MIN_SPEC_THETA_SAMPLES)
        n_spec_phi = max(brdf.get_num_angles(3), MIN_SPEC_PHI_SAMPLES)
        logger.info(
            "convert: spherical -> specular (%d spec_theta, %d spec_phi)",
            n_spec_theta, n_spec_phi,
        )
        return convert_coordinate_system(
            brdf,
            CoordinateSystem.SPECULAR,
            brdf.get_angles(0),
            brdf.get_angles(1),
            np.linspace(0.0, HALF_PI, n_spec_theta),
            np.linspace(0.0, TWO_PI, n_spec_phi),
        )

    n_in_phi = 1 if brdf.is_isotropic else DEFAULT_IN_PHI_SAMPLES
    logger.info("convert: %s -> default specular grid", system.value)
    return convert_coordinate_system(
        brdf,
        CoordinateSystem.SPECULAR,
        np.linspace(0.0, HALF_PI, DEFAULT_IN_THETA_SAMPLES),
        np.linspace(0.0, TWO_PI, n_in_phi) if n_in_phi > 1 else [0.0],
        create_exponential(DEFAULT_SPEC_THETA_SAMPLES, HALF_PI, DEFAULT_SPEC_THETA_EXPONENT),
        np.linspace(0.0, TWO_PI, DEFAULT_SPEC_PHI_SAMPLES),
    )


def arrange(brdf: Brdf, data_type: DataType = DataType.BRDF) -> Brdf:
    """
    Clean up a specular-centered Brdf for export and return the result.

    Steps: single in_theta -> 10 samples, equalize overlapping samples,
    expand angles, copy 0 -> 2π azimuth slices, fix energy conservation,
    and for BTDF zero the grazing in_theta row.
    """
    if brdf.coordinate_system is not CoordinateSystem.SPECULAR:
        raise ValueError(
            f"arrange: needs a specular grid, got {brdf.coordinate_system.value}"
        )
    data_type = DataType(data_type)

    result = brdf.copy()
    if result.get_num_angles(0) == 1:
        result = resample_angles(
            result,
            np.linspace(0.0, HALF_PI, ARRANGED_IN_THETA_SAMPLES),
            result.get_angles(1),
            result.get_angles(2),
            result.get_angles(3),
        )

    equalize_overlapping_samples(result)
    result = expand_angles(result)
    copy_spectra_from_phi_of_0_to_360(result.sample_set)
    fix_energy_conservation(result)

    if data_type is DataType.BTDF:
        fill_spectra_at_in_theta_of_90(result, 0.0)

    logger.debug("arrange: %r", result)
    return result


def prepare_export(
    data: Union[Brdf, Btdf], data_type: Optional[DataType] = None
) -> Optional[Brdf]:
    """
    Validate, convert and arrange *data* for a serializer.

    A Btdf implies ``DataType.BTDF``.  Returns None, and warns, when the
    data holds non-finite values.
    """
    if isinstance(data, Btdf):
        brdf = data.brdf
        data_type = DataType.BTDF
    else:
        brdf = data
        data_type = DataType.BRDF if data_type is None else DataType(data_type)

    report = brdf.validate()
    if not report:
        warnings.warn(
            "prepare_export: invalid data, nothing exported. "
            + " ".join(report.messages),
            stacklevel=2,
        )
        return None

    return arrange(convert(brdf), data_type)
