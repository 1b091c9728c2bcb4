# -*- coding: utf-8 -*-
"""
Glint: Tabular BRDF/BTDF data in angular coordinate systems
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: glint_brdf.py — BRDF grid bound to a coordinate system, BTDF adapter.

Structure:
  1.  SourceType / DataType tags.
  2.  fold_azimuth — maps a full-range axis3 query onto a one-sided grid.
  3.  Brdf  — owns one SampleSet and interprets its four axes through a
      CoordinateMapping.  Direction queries are converted to angles, folded
      and passed to the multilinear kernel in glint_interpolation.
  4.  Btdf  — non-owning adapter; transmitted directions live in the lower
      hemisphere and are reflected to the upper one before lookup.

Every lookup method is batched: ``get_spectra(in_dirs (N,3), out_dirs
(N,3)) -> (N, n_wl)``.  ``get_spectrum`` is the single-pair convenience.
"""

from __future__ import annotations

from enum import Enum
from typing import Final, Optional, Sequence, Tuple, Union

import numpy as np

from glint_coordinates import (
    CoordinateMapping,
    CoordinateSystem,
    TWO_PI,
    get_mapping,
    rotate_z,
    xyz_to_spherical,
)
from glint_interpolation import interpolate_spectra
from glint_sampleset import ONE_SIDE_TOLERANCE, ColorModel, SampleSet, ValidationReport

__all__ = [
    "SourceType",
    "DataType",
    "Brdf",
    "Btdf",
    "fold_azimuth",
]

PI: Final[float] = np.pi

AxisKey = Union[int, str]
Directions = Tuple[np.ndarray, np.ndarray]


class SourceType(Enum):
    MEASURED = "measured"
    GENERATED = "generated"
    EDITED = "edited"
    UNKNOWN = "unknown"


class DataType(Enum):
    BRDF = "brdf"
    BTDF = "btdf"


def fold_azimuth(angles3: np.ndarray, upper: float) -> np.ndarray:
    """
    Fold axis3 values onto a one-sided range.

    If the grid's axis3 ends at or before π, values above π are mirrored
    (``2π - a``); otherwise the grid covers [π, 2π] and values below π
    are mirrored.  Relies on the reflection symmetry of one-sided data.
    """
    a = np.asarray(angles3, dtype=np.float64)
    if upper <= PI + ONE_SIDE_TOLERANCE:
        return np.where(a > PI, TWO_PI - a, a)
    return np.where(a < PI, TWO_PI - a, a)


# ═══════════════════════════════════════════════════════════════════════════════
# Brdf
# ═══════════════════════════════════════════════════════════════════════════════
class Brdf:
    """
    Tabulated BRDF in one coordinate system.

    Parameters
    ----------
    coordinate_system : CoordinateSystem
    num_angles0..num_angles3 : int
        Axis sizes.  Axes are filled with equal spacing from 0 to the
        system's max angle (a single-sample axis holds 0).
    color_model : ColorModel
    num_wavelengths : int
        Only used for SPECTRAL grids.
    source_type : SourceType
    """

    __slots__ = ("_sample_set", "_mapping", "_source_type", "_specular_offsets")

    def __init__(
        self,
        coordinate_system: CoordinateSystem,
        num_angles0: int,
        num_angles1: int,
        num_angles2: int,
        num_angles3: int,
        color_model: ColorModel = ColorModel.RGB,
        num_wavelengths: int = 1,
        source_type: SourceType = SourceType.UNKNOWN,
    ) -> None:
        self._mapping: CoordinateMapping = get_mapping(coordinate_system)
        self._sample_set = SampleSet(
            num_angles0, num_angles1, num_angles2, num_angles3,
            color_model, num_wavelengths,
        )
        self._source_type = SourceType(source_type)
        self._populate_axes()

    def _populate_axes(self) -> None:
        """Equally spaced axes from 0 to the max angles; zero offsets."""
        ss = self._sample_set
        for axis, max_angle in enumerate(self._mapping.max_angles):
            n = ss.get_num_angles(axis)
            values = np.zeros(1) if n == 1 else np.linspace(0.0, max_angle, n)
            ss.set_angles(axis, values)
        self._specular_offsets = np.zeros(ss.num_angles0, dtype=np.float64)

    def resize_angles(
        self, num_angles0: int, num_angles1: int, num_angles2: int, num_angles3: int
    ) -> None:
        """
        Reallocate the grid (zero spectra) with equally spaced axes.

        Specular offsets are reset to zeros of the new axis0 length.
        """
        self._sample_set.resize_angles(num_angles0, num_angles1, num_angles2, num_angles3)
        self._populate_axes()

    @classmethod
    def from_angles(
        cls,
        coordinate_system: CoordinateSystem,
        angles0: Sequence[float],
        angles1: Sequence[float],
        angles2: Sequence[float],
        angles3: Sequence[float],
        color_model: ColorModel = ColorModel.RGB,
        num_wavelengths: int = 1,
        source_type: SourceType = SourceType.UNKNOWN,
    ) -> Brdf:
        """Build a zero-filled Brdf with explicit axis values."""
        axes = [np.asarray(a, dtype=np.float64).ravel()
                for a in (angles0, angles1, angles2, angles3)]
        brdf = cls(coordinate_system, *(a.shape[0] for a in axes),
                   color_model=color_model, num_wavelengths=num_wavelengths,
                   source_type=source_type)
        for axis, values in enumerate(axes):
            brdf._sample_set.set_angles(axis, values)
        return brdf

    # -- identity ------------------------------------------------------------
    @property
    def sample_set(self) -> SampleSet:
        return self._sample_set

    @property
    def coordinate_system(self) -> CoordinateSystem:
        return self._mapping.system

    @property
    def mapping(self) -> CoordinateMapping:
        return self._mapping

    @property
    def angle_names(self) -> Tuple[str, str, str, str]:
        return self._mapping.angle_names

    @property
    def max_angles(self) -> Tuple[float, float, float, float]:
        return self._mapping.max_angles

    @property
    def source_type(self) -> SourceType:
        return self._source_type

    @source_type.setter
    def source_type(self, value: SourceType) -> None:
        self._source_type = SourceType(value)

    @property
    def color_model(self) -> ColorModel:
        return self._sample_set.color_model

    @property
    def is_isotropic(self) -> bool:
        return self._sample_set.is_isotropic

    # -- axis access by index or role name -----------------------------------
    def axis_index(self, key: AxisKey) -> int:
        """Resolve an axis given as 0..3 or by role name (e.g. 'spec_theta')."""
        if isinstance(key, str):
            try:
                return self._mapping.angle_names.index(key)
            except ValueError:
                raise ValueError(
                    f"Brdf: '{key}' is not an angle of the "
                    f"{self.coordinate_system.value} system "
                    f"{self._mapping.angle_names}"
                ) from None
        axis = int(key)
        if not 0 <= axis < 4:
            raise IndexError(f"Brdf: angle axis must be 0..3, got {axis}")
        return axis

    def get_num_angles(self, key: AxisKey) -> int:
        return self._sample_set.get_num_angles(self.axis_index(key))

    def get_angles(self, key: AxisKey) -> np.ndarray:
        return self._sample_set.get_angles(self.axis_index(key))

    def get_angle(self, key: AxisKey, index: int) -> float:
        return self._sample_set.get_angle(self.axis_index(key), index)

    @property
    def num_wavelengths(self) -> int:
        return self._sample_set.num_wavelengths

    def get_wavelength(self, index: int) -> float:
        return self._sample_set.get_wavelength(index)

    def spectrum_at(self, i0: int, i1: int, i2: int, i3: int) -> np.ndarray:
        """Stored spectrum of one grid cell (writable view)."""
        return self._sample_set.get_spectrum(i0, i1, i2, i3)

    # -- specular offsets ----------------------------------------------------
    @property
    def specular_offsets(self) -> np.ndarray:
        """Per-in_theta tilt of the specular frame (radians), length n0."""
        n0 = self._sample_set.num_angles0
        if self._specular_offsets.shape[0] != n0:
            raise ValueError(
                f"Brdf.specular_offsets: {self._specular_offsets.shape[0]} offsets for "
                f"{n0} in_theta samples; the grid was resized behind the Brdf. "
                f"Use Brdf.resize_angles or set_specular_offsets."
            )
        return self._specular_offsets

    def set_specular_offsets(self, values: Sequence[float]) -> None:
        arr = np.asarray(values, dtype=np.float64)
        n0 = self._sample_set.num_angles0
        if arr.shape != (n0,):
            raise ValueError(
                f"Brdf.set_specular_offsets: expected {n0} values, got {arr.shape}"
            )
        self._specular_offsets = arr.copy()

    def get_specular_offset(self, in_theta: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        """Offset at arbitrary in_theta, linear between grid samples."""
        offsets = self.specular_offsets
        if offsets.shape[0] == 1:
            res = np.full(np.shape(in_theta), offsets[0])
        else:
            res = np.interp(in_theta, self._sample_set.get_angles(0), offsets)
        return float(res) if np.ndim(res) == 0 else res

    def _offsets_for(self, in_dirs: np.ndarray) -> Optional[np.ndarray]:
        if self._mapping.system is not CoordinateSystem.SPECULAR:
            return None
        in_theta = np.arccos(np.clip(in_dirs[:, 2], -1.0, 1.0))
        return np.atleast_1d(self.get_specular_offset(in_theta))

    # -- direction -> angles -> spectra --------------------------------------
    def to_angles(self, in_dirs: np.ndarray, out_dirs: np.ndarray) -> np.ndarray:
        """
        Angle tuples (N, 4) for direction pairs, ready for grid lookup.

        Isotropic grids rotate both directions about z so that in_phi = 0.
        One-sided grids get axis3 folded onto the stored half range.
        """
        in_v = np.atleast_2d(np.asarray(in_dirs, dtype=np.float64))
        out_v = np.atleast_2d(np.asarray(out_dirs, dtype=np.float64))
        if in_v.shape != out_v.shape or in_v.shape[-1] != 3:
            raise ValueError(
                f"Brdf.to_angles: direction shapes {in_v.shape} / {out_v.shape} "
                f"must both be (N, 3)"
            )

        if self.is_isotropic:
            _, in_phi = xyz_to_spherical(in_v)
            in_v = rotate_z(in_v, -in_phi)
            out_v = rotate_z(out_v, -in_phi)

        angles = self._mapping.from_xyz(in_v, out_v, self._offsets_for(in_v))

        ss = self._sample_set
        if ss.is_one_side:
            angles[:, 3] = fold_azimuth(angles[:, 3], float(ss.get_angles(3)[-1]))
        return angles

    def get_spectra(self, in_dirs: np.ndarray, out_dirs: np.ndarray) -> np.ndarray:
        """Interpolated spectra (N, n_wl) for direction pairs."""
        return interpolate_spectra(self._sample_set, self.to_angles(in_dirs, out_dirs))

    def get_spectrum(self, in_dir: np.ndarray, out_dir: np.ndarray) -> np.ndarray:
        return self.get_spectra(in_dir, out_dir)[0]

    # -- angles -> directions ------------------------------------------------
    def grid_angles(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        All grid angle tuples (N, 4), row-major with axis0 slowest, and the
        matching per-row specular offsets (N,).
        """
        ss = self._sample_set
        mesh = np.meshgrid(*(ss.get_angles(i) for i in range(4)), indexing="ij")
        angles = np.stack([m.ravel() for m in mesh], axis=-1)
        per_row = ss.num_samples // ss.num_angles0
        offsets = np.repeat(self.specular_offsets, per_row)
        return angles, offsets

    def grid_directions(self) -> Directions:
        """(in_dirs, out_dirs) of every grid cell, flattened row-major."""
        angles, offsets = self.grid_angles()
        return self._mapping.to_xyz(angles, offsets)

    def get_in_out_direction(self, i0: int, i1: int, i2: int, i3: int) -> Directions:
        """Exact forward mapping of one grid cell."""
        ss = self._sample_set
        angles = np.array([[ss.get_angle(0, i0), ss.get_angle(1, i1),
                            ss.get_angle(2, i2), ss.get_angle(3, i3)]])
        offsets = self.specular_offsets[i0:i0 + 1]
        in_v, out_v = self._mapping.to_xyz(angles, offsets)
        return in_v[0], out_v[0]

    # -- misc ----------------------------------------------------------------
    def validate(self) -> ValidationReport:
        return self._sample_set.validate()

    def copy(self) -> Brdf:
        new = Brdf.__new__(Brdf)
        new._mapping = self._mapping
        new._sample_set = self._sample_set.copy()
        new._source_type = self._source_type
        new._specular_offsets = self.specular_offsets.copy()
        return new

    def __repr__(self) -> str:
        return (
            f"Brdf(system={self.coordinate_system.value}, "
            f"source={self._source_type.value}, {self._sample_set!r})"
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Btdf
# ═══════════════════════════════════════════════════════════════════════════════
class Btdf:
    """
    Transmission view of a Brdf.

    The wrapped Brdf stores the transmitted lobe as if it were reflected.
    Lookups take |z| of both directions; forward mappings report the
    outgoing direction with z negated.  The Btdf does not own the Brdf.
    """

    __slots__ = ("_brdf",)

    def __init__(self, brdf: Brdf) -> None:
        self._brdf = brdf

    @property
    def brdf(self) -> Brdf:
        return self._brdf

    @property
    def sample_set(self) -> SampleSet:
        return self._brdf.sample_set

    @property
    def coordinate_system(self) -> CoordinateSystem:
        return self._brdf.coordinate_system

    @staticmethod
    def _abs_z(dirs: np.ndarray) -> np.ndarray:
        v = np.array(np.atleast_2d(dirs), dtype=np.float64)
        v[:, 2] = np.abs(v[:, 2])
        return v

    def get_spectra(self, in_dirs: np.ndarray, out_dirs: np.ndarray) -> np.ndarray:
        return self._brdf.get_spectra(self._abs_z(in_dirs), self._abs_z(out_dirs))

    def get_spectrum(self, in_dir: np.ndarray, out_dir: np.ndarray) -> np.ndarray:
        return self.get_spectra(in_dir, out_dir)[0]

    def get_in_out_direction(self, i0: int, i1: int, i2: int, i3: int) -> Directions:
        in_v, out_v = self._brdf.get_in_out_direction(i0, i1, i2, i3)
        out_v = out_v.copy()
        out_v[2] = -out_v[2]
        return in_v, out_v

    def grid_directions(self) -> Directions:
        in_v, out_v = self._brdf.grid_directions()
        out_v[:, 2] = -out_v[:, 2]
        return in_v, out_v

    def validate(self) -> ValidationReport:
        return self._brdf.validate()

    def __repr__(self) -> str:
        return f"Btdf({self._brdf!r})"
