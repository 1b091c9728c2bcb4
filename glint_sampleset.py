# -*- coding: utf-8 -*-
"""
Glint: Tabular BRDF/BTDF data in angular coordinate systems
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: glint_sampleset.py — Four-angle sample grid with per-cell spectra.

Storage layout
--------------
  angles0..3   float64 axes, sizes independent and > 0.  Their meaning
               (incoming polar, specular azimuth, …) is defined by the
               coordinate system of the owning Brdf, not here.
  wavelengths  float64 axis: 1 (monochromatic), 3 (RGB / XYZ) or N.
  spectra      C-contiguous float64 array (n0, n1, n2, n3, n_wl).  Row-major
               with axis0 slowest, i.e. the flattened grid of spectra.

Cached attributes
-----------------
  The equal-interval flags and the one-side flag depend on the axis values.
  Axes are exposed read-only; every write goes through set_angle /
  set_angles / resize_angles, which refresh the cache before returning, so
  the flags can never go stale.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from glint_array import is_equal_interval

__all__ = [
    "ColorModel",
    "ValidationReport",
    "SampleSet",
    "ONE_SIDE_TOLERANCE",
]

logger = logging.getLogger(__name__)

FLOAT_TYPE = np.float64

# Angular guard (radians) around 0, π and 2π for the one-side test.  Edge
# samples that sit on a boundary up to rounding must not count as being
# inside a half-range.
ONE_SIDE_TOLERANCE: float = 1e-6

_TWO_PI: float = 2.0 * np.pi

CellIndex = Tuple[int, int, int, int]


class ColorModel(Enum):
    """Interpretation of the wavelength axis."""
    MONOCHROMATIC = "monochromatic"
    RGB = "rgb"
    XYZ = "xyz"
    SPECTRAL = "spectral"


@dataclass(slots=True, frozen=True)
class ValidationReport:
    """
    Result of ``SampleSet.validate``.

    Truthy iff every spectrum, angle and wavelength is finite.  ``messages``
    holds one human-readable line per invalid category; ``invalid_cells``
    lists the grid indices of non-finite spectra.
    """
    valid: bool
    messages: Tuple[str, ...] = ()
    invalid_cells: Tuple[CellIndex, ...] = ()

    def __bool__(self) -> bool:
        return self.valid


class SampleSet:
    """
    Four-dimensional angle grid holding one spectrum per cell.

    Parameters
    ----------
    num_angles0, num_angles1, num_angles2, num_angles3 : int
        Axis sizes (all > 0).
    color_model : ColorModel
        Determines the initial wavelength count (1, 3, or *num_wavelengths*
        for SPECTRAL).
    num_wavelengths : int
        Wavelength count for SPECTRAL grids; ignored otherwise.

    Axes and wavelengths start as zeros, all spectra as zero vectors.
    """

    __slots__ = (
        "_angles",
        "_wavelengths",
        "_spectra",
        "_color_model",
        "_equal_interval",
        "_one_side",
    )

    def __init__(
        self,
        num_angles0: int,
        num_angles1: int,
        num_angles2: int,
        num_angles3: int,
        color_model: ColorModel = ColorModel.RGB,
        num_wavelengths: int = 1,
    ) -> None:
        self._color_model = ColorModel(color_model)
        self._angles: List[np.ndarray] = []
        self._wavelengths = np.zeros(1, dtype=FLOAT_TYPE)
        self._spectra = np.zeros((1, 1, 1, 1, 1), dtype=FLOAT_TYPE)
        self._equal_interval: List[bool] = [False, False, False, False]
        self._one_side: bool = False

        self.resize_angles(num_angles0, num_angles1, num_angles2, num_angles3)

        if self._color_model is ColorModel.SPECTRAL:
            self.resize_wavelengths(num_wavelengths)
        elif self._color_model is ColorModel.MONOCHROMATIC:
            self.resize_wavelengths(1)
        else:
            self.resize_wavelengths(3)

    # -- sizes ---------------------------------------------------------------
    @property
    def color_model(self) -> ColorModel:
        return self._color_model

    @property
    def shape(self) -> Tuple[int, int, int, int]:
        """Axis sizes ``(n0, n1, n2, n3)``."""
        return tuple(a.shape[0] for a in self._angles)  # type: ignore[return-value]

    @property
    def num_samples(self) -> int:
        """Number of grid cells (product of the four axis sizes)."""
        return int(np.prod(self.shape))

    def get_num_angles(self, axis: int) -> int:
        return self._axis(axis).shape[0]

    @property
    def num_angles0(self) -> int:
        return self._angles[0].shape[0]

    @property
    def num_angles1(self) -> int:
        return self._angles[1].shape[0]

    @property
    def num_angles2(self) -> int:
        return self._angles[2].shape[0]

    @property
    def num_angles3(self) -> int:
        return self._angles[3].shape[0]

    @property
    def num_wavelengths(self) -> int:
        return self._wavelengths.shape[0]

    # -- angle read interface ------------------------------------------------
    def get_angles(self, axis: int) -> np.ndarray:
        """Read-only view of one angle axis."""
        view = self._axis(axis).view()
        view.flags.writeable = False
        return view

    def get_angle(self, axis: int, index: int) -> float:
        return float(self._axis(axis)[index])

    @property
    def angles0(self) -> np.ndarray:
        return self.get_angles(0)

    @property
    def angles1(self) -> np.ndarray:
        return self.get_angles(1)

    @property
    def angles2(self) -> np.ndarray:
        return self.get_angles(2)

    @property
    def angles3(self) -> np.ndarray:
        return self.get_angles(3)

    # -- angle write interface -----------------------------------------------
    def set_angle(self, axis: int, index: int, value: float) -> None:
        """
        Set one axis value and refresh the cached angle attributes.

        The value must be non-negative and above its left neighbour, so an
        axis can be filled from left to right.  ``set_angles`` checks the
        whole axis.
        """
        target = self._axis(axis)
        index = range(target.shape[0])[index]
        if value < 0.0:
            raise ValueError(f"SampleSet.set_angle: negative angle {value} on axis {axis}")
        if index > 0 and value <= target[index - 1]:
            raise ValueError(
                f"SampleSet.set_angle: axis {axis} must be strictly increasing, "
                f"got {value} after {target[index - 1]}"
            )
        target[index] = value
        self.update_angle_attributes()

    def set_angles(self, axis: int, values: Union[np.ndarray, Sequence[float]]) -> None:
        """
        Replace the values of one axis (same length) and refresh the cache.

        Raises
        ------
        ValueError
            If the length differs from the axis size.  Use ``resize_angles``
            to change the grid shape.  Also raised for negative or not
            strictly increasing values.
        """
        arr = np.asarray(values, dtype=FLOAT_TYPE)
        target = self._axis(axis)
        if arr.shape != target.shape:
            raise ValueError(
                f"SampleSet.set_angles: axis {axis} expects {target.shape[0]} "
                f"values, got {arr.shape}"
            )
        if np.any(arr < 0.0):
            raise ValueError(f"SampleSet.set_angles: negative angle on axis {axis}")
        if np.any(np.diff(arr) <= 0.0):
            raise ValueError(
                f"SampleSet.set_angles: axis {axis} must be strictly increasing"
            )
        target[:] = arr
        self.update_angle_attributes()

    # -- cached attributes ---------------------------------------------------
    def is_equal_interval(self, axis: int) -> bool:
        self._axis(axis)
        return self._equal_interval[axis]

    @property
    def equal_interval_angles0(self) -> bool:
        return self._equal_interval[0]

    @property
    def equal_interval_angles1(self) -> bool:
        return self._equal_interval[1]

    @property
    def equal_interval_angles2(self) -> bool:
        return self._equal_interval[2]

    @property
    def equal_interval_angles3(self) -> bool:
        return self._equal_interval[3]

    @property
    def equal_intervals(self) -> np.ndarray:
        """The four equal-interval flags as a bool array (kernel input)."""
        return np.array(self._equal_interval, dtype=np.bool_)

    @property
    def is_one_side(self) -> bool:
        """True if axis3 covers at most one of the (0, π) / (π, 2π) halves."""
        return self._one_side

    @property
    def is_isotropic(self) -> bool:
        """Isotropic grids store a single sample on axis1."""
        return self._angles[1].shape[0] == 1

    def update_angle_attributes(self) -> None:
        """Recompute the equal-interval flags and the one-side flag."""
        self._equal_interval = [is_equal_interval(a) for a in self._angles]
        self._one_side = self._compute_one_side()

        logger.debug(
            "SampleSet equal-interval flags %s, one-side %s",
            self._equal_interval, self._one_side,
        )

    def _compute_one_side(self) -> bool:
        angles = np.mod(self._angles[3], _TWO_PI)
        tol = ONE_SIDE_TOLERANCE

        contains_0_pi = bool(np.any((angles > tol) & (angles < np.pi - tol)))
        contains_pi_2pi = bool(
            np.any((angles > np.pi + tol) & (angles < _TWO_PI - tol))
        )
        return not (contains_0_pi and contains_pi_2pi)

    # -- wavelengths ---------------------------------------------------------
    @property
    def wavelengths(self) -> np.ndarray:
        """Read-only view of the wavelength axis."""
        view = self._wavelengths.view()
        view.flags.writeable = False
        return view

    def get_wavelength(self, index: int) -> float:
        return float(self._wavelengths[index])

    def set_wavelength(self, index: int, value: float) -> None:
        self._wavelengths[index] = value

    def set_wavelengths(self, values: Union[np.ndarray, Sequence[float]]) -> None:
        arr = np.asarray(values, dtype=FLOAT_TYPE)
        if arr.shape != self._wavelengths.shape:
            raise ValueError(
                f"SampleSet.set_wavelengths: expected {self.num_wavelengths} "
                f"values, got {arr.shape}"
            )
        self._wavelengths[:] = arr

    # -- spectra -------------------------------------------------------------
    @property
    def spectra(self) -> np.ndarray:
        """The (n0, n1, n2, n3, n_wl) spectra array (writable, no copy)."""
        return self._spectra

    def get_spectrum(self, i0: int, i1: int, i2: int, i3: int) -> np.ndarray:
        """Spectrum of one cell (writable view)."""
        return self._spectra[i0, i1, i2, i3]

    def set_spectrum(
        self,
        i0: int,
        i1: int,
        i2: int,
        i3: int,
        spectrum: Union[np.ndarray, Sequence[float]],
    ) -> None:
        """
        Validated write of one cell.

        Raises
        ------
        ValueError
            If the spectrum length differs from the wavelength count.
        """
        arr = np.asarray(spectrum, dtype=FLOAT_TYPE)
        if arr.shape != (self.num_wavelengths,):
            raise ValueError(
                f"SampleSet.set_spectrum: spectrum length {arr.shape} != "
                f"wavelength count {self.num_wavelengths}"
            )
        self._spectra[i0, i1, i2, i3] = arr

    # -- resizing ------------------------------------------------------------
    def resize_angles(
        self, num_angles0: int, num_angles1: int, num_angles2: int, num_angles3: int
    ) -> None:
        """
        Reallocate the four axes (zeros) and the spectra grid.

        Existing spectral content is discarded, not resampled; use
        ``glint_processor.resample_angles`` to resample a grid.
        """
        sizes = (num_angles0, num_angles1, num_angles2, num_angles3)
        if any(int(n) <= 0 for n in sizes):
            raise ValueError(f"SampleSet: angle counts must be > 0, got {sizes}")

        self._angles = [np.zeros(int(n), dtype=FLOAT_TYPE) for n in sizes]
        n_wl = self._wavelengths.shape[0]
        self._spectra = np.zeros(tuple(int(n) for n in sizes) + (n_wl,), dtype=FLOAT_TYPE)
        self.update_angle_attributes()

    def resize_wavelengths(self, num_wavelengths: int) -> None:
        """
        Give every cell a zero spectrum of length *num_wavelengths*.

        The wavelength axis is reallocated to zeros; callers set its values.
        """
        if int(num_wavelengths) <= 0:
            raise ValueError(
                f"SampleSet: wavelength count must be > 0, got {num_wavelengths}"
            )
        n = int(num_wavelengths)
        self._spectra = np.zeros(self.shape + (n,), dtype=FLOAT_TYPE)
        self._wavelengths = np.zeros(n, dtype=FLOAT_TYPE)

    # -- validation ----------------------------------------------------------
    def validate(self) -> ValidationReport:
        """
        Check that every spectrum, angle and wavelength is finite.

        Read-only.  Each invalid category (spectra, angle0..3, wavelengths)
        yields one message, which is also emitted as a warning.  Nothing is
        raised; the caller decides whether to abort.
        """
        messages: List[str] = []

        finite = np.isfinite(self._spectra).all(axis=-1)
        bad = np.argwhere(~finite)
        invalid_cells = tuple(tuple(int(i) for i in row) for row in bad)

        if invalid_cells:
            has_nan = np.isnan(self._spectra).any(axis=-1)
            n_nan = int(np.count_nonzero(has_nan))
            n_inf = len(invalid_cells) - n_nan
            parts = []
            if n_nan:
                first = tuple(int(i) for i in np.argwhere(has_nan)[0])
                parts.append(f"NaN values in {n_nan} sample(s), first at {first}")
            if n_inf:
                inf_only = ~finite & ~has_nan
                first = tuple(int(i) for i in np.argwhere(inf_only)[0])
                parts.append(f"+/-INF values in {n_inf} sample(s), first at {first}")
            messages.append("Invalid spectra: " + "; ".join(parts) + ".")
        else:
            logger.debug("SampleSet.validate: spectra are valid.")

        for axis, angles in enumerate(self._angles):
            if np.isfinite(angles).all():
                logger.debug("SampleSet.validate: angle%d array is valid.", axis)
            else:
                count = int(np.count_nonzero(~np.isfinite(angles)))
                messages.append(f"Invalid angle{axis}: {count} non-finite value(s).")

        if np.isfinite(self._wavelengths).all():
            logger.debug("SampleSet.validate: wavelengths are valid.")
        else:
            count = int(np.count_nonzero(~np.isfinite(self._wavelengths)))
            messages.append(f"Invalid wavelengths: {count} non-finite value(s).")

        for msg in messages:
            warnings.warn(f"SampleSet.validate: {msg}", stacklevel=2)

        return ValidationReport(
            valid=not messages,
            messages=tuple(messages),
            invalid_cells=invalid_cells,
        )

    # -- copying -------------------------------------------------------------
    def copy(self) -> SampleSet:
        """Deep copy (axes, wavelengths, spectra, cached flags)."""
        new = SampleSet.__new__(SampleSet)
        new._color_model = self._color_model
        new._angles = [a.copy() for a in self._angles]
        new._wavelengths = self._wavelengths.copy()
        new._spectra = self._spectra.copy()
        new._equal_interval = list(self._equal_interval)
        new._one_side = self._one_side
        return new

    # -- internals -----------------------------------------------------------
    def _axis(self, axis: int) -> np.ndarray:
        if not 0 <= axis < 4:
            raise IndexError(f"SampleSet: angle axis must be 0..3, got {axis}")
        return self._angles[axis]

    # -- display -------------------------------------------------------------
    def __repr__(self) -> str:
        n0, n1, n2, n3 = self.shape
        return (
            f"SampleSet(angles=({n0}, {n1}, {n2}, {n3}), "
            f"wl_points={self.num_wavelengths}, "
            f"color_model={self._color_model.value}, "
            f"isotropic={self.is_isotropic}, one_side={self._one_side})"
        )
