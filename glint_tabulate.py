# -*- coding: utf-8 -*-
"""
Glint: Tabular BRDF/BTDF data in angular coordinate systems
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: glint_tabulate.py — Fill a Brdf grid from an analytic reflectance model.

Any object with ``evaluate(in_dir, out_dir) -> (3,)`` qualifies
(``ReflectanceModelLike``).  Models that also provide
``evaluate_batch(in_dirs, out_dirs) -> (N, 3)`` are evaluated over all grid
cells in one call; every cell is independent, so the result does not
depend on evaluation order.
"""

from __future__ import annotations

import warnings
from typing import Final, Protocol, runtime_checkable

import numpy as np

from glint_brdf import Brdf, DataType, SourceType
from glint_coordinates import CoordinateSystem, is_downward_dir, normalize
from glint_processor import fill_back_side
from glint_sampleset import ColorModel

__all__ = [
    "ReflectanceModelLike",
    "MIN_Z",
    "DEFAULT_MAX_VALUE",
    "setup_tabular_brdf",
]

# Floor for the z component of both directions (grazing guard).
MIN_Z: Final[float] = 0.001

DEFAULT_MAX_VALUE: Final[float] = float(np.finfo(np.float32).max)


@runtime_checkable
class ReflectanceModelLike(Protocol):
    """
    Minimal interface an analytic model must satisfy.

    evaluate(in_dir, out_dir) → (3,) linear RGB BRDF value.
    """
    def evaluate(self, in_dir: np.ndarray, out_dir: np.ndarray) -> np.ndarray: ...


def _evaluate(model: ReflectanceModelLike, in_dirs: np.ndarray, out_dirs: np.ndarray) -> np.ndarray:
    batch = getattr(model, "evaluate_batch", None)
    if batch is not None:
        return np.asarray(batch(in_dirs, out_dirs), dtype=np.float64)

    res = np.empty((in_dirs.shape[0], 3), dtype=np.float64)
    for i in range(in_dirs.shape[0]):
        res[i] = model.evaluate(in_dirs[i], out_dirs[i])
    return res


def setup_tabular_brdf(
    model: ReflectanceModelLike,
    brdf: Brdf,
    data_type: DataType = DataType.BRDF,
    max_value: float = DEFAULT_MAX_VALUE,
) -> bool:
    """
    Overwrite every spectrum of *brdf* with values of *model*.

    Args:
        model: Analytic reflectance model.
        brdf: Target grid; RGB or monochromatic only.
        data_type: For BTDF the outgoing direction is mirrored below the
            surface before evaluation.
        max_value: Upper clamp of the stored values.

    Returns:
        False (and a warning, nothing modified) for unsupported colour
        models, True otherwise.

    Raises:
        ValueError: If the model returns non-finite values.
    """
    ss = brdf.sample_set
    cm = ss.color_model
    if cm not in (ColorModel.RGB, ColorModel.MONOCHROMATIC):
        warnings.warn(
            f"setup_tabular_brdf: unsupported color model '{cm.value}'.",
            stacklevel=2,
        )
        return False

    back_side_fillable = brdf.coordinate_system is CoordinateSystem.SPECULAR

    in_dirs, out_dirs = brdf.grid_directions()
    if back_side_fillable:
        cells = ~is_downward_dir(out_dirs)
    else:
        cells = np.ones(in_dirs.shape[0], dtype=bool)

    in_v = in_dirs[cells]
    out_v = out_dirs[cells]
    in_v[:, 2] = np.maximum(in_v[:, 2], MIN_Z)
    out_v[:, 2] = np.maximum(out_v[:, 2], MIN_Z)

    at_pole = (
        (np.abs(out_v[:, 0]) <= MIN_Z)
        & (np.abs(out_v[:, 1]) <= MIN_Z)
        & (out_v[:, 2] <= MIN_Z)
    )
    out_v[at_pole, 0] = 1.0

    in_v = normalize(in_v)
    out_v = normalize(out_v)

    if DataType(data_type) is DataType.BTDF:
        out_v[:, 2] = -out_v[:, 2]

    values = _evaluate(model, in_v, out_v)
    if not np.all(np.isfinite(values)):
        raise ValueError(
            f"setup_tabular_brdf: {type(model).__name__} returned non-finite values."
        )

    flat = ss.spectra.reshape(-1, ss.num_wavelengths)
    if cm is ColorModel.RGB:
        flat[cells] = np.minimum(values, max_value)
    else:
        flat[cells, 0] = np.minimum(values.sum(axis=1) / 3.0, max_value)

    if back_side_fillable:
        fill_back_side(brdf)

    brdf.source_type = SourceType.GENERATED
    return True
