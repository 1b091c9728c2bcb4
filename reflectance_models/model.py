# -*- coding: utf-8 -*-
"""
Glint: Tabular BRDF/BTDF data in angular coordinate systems
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: model.py — Base class for analytic reflectance models.

Parameters live in one dict (``self.params``).  They can be passed as a
dict, as keywords, or both; keywords win on conflicts.  Numeric values are
stored as float.
"""

import numpy as np
from typing import Dict, Iterable, Mapping, Optional, Union

Number = Union[float, int]


def _is_number(value) -> bool:
    return isinstance(value, (int, float, np.number)) and not isinstance(value, bool)


class ReflectanceModel:
    """
    Analytic BRDF returning linear RGB values.

    Subclasses implement ``evaluate(in_dir, out_dir) -> (3,)``.  The
    default ``evaluate_batch`` calls it row by row; override it when the
    model vectorises.

    Directions are unit vectors pointing away from the surface, whose
    normal is +z.
    """

    def __init__(self, params: Optional[Mapping[str, Number]] = None, **kwargs: Number):
        """
        Args:
            params: Parameter dict, e.g. loaded from a config file.
            **kwargs: Parameters given by name; override *params*.
        """
        self.params: Dict[str, float] = {}
        for source in (params or {}, kwargs):
            for name, value in source.items():
                self.params[name] = float(value) if _is_number(value) else value

    def _validate_params(
        self,
        required: Optional[Iterable[str]] = None,
        optional: Optional[Mapping[str, float]] = None
    ) -> None:
        """Check *required* names are present and fill *optional* defaults."""
        missing = [name for name in (required or ()) if name not in self.params]
        if missing:
            raise ValueError(
                f"{type(self).__name__} is missing parameter '{missing[0]}' (required)."
            )
        for name, default in (optional or {}).items():
            self.params.setdefault(name, default)

    def evaluate(self, in_dir: np.ndarray, out_dir: np.ndarray) -> np.ndarray:
        raise NotImplementedError(f"{type(self).__name__}.evaluate() is not implemented")

    def evaluate_batch(self, in_dirs: np.ndarray, out_dirs: np.ndarray) -> np.ndarray:
        """Row-wise ``evaluate`` over (N, 3) direction arrays; returns (N, 3)."""
        in_dirs = np.atleast_2d(in_dirs)
        out_dirs = np.atleast_2d(out_dirs)
        return np.array(
            [self.evaluate(i, o) for i, o in zip(in_dirs, out_dirs)],
            dtype=np.float64,
        ).reshape(-1, 3)

    def get_params(self) -> Dict[str, float]:
        return dict(self.params)

    def set_param(self, name: str, value: Number) -> None:
        """
        Set one parameter.

        Raises:
            TypeError: For non-numeric values.
        """
        if not _is_number(value):
            raise TypeError(f"{name}: expected a number, got {type(value).__name__}")
        self.params[name] = float(value)

    def __repr__(self) -> str:
        args = ", ".join(f"{k}={v!r}" for k, v in self.params.items())
        return f"{type(self).__name__}({args})"
