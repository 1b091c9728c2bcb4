# -*- coding: utf-8 -*-
"""
Glint: Tabular BRDF/BTDF data in angular coordinate systems
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: basic.py — Constant (Lambertian) reflectance model.
"""

import numpy as np
from typing import Dict, Optional, Sequence, Union

from .model import ReflectanceModel

__all__ = ["Lambertian"]

_CHANNELS = ("albedo_r", "albedo_g", "albedo_b")


class Lambertian(ReflectanceModel):
    """
    Ideal diffuse reflector: ``f = albedo / π`` for every pair of upward
    directions, 0 if either direction points below the surface.

    Parameters:
        albedo: Scalar (grey) or (r, g, b) albedo, each in [0, 1].
        params: Dictionary with 'albedo_r', 'albedo_g', 'albedo_b'.
        **kwargs: Individual channel parameters.

    Examples:
        model = Lambertian(albedo=0.5)
        model = Lambertian(albedo=(0.8, 0.5, 0.2))
        model = Lambertian(params={'albedo_r': 0.8, 'albedo_g': 0.5, 'albedo_b': 0.2})
        model.set_param('albedo_g', 0.6)
    """

    def __init__(
        self,
        albedo: Optional[Union[float, Sequence[float]]] = None,
        params: Optional[Dict[str, Union[float, int]]] = None,
        **kwargs: Union[float, int]
    ):
        p = params.copy() if params else {}
        if albedo is not None:
            values = np.broadcast_to(np.asarray(albedo, dtype=np.float64), (3,))
            p.update(zip(_CHANNELS, values))
        p.update(kwargs)

        super().__init__(params=p)
        self._validate_params(required=list(_CHANNELS))

        for name in _CHANNELS:
            if not 0.0 <= self.params[name] <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {self.params[name]}")

    @property
    def albedo(self) -> np.ndarray:
        return np.array([self.params[name] for name in _CHANNELS])

    def evaluate(self, in_dir: np.ndarray, out_dir: np.ndarray) -> np.ndarray:
        if in_dir[2] < 0.0 or out_dir[2] < 0.0:
            return np.zeros(3)
        return self.albedo / np.pi

    def evaluate_batch(self, in_dirs: np.ndarray, out_dirs: np.ndarray) -> np.ndarray:
        in_dirs = np.atleast_2d(in_dirs)
        out_dirs = np.atleast_2d(out_dirs)
        upward = (in_dirs[:, 2] >= 0.0) & (out_dirs[:, 2] >= 0.0)
        return np.where(upward[:, None], self.albedo / np.pi, 0.0)
