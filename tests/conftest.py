"""Pytest configuration for Glint tests.

Shared fixtures build small grids in each coordinate system.  The
interpolation kernel mode is reset around every test so tests that switch
to the parallel kernel cannot leak into others.
"""

import numpy as np
import pytest

import glint_interpolation
from glint_brdf import Brdf
from glint_coordinates import CoordinateSystem
from glint_sampleset import ColorModel


@pytest.fixture(autouse=True)
def serial_kernels():
    """Run every test with the serial interpolation kernel by default."""
    glint_interpolation.set_parallel(False)
    yield
    glint_interpolation.set_parallel(False)


@pytest.fixture
def rng():
    """Deterministic random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def spherical_brdf(rng):
    """Anisotropic spherical RGB grid filled with random values."""
    brdf = Brdf(CoordinateSystem.SPHERICAL, 4, 5, 6, 7)
    brdf.sample_set.spectra[...] = rng.random(brdf.sample_set.spectra.shape)
    return brdf


@pytest.fixture
def isotropic_spherical_brdf(rng):
    """Isotropic spherical RGB grid filled with random values."""
    brdf = Brdf(CoordinateSystem.SPHERICAL, 4, 1, 6, 9)
    brdf.sample_set.spectra[...] = rng.random(brdf.sample_set.spectra.shape)
    return brdf


@pytest.fixture
def specular_brdf(rng):
    """Isotropic specular-centered RGB grid filled with random values."""
    brdf = Brdf(CoordinateSystem.SPECULAR, 3, 1, 7, 5)
    brdf.sample_set.spectra[...] = rng.random(brdf.sample_set.spectra.shape)
    return brdf


def constant_brdf(system, shape, value, color_model=ColorModel.RGB):
    """Grid of the given shape with every channel set to *value*."""
    brdf = Brdf(system, *shape, color_model=color_model)
    brdf.sample_set.spectra[...] = value
    return brdf
