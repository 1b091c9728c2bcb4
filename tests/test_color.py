"""Unit tests for linear colour-model conversion.

Tests cover:
- sRGB <-> XYZ matrices
- Reduction to a single channel
- Brdf colour-model conversion and its error cases
"""

import numpy as np
import pytest

from glint_brdf import Brdf, SourceType
from glint_color import convert_color_model, srgb_to_xyz, to_monochrome, xyz_to_srgb
from glint_coordinates import CoordinateSystem
from glint_sampleset import ColorModel


class TestMatrices:
    """Tests for the sRGB / XYZ matrices."""

    def test_white_is_d65(self):
        """Test that linear sRGB white maps to the D65 white point."""
        np.testing.assert_allclose(srgb_to_xyz([1.0, 1.0, 1.0]), [0.95047, 1.0, 1.08883], atol=1e-4)

    def test_round_trip(self, rng):
        """Test that the two matrices are inverse to each other."""
        rgb = rng.random((20, 3))
        np.testing.assert_allclose(xyz_to_srgb(srgb_to_xyz(rgb)), rgb, atol=1e-5)

    def test_rejects_wrong_shape(self):
        """Test that values must be triplets."""
        with pytest.raises(ValueError):
            srgb_to_xyz(np.zeros((4, 2)))


class TestToMonochrome:
    """Tests for to_monochrome."""

    def test_rgb_mean(self):
        np.testing.assert_allclose(to_monochrome([[0.3, 0.6, 0.9]], ColorModel.RGB), [[0.6]])

    def test_xyz_luminance(self):
        np.testing.assert_array_equal(to_monochrome([[0.2, 0.7, 0.1]], ColorModel.XYZ), [[0.7]])

    def test_monochromatic_copied(self):
        values = np.array([[0.4]])
        out = to_monochrome(values, ColorModel.MONOCHROMATIC)
        np.testing.assert_array_equal(out, values)
        assert out is not values

    def test_spectral_rejected(self):
        with pytest.raises(ValueError):
            to_monochrome(np.zeros((2, 5)), ColorModel.SPECTRAL)


class TestConvertColorModel:
    """Tests for convert_color_model."""

    def test_rgb_to_xyz(self, specular_brdf):
        """Test conversion of every sample with grid and offsets preserved."""
        specular_brdf.set_specular_offsets([0.0, 0.02, 0.04])
        out = convert_color_model(specular_brdf, ColorModel.XYZ)
        assert out.color_model is ColorModel.XYZ
        assert out.coordinate_system is CoordinateSystem.SPECULAR
        assert out.source_type is SourceType.EDITED
        np.testing.assert_allclose(out.sample_set.spectra, srgb_to_xyz(specular_brdf.sample_set.spectra))
        np.testing.assert_array_equal(out.specular_offsets, specular_brdf.specular_offsets)
        for axis in range(4):
            np.testing.assert_array_equal(out.get_angles(axis), specular_brdf.get_angles(axis))

    def test_rgb_to_monochromatic(self, spherical_brdf):
        out = convert_color_model(spherical_brdf, ColorModel.MONOCHROMATIC)
        assert out.num_wavelengths == 1
        np.testing.assert_allclose(out.sample_set.spectra[..., 0], spherical_brdf.sample_set.spectra.mean(axis=-1))

    def test_same_model_returns_copy(self, spherical_brdf):
        out = convert_color_model(spherical_brdf, ColorModel.RGB)
        assert out is not spherical_brdf
        np.testing.assert_array_equal(out.sample_set.spectra, spherical_brdf.sample_set.spectra)

    def test_input_not_mutated(self, spherical_brdf):
        before = spherical_brdf.sample_set.spectra.copy()
        convert_color_model(spherical_brdf, ColorModel.XYZ)
        np.testing.assert_array_equal(spherical_brdf.sample_set.spectra, before)
        assert spherical_brdf.color_model is ColorModel.RGB

    def test_monochromatic_to_rgb_rejected(self):
        brdf = Brdf(CoordinateSystem.SPHERICAL, 2, 1, 3, 3, color_model=ColorModel.MONOCHROMATIC)
        with pytest.raises(ValueError):
            convert_color_model(brdf, ColorModel.RGB)

    def test_spectral_rejected(self):
        brdf = Brdf(CoordinateSystem.SPHERICAL, 2, 1, 3, 3, color_model=ColorModel.SPECTRAL, num_wavelengths=4)
        with pytest.raises(ValueError, match="spectral"):
            convert_color_model(brdf, ColorModel.RGB)
        with pytest.raises(ValueError):
            convert_color_model(Brdf(CoordinateSystem.SPHERICAL, 2, 1, 3, 3), ColorModel.SPECTRAL)
