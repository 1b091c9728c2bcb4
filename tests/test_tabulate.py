"""Unit tests for filling grids from analytic reflectance models.

Tests cover:
- Lambertian tabulation in spherical and specular grids
- Clamping and monochromatic averaging
- BTDF direction mirroring and the grazing guard
- Unsupported colour models and non-finite model output
"""

import numpy as np
import pytest

from glint_brdf import Brdf, DataType, SourceType
from glint_coordinates import CoordinateSystem
from glint_sampleset import ColorModel
from glint_tabulate import MIN_Z, ReflectanceModelLike, setup_tabular_brdf
from reflectance_models.basic import Lambertian


class ConstantModel:
    """Model without evaluate_batch returning a fixed RGB triple."""

    def __init__(self, value):
        self.value = np.asarray(value, dtype=np.float64)
        self.calls = []

    def evaluate(self, in_dir, out_dir):
        self.calls.append((np.array(in_dir), np.array(out_dir)))
        return self.value


class TestProtocol:
    """Tests for ReflectanceModelLike."""

    def test_runtime_check(self):
        """Test that any object with evaluate() satisfies the protocol."""
        assert isinstance(Lambertian(0.5), ReflectanceModelLike)
        assert isinstance(ConstantModel((1.0, 1.0, 1.0)), ReflectanceModelLike)
        assert not isinstance(object(), ReflectanceModelLike)


class TestSetupTabularBrdf:
    """Tests for setup_tabular_brdf."""

    def test_lambertian_spherical(self):
        """Test that a Lambertian model yields albedo / π in every cell."""
        brdf = Brdf(CoordinateSystem.SPHERICAL, 3, 1, 4, 5)
        model = Lambertian(albedo=(0.8, 0.5, 0.2))
        assert setup_tabular_brdf(model, brdf) is True
        expected = np.array([0.8, 0.5, 0.2]) / np.pi
        np.testing.assert_allclose(brdf.sample_set.spectra, np.broadcast_to(expected, brdf.sample_set.spectra.shape))
        assert brdf.source_type is SourceType.GENERATED

    def test_lambertian_specular_back_side_filled(self):
        """Test that specular grids get their downward cells back-filled."""
        brdf = Brdf(CoordinateSystem.SPECULAR, 3, 1, 7, 5)
        setup_tabular_brdf(Lambertian(albedo=0.5), brdf)
        np.testing.assert_allclose(brdf.sample_set.spectra, 0.5 / np.pi)

    def test_falls_back_to_evaluate(self):
        """Test that models without evaluate_batch are called once per cell."""
        brdf = Brdf(CoordinateSystem.SPHERICAL, 2, 1, 3, 4)
        model = ConstantModel((0.1, 0.2, 0.3))
        setup_tabular_brdf(model, brdf)
        assert len(model.calls) == brdf.sample_set.num_samples
        np.testing.assert_allclose(brdf.sample_set.spectra[..., 1], 0.2)

    def test_directions_kept_above_surface(self):
        """Test that grazing directions are lifted to a small positive z."""
        brdf = Brdf(CoordinateSystem.SPHERICAL, 3, 1, 4, 5)
        model = ConstantModel((0.1, 0.1, 0.1))
        setup_tabular_brdf(model, brdf)
        for in_dir, out_dir in model.calls:
            assert in_dir[2] > 0.5 * MIN_Z
            assert out_dir[2] > 0.5 * MIN_Z
            assert np.linalg.norm(out_dir) == pytest.approx(1.0)

    def test_btdf_mirrors_outgoing(self):
        """Test that BTDF tabulation evaluates transmitted directions."""
        brdf = Brdf(CoordinateSystem.SPHERICAL, 2, 1, 3, 4)
        model = ConstantModel((0.1, 0.1, 0.1))
        setup_tabular_brdf(model, brdf, DataType.BTDF)
        assert all(out_dir[2] < 0.0 for _, out_dir in model.calls)
        assert all(in_dir[2] > 0.0 for in_dir, _ in model.calls)

    def test_btdf_lambertian_is_zero(self):
        """Test that a reflection-only model gives an empty BTDF."""
        brdf = Brdf(CoordinateSystem.SPHERICAL, 2, 1, 3, 4)
        setup_tabular_brdf(Lambertian(albedo=0.5), brdf, DataType.BTDF)
        assert np.all(brdf.sample_set.spectra == 0.0)

    def test_rgb_clamped(self):
        """Test that RGB values are clamped to max_value."""
        brdf = Brdf(CoordinateSystem.SPHERICAL, 2, 1, 3, 4)
        setup_tabular_brdf(ConstantModel((10.0, 0.5, 2.0)), brdf, max_value=1.0)
        np.testing.assert_array_equal(brdf.sample_set.spectra[0, 0, 0, 0], [1.0, 0.5, 1.0])

    def test_monochromatic_average_and_clamp(self):
        """Test that monochromatic grids store the clamped channel mean."""
        brdf = Brdf(CoordinateSystem.SPHERICAL, 2, 1, 3, 4, color_model=ColorModel.MONOCHROMATIC)
        setup_tabular_brdf(ConstantModel((0.3, 0.6, 0.9)), brdf)
        np.testing.assert_allclose(brdf.sample_set.spectra, 0.6)

        setup_tabular_brdf(ConstantModel((0.3, 0.6, 0.9)), brdf, max_value=0.5)
        np.testing.assert_allclose(brdf.sample_set.spectra, 0.5)

    def test_unsupported_color_model(self):
        """Test that XYZ grids are left untouched with a warning."""
        brdf = Brdf(CoordinateSystem.SPHERICAL, 2, 1, 3, 4, color_model=ColorModel.XYZ)
        brdf.sample_set.spectra[...] = 0.25
        with pytest.warns(UserWarning, match="unsupported color model"):
            assert setup_tabular_brdf(Lambertian(albedo=0.5), brdf) is False
        np.testing.assert_array_equal(brdf.sample_set.spectra, 0.25)
        assert brdf.source_type is SourceType.UNKNOWN

    def test_non_finite_output_raises(self):
        """Test that NaN from the model is reported."""
        brdf = Brdf(CoordinateSystem.SPHERICAL, 2, 1, 3, 4)
        with pytest.raises(ValueError, match="non-finite"):
            setup_tabular_brdf(ConstantModel((np.nan, 0.0, 0.0)), brdf)

    def test_outgoing_pole_substituted(self):
        """Test that an outgoing direction straight down is replaced in-plane.

        In half-difference coordinates half_theta = diff_theta = π/2 with
        diff_phi = π points the outgoing ray at (0, 0, -1).
        """
        brdf = Brdf(CoordinateSystem.HALF_DIFFERENCE, 5, 1, 7, 9)
        model = ConstantModel((0.1, 0.2, 0.3))
        setup_tabular_brdf(model, brdf)

        _, n1, n2, n3 = brdf.sample_set.shape
        flat = ((4 * n1 + 0) * n2 + 6) * n3 + 4
        _, out_dir = model.calls[flat]
        expected = np.array([1.0, 0.0, MIN_Z]) / np.sqrt(1.0 + MIN_Z ** 2)
        np.testing.assert_allclose(out_dir, expected, atol=1e-12)
        assert np.all(np.isfinite(brdf.sample_set.spectra))
