"""Unit tests for SampleSet.

Tests cover:
- Construction and wavelength counts per color model
- Resizing and zero fill
- Read-only axes and validated writes
- Cached equal-interval and one-side flags
- Validation reports
"""

import warnings

import numpy as np
import pytest

from glint_sampleset import ColorModel, SampleSet, ValidationReport


class TestConstruction:
    """Tests for SampleSet construction."""

    def test_rgb_2_1_4_4_scenario(self):
        """Test the (2, 1, 4, 4) RGB grid: 3 wavelengths, zero spectra, valid."""
        ss = SampleSet(2, 1, 4, 4, ColorModel.RGB)
        assert ss.shape == (2, 1, 4, 4)
        assert ss.num_wavelengths == 3
        assert ss.spectra.shape == (2, 1, 4, 4, 3)
        for i2 in range(4):
            for i3 in range(4):
                np.testing.assert_array_equal(ss.get_spectrum(1, 0, i2, i3), [0.0, 0.0, 0.0])
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            report = ss.validate()
        assert report
        assert report.messages == ()

    @pytest.mark.parametrize(
        "color_model, requested, expected",
        [
            (ColorModel.MONOCHROMATIC, 7, 1),
            (ColorModel.RGB, 7, 3),
            (ColorModel.XYZ, 7, 3),
            (ColorModel.SPECTRAL, 7, 7),
        ],
    )
    def test_wavelength_count_per_color_model(self, color_model, requested, expected):
        """Test that the color model decides the wavelength count."""
        ss = SampleSet(1, 1, 2, 2, color_model, num_wavelengths=requested)
        assert ss.num_wavelengths == expected
        assert ss.color_model is color_model

    def test_num_samples_and_isotropy(self):
        """Test derived size properties."""
        ss = SampleSet(3, 1, 5, 2)
        assert ss.num_samples == 30
        assert ss.is_isotropic
        assert not SampleSet(3, 2, 5, 2).is_isotropic

    @pytest.mark.parametrize("shape", [(0, 1, 1, 1), (1, 1, -2, 1)])
    def test_non_positive_sizes_raise(self, shape):
        """Test that empty axes are rejected."""
        with pytest.raises(ValueError):
            SampleSet(*shape)

    def test_repr_mentions_shape(self):
        """Test the repr contents."""
        assert "angles=(2, 1, 4, 4)" in repr(SampleSet(2, 1, 4, 4))


class TestResize:
    """Tests for resize_angles / resize_wavelengths."""

    @pytest.mark.parametrize("k", [1, 3, 16])
    def test_resize_then_wavelengths_zero_fills(self, k):
        """Test that every cell holds k zeros after resizing."""
        ss = SampleSet(2, 2, 2, 2)
        ss.spectra[...] = 5.0
        ss.resize_angles(3, 1, 4, 2)
        ss.resize_wavelengths(k)
        assert ss.spectra.shape == (3, 1, 4, 2, k)
        assert np.all(ss.spectra == 0.0)
        assert ss.wavelengths.shape == (k,)

    def test_resize_angles_zeroes_axes(self):
        """Test that resized axes start at zero."""
        ss = SampleSet(2, 2, 2, 2)
        ss.set_angles(2, [0.0, 1.0])
        ss.resize_angles(2, 2, 5, 2)
        np.testing.assert_array_equal(ss.angles2, np.zeros(5))
        assert ss.num_wavelengths == 3

    def test_resize_wavelengths_rejects_zero(self):
        """Test that zero wavelengths are rejected."""
        with pytest.raises(ValueError):
            SampleSet(1, 1, 1, 1).resize_wavelengths(0)


class TestAxisAccess:
    """Tests for read-only axes and validated writes."""

    def test_angles_are_read_only(self):
        """Test that the exposed axis views cannot be written."""
        ss = SampleSet(2, 1, 3, 3)
        with pytest.raises(ValueError):
            ss.angles0[0] = 1.0
        with pytest.raises(ValueError):
            ss.get_angles(3)[1] = 1.0

    def test_set_angles_refreshes_equal_interval(self):
        """Test that writing an axis updates the cached flag at once."""
        ss = SampleSet(2, 1, 4, 3)
        assert not ss.equal_interval_angles2
        ss.set_angles(2, np.linspace(0.0, np.pi / 2, 4))
        assert ss.equal_interval_angles2
        assert ss.is_equal_interval(2)
        ss.set_angle(2, 1, 0.05)
        assert not ss.equal_interval_angles2

    def test_set_angles_rejects_unsorted_or_negative(self):
        """Test that axes must be non-negative and strictly increasing."""
        ss = SampleSet(2, 1, 3, 3)
        with pytest.raises(ValueError, match="increasing"):
            ss.set_angles(2, [0.0, 0.5, 0.5])
        with pytest.raises(ValueError, match="increasing"):
            ss.set_angles(2, [0.0, 1.0, 0.5])
        with pytest.raises(ValueError, match="negative"):
            ss.set_angles(2, [-0.1, 0.5, 1.0])
        np.testing.assert_array_equal(ss.get_angles(2), [0.0, 0.0, 0.0])

    def test_set_angle_checks_left_neighbour(self):
        """Test single writes: left-to-right filling works, disorder does not."""
        ss = SampleSet(2, 1, 3, 3)
        ss.set_angle(2, 1, 0.5)
        ss.set_angle(2, 2, 1.0)
        with pytest.raises(ValueError):
            ss.set_angle(2, 2, 0.4)
        with pytest.raises(ValueError):
            ss.set_angle(2, 0, -1.0)
        np.testing.assert_array_equal(ss.get_angles(2), [0.0, 0.5, 1.0])

    def test_set_angles_wrong_length_raises(self):
        """Test that axis writes must keep the axis length."""
        with pytest.raises(ValueError):
            SampleSet(2, 1, 4, 3).set_angles(2, [0.0, 1.0])

    def test_axis_out_of_range_raises(self):
        """Test that axes other than 0..3 are rejected."""
        ss = SampleSet(1, 1, 1, 1)
        with pytest.raises(IndexError):
            ss.get_angles(4)
        with pytest.raises(IndexError):
            ss.set_angle(-1, 0, 1.0)

    def test_set_spectrum_checks_length(self):
        """Test that a spectrum must match the wavelength count."""
        ss = SampleSet(1, 1, 2, 2)
        ss.set_spectrum(0, 0, 1, 1, [0.1, 0.2, 0.3])
        np.testing.assert_array_equal(ss.get_spectrum(0, 0, 1, 1), [0.1, 0.2, 0.3])
        with pytest.raises(ValueError):
            ss.set_spectrum(0, 0, 1, 1, [0.1, 0.2])

    def test_set_wavelengths(self):
        """Test wavelength writes and their length check."""
        ss = SampleSet(1, 1, 1, 1, ColorModel.SPECTRAL, num_wavelengths=3)
        ss.set_wavelengths([400.0, 550.0, 700.0])
        ss.set_wavelength(1, 560.0)
        assert ss.get_wavelength(1) == 560.0
        with pytest.raises(ValueError):
            ss.set_wavelengths([400.0])

    def test_update_angle_attributes_idempotent(self):
        """Test that refreshing twice yields identical flags."""
        ss = SampleSet(2, 3, 5, 7)
        ss.set_angles(1, np.linspace(0.0, 2 * np.pi, 3))
        ss.set_angles(3, np.linspace(0.0, np.pi, 7))
        ss.update_angle_attributes()
        first = (ss.equal_intervals.tolist(), ss.is_one_side)
        ss.update_angle_attributes()
        second = (ss.equal_intervals.tolist(), ss.is_one_side)
        assert first == second


class TestOneSide:
    """Tests for the one-side flag of axis3."""

    def _with_axis3(self, values):
        ss = SampleSet(1, 1, 1, len(values))
        ss.set_angles(3, values)
        return ss

    def test_half_range_is_one_sided(self):
        """Test that [0, π] is one-sided."""
        assert self._with_axis3(np.linspace(0.0, np.pi, 5)).is_one_side

    def test_upper_half_is_one_sided(self):
        """Test that [π, 2π] is one-sided."""
        assert self._with_axis3(np.linspace(np.pi, 2 * np.pi, 5)).is_one_side

    def test_full_range_is_not_one_sided(self):
        """Test that [0, 2π] covers both halves."""
        assert not self._with_axis3(np.linspace(0.0, 2 * np.pi, 9)).is_one_side

    def test_boundary_tolerance(self):
        """Test that a sample within rounding of π does not count as the other half.

        Boundary-tolerance policy: samples within 1e-6 rad of 0, π or 2π
        belong to neither half.
        """
        assert self._with_axis3([0.0, np.pi / 2, np.pi + 1e-9]).is_one_side

    def test_values_taken_modulo_two_pi(self):
        """Test that azimuths beyond 2π wrap around."""
        ss = self._with_axis3([2 * np.pi + 0.5, 2 * np.pi + 4.0])
        assert not ss.is_one_side


class TestValidate:
    """Tests for SampleSet.validate."""

    def test_nan_spectrum_reported(self):
        """Test that a NaN cell invalidates the set and is located."""
        ss = SampleSet(2, 1, 4, 4)
        ss.spectra[1, 0, 2, 3, 1] = np.nan
        with pytest.warns(UserWarning, match="NaN"):
            report = ss.validate()
        assert not report
        assert report.invalid_cells == ((1, 0, 2, 3),)
        assert len(report.messages) == 1

    def test_inf_spectrum_reported(self):
        """Test that +/-INF cells are reported separately from NaN."""
        ss = SampleSet(2, 1, 4, 4)
        ss.spectra[0, 0, 0, 0, 0] = np.inf
        ss.spectra[1, 0, 0, 0, 0] = np.nan
        with pytest.warns(UserWarning):
            report = ss.validate()
        assert "INF" in report.messages[0]
        assert "NaN" in report.messages[0]
        assert len(report.invalid_cells) == 2

    def test_invalid_angle_and_wavelength(self):
        """Test one message per invalid category."""
        ss = SampleSet(2, 1, 4, 4)
        ss.set_angle(0, 1, np.nan)
        ss.set_wavelength(0, np.inf)
        with pytest.warns(UserWarning):
            report = ss.validate()
        assert len(report.messages) == 2
        assert any("angle0" in m for m in report.messages)
        assert any("wavelengths" in m for m in report.messages)
        assert report.invalid_cells == ()

    def test_report_truthiness(self):
        """Test that ValidationReport is truthy iff valid."""
        assert ValidationReport(True)
        assert not ValidationReport(False, ("x",))


class TestCopy:
    """Tests for SampleSet.copy."""

    def test_copy_is_deep(self):
        """Test that a copy shares no arrays with the original."""
        ss = SampleSet(2, 1, 3, 3)
        ss.set_angles(2, [0.0, 0.5, 1.0])
        dup = ss.copy()
        dup.spectra[...] = 1.0
        dup.set_angle(2, 1, 0.7)
        assert np.all(ss.spectra == 0.0)
        assert ss.get_angle(2, 1) == 0.5
        assert dup.equal_interval_angles2 is False
        assert ss.equal_interval_angles2 is True
