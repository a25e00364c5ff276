"""
Test suite for SpectraResult calibration and fractional-octave smoothing.

Author: SeismicPSD Development Team
"""

import unittest

import numpy as np
import pytest
from numpy.testing import assert_allclose

from seismic_psd.batch.error_handler import ResponseUnavailableError
from seismic_psd.core.frequency import frequency_axis
from seismic_psd.core.smoothing import smooth_fractional_octave
from seismic_psd.core.spectra import SpectraResult


def _result(spectrum, response=2.0, sample_rate=20.0, input_units="acceleration"):
    spectrum = np.asarray(spectrum, dtype=np.complex128)
    frequencies, _, _ = frequency_axis(len(spectrum), 1000.0 / sample_rate)
    if response is not None:
        response = np.full(len(spectrum), response, dtype=np.complex128)
    return SpectraResult(
        start_time=0.0,
        spectrum=spectrum,
        frequencies=frequencies,
        response=response,
        freq_step=frequencies[1] - frequencies[0],
        channel_name="IU/ANMO/00/BHZ",
        sample_rate=sample_rate,
        input_units=input_units,
    )


class TestSpectraResult(unittest.TestCase):
    """Test cases for SpectraResult."""

    def setUp(self):
        rng = np.random.default_rng(7)
        self.spectrum = rng.normal(size=65) + 1j * rng.normal(size=65)

    def test_arrays_are_read_only(self):
        result = _result(self.spectrum)
        with self.assertRaises(ValueError):
            result.spectrum[0] = 0
        with self.assertRaises(ValueError):
            result.frequencies[0] = 1.0
        with self.assertRaises(ValueError):
            result.response[0] = 1.0

    def test_construction_copies_input(self):
        spectrum = np.array(self.spectrum)
        result = _result(spectrum)
        spectrum[:] = 0
        self.assertTrue(np.any(result.spectrum != 0))

    def test_length_mismatch(self):
        with self.assertRaises(ValueError):
            SpectraResult(0.0, np.ones(5), np.arange(4.0), None, 1.0)

    def test_frequency_bounds(self):
        result = _result(self.spectrum)
        self.assertEqual(result.start_freq, 0.0)
        self.assertAlmostEqual(result.end_freq, 10.0)

    def test_psd_acceleration_scaling(self):
        result = _result(self.spectrum, response=2.0, sample_rate=20.0)
        expected = np.abs(self.spectrum / 2.0) ** 2 * (0.05 / 65) / 0.875 / 13.0
        assert_allclose(result.psd(), expected, rtol=1e-12)

    def test_psd_velocity_conversion(self):
        acceleration = _result(self.spectrum, input_units="acceleration").psd()
        velocity = _result(self.spectrum, input_units="velocity")
        omega = 2 * np.pi * velocity.frequencies
        assert_allclose(velocity.psd(), acceleration * omega ** 2, rtol=1e-12)

    def test_psd_displacement_conversion(self):
        acceleration = _result(self.spectrum, input_units="acceleration").psd()
        displacement = _result(self.spectrum, input_units="displacement")
        omega = 2 * np.pi * displacement.frequencies
        assert_allclose(displacement.psd(), acceleration * omega ** 4, rtol=1e-12)

    def test_psd_requires_response(self):
        result = _result(self.spectrum, response=None)
        self.assertFalse(result.has_response)
        with self.assertRaises(ResponseUnavailableError):
            result.psd()

    def test_psd_series_skips_edges_and_zeros(self):
        spectrum = np.array(self.spectrum)
        spectrum[10] = 0
        result = _result(spectrum)
        periods, psd_db = result.psd_series()
        self.assertEqual(len(periods), 65 - 2 - 1)
        self.assertTrue(np.all(np.isfinite(psd_db)))
        self.assertTrue(np.all(np.diff(periods) < 0))
        self.assertAlmostEqual(periods[0], 1.0 / result.frequencies[1])

    def test_spectra_amplitude(self):
        result = _result(self.spectrum, response=2.0)
        assert_allclose(result.spectra_amplitude(), np.abs(self.spectrum))
        assert_allclose(result.spectra_amplitude(deconvolve=True), np.abs(self.spectrum) / 2.0)
        other = np.full(65, 3.0 + 0j)
        assert_allclose(
            result.spectra_amplitude(deconvolve=True, convolve_with=other),
            np.abs(self.spectrum) * 1.5,
        )
        with self.assertRaises(ValueError):
            result.spectra_amplitude(convolve_with=np.ones(3))

    def test_invalid_units(self):
        with self.assertRaises(ValueError):
            _result(self.spectrum, input_units="counts")

    def test_smoothed_psd_db(self):
        result = _result(self.spectrum, input_units="velocity")
        smoothed = result.smoothed_psd_db(8)
        self.assertEqual(len(smoothed), 65)
        self.assertTrue(np.isnan(smoothed[0]))
        self.assertTrue(np.all(np.isfinite(smoothed[1:])))


class TestFractionalOctaveSmoothing:
    """Tests for smooth_fractional_octave."""

    def test_constant_is_preserved(self):
        freqs = np.linspace(0.0, 50.0, 501)
        values = np.full(501, -140.0)
        assert_allclose(smooth_fractional_octave(freqs, values), values)

    def test_window_bounds(self):
        freqs = np.arange(1.0, 101.0)
        values = np.arange(1.0, 101.0)
        smoothed = smooth_fractional_octave(freqs, values, fraction=1)
        # 1 octave radius at 10 Hz covers 5..20 Hz
        assert smoothed[9] == pytest.approx(np.mean(np.arange(5.0, 21.0)))

    def test_zero_frequency_untouched(self):
        freqs = np.linspace(0.0, 10.0, 11)
        values = np.arange(11.0)
        assert smooth_fractional_octave(freqs, values)[0] == 0.0

    def test_narrower_fraction_smooths_less(self):
        rng = np.random.default_rng(3)
        freqs = np.linspace(0.1, 50.0, 2000)
        values = rng.normal(size=2000)
        wide = smooth_fractional_octave(freqs, values, fraction=2)
        narrow = smooth_fractional_octave(freqs, values, fraction=16)
        assert np.std(wide) < np.std(narrow) < np.std(values)

    def test_invalid_inputs(self):
        with pytest.raises(ValueError):
            smooth_fractional_octave([1.0, 2.0], [1.0])
        with pytest.raises(ValueError):
            smooth_fractional_octave([2.0, 1.0], [1.0, 2.0])
        with pytest.raises(ValueError):
            smooth_fractional_octave([1.0, 2.0], [1.0, 2.0], fraction=0)
