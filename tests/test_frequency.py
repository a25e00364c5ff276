"""
Test suite for the frequency axis generator.

Author: SeismicPSD Development Team
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy import fft as scipy_fft

from seismic_psd.core.frequency import FrequencyParameters, frequency_axis, frequency_parameters


class TestFrequencyAxis:
    """Tests for frequency_axis."""

    def test_small_axis(self):
        freqs, start, end = frequency_axis(5, 10.0)
        assert_allclose(freqs, [0.0, 12.5, 25.0, 37.5, 50.0])
        assert start == 0.0
        assert end == pytest.approx(50.0)

    @pytest.mark.parametrize("bin_count,interval_ms", [(257, 50.0), (16385, 10.0), (2, 25.0)])
    def test_matches_rfftfreq(self, bin_count, interval_ms):
        freqs, _, _ = frequency_axis(bin_count, interval_ms)
        expected = scipy_fft.rfftfreq(2 * (bin_count - 1), interval_ms / 1000.0)
        assert_allclose(freqs, expected, rtol=1e-12, atol=1e-12)

    def test_length_and_monotonic(self):
        freqs, start, end = frequency_axis(1025, 25.0)
        assert len(freqs) == 1025
        assert np.all(np.diff(freqs) > 0)
        assert freqs[0] == start
        assert freqs[-1] == pytest.approx(end)

    def test_invalid_inputs(self):
        with pytest.raises(ValueError):
            frequency_axis(1, 10.0)
        with pytest.raises(ValueError):
            frequency_axis(10, 0.0)
        with pytest.raises(ValueError):
            frequency_axis(10, -5.0)


def test_frequency_parameters():
    params = frequency_parameters(257, 50.0)
    assert isinstance(params, FrequencyParameters)
    assert params.start_freq == 0.0
    assert params.end_freq == pytest.approx(10.0)
    assert params.freq_step == pytest.approx(20.0 / 512)
    assert params.num_freq == 257
