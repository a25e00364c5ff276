"""
Test suite for response resolution and the poles/zeros response.

Author: SeismicPSD Development Team
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from seismic_psd.batch.error_handler import ResponseUnavailableError
from seismic_psd.core.channel import Channel, InMemoryDataSource
from seismic_psd.core.response import PolesZerosResponse, ResponseResult, resolve_response
from tests.conftest import ConstantResponse, FailingResponse


def _channel(response):
    return Channel("IU/ANMO/00/BHZ", InMemoryDataSource(), response=response)


class TestResolveResponse:
    """Tests for resolve_response."""

    def test_found(self):
        provider = ConstantResponse(2.0 + 1.0j)
        result = resolve_response(_channel(provider), 100.0, 0.0, 10.0, 33)
        assert result.ok
        assert result.reason is None
        assert len(result.values) == 33
        assert_allclose(result.values, 2.0 + 1.0j)
        assert provider.calls == [("IU/ANMO/00/BHZ", 100.0, 0.0, 10.0, 33)]

    def test_provider_exception_becomes_missing(self):
        result = resolve_response(_channel(FailingResponse()), 0.0, 0.0, 10.0, 33)
        assert not result.ok
        assert "Can't get response for channel IU/ANMO/00/BHZ" in result.reason
        assert "RESP file" in result.reason

    def test_no_provider(self):
        result = resolve_response(_channel(None), 0.0, 0.0, 10.0, 33)
        assert not result.ok

    def test_none_values(self):
        class NoneResponse:
            def get_response(self, *args):
                return None

        assert not resolve_response(_channel(NoneResponse()), 0.0, 0.0, 10.0, 33).ok

    def test_wrong_length(self):
        class ShortResponse:
            def get_response(self, channel_name, start_time, start_freq, end_freq, num_freq):
                return np.ones(num_freq - 1)

        result = resolve_response(_channel(ShortResponse()), 0.0, 0.0, 10.0, 33)
        assert not result.ok
        assert "expected 33 values" in result.reason


def test_response_result_constructors():
    found = ResponseResult.found([1, 2, 3])
    assert found.ok
    assert found.values.dtype == np.complex128
    missing = ResponseResult.missing("nope")
    assert not missing.ok
    assert missing.reason == "nope"


class TestPolesZerosResponse:
    """Tests for PolesZerosResponse."""

    def test_pure_gain(self):
        response = PolesZerosResponse(zeros=[], poles=[], normalization=2.0, sensitivity=1000.0)
        values = response.get_response("X", 0.0, 0.0, 10.0, 11)
        assert_allclose(values, 2000.0 + 0j)

    def test_single_pole_lowpass(self):
        # H(s) = 1 / (s + 2*pi), corner at 1 Hz
        response = PolesZerosResponse(zeros=[], poles=[-1.0], units="hz",
                                      normalization=2 * np.pi)
        values = response.evaluate(np.array([0.0, 1.0, 100.0]))
        assert abs(values[0]) == pytest.approx(1.0)
        assert abs(values[1]) == pytest.approx(1 / np.sqrt(2))
        assert abs(values[2]) < 0.02

    def test_hz_and_rad_agree(self):
        poles_hz = np.array([-0.01 + 0.01j, -0.01 - 0.01j])
        hz = PolesZerosResponse(zeros=[0, 0], poles=poles_hz, units="hz")
        rad = PolesZerosResponse(zeros=[0, 0], poles=poles_hz * 2 * np.pi, units="rad")
        freqs = np.linspace(0.001, 5.0, 50)
        assert_allclose(hz.evaluate(freqs), rad.evaluate(freqs))

    def test_epoch_enforced(self):
        response = PolesZerosResponse(zeros=[], poles=[], start_time=100.0, end_time=200.0)
        assert response.covers(150.0)
        with pytest.raises(ResponseUnavailableError):
            response.get_response("IU/ANMO/00/BHZ", 50.0, 0.0, 10.0, 5)

    def test_epoch_miss_excludes_channel(self):
        response = PolesZerosResponse(zeros=[], poles=[], start_time=100.0)
        result = resolve_response(_channel(response), 50.0, 0.0, 10.0, 5)
        assert not result.ok
        assert "no response epoch" in result.reason

    def test_invalid_units(self):
        with pytest.raises(ValueError):
            PolesZerosResponse(zeros=[], poles=[], units="deg")
