"""
Test suite for the batch PSD processor.

End-to-end tests running channels through assemble -> average -> axis ->
resolve and checking inclusion, exclusion, warnings and fail-fast behavior.

Author: SeismicPSD Development Team
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from seismic_psd.batch.config import FilterConfig, PSDBatchConfig, PSDConfig
from seismic_psd.batch.error_handler import (
    ConfigurationError, DataGapError, InsufficientDataError, LengthExceededWarning,
    NoDataError, NoResponsesFoundError, SampleRateMismatchError
)
from seismic_psd.batch.processor import BatchContext, BatchPSDResult, PSDBatchProcessor
from seismic_psd.core.channel import Channel, InMemoryDataSource
from seismic_psd.core.psd import average_spectrum
from seismic_psd.core.segments import Segment, TimeInterval
from tests.conftest import ConstantResponse, FailingResponse


class TestBatchContext:
    """Tests for the per-call effective length accumulator."""

    def test_tracks_max_power_of_two(self):
        context = BatchContext()
        assert context.update(1000) == 1024
        assert context.update(300) == 1024
        assert context.update(5000) == 8192

    def test_fresh_per_instance(self):
        BatchContext().update(5000)
        assert BatchContext().effective_length == 0


class TestPSDBatchProcessor:
    """End-to-end tests for PSDBatchProcessor."""

    def test_two_channels_same_data_different_responses(self, make_channel, noise_samples, interval):
        first = make_channel("XX/AAA/00/BHZ", noise_samples, response=ConstantResponse(1.0))
        second = make_channel("XX/BBB/00/BHZ", noise_samples, response=ConstantResponse(4.0), pieces=3)

        result = PSDBatchProcessor().process([first, second], interval)

        assert result.channel_names == ["XX/AAA/00/BHZ", "XX/BBB/00/BHZ"]
        assert result.excluded_channels == []
        a, b = result.spectra
        assert_allclose(a.spectrum, b.spectrum)
        assert_allclose(a.frequencies, b.frequencies)
        assert_allclose(b.response / a.response, 4.0)
        assert_allclose(a.psd()[1:], 16.0 * b.psd()[1:], rtol=1e-10)
        assert not np.allclose(a.psd_db()[1:], b.psd_db()[1:])
        assert len(a.spectrum) == 513
        assert a.frequencies[-1] == pytest.approx(10.0)
        assert a.start_time == 0.0
        assert a.sample_rate == 20.0

    def test_spectrum_matches_engine(self, make_channel, noise_samples, interval):
        channel = make_channel("XX/AAA/00/BHZ", noise_samples, response=ConstantResponse())
        result = PSDBatchProcessor().process([channel], interval)
        assert_allclose(result.spectra[0].spectrum, average_spectrum(noise_samples))

    def test_effective_interval(self, make_channel, rng):
        short = make_channel("XX/AAA/00/BHZ", rng.integers(-100, 100, 3000),
                             response=ConstantResponse())
        longer = make_channel("XX/BBB/00/BHZ", rng.integers(-100, 100, 5000),
                              response=ConstantResponse())
        interval = TimeInterval(0.0, 1000.0)
        result = PSDBatchProcessor().process([short, longer], interval)
        assert result.effective_length == 8192
        assert result.effective_interval == TimeInterval(0.0, 8192 / 20.0)

    def test_excluded_channel(self, make_channel, noise_samples, interval):
        good = make_channel("XX/AAA/00/BHZ", noise_samples, response=ConstantResponse())
        bad = make_channel("XX/BBB/00/BHZ", noise_samples, response=FailingResponse())
        none = make_channel("XX/CCC/00/BHZ", noise_samples, response=None)

        result = PSDBatchProcessor().process([bad, good, none], interval)

        assert result.channel_names == ["XX/AAA/00/BHZ"]
        assert result.excluded_channels == ["XX/BBB/00/BHZ", "XX/CCC/00/BHZ"]
        assert "Can not find responses for channels: XX/BBB/00/BHZ, XX/CCC/00/BHZ" in result.warnings

    def test_all_excluded(self, make_channel, noise_samples, interval):
        bad = make_channel("XX/BBB/00/BHZ", noise_samples, response=FailingResponse())
        with pytest.raises(NoResponsesFoundError) as excinfo:
            PSDBatchProcessor().process([bad], interval)
        assert str(excinfo.value) == "Can not find responses"

    def test_empty_channel_list(self, interval):
        with pytest.raises(ValueError, match="Please select channels"):
            PSDBatchProcessor().process([], interval)

    def test_truncation_warning(self, make_channel):
        samples = np.zeros(1_000_000, dtype=np.int64)
        samples[::7] = 5
        channel = make_channel("XX/AAA/00/BHZ", samples, sample_rate=100.0,
                               response=ConstantResponse(), pieces=2)
        result = PSDBatchProcessor().process([channel], TimeInterval(0.0, 10000.0))

        assert len(result.length_warnings) == 1
        warning = result.length_warnings[0]
        assert isinstance(warning, LengthExceededWarning)
        assert warning.points_count == 1_000_000
        assert warning.max_data_length == 262144
        assert "Points count (1000000) exceeds max value for trace XX/AAA/00/BHZ" in result.warnings
        assert result.effective_length == 262144
        assert len(result.spectra[0].spectrum) == 32768 // 2 + 1

    def test_custom_max_data_length(self, make_channel, noise_samples, interval):
        config = PSDBatchConfig(psd_config=PSDConfig(max_data_length=4096))
        channel = make_channel("XX/AAA/00/BHZ", noise_samples, response=ConstantResponse())
        result = PSDBatchProcessor(config).process([channel], interval)
        assert result.effective_length == 4096
        assert len(result.length_warnings) == 1

    def test_no_data_fails_fast(self, make_channel, noise_samples, interval):
        good = make_channel("XX/AAA/00/BHZ", noise_samples, response=ConstantResponse())
        empty = Channel("XX/BBB/00/BHZ", InMemoryDataSource(), response=ConstantResponse())
        with pytest.raises(NoDataError):
            PSDBatchProcessor().process([good, empty], interval)

    def test_rate_mismatch_fails_fast(self, interval):
        source = InMemoryDataSource({"XX/AAA/00/BHZ": [
            Segment(20.0, 0.0, np.arange(4096)),
            Segment(40.0, 204.8, np.arange(4096)),
        ]})
        channel = Channel("XX/AAA/00/BHZ", source, response=ConstantResponse())
        with pytest.raises(SampleRateMismatchError):
            PSDBatchProcessor().process([channel], interval)

    def test_gap_fails_fast(self, interval):
        source = InMemoryDataSource({"XX/AAA/00/BHZ": [
            Segment(20.0, 0.0, np.arange(2000)),
            Segment(20.0, 150.0, np.arange(2000)),
        ]})
        channel = Channel("XX/AAA/00/BHZ", source, response=ConstantResponse())
        with pytest.raises(DataGapError):
            PSDBatchProcessor().process([channel], interval)

    def test_too_few_samples(self, make_channel):
        channel = make_channel("XX/AAA/00/BHZ", np.arange(10), response=ConstantResponse())
        with pytest.raises(InsufficientDataError):
            PSDBatchProcessor().process([channel], TimeInterval(0.0, 100.0))

    def test_invalid_config(self, make_channel, noise_samples, interval):
        config = PSDBatchConfig(psd_config=PSDConfig(input_units="furlongs"))
        channel = make_channel("XX/AAA/00/BHZ", noise_samples, response=ConstantResponse())
        with pytest.raises(ConfigurationError):
            PSDBatchProcessor(config).process([channel], interval)

    def test_calls_are_independent(self, make_channel, rng):
        processor = PSDBatchProcessor()
        big = make_channel("XX/AAA/00/BHZ", rng.integers(-9, 9, 20000), response=ConstantResponse())
        small = make_channel("XX/BBB/00/BHZ", rng.integers(-9, 9, 2000), response=ConstantResponse())
        interval = TimeInterval(0.0, 2000.0)
        assert processor.process([big], interval).effective_length == 32768
        assert processor.process([small], interval).effective_length == 2048

    def test_configured_filter_applied(self, make_channel, noise_samples, interval):
        config = PSDBatchConfig(filter_config=FilterConfig(
            enabled=True, filter_type="highpass", cutoff_low=2.0
        ))
        channel = make_channel("XX/AAA/00/BHZ", noise_samples, response=ConstantResponse())
        filtered = PSDBatchProcessor(config).process([channel], interval).spectra[0]
        unfiltered = PSDBatchProcessor().process([channel], interval).spectra[0]
        low = filtered.frequencies < 0.5
        assert np.sum(np.abs(filtered.spectrum[low])) < np.sum(np.abs(unfiltered.spectrum[low]))

    def test_explicit_filter_used(self, make_channel, noise_samples, interval):
        calls = []

        def counting_filter(window, sample_rate):
            calls.append(sample_rate)
            return window

        channel = make_channel("XX/AAA/00/BHZ", noise_samples, response=ConstantResponse())
        PSDBatchProcessor(signal_filter=counting_filter).process([channel], interval)
        assert calls == [20.0] * 11

    def test_progress_callback(self, make_channel, noise_samples, interval):
        updates = []
        channels = [
            make_channel("XX/AAA/00/BHZ", noise_samples, response=ConstantResponse()),
            make_channel("XX/BBB/00/BHZ", noise_samples, response=ConstantResponse()),
        ]
        PSDBatchProcessor(progress_callback=updates.append).process(channels, interval)
        stages = [info.stage for info in updates if info.channel_name == "XX/AAA/00/BHZ"]
        assert stages == ["", "assemble", "average", "axis", "resolve", "done"]
        assert updates[-1].percent_complete == pytest.approx(100.0)

    def test_processing_log(self, make_channel, noise_samples, interval):
        channel = make_channel("XX/AAA/00/BHZ", noise_samples, response=ConstantResponse())
        result = PSDBatchProcessor().process([channel], interval)
        assert isinstance(result, BatchPSDResult)
        assert result.success
        assert any("Processing channel 1/1: XX/AAA/00/BHZ" in entry for entry in result.processing_log)
