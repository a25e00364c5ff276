"""
Pytest configuration and fixtures for SeismicPSD tests.
"""

import pytest
import sys
import os

import numpy as np

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from seismic_psd.core.channel import Channel, InMemoryDataSource
from seismic_psd.core.segments import Segment, TimeInterval


class ConstantResponse:
    """Response provider returning the same complex gain at every frequency."""

    def __init__(self, gain=1.0):
        self.gain = gain
        self.calls = []

    def get_response(self, channel_name, start_time, start_freq, end_freq, num_freq):
        self.calls.append((channel_name, start_time, start_freq, end_freq, num_freq))
        return np.full(num_freq, self.gain, dtype=np.complex128)


class FailingResponse:
    """Response provider that always raises."""

    def get_response(self, channel_name, start_time, start_freq, end_freq, num_freq):
        raise IOError(f"RESP file for {channel_name} not found")


def make_segments(data, sample_rate=20.0, start_time=0.0, pieces=1):
    """Split integer samples into contiguous segments."""
    data = np.asarray(data, dtype=np.int64)
    segments = []
    offset = 0
    for chunk in np.array_split(data, pieces):
        segments.append(Segment(sample_rate, start_time + offset / sample_rate, chunk))
        offset += len(chunk)
    return segments


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(12345)


@pytest.fixture
def noise_samples(rng):
    """One hour-ish of integer noise at 20 Hz (8192 samples)."""
    return rng.integers(-2000, 2000, 8192)


@pytest.fixture
def interval():
    """Interval covering the noise_samples fixture at 20 Hz."""
    return TimeInterval(0.0, 8192 / 20.0)


@pytest.fixture
def make_channel():
    """Factory building a Channel backed by an InMemoryDataSource."""
    def _make(name, data, sample_rate=20.0, response=None, pieces=1, start_time=0.0):
        source = InMemoryDataSource({name: make_segments(data, sample_rate, start_time, pieces)})
        return Channel(name=name, source=source, response=response)
    return _make
