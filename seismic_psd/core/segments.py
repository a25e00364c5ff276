"""
Segment Assembly Module

Provides the raw-data containers consumed by the PSD engine and the assembler
that validates and concatenates the segments of one channel into a single
contiguous sample buffer.

Key Features:
- Immutable segment and time interval containers
- Sample-rate consistency checks across segments
- Gap detection relative to the sample interval
- Truncation of over-long buffers to a configured maximum

Author: SeismicPSD Development Team
Date: 2026-10-12
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from seismic_psd.batch.error_handler import (
    ErrorHandler, LengthExceededWarning
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_DATA_LENGTH = 262144
DEFAULT_GAP_TOLERANCE = 1.0


@dataclass(frozen=True)
class TimeInterval:
    """
    Closed time range in seconds.

    Attributes
    ----------
    start : float
        Start time in seconds
    end : float
        End time in seconds, must not precede ``start``
    """

    start: float
    end: float

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(
                f"TimeInterval start ({self.start}) must not be after end ({self.end})"
            )

    @property
    def duration(self) -> float:
        """Interval length in seconds."""
        return self.end - self.start

    def intersects(self, start: float, end: float) -> bool:
        """Return True if ``[start, end)`` shares a positive span with this interval."""
        return start < self.end and end > self.start


@dataclass(frozen=True)
class Segment:
    """
    Contiguous block of raw integer samples.

    Attributes
    ----------
    sample_rate : float
        Sample rate in Hz
    start_time : float
        Time of the first sample in seconds
    data : np.ndarray
        Integer samples, shape=(n_samples,)

    Notes
    -----
    ``end_time`` lies one sample interval after the last sample, so two
    contiguous segments satisfy ``first.end_time == second.start_time``.
    """

    sample_rate: float
    start_time: float
    data: np.ndarray = field(repr=False)

    def __post_init__(self):
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")

        data = np.asarray(self.data)
        if data.ndim != 1:
            raise ValueError(f"data must be 1D, got shape {data.shape}")
        if data.size and not np.issubdtype(data.dtype, np.integer):
            raise TypeError(f"data must hold integer samples, got {data.dtype}")

        data = data.astype(np.int64, copy=True)
        data.setflags(write=False)
        object.__setattr__(self, "data", data)

    @property
    def sample_interval(self) -> float:
        """Seconds between samples."""
        return 1.0 / self.sample_rate

    @property
    def n_samples(self) -> int:
        return len(self.data)

    @property
    def end_time(self) -> float:
        """Time one sample interval after the last sample, in seconds."""
        return self.start_time + self.n_samples / self.sample_rate

    def _index_at(self, time: float) -> int:
        # Truncating index, tolerant to float round-off at sample boundaries
        return int(np.floor((time - self.start_time) * self.sample_rate + 1e-6))

    def samples_in(self, interval: TimeInterval) -> np.ndarray:
        """
        Get the samples of this segment that fall inside an interval.

        Parameters
        ----------
        interval : TimeInterval
            Requested time range

        Returns
        -------
        np.ndarray
            Copy of the samples between ``max(start)`` and ``min(end)``;
            empty if the segment lies outside the interval
        """
        start = max(self.start_time, interval.start)
        end = min(self.end_time, interval.end)
        start_index = self._index_at(start)
        end_index = self._index_at(end)
        if end_index <= start_index:
            return np.empty(0, dtype=np.int64)
        return self.data[start_index:end_index].copy()

    def __repr__(self) -> str:
        return (
            f"Segment(start_time={self.start_time:.3f}, "
            f"n_samples={self.n_samples}, "
            f"sample_rate={self.sample_rate:g} Hz)"
        )


@dataclass
class SampleBuffer:
    """
    Contiguous integer samples of one channel within an interval.

    Created fresh for every channel of a batch and discarded once the
    channel's spectrum has been computed.

    Attributes
    ----------
    channel_name : str
        Channel the samples belong to
    data : np.ndarray
        Concatenated samples, dtype=int64
    sample_rate : float
        Common sample rate of all contributing segments in Hz
    original_length : int
        Sample count before truncation to the maximum data length
    """

    channel_name: str
    data: np.ndarray
    sample_rate: float
    original_length: Optional[int] = None

    def __post_init__(self):
        self.data = np.asarray(self.data, dtype=np.int64)
        if self.original_length is None:
            self.original_length = len(self.data)

    def __len__(self) -> int:
        return len(self.data)

    @property
    def truncated(self) -> bool:
        """True if samples were dropped to honour the maximum data length."""
        return self.original_length > len(self.data)

    @property
    def sample_interval(self) -> float:
        """Seconds between samples."""
        return 1.0 / self.sample_rate

    @property
    def sample_interval_ms(self) -> float:
        """Milliseconds between samples."""
        return 1000.0 / self.sample_rate

    @property
    def duration(self) -> float:
        """Time covered by the buffer in seconds."""
        return len(self.data) / self.sample_rate


def is_data_break(first_end_time: float, second_start_time: float,
                  sample_rate: float, gap_tolerance: float = DEFAULT_GAP_TOLERANCE) -> bool:
    """
    Check whether two segments are discontinuous.

    A break is any discontinuity, forward gap or overlap, larger than
    ``gap_tolerance`` times two sample intervals.

    Parameters
    ----------
    first_end_time : float
        End time of the earlier segment in seconds
    second_start_time : float
        Start time of the later segment in seconds
    sample_rate : float
        Sample rate in Hz
    gap_tolerance : float, optional
        Tolerance multiplier (default: 1.0)

    Returns
    -------
    bool
        True if the segments cannot be joined
    """
    allowed = gap_tolerance * 2.0 / sample_rate
    return abs(first_end_time - second_start_time) > allowed


def assemble_segments(
    channel_name: str,
    segments: Sequence[Segment],
    interval: TimeInterval,
    max_data_length: int = DEFAULT_MAX_DATA_LENGTH,
    gap_tolerance: float = DEFAULT_GAP_TOLERANCE,
) -> SampleBuffer:
    """
    Validate and concatenate the segments of one channel.

    Parameters
    ----------
    channel_name : str
        Channel identifier, used in error messages
    segments : sequence of Segment
        Segments intersecting the interval
    interval : TimeInterval
        Requested time range; samples outside it are dropped
    max_data_length : int, optional
        Largest buffer length kept (default: 262144)
    gap_tolerance : float, optional
        Gap tolerance multiplier for ``is_data_break`` (default: 1.0)

    Returns
    -------
    SampleBuffer
        Contiguous buffer, truncated to ``max_data_length`` leading samples
        if necessary

    Raises
    ------
    NoDataError
        If ``segments`` is empty
    SampleRateMismatchError
        If any segment's sample rate differs from the first segment's
    DataGapError
        If consecutive segments are not contiguous
    """
    if max_data_length <= 0:
        raise ValueError(f"max_data_length must be positive, got {max_data_length}")

    if len(segments) == 0:
        raise ErrorHandler.handle_no_data(channel_name, interval.start, interval.end)

    sample_rate = segments[0].sample_rate
    for index, segment in enumerate(segments):
        if segment.sample_rate != sample_rate:
            raise ErrorHandler.handle_sample_rate_mismatch(
                channel_name, sample_rate, segment.sample_rate, index
            )

    ordered = sorted(segments, key=lambda seg: seg.start_time)
    pieces = []
    previous_end = None
    for segment in ordered:
        if previous_end is not None and is_data_break(
            previous_end, segment.start_time, sample_rate, gap_tolerance
        ):
            raise ErrorHandler.handle_data_gap(
                channel_name, previous_end, segment.start_time,
                gap_tolerance * 2.0 / sample_rate
            )
        previous_end = segment.end_time
        pieces.append(segment.samples_in(interval))

    data = np.concatenate(pieces) if pieces else np.empty(0, dtype=np.int64)
    original_length = len(data)

    if original_length > max_data_length:
        data = data[:max_data_length]
        warning = LengthExceededWarning(channel_name, original_length, max_data_length)
        logger.warning(str(warning))

    logger.debug(
        f"Assembled {len(ordered)} segment(s) for {channel_name}: "
        f"{len(data)} samples at {sample_rate:g} Hz"
    )
    return SampleBuffer(
        channel_name=channel_name,
        data=data,
        sample_rate=sample_rate,
        original_length=original_length,
    )


def assemble_channel(
    channel,
    interval: TimeInterval,
    max_data_length: int = DEFAULT_MAX_DATA_LENGTH,
    gap_tolerance: float = DEFAULT_GAP_TOLERANCE,
) -> SampleBuffer:
    """
    Fetch the segments of a channel and assemble them into one buffer.

    Parameters
    ----------
    channel : Channel
        Channel handle providing ``name`` and ``get_segments(interval)``
    interval : TimeInterval
        Requested time range
    max_data_length : int, optional
        Largest buffer length kept (default: 262144)
    gap_tolerance : float, optional
        Gap tolerance multiplier (default: 1.0)

    Returns
    -------
    SampleBuffer
        Contiguous buffer for the channel
    """
    segments = list(channel.get_segments(interval))
    return assemble_segments(
        channel.name, segments, interval,
        max_data_length=max_data_length,
        gap_tolerance=gap_tolerance,
    )
