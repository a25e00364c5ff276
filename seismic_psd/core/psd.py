"""
Power Spectral Density (PSD) Averaging Module

This module implements the overlapped-segment spectral average used to build
noise spectra of long continuous seismic records. It is a Welch-style
estimator with a fixed policy: the buffer is cut into windows a quarter of its
length long, consecutive windows overlap by 75%, and the accumulated one-sided
spectra are divided by a constant segment count of 13.

Functions:
    next_pow2: Smallest power of two greater than or equal to a length
    welch_segment_sizes: Segment length and analysed window length for a buffer
    welch_window_starts: Start indices of the overlapped analysis windows
    average_spectrum: Averaged one-sided complex spectrum of a sample buffer

The segment divisor, overlap and averaging divisor are not parameters:
calibration consumers depend on the exact bin layout and scaling they produce.

References:
    - Welch, P. (1967). "The use of fast Fourier transform for the estimation of
      power spectra: A method based on time averaging over short, modified periodograms"
    - Peterson, J. (1993). "Observations and modeling of seismic background noise",
      USGS Open-File Report 93-322

Author: SeismicPSD Development Team
Date: 2026-10-13
"""

import logging
from typing import Callable, List, Optional, Tuple, Union

import numpy as np
from scipy import fft as scipy_fft
from scipy import signal

from seismic_psd.batch.error_handler import ErrorHandler
from seismic_psd.core.segments import SampleBuffer

logger = logging.getLogger(__name__)

# Window length is round(n / 4.0); sums are divided by 13 regardless of window count
WELCH_SEGMENT_DIVISOR = 4.0
WELCH_SEGMENT_COUNT = 13.0
OVERLAP_BACKSTEP_NUMERATOR = 3
OVERLAP_DENOMINATOR = 4

# Below this segment length the cursor cannot advance by a quarter window
MIN_SEGMENT_LENGTH = 4
MIN_BUFFER_LENGTH = 14

SignalFilter = Callable[[np.ndarray, Optional[float]], np.ndarray]


def next_pow2(n: int) -> int:
    """
    Round a positive length up to the next power of two.

    Parameters
    ----------
    n : int
        Length, must be positive

    Returns
    -------
    int
        Smallest power of two >= n

    Raises
    ------
    ValueError
        If n is not a positive integer

    Examples
    --------
    >>> next_pow2(1), next_pow2(5), next_pow2(1024)
    (1, 8, 1024)
    """
    if isinstance(n, bool) or int(n) != n:
        raise ValueError(f"n must be an integer, got {n!r}")
    n = int(n)
    if n <= 0:
        raise ValueError(f"n must be positive, got {n}")
    return 1 << (n - 1).bit_length()


def welch_segment_sizes(n: int) -> Tuple[int, int]:
    """
    Get the segment length and analysed window length for a buffer length.

    Parameters
    ----------
    n : int
        Buffer length in samples

    Returns
    -------
    segment_length : int
        ``round(n / 4.0)`` with halves rounded up; the cursor span of a window
    small_segment_limit : int
        ``2 ** (ceil(log2(segment_length)) - 1)``; samples analysed per window

    Notes
    -----
    ``small_segment_limit`` is always a power of two below ``segment_length``
    (half of it when ``segment_length`` is itself a power of two). Only the
    first ``small_segment_limit`` samples of every window reach the FFT.
    """
    segment_length = int(np.floor(n / WELCH_SEGMENT_DIVISOR + 0.5))
    if segment_length < 1:
        return segment_length, 0
    small_segment_limit = int(np.ceil(2.0 ** (np.ceil(np.log2(segment_length)) - 1)))
    return segment_length, small_segment_limit


def welch_window_starts(n: int, segment_length: int,
                        legacy_final_window: bool = False) -> List[int]:
    """
    Compute the start indices of the overlapped analysis windows.

    The first window spans ``[0, L)``. When a window closes at cursor ``c``
    the next one spans ``[c - 3L//4, c + L//4)``, unless ``c + L`` would run
    past the buffer, in which case the last window is backed up to end
    exactly at the buffer end, ``[n - L, n)``.

    Parameters
    ----------
    n : int
        Buffer length in samples
    segment_length : int
        Window span ``L`` in samples, at least 4
    legacy_final_window : bool, optional
        If True, drop the end-aligned last window. The legacy tool filled it
        but left its loop before adding it to the average. Default is False.

    Returns
    -------
    list of int
        Window start indices in processing order
    """
    if segment_length < MIN_SEGMENT_LENGTH:
        raise ValueError(
            f"segment_length ({segment_length}) must be at least {MIN_SEGMENT_LENGTH}"
        )

    backstep = (segment_length * OVERLAP_BACKSTEP_NUMERATOR) // OVERLAP_DENOMINATOR
    advance = segment_length // OVERLAP_DENOMINATOR

    starts = []
    start, limit = 0, segment_length
    while limit < n:
        starts.append(start)
        if limit + segment_length > n:
            start, limit = n - segment_length, n
        else:
            start, limit = limit - backstep, limit + advance

    if not legacy_final_window:
        starts.append(start)
    return starts


def _taper_window(window: np.ndarray) -> np.ndarray:
    """Remove the mean and apply a symmetric Hanning taper."""
    detrended = window - np.mean(window)
    return detrended * signal.windows.hann(len(detrended), sym=True)


def average_spectrum(
    buffer: Union[SampleBuffer, np.ndarray],
    signal_filter: Optional[SignalFilter] = None,
    sample_rate: Optional[float] = None,
    zero_fill: bool = True,
    legacy_final_window: bool = False,
) -> np.ndarray:
    """
    Compute the averaged one-sided complex spectrum of a sample buffer.

    Each window of ``small_segment_limit`` samples is optionally filtered,
    converted to floating point, mean-removed, Hanning tapered and transformed
    with a real FFT. The complex spectra are summed bin by bin and the sum is
    divided by the constant 13.0, not by the number of windows processed.

    Parameters
    ----------
    buffer : SampleBuffer or np.ndarray
        Integer samples of one channel
    signal_filter : callable, optional
        Called as ``signal_filter(window, sample_rate)`` on every integer
        window before tapering; must return an array of the same length
    sample_rate : float, optional
        Sample rate passed to the filter when ``buffer`` is a plain array.
        Taken from the buffer when it is a SampleBuffer.
    zero_fill : bool, optional
        If True (default), windows shorter than ``small_segment_limit`` are
        padded with zeros. If False, the tail keeps the previous window's
        samples, as the legacy tool did.
    legacy_final_window : bool, optional
        Drop the end-aligned last window like the legacy tool (default: False)

    Returns
    -------
    np.ndarray
        complex128 array of length ``small_segment_limit // 2 + 1``

    Raises
    ------
    InsufficientDataError
        If the buffer is shorter than ``MIN_BUFFER_LENGTH`` samples
    ValueError
        If the filter returns an array of a different length

    Examples
    --------
    >>> rng = np.random.default_rng(0)
    >>> data = rng.integers(-1000, 1000, 4096)
    >>> spectrum = average_spectrum(data)
    >>> spectrum.shape
    (257,)
    """
    if isinstance(buffer, SampleBuffer):
        data = buffer.data
        channel_name = buffer.channel_name
        if sample_rate is None:
            sample_rate = buffer.sample_rate
    else:
        data = np.asarray(buffer)
        channel_name = "<array>"

    if data.ndim != 1:
        raise ValueError(f"buffer must be 1D, got shape {data.shape}")

    n = len(data)
    segment_length, small_segment_limit = welch_segment_sizes(n)
    if segment_length < MIN_SEGMENT_LENGTH:
        raise ErrorHandler.handle_insufficient_data(channel_name, n, MIN_BUFFER_LENGTH)

    starts = welch_window_starts(n, segment_length, legacy_final_window=legacy_final_window)
    logger.debug(
        f"{channel_name}: n={n}, segment_length={segment_length}, "
        f"small_segment_limit={small_segment_limit}, windows={len(starts)}"
    )

    accumulator = np.zeros(small_segment_limit // 2 + 1, dtype=np.complex128)
    window = np.zeros(small_segment_limit, dtype=np.int64)

    for start in starts:
        chunk = data[start:start + small_segment_limit]
        if zero_fill:
            window = np.zeros(small_segment_limit, dtype=np.int64)
        else:
            window = np.array(window, copy=True)
        window[:len(chunk)] = chunk

        samples = window
        if signal_filter is not None:
            samples = np.asarray(signal_filter(window, sample_rate))
            if samples.shape != window.shape:
                raise ValueError(
                    f"Filter returned {samples.shape[0] if samples.ndim else 0} samples "
                    f"for a window of {small_segment_limit}"
                )
            if not zero_fill:
                # Legacy tool wrote the next window into the filtered array
                window = np.asarray(samples, dtype=np.int64)

        tapered = _taper_window(samples.astype(np.float64))
        accumulator += scipy_fft.rfft(tapered)

    return accumulator / WELCH_SEGMENT_COUNT
