"""
Frequency Axis Module

Builds the frequency axis matching an averaged spectrum. Bin ``k`` of a
spectrum of ``bin_count`` bins lies at ``k * fs / n_fft`` with
``n_fft = 2 * (bin_count - 1)``, so the axis runs from 0 Hz to Nyquist.

Author: SeismicPSD Development Team
Date: 2026-10-13
"""

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrequencyParameters:
    """
    Frequency range description handed to response providers.

    Attributes
    ----------
    start_freq : float
        Frequency of the first bin in Hz
    end_freq : float
        Frequency of the last bin (Nyquist) in Hz
    freq_step : float
        Spacing between bins in Hz
    num_freq : int
        Number of bins
    """

    start_freq: float
    end_freq: float
    freq_step: float
    num_freq: int


def frequency_parameters(bin_count: int, sample_interval_ms: float) -> FrequencyParameters:
    """
    Derive the frequency range of a one-sided spectrum.

    Parameters
    ----------
    bin_count : int
        Number of spectrum bins, at least 2
    sample_interval_ms : float
        Sample interval in milliseconds

    Returns
    -------
    FrequencyParameters
        Start, end, step and count of the axis

    Raises
    ------
    ValueError
        If ``bin_count < 2`` or the sample interval is not positive
    """
    if bin_count < 2:
        raise ValueError(f"bin_count must be at least 2, got {bin_count}")
    if sample_interval_ms <= 0:
        raise ValueError(f"sample_interval_ms must be positive, got {sample_interval_ms}")

    sample_rate = 1000.0 / sample_interval_ms
    n_fft = 2 * (bin_count - 1)
    return FrequencyParameters(
        start_freq=0.0,
        end_freq=sample_rate / 2.0,
        freq_step=sample_rate / n_fft,
        num_freq=int(bin_count),
    )


def frequency_axis(bin_count: int, sample_interval_ms: float) -> Tuple[np.ndarray, float, float]:
    """
    Generate the frequency axis of a one-sided spectrum.

    Parameters
    ----------
    bin_count : int
        Number of spectrum bins
    sample_interval_ms : float
        Sample interval in milliseconds

    Returns
    -------
    frequencies : np.ndarray
        Bin frequencies in Hz, shape=(bin_count,)
    start_freq : float
        First frequency (0 Hz)
    end_freq : float
        Last frequency (Nyquist)

    Examples
    --------
    >>> freqs, start, end = frequency_axis(5, 10.0)
    >>> freqs
    array([ 0. , 12.5, 25. , 37.5, 50. ])
    """
    params = frequency_parameters(bin_count, sample_interval_ms)
    frequencies = params.start_freq + np.arange(params.num_freq) * params.freq_step
    logger.debug(
        f"Frequency axis: {params.num_freq} bins, "
        f"{params.start_freq:.4f}-{params.end_freq:.4f} Hz, step {params.freq_step:.6f} Hz"
    )
    return frequencies, params.start_freq, params.end_freq
