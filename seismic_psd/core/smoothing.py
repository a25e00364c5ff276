"""
Fractional-Octave Smoothing

Moving-average smoothing of a spectrum over a band whose width is a constant
fraction of an octave, so that the averaging window widens with frequency.

Author: SeismicPSD Development Team
Date: 2026-10-14
"""

import numpy as np

DEFAULT_SMOOTHING_FRACTION = 8


def smooth_fractional_octave(frequencies, values, fraction: int = DEFAULT_SMOOTHING_FRACTION) -> np.ndarray:
    """
    Smooth values over ``[f / 2**(1/fraction), f * 2**(1/fraction)]``.

    Parameters
    ----------
    frequencies : array_like
        Frequencies in Hz, sorted ascending
    values : array_like
        Values to smooth (e.g. PSD in dB or spectral amplitude)
    fraction : int, optional
        Octave fraction of the smoothing radius (default: 8)

    Returns
    -------
    np.ndarray
        Smoothed values; points at non-positive frequencies are returned unchanged

    Raises
    ------
    ValueError
        If the inputs differ in length, frequencies are not ascending or
        ``fraction`` is not positive
    """
    frequencies = np.asarray(frequencies, dtype=np.float64)
    values = np.asarray(values, dtype=np.float64)

    if frequencies.shape != values.shape or frequencies.ndim != 1:
        raise ValueError(
            f"frequencies {frequencies.shape} and values {values.shape} must be 1D of equal length"
        )
    if fraction <= 0:
        raise ValueError(f"fraction must be positive, got {fraction}")
    if np.any(np.diff(frequencies) < 0):
        raise ValueError("frequencies must be sorted ascending")

    ratio = 2.0 ** (1.0 / fraction)
    lower = np.searchsorted(frequencies, frequencies / ratio, side="left")
    upper = np.searchsorted(frequencies, frequencies * ratio, side="right")

    cumulative = np.concatenate(([0.0], np.cumsum(values)))
    counts = upper - lower
    smoothed = values.copy()
    positive = (frequencies > 0) & (counts > 0)
    smoothed[positive] = (cumulative[upper] - cumulative[lower])[positive] / counts[positive]
    return smoothed
