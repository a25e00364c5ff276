"""Butterworth window filter for the PSD averaging engine."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np
from scipy import signal as scipy_signal

logger = logging.getLogger(__name__)

MAX_NORMALIZED_CUTOFF = 0.999
MIN_NORMALIZED_CUTOFF = 1e-5


def _coerce_optional_float(value) -> Optional[float]:
    """Convert a value to float when possible, else None."""
    if value is None:
        return None
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    if not np.isfinite(numeric):
        return None
    return numeric


def clamp_cutoffs(
    filter_type: str,
    sample_rate: float,
    cutoff_low: Optional[float],
    cutoff_high: Optional[float],
) -> Tuple[Optional[float], Optional[float], list[str]]:
    """
    Clamp cutoffs to the open interval (0, Nyquist).

    Returns
    -------
    tuple
        `(normalized_low, normalized_high, info_messages)`; a normalized value
        is None when the filter type does not use it.
    """
    nyquist = float(sample_rate) / 2.0
    info_messages: list[str] = []

    def _normalize(name: str, value: Optional[float]) -> Optional[float]:
        parsed = _coerce_optional_float(value)
        if parsed is None:
            return None
        normalized = parsed / nyquist
        if normalized >= MAX_NORMALIZED_CUTOFF:
            clamped = MAX_NORMALIZED_CUTOFF * nyquist
            info_messages.append(
                f"{name} of {parsed:g} Hz is at or above Nyquist ({nyquist:g} Hz). "
                f"Using {clamped:g} Hz."
            )
            return MAX_NORMALIZED_CUTOFF
        return max(normalized, MIN_NORMALIZED_CUTOFF)

    low = _normalize("Highpass", cutoff_low) if filter_type in {"highpass", "bandpass"} else None
    high = _normalize("Lowpass", cutoff_high) if filter_type in {"lowpass", "bandpass"} else None

    if low is not None and high is not None and low >= high:
        adjusted = max(MIN_NORMALIZED_CUTOFF, high * 0.5)
        info_messages.append(
            f"Adjusted highpass from {low * nyquist:g} Hz to {adjusted * nyquist:g} Hz "
            "to preserve a valid passband."
        )
        low = adjusted

    return low, high, info_messages


class ButterworthFilter:
    """
    Zero-phase Butterworth filter usable as the averaging engine's window filter.

    Called as ``filter(window, sample_rate)``; returns a float array of the same
    length. Second-order sections are designed once per sample rate.

    Parameters
    ----------
    filter_type : str
        "lowpass", "highpass" or "bandpass"
    order : int
        Filter order (1..10)
    cutoff_low : float, optional
        Highpass corner in Hz (highpass, bandpass)
    cutoff_high : float, optional
        Lowpass corner in Hz (lowpass, bandpass)
    """

    def __init__(self, filter_type: str = "highpass", order: int = 4,
                 cutoff_low: Optional[float] = None, cutoff_high: Optional[float] = None):
        if filter_type not in {"lowpass", "highpass", "bandpass"}:
            raise ValueError(f"Invalid filter_type: {filter_type}")
        if order < 1 or order > 10:
            raise ValueError(f"Invalid filter_order: {order}")
        if filter_type in {"highpass", "bandpass"} and cutoff_low is None:
            raise ValueError(f"{filter_type} requires cutoff_low")
        if filter_type in {"lowpass", "bandpass"} and cutoff_high is None:
            raise ValueError(f"{filter_type} requires cutoff_high")

        self.filter_type = filter_type
        self.order = int(order)
        self.cutoff_low = cutoff_low
        self.cutoff_high = cutoff_high
        self.info_messages: list[str] = []
        self._sos_cache: dict = {}

    @classmethod
    def from_config(cls, filter_config) -> Optional["ButterworthFilter"]:
        """Build a filter from a FilterConfig; None when filtering is disabled."""
        if not filter_config.enabled:
            return None
        filter_config.validate()
        return cls(
            filter_type=filter_config.filter_type,
            order=filter_config.filter_order,
            cutoff_low=filter_config.cutoff_low,
            cutoff_high=filter_config.cutoff_high,
        )

    def design(self, sample_rate: float) -> np.ndarray:
        """Second-order sections for a sample rate."""
        if sample_rate in self._sos_cache:
            return self._sos_cache[sample_rate]

        low, high, messages = clamp_cutoffs(
            self.filter_type, sample_rate, self.cutoff_low, self.cutoff_high
        )
        for message in messages:
            logger.info(message)
        self.info_messages.extend(messages)

        if self.filter_type == "bandpass":
            wn = [low, high]
        elif self.filter_type == "highpass":
            wn = low
        else:
            wn = high

        sos = scipy_signal.butter(self.order, wn, btype=self.filter_type, output="sos")
        self._sos_cache[sample_rate] = sos
        logger.debug(
            f"Designed order-{self.order} {self.filter_type} filter for {sample_rate:g} Hz"
        )
        return sos

    def __call__(self, window: np.ndarray, sample_rate: Optional[float]) -> np.ndarray:
        samples = np.asarray(window, dtype=np.float64)
        if samples.size == 0:
            return samples
        if sample_rate is None or sample_rate <= 0:
            raise ValueError(f"ButterworthFilter needs a positive sample rate, got {sample_rate}")

        sos = self.design(float(sample_rate))
        padlen = min(3 * (2 * len(sos) + 1), samples.size - 1)
        return scipy_signal.sosfiltfilt(sos, samples, padlen=padlen)

    def __repr__(self) -> str:
        return (
            f"ButterworthFilter(filter_type='{self.filter_type}', order={self.order}, "
            f"cutoff_low={self.cutoff_low}, cutoff_high={self.cutoff_high})"
        )
