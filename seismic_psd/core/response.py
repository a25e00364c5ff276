"""
Instrument Response Module

Resolves the complex instrument response of a channel over a frequency axis.

A response provider is any object exposing
``get_response(channel_name, start_time, start_freq, end_freq, num_freq)``
that returns ``num_freq`` complex values sampled linearly from ``start_freq``
to ``end_freq``. Provider failures never propagate out of ``resolve_response``;
they are reported as a missing response so the batch can exclude the channel.

Author: SeismicPSD Development Team
Date: 2026-10-13
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from scipy import signal

from seismic_psd.batch.error_handler import ErrorHandler, ResponseUnavailableError

logger = logging.getLogger(__name__)

VALID_PZ_UNITS = ("hz", "rad")


@dataclass(frozen=True)
class ResponseResult:
    """
    Outcome of a response lookup.

    Attributes
    ----------
    values : np.ndarray or None
        Complex response aligned with the frequency axis when found
    reason : str or None
        Why the response is missing
    """

    values: Optional[np.ndarray] = None
    reason: Optional[str] = None

    @classmethod
    def found(cls, values: np.ndarray) -> "ResponseResult":
        return cls(values=np.asarray(values, dtype=np.complex128), reason=None)

    @classmethod
    def missing(cls, reason: str) -> "ResponseResult":
        return cls(values=None, reason=reason)

    @property
    def ok(self) -> bool:
        return self.values is not None


def resolve_response(channel, start_time: float, start_freq: float,
                     end_freq: float, num_freq: int) -> ResponseResult:
    """
    Look up the response of a channel over a frequency range.

    Parameters
    ----------
    channel : Channel
        Channel handle; its ``response`` attribute is the provider
    start_time : float
        Start of the analysed interval in seconds, selects the response epoch
    start_freq : float
        First frequency in Hz
    end_freq : float
        Last frequency in Hz
    num_freq : int
        Number of frequencies

    Returns
    -------
    ResponseResult
        ``found(values)`` on success, ``missing(reason)`` otherwise
    """
    provider = getattr(channel, "response", None)
    if provider is None:
        error = ErrorHandler.handle_response_unavailable(channel.name, "no response configured")
        logger.warning(error.message)
        return ResponseResult.missing(error.message)

    try:
        values = provider.get_response(channel.name, start_time, start_freq, end_freq, num_freq)
    except ResponseUnavailableError as e:
        logger.warning(e.message)
        return ResponseResult.missing(e.message)
    except Exception as e:
        error = ErrorHandler.handle_response_unavailable(channel.name, str(e) or type(e).__name__)
        logger.warning(error.message)
        return ResponseResult.missing(error.message)

    if values is None:
        error = ErrorHandler.handle_response_unavailable(channel.name, "provider returned no values")
        logger.warning(error.message)
        return ResponseResult.missing(error.message)

    values = np.asarray(values, dtype=np.complex128).ravel()
    if len(values) != num_freq:
        error = ErrorHandler.handle_response_unavailable(
            channel.name, f"expected {num_freq} values, got {len(values)}"
        )
        logger.warning(error.message)
        return ResponseResult.missing(error.message)

    return ResponseResult.found(values)


class PolesZerosResponse:
    """
    Analytic poles/zeros instrument response.

    Evaluates ``normalization * sensitivity * prod(s - z) / prod(s - p)`` at
    ``s = 2j * pi * f`` using ``scipy.signal.freqs_zpk``.

    Parameters
    ----------
    zeros : sequence of complex
        Transfer function zeros
    poles : sequence of complex
        Transfer function poles
    normalization : float, optional
        Normalization factor A0 (default: 1.0)
    sensitivity : float, optional
        Overall gain, counts per ground-motion unit (default: 1.0)
    units : str, optional
        "hz" if poles and zeros are given in Hz, "rad" for rad/s (default: "rad")
    start_time : float, optional
        Start of the validity epoch in seconds
    end_time : float, optional
        End of the validity epoch in seconds

    Examples
    --------
    >>> response = PolesZerosResponse(zeros=[0, 0], poles=[-0.037 + 0.037j, -0.037 - 0.037j],
    ...                               sensitivity=1.5e9)
    >>> values = response.get_response("IU/ANMO/00/BHZ", 0.0, 0.0, 10.0, 1025)
    """

    def __init__(self, zeros: Sequence[complex], poles: Sequence[complex],
                 normalization: float = 1.0, sensitivity: float = 1.0,
                 units: str = "rad", start_time: Optional[float] = None,
                 end_time: Optional[float] = None):
        if units not in VALID_PZ_UNITS:
            raise ValueError(f"units must be one of {VALID_PZ_UNITS}, got '{units}'")
        if start_time is not None and end_time is not None and start_time > end_time:
            raise ValueError(
                f"start_time ({start_time}) must not be after end_time ({end_time})"
            )

        scale = 2.0 * np.pi if units == "hz" else 1.0
        self.zeros = np.asarray(zeros, dtype=np.complex128) * scale
        self.poles = np.asarray(poles, dtype=np.complex128) * scale
        self.normalization = float(normalization)
        self.sensitivity = float(sensitivity)
        self.start_time = start_time
        self.end_time = end_time

    def covers(self, time: float) -> bool:
        """Return True if ``time`` falls inside the validity epoch."""
        if self.start_time is not None and time < self.start_time:
            return False
        if self.end_time is not None and time > self.end_time:
            return False
        return True

    def evaluate(self, frequencies: np.ndarray) -> np.ndarray:
        """
        Evaluate the response at arbitrary frequencies.

        Parameters
        ----------
        frequencies : np.ndarray
            Frequencies in Hz

        Returns
        -------
        np.ndarray
            Complex response values
        """
        angular = 2.0 * np.pi * np.asarray(frequencies, dtype=np.float64)
        gain = self.normalization * self.sensitivity
        _, values = signal.freqs_zpk(self.zeros, self.poles, gain, worN=angular)
        return np.asarray(values, dtype=np.complex128)

    def get_response(self, channel_name: str, start_time: float, start_freq: float,
                     end_freq: float, num_freq: int) -> np.ndarray:
        """
        Response provider entry point.

        Raises
        ------
        ResponseUnavailableError
            If ``start_time`` lies outside the validity epoch
        """
        if not self.covers(start_time):
            raise ErrorHandler.handle_response_unavailable(
                channel_name,
                f"no response epoch covers time {start_time} "
                f"(valid {self.start_time} - {self.end_time})"
            )
        frequencies = np.linspace(start_freq, end_freq, num_freq)
        return self.evaluate(frequencies)
