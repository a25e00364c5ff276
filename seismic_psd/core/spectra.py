"""
Spectra Result Module

Holds the per-channel output of a PSD batch (averaged spectrum, frequency
axis, instrument response) and derives calibrated quantities from it.

Calibrated PSD
--------------
The response is divided out of the averaged spectrum and the squared
magnitude is scaled to a power density::

    psd = |S / R|^2 * (dt / n_bins) / 0.875 / 13.0

where ``dt`` is the sample interval in seconds, ``n_bins`` the number of
spectrum bins, 0.875 the Hanning-taper power correction and 13.0 the
segment count used by the averaging engine. The result is then converted to
acceleration according to the ground-motion units the response maps to.

Author: SeismicPSD Development Team
Date: 2026-10-14
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from seismic_psd.batch.error_handler import ErrorHandler
from seismic_psd.core.psd import WELCH_SEGMENT_COUNT
from seismic_psd.core.smoothing import DEFAULT_SMOOTHING_FRACTION, smooth_fractional_octave

logger = logging.getLogger(__name__)

WINDOW_POWER_CORRECTION = 0.875
VALID_INPUT_UNITS = ("displacement", "velocity", "acceleration")


def _readonly(values: Optional[np.ndarray], dtype) -> Optional[np.ndarray]:
    if values is None:
        return None
    array = np.array(values, dtype=dtype, copy=True)
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class SpectraResult:
    """
    Averaged spectrum of one channel with its frequency axis and response.

    Attributes
    ----------
    start_time : float
        Start of the analysed interval in seconds
    spectrum : np.ndarray
        Averaged one-sided complex spectrum
    frequencies : np.ndarray
        Frequency of each bin in Hz
    response : np.ndarray or None
        Complex instrument response aligned with ``frequencies``
    freq_step : float
        Nominal spacing between bins in Hz
    channel_name : str
        Channel identifier
    sample_rate : float
        Sample rate of the analysed buffer in Hz
    input_units : str
        Ground-motion units of the response, one of
        "displacement", "velocity", "acceleration"
    """

    start_time: float
    spectrum: np.ndarray = field(repr=False)
    frequencies: np.ndarray = field(repr=False)
    response: Optional[np.ndarray] = field(repr=False)
    freq_step: float
    channel_name: str = ""
    sample_rate: float = 1.0
    input_units: str = "velocity"

    def __post_init__(self):
        if self.input_units not in VALID_INPUT_UNITS:
            raise ValueError(
                f"input_units must be one of {VALID_INPUT_UNITS}, got '{self.input_units}'"
            )
        object.__setattr__(self, "spectrum", _readonly(self.spectrum, np.complex128))
        object.__setattr__(self, "frequencies", _readonly(self.frequencies, np.float64))
        object.__setattr__(self, "response", _readonly(self.response, np.complex128))

        if len(self.spectrum) != len(self.frequencies):
            raise ValueError(
                f"spectrum ({len(self.spectrum)}) and frequencies "
                f"({len(self.frequencies)}) must have the same length"
            )
        if self.response is not None and len(self.response) != len(self.spectrum):
            raise ValueError(
                f"response ({len(self.response)}) and spectrum "
                f"({len(self.spectrum)}) must have the same length"
            )

    @property
    def start_freq(self) -> float:
        return float(self.frequencies[0])

    @property
    def end_freq(self) -> float:
        return float(self.frequencies[-1])

    @property
    def n_bins(self) -> int:
        return len(self.spectrum)

    @property
    def has_response(self) -> bool:
        return self.response is not None

    def _require_response(self) -> np.ndarray:
        if self.response is None:
            raise ErrorHandler.handle_response_unavailable(
                self.channel_name, "result carries no response"
            )
        return self.response

    def deconvolved(self) -> np.ndarray:
        """Spectrum with the instrument response divided out."""
        response = self._require_response()
        with np.errstate(divide="ignore", invalid="ignore"):
            return self.spectrum / response

    def spectra_amplitude(self, deconvolve: bool = False,
                          convolve_with: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Get the amplitude of the spectrum.

        Parameters
        ----------
        deconvolve : bool, optional
            Divide out the channel's own response first (ignored when the
            result has no response)
        convolve_with : np.ndarray, optional
            Complex response to multiply in afterwards, e.g. to simulate
            another instrument; must match the spectrum length

        Returns
        -------
        np.ndarray
            Amplitude per bin
        """
        processed = np.array(self.spectrum, copy=True)
        if deconvolve and self.response is not None:
            processed = self.deconvolved()
        if convolve_with is not None:
            other = np.asarray(convolve_with, dtype=np.complex128)
            if len(other) != len(processed):
                raise ValueError(
                    f"Both arrays must have same length: {len(processed)} {len(other)}"
                )
            processed = processed * other
        return np.abs(processed)

    def psd(self) -> np.ndarray:
        """
        Calibrated power spectral density in acceleration units.

        Returns
        -------
        np.ndarray
            PSD per bin, (m/s^2)^2/Hz when the response maps counts to metres

        Raises
        ------
        ResponseUnavailableError
            If the result has no response
        """
        deconvolved = self.deconvolved()
        dt = 1.0 / self.sample_rate
        psd = np.abs(deconvolved) ** 2
        psd = psd * (dt / self.n_bins) / WINDOW_POWER_CORRECTION / WELCH_SEGMENT_COUNT

        omega = 2.0 * np.pi * self.frequencies
        if self.input_units == "velocity":
            psd = psd * omega ** 2
        elif self.input_units == "displacement":
            psd = psd * omega ** 4
        return psd

    def psd_db(self) -> np.ndarray:
        """Calibrated PSD in dB; non-positive values become -inf."""
        psd = self.psd()
        with np.errstate(divide="ignore", invalid="ignore"):
            return 10.0 * np.log10(psd)

    def periods(self) -> np.ndarray:
        """Period of each bin in seconds; the 0 Hz bin maps to inf."""
        with np.errstate(divide="ignore"):
            return 1.0 / self.frequencies

    def psd_series(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Get the PSD as period/dB pairs for plotting against noise models.

        The 0 Hz and Nyquist bins are skipped, as are bins whose PSD is not
        positive.

        Returns
        -------
        periods : np.ndarray
            Periods in seconds, in decreasing order
        psd_db : np.ndarray
            PSD in dB
        """
        psd = self.psd()[1:-1]
        periods = self.periods()[1:-1]
        keep = np.isfinite(psd) & (psd > 0)
        return periods[keep], 10.0 * np.log10(psd[keep])

    def smoothed_psd_db(self, fraction: int = DEFAULT_SMOOTHING_FRACTION) -> np.ndarray:
        """
        Calibrated PSD in dB smoothed over 1/``fraction`` octave.

        Bins with a non-finite dB value (0 Hz, zero power) are left out of
        the averages and returned as NaN.
        """
        psd_db = self.psd_db()
        valid = np.isfinite(psd_db)
        smoothed = np.full(psd_db.shape, np.nan)
        if np.any(valid):
            smoothed[valid] = smooth_fractional_octave(
                self.frequencies[valid], psd_db[valid], fraction
            )
        return smoothed
