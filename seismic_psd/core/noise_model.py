"""
Peterson Noise Model Module

Evaluates the New Low Noise Model (NLNM) and New High Noise Model (NHNM)
used as reference curves for seismic background noise PSDs.

Each model is a table of ``[period, A, B]`` rows; between period ``P[k]``
and ``P[k+1]`` the model value in dB (re. 1 (m/s^2)^2/Hz) is
``A[k] + B[k] * log10(period)``.

References:
    - Peterson, J. (1993). "Observations and modeling of seismic background noise",
      USGS Open-File Report 93-322

Author: SeismicPSD Development Team
Date: 2026-10-14
"""

import numpy as np

NHNM_DATA = np.array([
    [0.1, -108.73, -17.23],
    [0.22, -150.34, -80.50],
    [0.32, -122.31, -23.87],
    [0.80, -116.85, 32.51],
    [3.80, -108.48, 18.08],
    [4.60, -74.66, -32.95],
    [6.30, 0.66, -127.18],
    [7.90, -93.37, -22.42],
    [15.40, 73.54, -162.98],
    [20.00, -151.52, 10.01],
    [354.80, -206.66, 31.63],
    [10000, -206.66, 31.63],
])

NLNM_DATA = np.array([
    [0.1, -162.36, 5.64],
    [0.17, -166.7, 0],
    [0.4, -170, -8.3],
    [0.8, -166.4, 28.9],
    [1.24, -168.6, 52.48],
    [2.4, -159.98, 29.81],
    [4.3, -141.1, 0],
    [5, -71.36, -99.77],
    [6, -97.26, -66.49],
    [10, -132.18, -31.57],
    [12, -205.27, 36.16],
    [15.6, -37.65, -104.33],
    [21.9, -114.37, -47.1],
    [31.6, -160.58, -16.28],
    [45, -187.5, 0],
    [70, -216.47, 15.7],
    [101, -185, 0],
    [154, -168.34, -7.61],
    [328, -217.43, 11.9],
    [600, -258.28, 26.6],
    [10000, -346.88, 48.75],
    [100000, -346.88, 48.75],
])

# Old low noise model level used below the NLNM period range
NLNM_SHORT_PERIOD_DB = -168.0


def _evaluate(table: np.ndarray, periods, below_range: float) -> np.ndarray:
    periods = np.asarray(periods, dtype=np.float64)
    table_periods = table[:, 0]
    last = len(table) - 1

    index = np.clip(np.searchsorted(table_periods, periods, side="right") - 1, 0, last)
    with np.errstate(divide="ignore", invalid="ignore"):
        values = table[index, 1] + table[index, 2] * np.log10(periods)

    values = np.where(periods < table_periods[0], below_range, values)
    values = np.where(periods > table_periods[last], 0.0, values)
    return values


def nlnm(periods):
    """
    Evaluate the New Low Noise Model.

    Parameters
    ----------
    periods : float or array_like
        Periods in seconds

    Returns
    -------
    np.ndarray
        Model level in dB; -168 dB below 0.1 s and 0 above 100000 s
    """
    return _evaluate(NLNM_DATA, periods, NLNM_SHORT_PERIOD_DB)


def nhnm(periods):
    """
    Evaluate the New High Noise Model.

    Parameters
    ----------
    periods : float or array_like
        Periods in seconds

    Returns
    -------
    np.ndarray
        Model level in dB; 0 outside 0.1 s - 10000 s
    """
    return _evaluate(NHNM_DATA, periods, 0.0)
