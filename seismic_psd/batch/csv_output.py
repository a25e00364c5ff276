"""
CSV and ASCII Output Module for Batch Processing

This module handles exporting batch PSD results to disk:

- one CSV file holding the calibrated PSD (dB) of every included channel
  against a shared ``Frequency_Hz`` column
- one plain-text file per channel with ``period  psd_db`` lines, the layout
  used by the PSD plot export of the legacy viewer

Author: SeismicPSD Development Team
Date: 2026-10-16
"""

import numpy as np
import pandas as pd
from pathlib import Path
from typing import List, Optional
import logging

from seismic_psd.batch.error_handler import ErrorHandler, log_error_with_recovery
from seismic_psd.batch.output_utils import (
    channel_file_component, format_scientific, format_start_time,
    sanitize_filename_component as _sanitize_filename_component
)

logger = logging.getLogger(__name__)


def export_to_csv(
    result: 'BatchPSDResult',
    output_directory: str,
    filename_prefix: str = "",
    smoothing_fraction: Optional[int] = None
) -> str:
    """
    Export the calibrated PSDs of a batch to one CSV file.

    Parameters:
    -----------
    result : BatchPSDResult
        Batch result with included spectra
    output_directory : str
        Directory to save the CSV file
    filename_prefix : str, optional
        Prefix for the file name
    smoothing_fraction : int, optional
        When given, a "<channel>_smoothed" column with the PSD smoothed over
        1/smoothing_fraction octave follows each channel column

    Returns:
    --------
    str
        Path to the saved CSV file, or None if there was nothing to write

    Raises:
    -------
    PSDError
        If the file cannot be written
    """
    output_dir = Path(output_directory)
    output_dir.mkdir(parents=True, exist_ok=True)

    merged_df = None
    for spectra in result.spectra:
        frequencies = np.asarray(spectra.frequencies)
        psd_db = np.asarray(spectra.psd_db(), dtype=np.float64)
        psd_db = np.where(np.isfinite(psd_db), psd_db, np.nan)
        if frequencies.size == 0:
            continue
        columns = {
            "Frequency_Hz": frequencies,
            spectra.channel_name: psd_db,
        }
        if smoothing_fraction:
            columns[f"{spectra.channel_name}_smoothed"] = spectra.smoothed_psd_db(smoothing_fraction)
        channel_df = pd.DataFrame(columns).drop_duplicates(subset=["Frequency_Hz"], keep="first")
        if merged_df is None:
            merged_df = channel_df
        else:
            merged_df = merged_df.merge(channel_df, on="Frequency_Hz", how="outer")

    if merged_df is None or merged_df.empty:
        logger.warning("No spectra to export to CSV")
        return None

    merged_df = merged_df.sort_values("Frequency_Hz").reset_index(drop=True)

    prefix = _sanitize_filename_component(filename_prefix)
    file_name = "psd.csv" if not prefix else f"{prefix}_psd.csv"
    csv_path = output_dir / file_name

    try:
        merged_df.to_csv(csv_path, index=False)
    except OSError as e:
        error = ErrorHandler.handle_output_error("CSV", str(csv_path), str(e))
        log_error_with_recovery(error)
        raise error from e

    logger.info(f"CSV file saved: {csv_path}")
    return str(csv_path)


def _psd_ascii_lines(spectra) -> List[str]:
    periods, psd_db = spectra.psd_series()
    return [
        f"{format_scientific(period)}  {value:.4f}"
        for period, value in zip(periods, psd_db)
    ]


def export_psd_ascii(result: 'BatchPSDResult', output_directory: str) -> List[str]:
    """
    Export each included channel's PSD as period/dB text.

    Files are named ``PSD_<YYYY-MM-DD_HH-MM-SS><channel>.txt`` with the
    channel name's ``/`` separators replaced by underscores.

    Parameters:
    -----------
    result : BatchPSDResult
        Batch result with included spectra
    output_directory : str
        Directory to save the text files

    Returns:
    --------
    List[str]
        Paths of the created files
    """
    output_dir = Path(output_directory)
    output_dir.mkdir(parents=True, exist_ok=True)

    created_files = []
    for spectra in result.spectra:
        file_name = (
            f"PSD_{format_start_time(spectra.start_time)}"
            f"{channel_file_component(spectra.channel_name)}.txt"
        )
        file_path = output_dir / file_name
        lines = _psd_ascii_lines(spectra)
        try:
            with open(file_path, 'w') as f:
                f.write("\n".join(lines))
                if lines:
                    f.write("\n")
        except OSError as e:
            error = ErrorHandler.handle_output_error("ASCII", str(file_path), str(e))
            log_error_with_recovery(error)
            raise error from e
        created_files.append(str(file_path))
        logger.info(f"PSD text file saved: {file_path} ({len(lines)} lines)")

    logger.info(f"ASCII export complete: {len(created_files)} files created")
    return created_files


def export_results(result: 'BatchPSDResult', output_config,
                   smoothing_fraction: Optional[int] = None) -> List[str]:
    """
    Write every output format enabled in an OutputConfig.

    Parameters:
    -----------
    result : BatchPSDResult
        Batch result with included spectra
    output_config : OutputConfig
        Output options; an empty output_directory means the current directory
    smoothing_fraction : int, optional
        Adds smoothed columns to the CSV (see export_to_csv)

    Returns:
    --------
    List[str]
        Paths of all created files
    """
    output_directory = output_config.output_directory or "."
    created_files = []

    if output_config.csv_enabled:
        csv_path = export_to_csv(
            result, output_directory, output_config.filename_prefix, smoothing_fraction
        )
        if csv_path:
            created_files.append(csv_path)

    if output_config.ascii_enabled:
        created_files.extend(export_psd_ascii(result, output_directory))

    return created_files
