"""
Batch PSD Processing Engine

This module provides the batch processing engine that turns the raw segments
of a set of channels into averaged spectra with matching frequency axes and
instrument responses. It is GUI-independent for testability.

Per channel, in input order: assemble -> average -> axis -> resolve.

- Data problems (no data, sample rate mismatch, gaps, too few samples) abort
  the whole call.
- A channel whose response cannot be resolved is excluded; the batch only
  fails when every channel is excluded.

Author: SeismicPSD Development Team
Date: 2026-10-16
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from seismic_psd.batch.config import PSDBatchConfig
from seismic_psd.batch.csv_output import export_results
from seismic_psd.batch.error_handler import (
    ErrorHandler, LengthExceededWarning, PSDError, log_error_with_recovery
)
from seismic_psd.batch.progress_tracker import ProgressTracker
from seismic_psd.core.frequency import frequency_axis
from seismic_psd.core.psd import average_spectrum, next_pow2
from seismic_psd.core.response import resolve_response
from seismic_psd.core.segments import TimeInterval, assemble_channel
from seismic_psd.core.spectra import SpectraResult
from seismic_psd.utils.logging_config import BatchProcessingLogContext
from seismic_psd.utils.signal_conditioning import ButterworthFilter

# Get module logger - configuration should be done at application entry point
logger = logging.getLogger(__name__)


@dataclass
class BatchContext:
    """
    Per-call accumulator shared by the channels of one batch.

    Attributes
    ----------
    effective_length : int
        Largest power-of-two-rounded buffer length seen so far
    """

    effective_length: int = 0

    def update(self, buffer_length: int) -> int:
        """Fold one channel's buffer length into the running maximum."""
        if buffer_length > 0:
            self.effective_length = max(self.effective_length, next_pow2(buffer_length))
        return self.effective_length


class BatchPSDResult:
    """Container for batch PSD results."""

    def __init__(self):
        """Initialize empty result container."""
        self.spectra: List[SpectraResult] = []
        self.excluded_channels: List[str] = []
        self.length_warnings: List[LengthExceededWarning] = []
        self.warnings: List[str] = []
        self.processing_log = []  # Detailed processing log
        self.effective_length = 0
        self.effective_interval: Optional[TimeInterval] = None
        self.start_time = None
        self.end_time = None

    def add_spectra(self, spectra: SpectraResult):
        """Add an included channel's result."""
        self.spectra.append(spectra)

    def exclude_channel(self, channel_name: str, reason: str):
        """Record a channel dropped for lack of a response."""
        self.excluded_channels.append(channel_name)
        self.add_log_entry(f"  Excluded {channel_name}: {reason}")

    def add_length_warning(self, warning: LengthExceededWarning):
        """Record a truncation notice; the assembler has already logged it."""
        self.length_warnings.append(warning)
        self.warnings.append(str(warning))

    def add_warning(self, message: str):
        """Add a warning message to the log."""
        self.warnings.append(message)
        logger.warning(message)

    def add_log_entry(self, message: str):
        """Add an entry to the processing log."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        log_entry = f"[{timestamp}] {message}"
        self.processing_log.append(log_entry)
        logger.info(message)

    @property
    def channel_names(self) -> List[str]:
        """Names of the included channels, in input order."""
        return [spectra.channel_name for spectra in self.spectra]

    @property
    def processing_time(self) -> float:
        """Get total processing time in seconds."""
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return 0.0

    @property
    def success(self) -> bool:
        """Check if at least one channel was included."""
        return len(self.spectra) > 0


class PSDBatchProcessor:
    """
    Batch engine computing averaged spectra for a list of channels.

    Each call to ``process`` is independent: the effective-length accumulator
    lives in a fresh ``BatchContext`` and nothing carries over between calls.
    """

    def __init__(self, config: Optional[PSDBatchConfig] = None,
                 signal_filter: Optional[Callable] = None,
                 progress_callback: Optional[Callable] = None):
        """
        Initialize batch processor with configuration.

        Parameters:
        -----------
        config : PSDBatchConfig, optional
            Batch configuration (defaults to PSDBatchConfig())
        signal_filter : callable, optional
            Window filter ``filter(window, sample_rate)``. When omitted, a
            ButterworthFilter is built from ``config.filter_config`` if enabled.
        progress_callback : callable, optional
            Callback for detailed progress updates
        """
        self.config = config or PSDBatchConfig()
        self.signal_filter = signal_filter
        self.progress_callback = progress_callback
        self.progress_tracker = None

    def _validate_config(self):
        try:
            self.config.validate()
        except ValueError as e:
            error = ErrorHandler.handle_invalid_config(str(e))
            log_error_with_recovery(error)
            raise error from e

    def _resolve_filter(self) -> Optional[Callable]:
        if self.signal_filter is not None:
            return self.signal_filter
        return ButterworthFilter.from_config(self.config.filter_config)

    def process(self, channels: Sequence, interval: TimeInterval) -> BatchPSDResult:
        """
        Compute the spectra of a list of channels over a time interval.

        Parameters:
        -----------
        channels : sequence of Channel
            Channels to analyse, processed in order
        interval : TimeInterval
            Requested time range

        Returns:
        --------
        BatchPSDResult
            Included spectra, excluded channel names, warnings and the
            effective interval

        Raises:
        -------
        ValueError
            If ``channels`` is empty
        ConfigurationError
            If the configuration fails validation
        NoDataError, SampleRateMismatchError, DataGapError, InsufficientDataError
            On the first channel with unusable data
        NoResponsesFoundError
            If no channel has a usable response
        """
        if not channels:
            raise ValueError("Please select channels")

        self._validate_config()
        signal_filter = self._resolve_filter()

        result = BatchPSDResult()
        context = BatchContext()
        self.progress_tracker = ProgressTracker(len(channels), self.progress_callback)

        result.start_time = datetime.now()
        with BatchProcessingLogContext(f"PSD batch: {len(channels)} channel(s)"):
            result.add_log_entry(f"Configuration: {self.config.config_name or '<unnamed>'}")
            result.add_log_entry(
                f"Interval: [{interval.start}, {interval.end}] ({interval.duration:.1f}s)"
            )

            for index, channel in enumerate(channels, 1):
                result.add_log_entry(f"Processing channel {index}/{len(channels)}: {channel.name}")
                self.progress_tracker.start_channel(channel.name)
                try:
                    self._process_channel(channel, interval, signal_filter, context, result)
                except PSDError as error:
                    log_error_with_recovery(error)
                    raise
                self.progress_tracker.finish_channel()

            if not result.spectra:
                error = ErrorHandler.handle_no_responses(result.excluded_channels)
                log_error_with_recovery(error)
                raise error

            if result.excluded_channels:
                result.add_warning(
                    "Can not find responses for channels: "
                    + ", ".join(result.excluded_channels)
                )

            result.effective_length = context.effective_length
            first_rate = result.spectra[0].sample_rate
            result.effective_interval = TimeInterval(
                interval.start, interval.start + context.effective_length / first_rate
            )

            result.end_time = datetime.now()
            result.add_log_entry(
                f"Included {len(result.spectra)} channel(s), "
                f"excluded {len(result.excluded_channels)}, "
                f"effective length {result.effective_length}"
            )

        return result

    def export(self, result: BatchPSDResult) -> List[str]:
        """
        Write the outputs enabled in ``config.output_config``.

        Returns:
        --------
        List[str]
            Paths of the created files
        """
        created_files = export_results(
            result, self.config.output_config,
            smoothing_fraction=self.config.psd_config.smoothing_fraction,
        )
        result.add_log_entry(f"Exported {len(created_files)} file(s)")
        return created_files

    def _process_channel(self, channel, interval: TimeInterval, signal_filter,
                         context: BatchContext, result: BatchPSDResult):
        """
        Run assemble -> average -> axis -> resolve for one channel.

        Parameters:
        -----------
        channel : Channel
            Channel handle
        interval : TimeInterval
            Requested time range
        signal_filter : callable or None
            Window filter
        context : BatchContext
            Per-call accumulator
        result : BatchPSDResult
            Result container to update
        """
        psd_config = self.config.psd_config

        self.progress_tracker.update_stage("assemble")
        buffer = assemble_channel(
            channel, interval,
            max_data_length=psd_config.max_data_length,
            gap_tolerance=psd_config.gap_tolerance,
        )
        if buffer.truncated:
            result.add_length_warning(
                LengthExceededWarning(channel.name, buffer.original_length, len(buffer))
            )
        context.update(len(buffer))
        result.add_log_entry(
            f"  Assembled {len(buffer)} samples at {buffer.sample_rate:g} Hz "
            f"({buffer.duration:.1f}s)"
        )

        self.progress_tracker.update_stage("average")
        spectrum = average_spectrum(
            buffer,
            signal_filter=signal_filter,
            zero_fill=psd_config.zero_fill_partial_windows,
            legacy_final_window=psd_config.legacy_final_window,
        )

        self.progress_tracker.update_stage("axis")
        frequencies, start_freq, end_freq = frequency_axis(len(spectrum), buffer.sample_interval_ms)

        self.progress_tracker.update_stage("resolve")
        response = resolve_response(channel, interval.start, start_freq, end_freq, len(spectrum))
        if not response.ok:
            result.exclude_channel(channel.name, response.reason)
            return

        result.add_spectra(SpectraResult(
            start_time=interval.start,
            spectrum=spectrum,
            frequencies=frequencies,
            response=response.values,
            freq_step=frequencies[1] - frequencies[0],
            channel_name=channel.name,
            sample_rate=buffer.sample_rate,
            input_units=psd_config.input_units,
        ))
        result.add_log_entry(f"  Included {channel.name}: {len(spectrum)} bins")
