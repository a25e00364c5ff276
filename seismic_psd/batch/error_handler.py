"""
Error Handling and Recovery Module for PSD Batch Processing

This module defines the exception hierarchy raised by the PSD engine and
provides detailed error messages with actionable recovery suggestions to help
users diagnose data problems before re-running a batch.

Per-channel data errors (no data, sample rate mismatch, gaps, too few samples)
abort the whole batch call. Missing instrument responses are handled softly:
the channel is excluded and only a batch with no usable response at all fails.

Author: SeismicPSD Development Team
Date: 2026-10-12
"""

import logging
from typing import Optional, Dict, List
from enum import Enum

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """Categories of errors that can occur during PSD computation."""
    DATA_LOADING = "data_loading"
    DATA_VALIDATION = "data_validation"
    PROCESSING = "processing"
    RESPONSE = "response"
    OUTPUT = "output"
    CONFIGURATION = "configuration"


class PSDError(Exception):
    """
    Base exception for PSD engine errors with recovery suggestions.

    Attributes:
    -----------
    message : str
        Error message, surfaced verbatim to the caller
    category : ErrorCategory
        Category of error
    suggestions : List[str]
        List of recovery suggestions
    context : Dict
        Additional context about the error
    """

    default_category = ErrorCategory.PROCESSING

    def __init__(self, message: str, category: Optional[ErrorCategory] = None,
                 suggestions: Optional[List[str]] = None,
                 context: Optional[Dict] = None):
        """
        Initialize error with recovery information.

        Parameters:
        -----------
        message : str
            Error message
        category : ErrorCategory, optional
            Category of error (defaults to the class category)
        suggestions : List[str], optional
            List of recovery suggestions
        context : Dict, optional
            Additional context
        """
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.suggestions = suggestions or []
        self.context = context or {}

    def get_full_message(self) -> str:
        """
        Get full error message with suggestions.

        Returns:
        --------
        str
            Formatted error message with suggestions
        """
        msg = f"[{self.category.value.upper()}] {self.message}"

        if self.suggestions:
            msg += "\n\nSuggestions:"
            for i, suggestion in enumerate(self.suggestions, 1):
                msg += f"\n  {i}. {suggestion}"

        if self.context:
            msg += "\n\nContext:"
            for key, value in self.context.items():
                msg += f"\n  - {key}: {value}"

        return msg


class NoDataError(PSDError):
    """A channel has no segments in the requested interval."""
    default_category = ErrorCategory.DATA_LOADING


class SampleRateMismatchError(PSDError):
    """Segments of one channel disagree in sample rate."""
    default_category = ErrorCategory.DATA_VALIDATION


class DataGapError(PSDError):
    """A chronological gap exists between consecutive segments."""
    default_category = ErrorCategory.DATA_VALIDATION


class InsufficientDataError(PSDError):
    """The assembled buffer is too short for the 13-window average."""
    default_category = ErrorCategory.DATA_VALIDATION


class ResponseUnavailableError(PSDError):
    """The response provider failed or returned nothing for a channel."""
    default_category = ErrorCategory.RESPONSE


class NoResponsesFoundError(PSDError):
    """Every channel of a batch was excluded for lack of a response."""
    default_category = ErrorCategory.RESPONSE


class ConfigurationError(PSDError):
    """Invalid engine or batch configuration."""
    default_category = ErrorCategory.CONFIGURATION


class LengthExceededWarning(UserWarning):
    """
    Non-fatal notice that a channel buffer was truncated to the maximum length.

    Instances are recorded on the batch result rather than raised.
    """

    def __init__(self, channel_name: str, points_count: int, max_data_length: int):
        self.channel_name = channel_name
        self.points_count = points_count
        self.max_data_length = max_data_length
        super().__init__(
            f"Points count ({points_count}) exceeds max value for trace {channel_name}"
        )


class ErrorHandler:
    """
    Builds PSD engine errors with detailed diagnostics.

    Provides methods for common error scenarios with actionable recovery suggestions.
    """

    @staticmethod
    def handle_no_data(channel_name: str, start_time: float, end_time: float) -> NoDataError:
        """
        Handle a channel without segments in the interval.

        Parameters:
        -----------
        channel_name : str
            Channel identifier
        start_time : float
            Interval start in seconds
        end_time : float
            Interval end in seconds

        Returns:
        --------
        NoDataError
            Error with recovery suggestions
        """
        return NoDataError(
            f"You have no data for channel {channel_name}",
            suggestions=[
                "Verify the requested time interval overlaps the loaded data",
                "Check that the data source contains this channel",
                "Widen the time interval"
            ],
            context={"channel": channel_name, "interval": [start_time, end_time]}
        )

    @staticmethod
    def handle_sample_rate_mismatch(channel_name: str, expected_rate: float,
                                    actual_rate: float, segment_index: int) -> SampleRateMismatchError:
        """
        Handle segments with differing sample rates.

        Parameters:
        -----------
        channel_name : str
            Channel identifier
        expected_rate : float
            Sample rate of the first segment in Hz
        actual_rate : float
            Sample rate of the disagreeing segment in Hz
        segment_index : int
            Position of the disagreeing segment

        Returns:
        --------
        SampleRateMismatchError
            Error with recovery suggestions
        """
        return SampleRateMismatchError(
            f"You have data with different sample rate for channel {channel_name}",
            suggestions=[
                "Select a time interval covered by a single sample rate",
                "Resample the data to a common rate before computing the PSD"
            ],
            context={
                "channel": channel_name,
                "expected_rate_hz": expected_rate,
                "actual_rate_hz": actual_rate,
                "segment_index": segment_index
            }
        )

    @staticmethod
    def handle_data_gap(channel_name: str, previous_end: float, next_start: float,
                        tolerance: float) -> DataGapError:
        """
        Handle a gap between consecutive segments.

        Parameters:
        -----------
        channel_name : str
            Channel identifier
        previous_end : float
            End time of the earlier segment in seconds
        next_start : float
            Start time of the later segment in seconds
        tolerance : float
            Largest accepted discontinuity in seconds

        Returns:
        --------
        DataGapError
            Error with recovery suggestions
        """
        return DataGapError(
            f"You have gap in the data for channel {channel_name}",
            suggestions=[
                "Select a time interval without data gaps",
                "Increase the gap tolerance if the discontinuity is a timing jitter"
            ],
            context={
                "channel": channel_name,
                "previous_end": previous_end,
                "next_start": next_start,
                "gap_seconds": abs(next_start - previous_end),
                "tolerance_seconds": tolerance
            }
        )

    @staticmethod
    def handle_insufficient_data(channel_name: str, data_length: int,
                                 required_length: int) -> InsufficientDataError:
        """
        Handle a buffer too short for the overlapped-window average.

        Parameters:
        -----------
        channel_name : str
            Channel identifier
        data_length : int
            Actual data length
        required_length : int
            Required data length

        Returns:
        --------
        InsufficientDataError
            Error with recovery suggestions
        """
        return InsufficientDataError(
            f"Insufficient data for channel '{channel_name}': "
            f"{data_length} samples (need {required_length})",
            suggestions=[
                "Widen the time interval",
                "Check if the data was truncated during loading"
            ],
            context={
                "channel": channel_name,
                "data_length": data_length,
                "required_length": required_length
            }
        )

    @staticmethod
    def handle_response_unavailable(channel_name: str, reason: str) -> ResponseUnavailableError:
        """
        Describe why the response of a channel could not be resolved.

        Parameters:
        -----------
        channel_name : str
            Channel identifier
        reason : str
            Original failure description

        Returns:
        --------
        ResponseUnavailableError
            Error with recovery suggestions
        """
        return ResponseUnavailableError(
            f"Can't get response for channel {channel_name}: {reason}",
            suggestions=[
                "Check that response metadata exists for this channel",
                "Verify the response epoch covers the requested start time"
            ],
            context={"channel": channel_name, "original_error": reason}
        )

    @staticmethod
    def handle_no_responses(channel_names: List[str]) -> NoResponsesFoundError:
        """
        Handle a batch where every channel was excluded.

        Parameters:
        -----------
        channel_names : List[str]
            Excluded channel identifiers

        Returns:
        --------
        NoResponsesFoundError
            Error with recovery suggestions
        """
        return NoResponsesFoundError(
            "Can not find responses",
            suggestions=[
                "Configure an instrument response for at least one channel",
                "Verify the response epochs cover the requested time interval"
            ],
            context={"channels": ", ".join(channel_names)}
        )

    @staticmethod
    def handle_invalid_config(error_msg: str) -> ConfigurationError:
        """
        Handle a configuration that failed validation.

        Parameters:
        -----------
        error_msg : str
            Validation failure description

        Returns:
        --------
        ConfigurationError
            Error with recovery suggestions
        """
        return ConfigurationError(
            f"Invalid configuration: {error_msg}",
            suggestions=[
                "Check the PSD, filter and output settings",
                "Reload a known-good configuration file"
            ],
            context={"original_error": error_msg}
        )

    @staticmethod
    def handle_output_error(output_type: str, file_path: str,
                            error_msg: str) -> PSDError:
        """
        Handle output generation error.

        Parameters:
        -----------
        output_type : str
            Type of output (CSV, ASCII)
        file_path : str
            Output file path
        error_msg : str
            Original error message

        Returns:
        --------
        PSDError
            Error with recovery suggestions
        """
        return PSDError(
            f"Failed to generate {output_type} output: {file_path}",
            ErrorCategory.OUTPUT,
            suggestions=[
                "Check if you have write permissions for the output directory",
                "Close the file if it's already open in another application",
                "Check if there's sufficient disk space"
            ],
            context={
                "output_type": output_type,
                "file_path": file_path,
                "original_error": error_msg
            }
        )


def log_error_with_recovery(error: PSDError):
    """
    Log error with full recovery information.

    Parameters:
    -----------
    error : PSDError
        Error to log
    """
    logger.error(error.get_full_message())
