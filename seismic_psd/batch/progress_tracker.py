"""
Progress Tracking Module for Batch Processing

This module provides detailed progress tracking with per-channel, per-stage
updates, estimated time remaining, and throughput statistics.

Author: SeismicPSD Development Team
Date: 2026-10-15
"""

import time
from typing import Optional, Callable
from dataclasses import dataclass

PROCESSING_STAGES = ("assemble", "average", "axis", "resolve")


@dataclass
class ProgressInfo:
    """Container for detailed progress information."""
    current_channel: int
    total_channels: int
    channel_name: str
    stage: str
    percent_complete: float
    elapsed_time: float
    estimated_time_remaining: float
    channels_per_second: float

    def __str__(self) -> str:
        """Format progress info as human-readable string."""
        return (
            f"Channel {self.current_channel}/{self.total_channels} "
            f"({self.percent_complete:.1f}%) - "
            f"{self.channel_name} - "
            f"Stage: {self.stage} - "
            f"ETA: {self.estimated_time_remaining:.1f}s"
        )


class ProgressTracker:
    """
    Tracks batch processing progress with detailed statistics.

    Provides per-channel progress updates at every processing stage,
    estimated time remaining, and throughput metrics.
    """

    def __init__(self, total_channels: int, progress_callback: Optional[Callable] = None):
        """
        Initialize progress tracker.

        Parameters:
        -----------
        total_channels : int
            Total number of channels to process
        progress_callback : callable, optional
            Callback function to receive progress updates
            Signature: callback(progress_info: ProgressInfo)
        """
        self.total_channels = total_channels
        self.progress_callback = progress_callback

        self.current_channel = 0
        self.channels_finished = 0
        self.start_time = time.time()

        self.current_channel_name = ""
        self.current_stage = ""

    def start_channel(self, channel_name: str):
        """
        Mark the start of processing a new channel.

        Parameters:
        -----------
        channel_name : str
            Channel identifier
        """
        self.current_channel += 1
        self.current_channel_name = channel_name
        self.current_stage = ""
        self._emit_progress()

    def update_stage(self, stage: str):
        """
        Update the processing stage of the current channel.

        Parameters:
        -----------
        stage : str
            One of "assemble", "average", "axis", "resolve"
        """
        if stage not in PROCESSING_STAGES:
            raise ValueError(f"Unknown stage: {stage}")
        self.current_stage = stage
        self._emit_progress()

    def finish_channel(self):
        """
        Mark the current channel as finished.

        This method emits a final progress update for the completed channel.
        """
        self.channels_finished = self.current_channel
        self.current_stage = "done"
        self._emit_progress()

    def _percent_complete(self) -> float:
        if self.total_channels <= 0:
            return 100.0
        done = float(self.channels_finished)
        if self.current_stage in PROCESSING_STAGES:
            stage_index = PROCESSING_STAGES.index(self.current_stage)
            done += stage_index / len(PROCESSING_STAGES)
        return min(done / self.total_channels * 100, 100.0)

    def _emit_progress(self):
        """Calculate and emit progress information."""
        if self.progress_callback is None:
            return

        elapsed_time = time.time() - self.start_time

        # Calculate estimated time remaining
        if self.channels_finished > 0 and elapsed_time > 0:
            avg_time_per_channel = elapsed_time / self.channels_finished
            remaining_channels = self.total_channels - self.channels_finished
            estimated_time_remaining = avg_time_per_channel * remaining_channels
            channels_per_second = self.channels_finished / elapsed_time
        else:
            estimated_time_remaining = 0.0
            channels_per_second = 0.0

        progress_info = ProgressInfo(
            current_channel=self.current_channel,
            total_channels=self.total_channels,
            channel_name=self.current_channel_name,
            stage=self.current_stage,
            percent_complete=self._percent_complete(),
            elapsed_time=elapsed_time,
            estimated_time_remaining=estimated_time_remaining,
            channels_per_second=channels_per_second
        )

        self.progress_callback(progress_info)

    def get_summary(self) -> dict:
        """
        Get processing summary statistics.

        Returns:
        --------
        dict
            Summary statistics including total time, throughput, etc.
        """
        total_time = time.time() - self.start_time

        return {
            'total_channels': self.total_channels,
            'channels_processed': self.channels_finished,
            'total_time_seconds': total_time,
            'average_time_per_channel': total_time / max(self.channels_finished, 1),
            'channels_per_second': self.channels_finished / max(total_time, 0.001)
        }
