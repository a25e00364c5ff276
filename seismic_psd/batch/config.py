"""
Batch Processing Configuration Module

This module handles configuration management for batch PSD processing operations.
Configurations can be saved to and loaded from JSON files to ensure consistent
noise analysis runs across stations.

Author: SeismicPSD Development Team
Date: 2026-10-15
"""

import json
from dataclasses import dataclass, asdict, field
from typing import Dict, Optional, Any
from pathlib import Path
from datetime import datetime

from seismic_psd.core.segments import DEFAULT_MAX_DATA_LENGTH, DEFAULT_GAP_TOLERANCE
from seismic_psd.core.smoothing import DEFAULT_SMOOTHING_FRACTION
from seismic_psd.core.spectra import VALID_INPUT_UNITS


@dataclass
class FilterConfig:
    """Configuration for the per-window signal filter."""

    enabled: bool = False
    filter_type: str = "highpass"  # lowpass, highpass, bandpass
    filter_order: int = 4
    cutoff_low: Optional[float] = None
    cutoff_high: Optional[float] = None

    def validate(self):
        """
        Validate filter configuration parameters.

        Raises:
        -------
        ValueError
            If configuration parameters are invalid
        """
        if not self.enabled:
            return

        if self.filter_type not in ["lowpass", "highpass", "bandpass"]:
            raise ValueError(f"Invalid filter_type: {self.filter_type}")

        if self.filter_order < 1 or self.filter_order > 10:
            raise ValueError(f"Invalid filter_order: {self.filter_order}")

        if self.filter_type in ["lowpass", "bandpass"] and self.cutoff_high is None:
            raise ValueError(f"{self.filter_type} requires cutoff_high")

        if self.filter_type in ["highpass", "bandpass"] and self.cutoff_low is None:
            raise ValueError(f"{self.filter_type} requires cutoff_low")

        for name in ("cutoff_low", "cutoff_high"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"Invalid {name}: {value}")

        if (self.filter_type == "bandpass"
                and self.cutoff_low >= self.cutoff_high):
            raise ValueError("cutoff_low must be less than cutoff_high")


@dataclass
class PSDConfig:
    """Configuration for PSD calculation parameters."""

    max_data_length: int = DEFAULT_MAX_DATA_LENGTH
    gap_tolerance: float = DEFAULT_GAP_TOLERANCE
    zero_fill_partial_windows: bool = True
    legacy_final_window: bool = False
    input_units: str = "velocity"  # displacement, velocity, acceleration
    smoothing_fraction: int = DEFAULT_SMOOTHING_FRACTION

    def validate(self):
        """
        Validate PSD configuration parameters.

        Raises:
        -------
        ValueError
            If configuration parameters are invalid
        """
        if self.max_data_length <= 0:
            raise ValueError(f"Invalid max_data_length: {self.max_data_length}")

        if self.gap_tolerance < 0:
            raise ValueError(f"Invalid gap_tolerance: {self.gap_tolerance}")

        if self.input_units not in VALID_INPUT_UNITS:
            raise ValueError(f"Invalid input_units: {self.input_units}")

        if self.smoothing_fraction < 1:
            raise ValueError(f"Invalid smoothing_fraction: {self.smoothing_fraction}")


@dataclass
class OutputConfig:
    """Configuration for output generation."""

    csv_enabled: bool = True
    ascii_enabled: bool = False
    output_directory: str = ""
    filename_prefix: str = ""

    def validate(self):
        """
        Validate output configuration parameters.

        Raises:
        -------
        ValueError
            If configuration parameters are invalid
        """
        if self.output_directory and not Path(self.output_directory).exists():
            raise ValueError(f"Output directory does not exist: {self.output_directory}")


@dataclass
class PSDBatchConfig:
    """
    Complete configuration for a batch PSD processing run.

    Encapsulates the engine parameters, the optional filter and the output
    options. Channels and the time interval are passed per run.
    """

    # Processing configurations
    psd_config: PSDConfig = field(default_factory=PSDConfig)
    filter_config: FilterConfig = field(default_factory=FilterConfig)
    output_config: OutputConfig = field(default_factory=OutputConfig)

    # Metadata
    config_name: str = ""
    created_timestamp: str = ""
    modified_timestamp: str = ""

    def __post_init__(self):
        """Initialize timestamps if not provided."""
        if not self.created_timestamp:
            self.created_timestamp = datetime.now().isoformat()
        if not self.modified_timestamp:
            self.modified_timestamp = self.created_timestamp

    def validate(self):
        """
        Validate the complete batch configuration.

        Raises:
        -------
        ValueError
            If any configuration parameters are invalid
        """
        # Validate sub-configurations
        self.psd_config.validate()
        self.filter_config.validate()
        self.output_config.validate()

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        Returns:
        --------
        dict
            Configuration as dictionary
        """
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PSDBatchConfig':
        """
        Create configuration from dictionary.

        Parameters:
        -----------
        data : dict
            Configuration dictionary

        Returns:
        --------
        PSDBatchConfig
            Configuration object
        """
        data = dict(data)

        # Convert nested dictionaries to dataclass instances
        if 'psd_config' in data and isinstance(data['psd_config'], dict):
            data['psd_config'] = PSDConfig(**data['psd_config'])

        if 'filter_config' in data and isinstance(data['filter_config'], dict):
            data['filter_config'] = FilterConfig(**data['filter_config'])

        if 'output_config' in data and isinstance(data['output_config'], dict):
            data['output_config'] = OutputConfig(**data['output_config'])

        return cls(**data)

    def save(self, file_path: str):
        """
        Save configuration to JSON file.

        Parameters:
        -----------
        file_path : str
            Path to save configuration file
        """
        self.modified_timestamp = datetime.now().isoformat()

        with open(file_path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, file_path: str) -> 'PSDBatchConfig':
        """
        Load configuration from JSON file.

        Parameters:
        -----------
        file_path : str
            Path to configuration file

        Returns:
        --------
        PSDBatchConfig
            Loaded configuration object
        """
        with open(file_path, 'r') as f:
            data = json.load(f)

        return cls.from_dict(data)
