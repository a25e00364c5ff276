"""
Logging Configuration for SeismicPSD

This module provides centralized logging configuration that writes logs
to both console and timestamped log files in the logs/ directory.

Author: SeismicPSD Development Team
Date: 2026-10-15
"""

import logging
import time
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

BATCH_LOGGER_NAME = "seismic_psd.batch"


def setup_logging(log_level: str = "INFO", log_dir: str = None) -> str:
    """
    Configure logging for SeismicPSD batch runs.

    Sets up logging to both console and a timestamped log file.
    Log files are stored in the logs/ directory at the project root.

    Parameters:
    -----------
    log_level : str
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        Default is INFO.
    log_dir : str, optional
        Custom log directory. If not provided, uses logs/ in project root.

    Returns:
    --------
    str
        Path to the current log file.
    """
    # Determine log directory
    if log_dir is None:
        # Get project root (parent of seismic_psd package)
        project_root = Path(__file__).parent.parent.parent
        log_dir = project_root / "logs"
    else:
        log_dir = Path(log_dir)

    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = log_dir / f"seismic_psd_{timestamp}.log"

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    # Create formatters
    detailed_formatter = logging.Formatter(
        '%(asctime)s | %(levelname)-8s | %(name)-40s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_formatter = logging.Formatter(
        '%(levelname)-8s | %(name)-30s | %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture all, let handlers filter

    # Remove existing handlers to avoid duplicates; release earlier log files
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        if isinstance(handler, RotatingFileHandler):
            handler.close()

    # Console handler (respects log_level)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    # File handler with rotation (always captures DEBUG level)
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized - Log file: {log_path}")
    logger.info(f"Console log level: {log_level}, File log level: DEBUG")

    return str(log_path)


def get_batch_logger() -> logging.Logger:
    """
    Get a logger specifically for batch processing operations.

    Returns:
    --------
    logging.Logger
        Logger configured for batch processing.
    """
    return logging.getLogger(BATCH_LOGGER_NAME)


class BatchProcessingLogContext:
    """
    Context manager for batch processing that creates a dedicated log section.

    Usage:
    ------
    with BatchProcessingLogContext("PSD batch: 3 channels"):
        # ... processing code ...
    """

    def __init__(self, operation_name: str):
        self.operation_name = operation_name
        self.logger = get_batch_logger()
        self.start_time = None
        self.elapsed = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.info("=" * 60)
        self.logger.info(f"STARTING: {self.operation_name}")
        self.logger.info("=" * 60)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed = time.perf_counter() - self.start_time

        if exc_type is not None:
            self.logger.error(f"FAILED: {self.operation_name} ({self.elapsed:.2f}s)")
            self.logger.error(f"Error: {exc_val}")
        else:
            self.logger.info(f"COMPLETED: {self.operation_name} ({self.elapsed:.2f}s)")

        self.logger.info("-" * 60)
        return False  # Don't suppress exceptions
