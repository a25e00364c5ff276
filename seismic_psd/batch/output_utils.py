"""
Shared utilities for batch output modules (CSV, ASCII).
"""

from datetime import datetime, timezone
from typing import Optional

PSD_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def sanitize_filename_component(value: Optional[str]) -> str:
    """Return a filesystem-safe filename component.

    Replaces characters that are not alphanumeric, hyphens, or underscores
    with underscores and strips leading/trailing underscores.

    Parameters
    ----------
    value : str or None
        Raw filename component (e.g. channel name, prefix).

    Returns
    -------
    str
        Sanitized string safe for use in file paths.  Empty string if
        *value* is None or blank.
    """
    text = (value or "").strip()
    if not text:
        return ""
    safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in text)
    return safe.strip("_")


def channel_file_component(channel_name: str) -> str:
    """Channel name with network/station/location/channel separators turned into underscores."""
    return sanitize_filename_component(channel_name.replace("/", "_")) or "channel"


def format_start_time(start_time: float) -> str:
    """Format an epoch start time (seconds, UTC) for use in file names."""
    moment = datetime.fromtimestamp(start_time, tz=timezone.utc)
    return moment.strftime(PSD_FILE_TIMESTAMP_FORMAT)


def format_scientific(value: float) -> str:
    """
    Format a number as ``0.00000E00``.

    Five mantissa decimals and an unsigned positive exponent of at least two
    digits, e.g. ``1.25000E01`` or ``5.00000E-02``.
    """
    mantissa, exponent = f"{value:.5E}".split("E")
    sign = "-" if exponent.startswith("-") else ""
    return f"{mantissa}E{sign}{exponent.lstrip('+-')}"
