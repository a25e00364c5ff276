"""
Channel Handle Module

Provides the channel handle consumed by the batch processor together with the
data-source protocol it reads segments through.

The engine never fetches, caches or parses raw files itself; a data source
only has to return, for a channel name and a time interval, the ordered
segments intersecting that interval.

Author: SeismicPSD Development Team
Date: 2026-10-12
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from seismic_psd.core.segments import Segment, TimeInterval

logger = logging.getLogger(__name__)


class ChannelDataSource(Protocol):
    """Anything that can list the raw segments of a channel."""

    def get_segments(self, channel_name: str, interval: TimeInterval) -> Sequence[Segment]:
        ...


class InMemoryDataSource:
    """
    Data source backed by already decoded segments.

    Parameters
    ----------
    segments : dict, optional
        Mapping of channel name -> iterable of Segment

    Examples
    --------
    >>> source = InMemoryDataSource({"IU/ANMO/00/BHZ": [segment]})
    >>> source.get_segments("IU/ANMO/00/BHZ", TimeInterval(0.0, 60.0))
    """

    def __init__(self, segments: Optional[Dict[str, Iterable[Segment]]] = None):
        self._segments: Dict[str, List[Segment]] = {}
        for name, channel_segments in (segments or {}).items():
            for segment in channel_segments:
                self.add_segment(name, segment)

    def add_segment(self, channel_name: str, segment: Segment):
        """Register one more segment for a channel."""
        self._segments.setdefault(channel_name, []).append(segment)

    @property
    def channel_names(self) -> List[str]:
        return list(self._segments.keys())

    def get_segments(self, channel_name: str, interval: TimeInterval) -> List[Segment]:
        """
        Get the segments of a channel intersecting an interval.

        Parameters
        ----------
        channel_name : str
            Channel identifier
        interval : TimeInterval
            Requested time range

        Returns
        -------
        list of Segment
            Intersecting segments sorted by start time; empty for unknown channels
        """
        selected = [
            segment for segment in self._segments.get(channel_name, [])
            if interval.intersects(segment.start_time, segment.end_time)
        ]
        selected.sort(key=lambda seg: seg.start_time)
        logger.debug(
            f"{len(selected)} segment(s) of {channel_name} intersect "
            f"[{interval.start}, {interval.end}]"
        )
        return selected


@dataclass
class Channel:
    """
    Handle for one channel of a PSD batch.

    Attributes
    ----------
    name : str
        Channel identifier (e.g., "IU/ANMO/00/BHZ")
    source : ChannelDataSource
        Where raw segments are read from
    response : object, optional
        Instrument response provider with
        ``get_response(channel_name, start_time, start_freq, end_freq, num_freq)``;
        None when no response is configured
    units : str, optional
        Ground-motion units the digitizer counts represent (default: "counts")
    """

    name: str
    source: ChannelDataSource = field(repr=False)
    response: Optional[object] = field(default=None, repr=False)
    units: str = "counts"

    def get_segments(self, interval: TimeInterval) -> Sequence[Segment]:
        """Get the raw segments of this channel intersecting an interval."""
        return self.source.get_segments(self.name, interval)

    def __str__(self) -> str:
        return self.name
