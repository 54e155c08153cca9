#!/usr/bin/env python3
"""
Tracker Pipeline

Runs the decoding stages over a sorted report list:

    match_spots → decode_spots → [orphaned telemetry] → compute_derived_metrics

Every stage returns new immutable Spot records, so the pipeline can be rerun
from scratch whenever the report list grows.

TrackerSession owns the report list across incremental updates. The caller
fetches report batches (on a timer, for example) and feeds them through
ingest(); the session merges them and re-decodes the full set.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from .config import TrackerConfig
from .decoders import decode_spots
from .derived import compute_derived_metrics
from .matcher import match_spots
from .models import Report, Spot
from .orphans import create_orphaned_spots
from .reports import merge_reports, sort_reports

logger = logging.getLogger(__name__)


def process_reports(reports: Sequence[Report], config: TrackerConfig,
                    include_orphans: bool = False) -> List[Spot]:
    """
    Decode a report list into annotated spots.

    Args:
        reports: Reports sorted by (timestamp, callsign)
        config: Tracker configuration
        include_orphans: Also emit location-less spots for unattached U4B
            telemetry, merged in timestamp order

    Returns:
        Spots in timestamp order with all derived metrics
    """
    spots = decode_spots(match_spots(reports, config), config)

    if include_orphans:
        orphans = create_orphaned_spots(reports, spots, config)
        if orphans:
            spots = sorted(spots + orphans, key=lambda s: s.timestamp)

    return compute_derived_metrics(spots, config)


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of one ingest() call"""
    new_count: int
    spots: List[Spot]


@dataclass
class SessionMetrics:
    """Cumulative session metrics"""
    updates: int = 0
    total_reports: int = 0
    new_reports: int = 0
    spots: int = 0
    session_start_time: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'updates': self.updates,
            'total_reports': self.total_reports,
            'new_reports': self.new_reports,
            'spots': self.spots,
            'uptime_seconds': time.time() - self.session_start_time,
        }


class TrackerSession:
    """
    Incrementally updated decoding session for one tracker.

    Usage:
        session = TrackerSession(config)
        result = session.ingest(first_batch)
        result = session.ingest(next_batch, incremental=True)
        if result.new_count:
            redraw(result.spots)
    """

    def __init__(self, config: TrackerConfig, include_orphans: bool = False):
        self.config = config
        self.include_orphans = include_orphans
        self.reports: List[Report] = []
        self.spots: List[Spot] = []
        self.metrics = SessionMetrics()

    def ingest(self, batch: Sequence[Report], incremental: bool = False) -> UpdateResult:
        """
        Merge a report batch and re-decode when the report list changed.

        Args:
            batch: Newly fetched reports (any order)
            incremental: Merge into the known reports instead of replacing them

        Returns:
            UpdateResult with the number of previously unseen reports and
            the current spot list
        """
        batch = sort_reports(batch)
        if incremental:
            merged = merge_reports(self.reports, batch)
            # A known report may come back with more receivers
            changed = merged.reports != self.reports
            self.reports = merged.reports
            new_count = merged.new_count
        else:
            self.reports = batch
            new_count = len(batch)
            changed = True

        self.metrics.updates += 1
        self.metrics.new_reports += new_count
        self.metrics.total_reports = len(self.reports)

        if changed:
            self.spots = process_reports(self.reports, self.config, self.include_orphans)
            self.metrics.spots = len(self.spots)

        logger.info(f"{self.config.callsign}: {new_count} new reports, "
                    f"{len(self.reports)} total, {len(self.spots)} spots")
        return UpdateResult(new_count=new_count, spots=self.spots)
