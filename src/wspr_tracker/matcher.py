#!/usr/bin/env python3
"""
Slot Matcher - Assemble transmission sequences into spots

Trackers split one telemetry update over up to five consecutive 2-minute
slots. The matcher walks the (timestamp, callsign) ordered report stream,
opens a spot for every slot 0 message and attaches later slot messages that
belong to the same sequence:

- unknown:           no matching, every report is its own spot
- generic/zachtek 2: the single slot 1 companion always matches
- wb8elk:            slot 1 must repeat the slot 0 locator
- u4b:               a receiver must have heard an earlier slot of the spot
                     within 5 Hz (co-receiver correlation). Failing that,
                     extended telemetry in slots 2-4 is attached on timing
                     alone. The timing-only fallback has no false positive
                     bound and can attribute another tracker's telemetry
                     when several trackers share a channel.

Reports that match nothing are left out of spot assembly; they stay in the
report list for orphaned telemetry reconstruction.
"""

import logging
from typing import List, Optional, Sequence

from .config import TrackerConfig
from .constants import (
    CORECEIVER_MAX_FREQ_DELTA_HZ,
    NUM_SLOTS,
    SLOT_WINDOW_SECONDS,
    TrackerType,
)
from .decoders import is_extended_telemetry_report
from .models import Receiver, Report, Spot

logger = logging.getLogger(__name__)


def find_coreceiver(rx1: Sequence[Receiver], rx2: Sequence[Receiver],
                    max_delta_hz: int = CORECEIVER_MAX_FREQ_DELTA_HZ) -> bool:
    """
    Check whether any receiver heard both messages on a similar frequency.

    Both receiver lists must be sorted by callsign.
    """
    i = 0
    j = 0
    while i < len(rx1) and j < len(rx2):
        r1 = rx1[i]
        r2 = rx2[j]
        if r1.callsign == r2.callsign:
            if abs(r1.frequency_hz - r2.frequency_hz) <= max_delta_hz:
                return True
            i += 1
            j += 1
        elif r1.callsign < r2.callsign:
            i += 1
        else:
            j += 1
    return False


def _u4b_matches(sequence: List[Optional[Report]], slot: int, report: Report) -> bool:
    for earlier in sequence[:slot]:
        if earlier is not None and find_coreceiver(earlier.receivers, report.receivers):
            return True

    if slot >= 2 and len(report.callsign) == 6 and is_extended_telemetry_report(report):
        logger.debug(f"Attaching {report.callsign} at {report.timestamp} "
                     f"to slot {slot} on timing alone")
        return True
    return False


def _slot_matches(sequence: List[Optional[Report]], slot: int, report: Report,
                  tracker: TrackerType) -> bool:
    if tracker.is_dual:
        return True
    if tracker == TrackerType.WB8ELK:
        return sequence[0].locator == report.locator
    if tracker == TrackerType.U4B:
        return _u4b_matches(sequence, slot, report)
    return False


def match_spots(reports: Sequence[Report], config: TrackerConfig) -> List[Spot]:
    """
    Group reports into spots.

    Args:
        reports: Reports sorted by (timestamp, callsign)
        config: Tracker configuration

    Returns:
        Spots in timestamp order, each with slot 0 set
    """
    tracker = config.tracker
    if tracker == TrackerType.UNKNOWN:
        return [Spot(slots=(report,) + (None,) * (NUM_SLOTS - 1), timestamp=report.timestamp)
                for report in reports]

    sequences: List[List[Optional[Report]]] = []
    current: Optional[List[Optional[Report]]] = None
    dropped = 0

    for report in reports:
        slot = config.channel.slot_for_minute(report.timestamp.minute)
        if slot is None:
            logger.debug(f"Ignoring {report.callsign} at {report.timestamp}: odd minute")
            dropped += 1
            continue

        if slot == 0:
            if current is None or current[0].timestamp != report.timestamp:
                current = [report] + [None] * (NUM_SLOTS - 1)
                sequences.append(current)
            continue

        if (current is not None and
                (report.timestamp - current[0].timestamp).total_seconds() < SLOT_WINDOW_SECONDS and
                current[slot] is None and
                _slot_matches(current, slot, report, tracker)):
            current[slot] = report
        else:
            dropped += 1

    logger.debug(f"Matched {len(sequences)} spots, {dropped} reports unattached")
    return [Spot(slots=tuple(sequence), timestamp=sequence[0].timestamp)
            for sequence in sequences]
