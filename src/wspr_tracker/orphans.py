#!/usr/bin/env python3
"""
Orphaned telemetry reconstruction

U4B telemetry slots are only attached to a spot when the slot 0 location
message was received. When it was not, the telemetry is still useful (for
example voltage and temperature during a night with few receivers). This
module turns every unattached slot 1-4 report into a location-less spot.
"""

import logging
from dataclasses import replace
from typing import List, Sequence

from .config import TrackerConfig
from .constants import NUM_SLOTS, TrackerType
from .decoders import (
    decode_basic_telemetry,
    extended_telemetry_value,
    extract_payload,
    interpret_extended_telemetry,
)
from .models import Report, Spot

logger = logging.getLogger(__name__)


def _orphan_spot(report: Report, slot: int, config: TrackerConfig) -> Spot:
    slots = [None] * NUM_SLOTS
    slots[slot] = report
    spot = Spot(slots=tuple(slots), timestamp=report.timestamp, is_orphaned=True)

    try:
        m, n = extract_payload(report)
    except ValueError as e:
        logger.debug(f"Orphaned slot {slot} report {report.callsign} at "
                     f"{report.timestamp}: {e}")
        return spot

    if slot == 1:
        basic = decode_basic_telemetry(m, n, config.scale_voltage)
        if basic is not None:
            spot = replace(spot, altitude_m=basic.altitude_m, speed_kph=basic.speed_kph,
                           voltage_v=basic.voltage_v, temperature_c=basic.temperature_c)
    elif n % 2 == 0:
        spot = replace(spot, raw_extended_telemetry={slot: extended_telemetry_value(m, n)})

    return interpret_extended_telemetry(spot, config)


def create_orphaned_spots(reports: Sequence[Report], spots: Sequence[Spot],
                          config: TrackerConfig) -> List[Spot]:
    """
    Build spots from telemetry reports that no spot claimed.

    Args:
        reports: All reports in (timestamp, callsign) order
        spots: Spots produced from the same reports
        config: Tracker configuration (only U4B trackers produce orphans)

    Returns:
        Orphaned spots in timestamp order
    """
    if config.tracker != TrackerType.U4B:
        return []

    used = {report.key for spot in spots for _, report in spot.attached_slots()}
    orphans = []
    for report in reports:
        if report.key in used:
            continue
        slot = config.channel.slot_for_minute(report.timestamp.minute)
        if slot is None or not 1 <= slot < NUM_SLOTS:
            continue
        orphans.append(_orphan_spot(report, slot, config))

    logger.debug(f"Reconstructed {len(orphans)} orphaned telemetry spots")
    return orphans
