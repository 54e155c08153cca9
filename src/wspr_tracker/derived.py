#!/usr/bin/env python3
"""
Derived Metrics - Fields computed across the decoded spot sequence

Runs once over the complete, time-ordered list of decoded spots and adds:

- vertical speed (m/min) between consecutive spots with a non-zero altitude
- computed speed (km/h) between consecutive good position fixes
- sun elevation at the spot position
- receiver statistics (distinct receivers, max distance, max SNR)
- the slot 0 power for trackers that do not encode data in it

Computed speed gating:
    A fix is good when its locator has at least 6 characters, coordinates are
    resolved and the satellite count channel (if decoded) is not 0. Both
    locators are truncated to the shorter precision before measuring. The
    locator uncertainty (4 km at 6 characters, 0.2 km at 8) bounds the speed
    range; a candidate is accepted when the speed is at most 350 km/h and
    either that range is narrow enough (50 / 20 km/h) or the speed is at
    most 300 km/h. Rejected candidates do not replace the last good fix.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Tuple

import numpy as np

from .config import TrackerConfig
from .constants import (
    LOCATOR_UNCERTAINTY_KM,
    MAX_COMPUTED_SPEED_KPH,
    MAX_SPEED_UNCERTAINTY_KPH,
    NO_RECEIVER_SNR_DB,
    PLAUSIBLE_COMPUTED_SPEED_KPH,
    POWER_REPORTING_TRACKERS,
    SATELLITE_COUNT_CHANNEL,
    TrackerType,
)
from .grid import distances_from, great_circle_distance_m, locator_to_coords
from .models import Spot
from .solar import sun_elevation

logger = logging.getLogger(__name__)


# =============================================================================
# RECEIVER STATISTICS
# =============================================================================

def receiver_stats(spot: Spot) -> Tuple[int, float, int]:
    """
    Receiver statistics over all slots of a spot.

    Returns:
        (distinct receiver count, max distance to a receiver locator in
        meters, max SNR in dB). Distance is 0 when the spot has no position
        and SNR is -100 when there are no receivers.
    """
    callsigns = set()
    locators = set()
    max_snr = NO_RECEIVER_SNR_DB

    for _, report in spot.attached_slots():
        for rx in report.receivers:
            callsigns.add(rx.callsign)
            locators.add(rx.locator)
            max_snr = max(max_snr, rx.snr_db)

    max_distance = 0.0
    if spot.has_position and locators:
        points = [coords for coords in map(locator_to_coords, sorted(locators))
                  if coords is not None]
        if points:
            distances = distances_from(spot.latitude, spot.longitude, np.array(points))
            max_distance = float(distances.max())

    return len(callsigns), max_distance, max_snr


# =============================================================================
# COMPUTED SPEED
# =============================================================================

def computed_speed_accepted(distance_km: float, elapsed_s: float, locator_length: int) -> bool:
    """
    Gate a computed speed candidate.

    Args:
        distance_km: Distance between the two fixes
        elapsed_s: Time between the two fixes (must be > 0)
        locator_length: Precision both locators were truncated to (6 or 8)

    Returns:
        True if the resulting speed should be reported
    """
    precision = 8 if locator_length >= 8 else 6
    uncertainty_km = LOCATOR_UNCERTAINTY_KM[precision]

    speed = distance_km * 3600 / elapsed_s
    min_speed = max(distance_km - uncertainty_km, 0) * 3600 / elapsed_s
    max_speed = (distance_km + uncertainty_km) * 3600 / elapsed_s

    if speed > MAX_COMPUTED_SPEED_KPH:
        return False
    return (max_speed - min_speed <= MAX_SPEED_UNCERTAINTY_KPH[precision] or
            0 <= speed <= PLAUSIBLE_COMPUTED_SPEED_KPH)


def _is_good_fix(spot: Spot) -> bool:
    if not spot.locator or len(spot.locator) < 6 or not spot.has_position:
        return False
    # Satellite count 0 means the tracker had no GPS fix
    return spot.extended_channel(SATELLITE_COUNT_CHANNEL) != 0


def _fix_position(spot: Spot, length: int) -> Tuple[float, float]:
    if len(spot.locator) == length:
        return spot.latitude, spot.longitude
    return locator_to_coords(spot.locator[:length])


def computed_speed(previous: Spot, current: Spot) -> Optional[float]:
    """
    Ground speed between two good fixes.

    Returns:
        Speed in km/h, or None if the candidate fails the plausibility gate
    """
    length = min(len(previous.locator), len(current.locator))
    lat1, lon1 = _fix_position(previous, length)
    lat2, lon2 = _fix_position(current, length)

    distance_km = great_circle_distance_m(lat1, lon1, lat2, lon2) / 1000
    elapsed_s = (current.timestamp - previous.timestamp).total_seconds() or 0.001

    if not computed_speed_accepted(distance_km, elapsed_s, length):
        logger.debug(f"Rejected computed speed {previous.locator} -> {current.locator} "
                     f"at {current.timestamp}: {distance_km:.1f} km in {elapsed_s:.0f} s")
        return None
    return distance_km * 3600 / elapsed_s


# =============================================================================
# SEQUENCE PASS
# =============================================================================

def vertical_speed(previous: Spot, current: Spot) -> float:
    """Altitude change in meters per minute"""
    elapsed_ms = (current.timestamp - previous.timestamp).total_seconds() * 1000 or 1
    return (current.altitude_m - previous.altitude_m) * 60000 / elapsed_ms


def compute_derived_metrics(spots: List[Spot], config: TrackerConfig) -> List[Spot]:
    """
    Annotate decoded spots with derived metrics.

    Args:
        spots: Decoded spots in timestamp order (orphaned spots may be mixed in)
        config: Tracker configuration

    Returns:
        New Spot records carrying the derived fields
    """
    derived = []
    last_altitude_spot: Optional[Spot] = None
    last_good_fix: Optional[Spot] = None
    accepted = 0

    for spot in spots:
        fields = {}

        if config.tracker in POWER_REPORTING_TRACKERS and spot.base is not None:
            fields['power_dbm'] = spot.base.power

        if last_altitude_spot is not None and spot.altitude_m:
            fields['vertical_speed_m_per_min'] = vertical_speed(last_altitude_spot, spot)

        if config.tracker != TrackerType.UNKNOWN and _is_good_fix(spot):
            if last_good_fix is None:
                last_good_fix = spot
            else:
                speed = computed_speed(last_good_fix, spot)
                if speed is not None:
                    fields['computed_speed_kph'] = speed
                    last_good_fix = spot
                    accepted += 1

        if spot.altitude_m:
            last_altitude_spot = spot

        if spot.has_position:
            fields['sun_elevation_deg'] = sun_elevation(spot.timestamp, spot.latitude,
                                                        spot.longitude)

        num_rx, max_distance, max_snr = receiver_stats(spot)
        fields.update(receiver_count=num_rx, max_receiver_distance_m=max_distance,
                      max_snr_db=max_snr)

        derived.append(replace(spot, **fields))

    logger.debug(f"Derived metrics for {len(derived)} spots, "
                 f"{accepted} computed speeds accepted")
    return derived
