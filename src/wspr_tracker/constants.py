#!/usr/bin/env python3
"""
WSPR Tracker Shared Constants

Centralizes band schedules, the legal power table and the tracker protocol
enumeration used across the decoding modules.

Reference: QRP Labs U4B telemetry description (https://qrp-labs.com/flights/s4.html)
"""

from enum import Enum
from typing import Dict, List, Tuple

# =============================================================================
# BAND SCHEDULES
# =============================================================================

# band -> (U4B starting minute offset, report database band id)
BAND_INFO: Dict[str, Tuple[int, int]] = {
    '2200m': (0, -1),
    '630m': (4, 0),
    '160m': (8, 1),
    '80m': (2, 3),
    '60m': (6, 5),
    '40m': (0, 7),
    '30m': (4, 10),
    '20m': (8, 14),
    '17m': (2, 18),
    '15m': (6, 21),
    '12m': (0, 24),
    '10m': (4, 28),
    '6m': (8, 50),
    '4m': (2, 70),
    '2m': (6, 144),
    '70cm': (0, 432),
    '23cm': (4, 1296),
}

# =============================================================================
# MESSAGE FIELDS
# =============================================================================

# Legal WSPR power levels (dBm), ascending. A level's index is its power index.
WSPR_POWERS: List[int] = [0, 3, 7, 10, 13, 17, 20, 23, 27, 30, 33, 37, 40,
                          43, 47, 50, 53, 57, 60]

NUM_SLOTS = 5                  # Slots per transmission sequence
SLOT_MINUTES = 2               # Each slot is one 2-minute WSPR cycle
SLOT_WINDOW_SECONDS = 600      # Companion slots must follow slot 0 within this
CORECEIVER_MAX_FREQ_DELTA_HZ = 5

# U4B payload geometry
GRID_PAIR_SPACE = 615600       # 18 * 18 * 10 * 10 * 19, span of the n value
ALTITUDE_STEPS = 1068          # m = subsquare * 1068 + altitude / 20

# Decoded extended telemetry channel conventions
ENHANCED_LOCATOR_CHANNEL = 1   # Extra two locator digits (0-99)
SATELLITE_COUNT_CHANNEL = 3    # GPS satellites, 0 means no fix

# =============================================================================
# DERIVED METRIC LIMITS
# =============================================================================

EARTH_RADIUS_M = 6371000.0
MAX_COMPUTED_SPEED_KPH = 350
PLAUSIBLE_COMPUTED_SPEED_KPH = 300
LOCATOR_UNCERTAINTY_KM = {6: 4.0, 8: 0.2}
MAX_SPEED_UNCERTAINTY_KPH = {6: 50.0, 8: 20.0}
NO_RECEIVER_SNR_DB = -100

MAX_DATE_RANGE_DAYS = 366


class TrackerType(Enum):
    """Tracker protocols understood by the decoder"""
    UNKNOWN = "unknown"
    GENERIC_SINGLE = "generic1"
    GENERIC_DUAL = "generic2"
    ZACHTEK_SINGLE = "zachtek1"
    ZACHTEK_DUAL = "zachtek2"
    U4B = "u4b"
    WB8ELK = "wb8elk"

    @property
    def is_dual(self) -> bool:
        """Type 2 + type 3 message combos that need slot 1 for the location"""
        return self in (TrackerType.GENERIC_DUAL, TrackerType.ZACHTEK_DUAL)

    @property
    def uses_telemetry_space(self) -> bool:
        """Protocols that transmit slots 1+ from the Q/0/1 callsign space"""
        return self in (TrackerType.U4B, TrackerType.WB8ELK)


# Leading channel letter -> tracker type (letter case selects the variant)
CHANNEL_LETTER_TRACKERS: Dict[str, TrackerType] = {
    'g': TrackerType.GENERIC_SINGLE,
    'G': TrackerType.GENERIC_DUAL,
    'z': TrackerType.ZACHTEK_SINGLE,
    'Z': TrackerType.ZACHTEK_DUAL,
}

# Trackers whose slot 0 power is reported as a derived column
POWER_REPORTING_TRACKERS = (
    TrackerType.U4B,
    TrackerType.GENERIC_SINGLE,
    TrackerType.GENERIC_DUAL,
    TrackerType.UNKNOWN,
)


def power_index(power_dbm: int) -> int:
    """
    Rank of a power level in the legal WSPR power table.

    Raises:
        ValueError: If power_dbm is not a legal WSPR level
    """
    try:
        return WSPR_POWERS.index(power_dbm)
    except ValueError:
        raise ValueError(f"Illegal WSPR power level: {power_dbm} dBm") from None
