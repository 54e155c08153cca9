"""
WSPR tracker data models

- Receiver: one receiving station's report of a transmission
- Report: one decoded WSPR message with all of its receivers
- Spot: an assembled transmission sequence (slots 0-4) and its decoded fields

Reports and spots are immutable. Each pipeline stage returns new Spot records
built with dataclasses.replace().
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Optional, Tuple

from .constants import NUM_SLOTS


@dataclass(frozen=True)
class Receiver:
    """A single reception of a report"""
    callsign: str
    locator: str
    frequency_hz: int
    snr_db: int


@dataclass(frozen=True)
class Report:
    """
    One WSPR message as reported by the receiving network.

    Identity is (timestamp, callsign). Receivers are kept sorted by callsign.
    """
    timestamp: datetime       # UTC, minute resolution
    callsign: str
    locator: str              # 4/6 character locator or empty
    power: int                # dBm
    receivers: Tuple[Receiver, ...] = ()

    @property
    def key(self) -> Tuple[datetime, str]:
        return (self.timestamp, self.callsign)


EMPTY_SLOTS: Tuple[Optional[Report], ...] = (None,) * NUM_SLOTS


@dataclass(frozen=True)
class Spot:
    """
    An assembled transmission sequence and everything decoded from it.

    slots[0] is the base message and provides the canonical timestamp.
    Slots listed in invalid_slots failed to decode but are retained.
    Orphaned spots (telemetry with no base message) have slots[0] set to None.
    """
    slots: Tuple[Optional[Report], ...] = EMPTY_SLOTS
    invalid_slots: FrozenSet[int] = frozenset()
    timestamp: Optional[datetime] = None
    is_orphaned: bool = False

    # Position / basic telemetry (Protocol Decoders)
    locator: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude_m: Optional[float] = None
    speed_kph: Optional[float] = None
    voltage_v: Optional[float] = None
    temperature_c: Optional[float] = None

    # Extended telemetry: slot index -> packed value, and interpreted channels
    raw_extended_telemetry: Dict[int, int] = field(default_factory=dict)
    decoded_extended_telemetry: Tuple[Optional[float], ...] = ()

    # Derived Metrics
    power_dbm: Optional[int] = None
    computed_speed_kph: Optional[float] = None
    vertical_speed_m_per_min: Optional[float] = None
    sun_elevation_deg: Optional[int] = None
    receiver_count: Optional[int] = None
    max_receiver_distance_m: Optional[float] = None
    max_snr_db: Optional[int] = None

    @property
    def base(self) -> Optional[Report]:
        return self.slots[0]

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def attached_slots(self):
        """Yield (slot index, report) for every occupied slot"""
        for index, report in enumerate(self.slots):
            if report is not None:
                yield index, report

    def extended_channel(self, index: int) -> Optional[float]:
        """Decoded extended telemetry channel value, None if not present"""
        if 0 <= index < len(self.decoded_extended_telemetry):
            return self.decoded_extended_telemetry[index]
        return None
