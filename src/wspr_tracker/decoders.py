#!/usr/bin/env python3
"""
Protocol Decoders

Decodes the telemetry carried by an assembled spot into physical fields.
Each tracker protocol has one decode function, selected once per spot from
the configured tracker type.

U4B payload layout (https://qrp-labs.com/flights/s4.html):
    Telemetry messages use callsigns from the Q/0/1 space. Callsign characters
    2, 4, 5 and 6 encode m; locator and power encode n. An odd n is a basic
    telemetry message (subsquare, altitude, speed, voltage, temperature); an
    even n carries an extended telemetry value (m * 615600 + n) // 2.

Note: the voltage formula published for U4B is incorrect; the one used here
matches what the trackers transmit.
"""

import logging
import re
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Tuple

from .config import TrackerConfig
from .constants import (
    ALTITUDE_STEPS,
    ENHANCED_LOCATOR_CHANNEL,
    GRID_PAIR_SPACE,
    NUM_SLOTS,
    TrackerType,
    WSPR_POWERS,
    power_index,
)
from .grid import locator_to_coords
from .models import Report, Spot

logger = logging.getLogger(__name__)

_WB8ELK_SUBSQUARE = re.compile(r'^[A-X]{2}$', re.IGNORECASE)


# =============================================================================
# PAYLOAD PRIMITIVES
# =============================================================================

def char_to_num(c: str, alphanum: bool = False) -> int:
    """
    Offset of c in A-Z, or in 0-9A-Z when alphanum is set.

    Raises:
        ValueError: If c is outside the alphabet
    """
    c = c.upper()
    if alphanum and c.isdigit():
        return ord(c) - ord('0')
    if 'A' <= c <= 'Z':
        return ord(c) - ord('A') + (10 if alphanum else 0)
    raise ValueError(f"Unexpected payload character {c!r}")


def extract_payload(report: Report) -> Tuple[int, int]:
    """
    Extract the (m, n) payload of a U4B telemetry message.

    Raises:
        ValueError: If the callsign, locator or power cannot carry a payload
    """
    cs = report.callsign
    locator = report.locator
    if len(cs) != 6:
        raise ValueError(f"Telemetry callsign must have 6 characters: {cs!r}")
    if len(locator) < 4 or not locator[2:4].isdigit():
        raise ValueError(f"Telemetry locator must start with a 4 character square: {locator!r}")

    m = ((char_to_num(cs[1], True) * 26 + char_to_num(cs[3])) * 26 +
         char_to_num(cs[4])) * 26 + char_to_num(cs[5])
    n = (((char_to_num(locator[0]) * 18 + char_to_num(locator[1])) * 10 +
          char_to_num(locator[2], True)) * 10 +
         char_to_num(locator[3], True)) * 19 + power_index(report.power)
    return m, n


@dataclass(frozen=True)
class BasicTelemetry:
    """Fields of a U4B basic telemetry message"""
    subsquare: str
    altitude_m: float
    speed_kph: float
    voltage_v: float
    temperature_c: float


def decode_basic_telemetry(m: int, n: int, scale_voltage: bool = False) -> Optional[BasicTelemetry]:
    """
    Decode a U4B basic telemetry payload.

    Returns:
        BasicTelemetry, or None if n is even (not basic telemetry) or the
        GPS validity bit is clear
    """
    if n % 2 == 0:
        return None
    if (n // 2) % 2 == 0:
        return None

    p = m // ALTITUDE_STEPS
    voltage = ((n // 168 + 20) % 40) * 0.05 + 3
    if scale_voltage:
        voltage -= 2

    return BasicTelemetry(
        subsquare=chr(97 + p // 24) + chr(97 + p % 24),
        altitude_m=(m % ALTITUDE_STEPS) * 20,
        speed_kph=((n // 4) % 42) * 2 * 1.852,
        voltage_v=voltage,
        temperature_c=(n // 6720) % 90 - 50,
    )


def extended_telemetry_value(m: int, n: int) -> int:
    """
    Packed value of a U4B extended telemetry message.

    Raises:
        ValueError: If n is odd (a basic telemetry message)
    """
    if n % 2:
        raise ValueError("Not an extended telemetry message (odd n)")
    return (m * GRID_PAIR_SPACE + n) // 2


def is_extended_telemetry_report(report: Report) -> bool:
    """True if the report decodes as an extended telemetry message"""
    try:
        _, n = extract_payload(report)
    except ValueError:
        return False
    return n % 2 == 0


def enhanced_locator(value: Optional[float], locator: Optional[str]) -> Optional[str]:
    """
    Extend a 6 character locator with the two digits of an ET location value.

    Returns:
        The 8 character locator, or None if value is not 0-99 or the
        locator has fewer than 6 characters
    """
    if value is None or not locator or len(locator) < 6:
        return None
    value = int(value // 1)
    if not 0 <= value < 100:
        return None
    return f"{locator}{value // 10}{value % 10}"


# =============================================================================
# PER-PROTOCOL DECODERS
# =============================================================================

def _decode_unknown(spot: Spot, config: TrackerConfig) -> Optional[Spot]:
    return spot


def _decode_generic_single(spot: Spot, config: TrackerConfig) -> Optional[Spot]:
    return spot


def _decode_zachtek_single(spot: Spot, config: TrackerConfig) -> Optional[Spot]:
    return replace(spot, altitude_m=spot.slots[0].power * 300)


def _decode_dual(spot: Spot, config: TrackerConfig) -> Optional[Spot]:
    # Slot 0 (type 2) locations are guessed by the network, and type 3 messages
    # alone risk 15-bit callsign hash collisions, so slot 1 is required.
    slot1 = spot.slots[1]
    if slot1 is None:
        logger.debug(f"Dropping {spot.timestamp}: no type 3 message in slot 1")
        return None

    altitude = None
    if config.tracker == TrackerType.ZACHTEK_DUAL:
        altitude = spot.slots[0].power * 300 + slot1.power * 20
    return replace(spot, locator=slot1.locator, altitude_m=altitude)


def _decode_wb8elk(spot: Spot, config: TrackerConfig) -> Optional[Spot]:
    try:
        altitude = 1000 * power_index(spot.slots[0].power)
    except ValueError as e:
        logger.debug(f"WB8ELK slot 0 at {spot.timestamp}: {e}")
        altitude = None
    spot = replace(spot, altitude_m=altitude)

    slot1 = spot.slots[1]
    if slot1 is None:
        return spot

    if len(slot1.callsign) == 6 and slot1.power in WSPR_POWERS:
        # The altitude increment applies even when the subsquare is rejected
        if altitude is not None:
            spot = replace(spot, altitude_m=altitude + 60 * power_index(slot1.power))

        suffix = slot1.callsign[4:6]
        if slot1.locator[:4] == spot.locator and _WB8ELK_SUBSQUARE.match(suffix):
            return replace(
                spot,
                locator=spot.locator + suffix.lower(),
                voltage_v=3.3 + (ord(slot1.callsign[3].upper()) - ord('A')) * 0.1,
            )

    logger.debug(f"Invalid WB8ELK slot 1 at {spot.timestamp}: {slot1.callsign} {slot1.locator}")
    return replace(spot, invalid_slots=spot.invalid_slots | {1})


def _decode_u4b(spot: Spot, config: TrackerConfig) -> Optional[Spot]:
    invalid = set(spot.invalid_slots)
    raw_et: Dict[int, int] = {}
    fields = {}

    slot1 = spot.slots[1]
    if slot1 is not None:
        try:
            m, n = extract_payload(slot1)
            if n % 2:
                basic = decode_basic_telemetry(m, n, config.scale_voltage)
                if basic is None:
                    raise ValueError("GPS validity bit clear")
                fields = dict(
                    locator=spot.locator + basic.subsquare,
                    altitude_m=basic.altitude_m,
                    speed_kph=basic.speed_kph,
                    voltage_v=basic.voltage_v,
                    temperature_c=basic.temperature_c,
                )
            elif config.fetch_et == 0:
                # Channel requested E0: slot 1 may carry extended telemetry
                raw_et[1] = extended_telemetry_value(m, n)
            else:
                raise ValueError("Extended telemetry in slot 1 without E0 channel")
        except ValueError as e:
            logger.debug(f"Invalid U4B slot 1 at {spot.timestamp}: {e}")
            invalid.add(1)

    for i in range(2, NUM_SLOTS):
        report = spot.slots[i]
        if report is None:
            continue
        try:
            raw_et[i] = extended_telemetry_value(*extract_payload(report))
        except ValueError as e:
            logger.debug(f"Invalid U4B slot {i} at {spot.timestamp}: {e}")
            invalid.add(i)
            break

    return replace(spot, invalid_slots=frozenset(invalid),
                   raw_extended_telemetry=raw_et, **fields)


DECODERS: Dict[TrackerType, Callable[[Spot, TrackerConfig], Optional[Spot]]] = {
    TrackerType.UNKNOWN: _decode_unknown,
    TrackerType.GENERIC_SINGLE: _decode_generic_single,
    TrackerType.GENERIC_DUAL: _decode_dual,
    TrackerType.ZACHTEK_SINGLE: _decode_zachtek_single,
    TrackerType.ZACHTEK_DUAL: _decode_dual,
    TrackerType.U4B: _decode_u4b,
    TrackerType.WB8ELK: _decode_wb8elk,
}


# =============================================================================
# SPOT DECODING
# =============================================================================

def interpret_extended_telemetry(spot: Spot, config: TrackerConfig) -> Spot:
    """
    Run the configured ET program over a spot's raw values and apply the
    enhanced locator channel when it extends a 6 character locator.
    """
    if config.et_spec is None or not spot.raw_extended_telemetry:
        return spot

    values = config.et_spec.evaluate(spot.raw_extended_telemetry, spot.timestamp)
    spot = replace(spot, decoded_extended_telemetry=values)

    extended = enhanced_locator(spot.extended_channel(ENHANCED_LOCATOR_CHANNEL), spot.locator)
    if extended:
        coords = locator_to_coords(extended)
        if coords:
            spot = replace(spot, locator=extended, latitude=coords[0], longitude=coords[1])
    return spot


def decode_spot(spot: Spot, config: TrackerConfig) -> Optional[Spot]:
    """
    Decode one matched spot.

    Returns:
        A new, decoded Spot, or None if the spot must be discarded
    """
    base = spot.slots[0]
    locator = base.locator if config.tracker == TrackerType.UNKNOWN else base.locator[:4]
    spot = replace(spot, timestamp=base.timestamp, locator=locator)

    spot = DECODERS[config.tracker](spot, config)
    if spot is None:
        return None

    coords = locator_to_coords(spot.locator) if spot.locator else None
    if coords:
        spot = replace(spot, latitude=coords[0], longitude=coords[1])

    return interpret_extended_telemetry(spot, config)


def decode_spots(spots: List[Spot], config: TrackerConfig) -> List[Spot]:
    """Decode matched spots, dropping the ones that fail structurally"""
    decoded = []
    for spot in spots:
        result = decode_spot(spot, config)
        if result is not None:
            decoded.append(result)

    logger.debug(f"Decoded {len(decoded)} of {len(spots)} spots")
    return decoded
