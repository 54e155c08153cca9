#!/usr/bin/env python3
"""
Channel Specification - Tracker type, channel and slot schedule

A short human-entered channel code selects the tracker protocol and the
U4B-equivalent channel. Together with the band's starting-minute offset the
channel determines on which minute of each 10-minute frame every slot is
transmitted.

Accepted channel codes:
    ""          unknown tracker, every report is its own spot
    g4 / G4     generic single / dual message tracker starting on minute 4
    z4 / Z4     Zachtek single / dual message tracker starting on minute 4
    UQ34 / W034 U4B / WB8ELK channel in the extended Q/0/1 callsign space
    123, 123E2  U4B channel 0-599, optionally with 0-3 extended telemetry slots
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .constants import BAND_INFO, CHANNEL_LETTER_TRACKERS, NUM_SLOTS, TrackerType

logger = logging.getLogger(__name__)

_STARTING_MINUTE = re.compile(r'^[02468]$')
_EXTENDED_CHANNEL = re.compile(r'^[Q01][0-9][02468]$', re.IGNORECASE)
_U4B_CHANNEL = re.compile(r'^([0-9]+)(E([0-9]?))?$', re.IGNORECASE)

MAX_U4B_CHANNEL = 599
MAX_FETCH_ET = 3


def band_offset(band: str) -> int:
    """Starting minute offset (0/2/4/6/8) of a band"""
    try:
        return BAND_INFO[band][0]
    except KeyError:
        raise ValueError(f"Invalid band: {band!r}") from None


def slot_minute(channel: int, offset: int, slot: int) -> int:
    """Minute of the 10-minute frame on which a slot is transmitted"""
    return (offset + ((channel % 5) + slot) * 2) % 10


@dataclass(frozen=True)
class ChannelCode:
    """
    Resolved channel code.

    Attributes:
        tracker: Tracker protocol
        channel: U4B-equivalent channel number
        offset: Starting minute offset of the band
        fetch_et: Extended telemetry slots requested with an E suffix
            (None when no suffix was given)
    """
    tracker: TrackerType
    channel: int
    offset: int
    fetch_et: Optional[int] = None

    def slot_minute(self, slot: int) -> int:
        return slot_minute(self.channel, self.offset, slot)

    def slot_for_minute(self, minute: int) -> Optional[int]:
        """
        Slot index transmitted on a minute of the hour.

        Returns:
            Slot 0-4, or None for an odd minute that no slot starts on
        """
        delta = (minute - self.slot_minute(0) + 10) % 10
        if delta % 2:
            return None
        return delta // 2

    @property
    def slot_minutes(self):
        return [self.slot_minute(slot) for slot in range(NUM_SLOTS)]


def _letter_code_channel(digit: str, offset: int) -> int:
    """Convert a starting minute digit to an equivalent U4B channel"""
    return ((int(digit) - offset) // 2 + 5) % 5


def resolve_channel(raw_channel: str, band: str) -> ChannelCode:
    """
    Parse a channel code for a band.

    Args:
        raw_channel: Channel code as entered, e.g. "123", "123E2", "Z4", "WQ34"
        band: Band name, e.g. "20m"

    Returns:
        ChannelCode

    Raises:
        ValueError: If the band is unknown or the channel code is malformed
            or out of range
    """
    offset = band_offset(band)
    raw_channel = raw_channel.strip()

    if raw_channel == '':
        return ChannelCode(TrackerType.UNKNOWN, 0, offset)

    if len(raw_channel) > 1 and raw_channel[0].isalpha():
        letter = raw_channel[0]
        rest = raw_channel[1:]

        if letter in CHANNEL_LETTER_TRACKERS:
            if not _STARTING_MINUTE.match(rest):
                raise ValueError(
                    f"Starting minute should be one of 0, 2, 4, 6 or 8: {raw_channel!r}")
            return ChannelCode(CHANNEL_LETTER_TRACKERS[letter],
                               _letter_code_channel(rest, offset), offset)

        if letter in 'uUwW':
            if not _EXTENDED_CHANNEL.match(rest):
                raise ValueError(f"Incorrect U/W channel format: {raw_channel!r}")
            channel = (
                '01Q'.index(rest[0].upper()) * 200 +
                int(rest[1]) * 20 +
                _letter_code_channel(rest[2], offset)
            )
            tracker = TrackerType.WB8ELK if letter in 'wW' else TrackerType.U4B
            return ChannelCode(tracker, channel, offset)

        raise ValueError(f"Unknown tracker type: {letter!r}")

    match = _U4B_CHANNEL.match(raw_channel)
    if not match:
        raise ValueError(f"Invalid U4B channel: {raw_channel!r}")

    channel = int(match.group(1))
    fetch_et = None
    if match.group(2):
        fetch_et = int(match.group(3)) if match.group(3) else 1

    if channel > MAX_U4B_CHANNEL or (fetch_et is not None and fetch_et > MAX_FETCH_ET):
        raise ValueError(f"Invalid U4B channel: {raw_channel!r}")

    return ChannelCode(TrackerType.U4B, channel, offset, fetch_et)
