#!/usr/bin/env python3
"""
Tests for channel code resolution and slot scheduling
"""

import pytest

from wspr_tracker.channel import band_offset, resolve_channel, slot_minute
from wspr_tracker.constants import TrackerType


class TestSlotSchedule:
    """Tests for slot minute arithmetic"""

    def test_band_offsets(self):
        assert band_offset('20m') == 8
        assert band_offset('40m') == 0
        assert band_offset('2200m') == 0

    def test_unknown_band(self):
        with pytest.raises(ValueError):
            band_offset('11m')

    def test_slot_minutes(self):
        assert [slot_minute(0, 0, s) for s in range(5)] == [0, 2, 4, 6, 8]
        assert [slot_minute(123, 8, s) for s in range(5)] == [4, 6, 8, 0, 2]

    def test_slot_for_minute(self):
        channel = resolve_channel('123', '20m')
        assert channel.slot_for_minute(4) == 0
        assert channel.slot_for_minute(14) == 0
        assert channel.slot_for_minute(0) == 3
        assert channel.slot_for_minute(2) == 4
        assert channel.slot_for_minute(5) is None


class TestResolveChannel:
    """Tests for the channel code grammar"""

    def test_empty_is_unknown(self):
        channel = resolve_channel('', '20m')
        assert channel.tracker == TrackerType.UNKNOWN

    def test_u4b_channel(self):
        channel = resolve_channel('123', '20m')
        assert channel.tracker == TrackerType.U4B
        assert channel.channel == 123
        assert channel.fetch_et is None

    def test_extended_telemetry_suffix(self):
        assert resolve_channel('123E2', '20m').fetch_et == 2
        assert resolve_channel('123e0', '20m').fetch_et == 0
        assert resolve_channel('123E', '20m').fetch_et == 1

    @pytest.mark.parametrize('code,tracker', [
        ('g4', TrackerType.GENERIC_SINGLE),
        ('G4', TrackerType.GENERIC_DUAL),
        ('z4', TrackerType.ZACHTEK_SINGLE),
        ('Z4', TrackerType.ZACHTEK_DUAL),
    ])
    def test_letter_codes(self, code, tracker):
        channel = resolve_channel(code, '20m')
        assert channel.tracker == tracker
        # Starting minute 4 on a band with offset 8
        assert channel.slot_minute(0) == 4

    def test_letter_code_starting_minute(self):
        for digit in '02468':
            channel = resolve_channel(f'z{digit}', '40m')
            assert channel.slot_minute(0) == int(digit)

    def test_extended_channel_space(self):
        channel = resolve_channel('UQ34', '20m')
        assert channel.tracker == TrackerType.U4B
        assert channel.channel == 2 * 200 + 3 * 20 + 3
        assert channel.slot_minute(0) == 4

        channel = resolve_channel('w106', '40m')
        assert channel.tracker == TrackerType.WB8ELK
        assert channel.channel == 200 + 3
        assert channel.slot_minute(0) == 6

    @pytest.mark.parametrize('code', [
        'g5',       # odd starting minute
        'Z44',      # starting minute is one digit
        'UA34',     # first char outside Q/0/1
        'U031',     # odd starting minute
        'X4',       # unknown tracker letter
        '600',      # channel out of range
        '12E4',     # too many ET slots
        '12-3',
        '\u0661\u0662\u0663',  # non-ASCII digits
        '12E\u0662',
    ])
    def test_invalid_codes(self, code):
        with pytest.raises(ValueError):
            resolve_channel(code, '20m')

    def test_invalid_band(self):
        with pytest.raises(ValueError):
            resolve_channel('123', '7m')
