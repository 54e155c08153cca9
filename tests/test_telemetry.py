#!/usr/bin/env python3
"""
Tests for the extended telemetry interpreter
"""

import pytest

from wspr_tracker.config import build_config
from wspr_tracker.decoders import decode_spot
from wspr_tracker.models import Spot
from wspr_tracker.telemetry import (
    Extractor,
    SlotFilter,
    TimeFilter,
    ValueFilter,
    compile_et_spec,
    half_minute_of_day,
)

from helpers import BASIC_M, BASIC_N, et_report, report, telemetry_report, ts

SPEC = 'et0:0_1101:0:1,100:0:1,101:0:10,41:0:1'


def et0_value(slot, altitude, loc, temp, sats, et_type=0):
    """Pack values the way a U4B tracker does for the SPEC layout"""
    return (et_type * 4 + slot * 64 + altitude * 320 + loc * 320 * 1101 +
            temp * 320 * 1101 * 100 + sats * 320 * 1101 * 100 * 101)


class TestCompile:
    """Tests for ET spec compilation"""

    def test_et0_expansion(self):
        spec = compile_et_spec(SPEC)

        assert len(spec.decoders) == 1
        decoder = spec.decoders[0]
        assert decoder.filters == (
            ValueFilter(1, 4, 0),
            ValueFilter(4, 16, 0),
            ValueFilter(64, 5, None),
        )
        assert decoder.extractors == (
            Extractor(320, 1101, 0, 1),
            Extractor(352320, 100, 0, 1),
            Extractor(35232000, 101, 0, 10),
            Extractor(3558432000, 41, 0, 1),
        )
        assert spec.num_channels == 4

    def test_explicit_filters(self):
        spec = compile_et_spec('t:30:2:1,s:2,4:16:s_1:100:0:0.5~_7:10:-40:2.5')

        first, second = spec.decoders
        assert first.filters == (TimeFilter(30, 2, 1), SlotFilter(2), ValueFilter(4, 16, None))
        assert first.extractors == (Extractor(1, 100, 0, 0.5),)
        assert second.filters == ()
        assert second.extractors == (Extractor(7, 10, -40, 2.5),)

    def test_default_divisor_chain(self):
        spec = compile_et_spec('_10:0:1,20:0:1,5:0:1')
        assert [e.divisor for e in spec.decoders[0].extractors] == [1, 10, 200]

    def test_case_insensitive(self):
        assert compile_et_spec('ET0:0_1101:0:1') == compile_et_spec('et0:0_1101:0:1')

    @pytest.mark.parametrize('spec', [
        'et0:0',                  # no extractors
        'et0:0_1101:0:1_2:0:1',   # two separators
        'x:1_10:0:1',             # bad characters
        '3:1:0_10:0:1',           # modulus must exceed 1
        '0:4:0_10:0:1',           # divisor must be positive
        't:1:4_10:0:1',           # time filter needs three values
        '_0:10:0:1',              # extractor divisor below 1
        '_10:0:0',                # scale must be positive
        '_10:0',                  # too few extractor fields
        '_1.5:10:0:1',            # non-integer divisor
    ])
    def test_invalid_specs(self, spec):
        with pytest.raises(ValueError):
            compile_et_spec(spec)

    def test_display_attributes(self):
        spec = compile_et_spec(SPEC, labels='Alt,Loc,Temp,Sats', long_labels='Altitude',
                               units='m,,C,', resolutions='1,,2')

        assert spec.label(0) == 'Alt'
        assert spec.label(4) == 'ET4'
        assert spec.long_label(0) == 'Altitude'
        assert spec.long_label(2) == 'Temp'
        assert spec.unit(0) == 'm'
        assert spec.unit(1) is None
        assert spec.resolution(0) == 1
        assert spec.resolution(1) is None
        assert spec.format_value(0, 500) == '500.0m'
        assert spec.format_value(2, 20, append_units=False) == '20.00'
        assert spec.format_value(3, 7) == '7'

    @pytest.mark.parametrize('kwargs', [
        {'labels': 'Alt;Loc'},
        {'labels': 'x' * 32},
        {'units': 'm,degC/min'},
        {'resolutions': '4'},
        {'resolutions': '0'},
    ])
    def test_invalid_display_attributes(self, kwargs):
        with pytest.raises(ValueError):
            compile_et_spec(SPEC, **kwargs)


class TestEvaluate:
    """Tests for running a compiled spec"""

    def test_half_minute_of_day(self):
        assert half_minute_of_day(ts(0, 0)) == 0
        assert half_minute_of_day(ts(12, 4)) == 362
        assert half_minute_of_day(ts(23, 58)) == 719

    def test_et0_channels(self):
        spec = compile_et_spec(SPEC)
        raw = et0_value(slot=2, altitude=500, loc=45, temp=2, sats=7)

        assert spec.evaluate({2: raw}, ts(12, 0)) == (500, 45, 20, 7)

    def test_slot_mismatch_produces_nothing(self):
        spec = compile_et_spec(SPEC)
        raw = et0_value(slot=3, altitude=500, loc=45, temp=2, sats=7)

        assert spec.evaluate({2: raw}, ts(12, 0)) == ()

    def test_positions_advance_past_unmatched_decoders(self):
        spec = compile_et_spec('s:2_10:0:1,10:0:1~s:3_10:0:1')
        values = spec.evaluate({3: 7}, ts(12, 0))
        assert values == (None, None, 7)

    def test_multiple_slots(self):
        spec = compile_et_spec('s:2_10:0:1~s:3_10:0:1')
        # The output position carries over from slot to slot
        assert spec.evaluate({3: 8, 2: 5}, ts(12, 0)) == (5, None, 8)

    def test_time_filter(self):
        spec = compile_et_spec('t:1:2:0_100:0:1')
        assert spec.evaluate({2: 42}, ts(12, 0)) == (42,)
        assert spec.evaluate({2: 42}, ts(12, 2)) == ()


class TestEnhancedLocator:
    """Tests for the ET location extension"""

    def test_eight_character_locator(self):
        config = build_config('N0CALL', '40m', channel='0E1', et_spec=SPEC)
        raw = et0_value(slot=2, altitude=500, loc=45, temp=2, sats=7)
        base = report(ts(12, 0), 'N0CALL', 'FN20', 37)
        spot = Spot(slots=(
            base,
            telemetry_report(ts(12, 2), BASIC_M, BASIC_N),
            et_report(ts(12, 4), raw),
            None,
            None,
        ), timestamp=base.timestamp)

        spot = decode_spot(spot, config)

        assert spot.raw_extended_telemetry == {2: raw}
        assert spot.decoded_extended_telemetry == (500, 45, 20, 7)
        assert spot.locator == 'FN20aa45'
        assert spot.latitude == pytest.approx(40.0 + 5 / 240 + 1 / 480)
        assert spot.longitude == pytest.approx(-76.0 + 4 / 120 + 1 / 240)

    def test_no_extension_without_subsquare(self):
        config = build_config('N0CALL', '40m', channel='0E1', et_spec=SPEC)
        raw = et0_value(slot=2, altitude=500, loc=45, temp=2, sats=7)
        base = report(ts(12, 0), 'N0CALL', 'FN20', 37)
        spot = Spot(slots=(base, None, et_report(ts(12, 4), raw), None, None),
                    timestamp=base.timestamp)

        spot = decode_spot(spot, config)

        assert spot.decoded_extended_telemetry == (500, 45, 20, 7)
        assert spot.locator == 'FN20'
