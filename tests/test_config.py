#!/usr/bin/env python3
"""
Tests for tracker configuration
"""

from datetime import date

import pytest

from wspr_tracker.config import build_config, load_config, parse_date
from wspr_tracker.constants import TrackerType


class TestBuildConfig:
    """Tests for build_config validation"""

    def test_defaults(self):
        config = build_config('n0call', '20m', channel='123E2', today=date(2025, 7, 15))

        assert config.callsign == 'N0CALL'
        assert config.tracker == TrackerType.U4B
        assert config.raw_channel == '123E2'
        assert config.fetch_et == 2
        assert config.end_date == date(2025, 7, 15)
        assert config.start_date == date(2025, 6, 15)
        assert config.et_spec is None
        assert not config.scale_voltage

    def test_explicit_dates(self):
        config = build_config('N0CALL', '20m', start_date='2025-7-1', end_date='2025-07-13')
        assert config.start_date == date(2025, 7, 1)
        assert config.end_date == date(2025, 7, 13)

    def test_compound_callsign(self):
        """Compound callsigns need a type 2/3 capable protocol"""
        assert build_config('PJ4/K1ABC', '20m', channel='Z4').callsign == 'PJ4/K1ABC'
        assert build_config('K1ABC/P', '20m').callsign == 'K1ABC/P'
        with pytest.raises(ValueError):
            build_config('PJ4/K1ABC', '20m', channel='123')

    @pytest.mark.parametrize('kwargs', [
        {'callsign': 'K1', 'band': '20m'},
        {'callsign': 'N0CALL', 'band': '11m'},
        {'callsign': 'N0CALL', 'band': '20m', 'channel': 'Q12'},
        {'callsign': 'N0CALL', 'band': '20m', 'start_date': '2025-07-15',
         'end_date': '2025-07-01'},
        {'callsign': 'N0CALL', 'band': '20m', 'start_date': '2024-01-01',
         'end_date': '2025-07-01'},
        {'callsign': 'N0CALL', 'band': '20m', 'end_date': '07/15/2025'},
        {'callsign': 'N0CALL', 'band': '20m', 'end_date': '2025-02-30'},
        {'callsign': 'N0CALL', 'band': '20m', 'et_spec': 'et0:0'},
    ])
    def test_rejected(self, kwargs):
        with pytest.raises(ValueError):
            build_config(**kwargs)

    def test_full_year_allowed(self):
        config = build_config('N0CALL', '20m', start_date='2024-07-15', end_date='2025-07-15')
        assert (config.end_date - config.start_date).days == 365

    def test_parse_date(self):
        assert parse_date(' 2025-07-04 ') == date(2025, 7, 4)
        with pytest.raises(ValueError):
            parse_date('2025/07/04')


class TestLoadConfig:
    """Tests for TOML configuration files"""

    def test_load(self, tmp_path):
        path = tmp_path / 'tracker.toml'
        path.write_text(
            '[tracker]\n'
            'callsign = "N0CALL"\n'
            'band = "20m"\n'
            'channel = "123E2"\n'
            'start_date = "2025-07-01"\n'
            'end_date = "2025-07-15"\n'
            'scale_voltage = true\n'
            '\n'
            '[extended_telemetry]\n'
            'spec = "et0:0_1101:0:1,100:0:1,101:0:10,41:0:1"\n'
            'labels = "Alt,Loc,Temp,Sats"\n'
        )
        config = load_config(path)

        assert config.callsign == 'N0CALL'
        assert config.channel.channel == 123
        assert config.start_date == date(2025, 7, 1)
        assert config.scale_voltage
        assert config.et_spec.num_channels == 4
        assert config.et_spec.label(3) == 'Sats'

    def test_missing_section(self, tmp_path):
        path = tmp_path / 'tracker.toml'
        path.write_text('[station]\ncallsign = "N0CALL"\n')
        with pytest.raises(ValueError):
            load_config(path)

    def test_missing_key(self, tmp_path):
        path = tmp_path / 'tracker.toml'
        path.write_text('[tracker]\ncallsign = "N0CALL"\n')
        with pytest.raises(ValueError):
            load_config(path)

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / 'tracker.toml'
        path.write_text('[tracker\n')
        with pytest.raises(ValueError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / 'missing.toml')
