"""
Tracker configuration

A single immutable TrackerConfig carries everything the decoding core needs
(callsign, band, resolved channel, date range, voltage scaling, compiled ET
spec). It is passed explicitly to every stage.

Configuration can be built from arguments or loaded from a TOML file:

    [tracker]
    callsign = "N0CALL"
    band = "20m"
    channel = "123E2"
    start_date = "2025-07-01"
    end_date = "2025-07-15"
    scale_voltage = false

    [extended_telemetry]
    spec = "et0:0_1101:0:1,100:0:1,101:0:10,41:0:1"
    labels = "Alt,Loc,Temp,Sats"
    units = "m,,C,"
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Optional, Union

from .channel import ChannelCode, resolve_channel
from .constants import MAX_DATE_RANGE_DAYS, TrackerType
from .telemetry import ExtendedTelemetrySpec, compile_et_spec

logger = logging.getLogger(__name__)

_DATE = re.compile(r'^(\d{4})-(\d{1,2})-(\d{1,2})$')
_COMPOUND_CALLSIGN = re.compile(r'^([A-Z0-9]{1,4}/)?[A-Z0-9]{4,6}(/[A-Z0-9]{1,4})?$', re.IGNORECASE)
_SIMPLE_CALLSIGN = re.compile(r'^[A-Z0-9]{4,6}$', re.IGNORECASE)

# Type 2 / type 3 message protocols allow compound callsigns
_COMPOUND_CALLSIGN_TRACKERS = (
    TrackerType.GENERIC_DUAL,
    TrackerType.ZACHTEK_DUAL,
    TrackerType.UNKNOWN,
)

DEFAULT_LOOKBACK_DAYS = 30


def parse_date(date_str: str) -> date:
    """
    Parse a date such as '2025-07-13'.

    Raises:
        ValueError: If the string is not a valid YYYY-mm-dd date
    """
    match = _DATE.match(date_str.strip())
    if not match:
        raise ValueError(f"Date should be in the YYYY-mm-dd format: {date_str!r}")
    year, month, day = (int(g) for g in match.groups())
    return date(year, month, day)


@dataclass(frozen=True)
class TrackerConfig:
    """Validated tracker parameters"""
    callsign: str
    band: str
    channel: ChannelCode
    start_date: date
    end_date: date
    scale_voltage: bool = False
    et_spec: Optional[ExtendedTelemetrySpec] = None
    raw_channel: str = ''

    @property
    def tracker(self) -> TrackerType:
        return self.channel.tracker

    @property
    def fetch_et(self) -> Optional[int]:
        return self.channel.fetch_et


def build_config(
    callsign: str,
    band: str,
    channel: str = '',
    start_date: Optional[Union[str, date]] = None,
    end_date: Optional[Union[str, date]] = None,
    scale_voltage: bool = False,
    et_spec: Optional[str] = None,
    et_labels: Optional[str] = None,
    et_long_labels: Optional[str] = None,
    et_units: Optional[str] = None,
    et_resolutions: Optional[str] = None,
    today: Optional[date] = None,
) -> TrackerConfig:
    """
    Validate tracker parameters and build a TrackerConfig.

    Args:
        callsign: Transmitter callsign
        band: Band name, e.g. "20m"
        channel: Channel code (see channel.resolve_channel)
        start_date: First day to consider (default: a month before end_date)
        end_date: Last day to consider (default: today)
        scale_voltage: Apply the legacy -2 V voltage offset
        et_spec: Extended telemetry specification
        et_labels, et_long_labels, et_units, et_resolutions: ET display attributes
        today: Reference date for the end_date default

    Raises:
        ValueError: On any invalid parameter
    """
    callsign = callsign.strip().upper()
    channel_code = resolve_channel(channel, band)

    cs_regex = (_COMPOUND_CALLSIGN if channel_code.tracker in _COMPOUND_CALLSIGN_TRACKERS
                else _SIMPLE_CALLSIGN)
    if not cs_regex.match(callsign):
        raise ValueError(f"Invalid callsign: {callsign!r}")

    if isinstance(end_date, str):
        end_date = parse_date(end_date)
    if end_date is None:
        end_date = today or datetime.now(timezone.utc).date()

    if isinstance(start_date, str):
        start_date = parse_date(start_date)
    if start_date is None:
        start_date = end_date - timedelta(days=DEFAULT_LOOKBACK_DAYS)

    if start_date > end_date:
        raise ValueError("Start date should be before end date")
    if (end_date - start_date).days > MAX_DATE_RANGE_DAYS:
        raise ValueError(
            f"Start date cannot be more than {MAX_DATE_RANGE_DAYS} days before the end date")

    compiled_spec = None
    if et_spec:
        compiled_spec = compile_et_spec(et_spec, labels=et_labels, long_labels=et_long_labels,
                                        units=et_units, resolutions=et_resolutions)

    config = TrackerConfig(
        callsign=callsign,
        band=band,
        channel=channel_code,
        start_date=start_date,
        end_date=end_date,
        scale_voltage=bool(scale_voltage),
        et_spec=compiled_spec,
        raw_channel=channel.strip(),
    )
    logger.debug(f"Tracker config: {callsign} {band} {channel_code}")
    return config


def config_from_dict(config: Dict) -> TrackerConfig:
    """Build a TrackerConfig from a parsed TOML document"""
    tracker = config.get('tracker')
    if not tracker:
        raise ValueError("Configuration has no [tracker] section")
    for key in ('callsign', 'band'):
        if key not in tracker:
            raise ValueError(f"[tracker] is missing required key {key!r}")

    et = config.get('extended_telemetry', {})
    return build_config(
        callsign=str(tracker['callsign']),
        band=str(tracker['band']),
        channel=str(tracker.get('channel', '')),
        start_date=tracker.get('start_date'),
        end_date=tracker.get('end_date'),
        scale_voltage=tracker.get('scale_voltage', False),
        et_spec=et.get('spec'),
        et_labels=et.get('labels'),
        et_long_labels=et.get('long_labels'),
        et_units=et.get('units'),
        et_resolutions=et.get('resolutions'),
    )


def load_config(config_file: Union[str, Path]) -> TrackerConfig:
    """
    Load a tracker configuration from a TOML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid TOML or fails validation
    """
    import toml

    with open(config_file, 'r') as f:
        try:
            config = toml.load(f)
        except toml.TomlDecodeError as e:
            raise ValueError(f"Invalid TOML in {config_file}: {e}") from e

    return config_from_dict(config)
