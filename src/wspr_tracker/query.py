#!/usr/bin/env python3
"""
Report Query Builder

Builds the SQL text used to fetch tracker reports from the public WSPR report
database (wspr.live). Each query returns rows in the ingest wire shape:

    time, tx_sign, tx_loc, power, groupArray(tuple(rx_sign, rx_loc, frequency, snr))

Each query covers one band, only the slot minutes the tracker transmits on
and a bounded date range. Sending them is left to the caller.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from .config import TrackerConfig
from .constants import BAND_INFO, NUM_SLOTS, TrackerType
from .reports import format_timestamp

logger = logging.getLogger(__name__)

QUERY_URL = 'https://db1.wspr.live/'

# Incremental updates refetch this far back before the last update
INCREMENTAL_LOOKBACK = timedelta(hours=6)

_TELEMETRY_FIRST_CHARS = ('0', '1', 'Q')

# Slots fetched from the regular callsign, by tracker type
_CALLSIGN_SLOTS = {
    TrackerType.ZACHTEK_DUAL: [0, 1],
    TrackerType.GENERIC_DUAL: [0, 1],
    TrackerType.UNKNOWN: list(range(NUM_SLOTS)),
}


def _callsign_clause(config: TrackerConfig, fetch_telemetry_space: bool) -> str:
    if not fetch_telemetry_space:
        return f"tx_sign = '{config.callsign}'"

    if not config.tracker.uses_telemetry_space:
        raise ValueError(f"{config.tracker.value} trackers do not use the Q/0/1 callsign space")
    first = _TELEMETRY_FIRST_CHARS[config.channel.channel // 200]
    third = (config.channel.channel // 20) % 10
    return f"substr(tx_sign, 1, 1) = '{first}' AND substr(tx_sign, 3, 1) = '{third}'"


def _date_clause(config: TrackerConfig, since: Optional[datetime]) -> str:
    if since is not None:
        return f"time > '{format_timestamp(since - INCREMENTAL_LOOKBACK)}:00'"
    return (f"time >= '{config.start_date.isoformat()}' AND "
            f"time <= '{config.end_date.isoformat()} 23:58:00'")


def build_report_query(config: TrackerConfig, fetch_telemetry_space: bool = False,
                       slots: Sequence[int] = (0,),
                       since: Optional[datetime] = None) -> str:
    """
    Build a report database query.

    Args:
        config: Tracker configuration
        fetch_telemetry_space: Query the Q/0/1 telemetry callsigns of the
            tracker's channel instead of its own callsign
        slots: Slot indices whose minutes should be fetched
        since: Time of the last update for an incremental query

    Returns:
        SQL text

    Raises:
        ValueError: If the telemetry space is requested for a tracker that
            does not use it
    """
    cs_clause = _callsign_clause(config, fetch_telemetry_space)
    band_id = BAND_INFO[config.band][1]

    minutes = [config.channel.slot_minute(slot) for slot in slots]
    if len(minutes) < NUM_SLOTS:
        slot_clause = f"toMinute(time) % 10 IN ({','.join(str(m) for m in minutes)})"
    else:
        slot_clause = 'true'

    query = f"""
    SELECT
      time, tx_sign, tx_loc, power,
      groupArray(tuple(rx_sign, rx_loc, frequency, snr))
    FROM wspr.rx
    WHERE
      {cs_clause} AND
      band = {band_id} AND
      {slot_clause} AND
      {_date_clause(config, since)}
    GROUP BY time, tx_sign, tx_loc, power
    FORMAT JSONCompact"""
    logger.debug(query)
    return query


def query_plan(config: TrackerConfig) -> List[Tuple[bool, List[int]]]:
    """
    Queries needed to fetch every report of a tracker.

    Returns:
        List of (fetch_telemetry_space, slots) pairs for build_report_query()
    """
    plan = [(False, list(_CALLSIGN_SLOTS.get(config.tracker, [0])))]
    if config.tracker.uses_telemetry_space:
        if config.fetch_et:
            plan.append((True, list(range(1, config.fetch_et + 2))))
        else:
            plan.append((True, [1]))
    return plan
