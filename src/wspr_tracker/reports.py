#!/usr/bin/env python3
"""
Report ingest and merging

Imports rows in the report database wire shape:

    ["YYYY-MM-DD HH:MM:SS", tx_callsign, tx_locator, power_dbm,
     [[rx_callsign, rx_locator, frequency_hz, snr_db], ...]]

and merges successive (timestamp, callsign) ordered batches into a single
deduplicated sequence. Merging is a pure function: the caller owns the
report list and feeds each new batch through merge_reports().
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Sequence

from .models import Receiver, Report

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'


def parse_timestamp(ts_str: str) -> datetime:
    """
    Parse a UTC timestamp such as '2025-07-15 12:00:00'.

    Raises:
        ValueError: If the string is not in the expected format
    """
    return datetime.strptime(ts_str, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """Format a timestamp as 'YYYY-MM-DD HH:MM' (UTC)"""
    return ts.astimezone(timezone.utc).strftime('%Y-%m-%d %H:%M')


def parse_report_row(row: Sequence) -> Report:
    """
    Convert one wire-shape row to a Report with receivers sorted by callsign.

    Raises:
        ValueError: If the row does not have the expected shape
    """
    try:
        ts_str, callsign, locator, power, rx_rows = row
        receivers = tuple(sorted(
            (Receiver(callsign=str(rx[0]), locator=str(rx[1]),
                      frequency_hz=int(rx[2]), snr_db=int(rx[3]))
             for rx in rx_rows),
            key=lambda rx: rx.callsign,
        ))
        return Report(
            timestamp=parse_timestamp(ts_str),
            callsign=str(callsign),
            locator=str(locator or ''),
            power=int(power),
            receivers=receivers,
        )
    except (TypeError, IndexError) as e:
        raise ValueError(f"Malformed report row {row!r}: {e}") from e


def sort_reports(reports: Iterable[Report]) -> List[Report]:
    """Sort reports by (timestamp, callsign)"""
    return sorted(reports, key=lambda r: r.key)


def import_rows(rows: Iterable[Sequence]) -> List[Report]:
    """Import a batch of wire-shape rows, sorted by (timestamp, callsign)"""
    return sort_reports(parse_report_row(row) for row in rows)


@dataclass(frozen=True)
class MergeResult:
    """Merged report sequence and how many reports were not seen before"""
    reports: List[Report]
    new_count: int


def merge_reports(old: Sequence[Report], new: Sequence[Report]) -> MergeResult:
    """
    Merge two (timestamp, callsign) sorted report sequences.

    For a key present in both, the report from `new` wins since it is the
    more complete one. Keys present only in `new` are counted as new.

    Args:
        old: Previously known reports
        new: Newly fetched reports

    Returns:
        MergeResult with the merged sequence and the new-report count
    """
    result: List[Report] = []
    new_count = 0
    i = 0
    j = 0

    while i < len(old) and j < len(new):
        old_key = old[i].key
        new_key = new[j].key
        if old_key < new_key:
            result.append(old[i])
            i += 1
        elif old_key > new_key:
            result.append(new[j])
            j += 1
            new_count += 1
        else:
            result.append(new[j])
            i += 1
            j += 1

    result.extend(old[i:])
    new_count += len(new) - j
    result.extend(new[j:])

    logger.debug(f"Merged {len(old)} + {len(new)} reports -> {len(result)} ({new_count} new)")
    return MergeResult(reports=result, new_count=new_count)
