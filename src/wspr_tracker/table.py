#!/usr/bin/env python3
"""
Tabular spot view

Flattens decoded spots into a pandas DataFrame, one row per spot, for
display, plotting or CSV export. Columns that carry no data for the whole
sequence are left out.
"""

import logging
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .models import Spot
from .telemetry import ExtendedTelemetrySpec

logger = logging.getLogger(__name__)

SPOT_COLUMNS = [
    'timestamp',
    'locator',
    'latitude',
    'longitude',
    'altitude_m',
    'vertical_speed_m_per_min',
    'speed_kph',
    'computed_speed_kph',
    'voltage_v',
    'temperature_c',
    'power_dbm',
    'sun_elevation_deg',
    'receiver_count',
    'max_receiver_distance_m',
    'max_snr_db',
]

RESERVED_COLUMNS = set(SPOT_COLUMNS) | {'orphaned'}


def _et_columns(spots: Sequence[Spot],
                et_spec: Optional[ExtendedTelemetrySpec]) -> Dict[str, List]:
    columns: Dict[str, List] = {}

    slots = sorted({slot for spot in spots for slot in spot.raw_extended_telemetry})
    for slot in slots:
        columns[f'raw_et{slot}'] = [spot.raw_extended_telemetry.get(slot) for spot in spots]

    num_channels = max((len(s.decoded_extended_telemetry) for s in spots), default=0)
    for index in range(num_channels):
        name = et_spec.label(index) if et_spec else f'ET{index}'
        if name in RESERVED_COLUMNS or name in columns:
            logger.debug(f"ET label {name!r} is already a column, using {name}_et{index}")
            name = f'{name}_et{index}'
        columns[name] = [spot.extended_channel(index) for spot in spots]

    return columns


def spots_to_dataframe(spots: Sequence[Spot],
                       et_spec: Optional[ExtendedTelemetrySpec] = None) -> pd.DataFrame:
    """
    Build a table of spots.

    Args:
        spots: Decoded (and usually derived) spots
        et_spec: Compiled ET spec used to name decoded ET channels

    Returns:
        DataFrame with an 'orphaned' flag, the spot fields and ET columns
    """
    data = {name: [getattr(spot, name) for spot in spots] for name in SPOT_COLUMNS}
    data['orphaned'] = [spot.is_orphaned for spot in spots]
    data.update(_et_columns(spots, et_spec))

    df = pd.DataFrame(data)
    if df.empty:
        return df

    df['timestamp'] = pd.to_datetime(df['timestamp'], utc=True)
    if not df['orphaned'].any():
        df = df.drop(columns=['orphaned'])

    # Drop columns without any value
    df = df.dropna(axis='columns', how='all')

    # Power is only interesting when the tracker varies it
    if 'power_dbm' in df.columns and df['power_dbm'].nunique(dropna=True) < 2:
        df = df.drop(columns=['power_dbm'])

    logger.debug(f"Spot table: {len(df)} rows, {len(df.columns)} columns")
    return df
