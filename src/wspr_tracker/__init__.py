"""
WSPR Tracker - Telemetry decoder for WSPR balloon and vehicle trackers

Turns raw WSPR reception reports into a time-ordered track of decoded spots
(position, altitude, speed, voltage, temperature, extended telemetry and
derived metrics).

Pipeline:
=========
1. Report ingest + merge: wire-shape rows → sorted, deduplicated Reports
2. Slot matching: Reports → Spots (up to 5 slots per transmission sequence)
3. Protocol decoding: U4B, WB8ELK, Zachtek, generic and unknown trackers
4. Extended telemetry: user supplied spec compiled into a small program
5. Derived metrics: vertical/computed speed, sun elevation, receiver stats

Quick Start:
    from wspr_tracker import build_config, import_rows, process_reports

    config = build_config('N0CALL', '20m', channel='123E2')
    spots = process_reports(import_rows(rows), config)
    for spot in spots:
        print(spot.timestamp, spot.locator, spot.altitude_m)
"""

__version__ = "1.0.0"
__author__ = "WSPR Tracker Project"

# =============================================================================
# CONFIGURATION
# =============================================================================
from .channel import ChannelCode, resolve_channel
from .config import TrackerConfig, build_config, load_config
from .constants import TrackerType

# =============================================================================
# DATA MODEL + INGEST
# =============================================================================
from .models import Receiver, Report, Spot
from .reports import MergeResult, import_rows, merge_reports

# =============================================================================
# DECODING PIPELINE
# =============================================================================
from .matcher import match_spots
from .decoders import decode_spots
from .telemetry import ExtendedTelemetrySpec, compile_et_spec
from .derived import compute_derived_metrics
from .orphans import create_orphaned_spots
from .pipeline import TrackerSession, UpdateResult, process_reports

# =============================================================================
# OUTPUT
# =============================================================================
from .query import build_report_query, query_plan
from .table import spots_to_dataframe

__all__ = [
    'ChannelCode',
    'resolve_channel',
    'TrackerConfig',
    'build_config',
    'load_config',
    'TrackerType',
    'Receiver',
    'Report',
    'Spot',
    'MergeResult',
    'import_rows',
    'merge_reports',
    'match_spots',
    'decode_spots',
    'ExtendedTelemetrySpec',
    'compile_et_spec',
    'compute_derived_metrics',
    'create_orphaned_spots',
    'TrackerSession',
    'UpdateResult',
    'process_reports',
    'build_report_query',
    'query_plan',
    'spots_to_dataframe',
]
