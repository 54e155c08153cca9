#!/usr/bin/env python3
"""
WSPR Tracker Session Replay

Replays a saved report download through an incrementally updated
TrackerSession, one batch per transmission sequence, the same way a live
tracker view would see reports arrive every ten minutes.

Usage:
    # Replay a JSONCompact download using the example configuration
    python3 replay_session.py --config tracker.toml --input reports.json

    # Include telemetry received without a location message
    python3 replay_session.py --config tracker.toml --input reports.json --orphans

Output:
    One line per update with the number of new reports and the newest spot.
"""

import argparse
import json
import logging
import sys
from itertools import groupby
from pathlib import Path

# Add parent directory to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from wspr_tracker.config import load_config
from wspr_tracker.pipeline import TrackerSession
from wspr_tracker.reports import format_timestamp, import_rows


def setup_logging(verbose: bool = False):
    """Configure logging"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)-8s %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )


def sequence_key(report):
    """Ten minute window a report belongs to"""
    return report.timestamp.replace(minute=report.timestamp.minute // 10 * 10)


def main():
    parser = argparse.ArgumentParser(description='Replay saved WSPR reports through a tracker session')
    parser.add_argument('--config', '-c', type=Path, required=True, help='Tracker configuration file')
    parser.add_argument('--input', '-i', type=Path, required=True, help='JSON file with report rows')
    parser.add_argument('--orphans', action='store_true', help='Include orphaned telemetry')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose logging')
    args = parser.parse_args()

    setup_logging(args.verbose)
    logger = logging.getLogger('replay_session')

    config = load_config(args.config)
    with open(args.input) as f:
        document = json.load(f)
    if isinstance(document, dict):
        document = document.get('data', [])
    reports = import_rows(document)
    logger.info(f"Loaded {len(reports)} reports for {config.callsign}")

    session = TrackerSession(config, include_orphans=args.orphans)
    for window, batch in groupby(reports, key=sequence_key):
        result = session.ingest(list(batch), incremental=True)
        if not result.new_count or not result.spots:
            continue
        latest = result.spots[-1]
        print(f"{format_timestamp(window)}  +{result.new_count:<3} "
              f"{len(result.spots):>5} spots  latest: {latest.locator or '-':<8} "
              f"{latest.altitude_m if latest.altitude_m is not None else '-'} m")

    metrics = session.metrics.to_dict()
    print(f"\n✓ {metrics['updates']} updates, {metrics['total_reports']} reports, "
          f"{metrics['spots']} spots")


if __name__ == '__main__':
    main()
