#!/usr/bin/env python3
"""
Command Line Interface for WSPR Tracker
"""

import sys
import json
import logging
import argparse

import pandas as pd

from .channel import resolve_channel
from .config import load_config
from .pipeline import process_reports
from .query import build_report_query, query_plan
from .reports import import_rows
from .table import spots_to_dataframe

logger = logging.getLogger(__name__)


def _load_config_or_exit(config_file):
    try:
        return load_config(config_file)
    except FileNotFoundError:
        print(f"❌ Configuration file not found: {config_file}")
        print("   Use --config to specify a different file")
        sys.exit(1)
    except ValueError as e:
        print(f"❌ Error loading configuration: {e}")
        sys.exit(1)


def _read_rows(input_file):
    """Read wire-shape rows from a JSON list or a JSONCompact response"""
    with open(input_file, 'r') as f:
        document = json.load(f)
    if isinstance(document, dict):
        document = document.get('data', [])
    return document


def cmd_decode(args):
    config = _load_config_or_exit(args.config)

    try:
        reports = import_rows(_read_rows(args.input))
    except FileNotFoundError:
        print(f"❌ Input file not found: {args.input}")
        sys.exit(1)
    except ValueError as e:
        print(f"❌ Error reading reports: {e}")
        sys.exit(1)

    spots = process_reports(reports, config, include_orphans=args.orphans)
    logger.info(f"Decoded {len(spots)} spots from {len(reports)} reports")

    df = spots_to_dataframe(spots, config.et_spec)
    if args.csv:
        df.to_csv(args.csv, index=False)
        print(f"✅ Wrote {len(df)} spots to {args.csv}")
    else:
        with pd.option_context('display.max_rows', None, 'display.max_columns', None,
                               'display.width', None):
            print(df.to_string(index=False))


def cmd_slots(args):
    try:
        channel = resolve_channel(args.channel, args.band)
    except ValueError as e:
        print(f"❌ {e}")
        sys.exit(1)

    print(f"Tracker: {channel.tracker.value}")
    print(f"Channel: {channel.channel}")
    if channel.fetch_et is not None:
        print(f"Extended telemetry slots: {channel.fetch_et}")
    for slot, minute in enumerate(channel.slot_minutes):
        print(f"  • Slot {slot}: minute {minute} of every 10")


def cmd_query(args):
    config = _load_config_or_exit(args.config)
    for fetch_telemetry_space, slots in query_plan(config):
        print(build_report_query(config, fetch_telemetry_space, slots))
        print()


def main():
    """Main entry point for wspr-tracker command"""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)

    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(levelname)s:%(name)s:%(message)s'))
        root_logger.addHandler(handler)

    parser = argparse.ArgumentParser(
        description='WSPR balloon tracker telemetry decoder',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Decode command
    decode_parser = subparsers.add_parser('decode', help='Decode tracker reports')
    decode_parser.add_argument('--config', '-c', required=True, help='Configuration file path')
    decode_parser.add_argument('--input', '-i', required=True,
                               help='JSON file with report rows')
    decode_parser.add_argument('--orphans', action='store_true',
                               help='Include telemetry received without a location message')
    decode_parser.add_argument('--csv', help='Write the spot table to a CSV file')
    decode_parser.add_argument('--debug', '-d', action='store_true', help='Enable DEBUG logging')

    # Slots command
    slots_parser = subparsers.add_parser('slots', help='Show the slot schedule of a channel')
    slots_parser.add_argument('--band', '-b', required=True, help='Band, e.g. 20m')
    slots_parser.add_argument('--channel', default='', help='Channel code, e.g. 123E2 or Z4')
    slots_parser.add_argument('--debug', '-d', action='store_true', help='Enable DEBUG logging')

    # Query command
    query_parser = subparsers.add_parser('query', help='Print the report database queries')
    query_parser.add_argument('--config', '-c', required=True, help='Configuration file path')
    query_parser.add_argument('--debug', '-d', action='store_true', help='Enable DEBUG logging')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.debug:
        root_logger.setLevel(logging.DEBUG)
        for handler in root_logger.handlers:
            handler.setLevel(logging.DEBUG)
        logging.info("DEBUG logging enabled")

    if args.command == 'decode':
        cmd_decode(args)
    elif args.command == 'slots':
        cmd_slots(args)
    elif args.command == 'query':
        cmd_query(args)


if __name__ == '__main__':
    main()
