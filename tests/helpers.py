"""
Report builders shared by the test modules
"""

from datetime import datetime, timezone

from wspr_tracker.constants import GRID_PAIR_SPACE, WSPR_POWERS
from wspr_tracker.models import Receiver, Report

ALNUM = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ'
LETTERS = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ'


def ts(hour, minute, day=15):
    """UTC timestamp on 2025-07-<day>"""
    return datetime(2025, 7, day, hour, minute, tzinfo=timezone.utc)


def rx(callsign, frequency_hz=7040050, snr_db=-10, locator='FN42'):
    return Receiver(callsign=callsign, locator=locator, frequency_hz=frequency_hz,
                    snr_db=snr_db)


def report(timestamp, callsign, locator, power, receivers=()):
    return Report(timestamp=timestamp, callsign=callsign, locator=locator, power=power,
                  receivers=tuple(sorted(receivers, key=lambda r: r.callsign)))


def encode_payload(m, n, first='0', third='0'):
    """Inverse of the U4B payload extraction: (m, n) -> (callsign, locator, power)"""
    c6 = m % 26
    m //= 26
    c5 = m % 26
    m //= 26
    c4 = m % 26
    c2 = m // 26
    callsign = first + ALNUM[c2] + third + LETTERS[c4] + LETTERS[c5] + LETTERS[c6]

    power = WSPR_POWERS[n % 19]
    n //= 19
    d4 = n % 10
    n //= 10
    d3 = n % 10
    n //= 10
    locator = LETTERS[n // 18] + LETTERS[n % 18] + str(d3) + str(d4)
    return callsign, locator, power


def telemetry_report(timestamp, m, n, receivers=()):
    """Telemetry space report carrying the payload (m, n)"""
    callsign, locator, power = encode_payload(m, n)
    return report(timestamp, callsign, locator, power, receivers)


def et_report(timestamp, raw_value, receivers=()):
    """Telemetry space report carrying an extended telemetry value"""
    m, n = divmod(raw_value * 2, GRID_PAIR_SPACE)
    return telemetry_report(timestamp, m, n, receivers)


# Basic telemetry payload used across tests:
#   m = 534    -> subsquare "aa", altitude 10680 m
#   n = 470779 -> speed step 10 (37.04 km/h), 4.1 V, 20 C, GPS valid
BASIC_M = 534
BASIC_N = 6720 * 70 + 168 * 2 + 4 * 10 + 3
