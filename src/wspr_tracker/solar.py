"""
Solar elevation for spot annotation

Uses the NOAA solar calculator equations (low precision, good to a fraction
of a degree between 1800 and 2100). Elevation tells whether a tracker was in
sunlight; solar powered trackers only transmit above some elevation.
"""

import math
from datetime import datetime, timezone
from typing import Tuple

J2000 = datetime(2000, 1, 1, 12, 0, tzinfo=timezone.utc)
DAYS_PER_CENTURY = 36525.0


def _julian_century(dt: datetime) -> float:
    """Julian centuries since J2000.0"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - J2000).total_seconds() / 86400.0 / DAYS_PER_CENTURY


def _declination_and_equation_of_time(t: float) -> Tuple[float, float]:
    """
    Sun declination (radians) and equation of time (minutes) at Julian
    century t.
    """
    mean_lon = math.radians((280.46646 + t * (36000.76983 + t * 0.0003032)) % 360)
    anomaly = math.radians(357.52911 + t * (35999.05029 - 0.0001537 * t))
    eccentricity = 0.016708634 - t * (0.000042037 + 0.0000001267 * t)

    center = math.radians(
        math.sin(anomaly) * (1.914602 - t * (0.004817 + 0.000014 * t)) +
        math.sin(2 * anomaly) * (0.019993 - 0.000101 * t) +
        math.sin(3 * anomaly) * 0.000289)
    omega = math.radians(125.04 - 1934.136 * t)
    apparent_lon = mean_lon + center - math.radians(0.00569 + 0.00478 * math.sin(omega))

    mean_obliquity = 23 + (26 + (21.448 - t * (46.815 + t * (0.00059 - t * 0.001813))) / 60) / 60
    obliquity = math.radians(mean_obliquity + 0.00256 * math.cos(omega))
    declination = math.asin(math.sin(obliquity) * math.sin(apparent_lon))

    y = math.tan(obliquity / 2) ** 2
    equation_of_time = 4 * math.degrees(
        y * math.sin(2 * mean_lon)
        - 2 * eccentricity * math.sin(anomaly)
        + 4 * eccentricity * y * math.sin(anomaly) * math.cos(2 * mean_lon)
        - 0.5 * y * y * math.sin(4 * mean_lon)
        - 1.25 * eccentricity * eccentricity * math.sin(2 * anomaly))

    return declination, equation_of_time


def solar_elevation(dt: datetime, lat: float, lon: float) -> float:
    """
    Solar elevation angle in degrees.

    Args:
        dt: Datetime (naive values are taken as UTC)
        lat: Latitude in degrees (positive = North)
        lon: Longitude in degrees (positive = East)
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    declination, equation_of_time = _declination_and_equation_of_time(_julian_century(dt))

    minutes = dt.hour * 60 + dt.minute + dt.second / 60
    solar_time = (minutes + equation_of_time + 4 * lon) % 1440
    hour_angle = math.radians(solar_time / 4 - 180)

    phi = math.radians(lat)
    sin_elevation = (math.sin(phi) * math.sin(declination) +
                     math.cos(phi) * math.cos(declination) * math.cos(hour_angle))
    return math.degrees(math.asin(max(-1.0, min(1.0, sin_elevation))))


def sun_elevation(dt: datetime, lat: float, lon: float) -> int:
    """Solar elevation rounded to a whole degree"""
    return int(math.floor(solar_elevation(dt, lat, lon) + 0.5))
