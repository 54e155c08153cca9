"""
Maidenhead locator math

Converts locators of arbitrary (even) precision to the center of the cell
they describe and back, and provides great-circle distances between points.

Each two-character block refines the previous cell:
- letters: field (20° x 10°, A-R) or subsquare (1/24 of the square, a-x)
- digits: square or extended square (1/10 of the previous cell, 0-9)
"""

import math
import re
from typing import Optional, Tuple

import numpy as np

from .constants import EARTH_RADIUS_M

_LETTER_PAIR = re.compile(r'^[A-X]{2}$')
_DIGIT_PAIR = re.compile(r'^[0-9]{2}$')


def locator_to_coords(locator: str) -> Optional[Tuple[float, float]]:
    """
    Convert a Maidenhead locator to (latitude, longitude) of its cell center.

    Args:
        locator: Locator such as "FN20", "FN20xr" or "FN20xr45"

    Returns:
        (lat, lon) in decimal degrees, or None if the locator is empty,
        has an odd length or contains characters outside the block alphabets
    """
    if not locator or len(locator) % 2:
        return None
    locator = locator.upper()

    lat = 0.0
    lon = 0.0
    lat_cell = 10.0
    lon_cell = 20.0
    num_blocks = len(locator) // 2

    for block in range(num_blocks):
        pair = locator[block * 2:block * 2 + 2]
        if block % 2 == 0:
            if not _LETTER_PAIR.match(pair):
                return None
            lon_no = ord(pair[0]) - ord('A')
            lat_no = ord(pair[1]) - ord('A')
        else:
            if not _DIGIT_PAIR.match(pair):
                return None
            lon_no = int(pair[0])
            lat_no = int(pair[1])

        lat += lat_no * lat_cell
        lon += lon_no * lon_cell

        if block < num_blocks - 1:
            # Letters are followed by digits (1/10), digits by letters (1/24)
            divisions = 10.0 if block % 2 == 0 else 24.0
            lat_cell /= divisions
            lon_cell /= divisions
        else:
            lat += lat_cell / 2
            lon += lon_cell / 2

    return lat - 90.0, lon - 180.0


def coords_to_locator(lat: float, lon: float, length: int = 6) -> str:
    """
    Convert latitude/longitude to a Maidenhead locator.

    Args:
        lat: Latitude in decimal degrees (-90 to +90)
        lon: Longitude in decimal degrees (-180 to +180)
        length: Locator length, an even number >= 2

    Returns:
        Locator with an uppercase field and lowercase subsquares, e.g. "FN20xr"
    """
    if length < 2 or length % 2:
        raise ValueError(f"Locator length must be even and >= 2, got {length}")

    lat_rem = min(max(lat + 90.0, 0.0), 180.0)
    lon_rem = (lon + 180.0) % 360.0
    lat_cell = 10.0
    lon_cell = 20.0
    chars = []

    for block in range(length // 2):
        if block == 0:
            divisions = 18
        elif block % 2:
            divisions = 10
        else:
            divisions = 24

        lon_no = min(int(lon_rem // lon_cell), divisions - 1)
        lat_no = min(int(lat_rem // lat_cell), divisions - 1)
        lon_rem -= lon_no * lon_cell
        lat_rem -= lat_no * lat_cell

        if block == 0:
            chars.append(chr(ord('A') + lon_no) + chr(ord('A') + lat_no))
        elif block % 2:
            chars.append(f"{lon_no}{lat_no}")
        else:
            chars.append(chr(ord('a') + lon_no) + chr(ord('a') + lat_no))

        next_divisions = 10 if block % 2 == 0 else 24
        lat_cell /= next_divisions
        lon_cell /= next_divisions

    return ''.join(chars)


def great_circle_distance_m(lat1: float, lon1: float,
                            lat2: float, lon2: float) -> float:
    """Haversine distance between two points in meters"""
    lat1_r = math.radians(lat1)
    lat2_r = math.radians(lat2)
    dlat = lat2_r - lat1_r
    dlon = math.radians(lon2 - lon1)

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlon / 2) ** 2)
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


def distances_from(lat: float, lon: float, points: np.ndarray) -> np.ndarray:
    """
    Vectorized haversine distance from one point to many.

    Args:
        lat: Origin latitude in degrees
        lon: Origin longitude in degrees
        points: Array of shape (N, 2) holding (lat, lon) rows in degrees

    Returns:
        Array of N distances in meters
    """
    points = np.radians(np.asarray(points, dtype=np.float64).reshape(-1, 2))
    lat_r = math.radians(lat)
    dlat = points[:, 0] - lat_r
    dlon = points[:, 1] - math.radians(lon)

    a = (np.sin(dlat / 2) ** 2 +
         math.cos(lat_r) * np.cos(points[:, 0]) * np.sin(dlon / 2) ** 2)
    return 2 * EARTH_RADIUS_M * np.arcsin(np.minimum(1.0, np.sqrt(a)))
