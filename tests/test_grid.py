#!/usr/bin/env python3
"""
Tests for Maidenhead locator math
"""

import numpy as np
import pytest

from wspr_tracker.grid import (
    coords_to_locator,
    distances_from,
    great_circle_distance_m,
    locator_to_coords,
)


class TestLocatorToCoords:
    """Tests for locator decoding"""

    def test_square_center(self):
        """FN20 spans 40-41N, 76-74W"""
        lat, lon = locator_to_coords('FN20')
        assert lat == pytest.approx(40.5)
        assert lon == pytest.approx(-75.0)

    def test_origin_square(self):
        lat, lon = locator_to_coords('JJ00')
        assert lat == pytest.approx(0.5)
        assert lon == pytest.approx(1.0)

    def test_subsquare_center(self):
        lat, lon = locator_to_coords('FN20aa')
        assert lat == pytest.approx(40.0 + 1 / 48)
        assert lon == pytest.approx(-76.0 + 1 / 24)

    def test_extended_square(self):
        """8 character locators refine the subsquare by 1/10"""
        lat, lon = locator_to_coords('FN20aa45')
        assert lat == pytest.approx(40.0 + 5 / 240 + 1 / 480)
        assert lon == pytest.approx(-76.0 + 4 / 120 + 1 / 240)

    def test_case_insensitive(self):
        assert locator_to_coords('fn20XR') == locator_to_coords('FN20xr')

    @pytest.mark.parametrize('locator', ['', 'F', 'FN2', 'FNAA', 'F920', 'FN20a', 'FN2022'])
    def test_invalid_locators(self, locator):
        assert locator_to_coords(locator) is None


class TestCoordsToLocator:
    """Tests for locator encoding"""

    def test_known_locator(self):
        assert coords_to_locator(40.7, -74.0) == 'FN30aq'
        assert coords_to_locator(40.7, -74.0, length=4) == 'FN30'

    def test_round_trip(self):
        """Cell centers map back to the same locator at every precision"""
        for locator in ['FN20', 'JO65ha', 'QF56od', 'FN20xr45', 'AA00aa00', 'RR99xx99']:
            lat, lon = locator_to_coords(locator)
            assert coords_to_locator(lat, lon, length=len(locator)) == locator

    def test_bad_length(self):
        with pytest.raises(ValueError):
            coords_to_locator(0, 0, length=5)


class TestDistances:
    """Tests for great-circle distances"""

    def test_zero_distance(self):
        assert great_circle_distance_m(40.0, -75.0, 40.0, -75.0) == 0

    def test_one_degree_latitude(self):
        assert great_circle_distance_m(0, 0, 1, 0) == pytest.approx(111195, rel=1e-3)

    def test_vectorized_matches_scalar(self):
        points = np.array([[41.5, -71.0], [51.5, 0.0], [-33.9, 151.2]])
        distances = distances_from(40.5, -75.0, points)

        assert distances.shape == (3,)
        for (lat, lon), distance in zip(points, distances):
            assert distance == pytest.approx(great_circle_distance_m(40.5, -75.0, lat, lon))
