"""Tests for the Web Mercator projection."""

import math

import geopandas as gpd
import numpy as np
import pytest
from shapely.geometry import Polygon, box

from core.projection import DEFAULT_SCALE, MAX_LATITUDE, MercatorProjection
from core.topology import CountryFeature


@pytest.fixture
def projection():
    return MercatorProjection(960.0, 400.0)


class TestMercatorProjection:
    def test_origin_lands_on_translate(self, projection):
        assert projection.project(0.0, 0.0) == pytest.approx((480.0, 400.0 / 1.5))

    def test_matches_spherical_formula(self, projection):
        x, y = projection.project(139.7, 35.7)

        phi = math.radians(35.7)
        assert x == pytest.approx(480.0 + DEFAULT_SCALE * math.radians(139.7))
        assert y == pytest.approx(400.0 / 1.5 - DEFAULT_SCALE * math.log(math.tan(math.pi / 4 + phi / 2)))

    def test_north_is_up(self, projection):
        _, north = projection.project(0.0, 40.0)
        _, south = projection.project(0.0, -40.0)
        assert north < south

    def test_poles_are_clamped(self, projection):
        _, pole = projection.project(0.0, 90.0)
        _, limit = projection.project(0.0, MAX_LATITUDE)
        assert np.isfinite(pole)
        assert pole == pytest.approx(limit)

    def test_sequences_give_arrays(self, projection):
        xs, ys = projection.project([-70.6, 139.7], [-33.4, 35.7])

        assert xs.shape == ys.shape == (2,)
        assert (xs[1], ys[1]) == pytest.approx(projection.project(139.7, 35.7))

    def test_to_pixels_clips_polar_geometry(self, projection):
        polar = gpd.GeoSeries([box(-10, 80, 10, 90)], crs="EPSG:4326")

        x0, y0, x1, y1 = projection.to_pixels(polar).total_bounds

        assert np.isfinite([x0, y0, x1, y1]).all()
        assert y0 == pytest.approx(projection.project(0.0, MAX_LATITUDE)[1])

    def test_bounds_cover_every_ring(self, projection, world):
        x0, y0, x1, y1 = projection.bounds(world.feature("Japan"))

        left, top = projection.project(129.0, 46.0)
        right, bottom = projection.project(151.0, 20.0)
        assert (x0, y0, x1, y1) == pytest.approx((left, top, right, bottom))

    def test_bounds_without_rings_raise(self, projection):
        with pytest.raises(ValueError):
            projection.bounds(CountryFeature("Empty", Polygon()))
