"""Web Mercator projection of lon/lat geometries into map pixels."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import geopandas as gpd
import numpy as np

from core.topology import WGS84, CountryFeature


WEB_MERCATOR = "EPSG:3857"
EARTH_RADIUS = 6378137.0  # metres, sphere of EPSG:3857

# Default scale of the classic web Mercator world map (961 px per full turn).
DEFAULT_SCALE = 961 / (2 * np.pi)
MAX_LATITUDE = 85.0511287798

Bounds = Tuple[float, float, float, float]


@dataclass(frozen=True)
class MercatorProjection:
    """
    Mercator projection centred on (0, 0).

    Geometries go to EPSG:3857 metres and then through a pixel affine, so
    the origin lands at ``(width / 2, height / 1.5)`` and north points up.
    Latitudes beyond the web Mercator limit are clipped so the poles stay
    finite.
    """

    width: float
    height: float
    scale: float = DEFAULT_SCALE

    @property
    def translate(self) -> Tuple[float, float]:
        return self.width / 2, self.height / 1.5

    @property
    def pixels_per_metre(self) -> float:
        return self.scale / EARTH_RADIUS

    def to_pixels(self, geometries: gpd.GeoSeries, clip: bool = True) -> gpd.GeoSeries:
        """Project WGS84 geometries into pixel space."""
        if geometries.crs is None:
            geometries = geometries.set_crs(WGS84)
        if clip:
            geometries = geometries.clip_by_rect(-180.0, -MAX_LATITUDE, 180.0, MAX_LATITUDE)
        metres = geometries.to_crs(WEB_MERCATOR)
        a = self.pixels_per_metre
        tx, ty = self.translate
        return metres.affine_transform([a, 0.0, 0.0, -a, tx, ty])

    def project(self, lon, lat):
        """Project scalars or sequences of lon/lat to pixel x/y."""
        lons = np.atleast_1d(np.asarray(lon, dtype=float))
        lats = np.clip(np.atleast_1d(np.asarray(lat, dtype=float)), -MAX_LATITUDE, MAX_LATITUDE)
        points = self.to_pixels(gpd.GeoSeries(gpd.points_from_xy(lons, lats), crs=WGS84), clip=False)
        xs, ys = points.x.to_numpy(), points.y.to_numpy()
        if np.ndim(lon) == 0 and np.ndim(lat) == 0:
            return float(xs[0]), float(ys[0])
        return xs, ys

    def bounds(self, feature: CountryFeature) -> Bounds:
        """Pixel bounding box (x0, y0, x1, y1) of a feature's outline."""
        if feature.geometry is None or feature.geometry.is_empty:
            raise ValueError(f"Feature '{feature.name}' has no polygon rings")
        x0, y0, x1, y1 = self.to_pixels(gpd.GeoSeries([feature.geometry], crs=WGS84)).total_bounds
        return float(x0), float(y0), float(x1), float(y1)
