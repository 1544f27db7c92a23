"""World boundary topology: country outlines read with geopandas and looked up by name."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Union

import geopandas as gpd
import numpy as np
from shapely.geometry import Point
from shapely.geometry.base import BaseGeometry
from shapely.prepared import prep


logger = logging.getLogger(__name__)

WGS84 = "EPSG:4326"
COUNTRIES_LAYER = "countries"
POLYGON_TYPES = ("Polygon", "MultiPolygon")


def geometry_rings(geometry: BaseGeometry) -> List[np.ndarray]:
    """Exterior and interior rings of a (multi)polygon as (n, 2) arrays."""
    if geometry is None or geometry.is_empty:
        return []
    polygons = getattr(geometry, "geoms", [geometry])
    rings: List[np.ndarray] = []
    for polygon in polygons:
        if polygon.geom_type != "Polygon" or polygon.is_empty:
            continue
        rings.append(np.asarray(polygon.exterior.coords, dtype=float)[:, :2])
        rings.extend(np.asarray(ring.coords, dtype=float)[:, :2] for ring in polygon.interiors)
    return rings


@dataclass
class CountryFeature:
    """A country outline, in lon/lat degrees."""

    name: str
    geometry: BaseGeometry
    _prepared: Any = field(default=None, init=False, repr=False, compare=False)

    @property
    def rings(self) -> List[np.ndarray]:
        return geometry_rings(self.geometry)

    def contains(self, lon: float, lat: float) -> bool:
        """Point-in-polygon test; points on the border count as inside."""
        if self._prepared is None:
            self._prepared = prep(self.geometry)
        return bool(self._prepared.covers(Point(lon, lat)))


class WorldTopology:
    """Named country polygons, backed by a GeoDataFrame in WGS84."""

    def __init__(self, frame: gpd.GeoDataFrame):
        if frame.crs is None:
            frame = frame.set_crs(WGS84)
        self.frame = frame.reset_index(drop=True)
        self.features = [
            CountryFeature(name=str(name), geometry=geometry)
            for name, geometry in zip(self.frame["name"], self.frame.geometry)
        ]
        self._by_name = {feature.name: feature for feature in self.features}

    @classmethod
    def from_frame(cls, frame: gpd.GeoDataFrame) -> "WorldTopology":
        """Keep only polygon rows that carry a country name."""
        if "name" not in frame.columns:
            raise ValueError("Boundary layer has no 'name' column")
        named = frame["name"].notna() & (frame["name"].astype(str).str.strip() != "")
        polygons = frame.geom_type.isin(POLYGON_TYPES)
        kept = frame[named & polygons]
        skipped = len(frame) - len(kept)
        if skipped:
            logger.debug("Skipped %d boundary rows without a polygon or name", skipped)
        return cls(kept)

    def __len__(self) -> int:
        return len(self.features)

    @property
    def geometries(self) -> gpd.GeoSeries:
        return self.frame.geometry

    def feature(self, name: str) -> Optional[CountryFeature]:
        return self._by_name.get(name)

    @property
    def names(self) -> List[str]:
        return [feature.name for feature in self.features]


def load_topology(source: Union[str, Path], layer: str = COUNTRIES_LAYER) -> WorldTopology:
    """Read country boundaries (TopoJSON or any vector format) from a path or URL."""
    source_str = str(source)
    if not source_str.startswith(("http://", "https://")) and not Path(source_str).exists():
        raise FileNotFoundError(f"Boundary file not found: {source_str}")

    world = WorldTopology.from_frame(gpd.read_file(source_str, layer=layer))
    if not len(world):
        raise ValueError(f"No named country polygons in layer '{layer}' of {source_str}")
    logger.info("Loaded %d country features from %s", len(world), source_str)
    return world
