"""Coordinate clustering of events and the marker scales derived from it."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

import pandas as pd

from core.aggregation import scale_upper_bound
from core.topology import CountryFeature


CLUSTER_DECIMALS = 1  # ~11 km grid at the equator
RADIUS_RANGE = (1.5, 6.0)


@dataclass(frozen=True)
class Cluster:
    key: str
    count: int
    lat: float
    lng: float
    total_loss: float
    mean_severity: float
    dominant_type: str


def round_coordinate(value: float, decimals: int = CLUSTER_DECIMALS) -> str:
    """
    Fixed-point label of a coordinate.

    The exact binary value is rounded half away from zero and the sign of a
    negative value rounding to zero is kept (``-0.04`` gives ``-0.0``).
    """
    quantum = Decimal(1).scaleb(-decimals)
    rounded = Decimal(float(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{rounded:f}"


def cluster_key(lat: float, lng: float) -> str:
    return f"{round_coordinate(lat)},{round_coordinate(lng)}"


def _dominant_type(types: pd.Series) -> str:
    # groupby(sort=False) keeps first-seen order, idxmax keeps the first maximum
    counts = types.groupby(types, sort=False).size()
    return str(counts.idxmax())


def cluster_events(
    filtered: pd.DataFrame,
    boundary: Optional[CountryFeature] = None,
) -> List[Cluster]:
    """
    Merge events sharing rounded coordinates into clusters.

    Clusters come out in the order their first member appears. With a
    ``boundary``, clusters whose representative point lies outside it are
    dropped.
    """
    if filtered is None or filtered.empty:
        return []

    keys = [cluster_key(lat, lng) for lat, lng in zip(filtered["latitude"], filtered["longitude"])]
    grouped = filtered.groupby(pd.Series(keys, index=filtered.index), sort=False)

    clusters: List[Cluster] = []
    for key, members in grouped:
        first = members.iloc[0]
        cluster = Cluster(
            key=str(key),
            count=int(len(members)),
            lat=float(first["latitude"]),
            lng=float(first["longitude"]),
            total_loss=float(members["economic_loss"].sum()),
            mean_severity=float(members["severity"].mean()),
            dominant_type=_dominant_type(members["disaster_type"]),
        )
        if boundary is not None and not boundary.contains(cluster.lng, cluster.lat):
            continue
        clusters.append(cluster)
    return clusters


@dataclass(frozen=True)
class ClusterScales:
    """Radius/colour domains relative to the clusters currently on screen."""

    min_count: int
    max_count: int
    radius_domain_max: float
    color_domain_max: float

    @classmethod
    def from_clusters(cls, clusters: List[Cluster]) -> "ClusterScales":
        counts = [c.count for c in clusters]
        upper = scale_upper_bound(counts)
        return cls(
            min_count=min(counts) if counts and min(counts) else 0,
            max_count=max(counts) if counts and max(counts) else 1,
            radius_domain_max=upper,
            color_domain_max=upper,
        )

    def radius(self, count: float) -> float:
        """Square-root radius scale over ``[0, max]``."""
        lo, hi = RADIUS_RANGE
        ratio = math.sqrt(max(count, 0) / self.radius_domain_max)
        return lo + (hi - lo) * ratio

    def color_position(self, count: float) -> float:
        """Position in ``[0, 1]`` along a log colour ramp over ``[1, max]``."""
        if self.color_domain_max <= 1:
            return 0.0
        value = max(count, 1)
        return min(1.0, math.log(value) / math.log(self.color_domain_max))

    @staticmethod
    def base_radius(k: float) -> float:
        return max(1.5, 3.5 / math.sqrt(k))
