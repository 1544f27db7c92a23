"""Tests for coordinate clustering."""

import pandas as pd
import pytest

from core.geospatial import (
    Cluster,
    ClusterScales,
    cluster_events,
    cluster_key,
    round_coordinate,
)


def make_events(rows):
    return pd.DataFrame(
        rows,
        columns=["latitude", "longitude", "disaster_type", "economic_loss", "severity"],
    )


class TestRounding:
    """Tests for the one-decimal cluster grid."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (-33.4, "-33.4"),
            (-33.44, "-33.4"),
            (35.68, "35.7"),
            (0.25, "0.3"),
            (-0.25, "-0.3"),
            (-0.04, "-0.0"),
            (10, "10.0"),
        ],
    )
    def test_round_coordinate(self, value, expected):
        assert round_coordinate(value) == expected

    def test_cluster_key(self):
        assert cluster_key(-33.4, -70.6) == "-33.4,-70.6"


class TestClusterEvents:
    """Tests for grouping events into clusters."""

    def test_shared_coordinates_merge(self):
        events = make_events([
            (-33.4, -70.6, "Earthquake", 1_000_000, 8),
            (-33.41, -70.62, "Flood", 500_000, 3),
        ])

        clusters = cluster_events(events)

        assert len(clusters) == 1
        cluster = clusters[0]
        assert cluster.key == "-33.4,-70.6"
        assert cluster.count == 2
        assert cluster.dominant_type == "Earthquake"
        assert cluster.total_loss == 1_500_000
        assert cluster.mean_severity == pytest.approx(5.5)
        assert (cluster.lat, cluster.lng) == (-33.4, -70.6)

    def test_dominant_type_by_majority(self):
        events = make_events([
            (1.0, 1.0, "Storm", 1, 1),
            (1.0, 1.0, "Flood", 1, 1),
            (1.0, 1.0, "Flood", 1, 1),
            (1.0, 1.0, "Storm", 1, 1),
            (1.0, 1.0, "Flood", 1, 1),
        ])

        assert cluster_events(events)[0].dominant_type == "Flood"

    def test_order_of_first_appearance(self, sample_records):
        clusters = cluster_events(sample_records)

        assert [c.key for c in clusters] == [
            "-33.4,-70.6", "-33.5,-70.7", "35.7,139.7", "-22.9,-43.2", "-3.1,-60.0", "34.0,135.0",
        ]
        assert clusters[2].count == 2
        assert clusters[2].dominant_type == "Earthquake"

    def test_deterministic(self, sample_records, world):
        japan = world.feature("Japan")

        first = cluster_events(sample_records, japan)
        second = cluster_events(sample_records, japan)

        assert first == second
        assert [(c.key, c.count, c.dominant_type) for c in first] == [
            ("35.7,139.7", 2, "Earthquake"),
            ("34.0,135.0", 1, "Flood"),
        ]

    def test_boundary_discards_outside_clusters(self, sample_records, world):
        clusters = cluster_events(sample_records, world.feature("Chile"))

        assert {c.key for c in clusters} == {"-33.4,-70.6", "-33.5,-70.7"}

    def test_empty_input(self, sample_records):
        assert cluster_events(sample_records.iloc[0:0]) == []


class TestClusterScales:
    def test_domains_follow_current_clusters(self):
        clusters = [
            Cluster("a", 2, 0, 0, 0, 0, "Flood"),
            Cluster("b", 8, 0, 0, 0, 0, "Flood"),
        ]

        scales = ClusterScales.from_clusters(clusters)

        assert (scales.min_count, scales.max_count) == (2, 8)
        assert scales.radius(8) == pytest.approx(6.0)
        assert scales.radius(0) == pytest.approx(1.5)
        assert scales.color_position(8) == pytest.approx(1.0)
        assert scales.color_position(1) == 0.0

    def test_empty_cluster_set(self):
        scales = ClusterScales.from_clusters([])

        assert (scales.min_count, scales.max_count) == (0, 1)
        assert scales.radius_domain_max == 1.0
        assert scales.color_position(5) == 0.0

    def test_base_radius(self):
        assert ClusterScales.base_radius(1) == 3.5
        assert ClusterScales.base_radius(16) == 1.5
