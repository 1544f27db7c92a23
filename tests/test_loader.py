"""Tests for the concurrent startup load."""

import asyncio
import json
import logging

import pytest

from config.settings import Config, DataConfig
from core.loader import (
    DashboardData,
    DashboardLoadError,
    load_dashboard_data,
    load_dashboard_data_sync,
)


def make_config(records_path, topology_source):
    return Config(data=DataConfig(records_path=str(records_path), topology_source=str(topology_source)))


class TestLoadDashboardData:
    def test_loads_both_sources(self, records_csv, topology_file):
        data = asyncio.run(load_dashboard_data(make_config(records_csv, topology_file)))

        assert isinstance(data, DashboardData)
        assert len(data.records) == 7
        assert len(data.world) == 3
        assert data.countries == ["Brazil", "Chile", "Japan"]
        assert data.types == ["Earthquake", "Flood", "Storm", "Wildfire"]

    def test_sync_wrapper(self, records_csv, topology_file):
        data = load_dashboard_data_sync(make_config(records_csv, topology_file))
        assert len(data.records) == 7

    def test_missing_records_fail_the_whole_load(self, tmp_path, topology_file, caplog):
        config = make_config(tmp_path / "missing.csv", topology_file)

        with caplog.at_level(logging.ERROR, logger="core.loader"):
            with pytest.raises(DashboardLoadError):
                load_dashboard_data_sync(config)

        assert "initialisation failed" in caplog.text

    def test_topology_without_countries_fails(self, records_csv, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({
            "type": "Topology",
            "objects": {"countries": {"type": "GeometryCollection", "geometries": [
                {"type": "Point", "coordinates": [0, 0], "properties": {"name": "Nowhere"}},
            ]}},
            "arcs": [],
        }), encoding="utf-8")

        with pytest.raises(DashboardLoadError):
            load_dashboard_data_sync(make_config(records_csv, bad))
