"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest

from config.settings import (
    WORLD_ATLAS_URL,
    Config,
    DashboardConfig,
    DataConfig,
    ViewportConfig,
)


class TestViewportConfig:
    def test_defaults(self):
        config = ViewportConfig()
        assert (config.k_min, config.k_max) == (0.5, 16.0)
        assert (config.focus_k_min, config.focus_k_max) == (1.0, 8.0)

    def test_invalid_zoom_bounds(self):
        with pytest.raises(ValueError):
            ViewportConfig(k_min=4.0, k_max=2.0)
        with pytest.raises(ValueError):
            ViewportConfig(k_min=0.0)

    def test_invalid_focus_bounds(self):
        with pytest.raises(ValueError):
            ViewportConfig(focus_k_min=9.0, focus_k_max=8.0)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ZOOM_MAX", "12")
        monkeypatch.setenv("MAP_HEIGHT", "500")

        config = ViewportConfig.from_env()

        assert config.k_max == 12.0
        assert config.map_height == 500


class TestDashboardConfig:
    def test_invalid_year_range(self):
        with pytest.raises(ValueError):
            DashboardConfig(year_range=(2024, 2018))

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("YEAR_MIN", "2019")
        monkeypatch.setenv("YEAR_MAX", "2022")
        monkeypatch.setenv("TOP_N", "3")

        config = DashboardConfig.from_env()

        assert config.year_range == (2019, 2022)
        assert config.top_n == 3


class TestConfig:
    def test_data_defaults(self, monkeypatch):
        monkeypatch.delenv("TOPOLOGY_SOURCE", raising=False)
        assert DataConfig.from_env().topology_source == WORLD_ATLAS_URL

    def test_relative_records_path_resolves_against_root(self):
        config = Config(root_dir=Path("/srv/app"))
        assert config.records_file == Path("/srv/app/data/data.csv")

    def test_absolute_records_path_is_kept(self, tmp_path):
        path = tmp_path / "events.csv"
        config = Config(data=DataConfig(records_path=str(path)))
        assert config.records_file == path

    def test_load_is_a_singleton(self, monkeypatch):
        monkeypatch.setattr(Config, "_instance", None)

        first = Config.load()

        assert Config.load() is first
