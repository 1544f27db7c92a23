"""
Centralized configuration management for the disaster explorer.

Handles environment variables, data sources, viewport limits and dashboard
defaults with type safety and validation.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple


WORLD_ATLAS_URL = "https://unpkg.com/world-atlas@2.0.2/countries-110m.json"


@dataclass
class DataConfig:
    """Where the records and the world topology come from."""

    records_path: str = "data/data.csv"
    topology_source: str = WORLD_ATLAS_URL  # local path or http(s) URL

    @classmethod
    def from_env(cls) -> "DataConfig":
        """Load data source config from environment variables."""
        return cls(
            records_path=os.getenv("DISASTER_DATA_PATH", "data/data.csv"),
            topology_source=os.getenv("TOPOLOGY_SOURCE", WORLD_ATLAS_URL),
        )


@dataclass
class ViewportConfig:
    """Map zoom/pan limits and animation timings."""

    k_min: float = 0.5
    k_max: float = 16.0
    focus_k_min: float = 1.0
    focus_k_max: float = 8.0
    fit_padding: float = 0.9

    zoom_step: float = 1.5
    wheel_step: float = 1.12
    pan_step_x: float = 80.0
    pan_step_y: float = 60.0

    # seconds
    transition_duration: float = 0.4
    reset_duration: float = 0.6
    global_duration: float = 0.75

    map_height: int = 400

    def __post_init__(self):
        if self.k_min <= 0 or self.k_min > self.k_max:
            raise ValueError(f"Invalid zoom bounds [{self.k_min}, {self.k_max}]")
        if self.focus_k_min > self.focus_k_max:
            raise ValueError(
                f"Invalid focus zoom bounds [{self.focus_k_min}, {self.focus_k_max}]"
            )

    @classmethod
    def from_env(cls) -> "ViewportConfig":
        """Load viewport config from environment variables."""
        return cls(
            k_min=float(os.getenv("ZOOM_MIN", "0.5")),
            k_max=float(os.getenv("ZOOM_MAX", "16")),
            map_height=int(os.getenv("MAP_HEIGHT", "400")),
        )


@dataclass
class DashboardConfig:
    """Application-level configuration."""

    title: str = "Global Disaster Explorer"
    page_icon: str = "🌍"
    layout: str = "wide"

    year_range: Tuple[int, int] = (2018, 2024)
    top_n: int = 5
    scatter_limit: int = 2000
    resize_debounce: float = 0.3  # seconds

    log_level: str = "INFO"

    def __post_init__(self):
        lo, hi = self.year_range
        if lo > hi:
            raise ValueError(f"Invalid default year range {self.year_range}")

    @classmethod
    def from_env(cls) -> "DashboardConfig":
        """Load dashboard config from environment variables."""
        return cls(
            title=os.getenv("APP_TITLE", "Global Disaster Explorer"),
            year_range=(
                int(os.getenv("YEAR_MIN", "2018")),
                int(os.getenv("YEAR_MAX", "2024")),
            ),
            top_n=int(os.getenv("TOP_N", "5")),
            scatter_limit=int(os.getenv("SCATTER_LIMIT", "2000")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


@dataclass
class Config:
    """Global configuration manager."""

    data: DataConfig = field(default_factory=DataConfig)
    viewport: ViewportConfig = field(default_factory=ViewportConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    root_dir: Path = field(default_factory=lambda: Path(__file__).parent.parent)

    _instance = None

    @property
    def records_file(self) -> Path:
        path = Path(self.data.records_path)
        return path if path.is_absolute() else self.root_dir / path

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            data=DataConfig.from_env(),
            viewport=ViewportConfig.from_env(),
            dashboard=DashboardConfig.from_env(),
        )

    @classmethod
    def load(cls) -> "Config":
        """Singleton pattern - load or return existing config."""
        if cls._instance is None:
            cls._instance = cls.from_env()
        return cls._instance
