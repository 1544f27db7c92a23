"""Concurrent startup load of the records table and the world topology."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List

import pandas as pd

from config.settings import Config
from core.records import catalog, load_records
from core.topology import WorldTopology, load_topology


logger = logging.getLogger(__name__)


class DashboardLoadError(RuntimeError):
    """A startup fetch failed; the dashboard must not start with partial data."""


@dataclass
class DashboardData:
    """Everything loaded once at startup and never mutated afterwards."""

    records: pd.DataFrame
    world: WorldTopology
    countries: List[str] = field(default_factory=list)
    types: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.countries:
            self.countries = catalog(self.records, "country")
        if not self.types:
            self.types = catalog(self.records, "disaster_type")


async def load_dashboard_data(config: Config) -> DashboardData:
    """Fetch records and topology side by side; fail as a whole if either fails."""
    try:
        records, world = await asyncio.gather(
            asyncio.to_thread(load_records, config.records_file),
            asyncio.to_thread(load_topology, config.data.topology_source),
        )
    except Exception as exc:
        logger.error("Dashboard initialisation failed: %s", exc)
        raise DashboardLoadError(str(exc)) from exc

    return DashboardData(records=records, world=world)


def load_dashboard_data_sync(config: Config) -> DashboardData:
    return asyncio.run(load_dashboard_data(config))
