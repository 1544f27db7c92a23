"""Test fixtures and configuration for pytest."""

import json

import pytest
import pandas as pd

from core.loader import DashboardData
from core.records import parse_records
from core.topology import load_topology


RAW_COLUMNS = [
    "date", "country", "disaster_type", "severity_index", "response_efficiency_score",
    "casualties", "response_time_hours", "economic_loss_usd", "aid_amount_usd",
    "latitude", "longitude",
]

RAW_ROWS = [
    ["2019-03-01", "Chile", "Earthquake", "8", "70", "10", "12", "1000000", "0", "-33.4", "-70.6"],
    ["2020-05-01", "Chile", "Flood", "3", "60", "", "24", "500000", "200000", "-33.5", "-70.7"],
    ["2021-07-10", "Japan", "Earthquake", "7", "80", "50", "10", "3000000", "100000", "35.7", "139.7"],
    ["2022-01-15", "Japan", "Storm", "5", "75", "5", "20", "2000000", "50000", "35.68", "139.69"],
    ["2018-09-09", "Brazil", "Flood", "6", "55", "30", "30", "800000", "300000", "-22.9", "-43.2"],
    ["2023-11-30", "Brazil", "Wildfire", "4", "50", "0", "40", "400000", "", "-3.1", "-60.0"],
    ["not-a-date", "Brazil", "Flood", "2", "50", "1", "5", "1000", "0", "-10.0", "-50.0"],
    ["2021-02-02", "Brazil", "Flood", "2", "50", "1", "5", "1000", "0", "abc", "-50.0"],
    ["2016-01-01", "Japan", "Flood", "2", "90", "1", "5", "100", "0", "34.0", "135.0"],
]


def square(lon0, lat0, lon1, lat1):
    return [[lon0, lat0], [lon1, lat0], [lon1, lat1], [lon0, lat1], [lon0, lat0]]


TOPOLOGY = {
    "type": "Topology",
    "objects": {
        "countries": {
            "type": "GeometryCollection",
            "geometries": [
                {"type": "Polygon", "arcs": [[0]], "id": "152", "properties": {"name": "Chile"}},
                {
                    "type": "MultiPolygon",
                    "arcs": [[[1]], [[2]]],
                    "id": "392",
                    "properties": {"name": "Japan"},
                },
                {"type": "Polygon", "arcs": [[3]], "properties": {"name": "Brazil"}},
                {"type": "Point", "coordinates": [0, 0], "properties": {"name": "Nowhere"}},
            ],
        }
    },
    "arcs": [
        square(-76, -56, -66, -17),
        square(129, 30, 146, 46),
        square(150, 20, 151, 21),
        square(-65, -34, -34, 5),
    ],
}


@pytest.fixture
def raw_records_df():
    """Raw CSV rows as read with every column as text."""
    return pd.DataFrame(RAW_ROWS, columns=RAW_COLUMNS)


@pytest.fixture
def sample_records(raw_records_df):
    """Parsed records: seven valid rows, one of them before 2018."""
    return parse_records(raw_records_df)


@pytest.fixture
def records_csv(tmp_path, raw_records_df):
    path = tmp_path / "data.csv"
    raw_records_df.to_csv(path, index=False)
    return path


@pytest.fixture
def topology_payload():
    return json.loads(json.dumps(TOPOLOGY))


@pytest.fixture
def topology_file(tmp_path, topology_payload):
    path = tmp_path / "countries.json"
    path.write_text(json.dumps(topology_payload), encoding="utf-8")
    return path


@pytest.fixture
def world(topology_file):
    return load_topology(topology_file)


@pytest.fixture
def dashboard_data(sample_records, world):
    return DashboardData(records=sample_records, world=world)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
