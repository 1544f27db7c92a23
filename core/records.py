"""Parsing of the disaster-event CSV into the immutable records frame."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Union

import pandas as pd


logger = logging.getLogger(__name__)


# CSV country label -> topology display name. Labels missing here are used as-is.
COUNTRY_NAME_MAPPING: Dict[str, str] = {
    "United States of America": "United States of America",
    "China": "China",
    "India": "India",
    "Indonesia": "Indonesia",
    "Philippines": "Philippines",
    "Japan": "Japan",
    "Mexico": "Mexico",
    "Brazil": "Brazil",
    "Turkey": "Turkey",
    "Chile": "Chile",
    "Canada": "Canada",
    "Australia": "Australia",
    "France": "France",
    "Germany": "Germany",
    "Italy": "Italy",
    "Spain": "Spain",
    "Greece": "Greece",
    "Nigeria": "Nigeria",
    "Bangladesh": "Bangladesh",
    "South Africa": "South Africa",
}

SOURCE_COLUMNS = {
    "date": "date",
    "country": "country",
    "disaster_type": "disaster_type",
    "severity_index": "severity",
    "response_efficiency_score": "response_efficiency",
    "casualties": "casualties",
    "response_time_hours": "response_time_hours",
    "economic_loss_usd": "economic_loss",
    "aid_amount_usd": "aid_amount",
    "latitude": "latitude",
    "longitude": "longitude",
}

RECORD_COLUMNS: List[str] = [
    "date",
    "year",
    "country",
    "display_name",
    "disaster_type",
    "severity",
    "response_efficiency",
    "casualties",
    "response_time_hours",
    "economic_loss",
    "aid_amount",
    "latitude",
    "longitude",
]


def display_name_for(country: str) -> str:
    """Topology name for a CSV country label, falling back to the label."""
    return COUNTRY_NAME_MAPPING.get(country, country)


def country_for_display_name(name: str) -> str:
    """Reverse lookup used when a map feature is clicked."""
    for country, display in COUNTRY_NAME_MAPPING.items():
        if display == name:
            return country
    return name


def parse_records(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Turn raw CSV rows into typed event records.

    Rows without a parseable ISO date or a numeric latitude are dropped.
    Missing casualties and aid default to 0; other numeric fields become NaN
    when they cannot be parsed.
    """
    missing = [col for col in SOURCE_COLUMNS if col not in raw.columns]
    if missing:
        raise ValueError(f"Records are missing columns: {', '.join(missing)}")

    df = raw[list(SOURCE_COLUMNS)].rename(columns=SOURCE_COLUMNS)

    dates = pd.to_datetime(df["date"], format="%Y-%m-%d", errors="coerce")
    latitudes = pd.to_numeric(df["latitude"], errors="coerce")
    keep = dates.notna() & latitudes.notna()

    dropped = int((~keep).sum())
    if dropped:
        logger.info("Dropped %d of %d rows with a bad date or latitude", dropped, len(df))

    records = pd.DataFrame(
        {
            "date": dates[keep],
            "year": dates[keep].dt.year.astype("int64"),
            "country": df.loc[keep, "country"].astype(str),
            "disaster_type": df.loc[keep, "disaster_type"].astype(str),
            "severity": pd.to_numeric(df.loc[keep, "severity"], errors="coerce"),
            "response_efficiency": pd.to_numeric(
                df.loc[keep, "response_efficiency"], errors="coerce"
            ),
            "casualties": pd.to_numeric(df.loc[keep, "casualties"], errors="coerce")
            .fillna(0)
            .astype("int64"),
            "response_time_hours": pd.to_numeric(
                df.loc[keep, "response_time_hours"], errors="coerce"
            ),
            "economic_loss": pd.to_numeric(df.loc[keep, "economic_loss"], errors="coerce"),
            "aid_amount": pd.to_numeric(df.loc[keep, "aid_amount"], errors="coerce").fillna(0.0),
            "latitude": latitudes[keep],
            "longitude": pd.to_numeric(df.loc[keep, "longitude"], errors="coerce"),
        }
    )
    records["display_name"] = records["country"].map(display_name_for)
    return records[RECORD_COLUMNS].reset_index(drop=True)


def load_records(path: Union[str, Path]) -> pd.DataFrame:
    """Read and parse the records CSV."""
    raw = pd.read_csv(path, dtype=str, keep_default_na=False)
    records = parse_records(raw)
    logger.info("Loaded %d event records from %s", len(records), path)
    return records


def catalog(records: pd.DataFrame, column: str) -> List[str]:
    """Sorted unique labels of a column, used to populate the checkbox lists."""
    if records is None or records.empty:
        return []
    return sorted(records[column].unique().tolist())
