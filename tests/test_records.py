"""Tests for CSV record parsing."""

import pytest
import pandas as pd

from core.records import (
    RECORD_COLUMNS,
    catalog,
    country_for_display_name,
    display_name_for,
    load_records,
    parse_records,
)


class TestParseRecords:
    """Tests for turning raw rows into event records."""

    def test_drops_rows_with_bad_date_or_latitude(self, sample_records):
        assert len(sample_records) == 7
        assert list(sample_records.columns) == RECORD_COLUMNS

    def test_keeps_original_row_order(self, sample_records):
        assert sample_records["country"].tolist() == [
            "Chile", "Chile", "Japan", "Japan", "Brazil", "Brazil", "Japan",
        ]

    def test_missing_casualties_and_aid_default_to_zero(self, sample_records):
        assert sample_records.loc[1, "casualties"] == 0
        assert sample_records.loc[5, "aid_amount"] == 0.0

    def test_year_and_numeric_fields(self, sample_records):
        first = sample_records.iloc[0]
        assert first["year"] == 2019
        assert first["severity"] == 8.0
        assert first["economic_loss"] == 1_000_000
        assert first["latitude"] == pytest.approx(-33.4)
        assert first["longitude"] == pytest.approx(-70.6)

    def test_missing_latitude_is_dropped(self, raw_records_df):
        raw_records_df.loc[0, "latitude"] = ""
        assert len(parse_records(raw_records_df)) == 6

    def test_missing_column_raises(self, raw_records_df):
        with pytest.raises(ValueError):
            parse_records(raw_records_df.drop(columns=["latitude"]))

    def test_load_from_csv(self, records_csv):
        records = load_records(records_csv)
        assert len(records) == 7
        assert records["casualties"].dtype == "int64"


class TestNameMapping:
    """Tests for country display-name lookups."""

    def test_mapped_name(self):
        assert display_name_for("Chile") == "Chile"

    def test_unmapped_label_falls_back_to_itself(self):
        assert display_name_for("Atlantis") == "Atlantis"
        assert country_for_display_name("Atlantis") == "Atlantis"

    def test_display_name_column(self, sample_records):
        assert (sample_records["display_name"] == sample_records["country"]).all()


class TestCatalog:
    def test_sorted_unique(self, sample_records):
        assert catalog(sample_records, "country") == ["Brazil", "Chile", "Japan"]
        assert catalog(sample_records, "disaster_type") == [
            "Earthquake", "Flood", "Storm", "Wildfire",
        ]

    def test_empty_frame(self):
        assert catalog(pd.DataFrame(columns=RECORD_COLUMNS), "country") == []
