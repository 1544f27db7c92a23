"""Tests for the filter selection."""

import pytest

from core.filtering import FilterSelection, FilterState


COUNTRIES = ["Brazil", "Chile", "Japan"]
TYPES = ["Earthquake", "Flood", "Storm", "Wildfire"]


@pytest.fixture
def state():
    return FilterState(country_catalog=COUNTRIES, type_catalog=TYPES)


class TestFilterState:
    """Tests for global vs. scoped classification."""

    def test_starts_with_everything_selected(self, state):
        assert state.countries == frozenset(COUNTRIES)
        assert state.types == frozenset(TYPES)
        assert state.year_range == (2018, 2024)
        assert state.is_global()

    def test_full_catalog_is_equivalent_to_empty(self, state, sample_records):
        full = state.snapshot()
        state.set_countries([])
        empty = state.snapshot()

        assert state.is_global()
        assert full == empty
        assert full.mask(sample_records).equals(empty.mask(sample_records))

    def test_single_country_is_scoped(self, state):
        state.set_countries({"Chile"})

        assert not state.is_global()
        assert state.is_single_country()
        assert state.single_country() == "Chile"
        assert state.country_status_label() == "1 Selected"
        assert state.show_back_button()

    def test_type_axis_degrades_independently(self, state):
        state.set_types(["Flood"])
        assert not state.is_global()
        assert state.countries_global()

        state.set_types([])
        assert state.is_global()

    def test_status_label_for_global(self, state):
        assert state.country_status_label() == "Global View"
        assert not state.show_back_button()

    def test_invalid_year_range_raises(self, state):
        with pytest.raises(ValueError):
            state.set_year_range(2022, 2019)

    def test_reset_restores_defaults(self, state):
        state.set_countries(["Chile"])
        state.set_types(["Flood"])
        state.set_year_range(2020, 2021)

        state.reset()

        assert state.is_global()
        assert state.year_range == (2018, 2024)


class TestFilterSelection:
    """Tests for the record predicate."""

    def test_matches_dict_record(self):
        selection = FilterSelection(frozenset({"Chile"}), frozenset(), (2018, 2024))

        assert selection.matches({"country": "Chile", "disaster_type": "Flood", "year": 2020})
        assert not selection.matches({"country": "Japan", "disaster_type": "Flood", "year": 2020})
        assert not selection.matches({"country": "Chile", "disaster_type": "Flood", "year": 2017})

    def test_year_bounds_are_inclusive(self):
        selection = FilterSelection(year_range=(2019, 2020))

        assert selection.matches({"country": "X", "disaster_type": "Y", "year": 2019})
        assert selection.matches({"country": "X", "disaster_type": "Y", "year": 2020})

    def test_mask_agrees_with_matches(self, sample_records):
        selection = FilterSelection(frozenset({"Japan", "Brazil"}), frozenset({"Flood", "Storm"}), (2018, 2024))

        mask = selection.mask(sample_records)
        expected = [selection.matches(row) for _, row in sample_records.iterrows()]

        assert mask.tolist() == expected
        assert mask.sum() == 2
