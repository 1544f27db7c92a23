"""Country/type/year filter selection applied to the records frame."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Mapping, Sequence, Tuple

import pandas as pd


YearRange = Tuple[int, int]


def _check_range(lo: int, hi: int) -> YearRange:
    if lo > hi:
        raise ValueError(f"Year range lower bound {lo} exceeds upper bound {hi}")
    return int(lo), int(hi)


@dataclass(frozen=True)
class FilterSelection:
    """
    Immutable snapshot of the active filters.

    An empty country or type set means "everything", exactly like a set that
    holds the whole catalog.
    """

    countries: FrozenSet[str] = frozenset()
    types: FrozenSet[str] = frozenset()
    year_range: YearRange = (2018, 2024)

    def matches(self, record: Mapping[str, Any]) -> bool:
        """Row-level predicate; works with dicts and pandas rows alike."""
        lo, hi = self.year_range
        if self.countries and record["country"] not in self.countries:
            return False
        if self.types and record["disaster_type"] not in self.types:
            return False
        return lo <= record["year"] <= hi

    def mask(self, records: pd.DataFrame) -> pd.Series:
        """Vectorised form of :meth:`matches`."""
        lo, hi = self.year_range
        mask = records["year"].between(lo, hi)
        if self.countries:
            mask &= records["country"].isin(self.countries)
        if self.types:
            mask &= records["disaster_type"].isin(self.types)
        return mask


@dataclass
class FilterState:
    """Mutable owner of the current selection plus the catalogs it is judged against."""

    country_catalog: Sequence[str] = field(default_factory=list)
    type_catalog: Sequence[str] = field(default_factory=list)
    default_year_range: YearRange = (2018, 2024)
    countries: FrozenSet[str] = field(init=False)
    types: FrozenSet[str] = field(init=False)
    year_range: YearRange = field(init=False)

    def __post_init__(self):
        self.default_year_range = _check_range(*self.default_year_range)
        self.reset()

    # -- mutation ---------------------------------------------------------

    def set_countries(self, countries: Iterable[str]) -> None:
        self.countries = frozenset(countries)

    def set_types(self, types: Iterable[str]) -> None:
        self.types = frozenset(types)

    def set_year_range(self, lo: int, hi: int) -> None:
        self.year_range = _check_range(lo, hi)

    def select_all_countries(self) -> None:
        self.countries = frozenset(self.country_catalog)

    def reset(self) -> None:
        """Everything selected, full default year range."""
        self.countries = frozenset(self.country_catalog)
        self.types = frozenset(self.type_catalog)
        self.year_range = self.default_year_range

    # -- queries ----------------------------------------------------------

    def _axis_is_global(self, selected: FrozenSet[str], catalog: Sequence[str]) -> bool:
        return len(selected) == 0 or len(selected) == len(catalog)

    def countries_global(self) -> bool:
        return self._axis_is_global(self.countries, self.country_catalog)

    def is_global(self) -> bool:
        return self.countries_global() and self._axis_is_global(self.types, self.type_catalog)

    def is_single_country(self) -> bool:
        return len(self.countries) == 1

    def single_country(self):
        return next(iter(self.countries)) if self.is_single_country() else None

    def show_back_button(self) -> bool:
        return 0 < len(self.countries) < len(self.country_catalog)

    def country_status_label(self) -> str:
        if self.countries_global():
            return "Global View"
        return f"{len(self.countries)} Selected"

    def snapshot(self) -> FilterSelection:
        """
        Freeze the current selection.

        A full-catalog axis collapses to the empty set so the snapshot
        behaves identically to "nothing selected".
        """
        countries = frozenset() if self.countries_global() else self.countries
        types = frozenset() if self._axis_is_global(self.types, self.type_catalog) else self.types
        return FilterSelection(countries=countries, types=types, year_range=self.year_range)
