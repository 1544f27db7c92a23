"""
Aggregation pipeline turning filtered records into per-view datasets.

Every grouped reduction goes through :func:`rollup` with an explicit
:class:`Reducer`, so each metric has a fixed input column and output type.
Empty inputs produce :class:`NoData` instead of numbers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple, Union

import pandas as pd

from core.filtering import FilterSelection


KeyFn = Union[str, Callable[[pd.DataFrame], pd.Series]]

NO_DATA_MESSAGE = "No Data Found"
NOT_ENOUGH_DATA_MESSAGE = "Not enough data"


@dataclass(frozen=True)
class NoData:
    """Tagged empty result; views render ``reason`` instead of a chart."""

    reason: str = NO_DATA_MESSAGE

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class Reducer:
    """A typed reduction: ``count``, ``sum`` or ``mean`` over one column."""

    kind: str
    column: Optional[str] = None

    def __post_init__(self):
        if self.kind not in {"count", "sum", "mean"}:
            raise ValueError(f"Unsupported reducer '{self.kind}'")
        if self.kind != "count" and not self.column:
            raise ValueError(f"Reducer '{self.kind}' requires a column")

    @classmethod
    def count(cls) -> "Reducer":
        return cls("count")

    @classmethod
    def sum(cls, column: str) -> "Reducer":
        return cls("sum", column)

    @classmethod
    def mean(cls, column: str) -> "Reducer":
        return cls("mean", column)

    def reduce(self, frame: pd.DataFrame) -> float:
        """Reduce a whole (non-empty) frame to a single value."""
        if self.kind == "count":
            return int(len(frame))
        values = frame[self.column]
        return float(values.sum()) if self.kind == "sum" else float(values.mean())

    def reduce_groups(self, grouped) -> pd.Series:
        if self.kind == "count":
            return grouped.size()
        column = grouped[self.column]
        return column.sum() if self.kind == "sum" else column.mean()


@dataclass(frozen=True)
class Rollup:
    """Ordered ``(key, value)`` pairs from a grouped reduction."""

    items: Tuple[Tuple[str, float], ...]

    def __bool__(self) -> bool:
        return len(self.items) > 0

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @property
    def keys(self) -> List[str]:
        return [key for key, _ in self.items]

    @property
    def values(self) -> List[float]:
        return [value for _, value in self.items]

    def total(self) -> float:
        return float(sum(self.values))

    def to_dict(self) -> dict:
        return dict(self.items)


RollupResult = Union[Rollup, NoData]


def filter_records(records: pd.DataFrame, selection: FilterSelection) -> pd.DataFrame:
    """Rows matching the selection, in their original order."""
    if records is None or records.empty:
        return records
    return records.loc[selection.mask(records)]


def _key_series(filtered: pd.DataFrame, key: KeyFn) -> pd.Series:
    if callable(key):
        return pd.Series(key(filtered), index=filtered.index)
    if key not in filtered.columns:
        raise ValueError(f"Column '{key}' not found for grouping")
    return filtered[key]


def rollup(
    filtered: pd.DataFrame,
    key: KeyFn,
    reducer: Reducer,
    top_n: Optional[int] = None,
) -> RollupResult:
    """
    Group, reduce and rank.

    Values are sorted descending; ties keep the order in which their keys
    first appear in ``filtered``. ``top_n`` truncates the ranking.
    """
    if filtered is None or filtered.empty:
        return NoData()

    grouped = filtered.groupby(_key_series(filtered, key), sort=False)
    reduced = reducer.reduce_groups(grouped)
    ranked = reduced.sort_values(ascending=False, kind="stable")
    if top_n is not None:
        ranked = ranked.head(top_n)
    return Rollup(tuple((str(k), float(v)) for k, v in ranked.items()))


def aggregate(filtered: pd.DataFrame, reducer: Reducer) -> Union[float, NoData]:
    """Ungrouped counterpart of :func:`rollup`."""
    if filtered is None or filtered.empty:
        return NoData()
    return reducer.reduce(filtered)


def scale_upper_bound(values: Iterable[float], fallback: float = 1.0) -> float:
    """Max of ``values`` for a scale domain; zero, empty or non-finite maxima use ``fallback``."""
    finite = [float(v) for v in values if v is not None and math.isfinite(float(v))]
    if not finite:
        return fallback
    top = max(finite)
    return top if top > 0 else fallback


# ------------------------------------------------------------------
# Per-view datasets
# ------------------------------------------------------------------


@dataclass(frozen=True)
class Kpis:
    event_count: int
    total_loss: float


@dataclass(frozen=True)
class ImpactMetric:
    metric_id: str
    title: str
    reducer: Reducer


IMPACT_METRICS: Tuple[ImpactMetric, ...] = (
    ImpactMetric("freq", "Frequency", Reducer.count()),
    ImpactMetric("cas", "Casualties", Reducer.sum("casualties")),
    ImpactMetric("loss", "Loss ($)", Reducer.sum("economic_loss")),
)


@dataclass(frozen=True)
class ImpactChart:
    metric: ImpactMetric
    rollup: Rollup
    y_max: float


@dataclass(frozen=True)
class ImpactPanel:
    """The three side-by-side bar charts plus their shared grouping axis."""

    axis: str  # "country" or "disaster_type"
    title: str
    charts: Tuple[ImpactChart, ...]


@dataclass(frozen=True)
class AidShare:
    disaster_type: str
    aid: float
    share: float  # percent of total aid


@dataclass(frozen=True)
class AidTreemap:
    tiles: Tuple[AidShare, ...]
    color_max: float


@dataclass(frozen=True)
class YearlyPoint:
    year: int
    value: float


@dataclass(frozen=True)
class TrendLine:
    points: Tuple[YearlyPoint, ...]
    y_max: float


@dataclass(frozen=True)
class ScatterData:
    events: pd.DataFrame
    y_max: float
    r_max: float
    x_domain: Tuple[float, float] = (0.0, 10.0)


def compute_kpis(filtered: pd.DataFrame) -> Kpis:
    if filtered is None or filtered.empty:
        return Kpis(event_count=0, total_loss=0.0)
    return Kpis(
        event_count=Reducer.count().reduce(filtered),
        total_loss=Reducer.sum("economic_loss").reduce(filtered),
    )


def impact_axis(selected_countries: Iterable[str]) -> str:
    """Once scoped to one country, compare disaster types instead of countries."""
    return "disaster_type" if len(set(selected_countries)) == 1 else "country"


def impact_panel(
    filtered: pd.DataFrame,
    selected_countries: Iterable[str],
    top_n: int = 5,
) -> Union[ImpactPanel, NoData]:
    if filtered is None or filtered.empty:
        return NoData()

    selected = sorted(set(selected_countries))
    axis = impact_axis(selected)
    if axis == "disaster_type":
        title = f"Impact Prioritization by Type - {selected[0]}"
    else:
        title = f"Impact Analysis (Top {top_n} Countries)"

    charts = []
    for metric in IMPACT_METRICS:
        ranked = rollup(filtered, axis, metric.reducer, top_n=top_n)
        charts.append(ImpactChart(metric, ranked, scale_upper_bound(ranked.values)))
    return ImpactPanel(axis=axis, title=title, charts=tuple(charts))


def aid_by_type(filtered: pd.DataFrame) -> Union[AidTreemap, NoData]:
    ranked = rollup(filtered, "disaster_type", Reducer.sum("aid_amount"))
    if isinstance(ranked, NoData):
        return ranked

    total = ranked.total()
    tiles = tuple(
        AidShare(key, value, (value / total * 100.0) if total > 0 else 0.0)
        for key, value in ranked
    )
    return AidTreemap(tiles=tiles, color_max=scale_upper_bound(ranked.values))


def yearly_mean(filtered: pd.DataFrame, column: str = "response_time_hours") -> Union[TrendLine, NoData]:
    """Mean of ``column`` per year, ascending by year; needs at least two years."""
    if filtered is None or filtered.empty:
        return NoData()

    means = filtered.groupby("year")[column].mean().sort_index()
    if len(means) < 2:
        return NoData(NOT_ENOUGH_DATA_MESSAGE)

    points = tuple(YearlyPoint(int(year), float(value)) for year, value in means.items())
    return TrendLine(points=points, y_max=scale_upper_bound(means.values) * 1.2)


def top_events(filtered: pd.DataFrame, limit: int = 2000) -> Union[ScatterData, NoData]:
    """Largest events by economic loss for the severity-vs-aid scatter."""
    if filtered is None or filtered.empty:
        return NoData()

    events = filtered.sort_values("economic_loss", ascending=False, kind="stable").head(limit)
    return ScatterData(
        events=events,
        y_max=scale_upper_bound(events["aid_amount"], fallback=100000.0),
        r_max=scale_upper_bound(events["economic_loss"], fallback=1e9),
    )


def map_counts(filtered: pd.DataFrame) -> Union[Rollup, NoData]:
    """Event counts per topology display name, for the choropleth."""
    return rollup(filtered, "display_name", Reducer.count())
