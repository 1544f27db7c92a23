"""
Dashboard controller: the single owner of filter and viewport state.

Each interaction mutates :class:`FilterState` or :class:`ViewportTransform`
and the controller recomputes a full :class:`RenderPass`. Nothing is cached
between passes.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple, Union

import pandas as pd

from config.settings import Config
from core.aggregation import (
    AidTreemap,
    ImpactPanel,
    Kpis,
    NoData,
    Rollup,
    ScatterData,
    TrendLine,
    aid_by_type,
    compute_kpis,
    filter_records,
    impact_axis,
    impact_panel,
    map_counts,
    scale_upper_bound,
    top_events,
    yearly_mean,
)
from core.filtering import FilterSelection, FilterState
from core.geospatial import Cluster, ClusterScales, cluster_events
from core.highlight import CrossHighlightBus
from core.loader import DashboardData
from core.projection import MercatorProjection
from core.records import country_for_display_name, display_name_for
from core.tooltips import bar_tooltip, cluster_tooltip, format_money
from core.viewport import Point, Size, ViewportState, ViewportTransform


logger = logging.getLogger(__name__)

COUNTRY_LIST = "country-list"
TYPE_LIST = "type-list"
MAP_CONTAINER = "chart-map"


# ------------------------------------------------------------------
# Collaborator contracts implemented by the UI shell
# ------------------------------------------------------------------
class CheckboxList(Protocol):
    def get_selected(self, list_id: str) -> List[str]: ...

    def set_selected(self, list_id: str, labels: Sequence[str]) -> None: ...


class RangeSlider(Protocol):
    def get_range(self) -> Tuple[int, int]: ...

    def on_change(self, callback: Callable[[int, int], None]) -> None: ...


class ViewportSize(Protocol):
    def get_size(self, container_id: str) -> Size: ...


class Tooltip(Protocol):
    def show(self, anchor: Point, html: str) -> None: ...

    def hide(self) -> None: ...


class Debouncer:
    """Coalesces bursts of events into one, fired after a quiet period."""

    def __init__(self, quiet_period: float, clock: Callable[[], float] = time.monotonic):
        self.quiet_period = quiet_period
        self.clock = clock
        self._pending: Any = None
        self._deadline: Optional[float] = None

    def notify(self, payload: Any) -> None:
        self._pending = payload
        self._deadline = self.clock() + self.quiet_period

    @property
    def pending(self) -> bool:
        return self._deadline is not None

    def poll(self) -> Optional[Any]:
        """The latest payload once the quiet period has elapsed, else ``None``."""
        if self._deadline is None or self.clock() < self._deadline:
            return None
        payload, self._pending, self._deadline = self._pending, None, None
        return payload


@dataclass
class RenderPass:
    """Everything the views need for one redraw."""

    selection: FilterSelection
    status_label: str
    show_back_button: bool
    is_global: bool
    kpis: Kpis
    viewport: ViewportState
    no_data: bool = False
    map_counts: Union[Rollup, NoData] = field(default_factory=NoData)
    map_color_max: float = 1.0
    highlighted_feature: Optional[str] = None
    impact: Union[ImpactPanel, NoData] = field(default_factory=NoData)
    aid: Union[AidTreemap, NoData] = field(default_factory=NoData)
    scatter: Union[ScatterData, NoData] = field(default_factory=NoData)
    trend: Union[TrendLine, NoData] = field(default_factory=NoData)
    clusters: List[Cluster] = field(default_factory=list)
    cluster_scales: Optional[ClusterScales] = None
    active_cluster: Optional[str] = None

    @property
    def loss_label(self) -> str:
        return format_money(self.kpis.total_loss)


class DashboardController:
    """Holds the session's application state and answers every interaction."""

    def __init__(
        self,
        data: DashboardData,
        config: Optional[Config] = None,
        size: Size = (960.0, 400.0),
        clock: Callable[[], float] = time.monotonic,
    ):
        self.data = data
        self.config = config or Config()
        self.filters = FilterState(
            country_catalog=data.countries,
            type_catalog=data.types,
            default_year_range=self.config.dashboard.year_range,
        )
        self.viewport = ViewportTransform(size, self.config.viewport, clock)
        self.projection = MercatorProjection(*size)
        self.highlight = CrossHighlightBus()
        self.resize_debouncer = Debouncer(self.config.dashboard.resize_debounce, clock)
        self.active_cluster: Optional[str] = None

    # -- filter interactions ----------------------------------------------

    def set_countries(self, countries: Sequence[str]) -> RenderPass:
        self.filters.set_countries(countries)
        self._sync_viewport()
        return self.render()

    def set_types(self, types: Sequence[str]) -> RenderPass:
        self.filters.set_types(types)
        return self.render()

    def set_year_range(self, lo: int, hi: int) -> RenderPass:
        self.filters.set_year_range(lo, hi)
        return self.render()

    def apply_controls(self, checkboxes: CheckboxList, slider: RangeSlider) -> RenderPass:
        """Read the current control values and redraw."""
        countries = frozenset(checkboxes.get_selected(COUNTRY_LIST))
        self.filters.set_types(checkboxes.get_selected(TYPE_LIST))
        self.filters.set_year_range(*slider.get_range())
        if countries != self.filters.countries:
            self.filters.set_countries(countries)
            self._sync_viewport()
        return self.render()

    def push_controls(self, checkboxes: CheckboxList) -> None:
        checkboxes.set_selected(COUNTRY_LIST, sorted(self.filters.countries))
        checkboxes.set_selected(TYPE_LIST, sorted(self.filters.types))

    def select_country_from_map(self, feature_name: str) -> RenderPass:
        """Clicking a country on the map scopes the dashboard to it alone."""
        return self.set_countries([country_for_display_name(feature_name)])

    def reset_all(self) -> RenderPass:
        self.filters.reset()
        self.viewport.reset(self.config.viewport.global_duration)
        self.highlight.clear()
        return self.render()

    def reset_zoom_and_selection(self) -> RenderPass:
        self.filters.select_all_countries()
        self.viewport.reset(self.config.viewport.reset_duration)
        return self.render()

    # -- viewport interactions --------------------------------------------

    def zoom_in(self) -> ViewportState:
        return self.viewport.zoom_in()

    def zoom_out(self) -> ViewportState:
        return self.viewport.zoom_out()

    def pan(self, direction: str) -> ViewportState:
        return self.viewport.pan(direction)

    def wheel(self, delta_y: float, cursor: Point) -> ViewportState:
        single = self.filters.is_single_country() and not self.viewport.state.is_global
        return self.viewport.wheel(delta_y, cursor, single_entity=single)

    def drag_start(self, pointer: Point) -> None:
        self.viewport.drag_start(pointer)

    def drag_move(self, pointer: Point) -> ViewportState:
        return self.viewport.drag_move(pointer)

    def drag_end(self) -> None:
        self.viewport.drag_end()

    def notify_resize(self, size: Size) -> None:
        self.resize_debouncer.notify(size)

    def poll_resize(self) -> Optional[RenderPass]:
        size = self.resize_debouncer.poll()
        if size is None:
            return None
        self.viewport.resize(size)
        self.projection = MercatorProjection(*size)
        self._sync_viewport()
        return self.render()

    def _focused_feature(self):
        country = self.filters.single_country()
        if country is None:
            return None
        return self.data.world.feature(display_name_for(country))

    def _sync_viewport(self) -> None:
        """Fit the map to a lone selected country, otherwise return to world view."""
        if self.filters.is_single_country():
            feature = self._focused_feature()
            if feature is not None:
                bounds = self.projection.bounds(feature)
                logger.debug("Focusing map on %s with bounds %s", feature.name, bounds)
                self.viewport.focus_on(bounds, feature.name)
                return
            logger.warning(
                "No map feature for %s; staying in world view", self.filters.single_country()
            )
        if self.viewport.state != ViewportState():
            self.viewport.reset(self.config.viewport.global_duration)

    # -- hover / highlight ------------------------------------------------

    def hover_bar(self, key: str, metric_title: str, value: float, metric_id: str,
                  anchor: Point, tooltip: Tooltip) -> None:
        tooltip.show(anchor, bar_tooltip(key, metric_title, value, metric_id))
        self.highlight.broadcast(key)

    def hover_event(self, event: pd.Series) -> None:
        """Scatter hover highlights the bar along the current grouping axis."""
        axis = impact_axis(self.filters.countries)
        self.highlight.broadcast(str(event[axis]))

    def hover_cluster(self, cluster: Cluster, anchor: Point, tooltip: Tooltip) -> None:
        tooltip.show(anchor, cluster_tooltip(cluster))
        self.active_cluster = cluster.key

    def hover_out(self, tooltip: Tooltip) -> None:
        tooltip.hide()
        self.active_cluster = None
        self.highlight.clear()

    # -- render pass ------------------------------------------------------

    def render(self) -> RenderPass:
        selection = self.filters.snapshot()
        filtered = filter_records(self.data.records, selection)
        pass_ = RenderPass(
            selection=selection,
            status_label=self.filters.country_status_label(),
            show_back_button=self.filters.show_back_button(),
            is_global=self.filters.is_global(),
            kpis=compute_kpis(filtered),
            viewport=self.viewport.state,
        )
        if filtered is None or filtered.empty:
            pass_.no_data = True
            return pass_

        counts = map_counts(filtered)
        pass_.map_counts = counts
        pass_.map_color_max = scale_upper_bound(counts.values) if counts else 1.0
        pass_.impact = impact_panel(filtered, self.filters.countries, self.config.dashboard.top_n)
        pass_.aid = aid_by_type(filtered)
        pass_.scatter = top_events(filtered, self.config.dashboard.scatter_limit)
        pass_.trend = yearly_mean(filtered, "response_time_hours")

        feature = self._focused_feature()
        if feature is not None:
            pass_.highlighted_feature = feature.name
            pass_.clusters = cluster_events(filtered, feature)
            pass_.cluster_scales = ClusterScales.from_clusters(pass_.clusters)
            if any(c.key == self.active_cluster for c in pass_.clusters):
                pass_.active_cluster = self.active_cluster
        return pass_
