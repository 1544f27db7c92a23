"""
Global Disaster Explorer - Streamlit Application

Thin UI layer: widgets feed the dashboard controller, figures come from
core.visualizations. All filtering, aggregation and viewport logic lives in
core/.
"""

import logging
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, Tuple
import sys

import streamlit as st

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import Config
from core.controller import COUNTRY_LIST, MAP_CONTAINER, TYPE_LIST, DashboardController
from core.loader import DashboardData, DashboardLoadError, load_dashboard_data_sync
from core.visualizations import (
    create_aid_treemap,
    create_impact_figure,
    create_map_figure,
    create_scatter_figure,
    create_trend_figure,
    kpi_values,
    legend_labels,
    no_data_figure,
)


CONFIG = Config.load()

logging.basicConfig(
    level=CONFIG.dashboard.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Page configuration
# ------------------------------------------------------------------
st.set_page_config(
    page_title=CONFIG.dashboard.title,
    page_icon=CONFIG.dashboard.page_icon,
    layout=CONFIG.dashboard.layout,
    initial_sidebar_state="expanded",
)

CONTROLLER_KEY = "dashboard_controller"
YEAR_RANGE_KEY = "year-range"
TOOLTIP_KEY = "tooltip_html"
PENDING_SYNC_KEY = "pending_control_sync"
REDRAW_KEY = "pending_redraw"
MAP_HEIGHT_KEY = "map-height"
HANDLED_SELECTION_KEY = "handled_selections"

MAP_WIDTH = 960.0


# ------------------------------------------------------------------
# Collaborators backed by session state
# ------------------------------------------------------------------
class SessionCheckboxList:
    def get_selected(self, list_id: str) -> List[str]:
        return list(st.session_state.get(list_id, []))

    def set_selected(self, list_id: str, labels: Sequence[str]) -> None:
        st.session_state[list_id] = list(labels)


class SessionRangeSlider:
    def __init__(self, bounds: Tuple[int, int]):
        self.bounds = bounds
        self._callbacks: List[Callable[[int, int], None]] = []

    def get_range(self) -> Tuple[int, int]:
        lo, hi = st.session_state.get(YEAR_RANGE_KEY, self.bounds)
        return int(lo), int(hi)

    def on_change(self, callback: Callable[[int, int], None]) -> None:
        self._callbacks.append(callback)

    def changed(self) -> None:
        lo, hi = self.get_range()
        for callback in self._callbacks:
            callback(lo, hi)


class SessionViewportSize:
    def get_size(self, container_id: str) -> Tuple[float, float]:
        return MAP_WIDTH, float(st.session_state.get(MAP_HEIGHT_KEY, CONFIG.viewport.map_height))


class SessionTooltip:
    def show(self, anchor: Tuple[float, float], html: str) -> None:
        st.session_state[TOOLTIP_KEY] = html

    def hide(self) -> None:
        st.session_state.pop(TOOLTIP_KEY, None)


CHECKBOXES = SessionCheckboxList()
TOOLTIP = SessionTooltip()
VIEWPORT_SIZE = SessionViewportSize()


# ------------------------------------------------------------------
# Cached helpers
# ------------------------------------------------------------------
@st.cache_resource(show_spinner="Loading disaster records and world map...")
def get_dashboard_data() -> DashboardData:
    return load_dashboard_data_sync(CONFIG)


def get_controller(data: DashboardData) -> DashboardController:
    if CONTROLLER_KEY not in st.session_state:
        size = VIEWPORT_SIZE.get_size(MAP_CONTAINER)
        controller = DashboardController(data, CONFIG, size=size)
        controller.highlight.subscribe(_request_redraw)
        st.session_state[CONTROLLER_KEY] = controller
        st.session_state[YEAR_RANGE_KEY] = CONFIG.dashboard.year_range
        st.session_state[MAP_HEIGHT_KEY] = CONFIG.viewport.map_height
        controller.push_controls(CHECKBOXES)
    return st.session_state[CONTROLLER_KEY]


def _request_redraw(key: Optional[str]) -> None:
    st.session_state[REDRAW_KEY] = True


def _selection_change(chart_key: str, event: Any) -> Tuple[bool, Optional[dict]]:
    """Whether a chart's selection changed since the last run, and its first point."""
    points = (event or {}).get("selection", {}).get("points", []) if event else []
    signature = repr(points) if points else None
    handled = st.session_state.setdefault(HANDLED_SELECTION_KEY, {})
    if handled.get(chart_key) == signature:
        return False, None
    handled[chart_key] = signature
    return True, points[0] if points else None


# ------------------------------------------------------------------
# Layout
# ------------------------------------------------------------------
def render_sidebar(controller: DashboardController, slider: SessionRangeSlider) -> None:
    if st.session_state.pop(PENDING_SYNC_KEY, False):
        controller.push_controls(CHECKBOXES)

    def on_filters_changed() -> None:
        controller.apply_controls(CHECKBOXES, slider)

    with st.sidebar:
        st.header("Filters")
        st.multiselect("Countries", controller.data.countries, key=COUNTRY_LIST,
                       on_change=on_filters_changed)
        st.multiselect("Disaster types", controller.data.types, key=TYPE_LIST,
                       on_change=on_filters_changed)
        lo, hi = CONFIG.dashboard.year_range
        st.slider("Years", min_value=lo, max_value=hi, step=1, key=YEAR_RANGE_KEY,
                  on_change=slider.changed)

        def on_map_resized() -> None:
            controller.notify_resize(VIEWPORT_SIZE.get_size(MAP_CONTAINER))

        st.slider("Map height", min_value=250, max_value=800, step=25, key=MAP_HEIGHT_KEY,
                  on_change=on_map_resized)

        def on_reset() -> None:
            controller.reset_all()
            controller.push_controls(CHECKBOXES)
            st.session_state[YEAR_RANGE_KEY] = CONFIG.dashboard.year_range

        st.button("Reset", on_click=on_reset, use_container_width=True)


def render_map_controls(controller: DashboardController, show_back: bool) -> None:
    def back() -> None:
        controller.reset_zoom_and_selection()
        controller.push_controls(CHECKBOXES)

    cols = st.columns(7)
    cols[0].button("+", on_click=controller.zoom_in, key="zoom-in")
    cols[1].button("-", on_click=controller.zoom_out, key="zoom-out")
    if show_back:
        cols[2].button("⤺", on_click=back, key="back")
    cols[3].button("↑", on_click=controller.pan, args=("up",), key="pan-up")
    cols[4].button("←", on_click=controller.pan, args=("left",), key="pan-left")
    cols[5].button("→", on_click=controller.pan, args=("right",), key="pan-right")
    cols[6].button("↓", on_click=controller.pan, args=("down",), key="pan-down")


def render_map(controller: DashboardController, render) -> None:
    render_map_controls(controller, render.show_back_button)
    if render.no_data:
        st.plotly_chart(no_data_figure(), use_container_width=True)
        return

    fig = create_map_figure(render, controller.data.world, controller.projection, controller.viewport.frame())
    event = st.plotly_chart(fig, use_container_width=True, key="map", on_select="rerun",
                            selection_mode="points")
    changed, point = _selection_change("map", event)
    if changed and point is None:
        controller.hover_out(TOOLTIP)
    elif point is not None:
        target = point.get("customdata")
        cluster = next((c for c in render.clusters if c.key == target), None)
        if cluster is not None:
            controller.hover_cluster(cluster, (0.0, 0.0), TOOLTIP)
            _request_redraw(cluster.key)
        elif target:
            controller.select_country_from_map(str(target))
            st.session_state[PENDING_SYNC_KEY] = True
            st.rerun()

    if render.cluster_scales is not None and render.clusters:
        lo, hi = legend_labels(render.cluster_scales)
        st.caption(f"Cluster Events: {lo} – {hi}")
    if TOOLTIP_KEY in st.session_state:
        st.markdown(st.session_state[TOOLTIP_KEY], unsafe_allow_html=True)


def render_views(controller: DashboardController, render) -> None:
    left, right = st.columns(2)
    with left:
        event = st.plotly_chart(create_impact_figure(render.impact, controller.highlight),
                                use_container_width=True, key="impact", on_select="rerun",
                                selection_mode="points")
        changed, point = _selection_change("impact", event)
        if changed and point is None:
            controller.hover_out(TOOLTIP)
        elif point is not None and not render.no_data:
            chart = render.impact.charts[int(point.get("curve_number", 0))]
            controller.hover_bar(str(point.get("customdata", point.get("x"))), chart.metric.title,
                                 float(point.get("y", 0.0)), chart.metric.metric_id, (0.0, 0.0), TOOLTIP)
        st.plotly_chart(create_aid_treemap(render.aid), use_container_width=True)
    with right:
        event = st.plotly_chart(create_scatter_figure(render.scatter), use_container_width=True,
                                key="scatter", on_select="rerun", selection_mode="points")
        changed, point = _selection_change("scatter", event)
        if changed and point is None:
            controller.hover_out(TOOLTIP)
        elif point is not None and not render.no_data:
            index = point.get("point_index")
            if index is not None:
                controller.hover_event(render.scatter.events.iloc[int(index)])
        st.plotly_chart(create_trend_figure(render.trend), use_container_width=True)


@st.fragment(run_every=CONFIG.dashboard.resize_debounce)
def poll_map_resize(controller: DashboardController) -> None:
    """Applies a map resize once the size has stopped changing."""
    if controller.poll_resize() is not None:
        st.rerun()


def main() -> None:
    try:
        data = get_dashboard_data()
    except DashboardLoadError as exc:
        st.error(f"Could not load dashboard data: {exc}")
        st.stop()

    controller = get_controller(data)
    slider = SessionRangeSlider(CONFIG.dashboard.year_range)
    slider.on_change(controller.set_year_range)
    render_sidebar(controller, slider)

    render = controller.render()
    kpis = kpi_values(render)
    st.title(CONFIG.dashboard.title)
    c1, c2, c3 = st.columns(3)
    c1.metric("Events", kpis["events"])
    c2.metric("Economic loss", kpis["loss"])
    c3.metric("Countries", kpis["status"])

    render_map(controller, render)
    render_views(controller, render)
    poll_map_resize(controller)

    if st.session_state.pop(REDRAW_KEY, False):
        st.rerun()


main()
