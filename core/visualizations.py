"""
Plotly figures for the linked dashboard views.

Each builder consumes one dataset of a render pass and returns a
``go.Figure``. Styling stays minimal; highlighting comes from the
cross-highlight bus.
"""

from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import plotly.graph_objects as go
from plotly.colors import sample_colorscale
from plotly.subplots import make_subplots

from core.aggregation import AidTreemap, ImpactPanel, NoData, ScatterData, TrendLine
from core.controller import RenderPass
from core.geospatial import ClusterScales
from core.highlight import CrossHighlightBus
from core.projection import MercatorProjection
from core.records import country_for_display_name
from core.tooltips import aid_tooltip, cluster_tooltip, country_tooltip, format_money
from core.topology import WorldTopology, geometry_rings
from core.viewport import ViewportState


TYPE_COLORS: Dict[str, str] = {
    "Earthquake": "#7986cb",
    "Flood": "#4fc3f7",
    "Storm": "#9ccc65",
    "Wildfire": "#ff8a65",
    "Drought": "#ba68c8",
    "Volcano": "#90a4ae",
}
DEFAULT_TYPE_COLOR = "#b0bec5"

METRIC_COLORS = {"freq": "#00897b", "cas": "#e53935", "loss": "#fb8c00"}

NO_DATA_FILL = "#37474f"
FOCUSED_FILL = "#263238"
SELECTED_STROKE = "#00e5ff"
DEFAULT_STROKE = "#546e7a"
MAP_BACKGROUND = "#1e293b"


def _log_color(value: float, domain_max: float) -> str:
    """Colour on the YlOrRd ramp for a log scale over ``[1, domain_max]``."""
    if domain_max <= 1:
        position = 0.0
    else:
        position = float(np.clip(np.log(max(value, 1)) / np.log(domain_max), 0.0, 1.0))
    return sample_colorscale("YlOrRd", [position])[0]


def _sqrt_scale(values, domain_max: float, out_range: Tuple[float, float]) -> np.ndarray:
    lo, hi = out_range
    ratio = np.sqrt(np.clip(np.asarray(values, dtype=float), 0, None) / domain_max)
    return lo + (hi - lo) * ratio


def short_label(key: str) -> str:
    """Three upper-case letters for long non-numeric axis labels."""
    if len(key) > 3 and not key.replace(".", "", 1).isdigit():
        return key[:3].upper()
    return key


def no_data_figure(message: str = "No Data Found") -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(
        text=f"<b>{message}</b>",
        x=0.5,
        y=0.5,
        xref="paper",
        yref="paper",
        showarrow=False,
        font=dict(color="#cfd8dc", size=16),
    )
    fig.update_xaxes(visible=False)
    fig.update_yaxes(visible=False)
    fig.update_layout(margin=dict(l=0, r=0, t=0, b=0))
    return fig


def _cluster_sizes(render: RenderPass, scales: ClusterScales, k: float) -> List[float]:
    """Marker diameters in screen pixels; the clicked cluster grows with its count."""
    sizes = []
    for cluster in render.clusters:
        if cluster.key == render.active_cluster:
            radius = scales.radius(cluster.count) / np.sqrt(k) * 1.8
        else:
            radius = ClusterScales.base_radius(k)
        sizes.append(2 * radius * k)
    return sizes


def create_map_figure(
    render: RenderPass,
    world: WorldTopology,
    projection: MercatorProjection,
    state: ViewportState,
) -> go.Figure:
    """Choropleth of event counts under the current pan/zoom, plus clusters when focused."""
    counts = render.map_counts.to_dict() if render.map_counts else {}
    selected = render.selection.countries
    pixel_geometries = projection.to_pixels(world.geometries)
    fig = go.Figure()

    for feature, geometry in zip(world.features, pixel_geometries):
        xs: List[Optional[float]] = []
        ys: List[Optional[float]] = []
        for ring in geometry_rings(geometry):
            sx, sy = state.to_screen((ring[:, 0], ring[:, 1]))
            xs.extend(sx.tolist() + [None])
            ys.extend(sy.tolist() + [None])

        value = counts.get(feature.name, 0)
        if feature.name == render.highlighted_feature:
            fill = FOCUSED_FILL
        elif value > 0:
            fill = _log_color(value, render.map_color_max)
        else:
            fill = NO_DATA_FILL
        is_selected = country_for_display_name(feature.name) in selected

        fig.add_trace(
            go.Scatter(
                x=xs,
                y=ys,
                mode="lines",
                fill="toself",
                fillcolor=fill,
                line=dict(
                    color=SELECTED_STROKE if is_selected else DEFAULT_STROKE,
                    width=2 if is_selected else 0.5,
                ),
                name=feature.name,
                customdata=[feature.name] * len(xs),
                hovertext=country_tooltip(feature.name, int(value)),
                hoverinfo="text",
                showlegend=False,
            )
        )

    if render.clusters:
        scales = render.cluster_scales or ClusterScales.from_clusters(render.clusters)
        lngs = [c.lng for c in render.clusters]
        lats = [c.lat for c in render.clusters]
        sx, sy = state.to_screen(projection.project(lngs, lats))
        colors = sample_colorscale("YlOrRd", [scales.color_position(c.count) for c in render.clusters])
        fig.add_trace(
            go.Scatter(
                x=sx,
                y=sy,
                mode="markers",
                marker=dict(
                    size=_cluster_sizes(render, scales, state.k),
                    color=colors,
                    line=dict(width=0.4, color="#263238"),
                    opacity=0.95,
                ),
                customdata=[c.key for c in render.clusters],
                hovertext=[cluster_tooltip(c) for c in render.clusters],
                hoverinfo="text",
                name="Clusters",
                showlegend=False,
            )
        )

    width, height = projection.width, projection.height
    fig.update_xaxes(range=[0, width], visible=False, fixedrange=True)
    fig.update_yaxes(range=[height, 0], visible=False, fixedrange=True)
    fig.update_layout(
        height=height,
        margin=dict(l=0, r=0, t=0, b=0),
        plot_bgcolor=MAP_BACKGROUND,
        paper_bgcolor=MAP_BACKGROUND,
        dragmode=False,
    )
    return fig


def create_impact_figure(
    impact: Union[ImpactPanel, NoData],
    highlight: Optional[CrossHighlightBus] = None,
) -> go.Figure:
    """Three side-by-side bar charts: frequency, casualties, loss."""
    if isinstance(impact, NoData):
        return no_data_figure(impact.reason)

    fig = make_subplots(
        rows=1,
        cols=len(impact.charts),
        subplot_titles=[chart.metric.title for chart in impact.charts],
    )
    for col, chart in enumerate(impact.charts, start=1):
        keys = chart.rollup.keys
        opacities = [highlight.opacity(key) if highlight else 1.0 for key in keys]
        fig.add_trace(
            go.Bar(
                x=keys,
                y=chart.rollup.values,
                marker=dict(color=METRIC_COLORS.get(chart.metric.metric_id), opacity=opacities),
                customdata=keys,
                hovertemplate="<b>%{customdata}</b><br>" + chart.metric.title + ": %{y:.2s}<extra></extra>",
                showlegend=False,
            ),
            row=1,
            col=col,
        )
        fig.update_xaxes(
            tickvals=keys, ticktext=[short_label(key) for key in keys], row=1, col=col
        )
        fig.update_yaxes(range=[0, chart.y_max], tickformat=".1s", row=1, col=col)
    fig.update_layout(title=impact.title, margin=dict(l=40, r=10, t=60, b=30))
    return fig


def create_aid_treemap(aid: Union[AidTreemap, NoData]) -> go.Figure:
    """Aid distribution across disaster types."""
    if isinstance(aid, NoData):
        return no_data_figure(aid.reason)

    labels = [tile.disaster_type for tile in aid.tiles]
    values = [tile.aid for tile in aid.tiles]
    positions = [min(1.0, max(0.0, v / aid.color_max)) for v in values]
    fig = go.Figure(
        go.Treemap(
            labels=labels,
            parents=[""] * len(labels),
            values=values,
            marker=dict(colors=sample_colorscale("YlOrRd", positions)),
            hovertext=[aid_tooltip(tile) for tile in aid.tiles],
            hoverinfo="text",
        )
    )
    fig.update_layout(margin=dict(l=0, r=0, t=0, b=0))
    return fig


def create_scatter_figure(scatter: Union[ScatterData, NoData]) -> go.Figure:
    """Severity vs. aid for the largest events, sized by loss."""
    if isinstance(scatter, NoData):
        return no_data_figure(scatter.reason)

    events = scatter.events
    sizes = 2 * _sqrt_scale(events["economic_loss"].fillna(0), scatter.r_max, (3.0, 18.0))
    colors = [TYPE_COLORS.get(t, DEFAULT_TYPE_COLOR) for t in events["disaster_type"]]
    fig = go.Figure(
        go.Scatter(
            x=events["severity"],
            y=events["aid_amount"],
            mode="markers",
            marker=dict(size=sizes, sizemode="diameter", color=colors, opacity=0.6,
                        line=dict(width=0.5, color="rgba(255,255,255,0.3)")),
            customdata=np.column_stack(
                [events["disaster_type"], events["country"], events["year"]]
            ),
            hovertemplate="<b>%{customdata[1]}</b> (%{customdata[2]})<br>%{customdata[0]}<br>"
            "Severity: %{x}<br>Aid: %{y:$.2s}<extra></extra>",
            showlegend=False,
        )
    )
    fig.update_xaxes(range=list(scatter.x_domain), title="Severity Index")
    fig.update_yaxes(range=[0, scatter.y_max], title="Aid Amount (USD)", tickformat="$.2s")
    fig.update_layout(
        title=f"Showing Top {len(events)} Major Events",
        margin=dict(l=60, r=20, t=40, b=40),
    )
    return fig


def create_trend_figure(trend: Union[TrendLine, NoData]) -> go.Figure:
    """Mean response time per year."""
    if isinstance(trend, NoData):
        return no_data_figure(trend.reason)

    years = [p.year for p in trend.points]
    values = [p.value for p in trend.points]
    fig = go.Figure(
        go.Scatter(
            x=years,
            y=values,
            mode="lines+markers",
            line=dict(color="#66bb6a", width=3),
            marker=dict(color="#2e7d32", size=10),
            hovertemplate="Avg: %{y:.1f}h<extra></extra>",
            showlegend=False,
        )
    )
    fig.update_xaxes(title="Year", tickformat="d", dtick=1)
    fig.update_yaxes(title="Avg Time (Hrs)", range=[0, trend.y_max])
    fig.update_layout(margin=dict(l=60, r=30, t=20, b=40))
    return fig


def kpi_values(render: RenderPass) -> Dict[str, str]:
    return {
        "events": str(render.kpis.event_count),
        "loss": format_money(render.kpis.total_loss),
        "status": render.status_label,
    }


def legend_labels(scales: ClusterScales) -> Tuple[str, str]:
    return str(scales.min_count), str(scales.max_count)
