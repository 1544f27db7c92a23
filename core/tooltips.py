"""Tooltip content and compact number formatting for the dashboard views."""

from __future__ import annotations

import math
from html import escape

from core.aggregation import AidShare
from core.geospatial import Cluster


SI_PREFIXES = ["y", "z", "a", "f", "p", "n", "µ", "m", "", "k", "M", "G", "T", "P", "E", "Z", "Y"]


def format_si(value: float, precision: int = 2, currency: bool = False) -> str:
    """
    SI-prefixed number with ``precision`` significant digits.

    ``1_500_000`` gives ``1.5M``; billions use ``B`` rather than ``G``.
    """
    if value is None or not math.isfinite(value):
        return "N/A"

    sign = "-" if value < 0 else ""
    mantissa, exp_part = f"{abs(value):.{precision - 1}e}".split("e")
    digits = mantissa.replace(".", "")
    exponent = int(exp_part)

    prefix_exponent = max(-8, min(8, math.floor(exponent / 3))) * 3
    k = exponent - prefix_exponent + 1
    n = len(digits)
    if k == n:
        body = digits
    elif k > n:
        body = digits + "0" * (k - n)
    elif k > 0:
        body = f"{digits[:k]}.{digits[k:]}"
    else:
        rounded = f"{abs(value) / 10 ** prefix_exponent:.{max(0, precision + k - 1)}e}"
        body = "0." + "0" * (-k) + rounded.split("e")[0].replace(".", "")

    suffix = SI_PREFIXES[8 + prefix_exponent // 3]
    if suffix == "G":
        suffix = "B"
    return f"{sign}{'$' if currency else ''}{body}{suffix}"


def format_money(value: float) -> str:
    return format_si(value, currency=True)


def severity_color(mean_severity: float) -> str:
    if mean_severity > 7:
        return "#d32f2f"
    if mean_severity > 4:
        return "#f57c00"
    return "#388e3c"


def country_tooltip(name: str, event_count: int) -> str:
    return f"<b>{escape(name)}</b><br>Total Events: {event_count}"


def cluster_tooltip(cluster: Cluster) -> str:
    return (
        "<b>Location Cluster</b><br>"
        f"Events: <b>{cluster.count}</b><br>"
        f"Main Type: <b>{escape(cluster.dominant_type)}</b><br>"
        f'Avg Severity: <b style="color:{severity_color(cluster.mean_severity)}">'
        f"{cluster.mean_severity:.1f}</b><br>"
        f"Total Loss: {format_money(cluster.total_loss)}"
    )


def bar_tooltip(key: str, metric_title: str, value: float, metric_id: str) -> str:
    shown = str(int(value)) if metric_id == "freq" else format_si(value)
    return f"<b>{escape(key)}</b><br>{escape(metric_title)}: {shown}"


def aid_tooltip(tile: AidShare) -> str:
    return (
        f"<b>{escape(tile.disaster_type)}</b><br>"
        f"Aid: <b>{format_money(tile.aid)}</b><br>"
        f"Share: <b>{tile.share:.1f}%</b>"
    )


def trend_tooltip(value: float) -> str:
    return f"Avg: {value:.1f}h"
