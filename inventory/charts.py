from __future__ import annotations

from typing import Any, Dict, Optional

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def type_counts_chart(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    rows = [
        {"display_name": d["display_name"], "category": cat, "count": n}
        for d in payload.get("departments", [])
        for cat, n in d["counts"].items()
        if n
    ]
    if not rows:
        return None
    bar = (
        alt.Chart(pd.DataFrame(rows))
        .mark_bar()
        .encode(
            y=alt.Y("display_name:N", title="Department", sort="-x"),
            x=alt.X("count:Q", stack="zero", title="Licenses & Permits"),
            color=alt.Color("category:N", title="Type", sort=payload.get("categories")),
            tooltip=["display_name", "category", alt.Tooltip("count:Q", format=",")],
        )
        .properties(height=260)
    )
    return to_vega_spec(bar)


def channels_chart(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if not payload.get("total_applications"):
        return None
    df = pd.DataFrame([c for c in payload["channels"] if c["applications"] > 0])
    pie = (
        alt.Chart(df)
        .mark_arc(innerRadius=50)
        .encode(
            theta=alt.Theta("applications:Q"),
            color=alt.Color("channel:N", title="Channel"),
            tooltip=["channel", alt.Tooltip("applications:Q", format=","), alt.Tooltip("percentage:Q", format=".1f")],
        )
    )
    return to_vega_spec(pie)


def processing_time_chart(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    rows = payload.get("departments", [])
    if not rows:
        return None
    bar = (
        alt.Chart(pd.DataFrame(rows))
        .mark_bar()
        .encode(
            y=alt.Y("display_name:N", title="Department", sort=None),
            x=alt.X("average_days:Q", title="Avg. processing days (volume-weighted)"),
            tooltip=[
                "display_name",
                alt.Tooltip("average_days:Q", format=".1f"),
                alt.Tooltip("total_applications:Q", format=","),
            ],
        )
    )
    return to_vega_spec(bar)


def share_chart(payload: Dict[str, Any], value_key: str) -> Optional[Dict[str, Any]]:
    rows = payload.get("departments", [])
    if not rows:
        return None
    fmt = "$,.0f" if value_key == "revenue" else ","
    pie = (
        alt.Chart(pd.DataFrame(rows))
        .mark_arc()
        .encode(
            theta=alt.Theta(f"{value_key}:Q"),
            color=alt.Color("display_name:N", title="Department"),
            tooltip=["display_name", alt.Tooltip(f"{value_key}:Q", format=fmt), alt.Tooltip("percentage:Q", format=".1f")],
        )
    )
    return to_vega_spec(pie)


def chart_for(view: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if view == "type-counts":
        return type_counts_chart(payload)
    if view == "channels":
        return channels_chart(payload)
    if view == "processing-time":
        return processing_time_chart(payload)
    if view == "applications":
        return share_chart(payload, "applications")
    if view == "revenue":
        return share_chart(payload, "revenue")
    return None
