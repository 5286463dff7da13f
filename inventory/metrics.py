"""Aggregations behind every dashboard chart and table.

All functions are pure: they take a record collection, a fiscal year and
optional filters, never mutate their input and return JSON-serializable
payloads. Empty input yields empty groupings and zero totals.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence

import pandas as pd

from inventory.data import department_meta, prepare_frame, share_pct
from inventory.filters import InventoryFilters
from inventory.models import (
    ACCESS_CHANNELS,
    DEFAULT_FISCAL_YEAR,
    LICENSE_CATEGORIES,
    RECORD_STATUSES,
    Department,
    InventoryRecord,
    metric_field,
)

SortKey = Literal["average", "applications"]
SORT_KEYS = ("average", "applications")


def _base(view: str, fiscal_year: int, filters: Optional[InventoryFilters]) -> Dict[str, Any]:
    return {"view": view, "fiscal_year": fiscal_year, "filters": asdict(filters or InventoryFilters())}


def compute_type_counts(
    records: Iterable[InventoryRecord],
    fiscal_year: int = DEFAULT_FISCAL_YEAR,
    filters: Optional[InventoryFilters] = None,
    *,
    departments: Optional[Sequence[Department]] = None,
) -> Dict[str, Any]:
    df = prepare_frame(records, filters, departments)
    payload = _base("type_counts", fiscal_year, filters)
    payload["categories"] = list(LICENSE_CATEGORIES)
    if df.empty:
        payload["departments"] = []
        return payload

    counts = (
        df.groupby(["department", "license_type_category"])
        .size()
        .unstack(fill_value=0)
        .reindex(columns=list(LICENSE_CATEGORIES), fill_value=0)
    )
    counts["total"] = counts.sum(axis=1)
    counts = counts.join(department_meta(df)).reset_index()
    counts = counts.sort_values(["total", "department"], ascending=[False, True])

    payload["departments"] = [
        {
            "department": str(r["department"]),
            "display_name": str(r["display_name"]),
            "resolved": bool(r["resolved"]),
            "counts": {c: int(r[c]) for c in LICENSE_CATEGORIES},
            "total": int(r["total"]),
        }
        for _, r in counts.iterrows()
    ]
    return payload


def compute_channel_distribution(
    records: Iterable[InventoryRecord],
    fiscal_year: int = DEFAULT_FISCAL_YEAR,
    filters: Optional[InventoryFilters] = None,
    *,
    departments: Optional[Sequence[Department]] = None,
) -> Dict[str, Any]:
    vol = metric_field("volume", fiscal_year)
    df = prepare_frame(records, filters, departments)
    df = df[pd.to_numeric(df[vol], errors="coerce").fillna(0) > 0]

    sums = df.groupby("access_channel")[vol].sum() if not df.empty else pd.Series(dtype=float)
    sums = sums.reindex(list(ACCESS_CHANNELS), fill_value=0)
    total = int(sums.sum())

    payload = _base("channels", fiscal_year, filters)
    payload["total_applications"] = total
    payload["channels"] = [
        {"channel": ch, "applications": int(sums[ch]), "percentage": share_pct(sums[ch], total)}
        for ch in ACCESS_CHANNELS
    ]
    return payload


def compute_processing_time(
    records: Iterable[InventoryRecord],
    fiscal_year: int = DEFAULT_FISCAL_YEAR,
    filters: Optional[InventoryFilters] = None,
    *,
    departments: Optional[Sequence[Department]] = None,
    sort_by: SortKey = "average",
) -> Dict[str, Any]:
    """Volume-weighted average processing days per department.

    Only records with applications in the year contribute; departments
    without any are left out rather than shown as 0/0.
    """
    if sort_by not in SORT_KEYS:
        raise ValueError(f"sort_by must be one of {SORT_KEYS}, got {sort_by!r}")
    vol = metric_field("volume", fiscal_year)
    pt = metric_field("processing_time", fiscal_year)

    payload = _base("processing_time", fiscal_year, filters)
    payload["sort_by"] = sort_by
    df = prepare_frame(records, filters, departments)
    df = df[pd.to_numeric(df[vol], errors="coerce").fillna(0) > 0].copy()
    if df.empty:
        payload["departments"] = []
        return payload

    df["weighted_days"] = df[pt].astype(float) * df[vol].astype(float)
    grouped = df.groupby("department").agg(
        weighted_days=("weighted_days", "sum"),
        total_applications=(vol, "sum"),
        record_count=(vol, "size"),
    )
    grouped["average_days"] = grouped["weighted_days"] / grouped["total_applications"]
    grouped = grouped.join(department_meta(df)).reset_index()
    order = ["average_days", "total_applications"] if sort_by == "average" else ["total_applications", "average_days"]
    grouped = grouped.sort_values(order + ["department"], ascending=[False, False, True])

    payload["departments"] = [
        {
            "department": str(r["department"]),
            "display_name": str(r["display_name"]),
            "resolved": bool(r["resolved"]),
            "average_days": float(r["average_days"]),
            "total_applications": int(r["total_applications"]),
            "record_count": int(r["record_count"]),
        }
        for _, r in grouped.iterrows()
    ]
    return payload


def _department_shares(
    view: str,
    metric: str,
    records: Iterable[InventoryRecord],
    fiscal_year: int,
    filters: Optional[InventoryFilters],
    departments: Optional[Sequence[Department]],
) -> Dict[str, Any]:
    col = metric_field(metric, fiscal_year)
    key = "applications" if metric == "volume" else metric
    df = prepare_frame(records, filters, departments)
    values = pd.to_numeric(df[col], errors="coerce").fillna(0)
    # volume counts only when positive; revenue whenever non-zero
    df = df[values > 0] if metric == "volume" else df[values != 0]

    payload = _base(view, fiscal_year, filters)
    if df.empty:
        payload["total"] = 0
        payload["departments"] = []
        return payload

    grouped = df.groupby("department").agg(value=(col, "sum")).join(department_meta(df)).reset_index()
    grouped = grouped.sort_values(["value", "department"], ascending=[False, True])
    total = float(grouped["value"].sum())
    cast = int if metric == "volume" else float

    payload["total"] = cast(total)
    payload["departments"] = [
        {
            "department": str(r["department"]),
            "display_name": str(r["display_name"]),
            "resolved": bool(r["resolved"]),
            key: cast(r["value"]),
            "percentage": share_pct(r["value"], total),
        }
        for _, r in grouped.iterrows()
    ]
    return payload


def compute_applications_by_department(
    records: Iterable[InventoryRecord],
    fiscal_year: int = DEFAULT_FISCAL_YEAR,
    filters: Optional[InventoryFilters] = None,
    *,
    departments: Optional[Sequence[Department]] = None,
) -> Dict[str, Any]:
    return _department_shares("applications", "volume", records, fiscal_year, filters, departments)


def compute_revenue_by_department(
    records: Iterable[InventoryRecord],
    fiscal_year: int = DEFAULT_FISCAL_YEAR,
    filters: Optional[InventoryFilters] = None,
    *,
    departments: Optional[Sequence[Department]] = None,
) -> Dict[str, Any]:
    return _department_shares("revenue", "revenue", records, fiscal_year, filters, departments)


def compute_overview(
    records: Iterable[InventoryRecord],
    fiscal_year: int = DEFAULT_FISCAL_YEAR,
    filters: Optional[InventoryFilters] = None,
    *,
    departments: Optional[Sequence[Department]] = None,
) -> Dict[str, Any]:
    records = list(records)
    df = prepare_frame(records, filters, departments)
    by_status = df["status"].value_counts().reindex(list(RECORD_STATUSES), fill_value=0) if not df.empty else None
    kwargs = {"departments": departments}
    return {
        **_base("overview", fiscal_year, filters),
        "totals": {
            "records": int(len(df)),
            "departments": int(df["department"].nunique()) if not df.empty else 0,
            "unresolved_records": int((~df["resolved"].astype(bool)).sum()) if not df.empty else 0,
            "by_status": {s: int(by_status[s]) if by_status is not None else 0 for s in RECORD_STATUSES},
        },
        "type_counts": compute_type_counts(records, fiscal_year, filters, **kwargs),
        "channels": compute_channel_distribution(records, fiscal_year, filters, **kwargs),
        "processing_time": compute_processing_time(records, fiscal_year, filters, **kwargs),
        "applications": compute_applications_by_department(records, fiscal_year, filters, **kwargs),
        "revenue": compute_revenue_by_department(records, fiscal_year, filters, **kwargs),
    }


VIEWS = {
    "type-counts": compute_type_counts,
    "channels": compute_channel_distribution,
    "processing-time": compute_processing_time,
    "applications": compute_applications_by_department,
    "revenue": compute_revenue_by_department,
}


def list_divisions(records: Iterable[InventoryRecord], department: str = "") -> List[str]:
    return sorted({r.division for r in records if r.division and (not department or r.department_name == department)})
