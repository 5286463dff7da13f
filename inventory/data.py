from __future__ import annotations

from dataclasses import asdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from inventory.departments import display_name
from inventory.filters import InventoryFilters, apply_filters
from inventory.mapping import EXPORT_HEADERS
from inventory.models import ACCESS_CHANNELS, LICENSE_CATEGORIES, RECORD_COLUMNS, Department, InventoryRecord

UNKNOWN_DEPARTMENT = "Unknown"


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def share_pct(value: float, total: float) -> float:
    """Percentage of total rounded to one decimal; 0.0 when the total is 0."""
    if not total:
        return 0.0
    return round_half_up(float(value) / float(total) * 100, 1) or 0.0


def records_frame(records: Iterable[InventoryRecord]) -> pd.DataFrame:
    return pd.DataFrame([asdict(r) for r in records], columns=list(RECORD_COLUMNS))


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = df[col].fillna("").astype(str).str.strip()
    return df


def prepare_frame(
    records: Iterable[InventoryRecord],
    filters: Optional[InventoryFilters] = None,
    departments: Optional[Sequence[Department]] = None,
) -> pd.DataFrame:
    """Filtered records as a frame with a department grouping key attached.

    The key is the canonical department name for resolved records when a
    roster is supplied, otherwise the raw department name.
    """
    df = records_frame(apply_filters(records, filters))
    df = coerce_str_safe(df, ["department_name", "license_type_category", "access_channel"])
    names_by_id: Dict[str, str] = {d.id: d.name for d in departments or []}

    if df.empty:
        for col in ["department", "display_name", "resolved"]:
            df[col] = pd.Series(dtype=object)
        return df

    linked = df["department_id"].notna()
    if names_by_id:
        canonical = df["department_id"].map(names_by_id)
        linked = canonical.notna()
        df["department"] = canonical.where(linked, df["department_name"])
    else:
        df["department"] = df["department_name"]
    df["department"] = df["department"].replace("", UNKNOWN_DEPARTMENT)
    df["resolved"] = linked
    df["display_name"] = df["department"].map(display_name)
    df["license_type_category"] = df["license_type_category"].where(
        df["license_type_category"].isin(LICENSE_CATEGORIES), "Other"
    )
    df["access_channel"] = df["access_channel"].where(df["access_channel"].isin(ACCESS_CHANNELS), "Unknown")
    return df


def department_meta(df: pd.DataFrame) -> pd.DataFrame:
    return df.groupby("department").agg(display_name=("display_name", "first"), resolved=("resolved", "all"))


def export_frame(records: Iterable[InventoryRecord]) -> pd.DataFrame:
    df = records_frame(records)
    cols: List[str] = list(EXPORT_HEADERS)
    return df[cols].rename(columns=EXPORT_HEADERS)


def records_to_csv(records: Iterable[InventoryRecord]) -> bytes:
    return export_frame(records).to_csv(index=False).encode("utf-8")
