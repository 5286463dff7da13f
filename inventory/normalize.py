from __future__ import annotations

import math
import re
import uuid
from dataclasses import asdict, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional, Pattern, Sequence, Tuple

import pandas as pd

from inventory.errors import RowValidationError
from inventory.mapping import CANONICAL_FIELDS
from inventory.models import (
    DEFAULT_STATUS,
    PROCESSING_TIME_FIELDS,
    RECORD_STATUSES,
    REQUIRED_FIELDS,
    REVENUE_FIELDS,
    TEXT_FIELDS,
    VOLUME_FIELDS,
    InventoryRecord,
)

# Evaluated top-down; the first category with a matching keyword wins.
CATEGORY_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("License", ("license", "licence")),
    ("Permit", ("permit",)),
    ("Stamp", ("stamp",)),
    ("Registration", ("registration",)),
    ("Certificate", ("certificate", "certification")),
    ("Approval", ("approval",)),
)
FALLBACK_CATEGORY = "Other"

ONLINE_TERMS: Pattern[str] = re.compile(r"online|web|internet|portal|electronic|e-?mail|e-?file")
MANUAL_TERMS: Pattern[str] = re.compile(
    r"manual|in[- ]person|(?<!e-)(?<!e)mail|paper|office|walk[- ]in|counter|fax"
)

# (online evidence, manual evidence) -> channel
CHANNEL_RULES: Tuple[Tuple[bool, bool, str], ...] = (
    (True, True, "Both"),
    (True, False, "Online"),
    (False, True, "Manual"),
)
FALLBACK_CHANNEL = "Unknown"

_NUMERIC_NOISE = re.compile(r"[$€£¥,\s]")


def classify_license_type(license_permit_type: Optional[str]) -> str:
    text = (license_permit_type or "").lower()
    for category, keywords in CATEGORY_RULES:
        if any(k in text for k in keywords):
            return category
    return FALLBACK_CATEGORY


def classify_access_channel(access_mode: Optional[str]) -> str:
    text = (access_mode or "").lower()
    evidence = (bool(ONLINE_TERMS.search(text)), bool(MANUAL_TERMS.search(text)))
    for online, manual, channel in CHANNEL_RULES:
        if evidence == (online, manual):
            return channel
    return FALLBACK_CHANNEL


def _to_number(value: object) -> float:
    if value is None:
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        num = float(value)
    else:
        cleaned = _NUMERIC_NOISE.sub("", str(value))
        if not cleaned:
            return 0.0
        num = pd.to_numeric(cleaned, errors="coerce")
    if num is None or pd.isna(num) or not math.isfinite(float(num)):
        return 0.0
    return float(num)


def parse_decimal(value: object) -> float:
    """Parse a currency/number-like cell: "$1,250.50" -> 1250.5, "N/A" -> 0.0."""
    return _to_number(value)


def parse_count(value: object) -> int:
    """Parse an application count; fractions truncate toward zero."""
    return int(_to_number(value))


def normalize_status(value: Optional[str]) -> str:
    text = (value or "").strip().lower()
    for status in RECORD_STATUSES:
        if status.lower() == text:
            return status
    return DEFAULT_STATUS


def missing_required(values: Mapping[str, object]) -> Sequence[str]:
    return [f for f in REQUIRED_FIELDS if not str(values.get(f) or "").strip()]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def validate_row(
    mapped: Mapping[str, Any],
    row_number: Optional[int] = None,
    *,
    now: Optional[datetime] = None,
) -> InventoryRecord:
    """Turn a mapped row into a normalized record draft (department unresolved).

    Raises RowValidationError naming every missing required field.
    """
    missing = missing_required(mapped)
    if missing:
        raise RowValidationError(row_number, missing)

    stamp = now or _now()
    text = {f: str(mapped.get(f) or "").strip() for f in TEXT_FIELDS}
    numbers: Dict[str, Any] = {}
    for f in REVENUE_FIELDS + PROCESSING_TIME_FIELDS:
        numbers[f] = parse_decimal(mapped.get(f))
    for f in VOLUME_FIELDS:
        numbers[f] = parse_count(mapped.get(f))

    record_id = str(mapped.get("record_id") or "").strip() or uuid.uuid4().hex
    license_permit_type = str(mapped["license_permit_type"]).strip()
    return InventoryRecord(
        record_id=record_id,
        department_name=str(mapped["department_name"]).strip(),
        division=str(mapped["division"]).strip(),
        license_permit_type=license_permit_type,
        license_type_category=classify_license_type(license_permit_type),
        access_channel=classify_access_channel(text["access_mode"]),
        status=normalize_status(mapped.get("status")),
        created_at=mapped.get("created_at") or stamp,
        updated_at=stamp,
        **text,
        **numbers,
    )


def validate_rows(rows: Iterable[Tuple[Optional[int], Mapping[str, Any]]], *, now: Optional[datetime] = None):
    """Yield (row_number, record_or_error) without stopping on bad rows."""
    for row_number, mapped in rows:
        try:
            yield row_number, validate_row(mapped, row_number, now=now)
        except RowValidationError as exc:
            yield row_number, exc


def apply_edit(
    record: InventoryRecord,
    updates: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
) -> InventoryRecord:
    """Merge an edit into a record and re-validate the whole result.

    Identity and creation time are kept; derived fields are recomputed. The
    department link is cleared when the department name changes so that the
    caller re-resolves it.
    """
    merged: Dict[str, Any] = asdict(record)
    merged.update({k: v for k, v in updates.items() if k in CANONICAL_FIELDS})
    merged["record_id"] = record.record_id
    merged["created_at"] = record.created_at
    draft = validate_row(merged, now=now)
    department_id = record.department_id if draft.department_name == record.department_name else None
    return replace(draft, department_id=department_id)
