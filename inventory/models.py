from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import List, Optional, Tuple

FISCAL_YEARS: Tuple[int, ...] = (2022, 2023, 2024, 2025)
DEFAULT_FISCAL_YEAR = 2024

LICENSE_CATEGORIES: Tuple[str, ...] = (
    "License",
    "Permit",
    "Stamp",
    "Registration",
    "Certificate",
    "Approval",
    "Other",
)
ACCESS_CHANNELS: Tuple[str, ...] = ("Online", "Manual", "Both", "Unknown")
RECORD_STATUSES: Tuple[str, ...] = ("Active", "Inactive", "Under Review")
DEFAULT_STATUS = "Active"

REQUIRED_FIELDS: Tuple[str, ...] = ("department_name", "division", "license_permit_type")
TEXT_FIELDS: Tuple[str, ...] = (
    "description",
    "access_mode",
    "regulations",
    "user_type",
    "cost",
    "approving_entities",
    "renewal_frequency",
    "notes",
)
REVENUE_FIELDS = tuple(f"revenue_{y}" for y in FISCAL_YEARS)
PROCESSING_TIME_FIELDS = tuple(f"processing_time_{y}" for y in FISCAL_YEARS)
VOLUME_FIELDS = tuple(f"volume_{y}" for y in FISCAL_YEARS)


def metric_field(metric: str, fiscal_year: int) -> str:
    """Column name for a per-year metric, e.g. ("volume", 2024) -> "volume_2024"."""
    if metric not in {"revenue", "processing_time", "volume"}:
        raise ValueError(f"Unknown metric: {metric}")
    if fiscal_year not in FISCAL_YEARS:
        raise ValueError(f"Unsupported fiscal year: {fiscal_year}")
    return f"{metric}_{fiscal_year}"


@dataclass(frozen=True)
class Department:
    id: str
    name: str
    short_name: str = ""
    description: str = ""
    status: str = "Active"


@dataclass(frozen=True)
class InventoryRecord:
    """One license/permit offering tracked by one department/division."""

    record_id: str
    department_name: str
    division: str
    license_permit_type: str
    department_id: Optional[str] = None
    license_type_category: str = "Other"
    description: str = ""
    access_mode: str = ""
    access_channel: str = "Unknown"
    regulations: str = ""
    user_type: str = ""
    cost: str = ""
    approving_entities: str = ""
    renewal_frequency: str = ""
    notes: str = ""
    revenue_2022: float = 0.0
    revenue_2023: float = 0.0
    revenue_2024: float = 0.0
    revenue_2025: float = 0.0
    processing_time_2022: float = 0.0
    processing_time_2023: float = 0.0
    processing_time_2024: float = 0.0
    processing_time_2025: float = 0.0
    volume_2022: int = 0
    volume_2023: int = 0
    volume_2024: int = 0
    volume_2025: int = 0
    status: str = DEFAULT_STATUS
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def revenue(self, fiscal_year: int) -> float:
        return getattr(self, metric_field("revenue", fiscal_year))

    def processing_time(self, fiscal_year: int) -> float:
        return getattr(self, metric_field("processing_time", fiscal_year))

    def volume(self, fiscal_year: int) -> int:
        return getattr(self, metric_field("volume", fiscal_year))


RECORD_COLUMNS: Tuple[str, ...] = tuple(f.name for f in fields(InventoryRecord))


@dataclass(frozen=True)
class RowRejection:
    row_number: Optional[int]
    missing_fields: Tuple[str, ...]
    message: str


@dataclass
class IngestResult:
    """Outcome of one upload: accepted records plus the per-row report."""

    records: List[InventoryRecord] = field(default_factory=list)
    rejections: List[RowRejection] = field(default_factory=list)
    unresolved: List[Tuple[Optional[int], str]] = field(default_factory=list)

    @property
    def accepted(self) -> int:
        return len(self.records)

    @property
    def rejected(self) -> int:
        return len(self.rejections)

    def summary(self) -> str:
        return f"{self.accepted} accepted, {self.rejected} rejected"
