from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, TypeVar

from inventory.models import DEFAULT_FISCAL_YEAR, FISCAL_YEARS, InventoryRecord

R = TypeVar("R", bound=InventoryRecord)


@dataclass(frozen=True)
class InventoryFilters:
    department: str = ""
    division: str = ""
    license_type: str = ""
    search: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.department or self.division or self.license_type or self.search)


def _as_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_fiscal_year(value: object, default: Optional[int] = None) -> int:
    fallback = default if default in FISCAL_YEARS else DEFAULT_FISCAL_YEAR
    try:
        year = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return fallback
    return year if year in FISCAL_YEARS else fallback


def normalize_filters(raw: Optional[dict]) -> InventoryFilters:
    raw = raw or {}
    department = _as_text(raw.get("department"))
    if department in {"All", "All Departments"}:
        department = ""
    return InventoryFilters(
        department=department,
        division=_as_text(raw.get("division")),
        license_type=_as_text(raw.get("license_type") or raw.get("licenseType")),
        search=_as_text(raw.get("search") or raw.get("search_term") or raw.get("searchTerm")),
    )


def apply_filters(records: Iterable[R], filters: Optional[InventoryFilters] = None) -> List[R]:
    """Department (exact), division, license type, then search (substring, case-insensitive)."""
    out = list(records)
    if filters is None or filters.is_empty:
        return out
    if filters.department:
        out = [r for r in out if r.department_name == filters.department]
    if filters.division:
        q = filters.division.lower()
        out = [r for r in out if q in r.division.lower()]
    if filters.license_type:
        q = filters.license_type.lower()
        out = [r for r in out if q in r.license_permit_type.lower()]
    if filters.search:
        q = filters.search.lower()
        out = [
            r
            for r in out
            if q in r.license_permit_type.lower()
            or q in r.description.lower()
            or q in r.department_name.lower()
        ]
    return out
