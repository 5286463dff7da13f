from __future__ import annotations

from typing import Dict, Iterable, List, Mapping

from inventory.models import FISCAL_YEARS

# Header (exact, case-sensitive) -> canonical field. Order matters: when a file
# carries several aliases of one field, the first non-empty one wins.
INVENTORY_COLUMNS: Dict[str, str] = {
    "ID": "record_id",
    "Record ID": "record_id",
    "record_id": "record_id",
    "id": "record_id",
    "Department": "department_name",
    "department_name": "department_name",
    "department": "department_name",
    "Division": "division",
    "division": "division",
    "License Permit Title": "license_permit_type",
    "License/Permit Title": "license_permit_type",
    "license_permit_type": "license_permit_type",
    "license_permit_title": "license_permit_type",
    "Description": "description",
    "description": "description",
    "Access Mode": "access_mode",
    "access_mode": "access_mode",
    "Regulations": "regulations",
    "regulations": "regulations",
    "User Type": "user_type",
    "user_type": "user_type",
    "Cost": "cost",
    "cost": "cost",
    "Approving Entities": "approving_entities",
    "approving_entities": "approving_entities",
    "Renewal Frequency": "renewal_frequency",
    "renewal_frequency": "renewal_frequency",
    "Notes": "notes",
    "notes": "notes",
    "Status": "status",
    "status": "status",
}
for _year in FISCAL_YEARS:
    INVENTORY_COLUMNS.update(
        {
            f"revenue_{_year}": f"revenue_{_year}",
            f"{_year} Revenue": f"revenue_{_year}",
            f"processing_time_{_year}": f"processing_time_{_year}",
            f"{_year} Processing Time": f"processing_time_{_year}",
            f"volume_{_year}": f"volume_{_year}",
            f"{_year} Volume": f"volume_{_year}",
        }
    )

CANONICAL_FIELDS: List[str] = list(dict.fromkeys(INVENTORY_COLUMNS.values()))

# Headers written by the CSV export; every one maps back through INVENTORY_COLUMNS.
EXPORT_HEADERS: Dict[str, str] = {
    "record_id": "ID",
    "department_name": "Department",
    "division": "Division",
    "license_permit_type": "License Permit Title",
    "description": "Description",
    "access_mode": "Access Mode",
    "regulations": "Regulations",
    "user_type": "User Type",
    "cost": "Cost",
    "approving_entities": "Approving Entities",
    "renewal_frequency": "Renewal Frequency",
    "notes": "Notes",
    "status": "Status",
    **{f"revenue_{y}": f"revenue_{y}" for y in FISCAL_YEARS},
    **{f"processing_time_{y}": f"processing_time_{y}" for y in FISCAL_YEARS},
    **{f"volume_{y}": f"volume_{y}" for y in FISCAL_YEARS},
}


def map_row(row: Mapping[str, object]) -> Dict[str, str]:
    """Remap one decoded row onto canonical field names.

    Unknown headers are ignored and canonical fields absent from the row
    default to "".
    """
    out: Dict[str, str] = {f: "" for f in CANONICAL_FIELDS}
    for header, field_name in INVENTORY_COLUMNS.items():
        if header not in row or out[field_name]:
            continue
        value = row[header]
        out[field_name] = "" if value is None else str(value).strip()
    return out


def map_rows(rows: Iterable[Mapping[str, object]]) -> List[Dict[str, str]]:
    return [map_row(r) for r in rows]


def unmapped_headers(headers: Iterable[str]) -> List[str]:
    return [h for h in headers if h not in INVENTORY_COLUMNS]
