from __future__ import annotations

from typing import Any

from inventory.models import InventoryRecord


def make_record(record_id: str, department_name: str = "Department of Fish and Game", **overrides: Any) -> InventoryRecord:
    values: dict[str, Any] = {
        "record_id": record_id,
        "department_name": department_name,
        "division": "Licensing",
        "license_permit_type": "Hunting License",
        "license_type_category": "License",
    }
    values.update(overrides)
    return InventoryRecord(**values)
