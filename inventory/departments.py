from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from inventory.models import Department, InventoryRecord

logger = logging.getLogger(__name__)

DEFAULT_DEPARTMENTS: List[Department] = [
    Department(id="1", name="Department of Commerce, Community, and Economic Development", short_name="Commerce"),
    Department(id="2", name="Department of Fish and Game", short_name="Fish & Game"),
    Department(id="3", name="Department of Natural Resources", short_name="Natural Resources"),
    Department(id="4", name="Department of Environmental Conservation", short_name="Environmental"),
    Department(id="5", name="Department of Administration, Division of Motor Vehicles", short_name="Motor Vehicles"),
]

DISPLAY_PREFIX = "Department of "


def _key(value: Optional[str]) -> str:
    return " ".join((value or "").split()).casefold()


def display_name(name: Optional[str]) -> str:
    """Presentation label: "Department of Fish and Game – Sport Fish" -> "Fish and Game"."""
    label = (name or "").split(" – ")[0].strip()
    if label.lower().startswith(DISPLAY_PREFIX.lower()):
        label = label[len(DISPLAY_PREFIX):].strip()
    return label or "Unknown"


class DepartmentResolver:
    """Links free-text department names to canonical departments.

    A name matches a department when it equals the department's name or
    short name, ignoring case and repeated whitespace. Names that match
    nothing are left unlinked; they are never guessed.
    """

    def __init__(self, departments: Iterable[Department]):
        self.departments: List[Department] = list(departments)
        self._by_key: Dict[str, Department] = {}
        self._by_id: Dict[str, Department] = {}
        for dept in self.departments:
            self._by_id.setdefault(dept.id, dept)
            for alias in (dept.name, dept.short_name):
                if alias:
                    self._by_key.setdefault(_key(alias), dept)

    def match(self, department_name: Optional[str]) -> Optional[Department]:
        if not department_name:
            return None
        return self._by_key.get(_key(department_name))

    def get(self, department_id: Optional[str]) -> Optional[Department]:
        if department_id is None:
            return None
        return self._by_id.get(department_id)

    def resolve(self, record: InventoryRecord, row_number: Optional[int] = None) -> InventoryRecord:
        dept = self.match(record.department_name)
        if dept is None:
            where = f"row {row_number}" if row_number is not None else f"record {record.record_id}"
            logger.warning("Unresolved department %r on %s", record.department_name, where)
            return replace(record, department_id=None)
        return replace(record, department_id=dept.id)


def default_resolver() -> DepartmentResolver:
    return DepartmentResolver(DEFAULT_DEPARTMENTS)
