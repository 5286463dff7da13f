from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

from inventory.departments import DEFAULT_DEPARTMENTS
from inventory.errors import RecordNotFoundError
from inventory.filters import InventoryFilters, apply_filters
from inventory.models import RECORD_COLUMNS, Department, InventoryRecord

logger = logging.getLogger(__name__)


class InventoryStore(Protocol):
    """Persistence port. Implementations own the storage schema."""

    def create_many(self, records: Iterable[InventoryRecord]) -> List[InventoryRecord]: ...

    def get(self, record_id: str) -> InventoryRecord: ...

    def update(self, record_id: str, changes: Mapping[str, Any]) -> InventoryRecord: ...

    def delete_or_archive(self, record_id: str) -> None: ...

    def query_filtered(self, filters: Optional[InventoryFilters] = None) -> List[InventoryRecord]: ...

    def list_departments(self) -> List[Department]: ...


class InMemoryInventoryStore:
    """Process-local store keyed by record_id; archiving marks records Inactive."""

    def __init__(self, departments: Optional[Iterable[Department]] = None):
        self._records: Dict[str, InventoryRecord] = {}
        self._departments: List[Department] = list(DEFAULT_DEPARTMENTS if departments is None else departments)
        self._lock = threading.Lock()

    def create_many(self, records: Iterable[InventoryRecord]) -> List[InventoryRecord]:
        created = list(records)
        with self._lock:
            for record in created:
                self._records[record.record_id] = record
        logger.info("Stored %d inventory records", len(created))
        return created

    def get(self, record_id: str) -> InventoryRecord:
        try:
            return self._records[record_id]
        except KeyError:
            raise RecordNotFoundError(record_id) from None

    def update(self, record_id: str, changes: Mapping[str, Any]) -> InventoryRecord:
        with self._lock:
            current = self.get(record_id)
            fields = {k: v for k, v in changes.items() if k in RECORD_COLUMNS and k != "record_id"}
            updated = replace(current, **fields)
            self._records[record_id] = updated
        return updated

    def delete_or_archive(self, record_id: str) -> None:
        self.update(record_id, {"status": "Inactive", "updated_at": datetime.now(timezone.utc)})

    def query_filtered(self, filters: Optional[InventoryFilters] = None) -> List[InventoryRecord]:
        active = [r for r in self._records.values() if r.status == "Active"]
        return apply_filters(active, filters)

    def all_records(self) -> List[InventoryRecord]:
        return list(self._records.values())

    def list_departments(self) -> List[Department]:
        return [d for d in self._departments if d.status == "Active"]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
