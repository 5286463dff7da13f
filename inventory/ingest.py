from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from inventory.decoder import DecodedTable, decode_table, detect_format
from inventory.departments import DepartmentResolver, default_resolver
from inventory.errors import RowValidationError
from inventory.mapping import map_row, unmapped_headers
from inventory.models import IngestResult, InventoryRecord, RowRejection
from inventory.normalize import apply_edit, validate_row

logger = logging.getLogger(__name__)


def ingest_table(
    table: DecodedTable,
    resolver: Optional[DepartmentResolver] = None,
    *,
    now: Optional[datetime] = None,
) -> IngestResult:
    """Map, validate and resolve every decoded row.

    Bad rows are collected in the result with their source position and
    never stop the remaining rows.
    """
    resolver = resolver or default_resolver()
    result = IngestResult()
    ignored = unmapped_headers(table.headers)
    if ignored:
        logger.info("Ignoring unmapped columns: %s", ", ".join(ignored))

    first_seen: Dict[str, Optional[int]] = {}
    for row_number, row in table.numbered():
        try:
            draft = validate_row(map_row(row), row_number, now=now)
        except RowValidationError as exc:
            result.rejections.append(RowRejection(row_number, exc.missing_fields, str(exc)))
            continue
        if draft.record_id in first_seen:
            message = f"Row {row_number}: duplicate ID {draft.record_id!r} (first on row {first_seen[draft.record_id]})"
            logger.warning("Duplicate ID %r on row %s", draft.record_id, row_number)
            result.rejections.append(RowRejection(row_number, (), message))
            continue
        first_seen[draft.record_id] = row_number
        record = resolver.resolve(draft, row_number)
        if record.department_id is None:
            result.unresolved.append((row_number, record.department_name))
        result.records.append(record)

    logger.info("Ingested %d rows: %s", len(table), result.summary())
    return result


def ingest_file(
    content: bytes,
    filename: str = "",
    resolver: Optional[DepartmentResolver] = None,
    *,
    fmt: Optional[str] = None,
    content_type: Optional[str] = None,
    now: Optional[datetime] = None,
) -> IngestResult:
    """Decode an uploaded file and run every row through the pipeline.

    DecodeError propagates unchanged: a file that cannot be decoded yields
    no records at all.
    """
    fmt = fmt or detect_format(filename, content, content_type)
    table = decode_table(content, fmt)
    logger.info("Decoded %s as %s: %d data rows", filename or "upload", fmt, len(table))
    return ingest_table(table, resolver, now=now)


def build_record(
    values: Mapping[str, Any],
    resolver: Optional[DepartmentResolver] = None,
    *,
    now: Optional[datetime] = None,
) -> InventoryRecord:
    """Single-record create path (manual form); raises RowValidationError."""
    resolver = resolver or default_resolver()
    return resolver.resolve(validate_row(map_row(values), now=now))


def edit_record(
    record: InventoryRecord,
    updates: Mapping[str, Any],
    resolver: Optional[DepartmentResolver] = None,
    *,
    now: Optional[datetime] = None,
) -> InventoryRecord:
    resolver = resolver or default_resolver()
    edited = apply_edit(record, updates, now=now)
    if edited.department_id is None:
        edited = resolver.resolve(edited)
    return edited


def result_to_dict(result: IngestResult, max_rejections: Optional[int] = None) -> Dict[str, Any]:
    rejections = result.rejections if max_rejections is None else result.rejections[:max_rejections]
    return {
        "summary": result.summary(),
        "accepted": result.accepted,
        "rejected": result.rejected,
        "rejections": [asdict(r) for r in rejections],
        "unresolved": [{"row_number": n, "department_name": name} for n, name in result.unresolved],
    }
