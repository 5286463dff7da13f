from __future__ import annotations

from dataclasses import asdict
import logging
import math
from datetime import datetime
from typing import Literal

import numpy as np
import pandas as pd
import uvicorn
from fastapi import Depends, FastAPI, File, Query, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import AnalyticsRequestModel, InventoryFiltersModel, RecordInputModel
from inventory.charts import chart_for
from inventory.config import configure_logging, get_settings
from inventory.data import records_to_csv
from inventory.departments import DepartmentResolver
from inventory.errors import DecodeError, RecordNotFoundError, RowValidationError
from inventory.filters import InventoryFilters, normalize_filters, normalize_fiscal_year
from inventory.ingest import build_record, edit_record, ingest_file, result_to_dict
from inventory.metrics import VIEWS, compute_overview, compute_processing_time, list_divisions
from inventory.store import InMemoryInventoryStore, InventoryStore


app = FastAPI(title="Permit Inventory API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_store = InMemoryInventoryStore()

OVERVIEW_VIEWS = (
    ("type-counts", "type_counts"),
    ("channels", "channels"),
    ("processing-time", "processing_time"),
    ("applications", "applications"),
    ("revenue", "revenue"),
)


def get_store() -> InventoryStore:
    return _store


def _filters_from_model(model: InventoryFiltersModel) -> InventoryFilters:
    return normalize_filters(model.model_dump())


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                datetime: lambda ts: ts.isoformat(),
            },
        ),
    )


def _error(exc: Exception, status_code: int = 500, **extra: object) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__, **extra})


@app.get("/meta/departments")
def meta_departments(store: InventoryStore = Depends(get_store)):
    try:
        return _json({"departments": [asdict(d) for d in store.list_departments()]})
    except Exception as exc:
        logger.exception("meta_departments failed")
        return _error(exc)


@app.get("/meta/divisions")
def meta_divisions(department: str = Query(default=""), store: InventoryStore = Depends(get_store)):
    try:
        return _json({"divisions": list_divisions(store.query_filtered(), department.strip())})
    except Exception as exc:
        logger.exception("meta_divisions failed")
        return _error(exc)


@app.post("/upload")
def upload(file: UploadFile = File(...), store: InventoryStore = Depends(get_store)):
    settings = get_settings()
    content = file.file.read()
    if len(content) > settings.max_upload_bytes:
        return JSONResponse(
            status_code=413,
            content={"error": f"File exceeds {settings.max_upload_bytes} bytes", "type": "UploadTooLarge"},
        )
    try:
        resolver = DepartmentResolver(store.list_departments())
        result = ingest_file(content, file.filename or "", resolver, content_type=file.content_type)
    except DecodeError as exc:
        logger.warning("upload rejected: %s", exc.cause)
        return _error(exc, status_code=400)
    except Exception as exc:
        logger.exception("upload failed")
        return _error(exc)

    try:
        stored = store.create_many(result.records) if result.records else []
    except Exception as exc:
        logger.exception("persisting upload failed")
        return _error(exc)
    payload = result_to_dict(result, settings.max_reported_rejections)
    payload["stored"] = len(stored)
    return _json(payload)


@app.get("/records")
def list_records(
    department: str = Query(default=""),
    division: str = Query(default=""),
    license_type: str = Query(default=""),
    search: str = Query(default=""),
    store: InventoryStore = Depends(get_store),
):
    try:
        filters = normalize_filters(
            {"department": department, "division": division, "license_type": license_type, "search": search}
        )
        records = store.query_filtered(filters)
        return _json({"count": len(records), "records": [asdict(r) for r in records]})
    except Exception as exc:
        logger.exception("list_records failed")
        return _error(exc)


@app.post("/records")
def create_record(body: RecordInputModel, store: InventoryStore = Depends(get_store)):
    try:
        resolver = DepartmentResolver(store.list_departments())
        record = build_record(body.model_dump(exclude_none=True), resolver)
        created = store.create_many([record])
        return _json(asdict(created[0]), status_code=201)
    except RowValidationError as exc:
        return _error(exc, status_code=422, missing_fields=list(exc.missing_fields))
    except Exception as exc:
        logger.exception("create_record failed")
        return _error(exc)


@app.patch("/records/{record_id}")
def update_record(record_id: str, body: RecordInputModel, store: InventoryStore = Depends(get_store)):
    try:
        current = store.get(record_id)
        resolver = DepartmentResolver(store.list_departments())
        edited = edit_record(current, body.model_dump(exclude_none=True, exclude={"record_id"}), resolver)
        updated = store.update(record_id, asdict(edited))
        return _json(asdict(updated))
    except RecordNotFoundError as exc:
        return _error(exc, status_code=404)
    except RowValidationError as exc:
        return _error(exc, status_code=422, missing_fields=list(exc.missing_fields))
    except Exception as exc:
        logger.exception("update_record failed")
        return _error(exc)


@app.delete("/records/{record_id}")
def archive_record(record_id: str, store: InventoryStore = Depends(get_store)):
    try:
        store.delete_or_archive(record_id)
        return _json({"record_id": record_id, "status": "Inactive"})
    except RecordNotFoundError as exc:
        return _error(exc, status_code=404)
    except Exception as exc:
        logger.exception("archive_record failed")
        return _error(exc)


@app.post("/analytics/{view}")
def analytics(
    view: str,
    body: AnalyticsRequestModel,
    sort_by: Literal["average", "applications"] = Query(default="average"),
    store: InventoryStore = Depends(get_store),
):
    compute = VIEWS.get(view)
    if compute is None:
        return JSONResponse(status_code=404, content={"error": f"Unknown view: {view}", "views": sorted(VIEWS)})
    try:
        fiscal_year = normalize_fiscal_year(body.fiscal_year, get_settings().default_fiscal_year)
        filters = _filters_from_model(body.filters)
        records = store.query_filtered()
        departments = store.list_departments()
        if compute is compute_processing_time:
            payload = compute(records, fiscal_year, filters, departments=departments, sort_by=sort_by)
        else:
            payload = compute(records, fiscal_year, filters, departments=departments)
        if body.include_chart:
            payload["chart"] = chart_for(view, payload)
        return _json(payload)
    except Exception as exc:
        logger.exception("analytics %s failed", view)
        return _error(exc)


@app.post("/overview")
def overview(body: AnalyticsRequestModel, store: InventoryStore = Depends(get_store)):
    try:
        fiscal_year = normalize_fiscal_year(body.fiscal_year, get_settings().default_fiscal_year)
        payload = compute_overview(
            store.query_filtered(), fiscal_year, _filters_from_model(body.filters), departments=store.list_departments()
        )
        if body.include_chart:
            payload["charts"] = {view: chart_for(view, payload[key]) for view, key in OVERVIEW_VIEWS}
        return _json(payload)
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.post("/export/records")
def export_records(filters: InventoryFiltersModel, store: InventoryStore = Depends(get_store)):
    try:
        records = store.query_filtered(_filters_from_model(filters))
        filename = f"inventory-master-{datetime.now().date().isoformat()}.csv"
        return Response(
            content=records_to_csv(records),
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
    except Exception as exc:
        logger.exception("export_records failed")
        return _error(exc)


def run() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(app, host=settings.host, port=settings.port)
