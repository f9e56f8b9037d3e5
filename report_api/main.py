from __future__ import annotations

from dataclasses import asdict
import logging
import math

from fastapi import FastAPI, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from report_api.schemas import (
    ColumnModel,
    ColumnsResponse,
    EntryRequestModel,
    MetaListResponse,
    MetaReportsResponse,
    ReportModel,
    TableViewModel,
)
from report_core.columns import facet_options
from report_core.context import load_report_data, prepare_context
from report_core.export import export_report
from report_core.filters import TableView, normalize_view
from report_core.metrics_details import compute_entry_details
from report_core.metrics_table import compute_table
from report_core.reports import DEFAULT_REPORT_ID, REPORTS, ReportDescriptor, get_report


app = FastAPI(title="Firm Reports API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _view_from_model(model: TableViewModel) -> TableView:
    return normalize_view(model.model_dump())


def _require_report(report_id: str) -> ReportDescriptor:
    report = get_report(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail=f"Unknown report: {report_id}")
    return report


def _json(data: object) -> JSONResponse:
    """Return JSON with NaN/inf floats mapped to null."""

    def _safe_float(value: float) -> float | None:
        if math.isnan(value) or math.isinf(value):
            return None
        return value

    return JSONResponse(content=jsonable_encoder(data, custom_encoder={float: _safe_float}))


def _error(name: str, exc: Exception) -> JSONResponse:
    logger.exception("%s failed", name)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/reports", response_model=MetaReportsResponse)
def meta_reports():
    reports = [
        ReportModel(id=r.id, title=r.title, type=r.type, primary_color=r.primary_color, tab_label=r.tab_label)
        for r in REPORTS
    ]
    return MetaReportsResponse(reports=reports, default_report=DEFAULT_REPORT_ID)


@app.get("/reports/{report_id}/columns")
def report_columns(report_id: str, refresh: bool = Query(default=False)):
    report = _require_report(report_id)
    try:
        data_ctx = load_report_data(report.id, refresh=refresh)
        payload = ColumnsResponse(
            columns=[ColumnModel(**asdict(c)) for c in data_ctx.get("columns", [])],
            facets=[ColumnModel(**asdict(c)) for c in data_ctx.get("facet_columns", [])],
        )
        return _json(payload.model_dump())
    except Exception as exc:
        return _error("report_columns", exc)


@app.get("/reports/{report_id}/facets/{key}")
def report_facet(report_id: str, key: str):
    report = _require_report(report_id)
    try:
        data_ctx = load_report_data(report.id)
        if key not in {c.key for c in data_ctx.get("columns", [])}:
            raise HTTPException(status_code=404, detail=f"Unknown column: {key}")
        return _json(MetaListResponse(values=facet_options(data_ctx.get("table", []), key)).model_dump())
    except HTTPException:
        raise
    except Exception as exc:
        return _error("report_facet", exc)


@app.post("/reports/{report_id}/table")
def report_table(report_id: str, view: TableViewModel, refresh: bool = Query(default=False)):
    report = _require_report(report_id)
    try:
        data_ctx = load_report_data(report.id, refresh=refresh)
        v = _view_from_model(view)
        ctx = prepare_context(v, data_ctx)
        return _json(compute_table(v, ctx))
    except Exception as exc:
        return _error("report_table", exc)


@app.post("/reports/{report_id}/entry")
def report_entry(report_id: str, request: EntryRequestModel):
    report = _require_report(report_id)
    try:
        data_ctx = load_report_data(report.id)
        ctx = prepare_context(_view_from_model(request), data_ctx)
        rows = ctx["processed_rows"]
        if request.index >= len(rows):
            raise HTTPException(status_code=404, detail=f"No entry at index {request.index}")
        return _json(compute_entry_details(rows[request.index]))
    except HTTPException:
        raise
    except Exception as exc:
        return _error("report_entry", exc)


@app.post("/reports/{report_id}/export")
def report_export(report_id: str, view: TableViewModel):
    report = _require_report(report_id)
    try:
        data_ctx = load_report_data(report.id)
        ctx = prepare_context(_view_from_model(view), data_ctx)
        filename, document = export_report(report, ctx["columns"], ctx["processed_rows"])
    except Exception as exc:
        return _error("report_export", exc)
    return Response(
        content=document,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
