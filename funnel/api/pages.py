# =============================================================================
# HTML Pages — Upload Page, File Table Fragment, Detail Views
# =============================================================================
#
# ROUTES:
#   GET /                      — Upload widget + "Recent Files" table
#   GET /ui/files              — Table fragment, re-fetched after each upload
#   GET /pages/analysis/{id}   — Financial analysis for one file
#   GET /pages/model/{id}      — Financial model for one file
#
# The table is rendered server-side from the same listing as
# GET /api/process. The browser script (static/funnel.js) only swaps the
# fragment in and tracks in-flight uploads.
# =============================================================================

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from bson import ObjectId
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from pymongo.errors import PyMongoError

from funnel.api.deps import get_records, is_valid_object_id
from funnel.api.errors import INTERNAL_ERROR, INVALID_ID, NOT_FOUND
from funnel.db.records import ANALYSIS_PROJECTION, MODEL_PROJECTION, FileRecordRepository
from funnel.models.responses import records_from_documents
from funnel.services.analysis_client import as_text
from funnel.ui.table import build_rows

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=TEMPLATES_DIR)

router = APIRouter(tags=["Pages"], include_in_schema=False)


def render_model(value: Any) -> str:
    """Display form of a financial model: text as-is, structures as JSON."""
    return as_text(value) or ""


@router.get("/", response_class=HTMLResponse)
async def index(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(request, "index.html", {})


@router.get("/ui/files", response_class=HTMLResponse)
async def file_table(
    request: Request,
    records: FileRecordRepository = Depends(get_records),
) -> HTMLResponse:
    try:
        docs = await records.list_all()
    except PyMongoError as e:
        logger.exception("Error loading files for table: %s", e)
        return templates.TemplateResponse(
            request, "_file_table.html", {"rows": [], "error": INTERNAL_ERROR},
            status_code=500,
        )

    rows = build_rows(records_from_documents(docs))
    return templates.TemplateResponse(
        request, "_file_table.html", {"rows": rows, "error": None},
    )


async def _detail_page(
    request: Request,
    records: FileRecordRepository,
    record_id: str,
    projection: dict[str, int],
    field: str,
    template: str,
) -> HTMLResponse:
    if not is_valid_object_id(record_id):
        return templates.TemplateResponse(
            request, template, {"file": None, "error": INVALID_ID}, status_code=400,
        )

    try:
        doc = await records.get(ObjectId(record_id), projection=projection)
    except PyMongoError as e:
        logger.exception("Error loading %s page for %s: %s", field, record_id, e)
        return templates.TemplateResponse(
            request, template, {"file": None, "error": INTERNAL_ERROR}, status_code=500,
        )

    if doc is None:
        return templates.TemplateResponse(
            request, template, {"file": None, "error": NOT_FOUND}, status_code=404,
        )

    context = {
        "file": {
            "id": str(doc["_id"]),
            "csv_filename": doc.get("csv_filename") or "",
            "body": render_model(doc.get(field)),
        },
        "error": None,
    }
    return templates.TemplateResponse(request, template, context)


@router.get("/pages/analysis/{record_id}", response_class=HTMLResponse)
async def analysis_page(
    request: Request,
    record_id: str,
    records: FileRecordRepository = Depends(get_records),
) -> HTMLResponse:
    return await _detail_page(
        request, records, record_id, ANALYSIS_PROJECTION,
        "financial_analysis", "analysis.html",
    )


@router.get("/pages/model/{record_id}", response_class=HTMLResponse)
async def model_page(
    request: Request,
    record_id: str,
    records: FileRecordRepository = Depends(get_records),
) -> HTMLResponse:
    return await _detail_page(
        request, records, record_id, MODEL_PROJECTION,
        "financial_model", "model.html",
    )
