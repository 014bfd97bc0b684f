# =============================================================================
# Results API — Per-File Financial Model and Analysis
# =============================================================================
#
# ENDPOINTS:
#   GET /api/model/{id}    — {_id, csv_filename, financial_model}
#   GET /api/analysis/{id} — {_id, csv_filename, financial_analysis}
#
# Both validate the id (400), look up the record with a projection (404 if
# missing), and return only the projected fields. Read-only.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pymongo.errors import PyMongoError

from funnel.api.deps import get_records, parse_object_id
from funnel.api.errors import INTERNAL_ERROR, NOT_FOUND
from funnel.db.records import (
    ANALYSIS_PROJECTION,
    MODEL_PROJECTION,
    FileRecordRepository,
)
from funnel.models.responses import (
    AnalysisFile,
    AnalysisResponse,
    ModelFile,
    ModelResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Results"])


async def fetch_projection(
    records: FileRecordRepository,
    record_id: str,
    projection: dict[str, int],
    label: str,
) -> dict[str, Any]:
    """
    Shared lookup for the single-file endpoints.

    Raises:
        HTTPException 400: Malformed id.
        HTTPException 404: No such record.
        HTTPException 500: Store error.
    """
    oid = parse_object_id(record_id)
    try:
        doc = await records.get(oid, projection=projection)
    except PyMongoError as e:
        logger.exception("Error fetching %s for %s: %s", label, record_id, e)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR) from e

    if doc is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND)
    return doc


@router.get(
    "/model/{record_id}",
    response_model=ModelResponse,
    summary="Get the financial model for a file",
)
async def get_model(
    record_id: str,
    records: FileRecordRepository = Depends(get_records),
) -> ModelResponse:
    doc = await fetch_projection(records, record_id, MODEL_PROJECTION, "model")
    return ModelResponse(file=ModelFile.model_validate(doc))


@router.get(
    "/analysis/{record_id}",
    response_model=AnalysisResponse,
    summary="Get the financial analysis for a file",
)
async def get_analysis(
    record_id: str,
    records: FileRecordRepository = Depends(get_records),
) -> AnalysisResponse:
    doc = await fetch_projection(records, record_id, ANALYSIS_PROJECTION, "analysis")
    return AnalysisResponse(file=AnalysisFile.model_validate(doc))
