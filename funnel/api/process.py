# =============================================================================
# Process API — Statement Upload and File Listing
# =============================================================================
#
# ENDPOINTS:
#   GET  /api/process — List every FileRecord
#   POST /api/process — Upload a PDF, convert it, persist the results
#
# UPLOAD FLOW:
#   1. Validate: one `file` field, MIME type application/pdf, non-empty
#      (rejected uploads never reach the store or the analysis service)
#   2. Insert FileRecord (status=processing)
#   3. Forward PDF to the analysis service
#   4. Store returned CSV in GridFS
#   5. FileRecord → completed (or → failed on any error in 3-5)
#   6. Respond {success: true, id}
#
# The request waits for the analysis service; there is no background job
# and no retry.
# =============================================================================

from __future__ import annotations

import csv
import logging

from bson import ObjectId
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pymongo.errors import PyMongoError

from funnel.api.deps import get_analysis_client, get_blobs, get_records
from funnel.api.errors import INTERNAL_ERROR
from funnel.db.blobs import BlobStore
from funnel.db.records import FileRecordRepository, StatusTransitionError
from funnel.models.responses import FileListResponse, UploadResponse, records_from_documents
from funnel.services.analysis_client import (
    AnalysisClient,
    AnalysisServiceError,
    ConversionFailedError,
)
from funnel.services.csv_summary import derive_csv_filename, summarise_csv

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Process"])

PDF_CONTENT_TYPE = "application/pdf"


# ---------------------------------------------------------------------------
# GET /api/process — List files
# ---------------------------------------------------------------------------


@router.get(
    "/process",
    response_model=FileListResponse,
    summary="List all processed files",
)
async def list_files(
    records: FileRecordRepository = Depends(get_records),
) -> FileListResponse:
    """Every FileRecord, unfiltered and unpaginated, in store order."""
    try:
        docs = await records.list_all()
    except PyMongoError as e:
        logger.exception("Error fetching files: %s", e)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR) from e

    return FileListResponse(files=records_from_documents(docs))


# ---------------------------------------------------------------------------
# POST /api/process — Upload and convert a PDF statement
# ---------------------------------------------------------------------------


@router.post(
    "/process",
    response_model=UploadResponse,
    summary="Upload a PDF financial statement",
    description=(
        "Forwards the PDF to the analysis service, stores the returned CSV "
        "and results, and returns the id of the new file record."
    ),
)
async def upload_statement(
    file: UploadFile | None = File(
        default=None,
        description="PDF financial statement",
    ),
    records: FileRecordRepository = Depends(get_records),
    blobs: BlobStore = Depends(get_blobs),
    analysis: AnalysisClient = Depends(get_analysis_client),
) -> UploadResponse:
    # --- Validate input (nothing is persisted or forwarded before this) ---
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    if file.content_type != PDF_CONTENT_TYPE:
        raise HTTPException(
            status_code=400,
            detail=f"File must be a PDF (got {file.content_type or 'unknown type'})",
        )

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    filename = file.filename or "statement.pdf"

    # --- Create the record ---
    try:
        record_id = await records.create(filename, len(content))
    except PyMongoError as e:
        logger.exception("Error creating file record for '%s': %s", filename, e)
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR) from e

    # --- Convert ---
    try:
        result = await analysis.analyze(filename, content, PDF_CONTENT_TYPE)
    except AnalysisServiceError as e:
        logger.error("Conversion service error for %s: %s", record_id, e)
        await _mark_failed(records, record_id, f"Conversion service error: {e}")
        raise HTTPException(
            status_code=500, detail=f"Conversion service error: {e}",
        ) from e
    except ConversionFailedError as e:
        logger.error("Conversion failed for %s: %s", record_id, e)
        await _mark_failed(records, record_id, f"Conversion failed: {e}")
        raise HTTPException(
            status_code=500, detail=f"Conversion failed: {e}",
        ) from e

    # --- Persist CSV and results ---
    try:
        csv_filename = derive_csv_filename(filename, result.csv_filename)
        summary = summarise_csv(result.csv_content)
        csv_bytes = result.csv_content.encode("utf-8")
    except (csv.Error, ValueError) as e:
        logger.error("Unreadable CSV from analysis service for %s: %s", record_id, e)
        await _mark_failed(records, record_id, "Conversion failed: unreadable CSV")
        raise HTTPException(
            status_code=500, detail="Conversion failed: unreadable CSV",
        ) from e

    try:
        blob_id = await blobs.put(
            csv_filename,
            csv_bytes,
            metadata={"file_record_id": record_id},
        )
    except PyMongoError as e:
        logger.exception("Error storing CSV for %s: %s", record_id, e)
        await _mark_failed(records, record_id, "Failed to store CSV")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR) from e

    try:
        await records.mark_completed(
            record_id,
            csv_filename=csv_filename,
            gridfs_file_id=blob_id,
            row_count=summary.row_count,
            columns=summary.columns,
            financial_analysis=result.financial_analysis,
            financial_model=result.financial_model,
        )
    except (PyMongoError, StatusTransitionError) as e:
        logger.exception("Error completing file record %s: %s", record_id, e)
        await _discard_blob(blobs, blob_id)
        await _mark_failed(records, record_id, "Failed to save results")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR) from e

    logger.info(
        "Processed '%s' → %s (%d rows, %d columns), record %s",
        filename, csv_filename, summary.row_count, len(summary.columns), record_id,
    )
    return UploadResponse(id=str(record_id))


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


async def _mark_failed(
    records: FileRecordRepository, record_id: ObjectId, message: str,
) -> None:
    """Record the failure; the original error is what the client sees."""
    try:
        await records.mark_failed(record_id, message)
    except (PyMongoError, StatusTransitionError) as e:
        logger.warning("Could not mark record %s as failed: %s", record_id, e)


async def _discard_blob(blobs: BlobStore, blob_id: ObjectId) -> None:
    try:
        await blobs.delete(blob_id)
    except PyMongoError as e:
        logger.warning("Could not delete orphaned blob %s: %s", blob_id, e)
