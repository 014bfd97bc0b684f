# =============================================================================
# Document Store — FileRecord Repository (collection `csv_files`)
# =============================================================================
#
# One document per uploaded statement:
#
#   {
#     _id, original_filename, csv_filename, gridfs_file_id, upload_date,
#     file_size, row_count, columns, status,
#     financial_analysis, financial_model, error_message
#   }
#
# STATUS STATE MACHINE:
#     PROCESSING → COMPLETED
#                → FAILED
#
# Transitions are written with a filter on `status: processing`, so a
# record that already reached COMPLETED or FAILED is never moved again.
# `gridfs_file_id` is only set together with COMPLETED, after the blob has
# been written.
# =============================================================================

from __future__ import annotations

import enum
import logging
from datetime import UTC, datetime
from typing import Any

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection

logger = logging.getLogger(__name__)


class FileStatus(str, enum.Enum):
    """Lifecycle of a FileRecord."""

    PROCESSING = "processing"    # PDF forwarded to the analysis service
    COMPLETED = "completed"      # CSV stored, results attached
    FAILED = "failed"            # See error_message


class StatusTransitionError(RuntimeError):
    """Raised when a record is not in PROCESSING and cannot transition."""


# Field projections for the single-file fetch endpoints
MODEL_PROJECTION = {"_id": 1, "csv_filename": 1, "financial_model": 1}
ANALYSIS_PROJECTION = {"_id": 1, "csv_filename": 1, "financial_analysis": 1}


def new_record(original_filename: str, file_size: int) -> dict[str, Any]:
    """Build the initial document for a freshly uploaded PDF."""
    return {
        "original_filename": original_filename,
        "csv_filename": None,
        "gridfs_file_id": None,
        "upload_date": datetime.now(UTC),
        "file_size": file_size,
        "row_count": 0,
        "columns": [],
        "status": FileStatus.PROCESSING.value,
        "financial_analysis": None,
        "financial_model": None,
        "error_message": None,
    }


class FileRecordRepository:
    """Async CRUD over the FileRecord collection."""

    def __init__(self, collection: AsyncCollection) -> None:
        self._collection = collection

    async def list_all(self) -> list[dict[str, Any]]:
        """Every record, unfiltered and unpaginated, in natural order."""
        return await self._collection.find({}).to_list(length=None)

    async def get(
        self,
        record_id: ObjectId,
        projection: dict[str, int] | None = None,
    ) -> dict[str, Any] | None:
        return await self._collection.find_one(
            {"_id": record_id}, projection=projection,
        )

    async def create(self, original_filename: str, file_size: int) -> ObjectId:
        """Insert a PROCESSING record and return its id."""
        doc = new_record(original_filename, file_size)
        result = await self._collection.insert_one(doc)
        logger.info(
            "Created file record %s for '%s' (%d bytes)",
            result.inserted_id, original_filename, file_size,
        )
        return result.inserted_id

    async def mark_completed(
        self,
        record_id: ObjectId,
        *,
        csv_filename: str,
        gridfs_file_id: ObjectId,
        row_count: int,
        columns: list[str],
        financial_analysis: str | None = None,
        financial_model: Any = None,
    ) -> dict[str, Any]:
        """
        Move a PROCESSING record to COMPLETED.

        Raises:
            StatusTransitionError: The record is missing or not PROCESSING.
        """
        return await self._transition(
            record_id,
            FileStatus.COMPLETED,
            {
                "csv_filename": csv_filename,
                "gridfs_file_id": gridfs_file_id,
                "row_count": row_count,
                "columns": columns,
                "financial_analysis": financial_analysis,
                "financial_model": financial_model,
            },
        )

    async def mark_failed(
        self, record_id: ObjectId, error_message: str,
    ) -> dict[str, Any]:
        """
        Move a PROCESSING record to FAILED.

        Raises:
            StatusTransitionError: The record is missing or not PROCESSING.
        """
        # Truncated to keep the document small
        return await self._transition(
            record_id,
            FileStatus.FAILED,
            {"error_message": error_message[:1000]},
        )

    async def _transition(
        self,
        record_id: ObjectId,
        status: FileStatus,
        values: dict[str, Any],
    ) -> dict[str, Any]:
        updated = await self._collection.find_one_and_update(
            {"_id": record_id, "status": FileStatus.PROCESSING.value},
            {"$set": {**values, "status": status.value}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise StatusTransitionError(
                f"Record {record_id} is not in '{FileStatus.PROCESSING.value}' "
                f"state; cannot move to '{status.value}'"
            )
        logger.info("File record %s → %s", record_id, status.value)
        return updated
