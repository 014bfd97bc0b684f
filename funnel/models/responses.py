# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# Shapes of data coming OUT of the API. Mongo documents are validated
# into these models, which turns ObjectIds into hex strings and keeps the
# `_id` key on the wire (FastAPI serialises response models by alias).
#
# Every success body carries `success: true`. Errors are rendered by the
# handlers in funnel/api/errors.py as `{"error": "..."}`.
# =============================================================================

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Annotated, Any, Literal

from bson import ObjectId
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from funnel.services.analysis_client import as_text

logger = logging.getLogger(__name__)


def _object_id_to_str(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    return value


# Hex string on the wire, ObjectId in the store
ObjectIdStr = Annotated[str, BeforeValidator(_object_id_to_str)]

# Markdown text; structured values written by older clients become JSON text
AnalysisText = Annotated[str | None, BeforeValidator(as_text)]


class _MongoModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: ObjectIdStr = Field(alias="_id")


class HealthResponse(BaseModel):
    """Response for GET /health."""

    status: str = "ok"
    version: str
    service: str


class ErrorResponse(BaseModel):
    """Body of every JSON error response."""

    error: str


class FileRecord(_MongoModel):
    """
    One uploaded statement and its derived artifacts.

    `gridfs_file_id` references a stored CSV once `status` is "completed".
    Documents written by other clients of the collection may lack the
    upload metadata, so those fields have defaults.
    """

    original_filename: str = ""
    csv_filename: str | None = None
    gridfs_file_id: ObjectIdStr | None = None
    upload_date: datetime | None = None
    file_size: int = 0
    row_count: int = 0
    columns: list[str] = Field(default_factory=list)
    status: Literal["processing", "completed", "failed"] | None = None
    financial_analysis: AnalysisText = None
    financial_model: Any = None
    error_message: str | None = None


class FileListResponse(BaseModel):
    """Response for GET /api/process."""

    success: bool = True
    files: list[FileRecord]


class UploadResponse(BaseModel):
    """Response for POST /api/process."""

    success: bool = True
    id: str = Field(description="ID of the created FileRecord")


class ModelFile(_MongoModel):
    csv_filename: str | None = None
    financial_model: Any = None


class AnalysisFile(_MongoModel):
    csv_filename: str | None = None
    financial_analysis: AnalysisText = None


class ModelResponse(BaseModel):
    """Response for GET /api/model/{id}."""

    success: bool = True
    file: ModelFile


class AnalysisResponse(BaseModel):
    """Response for GET /api/analysis/{id}."""

    success: bool = True
    file: AnalysisFile


class FactNodeOut(BaseModel):
    type: Literal["fact"] = "fact"
    title: str
    content: str
    source: str


class FactsResponse(BaseModel):
    """Response for POST /api/facts."""

    success: bool = True
    facts: list[FactNodeOut]
    model: str


def records_from_documents(docs: Iterable[dict[str, Any]]) -> list[FileRecord]:
    """Validate stored documents, skipping (and logging) unreadable ones."""
    records = []
    for doc in docs:
        try:
            records.append(FileRecord.model_validate(doc))
        except ValidationError as e:
            logger.warning(
                "Skipping unreadable file record %s: %d validation errors",
                doc.get("_id"), e.error_count(),
            )
    return records
