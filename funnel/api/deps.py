# =============================================================================
# API Dependencies — Stores, Outbound Client, ID Parsing
# =============================================================================
#
# The Mongo connection and the httpx client are created once by the
# lifespan in funnel/main.py and parked on `app.state`. These dependencies
# hand them to route handlers, so tests can swap them out with
# `app.dependency_overrides` without touching a real database:
#
#   app.dependency_overrides[get_records] = lambda: FakeRecords()
# =============================================================================

from __future__ import annotations

from bson import ObjectId
from fastapi import HTTPException, Request

from funnel.api.errors import INVALID_ID
from funnel.db.blobs import BlobStore
from funnel.db.mongo import MongoConnection
from funnel.db.records import FileRecordRepository
from funnel.services.analysis_client import AnalysisClient


def get_connection(request: Request) -> MongoConnection:
    return request.app.state.mongo


def get_records(request: Request) -> FileRecordRepository:
    """The `csv_files` repository."""
    return get_connection(request).records


def get_blobs(request: Request) -> BlobStore:
    """The GridFS blob store."""
    return get_connection(request).blobs


def get_analysis_client(request: Request) -> AnalysisClient:
    return request.app.state.analysis_client


def is_valid_object_id(value: str) -> bool:
    """True for 24-character hex strings (12-byte ObjectIds)."""
    return isinstance(value, str) and len(value) == 24 and ObjectId.is_valid(value)


def parse_object_id(value: str) -> ObjectId:
    """
    Convert a path parameter into an ObjectId.

    Only the 24-hex-character form is accepted; `ObjectId.is_valid` alone
    would also accept any 12-byte string.

    Raises:
        HTTPException 400: `value` is not a well-formed identifier.
    """
    if not is_valid_object_id(value):
        raise HTTPException(status_code=400, detail=INVALID_ID)
    return ObjectId(value)
