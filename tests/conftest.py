# =============================================================================
# Shared Test Fixtures — In-Memory Mongo, GridFS and Analysis Service
# =============================================================================
#
# No MongoDB server or analysis microservice is needed. The real
# FileRecordRepository and BlobStore run on top of small in-memory fakes of
# the pymongo collection / GridFS bucket, and the real AnalysisClient talks
# to an httpx.MockTransport.
#
# The FastAPI app is built with create_app() and its store/client
# dependencies are overridden; the lifespan is not entered.
# =============================================================================

from __future__ import annotations

import asyncio
import copy
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, Callable

import httpx
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from gridfs import NoFile
from pymongo import ReturnDocument
from pymongo.errors import AutoReconnect, ServerSelectionTimeoutError

from funnel.api.deps import get_analysis_client, get_blobs, get_records
from funnel.db.blobs import BlobStore
from funnel.db.records import FileRecordRepository
from funnel.main import create_app
from funnel.services.analysis_client import AnalysisClient

ANALYSIS_URL = "http://analysis.test/analyze-financials"

SAMPLE_CSV = (
    "Line item,2024,2023\n"
    "Revenue,48200,44900\n"
    "Cost of revenue,-27480,-26040\n"
    "Net income,7315,6300\n"
)

PDF_BYTES = b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\ntrailer\n%%EOF\n"


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# Fake Mongo collection
# ---------------------------------------------------------------------------


def _matches(doc: dict, query: dict) -> bool:
    return all(doc.get(key) == value for key, value in query.items())


def _project(doc: dict, projection: dict | None) -> dict:
    if not projection:
        return copy.deepcopy(doc)
    keys = {k for k, v in projection.items() if v}
    keys.add("_id")
    return {k: copy.deepcopy(v) for k, v in doc.items() if k in keys}


class FakeCursor:
    def __init__(self, docs: list[dict]) -> None:
        self._docs = docs

    async def to_list(self, length: int | None = None) -> list[dict]:
        return self._docs if length is None else self._docs[:length]


class FakeCollection:
    """The subset of AsyncCollection used by FileRecordRepository."""

    def __init__(self) -> None:
        self.docs: list[dict] = []

    def find(self, query: dict) -> FakeCursor:
        return FakeCursor([copy.deepcopy(d) for d in self.docs if _matches(d, query)])

    async def find_one(self, query: dict, projection: dict | None = None) -> dict | None:
        for doc in self.docs:
            if _matches(doc, query):
                return _project(doc, projection)
        return None

    async def insert_one(self, doc: dict) -> SimpleNamespace:
        stored = copy.deepcopy(doc)
        stored.setdefault("_id", ObjectId())
        doc["_id"] = stored["_id"]
        self.docs.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"])

    async def find_one_and_update(
        self,
        query: dict,
        update: dict,
        return_document: bool = ReturnDocument.BEFORE,
    ) -> dict | None:
        for doc in self.docs:
            if _matches(doc, query):
                before = copy.deepcopy(doc)
                doc.update(copy.deepcopy(update.get("$set", {})))
                return copy.deepcopy(doc) if return_document else before
        return None


class FailingCollection:
    """Every operation fails like an unreachable server."""

    def _fail(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("No servers found yet")

    async def _afail(self, *args, **kwargs):
        self._fail()

    def find(self, query: dict) -> FakeCursor:
        collection = self

        class _Cursor:
            async def to_list(self, length=None):
                collection._fail()

        return _Cursor()

    find_one = _afail
    insert_one = _afail
    find_one_and_update = _afail


class CompletionFailingCollection(FakeCollection):
    """Accepts inserts and failures but loses the connection on completion."""

    async def find_one_and_update(self, query, update, return_document=ReturnDocument.BEFORE):
        if update.get("$set", {}).get("status") == "completed":
            raise AutoReconnect("connection reset")
        return await super().find_one_and_update(query, update, return_document)


# ---------------------------------------------------------------------------
# Fake GridFS bucket
# ---------------------------------------------------------------------------


@dataclass
class FakeGridOut:
    _id: ObjectId
    filename: str
    data: bytes
    metadata: dict = field(default_factory=dict)
    chunk_size: int = 8
    _pos: int = 0

    @property
    def length(self) -> int:
        return len(self.data)

    async def readchunk(self) -> bytes:
        chunk = self.data[self._pos:self._pos + self.chunk_size]
        self._pos += len(chunk)
        return chunk


class FakeBucket:
    """The subset of AsyncGridFSBucket used by BlobStore."""

    def __init__(self) -> None:
        self.files: dict[ObjectId, dict] = {}

    async def upload_from_stream(self, filename: str, source: bytes, metadata=None) -> ObjectId:
        file_id = ObjectId()
        self.files[file_id] = {
            "filename": filename,
            "data": bytes(source),
            "metadata": dict(metadata or {}),
        }
        return file_id

    async def open_download_stream(self, file_id: ObjectId) -> FakeGridOut:
        stored = self.files.get(file_id)
        if stored is None:
            raise NoFile(f"no file in gridfs collection with _id {file_id!r}")
        return FakeGridOut(
            _id=file_id,
            filename=stored["filename"],
            data=stored["data"],
            metadata=stored["metadata"],
        )

    async def delete(self, file_id: ObjectId) -> None:
        if self.files.pop(file_id, None) is None:
            raise NoFile(f"no file could be deleted because none matched {file_id!r}")


class FailingUploadBucket(FakeBucket):
    """Reads work; every upload fails."""

    async def upload_from_stream(self, filename, source, metadata=None):
        raise AutoReconnect("connection reset")


# ---------------------------------------------------------------------------
# Fake analysis service
# ---------------------------------------------------------------------------


class FakeAnalysisService:
    """Records outbound calls and answers with a configurable response."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.payload: Any = {
            "csv_content": SAMPLE_CSV,
            "csv_filename": "statement_financials.csv",
            "financial_analysis": "## Summary\nRevenue grew 7.3%.",
            "financial_model": {"revenue_growth": 0.073},
        }
        self.raise_error: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raise_error is not None:
            raise self.raise_error
        if isinstance(self.payload, bytes):
            return httpx.Response(self.status_code, content=self.payload)
        return httpx.Response(self.status_code, json=self.payload)

    def client(self) -> AnalysisClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return AnalysisClient(http, ANALYSIS_URL)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def bucket() -> FakeBucket:
    return FakeBucket()


@pytest.fixture
def records(collection: FakeCollection) -> FileRecordRepository:
    return FileRecordRepository(collection)


@pytest.fixture
def blobs(bucket: FakeBucket) -> BlobStore:
    return BlobStore(bucket)


@pytest.fixture
def analysis_service() -> FakeAnalysisService:
    return FakeAnalysisService()


@pytest.fixture
def app(records, blobs, analysis_service):
    application = create_app()
    analysis_client = analysis_service.client()
    application.dependency_overrides[get_records] = lambda: records
    application.dependency_overrides[get_blobs] = lambda: blobs
    application.dependency_overrides[get_analysis_client] = lambda: analysis_client
    return application


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def failing_client(app) -> TestClient:
    """Client whose document store is unreachable."""
    app.dependency_overrides[get_records] = lambda: FileRecordRepository(FailingCollection())
    return TestClient(app)


@pytest.fixture
def seed(records: FileRecordRepository, blobs: BlobStore) -> Callable[..., dict]:
    """
    Insert a record directly through the repository.

    seed(status="completed") also stores a CSV blob and attaches results.
    """

    def _seed(
        original_filename: str = "report.pdf",
        status: str = "completed",
        csv: str = SAMPLE_CSV,
        financial_analysis: str | None = "Margins improved.",
        financial_model: Any = None,
    ) -> dict:
        record_id = _run(records.create(original_filename, 1024))
        if status == "completed":
            csv_filename = original_filename.rsplit(".", 1)[0] + ".csv"
            blob_id = _run(blobs.put(csv_filename, csv.encode()))
            _run(records.mark_completed(
                record_id,
                csv_filename=csv_filename,
                gridfs_file_id=blob_id,
                row_count=3,
                columns=["Line item", "2024", "2023"],
                financial_analysis=financial_analysis,
                financial_model=financial_model,
            ))
        elif status == "failed":
            _run(records.mark_failed(record_id, "Conversion failed: unreadable"))
        return _run(records.get(record_id))

    return _seed
