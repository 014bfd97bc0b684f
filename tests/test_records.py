# =============================================================================
# Unit Tests — FileRecord Repository and Blob Store
# =============================================================================
#
# Test groups:
#   1. Record creation defaults
#   2. Status state machine (processing → completed | failed, never back)
#   3. Queries issued to the driver (AsyncMock collection)
#   4. BlobStore on a fake bucket
# =============================================================================

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo import ReturnDocument

from funnel.db.blobs import BlobNotFoundError
from funnel.db.records import (
    MODEL_PROJECTION,
    FileRecordRepository,
    FileStatus,
    StatusTransitionError,
    new_record,
)


def _run(coro):
    """Helper to run async functions in sync tests."""
    return asyncio.run(coro)


def _complete(records, record_id, blob_id=None):
    return _run(records.mark_completed(
        record_id,
        csv_filename="s.csv",
        gridfs_file_id=blob_id or ObjectId(),
        row_count=2,
        columns=["a", "b"],
    ))


# ---------------------------------------------------------------------------
# 1. Creation
# ---------------------------------------------------------------------------


class TestNewRecord:
    def test_defaults(self):
        doc = new_record("q3.pdf", 2048)
        assert doc["status"] == "processing"
        assert doc["original_filename"] == "q3.pdf"
        assert doc["file_size"] == 2048
        assert doc["gridfs_file_id"] is None
        assert doc["csv_filename"] is None
        assert doc["row_count"] == 0
        assert doc["columns"] == []
        assert doc["financial_analysis"] is None
        assert doc["financial_model"] is None

    def test_upload_date_is_utc(self):
        doc = new_record("q3.pdf", 1)
        assert doc["upload_date"].tzinfo is UTC
        assert (datetime.now(UTC) - doc["upload_date"]).total_seconds() < 5

    def test_create_returns_id(self, records, collection):
        record_id = _run(records.create("q3.pdf", 10))
        assert isinstance(record_id, ObjectId)
        assert collection.docs[0]["_id"] == record_id


# ---------------------------------------------------------------------------
# 2. Status state machine
# ---------------------------------------------------------------------------


class TestStatusTransitions:
    def test_processing_to_completed(self, records):
        record_id = _run(records.create("s.pdf", 10))
        blob_id = ObjectId()
        updated = _complete(records, record_id, blob_id)

        assert updated["status"] == "completed"
        assert updated["gridfs_file_id"] == blob_id
        assert updated["columns"] == ["a", "b"]
        assert updated["row_count"] == 2

    def test_processing_to_failed(self, records):
        record_id = _run(records.create("s.pdf", 10))
        updated = _run(records.mark_failed(record_id, "boom"))
        assert updated["status"] == "failed"
        assert updated["error_message"] == "boom"
        assert updated["gridfs_file_id"] is None

    def test_completed_cannot_fail(self, records):
        record_id = _run(records.create("s.pdf", 10))
        _complete(records, record_id)

        with pytest.raises(StatusTransitionError):
            _run(records.mark_failed(record_id, "late failure"))
        assert _run(records.get(record_id))["status"] == "completed"

    def test_failed_cannot_complete(self, records):
        record_id = _run(records.create("s.pdf", 10))
        _run(records.mark_failed(record_id, "boom"))

        with pytest.raises(StatusTransitionError):
            _complete(records, record_id)
        doc = _run(records.get(record_id))
        assert doc["status"] == "failed"
        assert doc["gridfs_file_id"] is None

    def test_completed_cannot_complete_again(self, records):
        record_id = _run(records.create("s.pdf", 10))
        first_blob = ObjectId()
        _complete(records, record_id, first_blob)
        with pytest.raises(StatusTransitionError):
            _complete(records, record_id)
        assert _run(records.get(record_id))["gridfs_file_id"] == first_blob

    def test_unknown_record(self, records):
        with pytest.raises(StatusTransitionError):
            _run(records.mark_failed(ObjectId(), "boom"))

    def test_error_message_truncated(self, records):
        record_id = _run(records.create("s.pdf", 10))
        updated = _run(records.mark_failed(record_id, "x" * 5000))
        assert len(updated["error_message"]) == 1000


# ---------------------------------------------------------------------------
# 3. Driver calls
# ---------------------------------------------------------------------------


class TestDriverCalls:
    """The repository's queries, checked against a mocked collection."""

    def test_transition_filters_on_processing(self):
        collection = MagicMock()
        collection.find_one_and_update = AsyncMock(return_value={"status": "failed"})
        record_id = ObjectId()

        _run(FileRecordRepository(collection).mark_failed(record_id, "boom"))

        args, kwargs = collection.find_one_and_update.call_args
        assert args[0] == {"_id": record_id, "status": FileStatus.PROCESSING.value}
        assert args[1]["$set"]["status"] == "failed"
        assert kwargs["return_document"] == ReturnDocument.AFTER

    def test_get_passes_projection(self):
        collection = MagicMock()
        collection.find_one = AsyncMock(return_value=None)
        record_id = ObjectId()

        _run(FileRecordRepository(collection).get(record_id, projection=MODEL_PROJECTION))

        collection.find_one.assert_awaited_once_with(
            {"_id": record_id}, projection=MODEL_PROJECTION,
        )

    def test_list_all_is_unfiltered_and_unbounded(self):
        cursor = MagicMock()
        cursor.to_list = AsyncMock(return_value=[])
        collection = MagicMock()
        collection.find.return_value = cursor

        _run(FileRecordRepository(collection).list_all())

        collection.find.assert_called_once_with({})
        cursor.to_list.assert_awaited_once_with(length=None)

    def test_create_inserts_processing_document(self):
        collection = MagicMock()
        collection.insert_one = AsyncMock(
            return_value=SimpleNamespace(inserted_id=ObjectId()),
        )
        _run(FileRecordRepository(collection).create("s.pdf", 42))

        (doc,), _ = collection.insert_one.call_args
        assert doc["status"] == "processing"
        assert doc["file_size"] == 42


# ---------------------------------------------------------------------------
# 4. Blob store
# ---------------------------------------------------------------------------


class TestBlobStore:
    def test_put_then_open(self, blobs):
        blob_id = _run(blobs.put("s.csv", b"a,b\n1,2\n"))
        stream = _run(blobs.open(blob_id))
        assert stream.filename == "s.csv"
        assert stream.length == 8
        assert stream.content_type == "text/csv"

        async def collect():
            return b"".join([chunk async for chunk in stream.iter_chunks()])

        assert _run(collect()) == b"a,b\n1,2\n"

    def test_open_missing(self, blobs):
        with pytest.raises(BlobNotFoundError):
            _run(blobs.open(ObjectId()))

    def test_put_merges_metadata(self, blobs, bucket):
        record_id = ObjectId()
        blob_id = _run(blobs.put("s.csv", b"x", metadata={"file_record_id": record_id}))
        assert bucket.files[blob_id]["metadata"] == {
            "contentType": "text/csv",
            "file_record_id": record_id,
        }

    def test_delete(self, blobs, bucket):
        blob_id = _run(blobs.put("s.csv", b"x"))
        _run(blobs.delete(blob_id))
        assert bucket.files == {}
