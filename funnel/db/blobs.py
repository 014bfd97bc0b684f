# =============================================================================
# Blob Store — GridFS Bucket Wrapper
# =============================================================================
#
# Stores the CSV produced for each processed statement. A blob is identified
# by its GridFS ObjectId and carries the filename that the download endpoint
# puts into the Content-Disposition header.
#
# Each download opens its own read stream. Nothing is cached.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

from bson import ObjectId
from gridfs import AsyncGridFSBucket, NoFile
from gridfs.asynchronous.grid_file import AsyncGridOut

logger = logging.getLogger(__name__)

CSV_CONTENT_TYPE = "text/csv"


class BlobNotFoundError(LookupError):
    """Raised when no blob exists for the requested id."""


@dataclass
class BlobStream:
    """An open read stream over one stored blob."""

    file_id: ObjectId
    filename: str
    length: int
    content_type: str
    _grid_out: AsyncGridOut

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        """Yield the blob contents one GridFS chunk at a time."""
        while True:
            chunk = await self._grid_out.readchunk()
            if not chunk:
                break
            yield chunk


class BlobStore:
    """Thin async wrapper over an `AsyncGridFSBucket`."""

    def __init__(self, bucket: AsyncGridFSBucket) -> None:
        self._bucket = bucket

    async def put(
        self,
        filename: str,
        data: bytes,
        content_type: str = CSV_CONTENT_TYPE,
        metadata: dict | None = None,
    ) -> ObjectId:
        """Store `data` under `filename` and return the new blob id."""
        blob_metadata = {"contentType": content_type, **(metadata or {})}
        file_id = await self._bucket.upload_from_stream(
            filename, data, metadata=blob_metadata,
        )
        logger.info(
            "Stored blob %s (%s, %d bytes)", file_id, filename, len(data),
        )
        return file_id

    async def open(self, file_id: ObjectId) -> BlobStream:
        """
        Open a download stream for `file_id`.

        Raises:
            BlobNotFoundError: No blob with that id exists.
        """
        try:
            grid_out = await self._bucket.open_download_stream(file_id)
        except NoFile as e:
            raise BlobNotFoundError(str(file_id)) from e

        metadata = grid_out.metadata or {}
        return BlobStream(
            file_id=file_id,
            filename=grid_out.filename or f"{file_id}.csv",
            length=grid_out.length,
            content_type=metadata.get("contentType", CSV_CONTENT_TYPE),
            _grid_out=grid_out,
        )

    async def delete(self, file_id: ObjectId) -> None:
        await self._bucket.delete(file_id)
