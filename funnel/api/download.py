# =============================================================================
# Download API — Stream a Stored CSV
# =============================================================================
#
# ENDPOINT:
#   GET /api/download/{file_id} — GridFS blob as a CSV attachment
#
# The blob is opened before the response starts, so a missing blob is a
# clean 404 and never a 200 with a partial body. Bytes are then streamed
# chunk by chunk. A failure after streaming has begun can only be logged;
# the client sees a truncated transfer and no resume is offered.
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from pymongo.errors import PyMongoError

from funnel.api.deps import get_blobs, parse_object_id
from funnel.api.errors import NOT_FOUND
from funnel.db.blobs import CSV_CONTENT_TYPE, BlobNotFoundError, BlobStore, BlobStream

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Download"])


def content_disposition(filename: str) -> str:
    """
    `attachment` header value for `filename`.

    Quotes and backslashes are stripped from the plain form; non-ASCII
    names also get an RFC 5987 `filename*` parameter.
    """
    plain = filename.replace('"', "").replace("\\", "")
    ascii_name = plain.encode("ascii", "ignore").decode("ascii") or "download.csv"
    value = f'attachment; filename="{ascii_name}"'
    if ascii_name != plain:
        value += f"; filename*=UTF-8''{quote(plain)}"
    return value


async def _stream(blob: BlobStream) -> AsyncIterator[bytes]:
    try:
        async for chunk in blob.iter_chunks():
            yield chunk
    except PyMongoError as e:
        logger.exception("GridFS download error for %s: %s", blob.file_id, e)
        raise


@router.get(
    "/download/{file_id}",
    response_class=StreamingResponse,
    summary="Download a stored CSV",
    responses={200: {"content": {CSV_CONTENT_TYPE: {}}}},
)
async def download_file(
    file_id: str,
    blobs: BlobStore = Depends(get_blobs),
) -> StreamingResponse:
    oid = parse_object_id(file_id)

    try:
        blob = await blobs.open(oid)
    except BlobNotFoundError as e:
        raise HTTPException(status_code=404, detail=NOT_FOUND) from e
    except PyMongoError as e:
        logger.exception("Download API error for %s: %s", file_id, e)
        raise HTTPException(status_code=500, detail="Failed to download file") from e

    logger.info("Streaming blob %s (%s, %d bytes)", oid, blob.filename, blob.length)
    return StreamingResponse(
        _stream(blob),
        media_type=CSV_CONTENT_TYPE,
        headers={
            "Content-Disposition": content_disposition(blob.filename),
            "Content-Length": str(blob.length),
        },
    )
