# =============================================================================
# Error Rendering — `{"error": "..."}` for Every Failure
# =============================================================================
#
# Routes raise `HTTPException` with a human-readable `detail`. These
# handlers render it, request validation failures, and anything unhandled
# into the single error shape the UI reads:
#
#   400  client input (missing/invalid file, malformed id)
#   404  record or blob not found
#   422  malformed JSON body
#   500  store or upstream failure
# =============================================================================

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal server error"
INVALID_ID = "Invalid file ID format"
NOT_FOUND = "File not found"


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException,
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else err.get("msg"))
    return JSONResponse(
        status_code=422,
        content={"error": "; ".join(messages) or "Invalid request"},
    )


async def unhandled_exception_handler(
    request: Request, exc: Exception,
) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s: %s", request.method, request.url.path, exc,
    )
    return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
