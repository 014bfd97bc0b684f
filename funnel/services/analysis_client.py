# =============================================================================
# Analysis Service Client — Outbound PDF Conversion
# =============================================================================
#
# Forwards an uploaded PDF to the external financial analysis microservice
# as a new multipart request (field `file`) and normalises its JSON reply.
#
# EXPECTED REPLY:
#   {
#     "csv_content": "...",          # required on success ("csv_data" also accepted)
#     "csv_filename": "x.csv",       # optional
#     "financial_analysis": "...",   # optional, markdown
#     "financial_model": {...},      # optional, text or structured
#     "error": "..."                 # present on application-level failure
#   }
#
# There are no retries. A failure is reported once and the caller decides
# what to do with the FileRecord.
# =============================================================================

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class AnalysisServiceError(Exception):
    """The service could not be reached or answered with a non-2xx status."""


class ConversionFailedError(Exception):
    """The service answered but reported (or implied) a failed conversion."""


@dataclass
class AnalysisResult:
    """Normalised successful reply from the analysis service."""

    csv_content: str
    csv_filename: str | None = None
    financial_analysis: str | None = None
    financial_model: Any = None


class AnalysisClient:
    """
    Async client for the analysis microservice.

    The underlying `httpx.AsyncClient` is owned by the application lifespan
    and shared across requests.
    """

    def __init__(self, http: httpx.AsyncClient, endpoint: str) -> None:
        self._http = http
        self._endpoint = endpoint

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def analyze(
        self,
        filename: str,
        content: bytes,
        content_type: str = "application/pdf",
    ) -> AnalysisResult:
        """
        Send one PDF to the service and return its parsed result.

        Raises:
            AnalysisServiceError: Transport error or non-2xx status.
            ConversionFailedError: Reply carries `error`, is not JSON, or
                has no CSV content.
        """
        logger.info(
            "Forwarding '%s' (%d bytes) to %s",
            filename, len(content), self._endpoint,
        )
        try:
            response = await self._http.post(
                self._endpoint,
                files={"file": (filename, content, content_type)},
            )
        except httpx.HTTPError as e:
            raise AnalysisServiceError(
                f"request to analysis service failed: {e.__class__.__name__}"
            ) from e

        if response.is_error:
            raise AnalysisServiceError(f"{response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ConversionFailedError("service returned invalid JSON") from e

        if not isinstance(payload, dict):
            raise ConversionFailedError("service returned an unexpected payload")

        if payload.get("error"):
            raise ConversionFailedError(str(payload["error"]))

        csv_content = payload.get("csv_content") or payload.get("csv_data")
        if not csv_content or not isinstance(csv_content, str):
            raise ConversionFailedError("service returned no CSV data")

        csv_filename = payload.get("csv_filename")
        if not isinstance(csv_filename, str):
            csv_filename = None

        return AnalysisResult(
            csv_content=csv_content,
            csv_filename=csv_filename,
            financial_analysis=as_text(payload.get("financial_analysis")),
            financial_model=payload.get("financial_model"),
        )


def as_text(value: Any) -> str | None:
    """Text as-is; any other JSON value as indented JSON."""
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)
