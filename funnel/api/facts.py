# =============================================================================
# Facts API — Quote → Fact Node Conversion
# =============================================================================
#
# ENDPOINT:
#   POST /api/facts — Run QuoteFactCreator over a list of quotes
#
# Error handling:
#   - Too many quotes            → 400
#   - LLM not configured         → 503 Service Unavailable
#   - Unusable LLM reply         → 502 Bad Gateway
#   - LLM API / network errors   → 502 Bad Gateway
# =============================================================================

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from funnel.agents.quote_facts import FactExtractionError, Quote, create_fact_nodes
from funnel.config import Settings, get_settings
from funnel.models.requests import FactsRequest
from funnel.models.responses import FactNodeOut, FactsResponse
from funnel.services.llm import LLMConfigurationError, LLMProvider, get_llm_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Facts"])


def require_llm_provider() -> LLMProvider:
    try:
        return get_llm_provider()
    except LLMConfigurationError as e:
        logger.error("LLM configuration error: %s", e)
        raise HTTPException(
            status_code=503, detail=f"Service configuration error: {e}",
        ) from e


@router.post(
    "/facts",
    response_model=FactsResponse,
    summary="Convert quotes into verbatim fact nodes",
)
async def create_facts(
    request: FactsRequest,
    config: Settings = Depends(get_settings),
    llm: LLMProvider = Depends(require_llm_provider),
) -> FactsResponse:
    if len(request.quotes) > config.max_fact_quotes:
        raise HTTPException(
            status_code=400,
            detail=f"At most {config.max_fact_quotes} quotes per request",
        )

    quotes = [Quote(text=q.text, source=q.source) for q in request.quotes]

    try:
        result = await create_fact_nodes(quotes, llm)
    except FactExtractionError as e:
        logger.error("Fact extraction failed: %s", e)
        raise HTTPException(
            status_code=502, detail=f"Fact extraction failed: {e}",
        ) from e
    except Exception as e:
        logger.exception("LLM call failed: %s", e)
        raise HTTPException(status_code=502, detail=f"LLM service error: {e}") from e

    return FactsResponse(
        facts=[FactNodeOut(**fact.to_dict()) for fact in result.facts],
        model=result.model,
    )
