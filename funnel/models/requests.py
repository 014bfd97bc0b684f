# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# Shapes of JSON bodies coming INTO the API. Uploads are multipart and are
# validated in the route itself (see funnel/api/process.py).
# =============================================================================

from pydantic import BaseModel, Field


class QuoteIn(BaseModel):
    """A quote taken verbatim from a financial statement."""

    text: str = Field(
        ...,
        min_length=1,
        max_length=5000,
        description="Exact quote text; returned unchanged",
        examples=["Total net revenue was $85.8 billion."],
    )
    source: str = Field(
        ...,
        min_length=1,
        max_length=300,
        description="Where the quote came from",
        examples=["Q3 2024 Income Statement"],
    )


class FactsRequest(BaseModel):
    """
    Request body for POST /api/facts.

    Example:
        {
            "quotes": [
                {"text": "Gross margin was 46.3%.", "source": "Q3 2024 Report"}
            ]
        }
    """

    quotes: list[QuoteIn] = Field(
        ...,
        min_length=1,
        description="Quotes to convert into fact nodes, in order",
    )
