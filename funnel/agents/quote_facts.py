# =============================================================================
# Quote → Fact Agent — Verbatim Fact Nodes from Statement Quotes
# =============================================================================
#
# Turns quotes lifted from a financial statement into "fact nodes":
#
#   {
#     "type": "fact",
#     "title": "Quote from <source>",
#     "content": "<exact quote text>",
#     "source": "<source>"
#   }
#
# The LLM is asked for a JSON array with one node per quote, in input order.
# The reply is validated here: node count must match, and `content` is
# always reset to the input quote. A quote is never rewritten, even if the
# model paraphrases it.
# =============================================================================

from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, dataclass

from funnel.services.llm import LLMProvider

logger = logging.getLogger(__name__)


class FactExtractionError(ValueError):
    """The LLM reply could not be turned into fact nodes."""


@dataclass
class Quote:
    text: str
    source: str


@dataclass
class FactNode:
    """A single verbatim fact."""

    type: str
    title: str
    content: str
    source: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class FactExtractionResult:
    facts: list[FactNode]
    model: str
    input_tokens: int
    output_tokens: int


SYSTEM_PROMPT = (
    "You are QuoteFactCreator. You convert quotes into exact fact nodes.\n\n"
    "Rules:\n"
    "- DO NOT modify quote text. Copy it character for character.\n"
    "- Create exactly one fact node per quote, in the same order.\n"
    "- Each fact node has this EXACT format:\n"
    '  {"type": "fact", "title": "Quote from [Source Name]", '
    '"content": "[EXACT QUOTE TEXT]", "source": "[Source Name]"}\n'
    "- Return only a JSON array of fact nodes, with no commentary."
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


async def create_fact_nodes(
    quotes: list[Quote],
    llm: LLMProvider,
) -> FactExtractionResult:
    """
    Ask the LLM for one fact node per quote.

    Raises:
        FactExtractionError: Reply is not a JSON array of the right length.
    """
    if not quotes:
        return FactExtractionResult(facts=[], model="n/a", input_tokens=0, output_tokens=0)

    payload = json.dumps(
        [{"quote": q.text, "source": q.source} for q in quotes],
        ensure_ascii=False,
    )
    logger.info("QuoteFactCreator: %d quotes", len(quotes))

    response = await llm.complete(
        messages=[{"role": "user", "content": f"quotes:\n{payload}"}],
        system=SYSTEM_PROMPT,
        temperature=0.0,
    )

    logger.info(
        "QuoteFactCreator complete: model=%s, tokens=%d+%d",
        response.model, response.input_tokens, response.output_tokens,
    )

    nodes = _parse_nodes(response.content)
    if len(nodes) != len(quotes):
        raise FactExtractionError(
            f"expected {len(quotes)} fact nodes, got {len(nodes)}"
        )

    facts = [_to_fact(node, quote, i) for i, (node, quote) in enumerate(zip(nodes, quotes))]
    return FactExtractionResult(
        facts=facts,
        model=response.model,
        input_tokens=response.input_tokens,
        output_tokens=response.output_tokens,
    )


def fact_title(source: str) -> str:
    return f"Quote from {source}"


def _parse_nodes(raw: str) -> list[dict]:
    """Parse the model's JSON array, tolerating a ```json fence."""
    text = raw.strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise FactExtractionError(f"reply is not valid JSON ({e.msg})") from e

    # Some models wrap the array: {"factNodes": [...]}
    if isinstance(data, dict):
        data = data.get("factNodes") or data.get("facts")

    if not isinstance(data, list) or not all(isinstance(n, dict) for n in data):
        raise FactExtractionError("reply is not a JSON array of objects")
    return data


def _to_fact(node: dict, quote: Quote, index: int) -> FactNode:
    if node.get("content") != quote.text:
        logger.warning(
            "QuoteFactCreator altered quote %d; restoring original text", index,
        )
    return FactNode(
        type="fact",
        title=fact_title(quote.source),
        content=quote.text,
        source=quote.source,
    )
