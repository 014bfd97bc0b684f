# =============================================================================
# Agents Package — LLM Agents
# =============================================================================
#   - quote_facts.py: QuoteFactCreator, converts statement quotes into
#     verbatim fact nodes
# =============================================================================
