# =============================================================================
# Services Package — Business Logic
# =============================================================================
# Kept separate from the API handlers:
#   - analysis_client.py: Outbound call to the PDF analysis microservice
#   - csv_summary.py: Row count, columns and filename for returned CSVs
#   - llm.py: Multi-provider LLM abstraction (OpenAI-compatible, Anthropic)
# =============================================================================
