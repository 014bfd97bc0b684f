# =============================================================================
# Application Configuration — Pydantic Settings
# =============================================================================
#
# All runtime configuration is loaded through Pydantic V2's `BaseSettings`.
#
# HOW IT WORKS:
# Pydantic Settings loads values in this priority order (highest first):
#   1. Environment variables (e.g., `MONGO_URI=...`)
#   2. Values from the .env file
#   3. Default values defined below
#
# USAGE:
#   from funnel.config import settings
#   print(settings.mongo_uri)
# =============================================================================

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Defaults match a local development setup: MongoDB on localhost and the
    analysis microservice on 127.0.0.1:8000.
    """

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    app_name: str = "Funnel"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # -------------------------------------------------------------------------
    # Document store + blob store — MongoDB / GridFS
    # -------------------------------------------------------------------------
    # One client serves both stores. The GridFS bucket lives in the same
    # database as the metadata collection.
    #
    # Format: mongodb://host:port/dbname
    # -------------------------------------------------------------------------
    mongo_uri: str = "mongodb://localhost:27017/funnel"
    mongo_database: str = "funnel"
    files_collection: str = "csv_files"
    gridfs_bucket: str = "fs"

    # -------------------------------------------------------------------------
    # External analysis service
    # -------------------------------------------------------------------------
    # Converts an uploaded PDF statement into CSV + analysis output.
    # Timeout of None means the outbound call waits as long as the service
    # takes. Set ANALYSIS_SERVICE_TIMEOUT (seconds) to bound it.
    # -------------------------------------------------------------------------
    analysis_service_url: str = "http://127.0.0.1:8000"
    analysis_service_path: str = "/analyze-financials"
    analysis_service_timeout: float | None = None

    # -------------------------------------------------------------------------
    # LLM Configuration — Multi-Provider
    # -------------------------------------------------------------------------
    # Used by the quote → fact agent. Two providers are supported:
    #   - "openai_compatible": OpenAI or any OpenAI-compatible API
    #   - "anthropic": Claude via the native Anthropic SDK
    #
    # Example configs:
    #   OpenAI:   provider=openai_compatible, model=gpt-4o-mini
    #   DeepSeek: provider=openai_compatible, base_url=https://api.deepseek.com/v1, model=deepseek-chat
    #   Claude:   provider=anthropic, model=claude-sonnet-4-6
    # -------------------------------------------------------------------------
    llm_provider: str = "openai_compatible"  # "openai_compatible" or "anthropic"
    llm_base_url: str | None = None  # Only needed for non-OpenAI endpoints
    llm_api_key: str | None = None   # Overrides provider-specific key if set
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.0
    llm_max_tokens: int = 4096

    # Upper bound on quotes accepted by POST /api/facts in one request
    max_fact_quotes: int = 50

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def analysis_endpoint(self) -> str:
        """Full URL of the PDF analysis endpoint."""
        return self.analysis_service_url.rstrip("/") + self.analysis_service_path


@lru_cache
def get_settings() -> Settings:
    """
    Create and cache a Settings instance.

    In tests, override with FastAPI's dependency_overrides:
        app.dependency_overrides[get_settings] = lambda: Settings(debug=True)
    """
    return Settings()


# ---------------------------------------------------------------------------
# Module-level convenience instance
# ---------------------------------------------------------------------------
settings = get_settings()
