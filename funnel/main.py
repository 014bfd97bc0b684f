# =============================================================================
# Application Factory — FastAPI App, Lifespan, Routers
# =============================================================================
#
# LIFESPAN:
#   startup  → MongoConnection (document + blob store) and an
#              httpx.AsyncClient for the analysis service, on app.state
#   shutdown → both closed
#
# Run locally:
#   uvicorn funnel.main:app --reload
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from funnel.api import download, facts, pages, process, results
from funnel.api.errors import register_exception_handlers
from funnel.config import Settings, settings
from funnel.db.mongo import MongoConnection
from funnel.models.responses import HealthResponse
from funnel.services.analysis_client import AnalysisClient

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


def configure_logging(config: Settings) -> None:
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # Driver chatter is only useful when debugging the connection itself
    if not config.debug:
        logging.getLogger("pymongo").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)


def create_app(config: Settings | None = None) -> FastAPI:
    config = config or settings
    configure_logging(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        mongo = MongoConnection.open(config)
        http = httpx.AsyncClient(timeout=config.analysis_service_timeout)
        app.state.mongo = mongo
        app.state.analysis_client = AnalysisClient(http, config.analysis_endpoint)
        logger.info(
            "%s %s started (analysis service: %s)",
            config.app_name, config.app_version, config.analysis_endpoint,
        )
        try:
            yield
        finally:
            await http.aclose()
            await mongo.close()
            logger.info("%s stopped", config.app_name)

    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        description=(
            "Upload PDF financial statements, convert them through the "
            "analysis service, and browse or download the results."
        ),
        debug=config.debug,
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    app.include_router(process.router)
    app.include_router(results.router)
    app.include_router(download.router)
    app.include_router(facts.router)
    app.include_router(pages.router)
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        return HealthResponse(version=config.app_version, service=config.app_name)

    return app


app = create_app()
