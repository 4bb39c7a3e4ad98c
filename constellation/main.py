"""FastAPI application entry point for the Constellation Graph backend."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from constellation.config import get_settings
from constellation.api.routes import router
from constellation.services.keyword_store import NotionKeywordStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan: startup and shutdown."""
    settings = get_settings()

    app.state.keyword_store = NotionKeywordStore(
        api_key=settings.notion_api_key,
        database_id=settings.notion_keywords_db_id,
        notion_version=settings.notion_version,
        timeout=settings.notion_timeout_seconds,
    )

    logger.info("Application started")
    yield

    # Shutdown
    await app.state.keyword_store.close()
    logger.info("Application shut down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    allow_origin_regex = r"^http://localhost:\d+$" if settings.environment == "development" else None
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_origin_regex=allow_origin_regex,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # Include API routes
    app.include_router(router, prefix=settings.api_prefix)

    return app


app = create_app()
