"""
App factory for the recipe query server.

Creates a pre-configured FastAPI application with:
- CORS middleware
- The query router (/graphql, /__schema, /health)
- The GraphiQL console at /graphiql
- Lifecycle hooks for the document store client
- Logging filter to suppress noisy healthcheck logs
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.graphiql import mount_graphiql
from .api.router import router, set_engine
from .config import Settings
from .core.schema import build_recipe_registry
from .runtime.engine import QueryEngine
from .runtime.store import DocumentStore, MongoDocumentStore

logger = logging.getLogger(__name__)


class HealthcheckLogFilter(logging.Filter):
    """Filter out noisy healthcheck and schema endpoint logs."""

    FILTERED_PATHS = ("/__schema", "/health")

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        for path in self.FILTERED_PATHS:
            if f'"{path}' in message or f" {path} " in message:
                return False
        return True


def _setup_logging_filter():
    """Add filter to uvicorn access logger to suppress healthcheck logs."""
    uvicorn_access = logging.getLogger("uvicorn.access")
    if not any(isinstance(f, HealthcheckLogFilter) for f in uvicorn_access.filters):
        uvicorn_access.addFilter(HealthcheckLogFilter())


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[DocumentStore] = None,
) -> FastAPI:
    """
    Create the FastAPI app.

    Args:
        settings: Process settings (defaults read from the environment)
        store: Document store to use; a MongoDocumentStore is created on
            startup and closed on shutdown when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or Settings()
    registry = build_recipe_registry(
        collection=settings.collection,
        default_page_size=settings.default_page_size,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        _setup_logging_filter()
        owned_store = store is None
        active_store = store or MongoDocumentStore(
            settings.mongodb_uri,
            settings.database,
            server_timeout=settings.store_timeout,
        )
        set_engine(QueryEngine(registry, active_store, settings))
        logger.info(f"Serving '{settings.database}.{settings.collection}'")

        yield

        # Shutdown
        set_engine(None)
        if owned_store:
            await active_store.close()

    app = FastAPI(
        title="Recipe Graph",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    mount_graphiql(app)

    return app
