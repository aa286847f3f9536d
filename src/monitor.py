"""Brewstore monitoring dashboard.

Lightweight FastAPI server reporting the health of the relational store and
the optional Redis cache. It is also the composition root that owns the
process's ``Store`` and ``CacheConnectionManager``.

Usage:
    uvicorn src.monitor:app --host 0.0.0.0 --port 9000
"""

from contextlib import asynccontextmanager
from dataclasses import asdict

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cache_client.client import CacheConnectionManager
from datastore.health import check_cache, check_database
from datastore.store import Store
from shared.settings import Settings

logger = structlog.get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = settings or Settings.from_env()
        app.state.store = Store(resolved.database_url)
        app.state.cache = CacheConnectionManager(resolved.cache)
        logger.info("Monitor started")

        yield

        app.state.cache.close()
        app.state.store.disconnect()
        logger.info("Monitor stopped")

    app = FastAPI(
        title="Brewstore Monitor",
        description="Health of the storefront database and the Redis cache",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Endpoints
    # -----------------------------------------------------------------------
    @app.get("/")
    def root():
        """Overall service description."""
        return JSONResponse(
            content={
                "service": "Brewstore Monitor",
                "components": ["database", "cache"],
            }
        )

    @app.get("/health")
    def health(request: Request):
        """Health check for all infrastructure components.

        The database is required: if it is down the service reports an error.
        The cache is optional: if it is down the service is only degraded.
        """
        database = check_database(request.app.state.store)
        cache_manager = request.app.state.cache
        cache = check_cache(cache_manager)

        if not database.healthy:
            status, status_code = "error", 503
        elif cache.enabled and not cache.healthy:
            status, status_code = "degraded", 200
        else:
            status, status_code = "ok", 200

        return JSONResponse(
            status_code=status_code,
            content={
                "status": status,
                "infrastructure": {
                    "database": asdict(database),
                    "cache": {
                        **asdict(cache),
                        "connected": cache_manager.is_connected(),
                        "status": cache_manager.status.value,
                    },
                },
            },
        )

    return app


app = create_app()
