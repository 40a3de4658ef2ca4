#!/usr/bin/env python3
"""
Media Catalog - Main Entry Point

Builds the FastAPI application. Store and cache handles are created here,
injected into the services, and opened/closed by the lifespan.

Run:
    python -m app.main
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app import __version__
from app.api.errors import register_exception_handlers
from app.api.health import router as health_router
from app.api.routes import build_asset_router
from app.common.logging import CorrelationMiddleware, get_logger, setup_logging
from app.core.catalog import AssetKind, CatalogQueryService, IngestionService
from app.core.config import Settings, create_cache_client, get_settings
from app.core.connectors import SQLRecordStore
from app.core.interfaces import CacheProtocol, RecordStoreProtocol
from app.core.storage import LocalBlobStore

logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    cache: Optional[CacheProtocol] = None,
    store: Optional[RecordStoreProtocol] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings (default from environment)
        cache: Cache handle (default from CACHE_BACKEND)
        store: Record store handle (default SQLRecordStore on DATABASE_URL)
    """
    settings = settings or get_settings()
    cache = cache or create_cache_client(settings=settings)
    store = store or SQLRecordStore(settings.database_url, echo=settings.database_echo)
    blobs = LocalBlobStore(settings.upload_dir)
    blobs.ensure_root()

    query_service = CatalogQueryService(cache=cache, store=store, ttl=settings.cache_ttl)
    ingestion_service = IngestionService(
        store=store,
        blobs=blobs,
        queries=query_service,
        limits={AssetKind(kind): limit for kind, limit in settings.capacity_limits().items()},
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await store.open()
        await cache.open()
        logger.info("Media catalog started", data={"cache_backend": type(cache).__name__})
        try:
            yield
        finally:
            await cache.close()
            await store.close()
            logger.info("Media catalog stopped")

    app = FastAPI(
        title="Media Catalog API",
        description="Photo and video catalog with a read-through cache",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.cache = cache
    app.state.store = store
    app.state.blobs = blobs
    app.state.query_service = query_service
    app.state.ingestion_service = ingestion_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    for kind in AssetKind:
        app.include_router(build_asset_router(kind))
    app.mount("/uploads", StaticFiles(directory=str(blobs.root)), name="uploads")

    return app


def main():
    """Main entry point."""
    load_dotenv(Path.cwd() / ".env")
    settings = get_settings()
    setup_logging(component="api", log_file=settings.log_file)

    logger.info(f"Starting media catalog on port {settings.port}...")
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
