# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
StoreSense — FastAPI Application Entry Point
Creates the app, registers lifespan events, CORS, routers,
and global error handlers.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storesense.api.middleware.error_handler import register_error_handlers
from storesense.api.routes import confirmations, detect
from storesense.config import get_settings
from storesense.dependencies import init_confirmed_memory
from storesense.utils.logger import configure_logging, get_logger

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ── Startup ──────────────────────────────────────────────────────────────
    configure_logging()
    settings = get_settings()

    log.info(
        "storesense_startup",
        version="1.0.0",
        search_radius_meters=settings.search_radius_meters,
        auto_accept_confidence=settings.auto_accept_confidence,
        confirmed_memory=settings.confirmed_memory_backend,
    )

    init_confirmed_memory()

    log.info("storesense_ready")
    yield

    # ── Shutdown ─────────────────────────────────────────────────────────────
    log.info("storesense_shutdown")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="StoreSense",
        summary="Multi-modal store detection from GPS geofences and WiFi signatures.",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # ── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error Handlers ───────────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Routers ──────────────────────────────────────────────────────────────
    app.include_router(detect.router)
    app.include_router(confirmations.router)

    # ── Health Check ─────────────────────────────────────────────────────────
    @app.get("/health", tags=["health"], summary="Health check")
    async def health() -> dict:
        return {
            "status": "ok",
            "service": "storesense",
            "version": "1.0.0",
            "confirmed_memory": settings.confirmed_memory_backend,
        }

    return app


# Module-level app instance for uvicorn
app = create_app()


def run() -> None:
    """Console entry point: serve the module-level app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "storesense.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
