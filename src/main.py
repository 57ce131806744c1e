"""BBT Tracker API: FastAPI application entry point.

Run locally:
    uvicorn src.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.bbt.config_loader import get_analysis_config, load_analysis_config
from src.bbt.persistence import JsonFileRepository
from src.bbt.service import TrackerService
from src.config import Settings, get_settings
from src.routers import analysis, health, readings

logger = logging.getLogger("bbt")


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings: Settings = app.state.settings
    logger.info(
        "Starting BBT Tracker API v%s [%s]",
        settings.app_version,
        settings.environment,
    )
    config = (
        load_analysis_config(settings.analysis_config_path)
        if settings.analysis_config_path
        else get_analysis_config()
    )
    repository = JsonFileRepository(settings.data_file, config=config)
    app.state.tracker = TrackerService(repository, config=config)
    yield
    app.state.tracker = None
    logger.info("BBT Tracker API shut down")


# ---------- App factory ----------

def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="BBT Tracker API",
        description=(
            "Basal body temperature tracking with per-month fertile window "
            "detection, next-window prediction and CSV import/export."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.tracker = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    # ---------- Health check (outside v1 prefix, always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    v1_prefix = "/api/v1"

    app.include_router(readings.router, prefix=v1_prefix)
    app.include_router(analysis.router, prefix=v1_prefix)

    return app


app = create_app()
