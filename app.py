"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the repository and report service, registers routers, and runs
startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from crewstay.controllers.allocation_controller import router as allocation_router
from crewstay.controllers.report_controller import router as report_router
from crewstay.repository.data_repository import DataRepository
from crewstay.services.exporter import ReportExporter
from crewstay.services.report_service import ReportService
from crewstay.utils.config import get_settings
from crewstay.utils.logger import configure_logging, get_logger


logger = get_logger(__name__)


def create_app(seed_demo_data: bool = True) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services are instantiated with explicit dependency injection via app.state.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    # --- Repository (SQLite connection factory) ---
    repository = DataRepository(settings)

    # --- Services ---
    report_service = ReportService(
        repository=repository,
        exporter=ReportExporter(),
        settings=settings,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app, seed_demo_data=seed_demo_data)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(allocation_router)
    app.include_router(report_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.repository = repository
    app.state.report_service = report_service

    return app


def _startup(app: FastAPI, seed_demo_data: bool = True) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Schema must exist before seeding; seeding is skipped when hotels exist.
    """
    repository: DataRepository = app.state.repository

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    if seed_demo_data:
        logger.info("Startup: seeding demo hotel, airline and crew stays")
        repository.seed_synthetic_data()

    logger.info("Startup complete")


# Module-level app object for uvicorn
app = create_app()
