"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the repository and engine services, registers routers, and runs
startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from booking_engine.controllers.reservation_controller import router as reservation_router
from booking_engine.repository.data_repository import DataRepository
from booking_engine.services.booking_service import BookingOptimizer
from booking_engine.services.forecast_service import DemandForecaster
from booking_engine.services.no_show_service import NoShowRiskPredictor
from booking_engine.utils.config import Settings, get_settings
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services are stateless; they share one repository and are exposed via
    app.state for dependency resolution.
    """
    settings = settings or get_settings()

    repository = DataRepository(settings)
    booking_optimizer = BookingOptimizer(repository=repository, settings=settings)
    no_show_predictor = NoShowRiskPredictor(repository=repository, settings=settings)
    demand_forecaster = DemandForecaster(repository=repository, settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.include_router(reservation_router)

    app.state.repository = repository
    app.state.booking_optimizer = booking_optimizer
    app.state.no_show_predictor = no_show_predictor
    app.state.demand_forecaster = demand_forecaster

    return app


def _startup(app: FastAPI) -> None:
    """
    Idempotent startup sequence. Schema must exist before seeding.
    """
    repository: DataRepository = app.state.repository

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    logger.info("Startup: seeding synthetic staff and reservation history")
    repository.seed_synthetic_data()

    logger.info("Startup complete, system ready")


# Module-level app object for uvicorn
app = create_app()
