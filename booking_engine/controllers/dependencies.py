"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request, status

from booking_engine.services.booking_service import BookingOptimizer
from booking_engine.services.forecast_service import DemandForecaster
from booking_engine.services.no_show_service import NoShowRiskPredictor


def _require_state(request: Request, attribute: str, label: str) -> Any:
    service = getattr(request.app.state, attribute, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} is not initialized",
        )
    return service


def get_booking_optimizer(request: Request) -> BookingOptimizer:
    return _require_state(request, "booking_optimizer", "Booking optimizer")


def get_no_show_predictor(request: Request) -> NoShowRiskPredictor:
    return _require_state(request, "no_show_predictor", "No-show predictor")


def get_demand_forecaster(request: Request) -> DemandForecaster:
    return _require_state(request, "demand_forecaster", "Demand forecaster")
