"""HTTP controller layer for booking optimization and risk/demand prediction."""

from __future__ import annotations

from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, model_validator

from booking_engine.controllers.dependencies import (
    get_booking_optimizer,
    get_demand_forecaster,
    get_no_show_predictor,
)
from booking_engine.domain.models import BookingRequest, CustomerPriority, TimeRange
from booking_engine.services.booking_service import BookingOptimizer, BookingValidationError
from booking_engine.services.forecast_service import DemandForecaster, ForecastValidationError
from booking_engine.services.no_show_service import (
    CustomerNotFoundError,
    NoShowRiskPredictor,
    NoShowValidationError,
)
from booking_engine.utils.config import get_settings
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/reservations", tags=["reservations"])

_CLOCK_REGEX = r"^([01]\d|2[0-3]):[0-5]\d$"


class PreferredTimeRangeModel(BaseModel):
    start: str = Field(pattern=_CLOCK_REGEX)
    end: str = Field(pattern=_CLOCK_REGEX)

    @model_validator(mode="after")
    def validate_order(self) -> "PreferredTimeRangeModel":
        if self.start > self.end:
            raise ValueError("preferred_time_range start must not be after end")
        return self


class OptimizeBookingRequest(BaseModel):
    """Input DTO validated before entering service layer."""

    menu_content: str = Field(default="", max_length=500)
    estimated_duration: int = Field(
        ge=settings.min_request_duration_minutes,
        le=settings.max_request_duration_minutes,
    )
    preferred_date: date
    preferred_time_range: PreferredTimeRangeModel | None = None
    customer_id: int | None = Field(default=None, gt=0)
    customer_priority: CustomerPriority = CustomerPriority.REGULAR
    flexibility: float = Field(default=0.5, ge=0.0, le=1.0)

    def to_domain(self) -> BookingRequest:
        time_range = None
        if self.preferred_time_range is not None:
            time_range = TimeRange.parse(
                self.preferred_time_range.start,
                self.preferred_time_range.end,
            )
        return BookingRequest(
            service_description=self.menu_content,
            estimated_duration=self.estimated_duration,
            preferred_date=self.preferred_date,
            preferred_time_range=time_range,
            customer_id=self.customer_id,
            customer_priority=self.customer_priority,
            flexibility=self.flexibility,
        )


class BookingSuggestionResponse(BaseModel):
    start_time: datetime
    end_time: datetime
    staff_id: int
    staff_name: str
    confidence: float = Field(ge=0.0, le=1.0)
    reasons: list[str]


class OptimizeBookingResponse(BaseModel):
    suggestions: list[BookingSuggestionResponse]


class StaffUtilizationResponse(BaseModel):
    staff_id: int
    staff_name: str
    utilization: float = Field(ge=0.0)
    available_slots: int


class PeakHourResponse(BaseModel):
    hour: int = Field(ge=0, le=23)
    bookings: int = Field(ge=0)


class AvailabilityAnalysisResponse(BaseModel):
    total_slots: int = Field(ge=0)
    booked_slots: int = Field(ge=0)
    available_slots: int
    utilization: float = Field(ge=0.0)
    staff_utilization: list[StaffUtilizationResponse]
    peak_hours: list[PeakHourResponse]


class HourlyDemandResponse(BaseModel):
    hour: int
    predicted_bookings: int = Field(ge=0)
    confidence: float = Field(ge=0.0, le=1.0)


class DemandTrendsResponse(BaseModel):
    seasonal: float
    weekly_pattern: float
    monthly_trend: float


class DemandPredictionResponse(BaseModel):
    date: date
    hourly_demand: list[HourlyDemandResponse]
    total_predicted: int = Field(ge=0)
    trends: DemandTrendsResponse


class DemandForecastResponse(BaseModel):
    predictions: list[DemandPredictionResponse]


class PredictNoShowRequest(BaseModel):
    customer_id: int = Field(gt=0)
    reservation_date: date


class NoShowFactorResponse(BaseModel):
    factor: str
    impact: float
    description: str


class PredictNoShowResponse(BaseModel):
    """Output DTO constrained to the capped probability range."""

    customer_id: int
    probability: float = Field(ge=0.0, le=0.9)
    factors: list[NoShowFactorResponse]
    recommendations: list[str]


@router.post(
    "/optimize",
    response_model=OptimizeBookingResponse,
    status_code=status.HTTP_200_OK,
)
async def optimize_booking(
    payload: OptimizeBookingRequest,
    optimizer: BookingOptimizer = Depends(get_booking_optimizer),
) -> OptimizeBookingResponse:
    try:
        request = payload.to_domain()
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    try:
        suggestions = optimizer.optimize_booking(request)
        return OptimizeBookingResponse(
            suggestions=[BookingSuggestionResponse(**item.to_dict()) for item in suggestions]
        )
    except BookingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:
        logger.exception("Unexpected booking optimization failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to optimize booking",
        ) from exc


@router.get(
    "/availability/{target_date}",
    response_model=AvailabilityAnalysisResponse,
    status_code=status.HTTP_200_OK,
)
async def get_availability_analysis(
    target_date: date,
    optimizer: BookingOptimizer = Depends(get_booking_optimizer),
) -> AvailabilityAnalysisResponse:
    try:
        analysis = optimizer.get_availability_analysis(target_date)
        return AvailabilityAnalysisResponse(**analysis.to_dict())
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected availability analysis failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to analyze availability",
        ) from exc


@router.get(
    "/predictions",
    response_model=DemandForecastResponse,
    status_code=status.HTTP_200_OK,
)
async def get_demand_predictions(
    start_date: date = Query(...),
    end_date: date = Query(...),
    forecaster: DemandForecaster = Depends(get_demand_forecaster),
) -> DemandForecastResponse:
    """Forecast demand; this layer owns the range-length limit."""
    if start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must not be after end_date",
        )
    range_days = (end_date - start_date).days + 1
    if range_days > settings.forecast_max_range_days:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"date range must not exceed {settings.forecast_max_range_days} days",
        )
    try:
        predictions = forecaster.predict_demand(start_date, end_date)
        return DemandForecastResponse(
            predictions=[DemandPredictionResponse(**item.to_dict()) for item in predictions]
        )
    except ForecastValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected demand forecast failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to forecast demand",
        ) from exc


@router.post(
    "/predict-noshow",
    response_model=PredictNoShowResponse,
    status_code=status.HTTP_200_OK,
)
async def predict_no_show(
    payload: PredictNoShowRequest,
    predictor: NoShowRiskPredictor = Depends(get_no_show_predictor),
) -> PredictNoShowResponse:
    try:
        prediction = predictor.predict_no_show(payload.customer_id, payload.reservation_date)
        return PredictNoShowResponse(**prediction.to_dict())
    except NoShowValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except CustomerNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected no-show prediction failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to predict no-show risk",
        ) from exc
