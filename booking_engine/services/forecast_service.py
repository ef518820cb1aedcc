"""Per-hour booking demand projection from weekday-matched history."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Callable, Optional

import numpy as np
import pandas as pd

from booking_engine.domain.constraints import ForecastWeights, validate_forecast_weights
from booking_engine.domain.models import (
    DemandPrediction,
    DemandTrends,
    HourlyDemand,
    Reservation,
    ReservationStatus,
)
from booking_engine.repository.data_repository import DataRepository, ReservationStore
from booking_engine.utils.config import Settings, get_settings
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)

_HISTORY_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.COMPLETED)


class ForecastError(Exception):
    """Base exception for demand forecasting failures."""


class ForecastValidationError(ForecastError):
    """Raised when the requested forecast range is invalid."""


def build_hourly_history(reservations: list[Reservation]) -> pd.DataFrame:
    """Pivot reservations into one row per calendar date and one column per start hour.

    The frame carries ``weekday`` and ``month`` columns alongside the hourly counts.
    """
    if not reservations:
        return pd.DataFrame(columns=["weekday", "month"])

    frame = pd.DataFrame(
        {
            "date": [item.start_time.date() for item in reservations],
            "hour": [item.start_time.hour for item in reservations],
        }
    )
    counts = frame.groupby(["date", "hour"]).size().unstack(fill_value=0)
    dates = pd.to_datetime(pd.Series(counts.index, index=counts.index))
    counts["weekday"] = dates.dt.dayofweek.astype(int)
    counts["month"] = dates.dt.month.astype(int)
    return counts


def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


class DemandForecaster:
    def __init__(
        self,
        repository: Optional[ReservationStore] = None,
        settings: Optional[Settings] = None,
        weights: Optional[ForecastWeights] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._weights = weights or ForecastWeights()
        validate_forecast_weights(self._weights)
        self._clock = clock

    def seasonal_factor(self, target_date: date) -> float:
        factor = self._weights.seasonal_factors[target_date.month - 1]
        if target_date.weekday() >= 5:
            factor *= self._weights.weekend_multiplier
        return factor

    def weekly_pattern(self, target_date: date) -> float:
        return self._weights.weekly_patterns[target_date.weekday()]

    def trend_factor(self, target_date: date) -> float:
        """Linear factor over the months from the target date to now.

        Targets ahead of now get a factor below 1; past targets get one above 1.
        """
        elapsed = self._clock() - datetime.combine(target_date, time())
        months = elapsed.total_seconds() / timedelta(days=self._weights.days_per_month).total_seconds()
        return 1 + months * self._weights.monthly_growth

    def _load_history(self, start_date: date) -> pd.DataFrame:
        window_end = datetime.combine(start_date, time())
        window_start = (
            pd.Timestamp(window_end) - pd.DateOffset(months=self._settings.forecast_history_months)
        ).to_pydatetime()
        reservations = self._repository.list_reservations(
            window_start,
            window_end,
            statuses=_HISTORY_STATUSES,
        )
        return build_hourly_history(reservations)

    def _predict_day(self, target_date: date, history: pd.DataFrame) -> DemandPrediction:
        same_weekday = history[history["weekday"] == target_date.weekday()]
        same_month = history[history["month"] == target_date.month]
        sample_size = len(same_weekday)

        seasonal = self.seasonal_factor(target_date)
        trend = self.trend_factor(target_date)
        confidence = min(sample_size / self._weights.confidence_sample_size, 1.0)

        hourly: list[HourlyDemand] = []
        for hour in range(self._settings.forecast_start_hour, self._settings.forecast_end_hour + 1):
            if hour in same_weekday.columns:
                historical_count = float(same_weekday[hour].sum())
            else:
                historical_count = 0.0
            average = historical_count / max(sample_size, 1)
            predicted = _round_half_up(average * seasonal * trend)
            hourly.append(
                HourlyDemand(
                    hour=hour,
                    predicted_bookings=max(0, predicted),
                    confidence=confidence,
                )
            )

        logger.debug(
            "Forecast day | date=%s | weekday_samples=%s | month_samples=%s",
            target_date.isoformat(),
            sample_size,
            len(same_month),
        )
        return DemandPrediction(
            date=target_date,
            hourly_demand=hourly,
            total_predicted=sum(item.predicted_bookings for item in hourly),
            trends=DemandTrends(
                seasonal=seasonal,
                weekly_pattern=self.weekly_pattern(target_date),
                monthly_trend=trend,
            ),
        )

    def predict_demand(self, start_date: date, end_date: date) -> list[DemandPrediction]:
        """One prediction per calendar day in ``[start_date, end_date]``.

        The range length is not bounded here; callers decide what they accept.
        """
        if isinstance(start_date, datetime):
            start_date = start_date.date()
        if isinstance(end_date, datetime):
            end_date = end_date.date()
        if not isinstance(start_date, date) or not isinstance(end_date, date):
            raise ForecastValidationError("start_date and end_date must be dates")
        if start_date > end_date:
            raise ForecastValidationError("start_date must not be after end_date")

        history = self._load_history(start_date)
        predictions: list[DemandPrediction] = []
        current = start_date
        while current <= end_date:
            predictions.append(self._predict_day(current, history))
            current += timedelta(days=1)

        logger.info(
            "Demand forecast completed | start=%s | end=%s | days=%s | history_days=%s | total=%s",
            start_date.isoformat(),
            end_date.isoformat(),
            len(predictions),
            len(history),
            sum(item.total_predicted for item in predictions),
        )
        return predictions
