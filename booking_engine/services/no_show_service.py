"""Heuristic no-show risk scoring from a customer's reservation history.

The factors are additive deltas on a base rate with a hard cap; they are
not independent probabilities and the result is not calibrated.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from typing import Callable, Optional

from booking_engine.domain.constraints import NoShowWeights, validate_no_show_weights
from booking_engine.domain.models import (
    Customer,
    NoShowFactor,
    NoShowPrediction,
    Reservation,
    ReservationStatus,
)
from booking_engine.repository.data_repository import DataRepository, ReservationStore
from booking_engine.utils.config import Settings, get_settings
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)

_DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class NoShowPredictionError(Exception):
    """Base exception for no-show prediction failures."""


class NoShowValidationError(NoShowPredictionError):
    """Raised when prediction input is invalid."""


class CustomerNotFoundError(NoShowPredictionError):
    """Raised when the customer id does not exist in the store."""


def weekday_no_show_rates(reservations: list[Reservation]) -> dict[int, float]:
    """Map weekday (Monday=0) to the share of reservations that were no-shows."""
    totals: dict[int, int] = defaultdict(int)
    no_shows: dict[int, int] = defaultdict(int)
    for reservation in reservations:
        weekday = reservation.start_time.weekday()
        totals[weekday] += 1
        if reservation.status == ReservationStatus.NO_SHOW:
            no_shows[weekday] += 1
    return {weekday: no_shows[weekday] / total for weekday, total in totals.items()}


class NoShowRiskPredictor:
    def __init__(
        self,
        repository: Optional[ReservationStore] = None,
        settings: Optional[Settings] = None,
        weights: Optional[NoShowWeights] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._weights = weights or NoShowWeights()
        validate_no_show_weights(self._weights)
        self._clock = clock

    def _new_customer_prediction(self, customer_id: int) -> NoShowPrediction:
        probability = self._weights.new_customer_probability
        return NoShowPrediction(
            customer_id=customer_id,
            probability=probability,
            factors=[
                NoShowFactor(
                    factor="NEW_CUSTOMER",
                    impact=probability,
                    description="New customer with no reservation history",
                )
            ],
            recommendations=["Confirm by phone before the appointment"],
        )

    def _collect_factors(
        self,
        customer: Customer,
        history: list[Reservation],
        weekday_history: list[Reservation],
        reservation_date: date,
    ) -> list[NoShowFactor]:
        weights = self._weights
        factors: list[NoShowFactor] = []

        no_show_count = sum(1 for item in history if item.status == ReservationStatus.NO_SHOW)
        historical_rate = no_show_count / len(history)
        if historical_rate > 0:
            factors.append(
                NoShowFactor(
                    factor="HISTORICAL_NO_SHOW",
                    impact=min(
                        historical_rate * weights.historical_rate_multiplier,
                        weights.historical_rate_cap,
                    ),
                    description=f"Historical no-show rate: {round(historical_rate * 100)}%",
                )
            )

        recent = history[: weights.recent_window]
        recent_misses = sum(
            1
            for item in recent
            if item.status in (ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW)
        )
        if recent_misses > weights.recent_cancellation_threshold:
            factors.append(
                NoShowFactor(
                    factor="RECENT_CANCELLATIONS",
                    impact=min(
                        recent_misses * weights.recent_cancellation_step,
                        weights.recent_cancellation_cap,
                    ),
                    description=(
                        f"{recent_misses} of the last {len(recent)} reservations "
                        "were cancelled or missed"
                    ),
                )
            )

        weekday = reservation_date.weekday()
        weekday_rate = weekday_no_show_rates(weekday_history).get(weekday, 0.0)
        if weekday_rate > weights.weekday_rate_threshold:
            factors.append(
                NoShowFactor(
                    factor="DAY_PATTERN",
                    impact=(weekday_rate - weights.weekday_rate_threshold)
                    * weights.weekday_multiplier,
                    description=f"Tends to miss {_DAY_NAMES[weekday]} appointments",
                )
            )

        if customer.last_visit_date is not None:
            days_since_last_visit = (self._clock() - customer.last_visit_date).days
        else:
            days_since_last_visit = weights.default_days_since_visit
        if days_since_last_visit > weights.long_absence_days:
            factors.append(
                NoShowFactor(
                    factor="LONG_ABSENCE",
                    impact=min(
                        (days_since_last_visit - weights.long_absence_days)
                        * weights.long_absence_step,
                        weights.long_absence_cap,
                    ),
                    description=f"{days_since_last_visit} days since the last visit",
                )
            )

        if weekday >= 5:
            factors.append(
                NoShowFactor(
                    factor="WEEKEND_BOOKING",
                    impact=-weights.weekend_discount,
                    description="Weekend bookings are comparatively reliable",
                )
            )
        return factors

    def _recommendations(self, probability: float, customer: Customer) -> list[str]:
        weights = self._weights
        recommendations: list[str] = []
        if probability > weights.phone_confirmation_threshold:
            recommendations.append("Call the day before to confirm")
            recommendations.append("Prepare alternative slots in advance")
        if probability > weights.message_confirmation_threshold:
            recommendations.append("Send a confirmation message the day before")
        if customer.visit_count < weights.new_customer_visit_threshold:
            recommendations.append("Apply new-customer onboarding care")
        return recommendations

    def predict_no_show(self, customer_id: int, reservation_date: date) -> NoShowPrediction:
        if isinstance(customer_id, bool) or not isinstance(customer_id, int) or customer_id <= 0:
            raise NoShowValidationError("customer_id must be a positive integer")
        if isinstance(reservation_date, datetime):
            reservation_date = reservation_date.date()
        if not isinstance(reservation_date, date):
            raise NoShowValidationError("reservation_date must be a date")

        customer = self._repository.get_customer(customer_id)
        if customer is None:
            raise CustomerNotFoundError(f"customer_id {customer_id} not found")

        history_limit = self._settings.no_show_history_limit
        weekday_limit = self._settings.no_show_weekday_history_limit
        weekday_history = self._repository.list_reservations_for_customer(
            customer_id,
            max(history_limit, weekday_limit),
        )
        history = weekday_history[:history_limit]
        weekday_history = weekday_history[:weekday_limit]

        if not history:
            prediction = self._new_customer_prediction(customer_id)
            logger.info(
                "No-show prediction completed | customer_id=%s | path=new_customer | probability=%.4f",
                customer_id,
                prediction.probability,
            )
            return prediction

        factors = self._collect_factors(customer, history, weekday_history, reservation_date)
        raw_probability = self._weights.base_probability + sum(item.impact for item in factors)
        probability = max(0.0, min(raw_probability, self._weights.probability_cap))

        prediction = NoShowPrediction(
            customer_id=customer_id,
            probability=probability,
            factors=factors,
            recommendations=self._recommendations(probability, customer),
        )
        logger.info(
            (
                "No-show prediction completed | customer_id=%s | date=%s | history=%s | "
                "factors=%s | probability=%.4f"
            ),
            customer_id,
            reservation_date.isoformat(),
            len(history),
            [item.factor for item in factors],
            probability,
        )
        return prediction
