"""Booking slot optimization and same-day availability analysis."""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import date, datetime, time, timedelta
from typing import Optional

from booking_engine.domain.constraints import ScoringWeights, validate_scoring_weights
from booking_engine.domain.models import (
    OCCUPYING_STATUSES,
    AvailabilityAnalysis,
    BookingRequest,
    OptimalBookingSuggestion,
    PeakHour,
    Reservation,
    StaffUtilization,
    TimeRange,
)
from booking_engine.repository.data_repository import DataRepository, ReservationStore
from booking_engine.services.scoring_service import (
    ServiceAffinityScorer,
    SlotConfidenceScorer,
    StaffSuitabilityScorer,
    build_reasons,
)
from booking_engine.services.time_windows import ConflictDetector, TimeWindowGenerator
from booking_engine.utils.config import Settings, get_settings
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)


class BookingError(Exception):
    """Base exception for booking optimization failures."""


class BookingValidationError(BookingError):
    """Raised when a booking request is rejected before computation."""


def _day_bounds(target_date: date) -> tuple[datetime, datetime]:
    day_start = datetime.combine(target_date, time())
    return day_start, day_start + timedelta(days=1)


class BookingOptimizer:
    """Greedy ranker of (staff, slot) pairs for a booking request."""

    def __init__(
        self,
        repository: Optional[ReservationStore] = None,
        settings: Optional[Settings] = None,
        weights: Optional[ScoringWeights] = None,
        affinity_scorer: Optional[ServiceAffinityScorer] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._weights = weights or ScoringWeights()
        validate_scoring_weights(self._weights)
        self._suitability_scorer = StaffSuitabilityScorer(
            weights=self._weights,
            affinity_scorer=affinity_scorer,
        )
        self._confidence_scorer = SlotConfidenceScorer(weights=self._weights)
        self._window_generator = TimeWindowGenerator(
            start_hour=self._settings.business_start_hour,
            end_hour=self._settings.business_end_hour,
            granularity_minutes=self._settings.slot_granularity_minutes,
        )
        self._conflict_detector = ConflictDetector()

    def _validate_request(self, request: BookingRequest) -> None:
        minimum = self._settings.min_request_duration_minutes
        maximum = self._settings.max_request_duration_minutes
        if not isinstance(request.estimated_duration, int) or isinstance(
            request.estimated_duration, bool
        ):
            raise BookingValidationError("estimated_duration must be an integer number of minutes")
        if not minimum <= request.estimated_duration <= maximum:
            raise BookingValidationError(
                f"estimated_duration must be between {minimum} and {maximum} minutes"
            )
        if not isinstance(request.preferred_date, date):
            raise BookingValidationError("preferred_date must be a date")
        if request.preferred_time_range is not None and not isinstance(
            request.preferred_time_range, TimeRange
        ):
            raise BookingValidationError("preferred_time_range must be a TimeRange")
        if isinstance(request.flexibility, bool) or not isinstance(
            request.flexibility, (int, float)
        ):
            raise BookingValidationError("flexibility must be a number")
        if not 0.0 <= request.flexibility <= 1.0:
            raise BookingValidationError("flexibility must be between 0 and 1")

    def _load_day(self, target_date: date) -> dict[int, list[Reservation]]:
        day_start, day_end = _day_bounds(target_date)
        reservations = self._repository.list_reservations(
            day_start,
            day_end,
            statuses=OCCUPYING_STATUSES,
        )
        by_staff: dict[int, list[Reservation]] = defaultdict(list)
        for reservation in reservations:
            by_staff[reservation.staff_id].append(reservation)
        return by_staff

    def optimize_booking(self, request: BookingRequest) -> list[OptimalBookingSuggestion]:
        """Return up to ``optimizer_max_suggestions`` ranked suggestions; may be empty."""
        self._validate_request(request)

        target_date = request.preferred_date
        if isinstance(target_date, datetime):
            target_date = target_date.date()

        staff_members = self._repository.list_active_staff()
        reservations_by_staff = self._load_day(target_date)

        ranked_staff = self._suitability_scorer.rank(staff_members, request)
        shortlisted = ranked_staff[: self._settings.optimizer_staff_fan_out]
        slots = self._window_generator.generate(target_date, request.estimated_duration)
        gate = self._settings.optimizer_confidence_gate

        suggestions: list[OptimalBookingSuggestion] = []
        rejected_by_gate = 0
        for staff, suitability in shortlisted:
            staff_reservations = reservations_by_staff.get(staff.staff_id, [])
            for start_time, end_time in slots:
                if not self._conflict_detector.is_available(
                    start_time,
                    end_time,
                    staff_reservations,
                ):
                    continue
                confidence = self._confidence_scorer.score(
                    start_time,
                    suitability,
                    request,
                    staff_reservations,
                )
                if confidence <= gate:
                    rejected_by_gate += 1
                    continue
                suggestions.append(
                    OptimalBookingSuggestion(
                        start_time=start_time,
                        end_time=end_time,
                        staff_id=staff.staff_id,
                        staff_name=staff.name,
                        confidence=confidence,
                        reasons=build_reasons(
                            start_time,
                            staff,
                            request,
                            confidence,
                            self._weights,
                        ),
                    )
                )

        suggestions.sort(key=lambda item: item.confidence, reverse=True)
        result = suggestions[: self._settings.optimizer_max_suggestions]
        logger.info(
            (
                "Booking optimization completed | date=%s | duration=%s | staff_considered=%s | "
                "candidates=%s | below_gate=%s | returned=%s"
            ),
            target_date.isoformat(),
            request.estimated_duration,
            len(shortlisted),
            len(suggestions),
            rejected_by_gate,
            len(result),
        )
        return result

    def get_availability_analysis(self, target_date: date) -> AvailabilityAnalysis:
        """Aggregate booked versus open half-hour slots for a single day."""
        if isinstance(target_date, datetime):
            target_date = target_date.date()

        staff_members = self._repository.list_active_staff()
        reservations_by_staff = self._load_day(target_date)
        reservations = [
            reservation
            for staff_reservations in reservations_by_staff.values()
            for reservation in staff_reservations
        ]

        slots_per_staff = (
            self._settings.availability_working_hours
            * self._settings.availability_slots_per_hour
        )
        total_slots = len(staff_members) * slots_per_staff
        booked_slots = len(reservations)
        utilization = booked_slots / total_slots if total_slots > 0 else 0.0

        staff_utilization = []
        for staff in staff_members:
            staff_booked = len(reservations_by_staff.get(staff.staff_id, []))
            staff_utilization.append(
                StaffUtilization(
                    staff_id=staff.staff_id,
                    staff_name=staff.name,
                    utilization=staff_booked / slots_per_staff if slots_per_staff > 0 else 0.0,
                    available_slots=slots_per_staff - staff_booked,
                )
            )

        hourly_bookings = Counter(reservation.start_time.hour for reservation in reservations)
        peak_hours = [
            PeakHour(hour=hour, bookings=count)
            for hour, count in sorted(hourly_bookings.items(), key=lambda item: (-item[1], item[0]))
        ][:5]

        analysis = AvailabilityAnalysis(
            total_slots=total_slots,
            booked_slots=booked_slots,
            available_slots=total_slots - booked_slots,
            utilization=utilization,
            staff_utilization=staff_utilization,
            peak_hours=peak_hours,
        )
        logger.info(
            "Availability analysis completed | date=%s | staff=%s | booked=%s | utilization=%.4f",
            target_date.isoformat(),
            len(staff_members),
            booked_slots,
            utilization,
        )
        return analysis
