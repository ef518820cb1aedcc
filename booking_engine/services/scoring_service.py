"""Staff suitability and per-slot confidence heuristics."""

from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Iterable, Optional, Protocol

from booking_engine.domain.constraints import ScoringWeights, validate_scoring_weights
from booking_engine.domain.models import (
    BookingRequest,
    CustomerPriority,
    Reservation,
    StaffMember,
)
from booking_engine.services.time_windows import find_previous_reservation


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    return max(lower, min(upper, value))


class ServiceAffinityScorer(Protocol):
    """Returns the bonus a staff member earns for the requested service."""

    def score(self, staff: StaffMember, request: BookingRequest) -> float: ...


class KeywordServiceAffinityScorer:
    """Placeholder affinity based on keywords in the service description.

    Every staff member gets the same bonus; a menu-to-skill mapping can
    replace this class without touching the optimizer.
    """

    CUT_KEYWORDS = ("cut", "カット")
    COLOR_KEYWORDS = ("color", "colour", "カラー")
    PERM_KEYWORDS = ("perm", "パーマ")

    def __init__(self, weights: Optional[ScoringWeights] = None) -> None:
        self._weights = weights or ScoringWeights()

    @staticmethod
    def _mentions(text: str, keywords: Iterable[str]) -> bool:
        return any(keyword in text for keyword in keywords)

    def score(self, staff: StaffMember, request: BookingRequest) -> float:
        del staff
        text = request.service_description.casefold()
        bonus = 0.0
        if self._mentions(text, self.CUT_KEYWORDS):
            bonus += self._weights.cut_bonus
        if self._mentions(text, self.COLOR_KEYWORDS):
            bonus += self._weights.color_bonus
        if self._mentions(text, self.PERM_KEYWORDS):
            bonus += self._weights.perm_bonus
        return bonus


class StaffSuitabilityScorer:
    def __init__(
        self,
        weights: Optional[ScoringWeights] = None,
        affinity_scorer: Optional[ServiceAffinityScorer] = None,
    ) -> None:
        self._weights = weights or ScoringWeights()
        validate_scoring_weights(self._weights)
        self._affinity_scorer = affinity_scorer or KeywordServiceAffinityScorer(self._weights)

    def score(self, staff: StaffMember, request: BookingRequest) -> float:
        score = self._weights.base_suitability
        score += self._affinity_scorer.score(staff, request)
        if request.customer_priority == CustomerPriority.VIP:
            score += self._weights.vip_bonus
        return clamp(score)

    def rank(
        self,
        staff_members: Iterable[StaffMember],
        request: BookingRequest,
    ) -> list[tuple[StaffMember, float]]:
        """Score staff and order them best first; ties keep store order."""
        scored = [(staff, self.score(staff, request)) for staff in staff_members]
        return sorted(scored, key=lambda item: item[1], reverse=True)


class SlotConfidenceScorer:
    def __init__(self, weights: Optional[ScoringWeights] = None) -> None:
        self._weights = weights or ScoringWeights()
        validate_scoring_weights(self._weights)

    def score(
        self,
        candidate_start: datetime,
        suitability: float,
        request: BookingRequest,
        staff_reservations: Iterable[Reservation],
    ) -> float:
        confidence = suitability

        time_range = request.preferred_time_range
        if time_range is not None and time_range.contains_hour(candidate_start.hour):
            confidence += self._weights.preferred_window_bonus

        previous = find_previous_reservation(candidate_start, staff_reservations)
        if previous is not None:
            gap = candidate_start - previous.effective_end_time
            if gap >= timedelta(minutes=self._weights.buffer_minutes):
                confidence += self._weights.buffer_bonus

        candidate_end = candidate_start + timedelta(minutes=request.estimated_duration)
        late_cutoff = datetime.combine(
            candidate_start.date(),
            time(hour=self._weights.late_end_hour),
        )
        if (
            candidate_end >= late_cutoff
            and request.estimated_duration > self._weights.long_service_minutes
        ):
            confidence -= self._weights.late_long_service_penalty

        return clamp(confidence)


def build_reasons(
    candidate_start: datetime,
    staff: StaffMember,
    request: BookingRequest,
    confidence: float,
    weights: Optional[ScoringWeights] = None,
) -> list[str]:
    """Human-readable justifications, ordered tier, staff, time of day, priority."""
    weights = weights or ScoringWeights()
    reasons: list[str] = []
    if confidence > weights.optimal_reason_threshold:
        reasons.append("Optimal staff and time pairing")
    if confidence > weights.specialty_reason_threshold:
        reasons.append(f"Matches {staff.name}'s specialty")

    hour = candidate_start.hour
    if 10 <= hour <= 14:
        reasons.append("Relaxed time window")
    if 15 <= hour <= 17:
        reasons.append("Popular time window")

    if request.customer_priority == CustomerPriority.VIP:
        reasons.append("VIP priority handling")
    return reasons
