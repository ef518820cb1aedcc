"""Candidate slot enumeration and interval conflict checks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Iterator, Optional

from booking_engine.domain.models import Reservation


@dataclass(frozen=True)
class TimeWindowGenerator:
    """Enumerates slot start times inside business hours.

    Start times run from ``start_hour`` up to, but excluding, ``end_hour``.
    A slot whose end spills past closing is still produced; the confidence
    scorer penalises it instead.
    """

    start_hour: int = 9
    end_hour: int = 18
    granularity_minutes: int = 30

    def __post_init__(self) -> None:
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError("business hours must satisfy 0 <= start < end <= 24")
        if self.granularity_minutes <= 0:
            raise ValueError("granularity_minutes must be > 0")

    def slot_starts(self, target_date: date) -> Iterator[datetime]:
        current = datetime.combine(target_date, time(hour=self.start_hour))
        closing = datetime.combine(target_date, time()) + timedelta(hours=self.end_hour)
        step = timedelta(minutes=self.granularity_minutes)
        while current < closing:
            yield current
            current += step

    def generate(self, target_date: date, duration_minutes: int) -> list[tuple[datetime, datetime]]:
        """Return ``(start, end)`` pairs for every slot of the given length."""
        duration = timedelta(minutes=duration_minutes)
        return [(start, start + duration) for start in self.slot_starts(target_date)]


def intervals_overlap(
    first_start: datetime,
    first_end: datetime,
    second_start: datetime,
    second_end: datetime,
) -> bool:
    """Half-open overlap test; touching boundaries do not overlap."""
    return first_start < second_end and first_end > second_start


class ConflictDetector:
    """Checks a candidate slot against a staff member's occupying reservations."""

    def is_available(
        self,
        candidate_start: datetime,
        candidate_end: datetime,
        staff_reservations: Iterable[Reservation],
    ) -> bool:
        return self.find_conflict(candidate_start, candidate_end, staff_reservations) is None

    def find_conflict(
        self,
        candidate_start: datetime,
        candidate_end: datetime,
        staff_reservations: Iterable[Reservation],
    ) -> Optional[Reservation]:
        for reservation in staff_reservations:
            if not reservation.occupies_time:
                continue
            if intervals_overlap(
                candidate_start,
                candidate_end,
                reservation.start_time,
                reservation.effective_end_time,
            ):
                return reservation
        return None


def find_previous_reservation(
    candidate_start: datetime,
    staff_reservations: Iterable[Reservation],
) -> Optional[Reservation]:
    """Return the reservation with the latest start strictly before ``candidate_start``."""
    earlier = [item for item in staff_reservations if item.start_time < candidate_start]
    if not earlier:
        return None
    return max(earlier, key=lambda item: item.start_time)
