"""Domain models for booking optimization, no-show risk and demand forecasting."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, Optional


DEFAULT_RESERVATION_LENGTH = timedelta(hours=1)

_CLOCK_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


class ReservationStatus(str, Enum):
    TENTATIVE = "TENTATIVE"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


# Statuses that hold a staff member's time; the rest are history only.
OCCUPYING_STATUSES = (ReservationStatus.CONFIRMED, ReservationStatus.TENTATIVE)


class CustomerPriority(str, Enum):
    VIP = "VIP"
    REGULAR = "REGULAR"
    NEW = "NEW"


@dataclass(frozen=True)
class StaffMember:
    staff_id: int
    name: str
    is_active: bool = True


@dataclass(frozen=True)
class Customer:
    customer_id: int
    name: str
    visit_count: int = 0
    last_visit_date: Optional[datetime] = None


@dataclass(frozen=True)
class Reservation:
    reservation_id: int
    staff_id: int
    start_time: datetime
    status: ReservationStatus
    end_time: Optional[datetime] = None
    customer_id: Optional[int] = None
    menu_content: str = ""

    @property
    def effective_end_time(self) -> datetime:
        """End time with the one-hour default applied when none was recorded."""
        if self.end_time is not None:
            return self.end_time
        return self.start_time + DEFAULT_RESERVATION_LENGTH

    @property
    def occupies_time(self) -> bool:
        return self.status in OCCUPYING_STATUSES


@dataclass(frozen=True)
class TimeRange:
    """Clock window such as 10:00-14:00 used for preferred booking times."""

    start: time
    end: time

    @classmethod
    def parse(cls, start: str, end: str) -> "TimeRange":
        parsed = []
        for label, value in (("start", start), ("end", end)):
            if not isinstance(value, str) or _CLOCK_PATTERN.fullmatch(value) is None:
                raise ValueError(f"preferred time range {label} must follow HH:MM format")
            hour, minute = (int(part) for part in value.split(":"))
            parsed.append(time(hour=hour, minute=minute))
        if parsed[0] > parsed[1]:
            raise ValueError("preferred time range start must not be after end")
        return cls(start=parsed[0], end=parsed[1])

    def contains_hour(self, hour: int) -> bool:
        return self.start.hour <= hour <= self.end.hour


@dataclass(frozen=True)
class BookingRequest:
    """Validated input for a booking optimization call.

    ``flexibility`` is accepted and carried but no scoring path reads it.
    """

    service_description: str
    estimated_duration: int
    preferred_date: date
    preferred_time_range: Optional[TimeRange] = None
    customer_id: Optional[int] = None
    customer_priority: CustomerPriority = CustomerPriority.REGULAR
    flexibility: float = 0.5


@dataclass(frozen=True)
class OptimalBookingSuggestion:
    start_time: datetime
    end_time: datetime
    staff_id: int
    staff_name: str
    confidence: float
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "staff_id": self.staff_id,
            "staff_name": self.staff_name,
            "confidence": self.confidence,
            "reasons": list(self.reasons),
        }


@dataclass(frozen=True)
class NoShowFactor:
    factor: str
    impact: float
    description: str


@dataclass(frozen=True)
class NoShowPrediction:
    customer_id: int
    probability: float
    factors: list[NoShowFactor]
    recommendations: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "customer_id": self.customer_id,
            "probability": self.probability,
            "factors": [
                {
                    "factor": item.factor,
                    "impact": item.impact,
                    "description": item.description,
                }
                for item in self.factors
            ],
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class HourlyDemand:
    hour: int
    predicted_bookings: int
    confidence: float


@dataclass(frozen=True)
class DemandTrends:
    seasonal: float
    weekly_pattern: float
    monthly_trend: float


@dataclass(frozen=True)
class DemandPrediction:
    date: date
    hourly_demand: list[HourlyDemand]
    total_predicted: int
    trends: DemandTrends

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "hourly_demand": [
                {
                    "hour": item.hour,
                    "predicted_bookings": item.predicted_bookings,
                    "confidence": item.confidence,
                }
                for item in self.hourly_demand
            ],
            "total_predicted": self.total_predicted,
            "trends": {
                "seasonal": self.trends.seasonal,
                "weekly_pattern": self.trends.weekly_pattern,
                "monthly_trend": self.trends.monthly_trend,
            },
        }


@dataclass(frozen=True)
class StaffUtilization:
    staff_id: int
    staff_name: str
    utilization: float
    available_slots: int


@dataclass(frozen=True)
class PeakHour:
    hour: int
    bookings: int


@dataclass(frozen=True)
class AvailabilityAnalysis:
    total_slots: int
    booked_slots: int
    available_slots: int
    utilization: float
    staff_utilization: list[StaffUtilization]
    peak_hours: list[PeakHour]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_slots": self.total_slots,
            "booked_slots": self.booked_slots,
            "available_slots": self.available_slots,
            "utilization": self.utilization,
            "staff_utilization": [
                {
                    "staff_id": item.staff_id,
                    "staff_name": item.staff_name,
                    "utilization": item.utilization,
                    "available_slots": item.available_slots,
                }
                for item in self.staff_utilization
            ],
            "peak_hours": [
                {"hour": item.hour, "bookings": item.bookings}
                for item in self.peak_hours
            ],
        }
