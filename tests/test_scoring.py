from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time

import pytest

from booking_engine.domain.constraints import ScoringWeights
from booking_engine.domain.models import (
    BookingRequest,
    CustomerPriority,
    Reservation,
    ReservationStatus,
    StaffMember,
    TimeRange,
)
from booking_engine.services.scoring_service import (
    KeywordServiceAffinityScorer,
    SlotConfidenceScorer,
    StaffSuitabilityScorer,
    build_reasons,
)


TARGET_DAY = date(2026, 3, 2)
STAFF = StaffMember(staff_id=1, name="Aiko")


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime.combine(TARGET_DAY, time(hour=hour, minute=minute))


def _request(**overrides) -> BookingRequest:
    values = {
        "service_description": "",
        "estimated_duration": 60,
        "preferred_date": TARGET_DAY,
        "customer_priority": CustomerPriority.REGULAR,
    }
    values.update(overrides)
    return BookingRequest(**values)


@pytest.mark.parametrize(
    ("description", "priority", "expected"),
    [
        ("", CustomerPriority.REGULAR, 0.5),
        ("Cut", CustomerPriority.REGULAR, 0.8),
        ("color touch-up", CustomerPriority.NEW, 0.7),
        ("perm", CustomerPriority.REGULAR, 0.6),
        ("cut + perm", CustomerPriority.REGULAR, 0.9),
        ("", CustomerPriority.VIP, 0.7),
        ("カット", CustomerPriority.REGULAR, 0.8),
        ("カラー + パーマ", CustomerPriority.REGULAR, 0.8),
        ("cut + color", CustomerPriority.REGULAR, 1.0),
        ("cut + color + perm", CustomerPriority.VIP, 1.0),
    ],
)
def test_suitability_is_additive_with_cap(description, priority, expected) -> None:
    scorer = StaffSuitabilityScorer()

    score = scorer.score(STAFF, _request(service_description=description, customer_priority=priority))

    assert score == pytest.approx(expected)
    assert 0.0 <= score <= 1.0


def test_suitability_accepts_custom_affinity_strategy() -> None:
    class FixedAffinity:
        def score(self, staff, request):
            return 0.25 if staff.staff_id == 2 else 0.0

    scorer = StaffSuitabilityScorer(affinity_scorer=FixedAffinity())
    other = StaffMember(staff_id=2, name="Ren")

    ranked = scorer.rank([STAFF, other], _request())

    assert [staff.staff_id for staff, _ in ranked] == [2, 1]
    assert ranked[0][1] == pytest.approx(0.75)


def test_keyword_affinity_respects_injected_weights() -> None:
    weights = replace(ScoringWeights(), cut_bonus=0.05)

    bonus = KeywordServiceAffinityScorer(weights).score(STAFF, _request(service_description="cut"))

    assert bonus == pytest.approx(0.05)


def test_rank_keeps_store_order_for_ties() -> None:
    staff = [StaffMember(staff_id=index, name=f"S{index}") for index in (4, 2, 9)]

    ranked = StaffSuitabilityScorer().rank(staff, _request())

    assert [member.staff_id for member, _ in ranked] == [4, 2, 9]


def test_preferred_window_bonus_uses_inclusive_hours() -> None:
    scorer = SlotConfidenceScorer()
    request = _request(preferred_time_range=TimeRange.parse("10:00", "12:00"))

    assert scorer.score(_at(10), 0.5, request, []) == pytest.approx(0.7)
    assert scorer.score(_at(12, 30), 0.5, request, []) == pytest.approx(0.7)
    assert scorer.score(_at(13), 0.5, request, []) == pytest.approx(0.5)
    assert scorer.score(_at(9, 30), 0.5, request, []) == pytest.approx(0.5)


def test_buffer_bonus_rewards_spacing_only() -> None:
    scorer = SlotConfidenceScorer()
    previous = [
        Reservation(
            reservation_id=1,
            staff_id=1,
            start_time=_at(9),
            end_time=_at(10),
            status=ReservationStatus.CONFIRMED,
        )
    ]

    assert scorer.score(_at(10, 15), 0.5, _request(), previous) == pytest.approx(0.6)
    assert scorer.score(_at(10), 0.5, _request(), previous) == pytest.approx(0.5)
    assert scorer.score(_at(10, 10), 0.5, _request(), previous) == pytest.approx(0.5)


def test_buffer_uses_default_end_for_open_reservation() -> None:
    scorer = SlotConfidenceScorer()
    previous = [
        Reservation(
            reservation_id=1,
            staff_id=1,
            start_time=_at(9),
            status=ReservationStatus.TENTATIVE,
        )
    ]

    assert scorer.score(_at(10), 0.5, _request(), previous) == pytest.approx(0.5)
    assert scorer.score(_at(10, 30), 0.5, _request(), previous) == pytest.approx(0.6)


def test_long_service_ending_late_is_penalised() -> None:
    scorer = SlotConfidenceScorer()
    long_request = _request(estimated_duration=180)

    assert scorer.score(_at(14), 0.5, long_request, []) == pytest.approx(0.3)
    assert scorer.score(_at(13, 30), 0.5, long_request, []) == pytest.approx(0.5)
    assert scorer.score(_at(16), 0.5, _request(estimated_duration=120), []) == pytest.approx(0.5)


def test_late_penalty_applies_to_slots_ending_after_midnight() -> None:
    scorer = SlotConfidenceScorer()
    full_day = _request(estimated_duration=480)

    assert scorer.score(_at(9), 0.5, full_day, []) == pytest.approx(0.3)
    assert scorer.score(_at(16), 0.5, full_day, []) == pytest.approx(0.3)
    assert scorer.score(_at(17, 30), 0.5, full_day, []) == pytest.approx(0.3)


def test_confidence_is_clamped() -> None:
    scorer = SlotConfidenceScorer()
    request = _request(
        estimated_duration=240,
        preferred_time_range=TimeRange.parse("09:00", "18:00"),
    )

    assert scorer.score(_at(10), 1.0, request, []) == 1.0
    assert scorer.score(_at(16), 0.1, _request(estimated_duration=240), []) == 0.0


def test_vip_never_lowers_slot_confidence() -> None:
    suitability = StaffSuitabilityScorer()
    confidence = SlotConfidenceScorer()
    reservations = [
        Reservation(
            reservation_id=1,
            staff_id=1,
            start_time=_at(9),
            end_time=_at(10),
            status=ReservationStatus.CONFIRMED,
        )
    ]

    for description in ("", "cut", "cut + color", "perm"):
        for duration in (30, 150, 480):
            regular = _request(service_description=description, estimated_duration=duration)
            vip = replace(regular, customer_priority=CustomerPriority.VIP)
            for start in (_at(10), _at(12, 30), _at(15), _at(17, 30)):
                regular_score = confidence.score(
                    start, suitability.score(STAFF, regular), regular, reservations
                )
                vip_score = confidence.score(start, suitability.score(STAFF, vip), vip, reservations)
                assert 0.0 <= regular_score <= 1.0
                assert 0.0 <= vip_score <= 1.0
                assert vip_score >= regular_score


def test_reasons_follow_tier_order() -> None:
    vip = _request(customer_priority=CustomerPriority.VIP)

    assert build_reasons(_at(10), STAFF, vip, 0.9) == [
        "Optimal staff and time pairing",
        "Matches Aiko's specialty",
        "Relaxed time window",
        "VIP priority handling",
    ]
    assert build_reasons(_at(16), STAFF, _request(), 0.7) == [
        "Matches Aiko's specialty",
        "Popular time window",
    ]
    assert build_reasons(_at(9), STAFF, _request(), 0.5) == []
    assert build_reasons(_at(14, 30), STAFF, _request(), 0.8) == [
        "Matches Aiko's specialty",
        "Relaxed time window",
    ]


def test_time_range_parse_rejects_malformed_values() -> None:
    for start, end in [("9:00", "10:00"), ("10:00", "25:00"), ("ten", "11:00"), ("12:00", "11:00")]:
        with pytest.raises(ValueError):
            TimeRange.parse(start, end)
