"""Tunable heuristic weights and their validation rules."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoringWeights:
    """Staff suitability and slot confidence adjustments."""

    base_suitability: float = 0.5
    cut_bonus: float = 0.3
    color_bonus: float = 0.2
    perm_bonus: float = 0.1
    vip_bonus: float = 0.2
    preferred_window_bonus: float = 0.2
    buffer_bonus: float = 0.1
    buffer_minutes: int = 15
    late_end_hour: int = 17
    long_service_minutes: int = 120
    late_long_service_penalty: float = 0.2
    optimal_reason_threshold: float = 0.8
    specialty_reason_threshold: float = 0.6


@dataclass(frozen=True)
class NoShowWeights:
    new_customer_probability: float = 0.3
    base_probability: float = 0.1
    historical_rate_multiplier: float = 0.8
    historical_rate_cap: float = 0.5
    recent_window: int = 10
    recent_cancellation_threshold: int = 3
    recent_cancellation_step: float = 0.05
    recent_cancellation_cap: float = 0.2
    weekday_rate_threshold: float = 0.2
    weekday_multiplier: float = 0.3
    long_absence_days: int = 90
    long_absence_step: float = 0.001
    long_absence_cap: float = 0.2
    default_days_since_visit: int = 365
    weekend_discount: float = 0.05
    probability_cap: float = 0.9
    phone_confirmation_threshold: float = 0.4
    message_confirmation_threshold: float = 0.25
    new_customer_visit_threshold: int = 3


@dataclass(frozen=True)
class ForecastWeights:
    # January..December
    seasonal_factors: tuple[float, ...] = (
        0.8, 0.9, 1.0, 1.1, 1.2, 1.1, 1.0, 0.9, 1.0, 1.1, 1.0, 0.8,
    )
    weekend_multiplier: float = 1.2
    # Monday..Sunday
    weekly_patterns: tuple[float, ...] = (0.8, 1.0, 1.1, 1.2, 1.3, 1.1, 0.9)
    monthly_growth: float = 0.02
    days_per_month: int = 30
    confidence_sample_size: int = 20


def validate_scoring_weights(weights: ScoringWeights) -> None:
    if not 0.0 <= weights.base_suitability <= 1.0:
        raise ValueError("base_suitability must be between 0 and 1")
    bonuses = (
        weights.cut_bonus,
        weights.color_bonus,
        weights.perm_bonus,
        weights.vip_bonus,
        weights.preferred_window_bonus,
        weights.buffer_bonus,
        weights.late_long_service_penalty,
    )
    if any(value < 0.0 for value in bonuses):
        raise ValueError("scoring bonuses and penalties must be >= 0")
    if weights.buffer_minutes < 0:
        raise ValueError("buffer_minutes must be >= 0")
    if not 0 <= weights.late_end_hour <= 23:
        raise ValueError("late_end_hour must be a valid hour")
    if weights.long_service_minutes <= 0:
        raise ValueError("long_service_minutes must be > 0")


def validate_no_show_weights(weights: NoShowWeights) -> None:
    if not 0.0 < weights.probability_cap <= 1.0:
        raise ValueError("probability_cap must be in (0, 1]")
    for name in ("new_customer_probability", "base_probability"):
        value = getattr(weights, name)
        if not 0.0 <= value <= weights.probability_cap:
            raise ValueError(f"{name} must be between 0 and probability_cap")
    if weights.recent_window <= 0:
        raise ValueError("recent_window must be > 0")
    if weights.weekend_discount < 0.0:
        raise ValueError("weekend_discount must be >= 0")
    if weights.long_absence_days < 0:
        raise ValueError("long_absence_days must be >= 0")


def validate_forecast_weights(weights: ForecastWeights) -> None:
    if len(weights.seasonal_factors) != 12:
        raise ValueError("seasonal_factors must contain one entry per month")
    if len(weights.weekly_patterns) != 7:
        raise ValueError("weekly_patterns must contain one entry per weekday")
    if any(value < 0.0 for value in weights.seasonal_factors):
        raise ValueError("seasonal_factors must be >= 0")
    if weights.weekend_multiplier <= 0.0:
        raise ValueError("weekend_multiplier must be > 0")
    if weights.days_per_month <= 0:
        raise ValueError("days_per_month must be > 0")
    if weights.confidence_sample_size <= 0:
        raise ValueError("confidence_sample_size must be > 0")
