"""Environment-backed runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    database_path: Path
    log_level: str

    business_start_hour: int
    business_end_hour: int
    slot_granularity_minutes: int
    min_request_duration_minutes: int
    max_request_duration_minutes: int

    optimizer_staff_fan_out: int
    optimizer_max_suggestions: int
    optimizer_confidence_gate: float

    no_show_history_limit: int
    no_show_weekday_history_limit: int

    forecast_history_months: int
    forecast_start_hour: int
    forecast_end_hour: int
    forecast_max_range_days: int

    availability_working_hours: int
    availability_slots_per_hour: int

    synthetic_random_seed: int
    synthetic_seed_days: int
    synthetic_staff_count: int
    synthetic_customer_count: int
    synthetic_daily_bookings_per_staff: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings once per process; tests derive variants via ``replace``."""
    return Settings(
        app_name=os.getenv("BOOKING_APP_NAME", "Booking Optimization Engine"),
        app_version=os.getenv("BOOKING_APP_VERSION", "1.0.0"),
        database_path=Path(
            os.getenv(
                "BOOKING_DATABASE_PATH",
                str(PROJECT_ROOT / "data" / "booking_engine.db"),
            )
        ),
        log_level=os.getenv("BOOKING_LOG_LEVEL", "INFO"),
        business_start_hour=_env_int("BOOKING_BUSINESS_START_HOUR", 9),
        business_end_hour=_env_int("BOOKING_BUSINESS_END_HOUR", 18),
        slot_granularity_minutes=_env_int("BOOKING_SLOT_GRANULARITY_MINUTES", 30),
        min_request_duration_minutes=15,
        max_request_duration_minutes=480,
        optimizer_staff_fan_out=_env_int("BOOKING_STAFF_FAN_OUT", 3),
        optimizer_max_suggestions=_env_int("BOOKING_MAX_SUGGESTIONS", 10),
        optimizer_confidence_gate=_env_float("BOOKING_CONFIDENCE_GATE", 0.3),
        no_show_history_limit=_env_int("BOOKING_NO_SHOW_HISTORY_LIMIT", 50),
        no_show_weekday_history_limit=_env_int("BOOKING_NO_SHOW_WEEKDAY_HISTORY_LIMIT", 100),
        forecast_history_months=_env_int("BOOKING_FORECAST_HISTORY_MONTHS", 3),
        forecast_start_hour=9,
        forecast_end_hour=18,
        forecast_max_range_days=_env_int("BOOKING_FORECAST_MAX_RANGE_DAYS", 90),
        availability_working_hours=9,
        availability_slots_per_hour=2,
        synthetic_random_seed=_env_int("BOOKING_SEED_RANDOM_SEED", 42),
        synthetic_seed_days=_env_int("BOOKING_SEED_DAYS", 120),
        synthetic_staff_count=_env_int("BOOKING_SEED_STAFF_COUNT", 4),
        synthetic_customer_count=_env_int("BOOKING_SEED_CUSTOMER_COUNT", 40),
        synthetic_daily_bookings_per_staff=_env_int("BOOKING_SEED_DAILY_BOOKINGS", 4),
    )
