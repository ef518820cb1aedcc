#!/usr/bin/env python3
"""Validate local booking engine environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import date, timedelta
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from booking_engine.domain.models import BookingRequest, CustomerPriority
from booking_engine.repository.data_repository import DataRepository
from booking_engine.services.booking_service import BookingOptimizer
from booking_engine.services.forecast_service import DemandForecaster
from booking_engine.services.no_show_service import NoShowRiskPredictor
from booking_engine.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="booking-env-")

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("numpy", "numpy"),
        ("pandas", "pandas"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except (ImportError, PackageNotFoundError) as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "booking_validation.db",
            synthetic_seed_days=30,
        )
        repository = DataRepository(settings)

        # CHECK 3: Database initialization and seeding
        try:
            repository.initialize_database()
            repository.seed_synthetic_data()
            seeded = repository.count_reservations()
            if seeded <= 0:
                raise RuntimeError("no reservations were seeded")
            ok, line = _print_result("Synthetic dataset", True, f": {seeded} reservations")
        except Exception as exc:
            ok, line = _print_result("Synthetic dataset", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        tomorrow = date.today() + timedelta(days=1)

        # CHECK 4: Booking optimization
        try:
            suggestions = BookingOptimizer(repository=repository, settings=settings).optimize_booking(
                BookingRequest(
                    service_description="cut + color",
                    estimated_duration=60,
                    preferred_date=tomorrow,
                    customer_priority=CustomerPriority.REGULAR,
                )
            )
            if any(not 0.3 < item.confidence <= 1.0 for item in suggestions):
                raise RuntimeError("suggestion confidence outside (0.3, 1]")
            ok, line = _print_result(
                "Booking optimization", True, f": {len(suggestions)} suggestions"
            )
        except Exception as exc:
            ok, line = _print_result("Booking optimization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: No-show prediction
        try:
            prediction = NoShowRiskPredictor(
                repository=repository,
                settings=settings,
            ).predict_no_show(1, tomorrow)
            if not 0.0 <= prediction.probability <= 0.9:
                raise RuntimeError("probability outside [0, 0.9]")
            ok, line = _print_result(
                "No-show prediction", True, f": probability={prediction.probability:.4f}"
            )
        except Exception as exc:
            ok, line = _print_result("No-show prediction", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 6: Demand forecast
        try:
            forecast = DemandForecaster(repository=repository, settings=settings).predict_demand(
                tomorrow,
                tomorrow + timedelta(days=6),
            )
            if len(forecast) != 7:
                raise RuntimeError(f"expected 7 days, got {len(forecast)}")
            ok, line = _print_result(
                "Demand forecast",
                True,
                f": {sum(item.total_predicted for item in forecast)} bookings over 7 days",
            )
        except Exception as exc:
            ok, line = _print_result("Demand forecast", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Booking Engine Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
