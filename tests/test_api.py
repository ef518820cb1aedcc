from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta

from fastapi import FastAPI
from fastapi.testclient import TestClient

from booking_engine.controllers.reservation_controller import router as reservation_router
from booking_engine.domain.models import ReservationStatus
from booking_engine.repository.data_repository import DataRepository
from booking_engine.services.booking_service import BookingOptimizer
from booking_engine.services.forecast_service import DemandForecaster
from booking_engine.services.no_show_service import NoShowRiskPredictor
from booking_engine.utils.config import get_settings


TARGET_DAY = date(2026, 3, 2)
NOW = datetime(2026, 3, 1, 12, 0)


def _build_test_app(tmp_path, filename: str = "api.db", wire_forecaster: bool = True):
    settings = replace(get_settings(), database_path=tmp_path / filename)
    repository = DataRepository(settings)
    repository.initialize_database()

    app = FastAPI()
    app.include_router(reservation_router)
    app.state.repository = repository
    app.state.booking_optimizer = BookingOptimizer(repository=repository, settings=settings)
    app.state.no_show_predictor = NoShowRiskPredictor(
        repository=repository, settings=settings, clock=lambda: NOW
    )
    if wire_forecaster:
        app.state.demand_forecaster = DemandForecaster(
            repository=repository, settings=settings, clock=lambda: NOW
        )
    return app, repository


def test_optimize_returns_ranked_suggestions(tmp_path):
    app, repository = _build_test_app(tmp_path)
    staff_id = repository.create_staff("Aiko")

    with TestClient(app) as client:
        response = client.post(
            "/reservations/optimize",
            json={
                "menu_content": "",
                "estimated_duration": 60,
                "preferred_date": TARGET_DAY.isoformat(),
                "customer_priority": "VIP",
            },
        )

    assert response.status_code == 200
    suggestions = response.json()["suggestions"]
    assert len(suggestions) == 10
    assert suggestions[0]["start_time"] == "2026-03-02T09:00:00"
    assert suggestions[0]["end_time"] == "2026-03-02T10:00:00"
    assert suggestions[0]["staff_id"] == staff_id
    assert suggestions[0]["staff_name"] == "Aiko"
    assert abs(suggestions[0]["confidence"] - 0.7) < 1e-9
    assert suggestions[0]["reasons"][-1] == "VIP priority handling"


def test_optimize_with_preferred_window(tmp_path):
    app, repository = _build_test_app(tmp_path)
    repository.create_staff("Aiko")

    with TestClient(app) as client:
        response = client.post(
            "/reservations/optimize",
            json={
                "menu_content": "cut",
                "estimated_duration": 30,
                "preferred_date": TARGET_DAY.isoformat(),
                "preferred_time_range": {"start": "15:00", "end": "16:00"},
            },
        )

    assert response.status_code == 200
    top = response.json()["suggestions"][0]
    assert top["start_time"].startswith("2026-03-02T15:")
    assert abs(top["confidence"] - 1.0) < 1e-9


def test_optimize_rejects_invalid_payloads(tmp_path):
    app, repository = _build_test_app(tmp_path)
    repository.create_staff("Aiko")
    base = {"estimated_duration": 60, "preferred_date": TARGET_DAY.isoformat()}

    invalid_payloads = [
        {**base, "estimated_duration": 5},
        {**base, "estimated_duration": 600},
        {**base, "preferred_time_range": {"start": "9:00", "end": "10:00"}},
        {**base, "preferred_time_range": {"start": "14:00", "end": "10:00"}},
        {**base, "customer_priority": "GOLD"},
        {**base, "flexibility": 2},
        {"estimated_duration": 60},
    ]

    with TestClient(app) as client:
        for payload in invalid_payloads:
            response = client.post("/reservations/optimize", json=payload)
            assert response.status_code == 422, payload


def test_availability_endpoint_reports_utilization(tmp_path):
    app, repository = _build_test_app(tmp_path)
    staff_id = repository.create_staff("Aiko")
    repository.create_reservation(staff_id, datetime(2026, 3, 2, 10), datetime(2026, 3, 2, 11))

    with TestClient(app) as client:
        response = client.get(f"/reservations/availability/{TARGET_DAY.isoformat()}")
        malformed = client.get("/reservations/availability/not-a-date")

    assert response.status_code == 200
    body = response.json()
    assert body["total_slots"] == 18
    assert body["booked_slots"] == 1
    assert body["available_slots"] == 17
    assert body["staff_utilization"][0]["staff_id"] == staff_id
    assert body["peak_hours"] == [{"hour": 10, "bookings": 1}]
    assert malformed.status_code == 422


def test_predictions_endpoint_returns_one_entry_per_day(tmp_path):
    app, repository = _build_test_app(tmp_path)
    staff_id = repository.create_staff("Aiko")
    repository.create_reservation(
        staff_id, datetime(2026, 2, 23, 10), status=ReservationStatus.COMPLETED
    )

    with TestClient(app) as client:
        response = client.get(
            "/reservations/predictions",
            params={"start_date": "2026-03-02", "end_date": "2026-03-08"},
        )

    assert response.status_code == 200
    predictions = response.json()["predictions"]
    assert [item["date"] for item in predictions] == [
        (TARGET_DAY + timedelta(days=offset)).isoformat() for offset in range(7)
    ]
    assert predictions[0]["total_predicted"] == 1
    assert [item["hour"] for item in predictions[0]["hourly_demand"]] == list(range(9, 19))
    assert set(predictions[0]["trends"]) == {"seasonal", "weekly_pattern", "monthly_trend"}


def test_predictions_endpoint_validates_range(tmp_path):
    app, _ = _build_test_app(tmp_path)

    with TestClient(app) as client:
        inverted = client.get(
            "/reservations/predictions",
            params={"start_date": "2026-03-08", "end_date": "2026-03-02"},
        )
        too_long = client.get(
            "/reservations/predictions",
            params={"start_date": "2026-01-01", "end_date": "2026-04-01"},
        )
        missing = client.get("/reservations/predictions", params={"start_date": "2026-03-02"})

    assert inverted.status_code == 400
    assert too_long.status_code == 400
    assert missing.status_code == 422


def test_predict_noshow_endpoint(tmp_path):
    app, repository = _build_test_app(tmp_path)
    customer_id = repository.create_customer("Newcomer")

    with TestClient(app) as client:
        found = client.post(
            "/reservations/predict-noshow",
            json={"customer_id": customer_id, "reservation_date": "2026-03-02"},
        )
        missing = client.post(
            "/reservations/predict-noshow",
            json={"customer_id": 9999, "reservation_date": "2026-03-02"},
        )
        invalid = client.post(
            "/reservations/predict-noshow",
            json={"customer_id": 0, "reservation_date": "2026-03-02"},
        )

    assert found.status_code == 200
    body = found.json()
    assert body["customer_id"] == customer_id
    assert body["probability"] == 0.3
    assert [item["factor"] for item in body["factors"]] == ["NEW_CUSTOMER"]
    assert body["recommendations"] == ["Confirm by phone before the appointment"]
    assert missing.status_code == 404
    assert invalid.status_code == 422


def test_unwired_service_returns_503(tmp_path):
    app, _ = _build_test_app(tmp_path, wire_forecaster=False)

    with TestClient(app) as client:
        response = client.get(
            "/reservations/predictions",
            params={"start_date": "2026-03-02", "end_date": "2026-03-03"},
        )

    assert response.status_code == 503


def test_internal_value_error_is_not_reported_as_client_error(tmp_path):
    app, repository = _build_test_app(tmp_path)
    repository.create_staff("Aiko")

    class _BrokenOptimizer:
        def optimize_booking(self, request):
            raise ValueError("math domain error")

    app.state.booking_optimizer = _BrokenOptimizer()

    with TestClient(app) as client:
        response = client.post(
            "/reservations/optimize",
            json={"estimated_duration": 60, "preferred_date": TARGET_DAY.isoformat()},
        )

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to optimize booking"
