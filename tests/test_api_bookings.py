"""HTTP tests for guest-facing booking and room routes (coordinator mocked)."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from guesthouse.api.factory import create_app
from guesthouse.domain.availability import AvailabilityChecker
from guesthouse.domain.bookings import BookingCoordinator, PaymentInitialization
from guesthouse.domain.errors import (
    BookingNotFoundError,
    ConflictError,
    IntegrationFailureError,
    RoomNotFoundError,
    ValidationError,
)
from guesthouse.domain.models import BookingStatus

from tests.helpers import JAN_10, JAN_13, PAYSTACK_SECRET, make_booking

BODY = {
    "room_id": 7,
    "check_in": "2026-01-10T14:00:00Z",
    "check_out": "2026-01-13T11:00:00Z",
    "guest_name": "Ada Guest",
    "guest_email": "ada@example.com",
    "guest_phone": "+2348000000000",
    "adults": 2,
}


class _Gateway:
    currency = "NGN"
    webhook_secret = PAYSTACK_SECRET


def _client(fake_db, mode: str) -> tuple[TestClient, MagicMock, MagicMock]:
    app = create_app(mode, database=fake_db, gateway=_Gateway() if mode == "payment" else None)
    coordinator = MagicMock(spec=BookingCoordinator)
    checker = MagicMock(spec=AvailabilityChecker)
    app.state.coordinator = coordinator
    app.state.checker = checker
    return TestClient(app), coordinator, checker


@pytest.fixture
def direct(fake_db):
    return _client(fake_db, "direct")


@pytest.fixture
def payment(fake_db):
    return _client(fake_db, "payment")


class TestCreateBookingRoute:
    def test_created_returns_public_id_only(self, direct):
        client, coordinator, _ = direct
        coordinator.create_booking.return_value = make_booking(status=BookingStatus.PAID)

        response = client.post("/bookings", json=BODY)

        assert response.status_code == 201
        assert response.json() == {
            "public_id": "bk_publicidentifier000001",
            "status": "PAID",
        }
        request = coordinator.create_booking.call_args[0][0]
        assert request.room_id == 7
        assert request.check_in == JAN_10

    def test_conflict_is_409(self, direct):
        client, coordinator, _ = direct
        coordinator.create_booking.side_effect = ConflictError(7, 55)

        response = client.post("/bookings", json=BODY)

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"
        assert "55" not in response.text

    def test_validation_is_400(self, direct):
        client, coordinator, _ = direct
        coordinator.create_booking.side_effect = ValidationError("check_in must be before check_out")

        response = client.post("/bookings", json=BODY)

        assert response.status_code == 400
        assert response.json() == {
            "error": "validation_error",
            "detail": "check_in must be before check_out",
        }

    def test_unknown_fields_rejected(self, direct):
        client, coordinator, _ = direct

        response = client.post("/bookings", json={**BODY, "status": "PAID"})

        assert response.status_code == 422
        coordinator.create_booking.assert_not_called()


class TestInitializePaymentRoute:
    def test_returns_authorization_url(self, payment):
        client, coordinator, _ = payment
        coordinator.initialize_payment.return_value = PaymentInitialization(
            public_id="bk_abc",
            redirect_url="https://checkout.paystack.com/xyz",
            reference="ref_xyz",
            amount_minor=15000,
            currency="NGN",
        )

        response = client.post("/bookings/initialize-payment", json=BODY)

        assert response.status_code == 201
        assert response.json() == {
            "public_id": "bk_abc",
            "authorization_url": "https://checkout.paystack.com/xyz",
            "reference": "ref_xyz",
            "amount": 15000,
            "currency": "NGN",
        }

    def test_gateway_failure_is_502(self, payment):
        client, coordinator, _ = payment
        coordinator.initialize_payment.side_effect = IntegrationFailureError("timeout to gateway")

        response = client.post("/bookings/initialize-payment", json=BODY)

        assert response.status_code == 502
        assert "timeout" not in response.text

    def test_retry_payment(self, payment):
        client, coordinator, _ = payment
        coordinator.retry_payment.return_value = PaymentInitialization(
            public_id="bk_abc",
            redirect_url="https://checkout.paystack.com/retry",
            reference="ref_retry",
            amount_minor=15000,
            currency="NGN",
        )

        response = client.post("/bookings/bk_abc/payment")

        assert response.status_code == 201
        coordinator.retry_payment.assert_called_once_with("bk_abc")


class TestPublicBookingRoute:
    def test_found(self, payment):
        client, coordinator, _ = payment
        coordinator.get_public_booking.return_value = {
            "public_id": "bk_abc",
            "status": "PAID",
            "guest_name": "Ada Guest",
        }

        response = client.get("/bookings/bk_abc")

        assert response.status_code == 200
        assert response.json()["public_id"] == "bk_abc"

    def test_not_found(self, payment):
        client, coordinator, _ = payment
        coordinator.get_public_booking.side_effect = BookingNotFoundError("Booking bk_nope not found")

        response = client.get("/bookings/bk_nope")

        assert response.status_code == 404
        assert response.json() == {"error": "not_found", "detail": "Booking not found."}


class TestRoomRoutes:
    def test_availability(self, direct):
        client, _, checker = direct
        checker.is_available.return_value = False

        response = client.get(
            "/rooms/7/availability",
            params={"check_in": "2026-01-10T14:00:00Z", "check_out": "2026-01-13T11:00:00Z"},
        )

        assert response.status_code == 200
        assert response.json()["available"] is False
        checker.is_available.assert_called_once_with(7, JAN_10, JAN_13)

    def test_availability_unknown_room(self, direct):
        client, _, checker = direct
        checker.is_available.side_effect = RoomNotFoundError("Room 99 not found")

        response = client.get(
            "/rooms/99/availability",
            params={"check_in": "2026-01-10T14:00:00Z", "check_out": "2026-01-13T11:00:00Z"},
        )

        assert response.status_code == 404

    def test_schedule(self, direct):
        client, _, checker = direct
        checker.room_schedule.return_value = [(JAN_10, JAN_13)]

        response = client.get("/rooms/7/schedule")

        assert response.status_code == 200
        assert response.json() == [
            {"check_in": JAN_10.isoformat(), "check_out": JAN_13.isoformat()}
        ]
