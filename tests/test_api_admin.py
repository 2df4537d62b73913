"""HTTP tests for admin booking routes (auth + domain patched)."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from guesthouse.api.factory import create_app
from guesthouse.domain.bookings import BookingCoordinator
from guesthouse.domain.errors import BookingNotFoundError, ValidationError
from guesthouse.domain.models import BookingStatus

from tests.helpers import create_admin_token, make_booking

ADMIN = "guesthouse.api.routes.admin_bookings.admin_bookings"


@pytest.fixture
def client(fake_db, admin_secret):
    app = create_app("direct", database=fake_db)
    app.state.coordinator = MagicMock(spec=BookingCoordinator)
    return TestClient(app)


@pytest.fixture
def auth_headers(admin_secret):
    return {"Authorization": f"Bearer {create_admin_token()}"}


class TestAuthRequired:
    def test_missing_header(self, client):
        response = client.get("/admin/bookings")
        assert response.status_code == 401

    def test_malformed_header(self, client):
        response = client.get("/admin/bookings", headers={"Authorization": "Token abc"})
        assert response.status_code == 401

    def test_bad_token(self, client):
        response = client.get("/admin/bookings", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_delete_requires_auth(self, client):
        with patch(f"{ADMIN}.delete_booking") as mock_delete:
            response = client.delete("/admin/bookings/1")
        assert response.status_code == 401
        mock_delete.assert_not_called()


class TestAdminRoutes:
    def test_list(self, client, auth_headers, fake_db):
        rows = [{"id": 1, "status": "PAID", "room_name": "Garden Room"}]
        with patch(f"{ADMIN}.list_bookings", return_value=rows) as mock_list:
            response = client.get("/admin/bookings", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == rows
        mock_list.assert_called_once_with(fake_db, status=None)

    def test_list_status_filter(self, client, auth_headers, fake_db):
        with patch(f"{ADMIN}.list_bookings", return_value=[]) as mock_list:
            response = client.get("/admin/bookings?status=PENDING", headers=auth_headers)

        assert response.status_code == 200
        mock_list.assert_called_once_with(fake_db, status=BookingStatus.PENDING)

    def test_list_invalid_status(self, client, auth_headers):
        response = client.get("/admin/bookings?status=BOGUS", headers=auth_headers)
        assert response.status_code == 422

    def test_get_not_found(self, client, auth_headers):
        with patch(f"{ADMIN}.get_booking", side_effect=BookingNotFoundError("Booking 9 not found")):
            response = client.get("/admin/bookings/9", headers=auth_headers)
        assert response.status_code == 404

    def test_patch_passes_only_set_fields(self, client, auth_headers, fake_db):
        with patch(f"{ADMIN}.update_booking", return_value={"id": 4}) as mock_update:
            response = client.patch(
                "/admin/bookings/4",
                json={"guest_phone": "+2348111111111"},
                headers=auth_headers,
            )

        assert response.status_code == 200
        mock_update.assert_called_once_with(fake_db, 4, {"guest_phone": "+2348111111111"})

    def test_patch_status_rejected(self, client, auth_headers):
        response = client.patch(
            "/admin/bookings/4",
            json={"status": "PAID"},
            headers=auth_headers,
        )
        assert response.status_code == 422

    def test_patch_paid_dates_rejected(self, client, auth_headers):
        with patch(
            f"{ADMIN}.update_booking",
            side_effect=ValidationError("dates cannot be changed once a booking is paid"),
        ):
            response = client.patch(
                "/admin/bookings/4",
                json={"check_in": "2026-02-01T14:00:00Z"},
                headers=auth_headers,
            )
        assert response.status_code == 400

    def test_patch_null_adults_rejected(self, client, auth_headers, fake_db):
        response = client.patch("/admin/bookings/4", json={"adults": None}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert fake_db.txn_count == 0

    def test_patch_null_check_in_rejected(self, client, auth_headers, fake_db):
        response = client.patch("/admin/bookings/4", json={"check_in": None}, headers=auth_headers)

        assert response.status_code == 400
        assert fake_db.txn_count == 0

    def test_delete(self, client, auth_headers, fake_db):
        with patch(f"{ADMIN}.delete_booking") as mock_delete:
            response = client.delete("/admin/bookings/4", headers=auth_headers)

        assert response.status_code == 204
        mock_delete.assert_called_once_with(fake_db, 4)

    def test_cancel(self, client, auth_headers):
        coordinator = client.app.state.coordinator
        coordinator.cancel_booking.return_value = make_booking(status=BookingStatus.CANCELLED)

        response = client.post("/admin/bookings/101/cancel", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"
        coordinator.cancel_booking.assert_called_once_with(101)
