"""Tests for booking request validation."""

from datetime import datetime, timedelta, timezone

import pytest

from guesthouse.domain.errors import ErrorKind, ValidationError
from guesthouse.domain.models import BookingStatus, validate_range

from tests.helpers import JAN_10, JAN_13, make_booking, make_request


class TestValidateRange:
    def test_ordered_range_passes(self):
        validate_range(JAN_10, JAN_13)

    def test_equal_dates_rejected(self):
        with pytest.raises(ValidationError):
            validate_range(JAN_10, JAN_10)

    def test_reversed_dates_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_range(JAN_13, JAN_10)
        assert exc_info.value.kind == ErrorKind.VALIDATION


class TestBookingRequestValidated:
    def test_strips_guest_fields(self):
        request = make_request(guest_name="  Ada  ", guest_email=" ada@example.com ")

        result = request.validated()

        assert result.guest_name == "Ada"
        assert result.guest_email == "ada@example.com"

    def test_naive_dates_become_utc(self):
        request = make_request(
            check_in=datetime(2026, 1, 10, 14, 0),
            check_out=datetime(2026, 1, 13, 11, 0),
        )

        result = request.validated()

        assert result.check_in == JAN_10
        assert result.check_in.tzinfo is not None

    def test_offset_dates_converted_to_utc(self):
        lagos = timezone(timedelta(hours=1))
        request = make_request(
            check_in=datetime(2026, 1, 10, 15, 0, tzinfo=lagos),
            check_out=datetime(2026, 1, 13, 12, 0, tzinfo=lagos),
        )

        result = request.validated()

        assert result.check_in == JAN_10
        assert result.check_out == JAN_13

    @pytest.mark.parametrize(
        "overrides",
        [
            {"guest_name": "   "},
            {"guest_email": "not-an-email"},
            {"adults": 0},
            {"children": -1},
            {"check_in": JAN_13, "check_out": JAN_10},
        ],
    )
    def test_invalid_requests_rejected(self, overrides):
        with pytest.raises(ValidationError):
            make_request(**overrides).validated()

    def test_validation_message_is_public(self):
        with pytest.raises(ValidationError) as exc_info:
            make_request(adults=0).validated()
        assert exc_info.value.public_message == "at least one adult is required"


class TestBookingIsOccupying:
    @pytest.mark.parametrize(
        "status,expected",
        [
            (BookingStatus.PAID, True),
            (BookingStatus.PENDING, False),
            (BookingStatus.CANCELLED, False),
            (BookingStatus.FAILED, False),
        ],
    )
    def test_only_paid_occupies(self, status, expected):
        assert make_booking(status=status).is_occupying is expected
