"""Booking error taxonomy.

Every failure the booking core surfaces carries an ErrorKind so callers
branch on the kind, never on message text. ``public_message`` is safe to
return to an untrusted caller; ``str(exc)`` may hold internal detail and is
for logs only.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_SIGNATURE = "invalid_signature"
    UNKNOWN_REFERENCE = "unknown_reference"
    RACE_LOST = "race_lost"
    INTEGRATION_FAILURE = "integration_failure"


class BookingError(Exception):
    """Base class for booking core failures."""

    kind: ErrorKind
    default_public_message = "Booking request failed."

    def __init__(self, message: str | None = None, *, public_message: str | None = None) -> None:
        self.public_message = public_message or self.default_public_message
        super().__init__(message or self.public_message)


class ValidationError(BookingError):
    """Malformed input; caller-correctable, no transaction opened."""

    kind = ErrorKind.VALIDATION
    default_public_message = "Invalid booking request."

    def __init__(self, message: str) -> None:
        super().__init__(message, public_message=message)


class BookingNotFoundError(BookingError):
    kind = ErrorKind.NOT_FOUND
    default_public_message = "Booking not found."


class RoomNotFoundError(BookingError):
    kind = ErrorKind.NOT_FOUND
    default_public_message = "Room not found."


class ConflictError(BookingError):
    """The room is not available for the requested dates (retryable with new dates)."""

    kind = ErrorKind.CONFLICT
    default_public_message = "The selected dates are no longer available."

    def __init__(self, room_id: int, conflicting_booking_id: int | None = None) -> None:
        self.room_id = room_id
        self.conflicting_booking_id = conflicting_booking_id
        super().__init__(
            f"Room {room_id} conflicts with booking {conflicting_booking_id}",
            public_message=self.default_public_message,
        )


class InvalidSignatureError(BookingError):
    """Webhook authenticity check failed."""

    kind = ErrorKind.INVALID_SIGNATURE
    default_public_message = "Invalid signature."


class UnknownReferenceError(BookingError):
    """Payment event references a booking this system does not know."""

    kind = ErrorKind.UNKNOWN_REFERENCE
    default_public_message = "Unknown payment reference."


class RaceLostError(BookingError):
    """Payment succeeded but the room was confirmed for another booking first.

    The booking has already been committed as FAILED when this is raised;
    a refund must be issued manually.
    """

    kind = ErrorKind.RACE_LOST
    default_public_message = "Payment received but the room is no longer available."

    def __init__(self, booking_id: int, conflicting_booking_id: int | None) -> None:
        self.booking_id = booking_id
        self.conflicting_booking_id = conflicting_booking_id
        super().__init__(
            f"Booking {booking_id} lost its room to booking {conflicting_booking_id}",
            public_message=self.default_public_message,
        )


class IntegrationFailureError(BookingError):
    """The payment gateway call failed; the PENDING booking survives."""

    kind = ErrorKind.INTEGRATION_FAILURE
    default_public_message = "Payment could not be initialized. Please retry."


class PaymentGatewayError(Exception):
    """Raised by payment gateway clients; translated to IntegrationFailureError."""
