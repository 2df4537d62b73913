"""Admin booking management: list, read, edit guest details, delete.

Status changes are not available here; cancellation goes through
BookingCoordinator.cancel_booking.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from guesthouse.domain.availability import find_conflicting_booking
from guesthouse.domain.errors import BookingNotFoundError, ConflictError, ValidationError
from guesthouse.domain.models import (
    OCCUPYING_STATUSES,
    Booking,
    BookingStatus,
    validate_range,
)
from guesthouse.infra.repositories import bookings_repository as repo
from guesthouse.infra.repositories.rooms_repository import lock_room
from guesthouse.infra.time import ensure_utc
from guesthouse.observability.logging import get_logger
from guesthouse.observability.redaction import safe_log_context

if TYPE_CHECKING:
    from guesthouse.infra.db import Database

logger = get_logger(__name__)

_DATE_FIELDS = ("check_in", "check_out")


def booking_to_dict(booking: Booking, room_name: str | None = None) -> dict[str, Any]:
    data = asdict(booking)
    data["status"] = booking.status.value
    if room_name is not None:
        data["room_name"] = room_name
    return data


def list_bookings(db: Database, *, status: BookingStatus | None = None) -> list[dict[str, Any]]:
    """All bookings, most recent first."""
    with db.txn() as cur:
        rows = repo.list_bookings(cur, status=status)
    return [booking_to_dict(booking, room_name) for booking, room_name in rows]


def get_booking(db: Database, booking_id: int) -> dict[str, Any]:
    with db.txn() as cur:
        booking = repo.get_booking(cur, booking_id)
    if booking is None:
        raise BookingNotFoundError(f"Booking {booking_id} not found")
    return booking_to_dict(booking)


def _validate_guest_changes(changes: dict[str, Any]) -> None:
    # Every editable column is NOT NULL
    nulls = sorted(key for key, value in changes.items() if value is None)
    if nulls:
        raise ValidationError(f"fields cannot be null: {', '.join(nulls)}")
    if "guest_name" in changes and not changes["guest_name"].strip():
        raise ValidationError("guest_name cannot be empty")
    if "guest_email" in changes and "@" not in changes["guest_email"]:
        raise ValidationError("a valid guest_email is required")
    if "adults" in changes and changes["adults"] < 1:
        raise ValidationError("at least one adult is required")
    if "children" in changes and changes["children"] < 0:
        raise ValidationError("children cannot be negative")


def update_booking(db: Database, booking_id: int, changes: dict[str, Any]) -> dict[str, Any]:
    """Edit guest details and, before payment has started, the dates.

    Date edits lock the room and are refused if the new range overlaps
    another PAID booking.

    Raises:
        BookingNotFoundError: Unknown booking id.
        ValidationError: Invalid or null values, or a date change on a booking
            that is PAID or already has a payment reference.
        ConflictError: New dates overlap another PAID booking.
    """
    unknown = set(changes) - set(repo.EDITABLE_COLUMNS)
    if unknown:
        raise ValidationError(f"fields cannot be edited: {', '.join(sorted(unknown))}")

    _validate_guest_changes(changes)
    changes = {
        key: ensure_utc(value) if key in _DATE_FIELDS else value
        for key, value in changes.items()
    }

    with db.txn() as cur:
        current = repo.get_booking(cur, booking_id)
        if current is None:
            raise BookingNotFoundError(f"Booking {booking_id} not found")

        if any(key in changes for key in _DATE_FIELDS):
            # Room lock first, matching the coordinator's lock order
            lock_room(cur, current.room_id)
            current = repo.get_booking(cur, booking_id, lock=True)
            if current is None:
                raise BookingNotFoundError(f"Booking {booking_id} not found")
            if current.is_occupying:
                raise ValidationError("dates cannot be changed once a booking is paid")
            # The gateway was asked for the amount of the original stay
            if current.payment_reference is not None:
                raise ValidationError("dates cannot be changed once payment has started")

            check_in = changes.get("check_in", current.check_in)
            check_out = changes.get("check_out", current.check_out)
            validate_range(check_in, check_out)
            conflicting_id = find_conflicting_booking(
                cur,
                room_id=current.room_id,
                check_in=check_in,
                check_out=check_out,
                statuses=OCCUPYING_STATUSES,
                exclude_booking_id=booking_id,
            )
            if conflicting_id is not None:
                raise ConflictError(current.room_id, conflicting_id)

        updated = repo.update_booking_fields(cur, booking_id, changes)

    logger.info(
        "booking updated by admin",
        extra={
            "extra_fields": safe_log_context(
                booking_id=booking_id,
                fields=sorted(changes),
            )
        },
    )
    return booking_to_dict(updated)


def delete_booking(db: Database, booking_id: int) -> None:
    """Hard-delete a booking. Unconditional, no availability check."""
    with db.txn() as cur:
        deleted = repo.delete_booking(cur, booking_id)
    if not deleted:
        raise BookingNotFoundError(f"Booking {booking_id} not found")

    logger.info(
        "booking deleted by admin",
        extra={"extra_fields": safe_log_context(booking_id=booking_id)},
    )
