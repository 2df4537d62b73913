"""Booking domain types and request validation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from guesthouse.domain.errors import ValidationError
from guesthouse.infra.time import ensure_utc


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


# Statuses that count toward the per-room non-overlap invariant.
OCCUPYING_STATUSES: tuple[BookingStatus, ...] = (BookingStatus.PAID,)

# Statuses that block a direct-confirm booking (everything still holding dates).
BLOCKING_STATUSES: tuple[BookingStatus, ...] = (BookingStatus.PENDING, BookingStatus.PAID)


@dataclass(frozen=True)
class Room:
    id: int
    name: str
    price: Decimal


@dataclass
class Booking:
    """A booking row as persisted."""

    id: int
    public_id: str
    room_id: int
    check_in: datetime
    check_out: datetime
    guest_name: str
    guest_email: str
    guest_phone: str
    adults: int
    children: int
    status: BookingStatus
    payment_reference: str | None
    created_at: datetime

    @property
    def is_occupying(self) -> bool:
        return self.status in OCCUPYING_STATUSES


@dataclass(frozen=True)
class BookingRequest:
    """Guest-supplied booking fields.

    Dates are normalized to timezone-aware UTC by ``validated()``.
    """

    room_id: int
    check_in: datetime
    check_out: datetime
    guest_name: str
    guest_email: str
    guest_phone: str = ""
    adults: int = 1
    children: int = 0

    def validated(self) -> BookingRequest:
        """Return a normalized copy or raise ValidationError."""
        if not self.guest_name or not self.guest_name.strip():
            raise ValidationError("guest_name is required")
        if not self.guest_email or "@" not in self.guest_email:
            raise ValidationError("a valid guest_email is required")
        if self.adults < 1:
            raise ValidationError("at least one adult is required")
        if self.children < 0:
            raise ValidationError("children cannot be negative")

        check_in = ensure_utc(self.check_in)
        check_out = ensure_utc(self.check_out)
        validate_range(check_in, check_out)

        return BookingRequest(
            room_id=self.room_id,
            check_in=check_in,
            check_out=check_out,
            guest_name=self.guest_name.strip(),
            guest_email=self.guest_email.strip(),
            guest_phone=(self.guest_phone or "").strip(),
            adults=self.adults,
            children=self.children,
        )


def validate_range(check_in: datetime, check_out: datetime) -> None:
    """Raise ValidationError unless check_in < check_out."""
    if check_in >= check_out:
        raise ValidationError("check_in must be before check_out")
