"""Guest-facing booking endpoints.

POST /bookings                            → direct-confirm booking (BOOKING_MODE=direct)
POST /bookings/initialize-payment         → PENDING booking + payment link (BOOKING_MODE=payment)
POST /bookings/{public_id}/payment        → retry payment initialization (BOOKING_MODE=payment)
GET  /bookings/{public_id}                → public booking view

Only the opaque public_id is ever returned to guests.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from guesthouse.api.deps import get_coordinator
from guesthouse.domain.bookings import BookingCoordinator, PaymentInitialization
from guesthouse.domain.models import BookingRequest

router = APIRouter(prefix="/bookings", tags=["bookings"])

# Mounted by the factory according to BOOKING_MODE
direct_router = APIRouter(prefix="/bookings", tags=["bookings"])
payment_router = APIRouter(prefix="/bookings", tags=["bookings"])


# ── Schemas ───────────────────────────────────────────────────────────────────


class CreateBookingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    room_id: int = Field(..., ge=1)
    check_in: datetime
    check_out: datetime
    guest_name: str
    guest_email: str
    guest_phone: str = ""
    adults: int = 1
    children: int = 0

    def to_domain(self) -> BookingRequest:
        return BookingRequest(
            room_id=self.room_id,
            check_in=self.check_in,
            check_out=self.check_out,
            guest_name=self.guest_name,
            guest_email=self.guest_email,
            guest_phone=self.guest_phone,
            adults=self.adults,
            children=self.children,
        )


def _payment_to_dict(payment: PaymentInitialization) -> dict:
    return {
        "public_id": payment.public_id,
        "authorization_url": payment.redirect_url,
        "reference": payment.reference,
        "amount": payment.amount_minor,
        "currency": payment.currency,
    }


# ── Direct-confirm ────────────────────────────────────────────────────────────


@direct_router.post("", status_code=201)
def create_booking(
    body: CreateBookingRequest,
    coordinator: BookingCoordinator = Depends(get_coordinator),
) -> dict:
    """Confirm a booking immediately. 409 if the dates are taken."""
    booking = coordinator.create_booking(body.to_domain())
    return {"public_id": booking.public_id, "status": booking.status.value}


# ── Payment-gated ─────────────────────────────────────────────────────────────


@payment_router.post("/initialize-payment", status_code=201)
def initialize_payment(
    body: CreateBookingRequest,
    coordinator: BookingCoordinator = Depends(get_coordinator),
) -> dict:
    """Create a PENDING booking and return the gateway authorization URL.

    502 if the gateway call fails; the booking stays PENDING and the guest
    can retry via POST /bookings/{public_id}/payment.
    """
    return _payment_to_dict(coordinator.initialize_payment(body.to_domain()))


@payment_router.post("/{public_id}/payment", status_code=201)
def retry_payment(
    public_id: str,
    coordinator: BookingCoordinator = Depends(get_coordinator),
) -> dict:
    return _payment_to_dict(coordinator.retry_payment(public_id))


# ── Read ──────────────────────────────────────────────────────────────────────


@router.get("/{public_id}")
def get_booking(
    public_id: str,
    coordinator: BookingCoordinator = Depends(get_coordinator),
) -> dict:
    """Public view of a booking (no internal ids, no contact details)."""
    return coordinator.get_public_booking(public_id)
