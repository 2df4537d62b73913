"""Admin booking management endpoints (Bearer JWT).

GET    /admin/bookings[?status=PAID]     → list, most recent first
GET    /admin/bookings/{id}              → detail
PATCH  /admin/bookings/{id}              → edit guest details / unpaid dates
DELETE /admin/bookings/{id}              → hard delete (204)
POST   /admin/bookings/{id}/cancel       → force CANCELLED
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Path, Response
from pydantic import BaseModel, ConfigDict

from guesthouse.api.auth import AdminUser, require_admin
from guesthouse.api.deps import get_coordinator, get_database
from guesthouse.domain import admin_bookings
from guesthouse.domain.bookings import BookingCoordinator
from guesthouse.domain.models import BookingStatus
from guesthouse.infra.db import Database
from guesthouse.observability.correlation import get_correlation_id
from guesthouse.observability.logging import get_logger
from guesthouse.observability.redaction import safe_log_context

logger = get_logger(__name__)

router = APIRouter(prefix="/admin/bookings", tags=["admin"])


class UpdateBookingRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    guest_name: str | None = None
    guest_email: str | None = None
    guest_phone: str | None = None
    adults: int | None = None
    children: int | None = None
    check_in: datetime | None = None
    check_out: datetime | None = None


@router.get("")
def list_bookings(
    status: BookingStatus | None = None,
    admin: AdminUser = Depends(require_admin),
    db: Database = Depends(get_database),
) -> list[dict]:
    return admin_bookings.list_bookings(db, status=status)


@router.get("/{booking_id}")
def get_booking(
    booking_id: int = Path(..., ge=1),
    admin: AdminUser = Depends(require_admin),
    db: Database = Depends(get_database),
) -> dict:
    return admin_bookings.get_booking(db, booking_id)


@router.patch("/{booking_id}")
def update_booking(
    body: UpdateBookingRequest,
    booking_id: int = Path(..., ge=1),
    admin: AdminUser = Depends(require_admin),
    db: Database = Depends(get_database),
) -> dict:
    """Partial update. Only fields present in the body are changed.

    Dates can only be moved before payment has started.
    """
    changes = body.model_dump(exclude_unset=True)
    return admin_bookings.update_booking(db, booking_id, changes)


@router.delete("/{booking_id}", status_code=204)
def delete_booking(
    booking_id: int = Path(..., ge=1),
    admin: AdminUser = Depends(require_admin),
    db: Database = Depends(get_database),
) -> Response:
    admin_bookings.delete_booking(db, booking_id)
    return Response(status_code=204)


@router.post("/{booking_id}/cancel")
def cancel_booking(
    booking_id: int = Path(..., ge=1),
    admin: AdminUser = Depends(require_admin),
    coordinator: BookingCoordinator = Depends(get_coordinator),
) -> dict:
    booking = coordinator.cancel_booking(booking_id)
    logger.info(
        "admin cancelled booking",
        extra={
            "extra_fields": safe_log_context(
                correlationId=get_correlation_id(),
                admin_id=admin.id,
                booking_id=booking_id,
            )
        },
    )
    return admin_bookings.booking_to_dict(booking)
