"""Public room availability endpoints.

GET /rooms/{room_id}/availability?check_in=...&check_out=...  → {"available": bool}
GET /rooms/{room_id}/schedule                                  → occupied ranges
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Path, Query

from guesthouse.api.deps import get_checker
from guesthouse.domain.availability import AvailabilityChecker

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("/{room_id}/availability")
def check_availability(
    room_id: int = Path(..., ge=1),
    check_in: datetime = Query(...),
    check_out: datetime = Query(...),
    checker: AvailabilityChecker = Depends(get_checker),
) -> dict:
    """Whether the room is free for [check_in, check_out).

    Only paid bookings occupy a room. Reads committed state at call time,
    so the answer is advisory until a booking is actually created.
    """
    available = checker.is_available(room_id, check_in, check_out)
    return {
        "room_id": room_id,
        "check_in": check_in.isoformat(),
        "check_out": check_out.isoformat(),
        "available": available,
    }


@router.get("/{room_id}/schedule")
def room_schedule(
    room_id: int = Path(..., ge=1),
    checker: AvailabilityChecker = Depends(get_checker),
) -> list[dict]:
    """Occupied ranges that have not ended yet, for calendar display."""
    return [
        {"check_in": check_in.isoformat(), "check_out": check_out.isoformat()}
        for check_in, check_out in checker.room_schedule(room_id)
    ]
