"""Room availability checks.

A room is available for [check_in, check_out) when no booking in the given
statuses overlaps it:

    existing.check_in < new.check_out AND existing.check_out > new.check_in

Strict inequality keeps back-to-back stays legal (check-out == next check-in).
By default only PAID bookings occupy a room; PENDING bookings are
provisional holds and do not block anyone.

The cursor-level helpers never write. Callers that act on the answer must
run them inside the same transaction as the write, after locking the room row
(see rooms_repository.lock_room).
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from psycopg2.extensions import cursor as PgCursor

from guesthouse.domain.errors import RoomNotFoundError
from guesthouse.domain.models import (
    OCCUPYING_STATUSES,
    BookingStatus,
    validate_range,
)
from guesthouse.infra.repositories.bookings_repository import list_occupied_ranges
from guesthouse.infra.repositories.rooms_repository import get_room
from guesthouse.infra.time import ensure_utc, utc_now
from guesthouse.observability.logging import get_logger

if TYPE_CHECKING:
    from guesthouse.infra.db import Database

logger = get_logger(__name__)


def find_conflicting_booking(
    cur: PgCursor,
    *,
    room_id: int,
    check_in: datetime,
    check_out: datetime,
    statuses: tuple[BookingStatus, ...] = OCCUPYING_STATUSES,
    exclude_booking_id: int | None = None,
) -> int | None:
    """Return the id of the first booking overlapping the range, or None.

    Args:
        cur: Database cursor (should be within a transaction).
        room_id: Room identifier.
        check_in: Candidate check-in (inclusive).
        check_out: Candidate check-out (exclusive).
        statuses: Booking statuses that count as occupying.
        exclude_booking_id: Booking to ignore (the booking being confirmed).
    """
    conditions = [
        "room_id = %s",
        "status = ANY(%s::booking_status[])",
        "check_in < %s",   # existing check_in < new check_out
        "check_out > %s",  # existing check_out > new check_in
    ]
    params: list = [room_id, [s.value for s in statuses], check_out, check_in]

    if exclude_booking_id is not None:
        conditions.append("id != %s")
        params.append(exclude_booking_id)

    where = " AND ".join(conditions)
    cur.execute(
        f"""
        SELECT id, check_in, check_out
        FROM bookings
        WHERE {where}
        ORDER BY check_in
        LIMIT 1
        """,
        params,
    )
    row = cur.fetchone()

    if row is None:
        return None

    logger.info(
        "room conflict detected",
        extra={
            "extra_fields": {
                "room_id": room_id,
                "requested_check_in": check_in.isoformat(),
                "requested_check_out": check_out.isoformat(),
                "conflicting_booking_id": row[0],
                "existing_check_in": row[1].isoformat(),
                "existing_check_out": row[2].isoformat(),
            },
        },
    )
    return row[0]


def is_available(
    cur: PgCursor,
    *,
    room_id: int,
    check_in: datetime,
    check_out: datetime,
    statuses: tuple[BookingStatus, ...] = OCCUPYING_STATUSES,
    exclude_booking_id: int | None = None,
) -> bool:
    """True iff no booking in ``statuses`` overlaps [check_in, check_out)."""
    return (
        find_conflicting_booking(
            cur,
            room_id=room_id,
            check_in=check_in,
            check_out=check_out,
            statuses=statuses,
            exclude_booking_id=exclude_booking_id,
        )
        is None
    )


class AvailabilityChecker:
    """Read-only availability queries for calendar display.

    Each call runs in its own short transaction and reads current committed
    state; nothing is cached.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    def is_available(self, room_id: int, check_in: datetime, check_out: datetime) -> bool:
        """Check whether a room is free for the range.

        Raises:
            ValidationError: If check_in >= check_out.
            RoomNotFoundError: If the room does not exist.
        """
        check_in = ensure_utc(check_in)
        check_out = ensure_utc(check_out)
        validate_range(check_in, check_out)

        with self._db.txn() as cur:
            if get_room(cur, room_id) is None:
                raise RoomNotFoundError(f"Room {room_id} not found")
            return is_available(cur, room_id=room_id, check_in=check_in, check_out=check_out)

    def room_schedule(
        self,
        room_id: int,
        since: datetime | None = None,
    ) -> list[tuple[datetime, datetime]]:
        """Occupied ranges of PAID bookings that end after ``since`` (default now)."""
        since = ensure_utc(since) if since is not None else utc_now()
        with self._db.txn() as cur:
            if get_room(cur, room_id) is None:
                raise RoomNotFoundError(f"Room {room_id} not found")
            return list_occupied_ranges(cur, room_id, since=since, statuses=OCCUPYING_STATUSES)
