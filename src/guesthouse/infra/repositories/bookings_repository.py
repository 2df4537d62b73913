"""Bookings repository - persistence for booking records.

Uses raw SQL with psycopg2 (no ORM).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from psycopg2.extensions import cursor as PgCursor

from guesthouse.domain.models import Booking, BookingStatus

BOOKING_COLUMNS = (
    "id, public_id, room_id, check_in, check_out, guest_name, guest_email, "
    "guest_phone, adults, children, status, payment_reference, created_at"
)

# Admin-editable columns; status and payment_reference are owned by the coordinator.
EDITABLE_COLUMNS = (
    "guest_name",
    "guest_email",
    "guest_phone",
    "adults",
    "children",
    "check_in",
    "check_out",
)


def row_to_booking(row: tuple) -> Booking:
    return Booking(
        id=row[0],
        public_id=row[1],
        room_id=row[2],
        check_in=row[3],
        check_out=row[4],
        guest_name=row[5],
        guest_email=row[6],
        guest_phone=row[7],
        adults=row[8],
        children=row[9],
        status=BookingStatus(row[10]),
        payment_reference=row[11],
        created_at=row[12],
    )


def insert_booking(
    cur: PgCursor,
    *,
    public_id: str,
    room_id: int,
    check_in: datetime,
    check_out: datetime,
    guest_name: str,
    guest_email: str,
    guest_phone: str,
    adults: int,
    children: int,
    status: BookingStatus,
) -> Booking:
    """Insert a booking row and return it.

    Args:
        cur: Database cursor (within transaction).
        public_id: Opaque guest-facing identifier (UNIQUE).
        status: Initial status (PENDING for gated payment, PAID for direct-confirm).

    Returns:
        The persisted Booking.
    """
    cur.execute(
        f"""
        INSERT INTO bookings (
            public_id, room_id, check_in, check_out,
            guest_name, guest_email, guest_phone, adults, children, status
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {BOOKING_COLUMNS}
        """,
        (
            public_id,
            room_id,
            check_in,
            check_out,
            guest_name,
            guest_email,
            guest_phone,
            adults,
            children,
            status.value,
        ),
    )
    return row_to_booking(cur.fetchone())


def get_booking(cur: PgCursor, booking_id: int, *, lock: bool = False) -> Booking | None:
    suffix = " FOR UPDATE" if lock else ""
    cur.execute(
        f"SELECT {BOOKING_COLUMNS} FROM bookings WHERE id = %s{suffix}",
        (booking_id,),
    )
    row = cur.fetchone()
    return row_to_booking(row) if row else None


def get_booking_by_public_id(cur: PgCursor, public_id: str, *, lock: bool = False) -> Booking | None:
    suffix = " FOR UPDATE" if lock else ""
    cur.execute(
        f"SELECT {BOOKING_COLUMNS} FROM bookings WHERE public_id = %s{suffix}",
        (public_id,),
    )
    row = cur.fetchone()
    return row_to_booking(row) if row else None


def get_booking_by_reference(
    cur: PgCursor,
    payment_reference: str,
    *,
    lock: bool = False,
) -> Booking | None:
    suffix = " FOR UPDATE" if lock else ""
    cur.execute(
        f"SELECT {BOOKING_COLUMNS} FROM bookings WHERE payment_reference = %s{suffix}",
        (payment_reference,),
    )
    row = cur.fetchone()
    return row_to_booking(row) if row else None


def get_public_booking(cur: PgCursor, public_id: str) -> dict[str, Any] | None:
    """Fetch the guest-facing view of a booking.

    Only public-safe columns are selected: no internal id, payment
    reference, email or phone ever leaves this query.
    """
    cur.execute(
        """
        SELECT b.public_id, b.status, b.check_in, b.check_out, b.guest_name,
               b.created_at, r.name, r.price,
               (SELECT i.url FROM room_images i
                 WHERE i.room_id = r.id
                 ORDER BY i.is_primary DESC, i.id
                 LIMIT 1)
        FROM bookings b
        JOIN rooms r ON r.id = b.room_id
        WHERE b.public_id = %s
        """,
        (public_id,),
    )
    row = cur.fetchone()
    if row is None:
        return None
    return {
        "public_id": row[0],
        "status": row[1],
        "check_in": row[2],
        "check_out": row[3],
        "guest_name": row[4],
        "created_at": row[5],
        "room": {
            "name": row[6],
            "price": row[7],
            "image_url": row[8],
        },
    }


def set_payment_reference(cur: PgCursor, booking_id: int, payment_reference: str) -> bool:
    """Store the gateway reference if none is set yet.

    The column is UNIQUE; a reference already used by another booking raises
    psycopg2.errors.UniqueViolation.

    Returns:
        True if stored, False if the booking already had a reference.
    """
    cur.execute(
        """
        UPDATE bookings
        SET payment_reference = %s, updated_at = now()
        WHERE id = %s AND payment_reference IS NULL
        """,
        (payment_reference, booking_id),
    )
    return cur.rowcount > 0


def update_status(cur: PgCursor, booking_id: int, status: BookingStatus) -> Booking | None:
    cur.execute(
        f"""
        UPDATE bookings
        SET status = %s, updated_at = now()
        WHERE id = %s
        RETURNING {BOOKING_COLUMNS}
        """,
        (status.value, booking_id),
    )
    row = cur.fetchone()
    return row_to_booking(row) if row else None


def update_booking_fields(
    cur: PgCursor,
    booking_id: int,
    changes: dict[str, Any],
) -> Booking | None:
    """Update admin-editable columns.

    Raises:
        ValueError: If changes include a non-editable column.
    """
    unknown = set(changes) - set(EDITABLE_COLUMNS)
    if unknown:
        raise ValueError(f"Non-editable booking columns: {sorted(unknown)}")

    if not changes:
        return get_booking(cur, booking_id)

    # Column names come from EDITABLE_COLUMNS only
    assignments = ", ".join(f"{column} = %s" for column in changes)
    cur.execute(
        f"""
        UPDATE bookings
        SET {assignments}, updated_at = now()
        WHERE id = %s
        RETURNING {BOOKING_COLUMNS}
        """,
        (*changes.values(), booking_id),
    )
    row = cur.fetchone()
    return row_to_booking(row) if row else None


def list_bookings(
    cur: PgCursor,
    *,
    status: BookingStatus | None = None,
) -> list[tuple[Booking, str]]:
    """List bookings newest first, paired with their room name."""
    conditions = []
    params: list[Any] = []
    if status is not None:
        conditions.append("b.status = %s")
        params.append(status.value)

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    columns = ", ".join(f"b.{c.strip()}" for c in BOOKING_COLUMNS.split(","))

    cur.execute(
        f"""
        SELECT {columns}, r.name
        FROM bookings b
        JOIN rooms r ON r.id = b.room_id
        {where}
        ORDER BY b.created_at DESC, b.id DESC
        """,
        params,
    )
    return [(row_to_booking(row[:-1]), row[-1]) for row in cur.fetchall()]


def delete_booking(cur: PgCursor, booking_id: int) -> bool:
    cur.execute("DELETE FROM bookings WHERE id = %s", (booking_id,))
    return cur.rowcount > 0


def list_occupied_ranges(
    cur: PgCursor,
    room_id: int,
    *,
    since: datetime,
    statuses: tuple[BookingStatus, ...],
) -> list[tuple[datetime, datetime]]:
    """Occupied [check_in, check_out) ranges for a room ending after ``since``."""
    cur.execute(
        """
        SELECT check_in, check_out
        FROM bookings
        WHERE room_id = %s
          AND status = ANY(%s::booking_status[])
          AND check_out > %s
        ORDER BY check_in
        """,
        (room_id, [s.value for s in statuses], since),
    )
    return [(row[0], row[1]) for row in cur.fetchall()]
