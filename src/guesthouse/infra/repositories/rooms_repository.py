"""Rooms repository - read-only access to room records.

Rooms are managed outside the booking core; this module only reads them
and takes the per-room row lock that serializes availability decisions.
"""

from __future__ import annotations

from psycopg2.extensions import cursor as PgCursor

from guesthouse.domain.models import Room
from guesthouse.infra.db import for_update


def get_room(cur: PgCursor, room_id: int) -> Room | None:
    cur.execute(
        "SELECT id, name, price FROM rooms WHERE id = %s",
        (room_id,),
    )
    row = cur.fetchone()
    if row is None:
        return None
    return Room(id=row[0], name=row[1], price=row[2])


def lock_room(cur: PgCursor, room_id: int) -> Room | None:
    """Lock the room row until the surrounding transaction ends.

    Every transaction that checks availability and then writes a booking
    for this room must take this lock first, so concurrent check-then-write
    sequences on the same room run one after the other.

    Returns:
        The locked Room, or None if it does not exist.
    """
    row = for_update(
        cur,
        "SELECT id, name, price FROM rooms WHERE id = %s",
        (room_id,),
    )
    if row is None:
        return None
    return Room(id=row[0], name=row[1], price=row[2])
