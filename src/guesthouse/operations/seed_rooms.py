"""Seed demo rooms (idempotent).

Usage:
    DATABASE_URL=... python -m guesthouse.operations.seed_rooms
"""

import sys
from decimal import Decimal

from guesthouse.infra.db import txn
from guesthouse.observability.logging import get_logger

logger = get_logger(__name__)

DEMO_ROOMS = [
    {
        "name": "Garden Room",
        "description": "Ground floor double with a private patio.",
        "price": Decimal("45.00"),
        "capacity": 2,
        "image_url": "https://images.example.com/rooms/garden.jpg",
    },
    {
        "name": "Balcony Suite",
        "description": "King bed, work desk and balcony.",
        "price": Decimal("80.00"),
        "capacity": 3,
        "image_url": "https://images.example.com/rooms/balcony.jpg",
    },
    {
        "name": "Family Room",
        "description": "Two queen beds and a sofa bed.",
        "price": Decimal("110.00"),
        "capacity": 5,
        "image_url": "https://images.example.com/rooms/family.jpg",
    },
]


def seed_rooms(rooms: list[dict] | None = None) -> list[int]:
    """Insert rooms by name, skipping ones that exist. Returns all room ids."""
    room_ids: list[int] = []
    with txn() as cur:
        for room in rooms or DEMO_ROOMS:
            cur.execute(
                """
                INSERT INTO rooms (name, description, price, capacity)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (name) DO UPDATE SET name = EXCLUDED.name
                RETURNING id, (xmax = 0) AS inserted
                """,
                (room["name"], room["description"], room["price"], room["capacity"]),
            )
            room_id, inserted = cur.fetchone()
            room_ids.append(room_id)

            if inserted and room.get("image_url"):
                cur.execute(
                    """
                    INSERT INTO room_images (room_id, url, is_primary)
                    VALUES (%s, %s, true)
                    """,
                    (room_id, room["image_url"]),
                )

            logger.info(
                "room seeded",
                extra={"extra_fields": {"room_id": room_id, "inserted": inserted}},
            )
    return room_ids


def main() -> int:
    room_ids = seed_rooms()
    print(f"OK: rooms={room_ids}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
