"""Shared test helper functions for guesthouse tests.

This module contains helper functions that can be imported by both conftest.py
and individual test files. These are NOT fixtures - they are regular functions.
"""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from decimal import Decimal

import jwt

from guesthouse.domain.models import Booking, BookingRequest, BookingStatus, Room
from guesthouse.paystack.webhook import compute_signature

ADMIN_SECRET = "test-admin-secret-0123456789abcdef"
PAYSTACK_SECRET = "sk_test_0123456789abcdef"

JAN_10 = datetime(2026, 1, 10, 14, 0, tzinfo=timezone.utc)
JAN_13 = datetime(2026, 1, 13, 11, 0, tzinfo=timezone.utc)


def create_admin_token(
    secret: str = ADMIN_SECRET,
    admin_id: int = 1,
    email: str = "admin@guesthouse.test",
    exp: int | None = None,
    algorithm: str = "HS256",
) -> str:
    """Create signed admin JWT for testing."""
    now = int(time.time())
    payload = {
        "adminId": admin_id,
        "email": email,
        "exp": exp if exp is not None else now + 8 * 3600,
        "iat": now,
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def paystack_event(event: str = "charge.success", reference: str = "ref_abc123456") -> bytes:
    return json.dumps({"event": event, "data": {"reference": reference, "status": "success"}}).encode()


def signed(payload: bytes, secret: str = PAYSTACK_SECRET) -> tuple[bytes, str]:
    """Return (payload, X-Paystack-Signature) for a payload."""
    return payload, compute_signature(payload, secret)


def make_room(room_id: int = 7, price: str = "50.00") -> Room:
    return Room(id=room_id, name=f"Room {room_id}", price=Decimal(price))


def make_request(**overrides) -> BookingRequest:
    fields = {
        "room_id": 7,
        "check_in": JAN_10,
        "check_out": JAN_13,
        "guest_name": "Ada Guest",
        "guest_email": "ada@example.com",
        "guest_phone": "+2348000000000",
        "adults": 2,
        "children": 0,
    }
    fields.update(overrides)
    return BookingRequest(**fields)


def make_booking(**overrides) -> Booking:
    fields = {
        "id": 101,
        "public_id": "bk_publicidentifier000001",
        "room_id": 7,
        "check_in": JAN_10,
        "check_out": JAN_13,
        "guest_name": "Ada Guest",
        "guest_email": "ada@example.com",
        "guest_phone": "+2348000000000",
        "adults": 2,
        "children": 0,
        "status": BookingStatus.PENDING,
        "payment_reference": None,
        "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return Booking(**fields)
