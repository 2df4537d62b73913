"""Tests for stay pricing."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from guesthouse.domain.pricing import count_nights, stay_amount, to_minor_units

from tests.helpers import JAN_10, JAN_13


def test_three_nights_at_fifty():
    amount = stay_amount(Decimal("50.00"), JAN_10, JAN_13)

    assert amount == Decimal("150.00")
    assert to_minor_units(amount) == 15000


def test_partial_day_counts_as_full_night():
    check_in = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)
    assert count_nights(check_in, check_in + timedelta(hours=5)) == 1
    assert count_nights(check_in, check_in + timedelta(days=2, hours=1)) == 3


def test_exact_days():
    check_in = datetime(2026, 1, 10, tzinfo=timezone.utc)
    assert count_nights(check_in, check_in + timedelta(days=2)) == 2


def test_minor_units_round_half_up():
    assert to_minor_units(Decimal("10.005")) == 1001
    assert to_minor_units(Decimal("0.994")) == 99
