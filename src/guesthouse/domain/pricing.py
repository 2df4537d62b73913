"""Stay pricing.

Nights are counted per started day: any partial day is charged as a full
night. Amounts sent to the gateway are in minor units (kobo, cents).
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

MINOR_UNITS_PER_MAJOR = 100

_ONE_DAY = timedelta(days=1)


def count_nights(check_in: datetime, check_out: datetime) -> int:
    """Whole nights between check_in and check_out, rounded up."""
    return math.ceil((check_out - check_in) / _ONE_DAY)


def stay_amount(price: Decimal, check_in: datetime, check_out: datetime) -> Decimal:
    """Total stay amount in major units."""
    return Decimal(price) * count_nights(check_in, check_out)


def to_minor_units(amount: Decimal) -> int:
    return int((amount * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
