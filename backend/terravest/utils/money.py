"""
Decimal helpers for money amounts
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Optional, Union

CENT = Decimal("0.01")
# Numeric(20, 2) columns hold at most 18 integer digits
MAX_AMOUNT = Decimal("999999999999999999.99")


def quantize_money(value: Union[Decimal, int, str, float]) -> Decimal:
    """Round to cents (ROUND_HALF_UP)"""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def floor_money(value: Decimal) -> Decimal:
    """Round down to cents"""
    return Decimal(value).quantize(CENT, rounding=ROUND_DOWN)


def percent_of(amount: Decimal, rate: Decimal) -> Decimal:
    """rate is a percentage: percent_of(200, 15) == 30.00"""
    return quantize_money(Decimal(amount) * Decimal(rate) / Decimal("100"))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops the offset on read)"""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def add_months(start: datetime, months: int, days_per_month: int = 30) -> datetime:
    """Investment terms count every month as days_per_month days"""
    return start + timedelta(days=months * days_per_month)
