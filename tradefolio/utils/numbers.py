"""
Numeric and date helpers shared by the valuation folds.

Cost-basis folds accumulate in Decimal and hand floats to the output
dataclasses; timestamps are compared as naive UTC.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Union


def to_decimal(value: Union[int, float, Decimal, str]) -> Decimal:
    """Convert a numeric value to Decimal safely."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_naive_utc(dt: datetime) -> datetime:
    """Convert a datetime to timezone-naive UTC.

    Trades may arrive with or without tzinfo depending on the source. Sorting
    and day arithmetic need one convention, so aware values are converted to
    UTC and stripped.
    """
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def as_date(value: Union[date, datetime]) -> date:
    """Calendar date of a date or datetime (UTC for aware datetimes)."""
    if isinstance(value, datetime):
        return to_naive_utc(value).date()
    return value
