"""Utility modules for Tradefolio."""

from tradefolio.utils.numbers import as_date, to_decimal, to_naive_utc

__all__ = [
    "as_date",
    "to_decimal",
    "to_naive_utc",
]
