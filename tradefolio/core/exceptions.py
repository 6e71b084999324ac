"""
Custom exceptions for Tradefolio.

The valuation core degrades gracefully on missing or inconsistent data and
raises none of these itself. They guard the boundaries: parsing raw records,
loading CLI input files, and validating configuration.
"""

from typing import Optional


class TradefolioError(Exception):
    """Base exception for all Tradefolio errors."""

    pass


class InvalidTradeError(TradefolioError, ValueError):
    """
    Raised when a raw trade or cash record fails validation.

    Carries the offending field so callers can point at it.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class InputFileError(TradefolioError):
    """Raised when a CLI input bundle cannot be read or parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load {path}: {reason}")


class ConfigError(TradefolioError):
    """Raised when configuration values are invalid."""

    pass
