"""
Pytest configuration and shared fixtures for Tradefolio tests.

This module provides common fixtures used across all test modules:
trade/quote factories, a standard rate table, and a sample input bundle.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from tradefolio.core.portfolio.models import PriceData, Trade, TradeAction


# ==============================================================================
# Autouse Fixtures - Run automatically for all tests
# ==============================================================================


@pytest.fixture(autouse=True)
def set_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pin configuration to known defaults for every test."""
    monkeypatch.setenv("TRADEFOLIO_DISPLAY_CURRENCY", "USD")
    monkeypatch.setenv("TRADEFOLIO_DEFAULT_PERIOD", "1Y")
    monkeypatch.setenv("TRADEFOLIO_PRICE_LOOKBACK_DAYS", "5")
    monkeypatch.setenv("TRADEFOLIO_FALLBACK_EUR_RATE", "0.92")
    monkeypatch.setenv("TRADEFOLIO_FALLBACK_HUF_RATE", "350")
    monkeypatch.setenv("TRADEFOLIO_LOG_LEVEL", "WARNING")


# ==============================================================================
# Trade and Quote Factories
# ==============================================================================


def utc(year: int, month: int, day: int, hour: int = 12) -> datetime:
    """Aware UTC timestamp helper."""
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def make_trade() -> Callable[..., Trade]:
    """Factory for Trade records with sensible defaults."""
    counter = {"n": 0}

    def _make(
        ticker: str,
        action: str,
        quantity: float,
        price: float,
        when: datetime,
        fees: float = 0.0,
        currency: str = "USD",
        trade_id: Optional[str] = None,
    ) -> Trade:
        counter["n"] += 1
        return Trade(
            id=trade_id or f"t{counter['n']}",
            ticker=ticker,
            action=TradeAction(action),
            quantity=quantity,
            price_per_share=price,
            timestamp=when,
            fees=fees,
            currency=currency,
        )

    return _make


@pytest.fixture
def make_quote() -> Callable[..., PriceData]:
    """Factory for PriceData quotes."""

    def _make(
        ticker: str,
        price: float,
        change: float = 0.0,
        change_percent: Optional[float] = None,
        currency: str = "USD",
    ) -> PriceData:
        return PriceData(
            ticker=ticker,
            current_price=price,
            change=change,
            change_percent=change_percent,
            currency=currency,
        )

    return _make


@pytest.fixture
def rates() -> dict[str, float]:
    """Standard rate table: units of currency per 1 USD."""
    return {"USD": 1.0, "EUR": 0.92, "HUF": 350.0}


# ==============================================================================
# Sample Scenarios
# ==============================================================================


@pytest.fixture
def aapl_trades(make_trade) -> list[Trade]:
    """
    BUY 10 @ 100 (fee 1) on Jan 1, SELL 4 @ 150 on Jan 10.

    Expected: 6 shares left at avg 100.10, realized 199.60 over 9 days.
    """
    return [
        make_trade("AAPL", "BUY", 10, 100.0, utc(2024, 1, 1), fees=1.0),
        make_trade("AAPL", "SELL", 4, 150.0, utc(2024, 1, 10)),
    ]


@pytest.fixture
def sample_bundle() -> dict[str, Any]:
    """A small multi-currency input bundle as the CLI reads it."""
    return {
        "trades": [
            {
                "id": "1",
                "ticker": "AAPL",
                "action": "BUY",
                "quantity": 10,
                "price_per_share": 100,
                "fees": 1,
                "timestamp": "2024-01-01T12:00:00Z",
            },
            {
                "id": "2",
                "ticker": "AAPL",
                "action": "SELL",
                "quantity": 4,
                "price_per_share": 150,
                "timestamp": "2024-01-10T12:00:00Z",
            },
            {
                "id": "3",
                "ticker": "SAP",
                "action": "BUY",
                "quantity": 5,
                "pricePerShare": 92,
                "currency": "EUR",
                "date_traded": "2024-02-01",
            },
        ],
        "prices": {
            "AAPL": {"current_price": 160, "change": 2, "change_percent": 1.27},
            "SAP": {"currentPrice": 110.4, "change": 0, "currency": "EUR"},
        },
        "rates": {"USD": 1, "EUR": 0.92, "HUF": 350},
        "cash": {"USD": 500, "EUR": 92},
        "fx_quotes": {"USDEUR=X": {"current_price": 0.92, "change_percent": 0}},
        "history": [
            {"date": "2024-01-02", "twr": 0.10, "benchmark_twr": 0.05, "total_value": 1100, "cost_basis": 1000},
            {"date": "2024-01-03", "twr": 0.21, "benchmark_twr": 0.05, "total_value": 1210, "cost_basis": 1000},
        ],
        "closes": {
            "AAPL": {"2024-01-01": 100, "2024-01-02": 110},
        },
        "benchmark_closes": {"2024-01-01": 4000, "2024-01-02": 4040},
    }


@pytest.fixture
def bundle_file(tmp_path: Path, sample_bundle: dict[str, Any]) -> Path:
    """Write the sample bundle to a temporary JSON file."""
    path = tmp_path / "book.json"
    path.write_text(json.dumps(sample_bundle))
    return path
