"""Load the JSON input bundle consumed by the portfolio commands.

A bundle is a single JSON object; every key is optional:

    {
      "trades": [{"ticker": "AAPL", "action": "BUY", ...}],
      "prices": {"AAPL": {"current_price": 190.0, "change": 1.2}},
      "rates": {"USD": 1, "EUR": 0.92},
      "cash": {"EUR": 100.0},
      "cash_transactions": [{"type": "DEPOSIT", ...}],
      "fx_quotes": {"USDEUR=X": {"current_price": 0.92, "change_percent": -0.4}},
      "history": [{"date": "2024-01-02", "twr": 0.01, ...}],
      "closes": {"AAPL": {"2024-01-02": 185.6}},
      "benchmark_closes": {"2024-01-02": 4742.8},
      "currencies": {"OTP.BD": "HUF"}
    }
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Optional

from tradefolio.core.exceptions import InputFileError, InvalidTradeError
from tradefolio.core.portfolio.models import (
    CashTransaction,
    PerformanceEntry,
    PriceData,
    Trade,
)

logger = logging.getLogger(__name__)


@dataclass
class PortfolioBundle:
    """Parsed contents of an input bundle."""

    trades: list[Trade] = field(default_factory=list)
    prices: dict[str, PriceData] = field(default_factory=dict)
    rates: dict[str, float] = field(default_factory=dict)
    cash: Optional[dict[str, float]] = None
    cash_transactions: Optional[list[CashTransaction]] = None
    fx_quotes: dict[str, PriceData] = field(default_factory=dict)
    history: list[PerformanceEntry] = field(default_factory=list)
    closes: dict[str, dict[date, float]] = field(default_factory=dict)
    benchmark_closes: dict[date, float] = field(default_factory=dict)
    currencies: dict[str, str] = field(default_factory=dict)


def _quote(ticker: str, raw: Any) -> PriceData:
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return PriceData(ticker=ticker.upper(), current_price=float(raw))
    if not isinstance(raw, dict):
        raise InvalidTradeError(f"Quote for {ticker} must be an object or number", field=ticker)
    return PriceData.from_dict(ticker, raw)


def _closes(raw: dict) -> dict[date, float]:
    series = {}
    for day, close in raw.items():
        try:
            series[date.fromisoformat(str(day)[:10])] = float(close)
        except (TypeError, ValueError):
            raise InvalidTradeError(f"Invalid close {day!r}: {close!r}", field="closes") from None
    return series


def load_bundle(path: str) -> PortfolioBundle:
    """
    Read and validate an input bundle.

    Args:
        path: Path to the JSON file

    Returns:
        PortfolioBundle with typed records

    Raises:
        InputFileError: If the file is unreadable, not JSON, or holds an
            invalid record
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise InputFileError(path, e.strerror or str(e)) from e
    except json.JSONDecodeError as e:
        raise InputFileError(path, f"invalid JSON ({e.msg} at line {e.lineno})") from e

    if not isinstance(raw, dict):
        raise InputFileError(path, "top-level value must be a JSON object")

    bundle = PortfolioBundle()
    section = "trades"
    try:
        for i, record in enumerate(raw.get("trades") or []):
            section = f"trades[{i}]"
            bundle.trades.append(Trade.from_dict(record))

        section = "prices"
        bundle.prices = {t.upper(): _quote(t, q) for t, q in (raw.get("prices") or {}).items()}
        section = "fx_quotes"
        bundle.fx_quotes = {s.upper(): _quote(s, q) for s, q in (raw.get("fx_quotes") or {}).items()}

        section = "rates"
        bundle.rates = {code.upper(): float(rate) for code, rate in (raw.get("rates") or {}).items()}

        if raw.get("cash") is not None:
            section = "cash"
            bundle.cash = {code.upper(): float(amount) for code, amount in raw["cash"].items()}
        if raw.get("cash_transactions") is not None:
            bundle.cash_transactions = []
            for i, record in enumerate(raw["cash_transactions"]):
                section = f"cash_transactions[{i}]"
                bundle.cash_transactions.append(CashTransaction.from_dict(record))

        for i, record in enumerate(raw.get("history") or []):
            section = f"history[{i}]"
            bundle.history.append(PerformanceEntry.from_dict(record))

        section = "closes"
        bundle.closes = {t.upper(): _closes(s) for t, s in (raw.get("closes") or {}).items()}
        section = "benchmark_closes"
        bundle.benchmark_closes = _closes(raw.get("benchmark_closes") or {})

        # Native currency per ticker defaults to the one it was traded in
        bundle.currencies = {t.ticker: t.currency for t in bundle.trades}
        bundle.currencies.update(
            {t.upper(): c.upper() for t, c in (raw.get("currencies") or {}).items()}
        )
    except InvalidTradeError as e:
        raise InputFileError(path, f"{section}: {e}") from e
    except (AttributeError, TypeError, ValueError) as e:
        raise InputFileError(path, f"{section}: malformed section ({e})") from e

    logger.debug(
        f"Loaded {path}: {len(bundle.trades)} trades, {len(bundle.prices)} quotes, "
        f"{len(bundle.history)} history entries"
    )
    return bundle
