"""
Data model for the portfolio valuation engine.

Inputs (Trade, PriceData, CashTransaction, PerformanceEntry) are frozen and
read-only. Outputs (Holding, PortfolioSummary, ...) are plain dataclasses
ready for JSON serialization via ``dataclasses.asdict``. All monetary output
fields are USD unless the summary has been converted for display.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional

from tradefolio.core.exceptions import InvalidTradeError
from tradefolio.utils import to_decimal


class TradeAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class CashTransactionType(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    DIVIDEND = "DIVIDEND"
    INTEREST = "INTEREST"
    FEE = "FEE"
    TAX = "TAX"
    ADJUSTMENT = "ADJUSTMENT"


_TICKER_RE = re.compile(r"^[A-Z0-9.\-=^]{1,12}$")
_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


def _validate_ticker(ticker: Any) -> str:
    """Validate and normalize a ticker symbol.

    Accepts 1-12 uppercase alphanumeric characters plus '.', '-', '=' and '^'
    (covers BRK.B, BRK-B, USDEUR=X, ^GSPC). Raises InvalidTradeError otherwise.
    """
    if not isinstance(ticker, str):
        raise InvalidTradeError(f"Ticker must be a string, got {ticker!r}", field="ticker")
    ticker = ticker.strip().upper()
    if not _TICKER_RE.match(ticker):
        raise InvalidTradeError(
            f"Invalid ticker symbol: {ticker!r}. "
            "Must be 1-12 characters: A-Z, 0-9, '.', '-', '=', '^'",
            field="ticker",
        )
    return ticker


def _validate_currency(currency: Any) -> str:
    if currency is None:
        return "USD"
    code = str(currency).strip().upper()
    if not _CURRENCY_RE.match(code):
        raise InvalidTradeError(f"Invalid currency code: {currency!r}", field="currency")
    return code


def _parse_number(raw: Mapping[str, Any], key: str, default: Optional[float] = None) -> float:
    value = raw.get(key, default)
    if value is None:
        raise InvalidTradeError(f"Missing required field: {key}", field=key)
    if isinstance(value, bool):
        raise InvalidTradeError(f"{key} must be numeric, got {value!r}", field=key)
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidTradeError(f"{key} must be numeric, got {value!r}", field=key) from None


def _parse_timestamp(value: Any, key: str) -> datetime:
    """Parse an ISO-8601 timestamp or date. Naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise InvalidTradeError(f"Invalid {key}: {value!r}", field=key) from None
    else:
        raise InvalidTradeError(f"Missing or invalid {key}: {value!r}", field=key)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_date(value: Any, key: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise InvalidTradeError(f"Invalid {key}: {value!r}", field=key) from None
    raise InvalidTradeError(f"Missing or invalid {key}: {value!r}", field=key)


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


@dataclass(frozen=True)
class Trade:
    """One buy or sell execution. Append-only; corrections replace the record."""

    id: str
    ticker: str
    action: TradeAction
    quantity: float
    price_per_share: float
    timestamp: datetime
    fees: float = 0.0
    currency: str = "USD"
    portfolio_id: Optional[str] = None
    notes: Optional[str] = None

    @property
    def gross_amount(self) -> Decimal:
        """Quantity times price in trade currency, fees excluded."""
        return to_decimal(self.quantity) * to_decimal(self.price_per_share)

    @property
    def total_cost(self) -> Decimal:
        """Gross amount in trade currency, fees included."""
        return self.gross_amount + to_decimal(self.fees)

    @property
    def net_proceeds(self) -> Decimal:
        """Gross amount in trade currency, fees deducted."""
        return self.gross_amount - to_decimal(self.fees)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Trade":
        """
        Build a validated Trade from a raw record (JSON row, form data).

        Accepts ``timestamp`` or ``date_traded`` for the execution time and
        camelCase ``pricePerShare`` as an alias of ``price_per_share``.

        Raises:
            InvalidTradeError: If any field is missing or out of range
        """
        action_raw = str(raw.get("action", "")).strip().upper()
        try:
            action = TradeAction(action_raw)
        except ValueError:
            raise InvalidTradeError(
                f"Invalid action: {raw.get('action')!r}. Expected BUY or SELL", field="action"
            ) from None

        price_key = "pricePerShare" if "pricePerShare" in raw else "price_per_share"
        quantity = _parse_number(raw, "quantity")
        price = _parse_number(raw, price_key)
        fees = _parse_number(raw, "fees", default=0.0)

        if quantity <= 0:
            raise InvalidTradeError("Quantity must be positive", field="quantity")
        if price <= 0:
            raise InvalidTradeError("Price must be positive", field="price_per_share")
        if fees < 0:
            raise InvalidTradeError("Fees cannot be negative", field="fees")

        ts_raw = raw.get("timestamp", raw.get("date_traded"))
        return cls(
            id=str(raw.get("id", "")),
            ticker=_validate_ticker(raw.get("ticker")),
            action=action,
            quantity=quantity,
            price_per_share=price,
            timestamp=_parse_timestamp(ts_raw, "timestamp"),
            fees=fees,
            currency=_validate_currency(raw.get("currency")),
            portfolio_id=raw.get("portfolio_id"),
            notes=raw.get("notes"),
        )


@dataclass(frozen=True)
class PriceData:
    """Current or historical quote for a ticker, as supplied by the market-data layer."""

    ticker: str
    current_price: float
    change: float = 0.0
    change_percent: Optional[float] = None  # None when the provider has no daily change
    currency: str = "USD"
    sector: Optional[str] = None
    industry: Optional[str] = None

    @classmethod
    def from_dict(cls, ticker: str, raw: Mapping[str, Any]) -> "PriceData":
        price_key = "currentPrice" if "currentPrice" in raw else "current_price"
        pct_key = "changePercent" if "changePercent" in raw else "change_percent"
        return cls(
            ticker=ticker.strip().upper(),
            current_price=float(raw.get(price_key) or 0.0),
            change=float(raw.get("change") or 0.0),
            change_percent=_optional_float(raw.get(pct_key)),
            currency=_validate_currency(raw.get("currency")),
            sector=raw.get("sector"),
            industry=raw.get("industry"),
        )


@dataclass
class Holding:
    """Net position in one ticker. Derived on every request, never persisted."""

    ticker: str
    shares: float
    avg_cost_basis: float
    total_invested: float
    current_price: float
    market_value: float
    unrealized_gain: float
    unrealized_gain_percent: float
    allocation: float = 0.0  # Filled in by build_summary
    sector: Optional[str] = None
    industry: Optional[str] = None
    day_change: float = 0.0
    day_change_percent: float = 0.0
    currency: str = "USD"  # Native listing currency


@dataclass(frozen=True)
class RealizedGainRecord:
    """One closed-position event, produced once per SELL trade."""

    ticker: str
    quantity: float
    cost_basis: float  # Weighted USD cost per share over the consumed lots
    sale_price: float  # USD per share
    realized_gain: float
    realized_gain_percent: float
    holding_period_days: int  # From the oldest consumed lot
    closed_at: datetime
    trade_id: Optional[str] = None
    unmatched_quantity: float = 0.0  # Oversold shares that met no open lot


@dataclass
class PortfolioSummary:
    """Portfolio-wide aggregates. Monetary fields are in ``currency``."""

    total_invested: float
    total_market_value: float
    total_gain: float
    total_gain_percent: float
    total_realized_gain: float
    total_return: float
    cash_balances: dict[str, float]  # Native amounts per currency
    cash_balance: float  # Normalized total
    total_portfolio_value: float
    daily_pnl: float
    daily_pnl_percent: float
    stock_daily_pnl: float
    fx_pnl: float
    holdings: list[Holding] = field(default_factory=list)
    exchange_rates: dict[str, float] = field(default_factory=dict)
    currency: str = "USD"


@dataclass(frozen=True)
class PerformanceEntry:
    """One day of the persisted history: cumulative TWR since inception."""

    date: date
    twr: float
    benchmark_twr: Optional[float] = None
    total_value: float = 0.0
    cost_basis: float = 0.0
    realized_pnl: float = 0.0

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "PerformanceEntry":
        return cls(
            date=_parse_date(raw.get("date"), "date"),
            twr=float(raw.get("twr") or 0.0),
            benchmark_twr=_optional_float(raw.get("benchmark_twr")),
            total_value=float(raw.get("total_value") or 0.0),
            cost_basis=float(raw.get("cost_basis") or 0.0),
            realized_pnl=float(raw.get("realized_pnl") or 0.0),
        )


@dataclass(frozen=True)
class NormalizedEntry:
    """A history entry re-based so the window starts at 0%."""

    date: date
    portfolio: float  # Percent
    benchmark: Optional[float]  # Percent, None when no benchmark data
    value: float
    cost_basis: float


@dataclass(frozen=True)
class CashTransaction:
    """One movement in the multi-currency cash ledger."""

    transaction_type: CashTransactionType
    amount: float
    currency: str
    transaction_date: datetime
    ticker: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CashTransaction":
        """
        Build a validated CashTransaction from a raw record.

        Raises:
            InvalidTradeError: If type, amount, currency, or date is invalid
        """
        type_raw = str(raw.get("transaction_type", raw.get("type", ""))).strip().upper()
        try:
            txn_type = CashTransactionType(type_raw)
        except ValueError:
            raise InvalidTradeError(
                f"Invalid cash transaction type: {type_raw!r}", field="transaction_type"
            ) from None
        ticker = raw.get("ticker")
        return cls(
            transaction_type=txn_type,
            amount=_parse_number(raw, "amount"),
            currency=_validate_currency(raw.get("currency")),
            transaction_date=_parse_timestamp(raw.get("transaction_date"), "transaction_date"),
            ticker=_validate_ticker(ticker) if ticker else None,
            description=raw.get("description"),
        )


@dataclass
class CashFlowSummary:
    """Cash ledger totals over a date range."""

    balances: dict[str, float]
    totals_by_type: dict[str, float]
    counts_by_type: dict[str, int]
    total_deposits: float
    total_withdrawals: float  # Positive
    total_dividends: float
    total_fees: float  # FEE + TAX, positive


@dataclass
class TickerRealizedPnL:
    total_gain: float
    count: int
    avg_gain_percent: float


@dataclass
class RealizedPnLStats:
    """Win/loss report over a set of realized-gain records."""

    total_realized_gain: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float  # Percent
    avg_gain: float
    avg_loss: float
    biggest_win: float
    biggest_loss: float
    by_ticker: dict[str, TickerRealizedPnL] = field(default_factory=dict)


@dataclass
class DayReturn:
    """One day's move inside a history window."""

    date: date
    return_percent: float  # From the TWR series, so deposits are not gains
    value_change: float  # Raw USD change of total value


@dataclass
class PerformanceStats:
    """Statistics for a history window."""

    total_return: float  # Percent, first to last value
    total_return_dollars: float
    twr_return: float  # Percent, flow-neutral
    peak_value: float
    current_drawdown: float  # Percent, <= 0
    max_drawdown: float  # Percent, <= 0
    avg_daily_return: float
    volatility: float  # Sample std dev of daily TWR returns
    best_day: Optional[DayReturn]
    worst_day: Optional[DayReturn]
    days_tracked: int
