"""
Holdings aggregation with weighted average cost basis.

Folds the full trade log into one position per ticker:
- BUY adds quantity and its USD cost (fees included) to the running totals
- SELL removes cost proportionally at the current average cost
- Positions at or below zero shares are dropped from the output

Recomputed from scratch on every call; nothing is cached or mutated.
"""

import logging
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from tradefolio.core.portfolio.currency import CurrencyConverter
from tradefolio.core.portfolio.models import Holding, PriceData, Trade, TradeAction
from tradefolio.utils import to_decimal, to_naive_utc

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def sort_trades(trades: Iterable[Trade]) -> list[Trade]:
    """Chronological order. Stable, so same-timestamp trades keep input order."""
    return sorted(trades, key=lambda t: to_naive_utc(t.timestamp))


class PositionState:
    """
    Running weighted-average state for one ticker.

    ``buy_quantity`` tracks the share count the cost total is spread over.
    It moves with ``shares`` and is allowed to go negative on an oversold
    ledger; callers filter non-positive positions instead of clamping.
    """

    __slots__ = ("ticker", "shares", "total_cost_usd", "buy_quantity")

    def __init__(self, ticker: str):
        self.ticker = ticker
        self.shares = ZERO
        self.total_cost_usd = ZERO
        self.buy_quantity = ZERO

    @property
    def avg_cost_usd(self) -> Decimal:
        if self.buy_quantity <= 0:
            return ZERO
        return self.total_cost_usd / self.buy_quantity

    def apply(self, trade: Trade, converter: CurrencyConverter) -> None:
        qty = to_decimal(trade.quantity)
        if trade.action == TradeAction.BUY:
            self.total_cost_usd += converter.to_usd_decimal(trade.total_cost, trade.currency)
            self.shares += qty
            self.buy_quantity += qty
        else:
            avg_cost = self.avg_cost_usd
            self.total_cost_usd -= qty * avg_cost
            self.shares -= qty
            self.buy_quantity -= qty
            if self.shares < 0:
                logger.warning(
                    f"{self.ticker}: sell on {trade.timestamp:%Y-%m-%d} leaves "
                    f"{self.shares} shares (ledger oversold)"
                )


def fold_positions(
    trades: Iterable[Trade],
    rates: Optional[Mapping[str, float]] = None,
) -> dict[str, PositionState]:
    """Fold trades (sorted first) into per-ticker PositionStates."""
    converter = CurrencyConverter(rates)
    positions: dict[str, PositionState] = {}
    for trade in sort_trades(trades):
        ticker = trade.ticker.upper()
        state = positions.get(ticker)
        if state is None:
            state = positions[ticker] = PositionState(ticker)
        state.apply(trade, converter)
    return positions


def _build_holding(
    state: PositionState,
    price: Optional[PriceData],
    converter: CurrencyConverter,
) -> Holding:
    shares = float(state.shares)
    avg_cost = float(state.avg_cost_usd) if state.buy_quantity > 0 else 0.0

    if price is None:
        logger.debug(f"No price data for {state.ticker}, valuing at 0")
        native_currency = "USD"
        current_price = 0.0
        day_change = 0.0
        day_change_percent = 0.0
        sector = industry = None
    else:
        native_currency = price.currency
        current_price = converter.to_usd(price.current_price, price.currency)
        day_change = converter.to_usd(price.change, price.currency)
        day_change_percent = price.change_percent or 0.0
        sector, industry = price.sector, price.industry

    total_invested = shares * avg_cost
    market_value = shares * current_price
    unrealized_gain_percent = (
        (current_price - avg_cost) / avg_cost * 100 if avg_cost > 0 else 0.0
    )

    return Holding(
        ticker=state.ticker,
        shares=shares,
        avg_cost_basis=avg_cost,
        total_invested=total_invested,
        current_price=current_price,
        market_value=market_value,
        unrealized_gain=market_value - total_invested,
        unrealized_gain_percent=unrealized_gain_percent,
        sector=sector,
        industry=industry,
        day_change=day_change,
        day_change_percent=day_change_percent,
        currency=native_currency,
    )


def aggregate_holdings(
    trades: Iterable[Trade],
    prices: Optional[Mapping[str, PriceData]] = None,
    rates: Optional[Mapping[str, float]] = None,
) -> list[Holding]:
    """
    Aggregate trades into current holdings.

    Args:
        trades: Full trade log, any order (sorted by timestamp here)
        prices: Current quotes keyed by ticker; missing tickers price at 0
        rates: Units of currency per USD; missing currencies convert at 1

    Returns:
        Holdings with shares > 0, sorted by market value (highest first).
        ``allocation`` is left at 0 for build_summary to fill in.
    """
    prices = {ticker.upper(): quote for ticker, quote in (prices or {}).items()}
    converter = CurrencyConverter(rates)

    holdings = [
        _build_holding(state, prices.get(ticker), converter)
        for ticker, state in fold_positions(trades, rates).items()
        if state.shares > 0
    ]
    holdings.sort(key=lambda h: h.market_value, reverse=True)
    return holdings
