"""
Portfolio summary: totals, cash, daily P&L, allocation.

Works on USD-normalized holdings. Display currency conversion happens only in
``to_display_currency``, the last step before results leave the engine.
"""

import logging
from dataclasses import replace
from typing import Iterable, Mapping, Optional

from tradefolio.core.portfolio.currency import BASE_CURRENCY, CurrencyConverter, fx_pair
from tradefolio.core.portfolio.models import (
    Holding,
    PortfolioSummary,
    PriceData,
    RealizedGainRecord,
)

logger = logging.getLogger(__name__)

_HOLDING_MONEY_FIELDS = (
    "avg_cost_basis",
    "total_invested",
    "current_price",
    "market_value",
    "unrealized_gain",
    "day_change",
)

_SUMMARY_MONEY_FIELDS = (
    "total_invested",
    "total_market_value",
    "total_gain",
    "total_realized_gain",
    "total_return",
    "cash_balance",
    "total_portfolio_value",
    "daily_pnl",
    "stock_daily_pnl",
    "fx_pnl",
)


def calculate_fx_pnl(
    cash_balances: Mapping[str, float],
    converter: CurrencyConverter,
    fx_quotes: Mapping[str, PriceData],
) -> float:
    """
    Day-over-day USD value change of foreign cash caused by FX moves.

    For each non-USD balance, the previous day's rate is backed out of the
    ``USD<CUR>=X`` quote's daily change. Currencies without a quote, or whose
    quote has no change percent, contribute nothing.
    """
    fx_pnl = 0.0
    for currency, amount in cash_balances.items():
        code = currency.upper()
        if code == BASE_CURRENCY or not amount:
            continue

        quote = fx_quotes.get(fx_pair(code))
        if quote is None or quote.change_percent is None:
            logger.debug(f"No FX quote change for {fx_pair(code)}, skipping FX P&L")
            continue

        growth = 1 + quote.change_percent / 100
        if growth <= 0:
            continue
        rate = converter.rate(code)
        prev_rate = rate / growth
        value_today = amount / rate
        value_previous = amount / prev_rate
        fx_pnl += value_today - value_previous

    return fx_pnl


def build_summary(
    holdings: Iterable[Holding],
    rates: Optional[Mapping[str, float]] = None,
    cash_balances: Optional[Mapping[str, float]] = None,
    fx_quotes: Optional[Mapping[str, PriceData]] = None,
    realized_gains: Optional[Iterable[RealizedGainRecord]] = None,
    display_currency: str = BASE_CURRENCY,
) -> PortfolioSummary:
    """
    Build portfolio-wide aggregates from USD-normalized holdings.

    Args:
        holdings: Output of aggregate_holdings (not mutated)
        rates: Units of currency per USD
        cash_balances: Native cash amount per currency
        fx_quotes: FX quotes keyed by pair symbol (``USDEUR=X``)
        realized_gains: FIFO records whose sum feeds the total return
        display_currency: Reporting currency for the returned summary

    Returns:
        PortfolioSummary with allocation filled in on every holding
    """
    holdings = list(holdings)
    converter = CurrencyConverter(rates)
    cash_balances = {code.upper(): float(amount) for code, amount in (cash_balances or {}).items()}
    fx_quotes = {symbol.upper(): quote for symbol, quote in (fx_quotes or {}).items()}

    total_invested = sum(h.total_invested for h in holdings)
    total_market_value = sum(h.market_value for h in holdings)
    total_gain = total_market_value - total_invested
    total_gain_percent = (total_gain / total_invested * 100) if total_invested > 0 else 0.0

    normalized_cash = sum(
        converter.to_usd(amount, currency) for currency, amount in cash_balances.items()
    )
    fx_pnl = calculate_fx_pnl(cash_balances, converter, fx_quotes)
    total_portfolio_value = total_market_value + normalized_cash

    stock_daily_pnl = sum(h.day_change * h.shares for h in holdings)
    daily_pnl = stock_daily_pnl + fx_pnl
    # Relative to the value before today's move
    previous_value = total_portfolio_value - daily_pnl
    daily_pnl_percent = (daily_pnl / previous_value * 100) if previous_value > 0 else 0.0

    with_allocation = [
        replace(
            h,
            allocation=(h.market_value / total_portfolio_value * 100)
            if total_portfolio_value > 0
            else 0.0,
        )
        for h in holdings
    ]

    total_realized_gain = sum(r.realized_gain for r in (realized_gains or ()))

    summary = PortfolioSummary(
        total_invested=total_invested,
        total_market_value=total_market_value,
        total_gain=total_gain,
        total_gain_percent=total_gain_percent,
        total_realized_gain=total_realized_gain,
        total_return=total_gain + total_realized_gain,
        cash_balances=cash_balances,
        cash_balance=normalized_cash,
        total_portfolio_value=total_portfolio_value,
        daily_pnl=daily_pnl,
        daily_pnl_percent=daily_pnl_percent,
        stock_daily_pnl=stock_daily_pnl,
        fx_pnl=fx_pnl,
        holdings=with_allocation,
        exchange_rates=converter.rates,
        currency=BASE_CURRENCY,
    )

    if display_currency.upper() != BASE_CURRENCY:
        return to_display_currency(summary, rates, display_currency)
    return summary


def to_display_currency(
    summary: PortfolioSummary,
    rates: Optional[Mapping[str, float]],
    currency: str,
) -> PortfolioSummary:
    """
    Convert a USD summary to ``currency`` for display.

    Monetary fields are scaled by the currency's rate; percentages, share
    counts, and the native per-currency cash balances are left unchanged.
    A currency without a usable rate is not applied; the summary is returned
    in its current currency and a warning is logged.
    """
    currency = currency.upper()
    if currency == summary.currency:
        return summary

    converter = CurrencyConverter(rates)
    if not converter.has_rate(currency):
        logger.warning(f"No usable rate for {currency}, reporting in {summary.currency}")
        return summary

    def _convert(value: float) -> float:
        return converter.convert(value, summary.currency, currency)

    holdings = [
        replace(h, **{name: _convert(getattr(h, name)) for name in _HOLDING_MONEY_FIELDS})
        for h in summary.holdings
    ]
    return replace(
        summary,
        holdings=holdings,
        currency=currency,
        **{name: _convert(getattr(summary, name)) for name in _SUMMARY_MONEY_FIELDS},
    )
