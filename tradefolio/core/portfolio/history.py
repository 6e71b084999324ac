"""
Daily portfolio history reconstruction.

Replays the trade log one calendar day at a time and values open positions
at that day's close, producing the PerformanceEntry series that
normalize_performance consumes. Cumulative TWR chains daily returns with the
day's trade cash flows removed, so buying more shares is not a gain.
"""

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Iterable, Mapping, Optional, Union

from tradefolio.core.portfolio.currency import CurrencyConverter
from tradefolio.core.portfolio.holdings import PositionState, sort_trades
from tradefolio.core.portfolio.models import PerformanceEntry, Trade, TradeAction
from tradefolio.core.portfolio.realized import compute_realized_gains
from tradefolio.utils import as_date

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


def close_on(
    closes: Optional[Mapping[date, float]],
    day: date,
    lookback_days: int = 5,
) -> Optional[float]:
    """Close for ``day``, or the most recent one within ``lookback_days`` before it."""
    if not closes:
        return None
    for offset in range(lookback_days + 1):
        price = closes.get(day - timedelta(days=offset))
        if price is not None:
            return price
    return None


def _trade_flow_usd(trade: Trade, converter: CurrencyConverter) -> float:
    """Cash moved into positions by a trade (negative for sale proceeds)."""
    if trade.action == TradeAction.BUY:
        return float(converter.to_usd_decimal(trade.total_cost, trade.currency))
    return -float(converter.to_usd_decimal(trade.net_proceeds, trade.currency))


def build_daily_history(
    trades: Iterable[Trade],
    closes: Mapping[str, Mapping[date, float]],
    start: DateLike,
    end: DateLike,
    rates: Optional[Mapping[str, float]] = None,
    currencies: Optional[Mapping[str, str]] = None,
    benchmark_closes: Optional[Mapping[date, float]] = None,
    lookback_days: int = 5,
) -> list[PerformanceEntry]:
    """
    Build one PerformanceEntry per calendar day from ``start`` to ``end``.

    Args:
        trades: Full trade log; trades before ``start`` seed the positions
        closes: Daily closes per ticker, in the ticker's native currency
        start: First day of the series
        end: Last day of the series (the caller's evaluation date)
        rates: Units of currency per USD
        currencies: Native currency per ticker (USD when absent)
        benchmark_closes: Daily closes of the benchmark index
        lookback_days: How far back to reach for a missing close

    Returns:
        Date-ascending entries; empty when ``end`` is before ``start``
    """
    start_d, end_d = as_date(start), as_date(end)
    if end_d < start_d:
        return []

    converter = CurrencyConverter(rates)
    closes = {ticker.upper(): series for ticker, series in closes.items()}
    currencies = {ticker.upper(): code for ticker, code in (currencies or {}).items()}
    trades = sort_trades(trades)

    realized_by_day: dict[date, float] = defaultdict(float)
    for record in compute_realized_gains(trades, rates):
        realized_by_day[as_date(record.closed_at)] += record.realized_gain

    trades_by_day: dict[date, list[Trade]] = defaultdict(list)
    positions: dict[str, PositionState] = {}
    realized_pnl = 0.0
    for trade in trades:
        day = as_date(trade.timestamp)
        if day < start_d:
            _apply(positions, trade, converter)
        else:
            trades_by_day[day].append(trade)
    for day, amount in realized_by_day.items():
        if day < start_d:
            realized_pnl += amount

    benchmark_base = None
    twr = 0.0
    prev_value: Optional[float] = None
    entries = []

    day = start_d
    while day <= end_d:
        flow = 0.0
        for trade in trades_by_day.get(day, ()):
            _apply(positions, trade, converter)
            flow += _trade_flow_usd(trade, converter)
        realized_pnl += realized_by_day.get(day, 0.0)

        value = 0.0
        cost_basis = 0.0
        for ticker, state in positions.items():
            if state.shares <= 0:
                continue
            cost_basis += float(state.total_cost_usd)
            price = close_on(closes.get(ticker), day, lookback_days)
            if price is None:
                logger.debug(f"No close for {ticker} near {day}, valuing at 0")
                continue
            value += float(state.shares) * converter.to_usd(price, currencies.get(ticker))

        if prev_value is not None and prev_value > 0:
            daily_return = (value - flow) / prev_value - 1
            twr = (1 + twr) * (1 + daily_return) - 1
        prev_value = value

        benchmark_twr = None
        bench_close = close_on(benchmark_closes, day, lookback_days)
        if bench_close is not None and bench_close > 0:
            if benchmark_base is None:
                benchmark_base = bench_close
            benchmark_twr = bench_close / benchmark_base - 1

        entries.append(
            PerformanceEntry(
                date=day,
                twr=twr,
                benchmark_twr=benchmark_twr,
                total_value=value,
                cost_basis=cost_basis,
                realized_pnl=realized_pnl,
            )
        )
        day += timedelta(days=1)

    return entries


def _apply(positions: dict[str, PositionState], trade: Trade, converter: CurrencyConverter) -> None:
    ticker = trade.ticker.upper()
    state = positions.get(ticker)
    if state is None:
        state = positions[ticker] = PositionState(ticker)
    state.apply(trade, converter)
