"""
Realized P&L with FIFO lot matching.

Each BUY opens a tax lot (cost per share includes the buy fee, in USD). Each
SELL consumes the oldest open lots first and produces exactly one
RealizedGainRecord, with cost basis weighted across every lot it touched and
the holding period measured from the oldest of them.

Also provides the reporting helpers over those records: date/ticker filters
and win/loss statistics.
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Union

from tradefolio.core.portfolio.currency import CurrencyConverter
from tradefolio.core.portfolio.holdings import ZERO, sort_trades
from tradefolio.core.portfolio.models import (
    RealizedGainRecord,
    RealizedPnLStats,
    TickerRealizedPnL,
    Trade,
    TradeAction,
)
from tradefolio.utils import as_date, to_decimal, to_naive_utc

logger = logging.getLogger(__name__)


@dataclass
class _OpenLot:
    quantity_remaining: Decimal
    cost_per_share: Decimal  # USD, buy fee spread across the lot
    purchase_date: datetime


def _open_lot(trade: Trade, converter: CurrencyConverter) -> _OpenLot:
    qty = to_decimal(trade.quantity)
    return _OpenLot(
        quantity_remaining=qty,
        cost_per_share=converter.to_usd_decimal(trade.total_cost, trade.currency) / qty,
        purchase_date=trade.timestamp,
    )


def _consume_lots(
    lots: deque,
    sell: Trade,
    converter: CurrencyConverter,
) -> RealizedGainRecord:
    """
    Consume open lots front-first for one SELL.

    Any quantity left once the queue is empty is an oversold position; it is
    matched at zero cost and reported through ``unmatched_quantity``.
    """
    quantity = to_decimal(sell.quantity)
    remaining = quantity
    lots_cost_total = ZERO
    oldest_lot_date: Optional[datetime] = None

    while remaining > 0 and lots:
        lot = lots[0]
        take = min(lot.quantity_remaining, remaining)

        if oldest_lot_date is None:
            oldest_lot_date = lot.purchase_date
        lots_cost_total += lot.cost_per_share * take

        lot.quantity_remaining -= take
        remaining -= take
        if lot.quantity_remaining <= 0:
            lots.popleft()

    if remaining > 0:
        logger.warning(
            f"{sell.ticker}: sell of {sell.quantity} on {sell.timestamp:%Y-%m-%d} "
            f"exceeds open lots by {remaining}; unmatched shares carry zero cost"
        )

    cost_basis = lots_cost_total / quantity
    sale_price = converter.to_usd_decimal(to_decimal(sell.price_per_share), sell.currency)
    realized_gain = quantity * (sale_price - cost_basis)
    realized_gain_percent = (
        (sale_price - cost_basis) / cost_basis * 100 if cost_basis > 0 else ZERO
    )
    holding_period_days = (
        (as_date(sell.timestamp) - as_date(oldest_lot_date)).days
        if oldest_lot_date is not None
        else 0
    )

    return RealizedGainRecord(
        ticker=sell.ticker.upper(),
        quantity=float(quantity),
        cost_basis=float(cost_basis),
        sale_price=float(sale_price),
        realized_gain=float(realized_gain),
        realized_gain_percent=float(realized_gain_percent),
        holding_period_days=holding_period_days,
        closed_at=sell.timestamp,
        trade_id=sell.id or None,
        unmatched_quantity=float(remaining),
    )


def compute_realized_gains(
    trades: Iterable[Trade],
    rates: Optional[Mapping[str, float]] = None,
) -> list[RealizedGainRecord]:
    """
    Match every SELL against FIFO lots.

    Args:
        trades: Full trade log, any order (sorted by timestamp here)
        rates: Units of currency per USD for non-USD trades

    Returns:
        One RealizedGainRecord per SELL, in chronological order
    """
    converter = CurrencyConverter(rates)
    open_lots: dict[str, deque] = {}
    records = []

    for trade in sort_trades(trades):
        lots = open_lots.setdefault(trade.ticker.upper(), deque())
        if trade.action == TradeAction.BUY:
            lots.append(_open_lot(trade, converter))
        else:
            records.append(_consume_lots(lots, trade, converter))

    return records


def filter_realized_gains(
    records: Iterable[RealizedGainRecord],
    start: Optional[Union[date, datetime]] = None,
    end: Optional[Union[date, datetime]] = None,
    ticker: Optional[str] = None,
) -> list[RealizedGainRecord]:
    """Records closed within [start, end] (inclusive, by date), newest first."""
    ticker = ticker.upper() if ticker else None
    start_d = as_date(start) if start else None
    end_d = as_date(end) if end else None

    selected = []
    for record in records:
        closed = to_naive_utc(record.closed_at).date()
        if ticker and record.ticker != ticker:
            continue
        if start_d and closed < start_d:
            continue
        if end_d and closed > end_d:
            continue
        selected.append(record)

    selected.sort(key=lambda r: to_naive_utc(r.closed_at), reverse=True)
    return selected


def summarize_realized_gains(records: Iterable[RealizedGainRecord]) -> RealizedPnLStats:
    """
    Win/loss statistics over realized-gain records.

    A zero-gain sale counts as a win. Averages are 0 when their side is empty.
    """
    records = list(records)
    gains = [r.realized_gain for r in records]
    wins = [g for g in gains if g >= 0]
    losses = [g for g in gains if g < 0]

    by_ticker: dict[str, TickerRealizedPnL] = {}
    for record in records:
        entry = by_ticker.setdefault(record.ticker, TickerRealizedPnL(0.0, 0, 0.0))
        entry.total_gain += record.realized_gain
        entry.count += 1
        entry.avg_gain_percent += record.realized_gain_percent
    for entry in by_ticker.values():
        entry.avg_gain_percent /= entry.count

    return RealizedPnLStats(
        total_realized_gain=sum(gains),
        total_trades=len(records),
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=(len(wins) / len(records) * 100) if records else 0.0,
        avg_gain=(sum(wins) / len(wins)) if wins else 0.0,
        avg_loss=(sum(losses) / len(losses)) if losses else 0.0,
        biggest_win=max(wins) if wins else 0.0,
        biggest_loss=min(losses) if losses else 0.0,
        by_ticker=by_ticker,
    )
