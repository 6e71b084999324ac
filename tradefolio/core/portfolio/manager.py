"""
Portfolio management facade over the valuation engine.

Wires the pure pipeline together for request handlers and the CLI:
- Holdings with weighted average cost basis
- FIFO realized P&L records and win/loss statistics
- Portfolio summary (cash, FX P&L, allocation, total return)
- Performance windows re-based to 0% and value statistics
- Daily history reconstruction

The manager holds configuration only. Trades, prices, rates and cash are
passed in on every call and nothing is cached between calls.
"""

import logging
from datetime import date, datetime
from typing import Iterable, Mapping, Optional, Sequence, Union

from tradefolio.config import Config
from tradefolio.config import config as default_config
from tradefolio.core.portfolio.cash import cash_balances as ledger_balances
from tradefolio.core.portfolio.history import build_daily_history
from tradefolio.core.portfolio.holdings import aggregate_holdings
from tradefolio.core.portfolio.models import (
    CashTransaction,
    Holding,
    NormalizedEntry,
    PerformanceEntry,
    PerformanceStats,
    PortfolioSummary,
    PriceData,
    RealizedGainRecord,
    RealizedPnLStats,
    Trade,
)
from tradefolio.core.portfolio.performance import (
    get_performance_stats,
    normalize_performance,
    select_window,
)
from tradefolio.core.portfolio.realized import (
    compute_realized_gains,
    filter_realized_gains,
    summarize_realized_gains,
)
from tradefolio.core.portfolio.summary import build_summary

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


class PortfolioManager:
    """
    Computes portfolio views from a trade log and market inputs.

    Rates missing from a supplied table fall back to the configured defaults
    (``Config.fallback_rates``), matching how the API layer fills in rates
    when the FX provider is down.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or default_config

    def resolve_rates(self, rates: Optional[Mapping[str, float]] = None) -> dict[str, float]:
        """Supplied rates over configured fallbacks; USD is always 1."""
        resolved = dict(self.config.fallback_rates)
        for code, rate in (rates or {}).items():
            if rate and rate > 0:
                resolved[code.upper()] = float(rate)
            else:
                logger.warning(f"Ignoring non-positive rate for {code}: {rate!r}")
        resolved["USD"] = 1.0
        return resolved

    def get_holdings(
        self,
        trades: Iterable[Trade],
        prices: Optional[Mapping[str, PriceData]] = None,
        rates: Optional[Mapping[str, float]] = None,
    ) -> list[Holding]:
        """
        Get all current holdings, highest market value first.

        Allocation is 0 on these; use get_portfolio_summary for weighted holdings.
        """
        return aggregate_holdings(trades, prices, self.resolve_rates(rates))

    def get_realized_gains(
        self,
        trades: Iterable[Trade],
        rates: Optional[Mapping[str, float]] = None,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
        ticker: Optional[str] = None,
    ) -> list[RealizedGainRecord]:
        """
        FIFO realized-gain records, newest first.

        Matching always runs over the full trade log; the date and ticker
        filters apply to the resulting records only.
        """
        records = compute_realized_gains(trades, self.resolve_rates(rates))
        return filter_realized_gains(records, start=start, end=end, ticker=ticker)

    def get_realized_summary(
        self,
        trades: Iterable[Trade],
        rates: Optional[Mapping[str, float]] = None,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
        ticker: Optional[str] = None,
    ) -> RealizedPnLStats:
        """Win/loss statistics for the realized records in range."""
        return summarize_realized_gains(
            self.get_realized_gains(trades, rates, start=start, end=end, ticker=ticker)
        )

    def get_portfolio_summary(
        self,
        trades: Sequence[Trade],
        prices: Optional[Mapping[str, PriceData]] = None,
        rates: Optional[Mapping[str, float]] = None,
        cash_balances: Optional[Mapping[str, float]] = None,
        cash_transactions: Optional[Iterable[CashTransaction]] = None,
        fx_quotes: Optional[Mapping[str, PriceData]] = None,
        display_currency: Optional[str] = None,
    ) -> PortfolioSummary:
        """
        Full portfolio summary: holdings -> FIFO records -> aggregates.

        Args:
            trades: Full trade log
            prices: Current quotes keyed by ticker
            rates: Units of currency per USD
            cash_balances: Native cash per currency
            cash_transactions: Ledger to derive balances from when
                ``cash_balances`` is not given
            fx_quotes: FX quotes keyed by pair symbol for FX P&L
            display_currency: Reporting currency (default from config)

        Returns:
            PortfolioSummary in the display currency
        """
        trades = list(trades)
        resolved = self.resolve_rates(rates)

        if cash_balances is None and cash_transactions is not None:
            cash_balances = ledger_balances(cash_transactions)

        holdings = aggregate_holdings(trades, prices, resolved)
        realized = compute_realized_gains(trades, resolved)

        summary = build_summary(
            holdings,
            rates=resolved,
            cash_balances=cash_balances,
            fx_quotes=fx_quotes,
            realized_gains=realized,
            display_currency=display_currency or self.config.display_currency,
        )
        logger.debug(
            f"Summary: {len(summary.holdings)} holdings, "
            f"value={summary.total_portfolio_value:,.2f} {summary.currency}"
        )
        return summary

    def get_performance(
        self,
        history: Iterable[PerformanceEntry],
        as_of: DateLike,
        period: Optional[str] = None,
    ) -> list[NormalizedEntry]:
        """
        Re-based performance for a named period ending at ``as_of``.

        Returns:
            Normalized entries, or an empty list if the period holds fewer
            than 2 history entries
        """
        window = select_window(history, period or self.config.default_period, as_of)
        return normalize_performance(window)

    def get_performance_stats(
        self,
        history: Iterable[PerformanceEntry],
        as_of: DateLike,
        period: Optional[str] = None,
    ) -> Optional[PerformanceStats]:
        """Value statistics for the period, or None with insufficient data."""
        window = select_window(history, period or self.config.default_period, as_of)
        return get_performance_stats(window)

    def get_history(
        self,
        trades: Iterable[Trade],
        closes: Mapping[str, Mapping[date, float]],
        start: DateLike,
        end: DateLike,
        rates: Optional[Mapping[str, float]] = None,
        currencies: Optional[Mapping[str, str]] = None,
        benchmark_closes: Optional[Mapping[date, float]] = None,
    ) -> list[PerformanceEntry]:
        """Rebuild the daily history series from ``start`` to ``end``."""
        return build_daily_history(
            trades,
            closes,
            start,
            end,
            rates=self.resolve_rates(rates),
            currencies=currencies,
            benchmark_closes=benchmark_closes,
            lookback_days=self.config.price_lookback_days,
        )
