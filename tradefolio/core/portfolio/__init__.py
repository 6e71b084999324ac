"""Portfolio aggregation and valuation engine."""

from tradefolio.core.portfolio.cash import cash_balances, cash_flow_summary
from tradefolio.core.portfolio.currency import CurrencyConverter, fx_pair
from tradefolio.core.portfolio.history import build_daily_history
from tradefolio.core.portfolio.holdings import aggregate_holdings
from tradefolio.core.portfolio.manager import PortfolioManager
from tradefolio.core.portfolio.models import (
    CashTransaction,
    CashTransactionType,
    Holding,
    NormalizedEntry,
    PerformanceEntry,
    PortfolioSummary,
    PriceData,
    RealizedGainRecord,
    Trade,
    TradeAction,
)
from tradefolio.core.portfolio.performance import (
    get_performance_stats,
    normalize_performance,
    select_window,
)
from tradefolio.core.portfolio.realized import (
    compute_realized_gains,
    summarize_realized_gains,
)
from tradefolio.core.portfolio.summary import build_summary, to_display_currency

__all__ = [
    "CashTransaction",
    "CashTransactionType",
    "CurrencyConverter",
    "Holding",
    "NormalizedEntry",
    "PerformanceEntry",
    "PortfolioManager",
    "PortfolioSummary",
    "PriceData",
    "RealizedGainRecord",
    "Trade",
    "TradeAction",
    "aggregate_holdings",
    "build_daily_history",
    "build_summary",
    "cash_balances",
    "cash_flow_summary",
    "compute_realized_gains",
    "fx_pair",
    "get_performance_stats",
    "normalize_performance",
    "select_window",
    "summarize_realized_gains",
    "to_display_currency",
]
