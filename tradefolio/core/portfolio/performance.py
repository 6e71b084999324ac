"""
Performance series: window selection, re-basing, and value statistics.

History is stored as cumulative time-weighted return since inception. Charts
show arbitrary periods, so a window is re-based to start at 0% for both the
portfolio and the benchmark.
"""

import calendar
import logging
import statistics
from datetime import date, datetime
from operator import attrgetter
from typing import Iterable, Optional, Sequence, Union

from tradefolio.core.portfolio.models import (
    DayReturn,
    NormalizedEntry,
    PerformanceEntry,
    PerformanceStats,
)
from tradefolio.utils import as_date

logger = logging.getLogger(__name__)

PERIOD_MONTHS = {"1M": 1, "3M": 3, "6M": 6, "1Y": 12}


def _rebase(cumulative: float, start: float) -> float:
    """Cumulative return since ``start``, in percent."""
    base = 1 + start
    if base == 0:
        return 0.0
    return ((1 + cumulative) / base - 1) * 100


def normalize_performance(series: Sequence[PerformanceEntry]) -> list[NormalizedEntry]:
    """
    Re-base a pre-filtered, date-ascending window so it starts at 0%.

    Args:
        series: History entries for the requested window

    Returns:
        One NormalizedEntry per input entry, or an empty list when the window
        holds fewer than 2 entries (not enough data to show a return).
    """
    if len(series) < 2:
        logger.debug(f"Window has {len(series)} entries, need at least 2 to normalize")
        return []

    start_twr = series[0].twr
    # Benchmark history can start later than the portfolio's
    start_bench = next(
        (e.benchmark_twr for e in series if e.benchmark_twr is not None), None
    )

    normalized = []
    for entry in series:
        benchmark = None
        if entry.benchmark_twr is not None and start_bench is not None:
            benchmark = _rebase(entry.benchmark_twr, start_bench)
        normalized.append(
            NormalizedEntry(
                date=entry.date,
                portfolio=_rebase(entry.twr, start_twr),
                benchmark=benchmark,
                value=entry.total_value,
                cost_basis=entry.cost_basis,
            )
        )
    return normalized


def _subtract_months(day: date, months: int) -> date:
    """Same day ``months`` earlier, clamped to the end of shorter months."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def window_start(period: str, as_of: Union[date, datetime]) -> Optional[date]:
    """
    First date of a named period ending at ``as_of``.

    Returns None for ``ALL`` (no lower bound).

    Raises:
        ValueError: If the period is not 1M, 3M, 6M, 1Y, YTD, or ALL
    """
    period = period.upper()
    today = as_date(as_of)
    if period == "ALL":
        return None
    if period == "YTD":
        return date(today.year, 1, 1)
    if period in PERIOD_MONTHS:
        return _subtract_months(today, PERIOD_MONTHS[period])
    raise ValueError(f"Unknown period: {period!r}")


def select_window(
    series: Iterable[PerformanceEntry],
    period: str,
    as_of: Union[date, datetime],
) -> list[PerformanceEntry]:
    """Entries between the period start and ``as_of`` (inclusive), date ascending."""
    start = window_start(period, as_of)
    end = as_date(as_of)
    window = [
        entry
        for entry in series
        if (start is None or entry.date >= start) and entry.date <= end
    ]
    window.sort(key=lambda e: e.date)
    return window


def _day_returns(series: Sequence[PerformanceEntry]) -> list[DayReturn]:
    """Day-over-day returns chained out of the cumulative TWR."""
    returns = []
    for prev, current in zip(series, series[1:]):
        if 1 + prev.twr == 0:
            continue
        returns.append(DayReturn(
            date=current.date,
            return_percent=_rebase(current.twr, prev.twr),
            value_change=current.total_value - prev.total_value,
        ))
    return returns


def _max_drawdown(values: Iterable[float]) -> float:
    """Worst peak-to-trough decline, in percent (<= 0)."""
    worst = 0.0
    peak = 0.0
    for value in values:
        peak = max(peak, value)
        if peak > 0:
            worst = min(worst, (value - peak) / peak * 100)
    return worst


def get_performance_stats(series: Sequence[PerformanceEntry]) -> Optional[PerformanceStats]:
    """
    Statistics over a date-ascending history window.

    ``total_return`` and the drawdowns follow raw portfolio value, so a large
    deposit shows up in them. Daily returns, ``twr_return``, volatility and
    best/worst day come from the TWR series and are flow-neutral.

    Returns:
        PerformanceStats, or None with fewer than 2 entries
    """
    if len(series) < 2:
        return None

    first, last = series[0], series[-1]
    peak_value = max(e.total_value for e in series)
    day_returns = _day_returns(series)
    daily = [d.return_percent for d in day_returns]

    total_return = 0.0
    if first.total_value:
        total_return = (last.total_value - first.total_value) / first.total_value * 100

    return PerformanceStats(
        total_return=total_return,
        total_return_dollars=last.total_value - first.total_value,
        twr_return=_rebase(last.twr, first.twr),
        peak_value=peak_value,
        current_drawdown=(last.total_value - peak_value) / peak_value * 100 if peak_value > 0 else 0.0,
        max_drawdown=_max_drawdown(e.total_value for e in series),
        avg_daily_return=statistics.fmean(daily) if daily else 0.0,
        volatility=statistics.stdev(daily) if len(daily) > 1 else 0.0,
        best_day=max(day_returns, key=attrgetter("return_percent"), default=None),
        worst_day=min(day_returns, key=attrgetter("return_percent"), default=None),
        days_tracked=len(series),
    )
