"""
Tests for FIFO realized P&L.

Validates that:
1. Each SELL produces exactly one record, weighted across consumed lots
2. Oldest lots are consumed first; partially consumed lots carry over
3. Buy fees are spread into lot cost; sell fees are not deducted
4. Holding period is measured from the oldest consumed lot
5. Oversold quantity is matched at zero cost and flagged
6. Filters and win/loss statistics over the records
"""

from datetime import date, datetime, timezone

import pytest

from tradefolio.core.portfolio.realized import (
    compute_realized_gains,
    filter_realized_gains,
    summarize_realized_gains,
)


def _dt(month: int, day: int) -> datetime:
    return datetime(2024, month, day, 12, tzinfo=timezone.utc)


class TestFIFOMatching:
    """FIFO: oldest lots consumed first."""

    def test_end_to_end_single_lot(self, aapl_trades):
        records = compute_realized_gains(aapl_trades)

        assert len(records) == 1
        r = records[0]
        assert r.ticker == "AAPL"
        assert r.quantity == pytest.approx(4)
        assert r.cost_basis == pytest.approx(100.1)
        assert r.sale_price == pytest.approx(150.0)
        assert r.realized_gain == pytest.approx(199.6)
        assert r.realized_gain_percent == pytest.approx((150 - 100.1) / 100.1 * 100)
        assert r.holding_period_days == 9
        assert r.trade_id == aapl_trades[1].id
        assert r.unmatched_quantity == 0.0

    def test_holding_period_counts_calendar_days(self, make_trade):
        trades = [
            make_trade("AAPL", "BUY", 10, 100.0, datetime(2024, 1, 1, 16, 0, tzinfo=timezone.utc)),
            make_trade("AAPL", "SELL", 4, 110.0, datetime(2024, 1, 10, 9, 30, tzinfo=timezone.utc)),
        ]
        records = compute_realized_gains(trades)
        assert records[0].holding_period_days == 9

    def test_sell_spanning_two_lots(self, make_trade):
        """BUY 10 @ 10, BUY 10 @ 20, SELL 15 -> cost (100 + 100) / 15."""
        trades = [
            make_trade("X", "BUY", 10, 10.0, _dt(1, 1)),
            make_trade("X", "BUY", 10, 20.0, _dt(2, 1)),
            make_trade("X", "SELL", 15, 30.0, _dt(3, 1)),
        ]
        records = compute_realized_gains(trades)

        assert len(records) == 1
        assert records[0].cost_basis == pytest.approx(200.0 / 15)
        assert records[0].cost_basis == pytest.approx(13.33, abs=0.005)
        assert records[0].realized_gain == pytest.approx(15 * 30.0 - 200.0)
        # Oldest consumed lot is the Jan 1 buy
        assert records[0].holding_period_days == (date(2024, 3, 1) - date(2024, 1, 1)).days

    def test_partial_lot_carries_over(self, make_trade):
        trades = [
            make_trade("X", "BUY", 10, 10.0, _dt(1, 1)),
            make_trade("X", "BUY", 10, 20.0, _dt(2, 1)),
            make_trade("X", "SELL", 15, 30.0, _dt(3, 1)),
            make_trade("X", "SELL", 5, 30.0, _dt(3, 5)),
        ]
        second = compute_realized_gains(trades)[1]

        # Remaining 5 shares all come from the Feb lot
        assert second.cost_basis == pytest.approx(20.0)
        assert second.realized_gain == pytest.approx(50.0)
        assert second.holding_period_days == (date(2024, 3, 5) - date(2024, 2, 1)).days

    def test_one_record_per_sell(self, make_trade):
        trades = [
            make_trade("X", "BUY", 3, 10.0, _dt(1, 1)),
            make_trade("X", "BUY", 3, 11.0, _dt(1, 2)),
            make_trade("X", "BUY", 3, 12.0, _dt(1, 3)),
            make_trade("X", "SELL", 8, 15.0, _dt(1, 4)),
            make_trade("Y", "BUY", 1, 10.0, _dt(1, 1)),
            make_trade("Y", "SELL", 1, 9.0, _dt(1, 5)),
        ]
        records = compute_realized_gains(trades)
        assert [r.ticker for r in records] == ["X", "Y"]

    def test_tickers_have_independent_queues(self, make_trade):
        trades = [
            make_trade("A", "BUY", 1, 100.0, _dt(1, 1)),
            make_trade("B", "BUY", 1, 10.0, _dt(1, 2)),
            make_trade("B", "SELL", 1, 12.0, _dt(1, 3)),
        ]
        r = compute_realized_gains(trades)[0]
        assert r.cost_basis == pytest.approx(10.0)

    def test_buy_fee_spread_across_lot(self, make_trade):
        trades = [
            make_trade("X", "BUY", 10, 10.0, _dt(1, 1), fees=5.0),
            make_trade("X", "SELL", 2, 12.0, _dt(1, 2)),
        ]
        r = compute_realized_gains(trades)[0]
        assert r.cost_basis == pytest.approx(10.5)
        assert r.realized_gain == pytest.approx(2 * (12.0 - 10.5))

    def test_sell_fee_not_deducted(self, make_trade):
        trades = [
            make_trade("X", "BUY", 1, 100.0, _dt(1, 1)),
            make_trade("X", "SELL", 1, 110.0, _dt(1, 2), fees=7.0),
        ]
        assert compute_realized_gains(trades)[0].realized_gain == pytest.approx(10.0)

    def test_foreign_currency_lots_in_usd(self, make_trade, rates):
        trades = [
            make_trade("SAP", "BUY", 10, 92.0, _dt(1, 1), currency="EUR"),
            make_trade("SAP", "SELL", 10, 115.0, _dt(1, 2), currency="EUR"),
        ]
        r = compute_realized_gains(trades, rates)[0]
        assert r.cost_basis == pytest.approx(100.0)
        assert r.sale_price == pytest.approx(125.0)
        assert r.realized_gain == pytest.approx(250.0)

    def test_unsorted_input_matches_chronologically(self, make_trade):
        trades = [
            make_trade("X", "SELL", 1, 30.0, _dt(3, 1)),
            make_trade("X", "BUY", 1, 20.0, _dt(2, 1)),
            make_trade("X", "BUY", 1, 10.0, _dt(1, 1)),
        ]
        assert compute_realized_gains(trades)[0].cost_basis == pytest.approx(10.0)

    def test_no_sells_no_records(self, make_trade):
        assert compute_realized_gains([make_trade("X", "BUY", 1, 10.0, _dt(1, 1))]) == []


class TestOversold:
    """Sells beyond open lots."""

    def test_unmatched_part_at_zero_cost(self, make_trade):
        trades = [
            make_trade("X", "BUY", 5, 10.0, _dt(1, 1)),
            make_trade("X", "SELL", 8, 20.0, _dt(1, 2)),
        ]
        r = compute_realized_gains(trades)[0]

        assert r.unmatched_quantity == pytest.approx(3)
        assert r.cost_basis == pytest.approx(50.0 / 8)
        assert r.realized_gain == pytest.approx(8 * 20.0 - 50.0)

    def test_sell_with_no_lots(self, make_trade):
        r = compute_realized_gains([make_trade("X", "SELL", 2, 20.0, _dt(1, 2))])[0]
        assert r.cost_basis == 0.0
        assert r.realized_gain_percent == 0.0
        assert r.holding_period_days == 0
        assert r.unmatched_quantity == pytest.approx(2)

    def test_oversell_logs_warning(self, make_trade, caplog):
        trades = [make_trade("X", "SELL", 2, 20.0, _dt(1, 2))]
        with caplog.at_level("WARNING", logger="tradefolio.core.portfolio.realized"):
            compute_realized_gains(trades)
        assert "exceeds open lots" in caplog.text


class TestFilterRealizedGains:
    """Date range and ticker filters."""

    @pytest.fixture
    def records(self, make_trade):
        trades = [
            make_trade("A", "BUY", 10, 10.0, _dt(1, 1)),
            make_trade("B", "BUY", 10, 10.0, _dt(1, 1)),
            make_trade("A", "SELL", 1, 12.0, _dt(2, 1)),
            make_trade("B", "SELL", 1, 8.0, _dt(3, 1)),
            make_trade("A", "SELL", 1, 15.0, _dt(4, 1)),
        ]
        return compute_realized_gains(trades)

    def test_newest_first(self, records):
        dates = [r.closed_at.date() for r in filter_realized_gains(records)]
        assert dates == sorted(dates, reverse=True)

    def test_inclusive_date_range(self, records):
        selected = filter_realized_gains(records, start=date(2024, 2, 1), end=date(2024, 3, 1))
        assert [r.ticker for r in selected] == ["B", "A"]

    def test_ticker_filter_case_insensitive(self, records):
        selected = filter_realized_gains(records, ticker="a")
        assert {r.ticker for r in selected} == {"A"}
        assert len(selected) == 2


class TestSummarizeRealizedGains:
    """Win/loss statistics."""

    def test_stats(self, make_trade):
        trades = [
            make_trade("A", "BUY", 10, 10.0, _dt(1, 1)),
            make_trade("A", "SELL", 5, 12.0, _dt(1, 2)),   # +10
            make_trade("A", "SELL", 5, 8.0, _dt(1, 3)),    # -10
            make_trade("B", "BUY", 1, 100.0, _dt(1, 1)),
            make_trade("B", "SELL", 1, 130.0, _dt(1, 4)),  # +30
        ]
        stats = summarize_realized_gains(compute_realized_gains(trades))

        assert stats.total_realized_gain == pytest.approx(30.0)
        assert stats.total_trades == 3
        assert stats.winning_trades == 2
        assert stats.losing_trades == 1
        assert stats.win_rate == pytest.approx(200 / 3)
        assert stats.avg_gain == pytest.approx(20.0)
        assert stats.avg_loss == pytest.approx(-10.0)
        assert stats.biggest_win == pytest.approx(30.0)
        assert stats.biggest_loss == pytest.approx(-10.0)
        assert stats.by_ticker["A"].count == 2
        assert stats.by_ticker["A"].total_gain == pytest.approx(0.0)
        assert stats.by_ticker["B"].avg_gain_percent == pytest.approx(30.0)

    def test_empty(self):
        stats = summarize_realized_gains([])
        assert stats.total_trades == 0
        assert stats.win_rate == 0.0
        assert stats.by_ticker == {}
