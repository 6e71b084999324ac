"""Tests for the multi-currency cash ledger."""

from datetime import date, datetime, timezone

import pytest

from tradefolio.core.portfolio.cash import cash_balances, cash_flow_summary, signed_amount
from tradefolio.core.portfolio.models import CashTransaction, CashTransactionType


def _txn(kind: str, amount: float, currency: str = "USD", day: int = 1) -> CashTransaction:
    return CashTransaction(
        transaction_type=CashTransactionType(kind),
        amount=amount,
        currency=currency,
        transaction_date=datetime(2024, 1, day, tzinfo=timezone.utc),
    )


class TestSignedAmount:
    """Ledger sign conventions."""

    @pytest.mark.parametrize("kind", ["DEPOSIT", "DIVIDEND", "INTEREST"])
    def test_inflows_positive(self, kind):
        assert signed_amount(_txn(kind, -50.0)) == 50.0

    @pytest.mark.parametrize("kind", ["WITHDRAWAL", "FEE", "TAX"])
    def test_outflows_negative(self, kind):
        assert signed_amount(_txn(kind, 50.0)) == -50.0
        assert signed_amount(_txn(kind, -50.0)) == -50.0

    def test_adjustment_keeps_sign(self):
        assert signed_amount(_txn("ADJUSTMENT", -12.5)) == -12.5
        assert signed_amount(_txn("ADJUSTMENT", 12.5)) == 12.5


class TestCashBalances:
    """Per-currency balances."""

    def test_balances_by_currency(self):
        ledger = [
            _txn("DEPOSIT", 1000.0),
            _txn("WITHDRAWAL", 200.0),
            _txn("DEPOSIT", 500.0, "EUR"),
            _txn("FEE", 5.0, "EUR"),
            _txn("DIVIDEND", 35000.0, "HUF"),
        ]
        assert cash_balances(ledger) == {"USD": 800.0, "EUR": 495.0, "HUF": 35000.0}

    def test_empty(self):
        assert cash_balances([]) == {}


class TestCashFlowSummary:
    """Totals over a date range."""

    def test_totals(self):
        ledger = [
            _txn("DEPOSIT", 1000.0, day=1),
            _txn("DIVIDEND", 20.0, day=5),
            _txn("FEE", 3.0, day=6),
            _txn("TAX", 2.0, day=6),
            _txn("WITHDRAWAL", 100.0, day=9),
        ]
        summary = cash_flow_summary(ledger)

        assert summary.total_deposits == 1000.0
        assert summary.total_withdrawals == 100.0
        assert summary.total_dividends == 20.0
        assert summary.total_fees == 5.0
        assert summary.counts_by_type == {"DEPOSIT": 1, "DIVIDEND": 1, "FEE": 1, "TAX": 1, "WITHDRAWAL": 1}
        assert summary.balances == {"USD": 915.0}

    def test_date_range_inclusive(self):
        ledger = [
            _txn("DEPOSIT", 1.0, day=1),
            _txn("DEPOSIT", 2.0, day=5),
            _txn("DEPOSIT", 4.0, day=9),
        ]
        summary = cash_flow_summary(ledger, start=date(2024, 1, 5), end=date(2024, 1, 9))
        assert summary.total_deposits == 6.0
