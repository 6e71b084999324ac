"""
Multi-currency cash ledger.

Balances are kept per currency in native units; USD normalization happens in
build_summary. Deposits, dividends and interest add to the balance;
withdrawals, fees and taxes subtract from it regardless of the sign they were
recorded with; adjustments apply their signed amount as-is.
"""

from datetime import date, datetime
from typing import Iterable, Optional, Union

from tradefolio.core.portfolio.models import CashFlowSummary, CashTransaction, CashTransactionType
from tradefolio.utils import as_date

_INFLOWS = {
    CashTransactionType.DEPOSIT,
    CashTransactionType.DIVIDEND,
    CashTransactionType.INTEREST,
}
_OUTFLOWS = {
    CashTransactionType.WITHDRAWAL,
    CashTransactionType.FEE,
    CashTransactionType.TAX,
}


def signed_amount(txn: CashTransaction) -> float:
    """Effect of one transaction on its currency's balance."""
    if txn.transaction_type in _INFLOWS:
        return abs(txn.amount)
    if txn.transaction_type in _OUTFLOWS:
        return -abs(txn.amount)
    return txn.amount


def cash_balances(transactions: Iterable[CashTransaction]) -> dict[str, float]:
    """Native balance per currency."""
    balances: dict[str, float] = {}
    for txn in transactions:
        currency = txn.currency.upper()
        balances[currency] = balances.get(currency, 0.0) + signed_amount(txn)
    return balances


def cash_flow_summary(
    transactions: Iterable[CashTransaction],
    start: Optional[Union[date, datetime]] = None,
    end: Optional[Union[date, datetime]] = None,
) -> CashFlowSummary:
    """
    Totals by transaction type over [start, end] (inclusive, by date).

    Totals mix currencies at face value, as the ledger report does; use
    ``balances`` for per-currency figures.
    """
    start_d = as_date(start) if start else None
    end_d = as_date(end) if end else None

    selected = []
    for txn in transactions:
        day = as_date(txn.transaction_date)
        if start_d and day < start_d:
            continue
        if end_d and day > end_d:
            continue
        selected.append(txn)

    totals: dict[str, float] = {}
    counts: dict[str, int] = {}
    for txn in selected:
        key = txn.transaction_type.value
        totals[key] = totals.get(key, 0.0) + signed_amount(txn)
        counts[key] = counts.get(key, 0) + 1

    return CashFlowSummary(
        balances=cash_balances(selected),
        totals_by_type=totals,
        counts_by_type=counts,
        total_deposits=totals.get("DEPOSIT", 0.0),
        total_withdrawals=abs(totals.get("WITHDRAWAL", 0.0)),
        total_dividends=totals.get("DIVIDEND", 0.0),
        total_fees=abs(totals.get("FEE", 0.0)) + abs(totals.get("TAX", 0.0)),
    )
