"""
Currency conversion against a USD-anchored rate table.

Rates are expressed as units of a currency per 1 USD, the way the FX quote
symbols ``USD<CUR>=X`` are quoted:

    {"USD": 1.0, "EUR": 0.92, "HUF": 350.0}

so converting to USD divides by the rate and converting out of USD multiplies.
"""

import logging
from decimal import Decimal
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

BASE_CURRENCY = "USD"


def fx_pair(currency: str) -> str:
    """Quote symbol for the USD -> ``currency`` rate, e.g. ``USDEUR=X``."""
    return f"{BASE_CURRENCY}{currency.upper()}=X"


class CurrencyConverter:
    """
    Stateless converter over a rate table.

    A currency that is missing from the table, or carries a zero or negative
    rate, converts at 1 (treated as USD). Price availability is an external
    concern; the converter never raises for it.
    """

    def __init__(self, rates: Optional[Mapping[str, float]] = None):
        self._rates = {
            code.upper(): float(rate) for code, rate in (rates or {}).items()
        }
        self._rates.setdefault(BASE_CURRENCY, 1.0)

    @property
    def rates(self) -> dict[str, float]:
        return dict(self._rates)

    def has_rate(self, currency: Optional[str]) -> bool:
        """True when ``currency`` is USD or carries a positive rate."""
        code = (currency or BASE_CURRENCY).upper()
        return code == BASE_CURRENCY or self._rates.get(code, 0.0) > 0

    def rate(self, currency: Optional[str]) -> float:
        """Units of ``currency`` per 1 USD (1.0 when unknown)."""
        if not currency:
            return 1.0
        code = currency.upper()
        rate = self._rates.get(code)
        if rate is None or rate <= 0:
            if code != BASE_CURRENCY:
                logger.debug(f"No usable rate for {code}, converting at 1.0")
            return 1.0
        return rate

    def to_usd(self, amount: float, currency: Optional[str]) -> float:
        return amount / self.rate(currency)

    def from_usd(self, amount: float, currency: Optional[str]) -> float:
        return amount * self.rate(currency)

    def convert(self, amount: float, from_currency: Optional[str], to_currency: Optional[str]) -> float:
        """Convert between two currencies via USD."""
        if (from_currency or BASE_CURRENCY).upper() == (to_currency or BASE_CURRENCY).upper():
            return amount
        return self.from_usd(self.to_usd(amount, from_currency), to_currency)

    def to_usd_decimal(self, amount: Decimal, currency: Optional[str]) -> Decimal:
        """Decimal variant used by the cost-basis folds."""
        return amount / Decimal(str(self.rate(currency)))
