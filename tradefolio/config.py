"""
Configuration management for Tradefolio.

Centralizes all configuration from environment variables with sensible defaults.
The core computation never reads this module; only the PortfolioManager facade
and the CLI pull defaults from here.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

SUPPORTED_PERIODS = ("1M", "3M", "6M", "1Y", "YTD", "ALL")


@dataclass
class Config:
    """
    Application configuration loaded from environment variables.

    Optional:
        TRADEFOLIO_DISPLAY_CURRENCY: Reporting currency for summaries (default USD)
        TRADEFOLIO_DEFAULT_PERIOD: Performance window (1M, 3M, 6M, 1Y, YTD, ALL)
        TRADEFOLIO_PRICE_LOOKBACK_DAYS: Days to look back for a missing close
        TRADEFOLIO_FALLBACK_EUR_RATE: EUR per USD when no live rate is supplied
        TRADEFOLIO_FALLBACK_HUF_RATE: HUF per USD when no live rate is supplied
        TRADEFOLIO_LOG_LEVEL: Root log level for the CLI
    """

    display_currency: str = field(
        default_factory=lambda: os.getenv("TRADEFOLIO_DISPLAY_CURRENCY", "USD")
    )
    default_period: str = field(
        default_factory=lambda: os.getenv("TRADEFOLIO_DEFAULT_PERIOD", "1Y")
    )

    # ========================================================================
    # History reconstruction
    # Weekends and exchange holidays have no close; reuse the last one seen.
    # ========================================================================
    price_lookback_days: int = field(
        default_factory=lambda: int(
            os.getenv("TRADEFOLIO_PRICE_LOOKBACK_DAYS", "5")
        )
    )

    # ========================================================================
    # FX fallbacks (units of currency per 1 USD)
    # ========================================================================
    fallback_eur_rate: float = field(
        default_factory=lambda: float(
            os.getenv("TRADEFOLIO_FALLBACK_EUR_RATE", "0.92")
        )
    )
    fallback_huf_rate: float = field(
        default_factory=lambda: float(
            os.getenv("TRADEFOLIO_FALLBACK_HUF_RATE", "350")
        )
    )

    log_level: str = field(
        default_factory=lambda: os.getenv("TRADEFOLIO_LOG_LEVEL", "WARNING")
    )

    def __post_init__(self) -> None:
        """Normalize codes to upper case."""
        self.display_currency = self.display_currency.strip().upper()
        self.default_period = self.default_period.strip().upper()
        self.log_level = self.log_level.strip().upper()

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigError: If a value is out of range or unrecognized.
        """
        from tradefolio.core.exceptions import ConfigError

        if self.default_period not in SUPPORTED_PERIODS:
            raise ConfigError(
                f"Invalid TRADEFOLIO_DEFAULT_PERIOD: {self.default_period}. "
                f"Expected one of {', '.join(SUPPORTED_PERIODS)}"
            )
        if self.price_lookback_days < 0:
            raise ConfigError("TRADEFOLIO_PRICE_LOOKBACK_DAYS must be >= 0")
        if self.fallback_eur_rate <= 0 or self.fallback_huf_rate <= 0:
            raise ConfigError("Fallback FX rates must be positive")
        if len(self.display_currency) != 3 or not self.display_currency.isalpha():
            raise ConfigError(
                f"Invalid TRADEFOLIO_DISPLAY_CURRENCY: {self.display_currency!r}. "
                "Use a 3-letter ISO code such as USD or EUR"
            )

    @property
    def fallback_rates(self) -> dict[str, float]:
        """Rate table used when the FX provider is unavailable."""
        return {
            "USD": 1.0,
            "EUR": self.fallback_eur_rate,
            "HUF": self.fallback_huf_rate,
        }


# Global configuration instance
config = Config()
