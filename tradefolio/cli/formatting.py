"""Centralized formatting utilities for CLI output.

Provides consistent colors, money and percent formatting across all CLI
commands using Rich markup.
"""

from typing import Optional

from rich.console import Console


# =============================================================================
# Standard Padding & Borders
# =============================================================================

TABLE_PADDING = (0, 2)

BORDER_PRIMARY = "blue"  # Main content panels

# Missing value indicator
MISSING = "-"

# Currencies quoted without minor units
ZERO_DECIMAL_CURRENCIES = {"HUF", "JPY"}

CURRENCY_SYMBOLS = {
    "USD": "$",
}


# =============================================================================
# Color Functions
# =============================================================================


def gain_color(value: Optional[float]) -> str:
    """Get Rich color for a gain or loss."""
    if value is None:
        return "dim"
    if value > 0:
        return "green"
    elif value < 0:
        return "red"
    else:
        return "white"


# =============================================================================
# Value Formatting
# =============================================================================


def format_currency(amount: float, currency: str = "USD") -> str:
    """
    Format a money amount for display.

    HUF and JPY are shown without decimals. USD uses its symbol; other
    currencies get a trailing code (ASCII-safe for Windows consoles).

    Examples:
        format_currency(1234.5) -> "$1,234.50"
        format_currency(-10, "EUR") -> "-10.00 EUR"
        format_currency(123456.7, "HUF") -> "123,457 HUF"
    """
    currency = currency.upper()
    decimals = 0 if currency in ZERO_DECIMAL_CURRENCIES else 2
    sign = "-" if round(amount, decimals) < 0 else ""
    digits = f"{abs(amount):,.{decimals}f}"
    symbol = CURRENCY_SYMBOLS.get(currency)
    if symbol:
        return f"{sign}{symbol}{digits}"
    return f"{sign}{digits} {currency}"


def format_percentage(value: Optional[float], decimals: int = 2) -> str:
    """Signed percentage, e.g. ``+12.34%``; MISSING for None."""
    if value is None:
        return MISSING
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{decimals}f}%"


def colored(text: str, value: Optional[float]) -> str:
    """Wrap text in the gain/loss color for ``value``."""
    color = gain_color(value)
    return f"[{color}]{text}[/{color}]"


def print_empty_state(console: Console, entity: str, hint: str) -> None:
    """
    Print standardized empty state message.

    Args:
        console: Rich console instance
        entity: What's empty (e.g., "holdings", "realized trades")
        hint: What to add to the input file
    """
    console.print(f"[yellow]No {entity} found.[/yellow]")
    console.print(f"[dim]{hint}[/dim]")
