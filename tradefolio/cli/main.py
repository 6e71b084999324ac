"""
Tradefolio CLI - portfolio aggregation and valuation.

Entry point for the command-line interface. Provides commands for:
- Portfolio summary (value, P&L, cash, FX effects)
- Holdings with weighted average cost basis
- FIFO realized gains
- Period performance against a benchmark
- Daily history reconstruction

Usage:
    tradefolio --help
    tradefolio portfolio summary book.json
    tradefolio portfolio holdings book.json --json
    tradefolio --verbose portfolio realized book.json
"""

import click
from rich.console import Console

from tradefolio import __version__
from tradefolio.cli.commands import portfolio
from tradefolio.config import config
from tradefolio.logging_setup import setup_logging

# Global console for rich output
console = Console()


@click.group()
@click.version_option(version=__version__, prog_name="tradefolio")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """
    Tradefolio - portfolio aggregation and valuation engine.

    Computes holdings, FIFO realized P&L, multi-currency summaries and
    period performance from a JSON bundle of trades and market data.

    \b
    Examples:
        tradefolio portfolio summary book.json           # Value the portfolio
        tradefolio portfolio summary book.json -c EUR    # Report in EUR
        tradefolio portfolio holdings book.json --json   # Output as JSON
        tradefolio portfolio performance book.json -p YTD
    """
    setup_logging("DEBUG" if verbose else config.log_level)
    ctx.ensure_object(dict)
    ctx.obj.setdefault("console", console)
    ctx.obj.setdefault("config", config)


cli.add_command(portfolio.portfolio)


def main() -> None:
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
