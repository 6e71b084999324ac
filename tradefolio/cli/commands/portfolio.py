"""Portfolio valuation commands over a JSON input bundle."""

import json
import logging
from dataclasses import asdict
from datetime import date
from typing import Any, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tradefolio.cli.error_handler import handle_cli_errors
from tradefolio.cli.formatting import (
    BORDER_PRIMARY,
    MISSING,
    TABLE_PADDING,
    colored,
    format_currency,
    format_percentage,
    print_empty_state,
)
from tradefolio.cli.inputs import load_bundle
from tradefolio.config import SUPPORTED_PERIODS, Config
from tradefolio.core.portfolio.manager import PortfolioManager

logger = logging.getLogger(__name__)

DATE_TYPE = click.DateTime(formats=["%Y-%m-%d"])


def _manager(ctx: click.Context) -> PortfolioManager:
    cfg: Config = ctx.obj["config"]
    cfg.validate()
    return PortfolioManager(cfg)


def _echo_json(data: Any) -> None:
    # Plain echo: Rich would wrap long lines and break the JSON
    click.echo(json.dumps(data, indent=2, default=str))


@click.group()
@click.pass_context
def portfolio(ctx: click.Context) -> None:
    """
    Value a portfolio from a JSON input bundle.

    The bundle holds the trade log plus market inputs (prices, FX rates,
    cash, performance history). See `tradefolio.cli.inputs` for the format.

    \b
    Examples:
        tradefolio portfolio summary book.json
        tradefolio portfolio summary book.json --currency HUF
        tradefolio portfolio holdings book.json --json
        tradefolio portfolio realized book.json --ticker AAPL
        tradefolio portfolio performance book.json --period YTD
        tradefolio portfolio history book.json --start 2024-01-01 --end 2024-03-31
    """
    pass


@portfolio.command("summary")
@click.argument("file", type=click.Path(dir_okay=False))
@click.option("--currency", "-c", default=None, help="Display currency (default from config)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def portfolio_summary(ctx: click.Context, file: str, currency: Optional[str], as_json: bool) -> None:
    """Show portfolio value, P&L, cash and FX effects."""
    console: Console = ctx.obj["console"]

    bundle = load_bundle(file)
    summary = _manager(ctx).get_portfolio_summary(
        bundle.trades,
        prices=bundle.prices,
        rates=bundle.rates,
        cash_balances=bundle.cash,
        cash_transactions=bundle.cash_transactions,
        fx_quotes=bundle.fx_quotes,
        display_currency=currency.upper() if currency else None,
    )

    if as_json:
        _echo_json(asdict(summary))
        return

    cur = summary.currency
    console.print(Panel.fit(f"[bold]Portfolio Summary[/bold] ({cur})", border_style=BORDER_PRIMARY))
    console.print()

    console.print(f"[cyan]Total Value:[/cyan] {format_currency(summary.total_portfolio_value, cur)}")
    console.print(f"[cyan]Market Value:[/cyan] {format_currency(summary.total_market_value, cur)}")
    console.print(f"[cyan]Cash:[/cyan] {format_currency(summary.cash_balance, cur)}")
    console.print(f"[cyan]Invested:[/cyan] {format_currency(summary.total_invested, cur)}")
    console.print()

    unrealized = colored(
        f"{format_currency(summary.total_gain, cur)} ({format_percentage(summary.total_gain_percent)})",
        summary.total_gain,
    )
    console.print(f"[cyan]Unrealized P&L:[/cyan] {unrealized}")
    console.print(
        f"[cyan]Realized P&L:[/cyan] "
        f"{colored(format_currency(summary.total_realized_gain, cur), summary.total_realized_gain)}"
    )
    console.print(
        f"[cyan]Total Return:[/cyan] "
        f"{colored(format_currency(summary.total_return, cur), summary.total_return)}"
    )
    console.print()

    daily = colored(
        f"{format_currency(summary.daily_pnl, cur)} ({format_percentage(summary.daily_pnl_percent)})",
        summary.daily_pnl,
    )
    console.print(f"[cyan]Today:[/cyan] {daily}")
    console.print(
        f"  [dim]Stocks:[/dim] {colored(format_currency(summary.stock_daily_pnl, cur), summary.stock_daily_pnl)}"
        f"  [dim]FX:[/dim] {colored(format_currency(summary.fx_pnl, cur), summary.fx_pnl)}"
    )

    if summary.cash_balances:
        console.print()
        balances = ", ".join(
            format_currency(amount, code) for code, amount in sorted(summary.cash_balances.items())
        )
        console.print(f"[dim]Cash by currency: {balances}[/dim]")

    if not summary.holdings:
        console.print()
        print_empty_state(console, "holdings", "Add BUY trades to the bundle's \"trades\" list.")


@portfolio.command("holdings")
@click.argument("file", type=click.Path(dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def portfolio_holdings(ctx: click.Context, file: str, as_json: bool) -> None:
    """List open positions with cost basis, P&L and allocation (USD)."""
    console: Console = ctx.obj["console"]

    bundle = load_bundle(file)
    summary = _manager(ctx).get_portfolio_summary(
        bundle.trades,
        prices=bundle.prices,
        rates=bundle.rates,
        cash_balances=bundle.cash,
        cash_transactions=bundle.cash_transactions,
        display_currency="USD",
    )
    holdings = summary.holdings

    if as_json:
        _echo_json([asdict(h) for h in holdings])
        return

    if not holdings:
        print_empty_state(console, "holdings", "Add BUY trades to the bundle's \"trades\" list.")
        return

    table = Table(title="Portfolio Holdings", padding=TABLE_PADDING)
    table.add_column("Ticker", style="cyan")
    table.add_column("Shares", justify="right")
    table.add_column("Avg Cost", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("P&L", justify="right")
    table.add_column("P&L %", justify="right")
    table.add_column("Day %", justify="right")
    table.add_column("Alloc %", justify="right")

    for h in holdings:
        table.add_row(
            h.ticker,
            f"{h.shares:,.2f}",
            format_currency(h.avg_cost_basis),
            format_currency(h.current_price) if h.current_price else MISSING,
            format_currency(h.market_value),
            colored(format_currency(h.unrealized_gain), h.unrealized_gain),
            colored(format_percentage(h.unrealized_gain_percent), h.unrealized_gain_percent),
            colored(format_percentage(h.day_change_percent), h.day_change_percent),
            f"{h.allocation:.1f}%",
        )

    console.print(table)
    console.print(f"\n[bold]Total Market Value: {format_currency(summary.total_market_value)}[/bold]")


@portfolio.command("realized")
@click.argument("file", type=click.Path(dir_okay=False))
@click.option("--ticker", "-t", default=None, help="Only this ticker")
@click.option("--start", type=DATE_TYPE, default=None, help="First sale date (YYYY-MM-DD)")
@click.option("--end", type=DATE_TYPE, default=None, help="Last sale date (YYYY-MM-DD)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def portfolio_realized(
    ctx: click.Context,
    file: str,
    ticker: Optional[str],
    start,
    end,
    as_json: bool,
) -> None:
    """Show FIFO realized gains per sale with win/loss statistics (USD)."""
    console: Console = ctx.obj["console"]

    bundle = load_bundle(file)
    manager = _manager(ctx)
    records = manager.get_realized_gains(bundle.trades, bundle.rates, start=start, end=end, ticker=ticker)
    stats = manager.get_realized_summary(bundle.trades, bundle.rates, start=start, end=end, ticker=ticker)

    if as_json:
        _echo_json({"records": [asdict(r) for r in records], "stats": asdict(stats)})
        return

    if not records:
        print_empty_state(console, "realized trades", "Realized gains appear once a SELL closes shares.")
        return

    table = Table(title="Realized Gains (FIFO)", padding=TABLE_PADDING)
    table.add_column("Date")
    table.add_column("Ticker", style="cyan")
    table.add_column("Shares", justify="right")
    table.add_column("Cost/Share", justify="right")
    table.add_column("Sale/Share", justify="right")
    table.add_column("Gain", justify="right")
    table.add_column("Gain %", justify="right")
    table.add_column("Days", justify="right")

    for r in records:
        table.add_row(
            r.closed_at.strftime("%Y-%m-%d"),
            r.ticker,
            f"{r.quantity:,.2f}",
            format_currency(r.cost_basis),
            format_currency(r.sale_price),
            colored(format_currency(r.realized_gain), r.realized_gain),
            colored(format_percentage(r.realized_gain_percent), r.realized_gain_percent),
            str(r.holding_period_days),
        )

    console.print(table)

    oversold = [r for r in records if r.unmatched_quantity > 0]
    if oversold:
        console.print(
            f"[yellow]{len(oversold)} sale(s) exceeded open lots; unmatched shares carry zero cost.[/yellow]"
        )
    console.print()
    console.print(
        f"[bold]Total:[/bold] {colored(format_currency(stats.total_realized_gain), stats.total_realized_gain)}"
        f"  [dim]Trades:[/dim] {stats.total_trades}"
        f"  [dim]Win rate:[/dim] {stats.win_rate:.1f}%"
    )
    console.print(
        f"[dim]Avg gain:[/dim] {format_currency(stats.avg_gain)}"
        f"  [dim]Avg loss:[/dim] {format_currency(stats.avg_loss)}"
    )


@portfolio.command("performance")
@click.argument("file", type=click.Path(dir_okay=False))
@click.option(
    "--period",
    "-p",
    type=click.Choice(SUPPORTED_PERIODS, case_sensitive=False),
    default=None,
    help="Window (default from config)",
)
@click.option("--as-of", type=DATE_TYPE, default=None, help="Window end date (default today)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def portfolio_performance(ctx: click.Context, file: str, period: Optional[str], as_of, as_json: bool) -> None:
    """Show period returns re-based to 0% against the benchmark."""
    console: Console = ctx.obj["console"]

    bundle = load_bundle(file)
    manager = _manager(ctx)
    as_of = as_of.date() if as_of else date.today()
    period = (period or manager.config.default_period).upper()

    series = manager.get_performance(bundle.history, as_of, period)
    stats = manager.get_performance_stats(bundle.history, as_of, period)
    logger.debug(f"Performance {period} as of {as_of}: {len(series)} entries")

    if as_json:
        _echo_json({
            "period": period,
            "as_of": as_of,
            "series": [asdict(e) for e in series],
            "stats": asdict(stats) if stats else None,
        })
        return

    if not series:
        print_empty_state(
            console,
            f"performance data for {period}",
            "At least 2 history entries inside the window are needed.",
        )
        return

    last = series[-1]
    console.print(Panel.fit(f"[bold]Performance {period}[/bold] to {as_of}", border_style=BORDER_PRIMARY))
    console.print()
    console.print(f"[cyan]Portfolio:[/cyan] {colored(format_percentage(last.portfolio), last.portfolio)}")
    console.print(f"[cyan]Benchmark:[/cyan] {colored(format_percentage(last.benchmark), last.benchmark)}")

    if stats:
        console.print()
        console.print(f"[cyan]Max Drawdown:[/cyan] {format_percentage(stats.max_drawdown)}")
        console.print(f"[cyan]Volatility (daily):[/cyan] {stats.volatility:.2f}%")
        console.print(f"[dim]Days tracked: {stats.days_tracked}[/dim]")


@portfolio.command("history")
@click.argument("file", type=click.Path(dir_okay=False))
@click.option("--start", type=DATE_TYPE, required=True, help="First day (YYYY-MM-DD)")
@click.option("--end", type=DATE_TYPE, required=True, help="Last day (YYYY-MM-DD)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@handle_cli_errors
def portfolio_history(ctx: click.Context, file: str, start, end, as_json: bool) -> None:
    """Rebuild the daily value and TWR series from trades and closes."""
    console: Console = ctx.obj["console"]

    bundle = load_bundle(file)
    entries = _manager(ctx).get_history(
        bundle.trades,
        bundle.closes,
        start,
        end,
        rates=bundle.rates,
        currencies=bundle.currencies,
        benchmark_closes=bundle.benchmark_closes,
    )

    if as_json:
        _echo_json([asdict(e) for e in entries])
        return

    if not entries:
        print_empty_state(console, "history entries", "Check that --end is not before --start.")
        return

    table = Table(title="Daily History (USD)", padding=TABLE_PADDING)
    table.add_column("Date")
    table.add_column("Value", justify="right")
    table.add_column("Cost Basis", justify="right")
    table.add_column("Realized", justify="right")
    table.add_column("TWR", justify="right")
    table.add_column("Benchmark", justify="right")

    for e in entries:
        table.add_row(
            e.date.isoformat(),
            format_currency(e.total_value),
            format_currency(e.cost_basis),
            format_currency(e.realized_pnl),
            colored(format_percentage(e.twr * 100), e.twr),
            format_percentage(e.benchmark_twr * 100) if e.benchmark_twr is not None else MISSING,
        )

    console.print(table)
