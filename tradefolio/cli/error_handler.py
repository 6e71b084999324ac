"""Shared CLI error handling decorator.

Catches the library's boundary errors in one place so commands only deal
with their own output. Commands can still handle command-specific
exceptions internally before the decorator catches the rest.

Usage:
    @click.command()
    @click.pass_context
    @handle_cli_errors
    def my_command(ctx, ...):
        ...
"""

import functools
import logging

import click
from rich.console import Console

from tradefolio.core.exceptions import (
    ConfigError,
    InputFileError,
    InvalidTradeError,
    TradefolioError,
)

logger = logging.getLogger(__name__)


def handle_cli_errors(f):
    """Decorator that catches Tradefolio exceptions with Rich-formatted output.

    Handles input, record and configuration errors with consistent
    formatting and exit code 1. Unexpected exceptions are logged with a
    traceback.

    Must be applied AFTER @click.pass_context so the first positional arg
    is the Click context (which provides the console via ctx.obj["console"]).
    """

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        ctx = click.get_current_context(silent=True)
        console = ctx.obj["console"] if ctx and ctx.obj and "console" in ctx.obj else Console()

        try:
            return f(*args, **kwargs)
        except SystemExit:
            raise
        except InputFileError as e:
            console.print(f"[red]Input Error:[/red] {e}")
            console.print("[dim]Check the file against the bundle format in `--help`.[/dim]")
            raise SystemExit(1)
        except InvalidTradeError as e:
            console.print(f"[red]Invalid Record:[/red] {e}")
            raise SystemExit(1)
        except ConfigError as e:
            console.print(f"[red]Configuration Error:[/red] {e}")
            console.print("[yellow]Check your TRADEFOLIO_* environment variables or .env file.[/yellow]")
            raise SystemExit(1)
        except TradefolioError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise SystemExit(1)
        except click.exceptions.Exit:
            raise
        except Exception as e:
            logger.exception("Unexpected error in %s command", f.__name__)
            console.print(f"[red]Unexpected error:[/red] {e}")
            raise SystemExit(1)

    return wrapper
