"""Root logging configuration for the CLI."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str = "WARNING") -> None:
    """
    Configure centralized application logging.

    Library modules only call ``logging.getLogger(__name__)``; handlers are
    installed here, once, by the entry point. Output goes to stderr so
    ``--json`` output on stdout stays machine-readable.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
