"""Main Typer application — imports and registers all CLI commands.

Entry point: ``marketledger`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from marketledger.cli.commands.demo import demo_cmd
from marketledger.cli.commands.inspect_cmd import (
    events_cmd,
    info_cmd,
    item_cmd,
    items_cmd,
    verify_cmd,
)
from marketledger.config import config

app = typer.Typer(
    name="marketledger",
    help="Marketledger: fixed-price asset marketplace with escrowed custody.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        config.log_level, "--log-level", help="Logging level for library output."
    ),
) -> None:
    """Configure logging before any command runs."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=config.debug)],
        force=True,
    )


# Register subcommands
app.command(name="demo", help="Run a complete list-and-buy demo scenario.")(demo_cmd)
app.command(name="info", help="Show marketplace fee configuration.")(info_cmd)
app.command(name="items", help="List items in a ledger.")(items_cmd)
app.command(name="item", help="Show one item and its total price.")(item_cmd)
app.command(name="events", help="Show the notification log.")(events_cmd)
app.command(name="verify", help="Verify the notification log hash chain.")(verify_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
