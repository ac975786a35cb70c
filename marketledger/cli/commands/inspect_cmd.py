"""Read-only inspection commands: ``info``, ``items``, ``item``, ``events``, ``verify``.

Each command reads the ledger database directly through ``MarketStore``;
none of them needs a custody adapter or changes state.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from marketledger.config import config
from marketledger.core.errors import LedgerIntegrityError
from marketledger.core.marketplace import compute_fee
from marketledger.core.store import MarketStore
from marketledger.core.units import format_amount
from marketledger.models.market import MarketplaceConfig
from marketledger.monitor.renderer import MarketRenderer

console = Console()

_LEDGER_OPTION = typer.Option(
    None,
    "--ledger",
    "-l",
    help="Path to the ledger SQLite database (default: MARKETLEDGER_LEDGER_PATH).",
)


def _open(ledger_db: Path | None) -> tuple[MarketStore, MarketplaceConfig]:
    db_path = Path(ledger_db) if ledger_db is not None else config.ledger_path
    if not db_path.exists():
        console.print(f"[bold red]Ledger not found:[/bold red] {db_path}")
        console.print("[dim]Create one first, e.g. with: marketledger demo --ledger PATH[/dim]")
        raise typer.Exit(code=1)
    store = MarketStore(db_path)
    market_config = store.get_config()
    if market_config is None:
        console.print(f"[bold red]Ledger has no marketplace configuration:[/bold red] {db_path}")
        raise typer.Exit(code=1)
    return store, market_config


def _chain_valid(store: MarketStore) -> bool:
    try:
        return store.verify_chain()
    except LedgerIntegrityError:
        return False


def info_cmd(ledger_db: Path = _LEDGER_OPTION) -> None:
    """Show fee configuration, item count and log health."""
    store, market_config = _open(ledger_db)
    renderer = MarketRenderer(console=console)
    console.print(
        renderer.render_summary(market_config, store.count_items(), _chain_valid(store))
    )


def items_cmd(
    ledger_db: Path = _LEDGER_OPTION,
    unsold: bool = typer.Option(False, "--unsold", "-u", help="Only items still for sale."),
) -> None:
    """List items with price, total price and status."""
    store, market_config = _open(ledger_db)
    renderer = MarketRenderer(console=console)
    renderer.print_items(store.list_items(unsold_only=unsold), market_config.fee_percent)


def item_cmd(
    item_id: int = typer.Argument(..., help="The item id to show."),
    ledger_db: Path = _LEDGER_OPTION,
) -> None:
    """Show one item and the total price a buyer must pay."""
    store, market_config = _open(ledger_db)
    item = store.get_item(item_id) if item_id >= 1 else None
    if item is None:
        console.print(f"[bold red]Item not found:[/bold red] {item_id}")
        raise typer.Exit(code=1)

    fee = compute_fee(item.price, market_config.fee_percent)
    console.print(f"[bold]Item {item.item_id}[/bold]  {item.collection}#{item.token_id}")
    console.print(f"  Seller:       {item.seller}")
    console.print(f"  Price:        {format_amount(item.price)}")
    console.print(f"  Fee:          {format_amount(fee)} ({market_config.fee_percent}%)")
    console.print(f"  Total price:  {format_amount(item.price + fee)}")
    if item.sold:
        console.print(f"  Status:       [dim]sold to {item.buyer}[/dim]")
    else:
        console.print("  Status:       [green]for sale[/green]")


def events_cmd(
    ledger_db: Path = _LEDGER_OPTION,
    item_id: int = typer.Option(None, "--item", "-i", help="Only notifications for this item."),
) -> None:
    """Show the ForSale/Bought notification log."""
    store, _ = _open(ledger_db)
    MarketRenderer(console=console).print_events(store.get_events(item_id))


def verify_cmd(ledger_db: Path = _LEDGER_OPTION) -> None:
    """Verify the notification log's hash chain."""
    store, _ = _open(ledger_db)
    renderer = MarketRenderer(console=console)
    try:
        valid = store.verify_chain()
    except LedgerIntegrityError as exc:
        console.print(f"[bold red]Chain verification failed:[/bold red] {exc}")
        raise typer.Exit(code=1)
    renderer.print_chain_verification(valid)
