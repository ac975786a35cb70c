"""``marketledger demo`` — run a complete list-and-buy scenario.

Mints an asset to a seller, lists it, funds a buyer, buys it, and shows
balances, custody and the notification log after each step.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from marketledger.config import config
from marketledger.core.errors import LedgerIntegrityError, MarketError
from marketledger.core.marketplace import Marketplace
from marketledger.core.units import format_amount, to_base_units
from marketledger.custody import AssetRegistry, RegistryCustodyAdapter
from marketledger.monitor.renderer import MarketRenderer

console = Console()


def _remove_ledger(db_path: Path) -> None:
    for suffix in ("", "-wal", "-shm"):
        Path(f"{db_path}{suffix}").unlink(missing_ok=True)


def demo_cmd(
    price: str = typer.Option(
        "2", "--price", "-p", help="Listing price in currency units."
    ),
    fee_percent: int = typer.Option(
        config.fee_percent, "--fee", "-f", min=0, help="Platform fee percentage."
    ),
    ledger_db: str = typer.Option(
        ".marketledger/demo-ledger.db",
        "--ledger",
        help="Path to the ledger SQLite database (uses demo-specific default).",
    ),
    reset: bool = typer.Option(
        True, "--reset/--keep", help="Start from an empty demo ledger."
    ),
) -> None:
    """Run a complete list-and-buy scenario with sample identities."""
    db_path = Path(ledger_db)
    if reset:
        _remove_ledger(db_path)

    try:
        price_units = to_base_units(price)
    except ValueError as exc:
        console.print(f"[bold red]Invalid price:[/bold red] {exc}")
        raise typer.Exit(code=1)

    nft = AssetRegistry("nft")
    custody = RegistryCustodyAdapter([nft])
    try:
        market = Marketplace(db_path, custody, owner=config.fee_account, fee_percent=fee_percent)
    except MarketError as exc:
        console.print(f"[bold red]Cannot open ledger:[/bold red] {exc}")
        raise typer.Exit(code=1)
    renderer = MarketRenderer(console=console)

    console.print()
    console.print(
        Panel(
            "[bold]Marketledger Demo[/bold]\n\n"
            "seller mints and lists an asset; buyer pays price + fee.",
            border_style="cyan",
            padding=(1, 2),
        )
    )

    token_id = nft.mint("seller", "Sample URI 1")
    nft.set_approval_for_all("seller", market.escrow_identity, True)
    console.print(f"[cyan]>>> Minted[/cyan] nft#{token_id} to seller")

    try:
        listing = market.list_item("seller", "nft", token_id, price_units)
    except MarketError as exc:
        console.print(f"[bold red]Listing failed:[/bold red] {exc}")
        raise typer.Exit(code=1)
    item_id = listing.item.item_id
    total = market.get_total_price(item_id)
    console.print(
        f"[cyan]>>> Listed[/cyan] item {item_id} at {format_amount(price_units)}; "
        f"total price {format_amount(total)}; "
        f"holder now {custody.current_holder('nft', token_id)}"
    )

    market.deposit("buyer", total)
    seller_before = market.balance_of("seller")
    fees_before = market.balance_of(market.fee_account)

    try:
        receipt = market.purchase("buyer", item_id, total)
    except MarketError as exc:
        console.print(f"[bold red]Purchase failed:[/bold red] {exc}")
        raise typer.Exit(code=1)
    console.print(
        f"[cyan]>>> Bought[/cyan] item {item_id} for {format_amount(receipt.total_price)} "
        f"(fee {format_amount(receipt.fee)})"
    )

    console.print()
    renderer.print_items(market.list_items(), market.fee_percent)
    renderer.print_events(market.get_events())

    console.print()
    console.print("[bold cyan]Verifying hash chain integrity...[/bold cyan]")
    try:
        valid = market.verify_chain()
    except LedgerIntegrityError as exc:
        console.print(f"[bold red]Chain verification failed:[/bold red] {exc}")
        valid = False
    renderer.print_chain_verification(valid)

    console.print()
    console.print(
        Panel(
            "\n".join([
                "[bold green]Demo Complete![/bold green]",
                "",
                f"[bold]Seller received:[/bold]  "
                f"{format_amount(market.balance_of('seller') - seller_before)}",
                f"[bold]Fee account got:[/bold]  "
                f"{format_amount(market.balance_of(market.fee_account) - fees_before)}",
                f"[bold]Asset holder:[/bold]     {custody.current_holder('nft', token_id)}",
                f"[bold]Ledger:[/bold]           {db_path}",
            ]),
            title="[bold]Demo Summary[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
