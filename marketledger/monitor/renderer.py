"""Rich terminal renderer for marketplace state.

Turns items, notification-log entries and the fee configuration into Rich
renderables for the CLI.

Color scheme
------------
- green  : listed (unsold)
- dim    : sold
- cyan   : ForSale notifications
- yellow : Bought notifications
"""

from __future__ import annotations

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from marketledger.core.marketplace import compute_fee
from marketledger.core.units import format_amount
from marketledger.models.events import BoughtEvent, EventLogEntry, MarketEventKind
from marketledger.models.market import Item, MarketplaceConfig

_KIND_STYLES: dict[MarketEventKind, str] = {
    MarketEventKind.FOR_SALE: "cyan",
    MarketEventKind.BOUGHT: "yellow",
}


class MarketRenderer:
    """Renders marketplace state as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Renderables
    # ------------------------------------------------------------------

    def render_items(self, items: list[Item], fee_percent: int) -> Table:
        """Build a Rich Table of listings with their total prices."""
        table = Table(
            title="Listings",
            show_header=True,
            header_style="bold cyan",
            expand=True,
        )
        table.add_column("#", style="dim", justify="right", width=5)
        table.add_column("Asset", min_width=16)
        table.add_column("Seller")
        table.add_column("Price", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("Status", justify="center")
        table.add_column("Buyer")

        for item in items:
            total = item.price + compute_fee(item.price, fee_percent)
            status = "[dim]sold[/dim]" if item.sold else "[green]for sale[/green]"
            table.add_row(
                str(item.item_id),
                f"{item.collection}#{item.token_id}",
                item.seller,
                format_amount(item.price),
                format_amount(total),
                status,
                item.buyer or "[dim]-[/dim]",
            )
        return table

    def render_events(self, entries: list[EventLogEntry]) -> Table:
        """Build a Rich Table of the notification log."""
        table = Table(
            title="Notification log",
            show_header=True,
            header_style="bold cyan",
            expand=True,
        )
        table.add_column("Seq", style="dim", justify="right", width=5)
        table.add_column("Kind", min_width=8)
        table.add_column("Item", justify="right")
        table.add_column("Asset")
        table.add_column("Price", justify="right")
        table.add_column("Parties")
        table.add_column("Hash", style="dim")

        for entry in entries:
            event = entry.event
            style = _KIND_STYLES.get(event.kind, "")
            parties = event.seller
            if isinstance(event, BoughtEvent):
                parties = f"{event.seller} -> {event.buyer}"
            table.add_row(
                str(entry.sequence),
                f"[{style}]{event.kind.value}[/{style}]",
                str(event.item_id),
                f"{event.collection}#{event.token_id}",
                format_amount(event.price),
                parties,
                entry.entry_hash[:12] + "...",
            )
        return table

    def render_summary(
        self, config: MarketplaceConfig, item_count: int, chain_valid: bool
    ) -> Panel:
        """Render the fee configuration and ledger health as a Panel."""
        chain_status = (
            "[green]valid[/green]" if chain_valid else "[bold red]BROKEN[/bold red]"
        )
        lines = [
            f"[bold]Fee account:[/bold] {config.fee_account}",
            f"[bold]Fee rate:[/bold] {config.fee_percent}%",
            f"[bold]Escrow identity:[/bold] {config.escrow_identity}",
            f"[bold]Items listed:[/bold] {item_count}",
            f"[bold]Notification log:[/bold] {chain_status}",
        ]
        return Panel(
            Group(*(Text.from_markup(line) for line in lines)),
            title="[bold]Marketplace[/bold]",
            subtitle=f"Created {config.created_at.strftime('%Y-%m-%d %H:%M:%S UTC')}",
            border_style="blue",
            padding=(1, 2),
        )

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_items(self, items: list[Item], fee_percent: int) -> None:
        if not items:
            self.console.print("[dim]No items listed.[/dim]")
            return
        self.console.print(self.render_items(items, fee_percent))

    def print_events(self, entries: list[EventLogEntry]) -> None:
        if not entries:
            self.console.print("[dim]No notifications recorded.[/dim]")
            return
        self.console.print(self.render_events(entries))

    def print_chain_verification(self, valid: bool) -> None:
        """Print a chain verification result."""
        if valid:
            self.console.print("[green]Notification log hash chain is valid.[/green]")
        else:
            self.console.print("[bold red]Notification log hash chain is BROKEN![/bold red]")
