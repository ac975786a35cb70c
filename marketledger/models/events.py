"""Marketplace notifications (``ForSale`` and ``Bought``).

Notifications are explicit values: the ledger returns them in its receipts,
stores them in the hash-chained event log, and hands them to subscribers on
the ``EventBus`` once the owning transaction has committed.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class MarketEventKind(str, Enum):
    """The two notification kinds emitted by the ledger."""

    FOR_SALE = "ForSale"
    BOUGHT = "Bought"


class MarketEvent(BaseModel):
    """Fields shared by every notification."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    kind: MarketEventKind
    item_id: int
    collection: str
    token_id: int
    price: int
    seller: str
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def args(self) -> tuple:
        """Positional notification arguments, in emission order."""
        return (self.item_id, self.collection, self.token_id, self.price, self.seller)


class ForSaleEvent(MarketEvent):
    """Emitted once per successful listing."""

    kind: Literal[MarketEventKind.FOR_SALE] = MarketEventKind.FOR_SALE


class BoughtEvent(MarketEvent):
    """Emitted once per successful purchase."""

    kind: Literal[MarketEventKind.BOUGHT] = MarketEventKind.BOUGHT
    buyer: str

    def args(self) -> tuple:
        return super().args() + (self.buyer,)


EVENT_TYPE_MAP: dict[MarketEventKind, type[MarketEvent]] = {
    MarketEventKind.FOR_SALE: ForSaleEvent,
    MarketEventKind.BOUGHT: BoughtEvent,
}


class EventLogEntry(BaseModel):
    """A sealed row of the append-only notification log."""

    model_config = ConfigDict(frozen=True)

    sequence: int
    event: Annotated[ForSaleEvent | BoughtEvent, Field(discriminator="kind")]
    previous_entry_hash: str = ""
    entry_hash: str = ""
