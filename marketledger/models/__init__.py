"""Marketledger data models — all Pydantic v2, all frozen (immutable)."""

from marketledger.models.events import (
    EVENT_TYPE_MAP,
    BoughtEvent,
    EventLogEntry,
    ForSaleEvent,
    MarketEvent,
    MarketEventKind,
)
from marketledger.models.market import ESCROW_IDENTITY, Item, MarketplaceConfig
from marketledger.models.receipts import ListingReceipt, PurchaseReceipt

__all__ = [
    # market
    "ESCROW_IDENTITY",
    "Item",
    "MarketplaceConfig",
    # events
    "MarketEventKind",
    "MarketEvent",
    "ForSaleEvent",
    "BoughtEvent",
    "EventLogEntry",
    "EVENT_TYPE_MAP",
    # receipts
    "ListingReceipt",
    "PurchaseReceipt",
]
