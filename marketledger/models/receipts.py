"""Receipts returned by the ledger's write operations."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from marketledger.models.events import BoughtEvent, ForSaleEvent
from marketledger.models.market import Item


class ListingReceipt(BaseModel):
    """Result of a successful listing."""

    model_config = ConfigDict(frozen=True)

    item: Item
    event: ForSaleEvent


class PurchaseReceipt(BaseModel):
    """Result of a successful purchase.

    ``refund`` is whatever the buyer tendered above ``total_price``; it is
    returned to the buyer in the same transaction.
    """

    model_config = ConfigDict(frozen=True)

    item: Item
    fee: int
    total_price: int
    refund: int = 0
    event: BoughtEvent
