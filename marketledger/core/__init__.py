"""Marketplace ledger core — store, event bus, and the listing/purchase protocol."""

from marketledger.core.errors import (
    ConfigMismatchError,
    CustodyTransferFailedError,
    InsufficientFundsError,
    InsufficientPaymentError,
    InvalidPriceError,
    ItemAlreadySoldError,
    ItemNotFoundError,
    LedgerIntegrityError,
    MarketError,
    ReservedIdentityError,
)
from marketledger.core.event_bus import EventBus, EventValidationError
from marketledger.core.marketplace import Marketplace, compute_fee
from marketledger.core.store import MarketStore

__all__ = [
    "Marketplace",
    "MarketStore",
    "EventBus",
    "EventValidationError",
    "compute_fee",
    # errors
    "MarketError",
    "InvalidPriceError",
    "CustodyTransferFailedError",
    "ItemNotFoundError",
    "ItemAlreadySoldError",
    "InsufficientPaymentError",
    "InsufficientFundsError",
    "ReservedIdentityError",
    "ConfigMismatchError",
    "LedgerIntegrityError",
]
