"""Marketplace error taxonomy.

Every rejection is a caller-recoverable ``MarketError``: the call is refused,
no state changes, and ``code`` names the specific reason.
"""

from __future__ import annotations


class MarketError(RuntimeError):
    """Base class for all ledger rejections."""

    code = "MarketError"


class InvalidPriceError(MarketError):
    """Raised when a listing price is not a positive integer."""

    code = "InvalidPrice"


class CustodyTransferFailedError(MarketError):
    """Raised when the custody adapter refuses an asset transfer."""

    code = "CustodyTransferFailed"


class ItemNotFoundError(MarketError):
    """Raised for an item id of 0, below 0, or beyond the item count."""

    code = "ItemNotFound"


class ItemAlreadySoldError(MarketError):
    """Raised when purchasing an item that has already been sold."""

    code = "ItemAlreadySold"


class InsufficientPaymentError(MarketError):
    """Raised when the tendered payment is below the item's total price."""

    code = "InsufficientPayment"


class InsufficientFundsError(MarketError):
    """Raised when the buyer's account cannot cover the tendered payment."""

    code = "InsufficientFunds"


class ReservedIdentityError(MarketError):
    """Raised when a caller tries to act as the escrow identity."""

    code = "ReservedIdentity"


class ConfigMismatchError(MarketError):
    """Raised when a ledger is reopened with a different fee configuration."""

    code = "ConfigMismatch"


class LedgerIntegrityError(RuntimeError):
    """Raised when the notification log's hash chain is broken."""
