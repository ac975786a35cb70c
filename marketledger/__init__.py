"""Marketledger: fixed-price asset marketplace with escrowed custody.

  - Sellers list an asset at a fixed price; custody moves to escrow
  - Buyers pay price + platform fee; seller and fee account are paid in the
    same transaction that hands the asset to the buyer
  - SQLite-backed ledger with a hash-chained notification log
  - Pluggable custody adapters (Protocol-based)
"""

__version__ = "0.1.0"
__description__ = "Fixed-price asset marketplace ledger with escrowed custody"

from marketledger.core.marketplace import Marketplace, compute_fee
from marketledger.custody import AssetRegistry, CustodyAdapter, RegistryCustodyAdapter
from marketledger.models import ESCROW_IDENTITY, Item, MarketplaceConfig

__all__ = [
    "Marketplace",
    "compute_fee",
    "AssetRegistry",
    "CustodyAdapter",
    "RegistryCustodyAdapter",
    "ESCROW_IDENTITY",
    "Item",
    "MarketplaceConfig",
    "__version__",
]
