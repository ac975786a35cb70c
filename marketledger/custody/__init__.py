"""Asset custody — adapter protocol and the in-memory reference registry."""

from marketledger.custody.adapter import CustodyAdapter, RegistryCustodyAdapter
from marketledger.custody.registry import AssetRegistry, CustodyError

__all__ = ["AssetRegistry", "CustodyAdapter", "CustodyError", "RegistryCustodyAdapter"]
