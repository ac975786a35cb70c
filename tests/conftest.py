"""Shared test fixtures for Marketledger."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from marketledger.core.marketplace import Marketplace
from marketledger.core.store import MarketStore
from marketledger.core.units import to_base_units
from marketledger.custody import AssetRegistry, RegistryCustodyAdapter
from marketledger.models.market import ESCROW_IDENTITY

FEE_PERCENT = 1
OWNER = "owner"
SELLER = "addr1"
BUYER = "addr2"
URI1 = "Sample URI 1"


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test databases."""
    return tmp_path


@pytest.fixture
def db_path(tmp_dir: Path) -> Path:
    return tmp_dir / "market.db"


@pytest.fixture
def store(db_path: Path) -> MarketStore:
    """Provide a fresh MarketStore backed by a temp SQLite database."""
    return MarketStore(db_path)


@pytest.fixture
def nft() -> AssetRegistry:
    """Provide an empty in-memory asset collection named ``nft``."""
    return AssetRegistry("nft")


@pytest.fixture
def custody(nft: AssetRegistry) -> RegistryCustodyAdapter:
    """Provide a custody adapter serving the ``nft`` collection."""
    return RegistryCustodyAdapter([nft])


@pytest.fixture
def market(db_path: Path, custody: RegistryCustodyAdapter) -> Marketplace:
    """Provide a Marketplace created by OWNER with a 1% fee."""
    return Marketplace(db_path, custody, owner=OWNER, fee_percent=FEE_PERCENT)


@pytest.fixture
def approved_token(nft: AssetRegistry) -> int:
    """Mint a token to SELLER and approve the marketplace as operator."""
    token_id = nft.mint(SELLER, URI1)
    nft.set_approval_for_all(SELLER, ESCROW_IDENTITY, True)
    return token_id


@pytest.fixture
def make_listing(
    market: Marketplace, nft: AssetRegistry
) -> Callable[..., int]:
    """Factory fixture: mint, approve and list a token; returns the item id."""

    def _factory(price: int = to_base_units(1), seller: str = SELLER) -> int:
        token_id = nft.mint(seller, URI1)
        nft.set_approval_for_all(seller, ESCROW_IDENTITY, True)
        return market.list_item(seller, "nft", token_id, price).item.item_id

    return _factory


@pytest.fixture
def funded_buyer(market: Marketplace) -> str:
    """BUYER with enough funds for any test purchase.

    1000 units is 10**21 base units, above the 64-bit integer range.
    """
    market.deposit(BUYER, to_base_units(1000))
    return BUYER
