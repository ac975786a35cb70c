"""Tests for the frozen marketplace models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from marketledger.models.events import (
    BoughtEvent,
    EventLogEntry,
    ForSaleEvent,
    MarketEventKind,
)
from marketledger.models.market import ESCROW_IDENTITY, Item, MarketplaceConfig


class TestMarketplaceConfig:
    def test_defaults(self):
        cfg = MarketplaceConfig(fee_account="owner", fee_percent=1)
        assert cfg.escrow_identity == ESCROW_IDENTITY
        assert cfg.created_at.tzinfo is not None

    def test_negative_fee_rejected(self):
        with pytest.raises(ValidationError):
            MarketplaceConfig(fee_account="owner", fee_percent=-1)

    def test_empty_fee_account_rejected(self):
        with pytest.raises(ValidationError):
            MarketplaceConfig(fee_account="", fee_percent=1)

    def test_frozen(self):
        cfg = MarketplaceConfig(fee_account="owner", fee_percent=1)
        with pytest.raises(ValidationError):
            cfg.fee_percent = 50


class TestItem:
    def test_defaults(self):
        item = Item(item_id=1, collection="nft", token_id=1, price=10, seller="a")
        assert item.sold is False
        assert item.buyer is None
        assert item.sold_at is None

    @pytest.mark.parametrize("price", [0, -1])
    def test_non_positive_price_rejected(self, price: int):
        with pytest.raises(ValidationError):
            Item(item_id=1, collection="nft", token_id=1, price=price, seller="a")

    def test_item_id_starts_at_one(self):
        with pytest.raises(ValidationError):
            Item(item_id=0, collection="nft", token_id=1, price=10, seller="a")

    def test_frozen(self):
        item = Item(item_id=1, collection="nft", token_id=1, price=10, seller="a")
        with pytest.raises(ValidationError):
            item.sold = True


class TestEvents:
    def test_for_sale_kind(self):
        event = ForSaleEvent(item_id=1, collection="nft", token_id=1, price=5, seller="a")
        assert event.kind == MarketEventKind.FOR_SALE
        assert event.kind.value == "ForSale"
        assert event.args() == (1, "nft", 1, 5, "a")

    def test_bought_args_include_buyer(self):
        event = BoughtEvent(
            item_id=1, collection="nft", token_id=1, price=5, seller="a", buyer="b"
        )
        assert event.kind.value == "Bought"
        assert event.args() == (1, "nft", 1, 5, "a", "b")

    def test_bought_requires_buyer(self):
        with pytest.raises(ValidationError):
            BoughtEvent(item_id=1, collection="nft", token_id=1, price=5, seller="a")

    def test_event_ids_unique(self):
        a = ForSaleEvent(item_id=1, collection="nft", token_id=1, price=5, seller="a")
        b = ForSaleEvent(item_id=1, collection="nft", token_id=1, price=5, seller="a")
        assert a.event_id != b.event_id

    def test_log_entry_discriminates_by_kind(self):
        event = BoughtEvent(
            item_id=1, collection="nft", token_id=1, price=5, seller="a", buyer="b"
        )
        entry = EventLogEntry.model_validate(
            {"sequence": 1, "event": event.model_dump(mode="json")}
        )
        assert isinstance(entry.event, BoughtEvent)
        assert entry.event.buyer == "b"
