"""Tests for MarketStore — items, balances, notification log, transactions."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from marketledger.core.errors import InsufficientFundsError
from marketledger.core.store import MarketStore
from marketledger.models.events import BoughtEvent, ForSaleEvent
from marketledger.models.market import Item, MarketplaceConfig


def _item(item_id: int = 1, **overrides) -> Item:
    fields = {
        "item_id": item_id,
        "collection": "nft",
        "token_id": item_id,
        "price": 100,
        "seller": "alice",
    }
    fields.update(overrides)
    return Item(**fields)


class TestConfigRows:
    def test_fresh_store_has_no_config(self, store: MarketStore):
        assert store.get_config() is None

    def test_insert_and_read(self, store: MarketStore):
        cfg = MarketplaceConfig(fee_account="owner", fee_percent=2)
        with store.transaction() as conn:
            store.insert_config(conn, cfg)
        loaded = store.get_config()
        assert loaded is not None
        assert loaded.fee_account == "owner"
        assert loaded.fee_percent == 2
        assert loaded.created_at == cfg.created_at


class TestItemRows:
    def test_insert_and_get(self, store: MarketStore):
        with store.transaction() as conn:
            store.insert_item(conn, _item())
        item = store.get_item(1)
        assert item is not None
        assert item.seller == "alice"
        assert item.sold is False
        assert store.count_items() == 1

    def test_missing_item(self, store: MarketStore):
        assert store.get_item(7) is None

    def test_mark_sold_once(self, store: MarketStore):
        now = datetime.now(timezone.utc)
        with store.transaction() as conn:
            store.insert_item(conn, _item())
            assert store.mark_sold(conn, 1, "bob", now) is True
            assert store.mark_sold(conn, 1, "carol", now) is False
        item = store.get_item(1)
        assert item.sold is True
        assert item.buyer == "bob"

    def test_list_unsold_only(self, store: MarketStore):
        with store.transaction() as conn:
            store.insert_item(conn, _item(1))
            store.insert_item(conn, _item(2))
            store.mark_sold(conn, 1, "bob", datetime.now(timezone.utc))
        assert [i.item_id for i in store.list_items()] == [1, 2]
        assert [i.item_id for i in store.list_items(unsold_only=True)] == [2]

    def test_rollback_on_exception(self, store: MarketStore):
        with pytest.raises(RuntimeError):
            with store.transaction() as conn:
                store.insert_item(conn, _item())
                raise RuntimeError("boom")
        assert store.count_items() == 0

    def test_price_beyond_int64_round_trips(self, store: MarketStore):
        with store.transaction() as conn:
            store.insert_item(conn, _item(price=2**255, token_id=2**255))
        item = store.get_item(1)
        assert item.price == 2**255
        assert item.token_id == 2**255


class TestBalances:
    def test_credit_and_debit(self, store: MarketStore):
        with store.transaction() as conn:
            store.credit(conn, "alice", 50)
            store.credit(conn, "alice", 25)
            store.debit(conn, "alice", 30)
        assert store.get_balance("alice") == 45

    def test_overdraw_rejected(self, store: MarketStore):
        with store.transaction() as conn:
            store.credit(conn, "alice", 10)
        with pytest.raises(InsufficientFundsError):
            with store.transaction() as conn:
                store.debit(conn, "alice", 11)
        assert store.get_balance("alice") == 10

    def test_zero_amounts_are_noops(self, store: MarketStore):
        with store.transaction() as conn:
            store.credit(conn, "alice", 0)
            store.debit(conn, "bob", 0)
        assert store.get_balance("alice") == 0

    def test_amounts_beyond_int64(self, store: MarketStore):
        with store.transaction() as conn:
            store.credit(conn, "alice", 2**64)
            store.credit(conn, "alice", 2**64)
            store.debit(conn, "alice", 2**63)
        assert store.get_balance("alice") == 2**65 - 2**63

    @pytest.mark.parametrize("op", ["credit", "debit"])
    def test_negative_amount_rejected(self, store: MarketStore, op: str):
        with pytest.raises(ValueError):
            with store.transaction() as conn:
                getattr(store, op)(conn, "alice", -1)


class TestEventLog:
    def test_append_chains_entries(self, store: MarketStore):
        with store.transaction() as conn:
            first = store.append_event(conn, ForSaleEvent(
                item_id=1, collection="nft", token_id=1, price=100, seller="alice",
            ))
            second = store.append_event(conn, BoughtEvent(
                item_id=1, collection="nft", token_id=1, price=100,
                seller="alice", buyer="bob",
            ))
        assert first.sequence == 1
        assert first.previous_entry_hash == ""
        assert second.previous_entry_hash == first.entry_hash
        assert store.verify_chain() is True

    def test_read_back_typed_events(self, store: MarketStore):
        with store.transaction() as conn:
            store.append_event(conn, ForSaleEvent(
                item_id=1, collection="nft", token_id=1, price=100, seller="alice",
            ))
            store.append_event(conn, ForSaleEvent(
                item_id=2, collection="nft", token_id=2, price=100, seller="alice",
            ))
            store.append_event(conn, BoughtEvent(
                item_id=1, collection="nft", token_id=1, price=100,
                seller="alice", buyer="bob",
            ))
        entries = store.get_events(item_id=1)
        assert [e.sequence for e in entries] == [1, 3]
        assert isinstance(entries[1].event, BoughtEvent)
        assert entries[1].event.buyer == "bob"

    def test_empty_chain_valid(self, store: MarketStore):
        assert store.verify_chain() is True
