"""Marketplace ledger — fixed-price listings with escrowed custody.

A seller lists an asset at a fixed price; custody moves to the marketplace
escrow identity.  A buyer pays the price plus the platform fee; the seller
receives the price, the fee account receives the fee, and custody moves from
escrow to the buyer.

Every ``list_item`` and ``purchase`` call is one indivisible unit:

1. A process-wide lock serializes calls on this instance.
2. The state changes run inside one SQLite ``BEGIN IMMEDIATE`` transaction,
   which also serializes writers in other processes.
3. The custody transfer is the last step inside that transaction.  If the
   adapter refuses, the transaction rolls back and nothing changed.
4. If the COMMIT itself fails after custody moved (I/O error, full disk),
   custody is handed back with a reverse ``transfer_custody``.  The adapter
   may refuse that reversal (for a purchase it needs the buyer to have
   approved the escrow identity); the refusal is logged at ERROR for manual
   reconciliation and the commit error is re-raised.
5. Notifications go to ``EventBus`` subscribers only after commit.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path

from marketledger.core.errors import (
    ConfigMismatchError,
    CustodyTransferFailedError,
    InsufficientPaymentError,
    InvalidPriceError,
    ItemAlreadySoldError,
    ItemNotFoundError,
    ReservedIdentityError,
)
from marketledger.core.event_bus import EventBus
from marketledger.core.store import MarketStore
from marketledger.custody.adapter import CustodyAdapter
from marketledger.custody.registry import CustodyError
from marketledger.models.events import BoughtEvent, EventLogEntry, ForSaleEvent
from marketledger.models.market import Item, MarketplaceConfig
from marketledger.models.receipts import ListingReceipt, PurchaseReceipt

logger = logging.getLogger(__name__)


def compute_fee(price: int, fee_percent: int) -> int:
    """Platform fee on *price*: ``price * fee_percent // 100``.

    >>> compute_fee(2 * 10**18, 1)
    20000000000000000
    """
    return price * fee_percent // 100


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class Marketplace:
    """Fixed-price marketplace over an external custody adapter.

    Parameters
    ----------
    db_path:
        SQLite database holding items, balances and the notification log.
    custody:
        Adapter that moves assets between owners and the escrow identity.
    owner:
        Identity creating the marketplace; it becomes the fee account.
        May be omitted when reopening an existing database.
    fee_percent:
        Integer fee percentage (1 == 1%).  May be omitted when reopening.
    event_bus:
        Bus that receives notifications after each commit.

    Raises
    ------
    ConfigMismatchError
        If the database already holds a different fee configuration.
    ValueError
        If a fresh database is opened without ``owner`` and ``fee_percent``.
    """

    def __init__(
        self,
        db_path: Path,
        custody: CustodyAdapter,
        *,
        owner: str | None = None,
        fee_percent: int | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._store = MarketStore(db_path)
        self._custody = custody
        self._bus = event_bus or EventBus()
        self._lock = threading.Lock()
        self._config = self._load_or_create_config(owner, fee_percent)

    def _load_or_create_config(
        self, owner: str | None, fee_percent: int | None
    ) -> MarketplaceConfig:
        if fee_percent is not None and not _is_int(fee_percent):
            raise ValueError(f"fee_percent must be an integer, got {fee_percent!r}")

        with self._store.transaction() as conn:
            stored = self._store.get_config(conn)
            if stored is not None:
                if owner is not None and owner != stored.fee_account:
                    raise ConfigMismatchError(
                        f"Ledger fee account is {stored.fee_account!r}, not {owner!r}."
                    )
                if fee_percent is not None and fee_percent != stored.fee_percent:
                    raise ConfigMismatchError(
                        f"Ledger fee rate is {stored.fee_percent}%, not {fee_percent}%."
                    )
                logger.debug("Opened marketplace at %s.", self._store.db_path)
                return stored

            if owner is None or fee_percent is None:
                raise ValueError(
                    "A new marketplace needs both an owner and a fee_percent."
                )
            config = MarketplaceConfig(fee_account=owner, fee_percent=fee_percent)
            self._store.insert_config(conn, config)

        logger.info(
            "Created marketplace at %s (fee account %s, fee %d%%).",
            self._store.db_path, config.fee_account, config.fee_percent,
        )
        return config

    # -- Read-only queries --------------------------------------------------

    @property
    def config(self) -> MarketplaceConfig:
        return self._config

    @property
    def fee_account(self) -> str:
        return self._config.fee_account

    @property
    def fee_percent(self) -> int:
        return self._config.fee_percent

    @property
    def escrow_identity(self) -> str:
        return self._config.escrow_identity

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def item_count(self) -> int:
        """Number of items ever listed; also the highest item id."""
        return self._store.count_items()

    def items(self, item_id: int) -> Item:
        """Return the item record for *item_id*.

        Raises
        ------
        ItemNotFoundError
            If *item_id* is not between 1 and ``item_count``.
        """
        item = self._store.get_item(item_id) if _is_int(item_id) and item_id >= 1 else None
        if item is None:
            raise ItemNotFoundError(f"Item {item_id!r} does not exist.")
        return item

    def list_items(self, *, unsold_only: bool = False) -> list[Item]:
        return self._store.list_items(unsold_only=unsold_only)

    def get_total_price(self, item_id: int) -> int:
        """Amount a buyer must pay for *item_id*: price plus fee."""
        item = self.items(item_id)
        return item.price + compute_fee(item.price, self.fee_percent)

    def balance_of(self, account: str) -> int:
        return self._store.get_balance(account)

    def get_events(self, item_id: int | None = None) -> list[EventLogEntry]:
        return self._store.get_events(item_id)

    def verify_chain(self) -> bool:
        """Verify the notification log. Raises ``LedgerIntegrityError`` if broken."""
        return self._store.verify_chain()

    # -- Funds --------------------------------------------------------------

    def deposit(self, account: str, amount: int) -> int:
        """Credit *amount* base units to *account* and return the new balance."""
        if not _is_int(amount) or amount <= 0:
            raise ValueError(f"Deposit must be a positive integer, got {amount!r}")
        self._require_user_identity(account)
        with self._lock, self._store.transaction() as conn:
            self._store.credit(conn, account, amount)
            balance = self._store.get_balance(account, conn)
        logger.debug("Deposited %d to %s (balance %d).", amount, account, balance)
        return balance

    # -- Listing ------------------------------------------------------------

    def list_item(
        self, seller: str, collection: str, token_id: int, price: int
    ) -> ListingReceipt:
        """List an asset for sale at a fixed *price* (base units).

        The item record, its ``ForSale`` log entry and the custody transfer
        from *seller* to escrow happen together or not at all.

        Raises
        ------
        InvalidPriceError
            If *price* is not a positive integer.
        CustodyTransferFailedError
            If the seller does not hold the asset or has not approved the
            marketplace.
        """
        self._require_user_identity(seller)
        if not _is_int(price) or price <= 0:
            logger.info("Rejected listing by %s: invalid price %r.", seller, price)
            raise InvalidPriceError(f"Price must be a positive integer, got {price!r}")

        with self._lock:
            moved = False
            try:
                with self._store.transaction() as conn:
                    item = Item(
                        item_id=self._store.count_items(conn) + 1,
                        collection=collection,
                        token_id=token_id,
                        price=price,
                        seller=seller,
                    )
                    self._store.insert_item(conn, item)
                    event = ForSaleEvent(
                        item_id=item.item_id,
                        collection=collection,
                        token_id=token_id,
                        price=price,
                        seller=seller,
                    )
                    self._store.append_event(conn, event)
                    self._transfer(collection, token_id, seller, self.escrow_identity)
                    moved = True
            except sqlite3.Error:
                if moved:
                    self._return_custody(collection, token_id, self.escrow_identity, seller)
                raise

        logger.info(
            "Listed item %d: %s#%d by %s at %d.",
            item.item_id, collection, token_id, seller, price,
        )
        self._bus.publish(event)
        return ListingReceipt(item=item, event=event)

    # -- Purchase -----------------------------------------------------------

    def purchase(self, buyer: str, item_id: int, payment: int) -> PurchaseReceipt:
        """Buy *item_id*, tendering *payment* base units from *buyer*'s account.

        Checks, in order: the item exists, it is unsold, and *payment* covers
        ``get_total_price``.  Then the buyer's account is debited, the seller
        and fee account are credited, any excess is refunded, the item is
        marked sold, and custody moves from escrow to the buyer, all in one
        transaction.

        Raises
        ------
        ItemNotFoundError
        ItemAlreadySoldError
        InsufficientPaymentError
        InsufficientFundsError
            If the buyer's account cannot cover *payment*.
        CustodyTransferFailedError
            If the adapter refuses the escrow-to-buyer transfer; all other
            effects are rolled back.
        """
        self._require_user_identity(buyer)

        with self._lock:
            moved = False
            try:
                with self._store.transaction() as conn:
                    item = (
                        self._store.get_item(item_id, conn)
                        if _is_int(item_id) and item_id >= 1
                        else None
                    )
                    if item is None:
                        raise ItemNotFoundError(f"Item {item_id!r} does not exist.")
                    if item.sold:
                        logger.info("Rejected purchase of item %d by %s: already sold.", item_id, buyer)
                        raise ItemAlreadySoldError(f"Item {item_id} has already been sold.")
                    if not _is_int(payment):
                        raise TypeError(f"Payment must be an integer, got {payment!r}")

                    fee = compute_fee(item.price, self.fee_percent)
                    total_price = item.price + fee
                    if payment < total_price:
                        logger.info(
                            "Rejected purchase of item %d by %s: paid %d of %d.",
                            item_id, buyer, payment, total_price,
                        )
                        raise InsufficientPaymentError(
                            f"Item {item_id} costs {total_price}, got {payment}."
                        )

                    refund = payment - total_price
                    self._store.debit(conn, buyer, payment)
                    self._store.credit(conn, item.seller, item.price)
                    self._store.credit(conn, self.fee_account, fee)
                    self._store.credit(conn, buyer, refund)

                    sold_at = datetime.now(timezone.utc)
                    if not self._store.mark_sold(conn, item_id, buyer, sold_at):
                        raise ItemAlreadySoldError(f"Item {item_id} has already been sold.")

                    event = BoughtEvent(
                        item_id=item.item_id,
                        collection=item.collection,
                        token_id=item.token_id,
                        price=item.price,
                        seller=item.seller,
                        buyer=buyer,
                    )
                    self._store.append_event(conn, event)
                    self._transfer(item.collection, item.token_id, self.escrow_identity, buyer)
                    moved = True
            except sqlite3.Error:
                if moved:
                    self._return_custody(
                        item.collection, item.token_id, buyer, self.escrow_identity
                    )
                raise

        sold_item = item.model_copy(update={"sold": True, "buyer": buyer, "sold_at": sold_at})
        logger.info(
            "Sold item %d to %s for %d (fee %d, refund %d).",
            item_id, buyer, total_price, fee, refund,
        )
        self._bus.publish(event)
        return PurchaseReceipt(
            item=sold_item,
            fee=fee,
            total_price=total_price,
            refund=refund,
            event=event,
        )

    # -- Internal helpers ---------------------------------------------------

    def _transfer(self, collection: str, token_id: int, from_: str, to: str) -> None:
        try:
            self._custody.transfer_custody(collection, token_id, from_, to)
        except CustodyError as exc:
            logger.warning(
                "Custody transfer of %s#%d from %s to %s refused: %s",
                collection, token_id, from_, to, exc,
            )
            raise CustodyTransferFailedError(str(exc)) from exc

    def _return_custody(self, collection: str, token_id: int, from_: str, to: str) -> None:
        """Undo a custody move whose ledger transaction failed to commit."""
        try:
            self._custody.transfer_custody(collection, token_id, from_, to)
        except CustodyError:
            logger.exception(
                "Ledger commit failed and custody of %s#%d could not be returned "
                "from %s to %s; reconcile manually.",
                collection, token_id, from_, to,
            )
        else:
            logger.warning(
                "Ledger commit failed; custody of %s#%d returned from %s to %s.",
                collection, token_id, from_, to,
            )

    def _require_user_identity(self, identity: str) -> None:
        if not identity:
            raise ValueError("Identity must be a non-empty string.")
        if identity == self.escrow_identity:
            raise ReservedIdentityError(
                f"{identity!r} is reserved for the marketplace escrow account."
            )
