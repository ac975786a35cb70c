"""SQLite persistence for the marketplace ledger.

One database holds everything a purchase must change together: the fee
configuration, the item registry, fund balances, and the notification log.
Writes go through ``transaction()``, which opens a ``BEGIN IMMEDIATE``
transaction, so concurrent writers (threads or processes) are serialized and
any exception inside the block rolls the whole unit back.

Design:
- Items are append-only; the only UPDATE is the guarded ``sold`` flip.
- Amounts (prices, balances, fee rate) are stored as decimal TEXT so
  18-decimal base units never hit SQLite's 64-bit INTEGER limit; their
  arithmetic and sign checks run in Python inside the transaction.
- Balances are non-negative.
- The notification log is append-only and hash-chained.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from marketledger.core.errors import InsufficientFundsError, LedgerIntegrityError
from marketledger.core.hasher import compute_entry_hash
from marketledger.models.events import (
    EVENT_TYPE_MAP,
    EventLogEntry,
    MarketEvent,
    MarketEventKind,
)
from marketledger.models.market import Item, MarketplaceConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_CONFIG = """
CREATE TABLE IF NOT EXISTS market_config (
    id               INTEGER PRIMARY KEY CHECK (id = 1),
    fee_account      TEXT NOT NULL,
    fee_percent      TEXT NOT NULL,
    escrow_identity  TEXT NOT NULL,
    created_at       TEXT NOT NULL
);
"""

_CREATE_ITEMS = """
CREATE TABLE IF NOT EXISTS items (
    item_id     INTEGER PRIMARY KEY,
    collection  TEXT NOT NULL,
    token_id    TEXT NOT NULL,
    price       TEXT NOT NULL,
    seller      TEXT NOT NULL,
    sold        INTEGER NOT NULL DEFAULT 0,
    buyer       TEXT,
    listed_at   TEXT NOT NULL,
    sold_at     TEXT
);
"""

_CREATE_BALANCES = """
CREATE TABLE IF NOT EXISTS balances (
    account  TEXT PRIMARY KEY,
    amount   TEXT NOT NULL
);
"""

_CREATE_EVENTS = """
CREATE TABLE IF NOT EXISTS market_events (
    sequence             INTEGER PRIMARY KEY,
    event_id             TEXT NOT NULL UNIQUE,
    kind                 TEXT NOT NULL,
    item_id              INTEGER NOT NULL,
    payload_json         TEXT NOT NULL,
    previous_entry_hash  TEXT NOT NULL DEFAULT '',
    entry_hash           TEXT NOT NULL UNIQUE
);
"""

_CREATE_IDX_EVENTS_ITEM = """
CREATE INDEX IF NOT EXISTS idx_events_item ON market_events(item_id, sequence);
"""

_ITEM_COLUMNS = (
    "item_id, collection, token_id, price, seller, sold, buyer, listed_at, sold_at"
)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class MarketStore:
    """SQLite-backed storage for a single marketplace.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    timeout:
        Seconds a writer waits for another writer's transaction to finish.
    """

    def __init__(self, db_path: Path, *, timeout: float = 30.0) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._timeout = timeout
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self._db_path),
            timeout=self._timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(_CREATE_CONFIG)
            conn.execute(_CREATE_ITEMS)
            conn.execute(_CREATE_BALANCES)
            conn.execute(_CREATE_EVENTS)
            conn.execute(_CREATE_IDX_EVENTS_ITEM)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block as one write transaction; roll back on any exception."""
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    @contextmanager
    def _reader(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def get_config(self, conn: sqlite3.Connection | None = None) -> MarketplaceConfig | None:
        """Return the stored fee configuration, or None for a fresh database."""
        if conn is None:
            with self._reader() as reader:
                return self.get_config(reader)
        row = conn.execute(
            "SELECT fee_account, fee_percent, escrow_identity, created_at "
            "FROM market_config WHERE id = 1"
        ).fetchone()
        if row is None:
            return None
        fee_account, fee_percent, escrow_identity, created_at = row
        return MarketplaceConfig(
            fee_account=fee_account,
            fee_percent=int(fee_percent),
            escrow_identity=escrow_identity,
            created_at=created_at,
        )

    def insert_config(self, conn: sqlite3.Connection, config: MarketplaceConfig) -> None:
        conn.execute(
            "INSERT INTO market_config "
            "(id, fee_account, fee_percent, escrow_identity, created_at) "
            "VALUES (1, ?, ?, ?, ?)",
            (
                config.fee_account,
                str(config.fee_percent),
                config.escrow_identity,
                _iso(config.created_at),
            ),
        )

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def count_items(self, conn: sqlite3.Connection | None = None) -> int:
        if conn is None:
            with self._reader() as reader:
                return self.count_items(reader)
        return conn.execute("SELECT COUNT(*) FROM items").fetchone()[0]

    def insert_item(self, conn: sqlite3.Connection, item: Item) -> None:
        if item.price <= 0:
            raise ValueError(f"Item price must be positive, got {item.price}")
        conn.execute(
            f"INSERT INTO items ({_ITEM_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                item.item_id,
                item.collection,
                str(item.token_id),
                str(item.price),
                item.seller,
                int(item.sold),
                item.buyer,
                _iso(item.listed_at),
                _iso(item.sold_at),
            ),
        )

    def get_item(self, item_id: int, conn: sqlite3.Connection | None = None) -> Item | None:
        if conn is None:
            with self._reader() as reader:
                return self.get_item(item_id, reader)
        row = conn.execute(
            f"SELECT {_ITEM_COLUMNS} FROM items WHERE item_id = ?", (item_id,)
        ).fetchone()
        return self._row_to_item(row) if row else None

    def list_items(self, *, unsold_only: bool = False) -> list[Item]:
        """Return items ordered by id, optionally only the unsold ones."""
        query = f"SELECT {_ITEM_COLUMNS} FROM items"
        if unsold_only:
            query += " WHERE sold = 0"
        query += " ORDER BY item_id ASC"
        with self._reader() as conn:
            rows = conn.execute(query).fetchall()
        return [self._row_to_item(row) for row in rows]

    def mark_sold(
        self, conn: sqlite3.Connection, item_id: int, buyer: str, sold_at: datetime
    ) -> bool:
        """Flip ``sold`` for an unsold item. Returns False if it was already sold."""
        cursor = conn.execute(
            "UPDATE items SET sold = 1, buyer = ?, sold_at = ? "
            "WHERE item_id = ? AND sold = 0",
            (buyer, _iso(sold_at), item_id),
        )
        return cursor.rowcount == 1

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    def get_balance(self, account: str, conn: sqlite3.Connection | None = None) -> int:
        if conn is None:
            with self._reader() as reader:
                return self.get_balance(account, reader)
        row = conn.execute(
            "SELECT amount FROM balances WHERE account = ?", (account,)
        ).fetchone()
        return int(row[0]) if row else 0

    def credit(self, conn: sqlite3.Connection, account: str, amount: int) -> None:
        """Add *amount* to *account*, creating the account on first credit."""
        if amount < 0:
            raise ValueError(f"Cannot credit a negative amount: {amount}")
        if amount == 0:
            return
        self._set_balance(conn, account, self.get_balance(account, conn) + amount)

    def debit(self, conn: sqlite3.Connection, account: str, amount: int) -> None:
        """Withdraw *amount* from *account*, or raise ``InsufficientFundsError``."""
        if amount < 0:
            raise ValueError(f"Cannot debit a negative amount: {amount}")
        if amount == 0:
            return
        balance = self.get_balance(account, conn)
        if balance < amount:
            raise InsufficientFundsError(
                f"Account {account!r} holds {balance}, cannot pay {amount}."
            )
        self._set_balance(conn, account, balance - amount)

    @staticmethod
    def _set_balance(conn: sqlite3.Connection, account: str, amount: int) -> None:
        conn.execute(
            "INSERT INTO balances (account, amount) VALUES (?, ?) "
            "ON CONFLICT(account) DO UPDATE SET amount = excluded.amount",
            (account, str(amount)),
        )

    # ------------------------------------------------------------------
    # Notification log (append-only, hash-chained)
    # ------------------------------------------------------------------

    def append_event(self, conn: sqlite3.Connection, event: MarketEvent) -> EventLogEntry:
        """Seal *event* onto the end of the log and return the sealed entry."""
        row = conn.execute(
            "SELECT sequence, entry_hash FROM market_events "
            "ORDER BY sequence DESC LIMIT 1"
        ).fetchone()
        sequence, previous_hash = (row[0] + 1, row[1]) if row else (1, "")

        payload = event.model_dump(mode="json")
        entry_hash = compute_entry_hash({
            "sequence": sequence,
            "event": payload,
            "previous_entry_hash": previous_hash,
        })
        conn.execute(
            "INSERT INTO market_events "
            "(sequence, event_id, kind, item_id, payload_json, "
            " previous_entry_hash, entry_hash) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                sequence,
                event.event_id,
                event.kind.value,
                event.item_id,
                json.dumps(payload, sort_keys=True),
                previous_hash,
                entry_hash,
            ),
        )
        return EventLogEntry(
            sequence=sequence,
            event=event,
            previous_entry_hash=previous_hash,
            entry_hash=entry_hash,
        )

    def get_events(self, item_id: int | None = None) -> list[EventLogEntry]:
        """Return log entries in order, optionally only those for one item."""
        query = (
            "SELECT sequence, kind, payload_json, previous_entry_hash, entry_hash "
            "FROM market_events"
        )
        params: tuple = ()
        if item_id is not None:
            query += " WHERE item_id = ?"
            params = (item_id,)
        query += " ORDER BY sequence ASC"
        with self._reader() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def verify_chain(self) -> bool:
        """Verify the notification log's hash chain.

        Returns True if the chain is valid, raises LedgerIntegrityError otherwise.
        """
        with self._reader() as conn:
            rows = conn.execute(
                "SELECT sequence, payload_json, previous_entry_hash, entry_hash "
                "FROM market_events ORDER BY sequence ASC"
            ).fetchall()

        prev_hash = ""
        for sequence, payload_json, previous_entry_hash, entry_hash in rows:
            if previous_entry_hash != prev_hash:
                raise LedgerIntegrityError(
                    f"Chain broken at entry {sequence}: "
                    f"expected previous_hash={prev_hash!r}, "
                    f"got {previous_entry_hash!r}"
                )
            expected_hash = compute_entry_hash({
                "sequence": sequence,
                "event": json.loads(payload_json),
                "previous_entry_hash": previous_entry_hash,
            })
            if entry_hash != expected_hash:
                raise LedgerIntegrityError(
                    f"Tampered entry {sequence}: "
                    f"expected hash={expected_hash!r}, got {entry_hash!r}"
                )
            prev_hash = entry_hash
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_item(row: tuple) -> Item:
        (
            item_id,
            collection,
            token_id,
            price,
            seller,
            sold,
            buyer,
            listed_at,
            sold_at,
        ) = row
        return Item(
            item_id=item_id,
            collection=collection,
            token_id=int(token_id),
            price=int(price),
            seller=seller,
            sold=bool(sold),
            buyer=buyer,
            listed_at=listed_at,
            sold_at=sold_at,
        )

    @staticmethod
    def _row_to_entry(row: tuple) -> EventLogEntry:
        sequence, kind, payload_json, previous_entry_hash, entry_hash = row
        model_cls = EVENT_TYPE_MAP[MarketEventKind(kind)]
        return EventLogEntry(
            sequence=sequence,
            event=model_cls.model_validate_json(payload_json),
            previous_entry_hash=previous_entry_hash,
            entry_hash=entry_hash,
        )
