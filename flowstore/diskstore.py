"""A persistent store kept in a single-file embedded database."""

from __future__ import annotations

import os
import sqlite3
import threading
from contextlib import contextmanager
from typing import Iterable, Iterator, Mapping

from flowstore.changelog import Changelog
from flowstore.config import Config
from flowstore.encoding import (
    decode_block,
    decode_changelist,
    decode_collection,
    decode_event,
    decode_transaction,
    decode_transaction_result,
    decode_uint64,
    encode_block,
    encode_changelist,
    encode_collection,
    encode_event,
    encode_transaction,
    encode_transaction_result,
    encode_uint64,
)
from flowstore.errors import NotFoundError, StorageError
from flowstore.keys import (
    LEDGER_CHANGELOG_KEY_PREFIX,
    block_id_index_key,
    block_key,
    collection_key,
    event_key,
    event_key_block_prefix,
    event_key_has_type,
    latest_block_key,
    ledger_changelog_key,
    ledger_value_key,
    register_id_from_ledger_changelog_key,
    transaction_key,
    transaction_result_key,
)
from flowstore.ledger import Delta, RegisterValue, View
from flowstore.model import Block, Event, Identifier, LightCollection, RegisterID, TransactionBody
from flowstore.results import StorableTransactionResult
from flowstore.store import Store

DATABASE_FILE = "store.sqlite3"


def _prefix_end(prefix: bytes) -> bytes | None:
    """Return the smallest key greater than every key starting with prefix."""
    trimmed = prefix.rstrip(b"\xff")
    if not trimmed:
        return None
    return trimmed[:-1] + bytes([trimmed[-1] + 1])


class _Txn:
    """Key-value operations inside one database transaction."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get(self, key: bytes) -> bytes:
        row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            raise NotFoundError()
        return bytes(row[0])

    def set(self, key: bytes, value: bytes) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, bytes(value))
        )

    def scan(self, prefix: bytes, start: bytes | None = None) -> Iterator[tuple[bytes, bytes]]:
        """Yield key/value pairs whose keys start with prefix, in byte order."""
        lower = max(prefix, start) if start is not None else prefix
        upper = _prefix_end(prefix)
        if upper is None:
            rows = self._conn.execute(
                "SELECT key, value FROM kv WHERE key >= ? ORDER BY key", (lower,)
            ).fetchall()
        else:
            rows = self._conn.execute(
                "SELECT key, value FROM kv WHERE key >= ? AND key < ? ORDER BY key",
                (lower, upper),
            ).fetchall()
        for key, value in rows:
            yield bytes(key), bytes(value)

    def latest_block_height(self) -> int:
        return decode_uint64(self.get(latest_block_key()))


class DiskStore(Store):
    """Chain state persisted in an embedded database under ``config.db_path``.

    Close the store before exiting so that all writes reach the disk.
    """

    def __init__(self, config: Config | None = None) -> None:
        self.config = config if config is not None else Config()
        self._logger = self.config.logger
        self._lock = threading.RLock()
        self._ledger_changelog = Changelog()
        try:
            os.makedirs(self.config.db_path, exist_ok=True)
            conn = sqlite3.connect(
                os.path.join(self.config.db_path, DATABASE_FILE),
                isolation_level=None,
                check_same_thread=False,
            )
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(
                "CREATE TABLE IF NOT EXISTS kv "
                "(key BLOB PRIMARY KEY, value BLOB NOT NULL) WITHOUT ROWID"
            )
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"could not open database: {exc}") from exc
        self._conn: sqlite3.Connection | None = conn
        self._logger.debug("opened database at %s", self.config.db_path)
        try:
            self._setup()
        except BaseException:
            self.close()
            raise

    def __enter__(self) -> "DiskStore":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("store is closed")
        return self._conn

    @contextmanager
    def _transaction(self, write: bool = False) -> Iterator[_Txn]:
        with self._lock:
            conn = self._connection()
            try:
                conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
            except sqlite3.Error as exc:
                raise StorageError(str(exc)) from exc
            try:
                yield _Txn(conn)
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            else:
                conn.execute("COMMIT")

    def _setup(self) -> None:
        """Load the register changelists from disk into memory."""
        with self._transaction() as txn, self._ledger_changelog.lock:
            for key, value in txn.scan(LEDGER_CHANGELOG_KEY_PREFIX.encode()):
                try:
                    register_id = register_id_from_ledger_changelog_key(key)
                except ValueError as exc:
                    raise StorageError("found changelist for invalid register ID") from exc
                self._ledger_changelog.set_changelist(register_id, decode_changelist(value))

    def close(self) -> None:
        """Close the database; closing twice is harmless."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                self._logger.debug("closed database at %s", self.config.db_path)

    def sync(self) -> None:
        """Flush the database content to its main file on disk."""
        with self._lock:
            self._connection().execute("PRAGMA wal_checkpoint(FULL)")

    def run_value_log_gc(self, discard_ratio: float) -> None:
        """Reclaim space left by overwritten values."""
        if not 0.0 < discard_ratio < 1.0:
            raise ValueError(f"discard ratio must be between 0 and 1, got {discard_ratio}")
        with self._lock:
            self._connection().execute("VACUUM")

    def latest_block(self) -> Block:
        with self._transaction() as txn:
            return decode_block(txn.get(block_key(txn.latest_block_height())))

    def block_by_id(self, block_id: Identifier) -> Block:
        with self._transaction() as txn:
            height = decode_uint64(txn.get(block_id_index_key(block_id)))
            return decode_block(txn.get(block_key(height)))

    def block_by_height(self, height: int) -> Block:
        with self._transaction() as txn:
            return decode_block(txn.get(block_key(height)))

    def store_block(self, block: Block) -> None:
        with self._transaction(write=True) as txn:
            self._store_block(txn, block)

    @staticmethod
    def _store_block(txn: _Txn, block: Block) -> None:
        height = block.header.height
        enc_block = encode_block(block)
        enc_height = encode_uint64(height)
        try:
            latest = txn.latest_block_height()
        except NotFoundError:
            latest = 0
        txn.set(block_key(height), enc_block)
        txn.set(block_id_index_key(block.id()), enc_height)
        if height >= latest:
            txn.set(latest_block_key(), enc_height)

    def commit_block(
        self,
        block: Block,
        collections: Iterable[LightCollection],
        transactions: Mapping[Identifier, TransactionBody],
        transaction_results: Mapping[Identifier, StorableTransactionResult],
        delta: Delta,
        events: Iterable[Event] | None,
    ) -> None:
        if len(transactions) != len(transaction_results):
            raise ValueError(
                f"transactions count ({len(transactions)}) does not match "
                f"result count ({len(transaction_results)})"
            )
        with self._transaction(write=True) as txn:
            self._store_block(txn, block)
            for collection in collections:
                txn.set(collection_key(collection.id()), encode_collection(collection))
            for tx_id, tx in transactions.items():
                txn.set(transaction_key(tx_id), encode_transaction(tx))
            for tx_id, result in transaction_results.items():
                txn.set(transaction_result_key(tx_id), encode_transaction_result(result))
            self._insert_ledger_delta(txn, block.header.height, delta)
            if events is not None:
                self._insert_events(txn, block.header.height, events)

    def collection_by_id(self, collection_id: Identifier) -> LightCollection:
        with self._transaction() as txn:
            return decode_collection(txn.get(collection_key(collection_id)))

    def insert_collection(self, collection: LightCollection) -> None:
        with self._transaction(write=True) as txn:
            txn.set(collection_key(collection.id()), encode_collection(collection))

    def transaction_by_id(self, tx_id: Identifier) -> TransactionBody:
        with self._transaction() as txn:
            return decode_transaction(txn.get(transaction_key(tx_id)))

    def insert_transaction(self, tx: TransactionBody) -> None:
        with self._transaction(write=True) as txn:
            txn.set(transaction_key(tx.id()), encode_transaction(tx))

    def transaction_result_by_id(self, tx_id: Identifier) -> StorableTransactionResult:
        with self._transaction() as txn:
            return decode_transaction_result(txn.get(transaction_result_key(tx_id)))

    def insert_transaction_result(
        self, tx_id: Identifier, result: StorableTransactionResult
    ) -> None:
        with self._transaction(write=True) as txn:
            txn.set(transaction_result_key(tx_id), encode_transaction_result(result))

    def ledger_view_by_height(self, block_height: int) -> View:
        def read(owner: str, controller: str, key: str) -> RegisterValue:
            register_id = RegisterID(owner, controller, key)
            with self._ledger_changelog.lock:
                last_changed = self._ledger_changelog.most_recent_change(
                    register_id, block_height
                )
                try:
                    with self._transaction() as txn:
                        return txn.get(ledger_value_key(register_id, last_changed))
                except NotFoundError:
                    return None

        return View(read)

    def insert_ledger_delta(self, block_height: int, delta: Delta) -> None:
        with self._transaction(write=True) as txn:
            self._insert_ledger_delta(txn, block_height, delta)

    def _insert_ledger_delta(self, txn: _Txn, block_height: int, delta: Delta) -> None:
        with self._ledger_changelog.lock:
            for register_id, value in delta.register_updates():
                # a deleted register only gets its change recorded, with no value
                if value is not None:
                    txn.set(ledger_value_key(register_id, block_height), value)
                self._ledger_changelog.add_change(register_id, block_height)
                txn.set(
                    ledger_changelog_key(register_id),
                    encode_changelist(self._ledger_changelog.changelist(register_id)),
                )

    def events_by_height(self, block_height: int, event_type: str = "") -> list[Event]:
        type_bytes = event_type.encode()
        start = event_key(block_height, 0, 0, "")
        with self._transaction() as txn:
            return [
                decode_event(value)
                for key, value in txn.scan(event_key_block_prefix(block_height), start)
                if not event_type or event_key_has_type(key, type_bytes)
            ]

    def insert_events(self, block_height: int, events: Iterable[Event]) -> None:
        with self._transaction(write=True) as txn:
            self._insert_events(txn, block_height, events)

    @staticmethod
    def _insert_events(txn: _Txn, block_height: int, events: Iterable[Event]) -> None:
        for event in events:
            key = event_key(block_height, event.transaction_index, event.event_index, event.type)
            txn.set(key, encode_event(event))