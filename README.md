# flowstore

A storage layer for the chain state of a local blockchain emulator. It keeps
finalized blocks, light collections (transaction IDs only), transaction
bodies, storable transaction results, emitted events, and the register state
of the ledger, versioned by block height.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## What is in the package

- `flowstore.store.Store` – the abstract interface: `latest_block`,
  `store_block`, `block_by_id`, `block_by_height`, `commit_block`,
  `collection_by_id`, `transaction_by_id`, `transaction_result_by_id`,
  `ledger_view_by_height` and `events_by_height`.
- `flowstore.memstore.MemoryStore` – keeps everything in dictionaries behind
  a lock. The ledger is kept as one `MapLedger` per block height, built from
  the ledger of the previous height plus the block's `Delta`.
- `flowstore.diskstore.DiskStore` – persists everything in an SQLite file
  (`store.sqlite3`) inside the directory given by `Config.db_path`
  (default `./flowdb`). It keeps a per-register `Changelog` so the ledger can
  be read as it stood at any height; the changelog is reloaded when the store
  is reopened. Besides the `Store` methods it has `insert_collection`,
  `insert_transaction`, `insert_transaction_result`, `insert_ledger_delta`,
  `insert_events`, `sync` (checkpoints the write-ahead log),
  `run_value_log_gc(discard_ratio)` (vacuums the database; the ratio must lie
  strictly between 0 and 1) and `close`. It is also a context manager.
- `flowstore.model` – frozen dataclasses `Block`, `Header`, `Payload`,
  `CollectionGuarantee`, `LightCollection`, `TransactionBody`, `Event` and
  `RegisterID`, and the 32-byte `Identifier`. IDs are the SHA3-256 digest of
  a canonical CBOR form (`identifier_of`).
- `flowstore.ledger` – `Delta` (register writes), `View` (a writable view
  that reads through a function) and `MapLedger`.
- `flowstore.results` – `StorableTransactionResult`, and `TransactionResult`
  and `ScriptResult` with `succeeded()` / `reverted()`.
- `flowstore.encoding` – canonical CBOR `encode_*` / `decode_*` functions for
  each stored entity.
- `flowstore.keys` – the database keys; numbers are zero-padded to 32 digits
  so byte order matches numeric order.
- `flowstore.errors` – `StorageError`, `NotFoundError` (also a
  `LookupError`) and `FlowError`.

Lookups of missing entities raise `NotFoundError`. `commit_block` raises
`ValueError` when the number of transactions and of results differ.

## Usage

### In memory

```python
from flowstore.errors import NotFoundError
from flowstore.ledger import Delta
from flowstore.memstore import MemoryStore
from flowstore.model import Block, Header

store = MemoryStore()

block = Block(header=Header(height=0))
delta = Delta()
delta.set("", "", "foo", b"bar")

store.commit_block(block, [], {}, {}, delta, [])

assert store.latest_block() == block
assert store.ledger_view_by_height(0).get("", "", "foo") == b"bar"

try:
    store.block_by_height(7)
except NotFoundError:
    pass
```

### On disk

```python
from flowstore.config import Config
from flowstore.diskstore import DiskStore
from flowstore.ledger import Delta
from flowstore.model import Block, Header

with DiskStore(Config(db_path="./flowdb")) as store:
    store.store_block(Block(header=Header(height=1)))

    delta = Delta()
    delta.set("", "", "foo", b"bar")
    store.insert_ledger_delta(1, delta)

    assert store.ledger_view_by_height(1).get("", "", "foo") == b"bar"
```

`events_by_height(height, event_type)` returns the block's events ordered by
transaction index, then event index; pass an empty string for all types.

`Config` also carries a `logger`, to which `DiskStore` writes debug
messages when it opens and closes, and a `truncate` flag, which `DiskStore`
currently does not act on.

## What it does not do

flowstore only stores state. It does not execute transactions or scripts,
produce blocks, check signatures, or serve any network API; the result
classes just hold what some executor reports.