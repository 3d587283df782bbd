"""Chain entities kept by a store: blocks, collections, transactions and events."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime
from typing import Any

import cbor2


class Identifier(bytes):
    """A 32-byte entity identifier."""

    SIZE = 32

    def __new__(cls, value: bytes = bytes(32)) -> "Identifier":
        if isinstance(value, int):
            raise TypeError("identifier must be built from bytes")
        raw = bytes(value)
        if len(raw) != cls.SIZE:
            raise ValueError(f"identifier must be {cls.SIZE} bytes, got {len(raw)}")
        return super().__new__(cls, raw)

    @classmethod
    def from_hex(cls, text: str) -> "Identifier":
        return cls(bytes.fromhex(text))

    def hex(self) -> str:  # type: ignore[override]
        return bytes(self).hex()

    def __repr__(self) -> str:
        return f"Identifier({self.hex()!r})"


ZERO_ID = Identifier()


def _plain(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return [_plain(getattr(value, f.name)) for f in fields(value)]
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {_plain(k): _plain(v) for k, v in value.items()}
    raise TypeError(f"cannot fingerprint value of type {type(value).__name__}")


def identifier_of(*args: Any) -> Identifier:
    """Return the identifier obtained by hashing the canonical form of the arguments."""
    encoded = cbor2.dumps(_plain(list(args)), canonical=True)
    return Identifier(hashlib.sha3_256(encoded).digest())


@dataclass(frozen=True)
class RegisterID:
    """Address of a ledger register."""

    owner: str = ""
    controller: str = ""
    key: str = ""

    def __str__(self) -> str:
        return "/".join(part.encode().hex() for part in (self.owner, self.controller, self.key))


@dataclass(frozen=True)
class Header:
    chain_id: str = ""
    parent_id: Identifier = ZERO_ID
    height: int = 0
    payload_hash: Identifier = ZERO_ID
    timestamp: datetime | None = None
    view: int = 0
    proposer_id: Identifier = ZERO_ID


@dataclass(frozen=True)
class CollectionGuarantee:
    collection_id: Identifier = ZERO_ID
    signer_ids: tuple[Identifier, ...] = ()
    signature: bytes = b""

    def id(self) -> Identifier:
        return self.collection_id


@dataclass(frozen=True)
class Payload:
    guarantees: tuple[CollectionGuarantee, ...] = ()


@dataclass(frozen=True)
class Block:
    header: Header = field(default_factory=Header)
    payload: Payload = field(default_factory=Payload)

    def id(self) -> Identifier:
        return identifier_of(self.header)


@dataclass(frozen=True)
class LightCollection:
    """A collection holding transaction IDs only."""

    transactions: tuple[Identifier, ...] = ()

    def id(self) -> Identifier:
        return identifier_of(self.transactions)


@dataclass(frozen=True)
class TransactionBody:
    reference_block_id: Identifier = ZERO_ID
    script: bytes = b""
    arguments: tuple[bytes, ...] = ()
    gas_limit: int = 0
    proposal_address: bytes = b""
    proposal_key_index: int = 0
    proposal_sequence_number: int = 0
    payer: bytes = b""
    authorizers: tuple[bytes, ...] = ()
    payload_signatures: tuple[bytes, ...] = ()
    envelope_signatures: tuple[bytes, ...] = ()

    def id(self) -> Identifier:
        return identifier_of(self)


@dataclass(frozen=True)
class Event:
    type: str = ""
    transaction_id: Identifier = ZERO_ID
    transaction_index: int = 0
    event_index: int = 0
    payload: bytes = b""

    def id(self) -> Identifier:
        return identifier_of(self.transaction_id, self.event_index)