"""Canonical CBOR encoding of the entities kept by the disk store."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator

import cbor2

from flowstore.changelog import Changelist
from flowstore.model import (
    Block,
    CollectionGuarantee,
    Event,
    Header,
    Identifier,
    LightCollection,
    Payload,
    TransactionBody,
)
from flowstore.results import StorableTransactionResult

_UINT64_LIMIT = 2**64


def _dump(value: Any) -> bytes:
    return cbor2.dumps(value, canonical=True)


@contextmanager
def _decoding(what: str) -> Iterator[None]:
    try:
        yield
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ValueError(f"could not decode {what}: {exc}") from exc


def _load(data: bytes) -> Any:
    return cbor2.loads(bytes(data))


def _header_to_map(header: Header) -> dict[str, Any]:
    return {
        "chain_id": header.chain_id,
        "parent_id": bytes(header.parent_id),
        "height": header.height,
        "payload_hash": bytes(header.payload_hash),
        "timestamp": None if header.timestamp is None else header.timestamp.isoformat(),
        "view": header.view,
        "proposer_id": bytes(header.proposer_id),
    }


def _header_from_map(m: dict[str, Any]) -> Header:
    timestamp = m["timestamp"]
    return Header(
        chain_id=str(m["chain_id"]),
        parent_id=Identifier(m["parent_id"]),
        height=int(m["height"]),
        payload_hash=Identifier(m["payload_hash"]),
        timestamp=None if timestamp is None else datetime.fromisoformat(timestamp),
        view=int(m["view"]),
        proposer_id=Identifier(m["proposer_id"]),
    )


def _guarantee_to_map(guarantee: CollectionGuarantee) -> dict[str, Any]:
    return {
        "collection_id": bytes(guarantee.collection_id),
        "signer_ids": [bytes(i) for i in guarantee.signer_ids],
        "signature": bytes(guarantee.signature),
    }


def _guarantee_from_map(m: dict[str, Any]) -> CollectionGuarantee:
    return CollectionGuarantee(
        collection_id=Identifier(m["collection_id"]),
        signer_ids=tuple(Identifier(i) for i in m["signer_ids"]),
        signature=bytes(m["signature"]),
    )


def _event_to_map(event: Event) -> dict[str, Any]:
    return {
        "type": event.type,
        "transaction_id": bytes(event.transaction_id),
        "transaction_index": event.transaction_index,
        "event_index": event.event_index,
        "payload": bytes(event.payload),
    }


def _event_from_map(m: dict[str, Any]) -> Event:
    return Event(
        type=str(m["type"]),
        transaction_id=Identifier(m["transaction_id"]),
        transaction_index=int(m["transaction_index"]),
        event_index=int(m["event_index"]),
        payload=bytes(m["payload"]),
    )


def encode_block(block: Block) -> bytes:
    return _dump(
        {
            "header": _header_to_map(block.header),
            "payload": {"guarantees": [_guarantee_to_map(g) for g in block.payload.guarantees]},
        }
    )


def decode_block(data: bytes) -> Block:
    with _decoding("block"):
        m = _load(data)
        return Block(
            header=_header_from_map(m["header"]),
            payload=Payload(
                guarantees=tuple(_guarantee_from_map(g) for g in m["payload"]["guarantees"])
            ),
        )


def encode_collection(collection: LightCollection) -> bytes:
    return _dump({"transactions": [bytes(i) for i in collection.transactions]})


def decode_collection(data: bytes) -> LightCollection:
    with _decoding("collection"):
        m = _load(data)
        return LightCollection(transactions=tuple(Identifier(i) for i in m["transactions"]))


def encode_transaction(tx: TransactionBody) -> bytes:
    return _dump(
        {
            "reference_block_id": bytes(tx.reference_block_id),
            "script": bytes(tx.script),
            "arguments": [bytes(a) for a in tx.arguments],
            "gas_limit": tx.gas_limit,
            "proposal_address": bytes(tx.proposal_address),
            "proposal_key_index": tx.proposal_key_index,
            "proposal_sequence_number": tx.proposal_sequence_number,
            "payer": bytes(tx.payer),
            "authorizers": [bytes(a) for a in tx.authorizers],
            "payload_signatures": [bytes(s) for s in tx.payload_signatures],
            "envelope_signatures": [bytes(s) for s in tx.envelope_signatures],
        }
    )


def decode_transaction(data: bytes) -> TransactionBody:
    with _decoding("transaction"):
        m = _load(data)
        return TransactionBody(
            reference_block_id=Identifier(m["reference_block_id"]),
            script=bytes(m["script"]),
            arguments=tuple(bytes(a) for a in m["arguments"]),
            gas_limit=int(m["gas_limit"]),
            proposal_address=bytes(m["proposal_address"]),
            proposal_key_index=int(m["proposal_key_index"]),
            proposal_sequence_number=int(m["proposal_sequence_number"]),
            payer=bytes(m["payer"]),
            authorizers=tuple(bytes(a) for a in m["authorizers"]),
            payload_signatures=tuple(bytes(s) for s in m["payload_signatures"]),
            envelope_signatures=tuple(bytes(s) for s in m["envelope_signatures"]),
        )


def encode_transaction_result(result: StorableTransactionResult) -> bytes:
    return _dump(
        {
            "error_code": result.error_code,
            "error_message": result.error_message,
            "logs": list(result.logs),
            "events": [_event_to_map(e) for e in result.events],
        }
    )


def decode_transaction_result(data: bytes) -> StorableTransactionResult:
    with _decoding("transaction result"):
        m = _load(data)
        return StorableTransactionResult(
            error_code=int(m["error_code"]),
            error_message=str(m["error_message"]),
            logs=[str(line) for line in m["logs"]],
            events=[_event_from_map(e) for e in m["events"]],
        )


def _check_uint64(value: Any) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"expected an unsigned 64-bit integer, got {value!r}")
    if not 0 <= value < _UINT64_LIMIT:
        raise ValueError(f"{value} is out of range for an unsigned 64-bit integer")
    return value


def encode_uint64(value: int) -> bytes:
    return _dump(_check_uint64(value))


def decode_uint64(data: bytes) -> int:
    with _decoding("uint64"):
        return _check_uint64(_load(data))


def encode_event(event: Event) -> bytes:
    return _dump(_event_to_map(event))


def decode_event(data: bytes) -> Event:
    with _decoding("event"):
        return _event_from_map(_load(data))


def encode_changelist(clist: Changelist) -> bytes:
    return _dump([_check_uint64(n) for n in clist.blocks])


def decode_changelist(data: bytes) -> Changelist:
    with _decoding("changelist"):
        return Changelist([_check_uint64(n) for n in _load(data)])