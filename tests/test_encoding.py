from datetime import datetime, timezone

import pytest

from flowstore.changelog import Changelist
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


def _id(n: int) -> Identifier:
    return Identifier(n.to_bytes(32, "big"))


def _transaction_fixture() -> TransactionBody:
    return TransactionBody(
        reference_block_id=_id(7),
        script=b'transaction { execute { log("Hello, World!") } }',
        arguments=(b"\x01", b"\x02"),
        gas_limit=10,
        proposal_address=bytes(8),
        proposal_key_index=1,
        proposal_sequence_number=42,
        payer=bytes(8),
        authorizers=(bytes(8),),
        payload_signatures=(b"sig-a",),
        envelope_signatures=(b"sig-b",),
    )


def _event_fixture() -> Event:
    return Event(
        type="flow.AccountCreated",
        transaction_id=_id(3),
        transaction_index=1,
        event_index=2,
        payload=b'{"type":"Event"}',
    )


def _result_fixture() -> StorableTransactionResult:
    return StorableTransactionResult(
        error_code=42,
        error_message="foo",
        logs=["a", "b", "c"],
        events=[_event_fixture()],
    )


def test_encode_transaction():
    tx = _transaction_fixture()
    decoded = decode_transaction(encode_transaction(tx))
    assert decoded.id() == tx.id()
    assert decoded == tx


def test_encode_transaction_result():
    result = _result_fixture()
    assert decode_transaction_result(encode_transaction_result(result)) == result


def test_encode_block():
    block = Block(
        header=Header(height=1234, parent_id=_id(1)),
        payload=Payload(guarantees=(CollectionGuarantee(collection_id=_id(2)),)),
    )
    decoded = decode_block(encode_block(block))
    assert decoded.id() == block.id()
    assert decoded.header == block.header
    assert decoded.payload == block.payload


def test_encode_genesis_like_block():
    block = Block(
        header=Header(
            chain_id="flow-emulator",
            height=0,
            timestamp=datetime(2018, 12, 19, 22, 32, 30, 42, tzinfo=timezone.utc),
        )
    )
    decoded = decode_block(encode_block(block))
    assert decoded.id() == block.id()
    assert decoded.header == block.header
    assert decoded.payload == block.payload


def test_encode_collection():
    col = LightCollection(transactions=(_id(1), _id(2), _id(3)))
    decoded = decode_collection(encode_collection(col))
    assert decoded == col
    assert decoded.id() == col.id()


def test_encode_event():
    event = _event_fixture()
    assert decode_event(encode_event(event)) == event


def test_encode_changelist():
    clist = Changelist()
    clist.add(1)
    assert decode_changelist(encode_changelist(clist)) == clist


@pytest.mark.parametrize("value", [0, 1, 1234, 2**64 - 1])
def test_uint64_round_trip(value):
    assert decode_uint64(encode_uint64(value)) == value


@pytest.mark.parametrize("value", [-1, 2**64])
def test_encode_uint64_out_of_range(value):
    with pytest.raises(ValueError):
        encode_uint64(value)


def test_encoding_is_deterministic():
    first = Block(header=Header(height=5, parent_id=_id(9)))
    second = Block(header=Header(height=5, parent_id=_id(9)))
    assert encode_block(first) == encode_block(second)


def test_decode_truncated_data_raises():
    data = encode_transaction(_transaction_fixture())
    with pytest.raises(ValueError):
        decode_transaction(data[: len(data) // 2])


def test_decode_wrong_shape_raises():
    with pytest.raises(ValueError):
        decode_block(encode_uint64(5))


def test_decode_uint64_rejects_non_integer():
    with pytest.raises(ValueError):
        decode_uint64(encode_event(_event_fixture()))