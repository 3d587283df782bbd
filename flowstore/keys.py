"""Keys under which the disk store files each kind of entity.

Numeric parts are zero-padded to 32 digits so that byte-wise ordering of
keys matches numeric ordering.
"""

from __future__ import annotations

from flowstore.model import Identifier, RegisterID

BLOCK_KEY_PREFIX = "block_by_height"
BLOCK_ID_INDEX_KEY_PREFIX = "block_id_to_height"
COLLECTION_KEY_PREFIX = "collection_by_id"
TRANSACTION_KEY_PREFIX = "transaction_by_id"
TRANSACTION_RESULT_KEY_PREFIX = "transaction_result_by_id"
LEDGER_KEY_PREFIX = "ledger_by_block_height"
EVENT_KEY_PREFIX = "event_by_block_height"
LEDGER_CHANGELOG_KEY_PREFIX = "ledger_changelog_by_register_id"
LEDGER_VALUE_KEY_PREFIX = "ledger_value_by_block_height_register_id"


def _number(value: int) -> str:
    if value < 0:
        raise ValueError(f"key number must not be negative, got {value}")
    return f"{value:032d}"


def latest_block_key() -> bytes:
    return b"latest_block_height"


def block_key(block_height: int) -> bytes:
    return f"{BLOCK_KEY_PREFIX}-{_number(block_height)}".encode()


def block_id_index_key(block_id: Identifier) -> bytes:
    return f"{BLOCK_ID_INDEX_KEY_PREFIX}-{bytes(block_id).hex()}".encode()


def collection_key(collection_id: Identifier) -> bytes:
    return f"{COLLECTION_KEY_PREFIX}-{bytes(collection_id).hex()}".encode()


def transaction_key(tx_id: Identifier) -> bytes:
    return f"{TRANSACTION_KEY_PREFIX}-{bytes(tx_id).hex()}".encode()


def transaction_result_key(tx_id: Identifier) -> bytes:
    return f"{TRANSACTION_RESULT_KEY_PREFIX}-{bytes(tx_id).hex()}".encode()


def event_key(block_height: int, tx_index: int, event_index: int, event_type: str) -> bytes:
    return (
        f"{EVENT_KEY_PREFIX}-{_number(block_height)}-{_number(tx_index)}"
        f"-{_number(event_index)}-{event_type}"
    ).encode()


def event_key_block_prefix(block_height: int) -> bytes:
    return f"{EVENT_KEY_PREFIX}-{_number(block_height)}".encode()


def event_key_has_type(key: bytes, event_type: bytes | str) -> bool:
    """Tell whether an event key ends with the given event type."""
    if isinstance(event_type, str):
        event_type = event_type.encode()
    return bytes(key).endswith(event_type)


def ledger_key(block_height: int) -> bytes:
    return f"{LEDGER_KEY_PREFIX}-{_number(block_height)}".encode()


def ledger_changelog_key(register_id: RegisterID) -> bytes:
    return (
        f"{LEDGER_CHANGELOG_KEY_PREFIX}-{register_id.owner}"
        f"-{register_id.controller}-{register_id.key}"
    ).encode()


def ledger_value_key(register_id: RegisterID, block_height: int) -> bytes:
    return f"{LEDGER_VALUE_KEY_PREFIX}-{register_id}-{_number(block_height)}".encode()


def register_id_from_ledger_changelog_key(key: bytes) -> RegisterID:
    """Recover the register ID from a ledger changelog key."""
    text = bytes(key).decode()
    parts = text.removeprefix(LEDGER_CHANGELOG_KEY_PREFIX + "-").split("-", 2)
    if len(parts) < 3:
        raise ValueError(f"failed to parse register ID from {text}")
    owner, controller, register_key = parts
    return RegisterID(owner=owner, controller=controller, key=register_key)