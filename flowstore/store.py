"""The interface every chain-state store implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Mapping

from flowstore.ledger import Delta, View
from flowstore.model import Block, Event, Identifier, LightCollection, TransactionBody
from flowstore.results import StorableTransactionResult


class Store(ABC):
    """Storage for finalized blocks, transactions, results, ledger state and events.

    Lookups of missing entities raise NotFoundError. Implementations must be
    safe for use from several threads.
    """

    @abstractmethod
    def latest_block(self) -> Block:
        """Return the block with the highest height."""

    @abstractmethod
    def store_block(self, block: Block) -> None:
        """Store the block; storing an identical block again succeeds."""

    @abstractmethod
    def block_by_id(self, block_id: Identifier) -> Block:
        """Return the block with the given ID."""

    @abstractmethod
    def block_by_height(self, height: int) -> Block:
        """Return the block at the given height."""

    @abstractmethod
    def commit_block(
        self,
        block: Block,
        collections: Iterable[LightCollection],
        transactions: Mapping[Identifier, TransactionBody],
        transaction_results: Mapping[Identifier, StorableTransactionResult],
        delta: Delta,
        events: Iterable[Event] | None,
    ) -> None:
        """Atomically save the execution results for a block."""

    @abstractmethod
    def collection_by_id(self, collection_id: Identifier) -> LightCollection:
        """Return the collection with the given ID."""

    @abstractmethod
    def transaction_by_id(self, tx_id: Identifier) -> TransactionBody:
        """Return the transaction with the given ID."""

    @abstractmethod
    def transaction_result_by_id(self, tx_id: Identifier) -> StorableTransactionResult:
        """Return the result of the transaction with the given ID."""

    @abstractmethod
    def ledger_view_by_height(self, block_height: int) -> View:
        """Return a view of the ledger state at the given block."""

    @abstractmethod
    def events_by_height(self, block_height: int, event_type: str = "") -> list[Event]:
        """Return the events of the block at the given height, optionally of one type."""