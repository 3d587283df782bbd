"""Results of executing transactions and scripts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from flowstore.model import Event, Identifier, ZERO_ID


@dataclass
class StorableTransactionResult:
    """The part of a transaction result that is persisted."""

    error_code: int = 0
    error_message: str = ""
    logs: list[str] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)


@dataclass
class TransactionResult:
    """The result of executing a transaction."""

    transaction_id: Identifier = ZERO_ID
    computation_used: int = 0
    error: BaseException | None = None
    logs: list[str] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)

    def succeeded(self) -> bool:
        return self.error is None

    def reverted(self) -> bool:
        return not self.succeeded()


@dataclass
class ScriptResult:
    """The result of executing a script."""

    script_id: Identifier = ZERO_ID
    value: Any = None
    error: BaseException | None = None
    logs: list[str] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)

    def succeeded(self) -> bool:
        return self.error is None

    def reverted(self) -> bool:
        return not self.succeeded()