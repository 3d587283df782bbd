"""Register deltas, ledger views and a map-backed ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from flowstore.model import RegisterID

RegisterValue = bytes | None
ReadFunc = Callable[[str, str, str], RegisterValue]


@dataclass(frozen=True)
class RegisterEntry:
    key: RegisterID
    value: RegisterValue


@dataclass
class Delta:
    """Register writes keyed by the string form of their register ID."""

    data: dict[str, RegisterEntry] = field(default_factory=dict)

    def set(self, owner: str, controller: str, key: str, value: RegisterValue) -> None:
        register_id = RegisterID(owner, controller, key)
        stored = None if value is None else bytes(value)
        self.data[str(register_id)] = RegisterEntry(register_id, stored)

    def get(self, owner: str, controller: str, key: str) -> RegisterValue:
        """Return the written value; raise KeyError if the register was not written."""
        return self.data[str(RegisterID(owner, controller, key))].value

    def register_updates(self) -> list[tuple[RegisterID, RegisterValue]]:
        """Return the written registers and their values, ordered by register ID."""
        entries = sorted(
            self.data.values(),
            key=lambda e: (e.key.owner, e.key.controller, e.key.key),
        )
        return [(entry.key, entry.value) for entry in entries]


class View:
    """A writable view over ledger state read through a function."""

    def __init__(self, read_func: ReadFunc) -> None:
        self._read = read_func
        self._delta = Delta()

    def get(self, owner: str, controller: str, key: str) -> RegisterValue:
        try:
            return self._delta.get(owner, controller, key)
        except KeyError:
            return self._read(owner, controller, key)

    def set(self, owner: str, controller: str, key: str, value: RegisterValue) -> None:
        self._delta.set(owner, controller, key, value)

    def delta(self) -> Delta:
        return self._delta


@dataclass
class MapLedger:
    """A ledger held in a dict that records every register touched."""

    registers: dict[str, RegisterValue] = field(default_factory=dict)
    register_touches: set[str] = field(default_factory=set)

    def get(self, owner: str, controller: str, key: str) -> RegisterValue:
        k = str(RegisterID(owner, controller, key))
        self.register_touches.add(k)
        return self.registers.get(k)

    def set(self, owner: str, controller: str, key: str, value: RegisterValue) -> None:
        k = str(RegisterID(owner, controller, key))
        self.register_touches.add(k)
        self.registers[k] = value