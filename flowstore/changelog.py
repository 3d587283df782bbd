"""Per-register history of the block heights at which a register changed."""

from __future__ import annotations

import threading
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Iterator

from flowstore.model import RegisterID

# Sentinel returned when a register has not been written by a given height.
NOT_FOUND = 2**64 - 1


@dataclass
class Changelist:
    """Block heights at which a register changed, kept in ascending order."""

    blocks: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.blocks = sorted(set(self.blocks))

    def __len__(self) -> int:
        return len(self.blocks)

    def __iter__(self) -> Iterator[int]:
        return iter(self.blocks)

    def search(self, n: int) -> int:
        """Return the highest recorded height that is <= n, or NOT_FOUND."""
        position = bisect_right(self.blocks, n)
        if position == 0:
            return NOT_FOUND
        return self.blocks[position - 1]

    def add(self, n: int) -> None:
        """Record height n, keeping the list sorted; recording it twice is a no-op."""
        if n == NOT_FOUND:
            return
        position = bisect_right(self.blocks, n)
        if position > 0 and self.blocks[position - 1] == n:
            return
        self.blocks.insert(position, n)


class Changelog:
    """Maps each register to the heights at which its value changed.

    Callers hold ``lock`` around reads and writes that must be consistent.
    """

    def __init__(self) -> None:
        self._registers: dict[RegisterID, Changelist] = {}
        self.lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._registers)

    def most_recent_change(self, register_id: RegisterID, block_height: int) -> int:
        """Return the latest height <= block_height at which the register changed."""
        clist = self._registers.get(register_id)
        if clist is None:
            return NOT_FOUND
        return clist.search(block_height)

    def changelist(self, register_id: RegisterID) -> Changelist:
        """Return a copy of the register's changelist, empty if there is none."""
        clist = self._registers.get(register_id)
        if clist is None:
            return Changelist()
        return Changelist(list(clist.blocks))

    def set_changelist(self, register_id: RegisterID, clist: Changelist) -> None:
        """Replace the register's changelist."""
        self._registers[register_id] = clist

    def add_change(self, register_id: RegisterID, block_height: int) -> None:
        """Record a change of the register at the given height."""
        self._registers.setdefault(register_id, Changelist()).add(block_height)