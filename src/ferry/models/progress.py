"""Progress accumulator and the immutable snapshots taken from it."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Operation(str, Enum):
    """Kind of bulk operation. The value doubles as the progress label."""

    COPY = "copy"
    MOVE = "move"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class Totals:
    """Item and byte counts computed by the totals pass."""

    item_count: int = 0
    byte_count: int = 0

    def __add__(self, other: Totals) -> Totals:
        return Totals(self.item_count + other.item_count, self.byte_count + other.byte_count)


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    """Read-only view of a :class:`Progress` at one tick.

    This is what crosses from the worker thread to a progress sink.
    """

    copied_items: int
    total_items: int
    copied_bytes: int
    total_bytes: int
    current_name: str
    operation: Operation
    indeterminate: bool

    @property
    def percent(self) -> int | None:
        """Completion percentage, from bytes if known, else from items."""
        if self.indeterminate:
            return None
        if self.total_bytes > 0:
            return _percent(self.copied_bytes, self.total_bytes)
        if self.total_items > 0:
            return _percent(self.copied_items, self.total_items)
        return None


@dataclass(slots=True)
class Progress:
    """Mutable counters owned by the worker running an operation.

    Totals are fixed when the operation starts; the copied counters only
    ever grow.
    """

    total_items: int
    total_bytes: int
    copied_items: int = 0
    copied_bytes: int = 0
    current_name: str = ""

    @classmethod
    def from_totals(cls, totals: Totals) -> Progress:
        return cls(total_items=totals.item_count, total_bytes=totals.byte_count)

    @property
    def is_complete(self) -> bool:
        return self.copied_items == self.total_items

    def snapshot(self, operation: Operation) -> ProgressSnapshot:
        return ProgressSnapshot(
            copied_items=self.copied_items,
            total_items=self.total_items,
            copied_bytes=self.copied_bytes,
            total_bytes=self.total_bytes,
            current_name=self.current_name,
            operation=operation,
            indeterminate=self.total_items <= 0,
        )


def _percent(copied: int, total: int) -> int:
    return max(0, min(100, round(copied * 100 / total)))
