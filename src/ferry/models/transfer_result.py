"""Transfer and deletion result dataclasses."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TransferResult:
    """Outcome of a copy or move.

    ``delete_failures_after_cut`` only counts for moves: sources that could
    not be removed after every file was copied successfully.
    """

    failed_items: int = 0
    delete_failures_after_cut: int = 0

    @property
    def ok(self) -> bool:
        return self.failed_items == 0 and self.delete_failures_after_cut == 0


@dataclass(frozen=True, slots=True)
class DeleteResult:
    """Outcome of a bulk delete."""

    failed_items: int = 0

    @property
    def ok(self) -> bool:
        return self.failed_items == 0
