"""Failure tallies folded into the final operation result."""

from __future__ import annotations

from ferry.models.transfer_result import TransferResult


class ResultAggregator:
    """Accumulates per-item failure counts for one operation.

    Copy failures and post-cut delete failures are kept apart; they are
    never merged into a single number.
    """

    def __init__(self) -> None:
        self._failed_items = 0
        self._delete_failures_after_cut = 0

    @property
    def failed_items(self) -> int:
        return self._failed_items

    @property
    def delete_failures_after_cut(self) -> int:
        return self._delete_failures_after_cut

    def add_failures(self, count: int) -> None:
        self._failed_items += count

    def add_delete_failure_after_cut(self) -> None:
        self._delete_failures_after_cut += 1

    def transfer_result(self) -> TransferResult:
        return TransferResult(
            failed_items=self._failed_items,
            delete_failures_after_cut=self._delete_failures_after_cut,
        )
