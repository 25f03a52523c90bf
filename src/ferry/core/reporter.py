"""Throttled forwarding of progress ticks to an external sink."""

from __future__ import annotations

import logging
import time
from typing import Callable

from ferry.models.progress import Operation, Progress, ProgressSnapshot

log = logging.getLogger(__name__)

DEFAULT_INTERVAL = 0.1  # seconds between forwarded snapshots

ProgressSink = Callable[[ProgressSnapshot], None]
Dispatcher = Callable[[Callable[[], None]], None]


def call_directly(callback: Callable[[], None]) -> None:
    """Dispatcher that runs the callback on the calling thread."""
    callback()


class ProgressReporter:
    """Turns per-chunk ticks into a bounded stream of snapshots.

    A tick is forwarded when at least ``interval`` seconds passed since the
    previous forwarded tick, or when the operation just completed
    (``copied_items == total_items``). Snapshots are taken on the worker
    thread; only the frozen snapshot is handed to *dispatch*, which moves
    delivery onto the caller's context (``GLib.idle_add``,
    ``loop.call_soon_threadsafe``, or a direct call).
    """

    def __init__(
        self,
        operation: Operation,
        sink: ProgressSink | None,
        *,
        interval: float = DEFAULT_INTERVAL,
        dispatch: Dispatcher = call_directly,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.operation = operation
        self._sink = sink
        self._interval = interval
        self._dispatch = dispatch
        self._clock = clock
        self._progress: Progress | None = None
        self._last_forwarded: float | None = None
        self._pending = False

    def attach(self, progress: Progress) -> None:
        """Start following *progress*; the throttle window starts fresh."""
        self._progress = progress
        self._last_forwarded = None
        self._pending = False

    def publish(self, progress: Progress) -> None:
        """Forward a snapshot of *progress* unconditionally.

        Used for the lifecycle states around the executor walk (pre-scan
        spinner, totals known). Does not affect the tick throttle.
        """
        self._forward(progress.snapshot(self.operation))

    def tick(self) -> None:
        """Executor callback: forward the current state if the throttle allows."""
        progress = self._progress
        if progress is None:
            return
        now = self._clock()
        due = self._last_forwarded is None or now - self._last_forwarded >= self._interval
        if due or progress.is_complete:
            self._last_forwarded = now
            self._pending = False
            self._forward(progress.snapshot(self.operation))
        else:
            self._pending = True

    def finish(self) -> None:
        """Forward the final state if the throttle swallowed the last tick."""
        if self._progress is not None and self._pending:
            self._pending = False
            self._forward(self._progress.snapshot(self.operation))

    def _forward(self, snapshot: ProgressSnapshot) -> None:
        if self._sink is None:
            return
        sink = self._sink

        def deliver() -> None:
            try:
                sink(snapshot)
            except Exception:
                log.exception("Progress sink failed for %s", snapshot.operation.value)

        self._dispatch(deliver)
