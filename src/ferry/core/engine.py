"""Bulk operation orchestration: gate, worker thread, and phase sequencing."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, TypeVar

from ferry.core.deleter import delete
from ferry.core.reporter import DEFAULT_INTERVAL, Dispatcher, ProgressReporter, ProgressSink, call_directly
from ferry.core.scanner import scan_delete_totals, scan_totals
from ferry.core.transfer import DEFAULT_CHUNK_SIZE, transfer
from ferry.models.clipboard import Clipboard
from ferry.models.node import FileNode
from ferry.models.progress import Operation, Progress, Totals
from ferry.models.transfer_result import DeleteResult, TransferResult
from ferry.utils import format_elapsed

log = logging.getLogger(__name__)

R = TypeVar("R", TransferResult, DeleteResult)

TransferCallback = Callable[[TransferResult], None]
DeleteCallback = Callable[[DeleteResult], None]


class TransferBusyError(Exception):
    """Raised when an operation is submitted while another one is running."""


class TransferEngine:
    """Runs one copy, move or delete at a time.

    Every operation goes through the same phases, strictly in sequence:
    an indeterminate snapshot, the totals pass, a snapshot with totals,
    the executor walk (throttled ticks), a final snapshot, then the result.

    ``submit_*`` methods run the phases on a daemon thread and return it;
    ``run_*`` methods run them on the calling thread. Both are gated: a
    second operation is rejected with :class:`TransferBusyError` while one
    is in flight. Snapshots and completion callbacks go through *dispatch*
    so a GUI or event loop can receive them on its own thread.
    """

    def __init__(
        self,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        interval: float = DEFAULT_INTERVAL,
        dispatch: Dispatcher = call_directly,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.chunk_size = chunk_size
        self.interval = interval
        self._dispatch = dispatch
        self._clock = clock
        self._gate = threading.Lock()

    @property
    def busy(self) -> bool:
        """Whether an operation currently holds the gate."""
        return self._gate.locked()

    # -- synchronous entry points --

    def run_transfer(
        self,
        sources: list[FileNode],
        destination: FileNode,
        is_move: bool = False,
        on_progress: ProgressSink | None = None,
    ) -> TransferResult:
        """Copy (or move) *sources* into *destination* on this thread."""
        self._acquire()
        try:
            return self._execute_transfer(sources, destination, is_move, on_progress)
        finally:
            self._gate.release()

    def run_delete(
        self,
        targets: list[FileNode],
        on_progress: ProgressSink | None = None,
    ) -> DeleteResult:
        """Delete *targets* on this thread."""
        self._acquire()
        try:
            return self._execute_delete(targets, on_progress)
        finally:
            self._gate.release()

    # -- background entry points --

    def submit_transfer(
        self,
        sources: list[FileNode],
        destination: FileNode,
        is_move: bool = False,
        on_progress: ProgressSink | None = None,
        on_complete: TransferCallback | None = None,
    ) -> threading.Thread:
        """Start a copy or move on a worker thread.

        Raises:
            TransferBusyError: Another operation is still running.
        """
        sources = list(sources)
        return self._launch(
            lambda: self._execute_transfer(sources, destination, is_move, on_progress),
            on_complete,
        )

    def submit_delete(
        self,
        targets: list[FileNode],
        on_progress: ProgressSink | None = None,
        on_complete: DeleteCallback | None = None,
    ) -> threading.Thread:
        """Start a delete on a worker thread.

        Raises:
            TransferBusyError: Another operation is still running.
        """
        targets = list(targets)
        return self._launch(lambda: self._execute_delete(targets, on_progress), on_complete)

    def submit_paste(
        self,
        clipboard: Clipboard,
        destination: FileNode,
        on_progress: ProgressSink | None = None,
        on_complete: TransferCallback | None = None,
    ) -> threading.Thread:
        """Paste the clipboard into *destination*: a move when it holds a cut.

        The clipboard is only read. Clearing it after a successful cut is
        left to the caller.
        """
        return self.submit_transfer(
            list(clipboard.nodes),
            destination,
            is_move=clipboard.is_cut,
            on_progress=on_progress,
            on_complete=on_complete,
        )

    # -- single-node operations --

    @staticmethod
    def rename(node: FileNode, new_name: str) -> bool:
        """Rename *node*. Returns False when the store refuses.

        Raises:
            ValueError: *new_name* is blank.
        """
        name = _clean_name(new_name)
        try:
            renamed = bool(node.rename(name))
        except Exception:
            log.warning("Rename of %s to %s failed", node.name, name, exc_info=True)
            return False
        if not renamed:
            log.warning("Store refused to rename %s to %s", node.name, name)
        return renamed

    @staticmethod
    def create_folder(parent: FileNode, name: str) -> FileNode | None:
        """Create a directory called *name* inside *parent*.

        Raises:
            ValueError: *name* is blank.
        """
        name = _clean_name(name)
        try:
            created = parent.create_directory(name)
        except Exception:
            log.warning("Could not create folder %s in %s", name, parent.name, exc_info=True)
            return None
        if created is None:
            log.warning("Store refused to create folder %s in %s", name, parent.name)
        return created

    # -- internals --

    def _acquire(self) -> None:
        if not self._gate.acquire(blocking=False):
            raise TransferBusyError("Another transfer is already running")

    def _launch(self, work: Callable[[], R], on_complete: Callable[[R], None] | None) -> threading.Thread:
        self._acquire()

        def worker() -> None:
            try:
                result = work()
            finally:
                self._gate.release()
            if on_complete is not None:
                self._dispatch(lambda: on_complete(result))

        thread = threading.Thread(target=worker, name="ferry-worker", daemon=True)
        try:
            thread.start()
        except RuntimeError:
            self._gate.release()
            raise
        return thread

    def _reporter(self, operation: Operation, on_progress: ProgressSink | None) -> ProgressReporter:
        return ProgressReporter(
            operation,
            on_progress,
            interval=self.interval,
            dispatch=self._dispatch,
            clock=self._clock,
        )

    def _execute_transfer(
        self,
        sources: list[FileNode],
        destination: FileNode,
        is_move: bool,
        on_progress: ProgressSink | None,
    ) -> TransferResult:
        operation = Operation.MOVE if is_move else Operation.COPY
        reporter = self._reporter(operation, on_progress)
        started = self._clock()
        reporter.publish(Progress.from_totals(Totals()))

        totals = scan_totals(sources)
        progress = Progress.from_totals(totals)
        log.info(
            "%s of %d source(s): %d file(s), %d bytes",
            operation.value.capitalize(),
            len(sources),
            totals.item_count,
            totals.byte_count,
        )
        reporter.publish(progress)
        reporter.attach(progress)

        try:
            result = transfer(sources, destination, is_move, progress, reporter.tick, self.chunk_size)
        except Exception:
            log.exception("%s crashed", operation.value.capitalize())
            result = TransferResult(failed_items=max(totals.item_count, 1))
        reporter.finish()

        log.info(
            "%s finished in %s: %d failed, %d source(s) left behind",
            operation.value.capitalize(),
            format_elapsed(self._clock() - started),
            result.failed_items,
            result.delete_failures_after_cut,
        )
        return result

    def _execute_delete(self, targets: list[FileNode], on_progress: ProgressSink | None) -> DeleteResult:
        reporter = self._reporter(Operation.DELETE, on_progress)
        started = self._clock()
        reporter.publish(Progress.from_totals(Totals()))

        totals = scan_delete_totals(targets)
        progress = Progress.from_totals(totals)
        log.info("Delete of %d target(s): %d item(s), %d bytes", len(targets), totals.item_count, totals.byte_count)
        reporter.publish(progress)
        reporter.attach(progress)

        try:
            result = DeleteResult(failed_items=delete(targets, progress, reporter.tick))
        except Exception:
            log.exception("Delete crashed")
            result = DeleteResult(failed_items=max(totals.item_count, 1))
        reporter.finish()

        log.info(
            "Delete finished in %s: %d failed",
            format_elapsed(self._clock() - started),
            result.failed_items,
        )
        return result


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValueError("Name must not be blank")
    return cleaned
