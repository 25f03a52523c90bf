"""D-Bus service for front-end communication.

D-Bus methods use PascalCase per D-Bus convention, and type signatures
like "as" and "(iittssb)" are D-Bus protocol types, not Python syntax.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Callable

from dbus_next.aio import MessageBus
from dbus_next.service import ServiceInterface, method, signal
from dbus_next import BusType

from ferry.core.engine import TransferBusyError, TransferEngine
from ferry.core.scanner import scan_totals
from ferry.models.progress import Operation, ProgressSnapshot
from ferry.models.transfer_result import DeleteResult, TransferResult
from ferry.settings import Settings
from ferry.stores.local import LocalNode

log = logging.getLogger(__name__)

_BUS_NAME = "io.github.ferry.Ferry"
_OBJECT_PATH = "/io/github/ferry/Ferry"
_INTERFACE = "io.github.ferry.Ferry.Transfers"


# noinspection PyPep8Naming
class FerryDBusService(ServiceInterface):
    """D-Bus service interface for Ferry.

    Long operations run on the engine's worker thread. Snapshots and
    results are marshalled back onto the asyncio loop before the
    corresponding signal is emitted.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, engine: TransferEngine | None = None) -> None:
        super().__init__(_INTERFACE)
        self._loop = loop
        if engine is None:
            settings = Settings.instance()
            engine = TransferEngine(
                chunk_size=settings.chunk_size,
                interval=settings.progress_interval,
                dispatch=self._dispatch,
            )
        self._engine = engine

    def _dispatch(self, callback: Callable[[], None]) -> None:
        self._loop.call_soon_threadsafe(callback)

    def _on_progress(self, snapshot: ProgressSnapshot) -> None:
        self.TransferProgress(
            snapshot.copied_items,
            snapshot.total_items,
            snapshot.copied_bytes,
            snapshot.total_bytes,
            snapshot.current_name,
            snapshot.operation.value,
            snapshot.indeterminate,
        )

    def _finished(self, operation: Operation) -> Callable[[TransferResult | DeleteResult], None]:
        def on_complete(result: TransferResult | DeleteResult) -> None:
            after_cut = getattr(result, "delete_failures_after_cut", 0)
            self.TransferFinished(operation.value, result.failed_items, after_cut)

        return on_complete

    def _start_transfer(self, sources: list[str], destination: str, is_move: bool) -> str:
        operation = Operation.MOVE if is_move else Operation.COPY
        nodes = [LocalNode(Path(p)) for p in sources]
        target = LocalNode(Path(destination))
        for node in nodes:
            if node.contains(target):
                return json.dumps({"error": f"'{node.path}' cannot be copied into itself"})
        try:
            self._engine.submit_transfer(
                nodes,
                target,
                is_move=is_move,
                on_progress=self._on_progress,
                on_complete=self._finished(operation),
            )
        except TransferBusyError as exc:
            return json.dumps({"error": str(exc), "busy": True})
        return json.dumps({"started": operation.value})

    @method()
    def Copy(self, sources: "as", destination: "s") -> "s":  # type: ignore[override]
        """Start copying sources into destination."""
        return self._start_transfer(list(sources), destination, is_move=False)

    @method()
    def Move(self, sources: "as", destination: "s") -> "s":  # type: ignore[override]
        """Start moving sources into destination."""
        return self._start_transfer(list(sources), destination, is_move=True)

    @method()
    def Delete(self, targets: "as") -> "s":  # type: ignore[override]
        """Start deleting targets."""
        try:
            self._engine.submit_delete(
                [LocalNode(Path(p)) for p in targets],
                on_progress=self._on_progress,
                on_complete=self._finished(Operation.DELETE),
            )
        except TransferBusyError as exc:
            return json.dumps({"error": str(exc), "busy": True})
        return json.dumps({"started": Operation.DELETE.value})

    @method()
    def Scan(self, paths: "as") -> "s":  # type: ignore[override]
        """Count files and bytes under paths, as JSON."""
        totals = scan_totals([LocalNode(Path(p)) for p in paths])
        return json.dumps({"item_count": totals.item_count, "byte_count": totals.byte_count})

    @method()
    def Rename(self, path: "s", name: "s") -> "s":  # type: ignore[override]
        """Rename a single entry."""
        try:
            renamed = self._engine.rename(LocalNode(Path(path)), name)
        except ValueError as exc:
            return json.dumps({"error": str(exc)})
        return json.dumps({"renamed": renamed})

    @method()
    def CreateFolder(self, parent: "s", name: "s") -> "s":  # type: ignore[override]
        """Create a folder inside parent."""
        try:
            created = self._engine.create_folder(LocalNode(Path(parent)), name)
        except ValueError as exc:
            return json.dumps({"error": str(exc)})
        if created is None:
            return json.dumps({"error": f"Could not create folder '{name.strip()}'"})
        return json.dumps({"created": str(Path(parent) / name.strip())})

    @method()
    def IsBusy(self) -> "b":  # type: ignore[override]
        """Whether an operation is running."""
        return self._engine.busy

    @signal()
    def TransferProgress(
        self,
        copied_items: int,
        total_items: int,
        copied_bytes: int,
        total_bytes: int,
        current_name: str,
        operation: str,
        indeterminate: bool,
    ) -> "(iittssb)":  # type: ignore[override]
        return [copied_items, total_items, copied_bytes, total_bytes, current_name, operation, indeterminate]

    @signal()
    def TransferFinished(self, operation: str, failed_items: int, delete_failures: int) -> "(sii)":  # type: ignore[override]
        return [operation, failed_items, delete_failures]


async def run_service() -> None:
    """Start the D-Bus service."""
    bus = await MessageBus(bus_type=BusType.SESSION).connect()
    service = FerryDBusService(asyncio.get_running_loop())
    bus.export(_OBJECT_PATH, service)
    await bus.request_name(_BUS_NAME)
    log.info("D-Bus service started on %s", _BUS_NAME)
    await bus.wait_for_disconnect()


def start_service() -> None:
    """Entry point to start the D-Bus service."""
    asyncio.run(run_service())
