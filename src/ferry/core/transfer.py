"""Copy and move executor."""

from __future__ import annotations

import logging
from typing import Callable, Iterator

from ferry.core.aggregator import ResultAggregator
from ferry.core.scanner import scan_totals
from ferry.models.node import DEFAULT_MIME_TYPE, FileNode, node_exists, node_is_directory
from ferry.models.progress import Progress
from ferry.models.transfer_result import TransferResult

log = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 8 * 1024
FALLBACK_DIRECTORY_NAME = "Folder"

TickCallback = Callable[[], None]


def transfer(
    sources: list[FileNode],
    destination: FileNode,
    is_move: bool,
    progress: Progress,
    on_tick: TickCallback,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> TransferResult:
    """Copy *sources* into *destination*, deleting them afterwards for a move.

    Sources are processed in order. Every failure is counted, never raised.
    For a move, sources are only deleted when the whole copy pass had zero
    failures.

    Args:
        sources: Top-level files and directories to copy.
        destination: Directory receiving the copies.
        is_move: Delete the sources after a fully successful copy.
        progress: Counters updated after every chunk and every file.
        on_tick: Called after each progress update.
        chunk_size: Bytes read per stream chunk.

    Returns:
        Copy failures and, for moves, source-deletion failures.
    """
    aggregator = ResultAggregator()
    copier = _Copier(progress, on_tick, chunk_size)

    for source in sources:
        if not node_exists(source):
            log.debug("Source vanished before copy: %s", source.name)
            continue
        is_directory = node_is_directory(source)
        if is_directory is None:
            log.debug("Cannot tell the kind of %s, counting it as failed", source.name)
            aggregator.add_failures(1)
        elif is_directory:
            aggregator.add_failures(copier.copy_directory(source, destination))
        else:
            aggregator.add_failures(copier.copy_file(source, destination))

    if is_move and aggregator.failed_items == 0:
        for source in sources:
            if not node_exists(source):
                continue
            if not _delete(source):
                log.debug("Could not remove moved source: %s", source.name)
                aggregator.add_delete_failure_after_cut()
    elif is_move:
        log.info("Move kept its sources: %d item(s) failed to copy", aggregator.failed_items)

    return aggregator.transfer_result()


class _Copier:
    """Walks source trees and streams file contents into the destination."""

    def __init__(self, progress: Progress, on_tick: TickCallback, chunk_size: int) -> None:
        self._progress = progress
        self._on_tick = on_tick
        self._chunk_size = chunk_size if chunk_size > 0 else DEFAULT_CHUNK_SIZE

    def copy_directory(self, source: FileNode, target_parent: FileNode) -> int:
        """Recreate *source* under *target_parent*. Returns the failure count.

        When a directory cannot be created, every file below it is counted
        as failed and the subtree is skipped.
        """
        root = self._create_directory(source, target_parent)
        if root is None:
            return scan_totals([source]).item_count

        failures = 0
        # One frame per open directory: (remaining children, copy target)
        stack: list[tuple[Iterator[FileNode], FileNode]] = [(iter(self._children(source)), root)]
        while stack:
            children, target = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                continue
            if not node_exists(child):
                continue
            is_directory = node_is_directory(child)
            if is_directory is None:
                log.debug("Cannot tell the kind of %s, counting it as failed", child.name)
                failures += 1
                continue
            if not is_directory:
                failures += self.copy_file(child, target)
                continue
            new_dir = self._create_directory(child, target)
            if new_dir is None:
                failures += scan_totals([child]).item_count
                continue
            stack.append((iter(self._children(child)), new_dir))
        return failures

    def copy_file(self, source: FileNode, target_dir: FileNode) -> int:
        """Stream one file into *target_dir*. Returns 0 on success, 1 on failure.

        Bytes credited before a failure stay credited.
        """
        progress = self._progress
        try:
            name = source.name
            if not name:
                log.debug("Skipping file without a name")
                return 1
            mime_type = source.mime_type or DEFAULT_MIME_TYPE
            dest = target_dir.create_file(mime_type, name)
            if dest is None:
                log.debug("Could not create %s in %s", name, target_dir.name)
                return 1

            with source.open_read() as reader, dest.open_write() as writer:
                while True:
                    chunk = reader.read(self._chunk_size)
                    if not chunk:
                        break
                    writer.write(chunk)
                    progress.copied_bytes += len(chunk)
                    progress.current_name = name
                    self._on_tick()
                writer.flush()

            progress.copied_items += 1
            progress.current_name = name
            self._on_tick()
            return 0
        except Exception:
            log.debug("Copy failed for %s", source.name, exc_info=True)
            return 1

    @staticmethod
    def _children(directory: FileNode) -> list[FileNode]:
        try:
            return directory.list_children()
        except Exception:
            log.debug("Could not list %s", directory.name, exc_info=True)
            return []

    @staticmethod
    def _create_directory(source: FileNode, parent: FileNode) -> FileNode | None:
        name = source.name or FALLBACK_DIRECTORY_NAME
        try:
            return parent.create_directory(name)
        except Exception:
            log.debug("Could not create directory %s", name, exc_info=True)
            return None


def _delete(node: FileNode) -> bool:
    try:
        return bool(node.delete())
    except Exception:
        log.debug("Delete raised for %s", node.name, exc_info=True)
        return False
