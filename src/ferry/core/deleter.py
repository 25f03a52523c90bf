"""Bulk delete executor."""

from __future__ import annotations

import logging
from typing import Callable

from ferry.core.aggregator import ResultAggregator
from ferry.models.node import FileNode, node_exists, node_is_directory, node_size
from ferry.models.progress import Progress

log = logging.getLogger(__name__)


def delete(targets: list[FileNode], progress: Progress, on_tick: Callable[[], None]) -> int:
    """Delete *targets* children-first and return the number of failed nodes.

    Each existing node gets exactly one delete attempt, counted as one
    progress item whether it succeeds or not. A failed node never stops
    its siblings or the remaining targets; a directory whose children
    could not all be removed is still attempted (and usually fails too).
    """
    aggregator = ResultAggregator()
    for target in targets:
        aggregator.add_failures(_delete_tree(target, progress, on_tick))
    return aggregator.failed_items


def _delete_tree(root: FileNode, progress: Progress, on_tick: Callable[[], None]) -> int:
    """Post-order walk of one target with an explicit stack.

    A node whose kind cannot be determined is not touched; it counts as
    one processed, failed item.
    """
    failures = 0
    # (node, children_done): a directory is pushed back once its children are queued
    stack: list[tuple[FileNode, bool]] = [(root, False)]
    while stack:
        node, children_done = stack.pop()
        deleted = False
        if not children_done:
            if not node_exists(node):
                continue
            is_directory = node_is_directory(node)
            if is_directory:
                stack.append((node, True))
                stack.extend((child, False) for child in reversed(_children(node)))
                continue
            if is_directory is None:
                log.debug("Cannot tell the kind of %s, leaving it in place", node.name)
            else:
                progress.copied_bytes += node_size(node)
                deleted = _delete_node(node)
        else:
            deleted = _delete_node(node)

        progress.current_name = node.name or ""
        progress.copied_items += 1
        on_tick()
        if not deleted:
            failures += 1
    return failures


def _children(directory: FileNode) -> list[FileNode]:
    try:
        return directory.list_children()
    except Exception:
        log.debug("Could not list %s", directory.name, exc_info=True)
        return []


def _delete_node(node: FileNode) -> bool:
    try:
        deleted = bool(node.delete())
    except Exception:
        log.debug("Delete raised for %s", node.name, exc_info=True)
        return False
    if not deleted:
        log.debug("Store refused to delete %s", node.name)
    return deleted
