"""Totals pass: count items and bytes before anything is mutated."""

from __future__ import annotations

import logging

from ferry.models.node import FileNode, node_exists, node_is_directory, node_size
from ferry.models.progress import Totals

log = logging.getLogger(__name__)


def scan_totals(nodes: list[FileNode]) -> Totals:
    """Count files and bytes reachable from *nodes* for a copy or move.

    Directories are structural and do not count as items.
    """
    return _walk(nodes, count_directories=False)


def scan_delete_totals(nodes: list[FileNode]) -> Totals:
    """Count every node (files and directories) and file bytes for a delete."""
    return _walk(nodes, count_directories=True)


def _walk(roots: list[FileNode], *, count_directories: bool) -> Totals:
    """Sum a tree with an explicit stack so deep trees cannot overflow.

    Nodes that disappear mid-walk contribute nothing. A directory counts
    (for deletes) before it is listed, so an unreadable one is still an
    item. A node of unknown kind counts as one item with no bytes.
    """
    items = 0
    total_bytes = 0
    stack: list[FileNode] = list(reversed(roots))
    while stack:
        node = stack.pop()
        if not node_exists(node):
            continue
        is_directory = node_is_directory(node)
        if is_directory is None:
            log.debug("Cannot tell the kind of %s, counting it as one item", node.name)
            items += 1
        elif is_directory:
            if count_directories:
                items += 1
            try:
                stack.extend(reversed(node.list_children()))
            except Exception:
                log.debug("Skipping unreadable directory during totals pass: %s", node.name)
        else:
            items += 1
            total_bytes += node_size(node)
    return Totals(item_count=items, byte_count=total_bytes)
