"""Ferry data models."""

from ferry.models.clipboard import Clipboard, ClipboardMode
from ferry.models.node import DEFAULT_MIME_TYPE, FileNode, node_exists, node_is_directory, node_size
from ferry.models.progress import Operation, Progress, ProgressSnapshot, Totals
from ferry.models.transfer_result import DeleteResult, TransferResult

__all__ = [
    "DEFAULT_MIME_TYPE",
    "Clipboard",
    "ClipboardMode",
    "DeleteResult",
    "FileNode",
    "Operation",
    "Progress",
    "ProgressSnapshot",
    "Totals",
    "TransferResult",
    "node_exists",
    "node_is_directory",
    "node_size",
]
