"""Capability interface for one entry in a hierarchical file store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import BinaryIO

DEFAULT_MIME_TYPE = "application/octet-stream"


class FileNode(ABC):
    """One file or directory in a backing store.

    The transfer engine only talks to stores through this interface, so
    any backend (local disk, a document provider, an archive) can be
    plugged in by implementing it. Nodes are short-lived handles: the
    engine never caches them across operations.

    Mutations report failure either by returning ``None``/``False`` or by
    raising ``OSError``; callers in ``ferry.core`` handle both.
    """

    @property
    @abstractmethod
    def name(self) -> str | None:
        """Display name of the entry, or None if the store cannot tell."""

    @property
    @abstractmethod
    def is_directory(self) -> bool:
        """Whether this entry can have children."""

    @property
    def mime_type(self) -> str | None:
        """MIME type for files. None when unknown."""
        return None

    @property
    def size_bytes(self) -> int:
        """Size of a file in bytes. Directories and unknown sizes report 0."""
        return 0

    @abstractmethod
    def exists(self) -> bool:
        """Whether the entry is still present in the store."""

    @abstractmethod
    def list_children(self) -> list[FileNode]:
        """Direct children of a directory, in store order."""

    @abstractmethod
    def create_file(self, mime_type: str, name: str) -> FileNode | None:
        """Create an empty file inside this directory."""

    @abstractmethod
    def create_directory(self, name: str) -> FileNode | None:
        """Create a subdirectory inside this directory."""

    @abstractmethod
    def delete(self) -> bool:
        """Remove this entry (and everything under it). Returns success."""

    @abstractmethod
    def rename(self, name: str) -> bool:
        """Rename this entry in place. Returns success."""

    @abstractmethod
    def open_read(self) -> BinaryIO:
        """Open a readable binary stream on a file."""

    @abstractmethod
    def open_write(self) -> BinaryIO:
        """Open a writable binary stream on a file, truncating it."""


def node_size(node: FileNode) -> int:
    """Size of *node* clamped to a non-negative value."""
    try:
        size = node.size_bytes
    except Exception:
        return 0
    return size if size and size > 0 else 0


def node_exists(node: FileNode) -> bool:
    """Whether *node* is still present; a store error counts as gone."""
    try:
        return node.exists()
    except Exception:
        return False


def node_is_directory(node: FileNode) -> bool | None:
    """Whether *node* is a directory, or None when the store cannot tell."""
    try:
        return bool(node.is_directory)
    except Exception:
        return None
