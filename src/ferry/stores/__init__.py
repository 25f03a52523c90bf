"""Concrete FileNode backends."""

from ferry.stores.local import LocalNode

__all__ = ["LocalNode"]
