"""Clipboard holding nodes selected for a later paste."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ferry.models.node import FileNode


class ClipboardMode(str, Enum):
    COPY = "copy"
    CUT = "cut"


@dataclass(slots=True)
class Clipboard:
    """Ordered source nodes plus the copy/cut mode.

    Owned by the browsing front end. The engine only reads it when a paste
    is submitted.
    """

    mode: ClipboardMode = ClipboardMode.COPY
    nodes: list[FileNode] = field(default_factory=list)

    @property
    def is_cut(self) -> bool:
        return self.mode is ClipboardMode.CUT

    def is_empty(self) -> bool:
        return not self.nodes

    def set(self, nodes: list[FileNode], mode: ClipboardMode) -> None:
        self.nodes = list(nodes)
        self.mode = mode

    def clear(self) -> None:
        self.nodes = []
        self.mode = ClipboardMode.COPY
