"""FileNode implementation backed by the local filesystem."""

from __future__ import annotations

import logging
import mimetypes
import shutil
import stat
from pathlib import Path
from typing import BinaryIO

from ferry.models.node import FileNode

log = logging.getLogger(__name__)


class LocalNode(FileNode):
    """A file or directory on local disk, addressed by path.

    Symlinks are never followed into directories, and deleting one removes
    the link only. Copying a link to a file copies the file it points to.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"LocalNode({str(self.path)!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LocalNode) and other.path == self.path

    def __hash__(self) -> int:
        return hash(self.path)

    @property
    def name(self) -> str | None:
        return self.path.name or None

    @property
    def is_directory(self) -> bool:
        return self.path.is_dir() and not self.path.is_symlink()

    @property
    def mime_type(self) -> str | None:
        if self.is_directory:
            return None
        return mimetypes.guess_type(self.path.name)[0]

    @property
    def size_bytes(self) -> int:
        # open_read follows links, so sizing does too
        try:
            info = self.path.stat()
        except OSError:
            return 0
        return info.st_size if stat.S_ISREG(info.st_mode) else 0

    def contains(self, other: LocalNode) -> bool:
        """Whether *other* is this directory itself or lies anywhere below it."""
        if not self.is_directory:
            return False
        mine = self.path.resolve()
        theirs = other.path.resolve()
        return theirs == mine or mine in theirs.parents

    def exists(self) -> bool:
        return self.path.exists() or self.path.is_symlink()

    def list_children(self) -> list[FileNode]:
        return [LocalNode(child) for child in sorted(self.path.iterdir())]

    def create_file(self, mime_type: str, name: str) -> FileNode | None:
        target = self.path / name
        try:
            target.touch(exist_ok=False)
        except OSError as e:
            log.debug("Cannot create file %s: %s", target, e)
            return None
        return LocalNode(target)

    def create_directory(self, name: str) -> FileNode | None:
        target = self.path / name
        try:
            target.mkdir()
        except OSError as e:
            log.debug("Cannot create directory %s: %s", target, e)
            return None
        return LocalNode(target)

    def delete(self) -> bool:
        try:
            if self.is_directory:
                shutil.rmtree(self.path)
            else:
                self.path.unlink()
        except OSError as e:
            log.debug("Cannot delete %s: %s", self.path, e)
            return False
        return True

    def rename(self, name: str) -> bool:
        target = self.path.with_name(name)
        if target.exists():
            log.debug("Cannot rename %s: %s already exists", self.path, target)
            return False
        try:
            self.path = self.path.rename(target)
        except OSError as e:
            log.debug("Cannot rename %s: %s", self.path, e)
            return False
        return True

    def open_read(self) -> BinaryIO:
        return open(self.path, "rb")

    def open_write(self) -> BinaryIO:
        return open(self.path, "wb")
