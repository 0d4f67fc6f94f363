"""Handle backend: browser-style directory handles held in process memory.

Mirrors the File System Access model: a picked directory yields a handle
with get_directory_handle/get_file_handle lookups (exact names only),
entries() enumeration and writables that commit on close. Handles are not
persistable, so a stored grant for this backend only opens inside the
process that picked it.
"""

from __future__ import annotations

import io
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import IO, Union

from anivault.backends.base import BackendError, Entry, check_child_name
from anivault.core.schema import BackendKind, Grant

logger = logging.getLogger(__name__)


class HandleNotFound(BackendError):
    pass


class HandleTypeMismatch(BackendError):
    pass


@dataclass(eq=False)
class FileHandle:
    name: str
    data: bytes = b""
    kind: str = "file"

    @contextmanager
    def create_writable(self) -> Iterator[IO[bytes]]:
        buf = io.BytesIO()
        yield buf
        self.data = buf.getvalue()


@dataclass(eq=False)
class DirectoryHandle:
    name: str
    children: dict[str, Union[DirectoryHandle, FileHandle]] = field(default_factory=dict)
    kind: str = "directory"

    def entries(self) -> list[tuple[str, Union[DirectoryHandle, FileHandle]]]:
        return list(self.children.items())

    def get_directory_handle(self, name: str, create: bool = False) -> DirectoryHandle:
        child = self.children.get(name)
        if child is None:
            if not create:
                raise HandleNotFound(f"No directory named {name!r} in {self.name!r}")
            check_child_name(name)
            child = self.children[name] = DirectoryHandle(name)
        if not isinstance(child, DirectoryHandle):
            raise HandleTypeMismatch(f"{name!r} in {self.name!r} is a file")
        return child

    def get_file_handle(self, name: str, create: bool = False) -> FileHandle:
        child = self.children.get(name)
        if child is None:
            if not create:
                raise HandleNotFound(f"No file named {name!r} in {self.name!r}")
            check_child_name(name)
            child = self.children[name] = FileHandle(name)
        if not isinstance(child, FileHandle):
            raise HandleTypeMismatch(f"{name!r} in {self.name!r} is a directory")
        return child

    def remove_entry(self, name: str) -> None:
        if self.children.pop(name, None) is None:
            raise HandleNotFound(f"No entry named {name!r} in {self.name!r}")


# token -> picked root; lives exactly as long as the process
_PICKED: dict[str, DirectoryHandle] = {}


def forget_all() -> None:
    """Drop every picked handle, as a page reload would."""
    _PICKED.clear()


@dataclass(frozen=True)
class _Located:
    """A handle plus its parent, so remove() can reach remove_entry."""

    node: Union[DirectoryHandle, FileHandle]
    parent: DirectoryHandle | None


class HandleBackend:
    kind = BackendKind.handle

    def request_grant(self, location: str) -> Grant | None:
        name = PurePath(location).name if location else ""
        if not name:
            logger.debug("Directory picker dismissed")
            return None
        token = uuid.uuid4().hex
        _PICKED[token] = DirectoryHandle(name)
        return Grant(kind=self.kind, token=token)

    def open_root(self, grant: Grant) -> _Located | None:
        root = _PICKED.get(grant.token)
        if root is None:
            return None
        return _Located(root, None)

    def name_of(self, handle: _Located) -> str:
        return handle.node.name

    def _directory(self, handle: _Located) -> DirectoryHandle:
        if not isinstance(handle.node, DirectoryHandle):
            raise HandleTypeMismatch(f"{handle.node.name!r} is not a directory")
        return handle.node

    def list_children(self, directory: _Located) -> list[Entry]:
        parent = self._directory(directory)
        return [
            Entry(name=name, is_directory=child.kind == "directory", handle=_Located(child, parent))
            for name, child in sorted(parent.entries())
        ]

    def create_child(self, directory: _Located, name: str, is_directory: bool) -> _Located:
        parent = self._directory(directory)
        if name in parent.children:
            raise BackendError(f"{name!r} already exists in {parent.name!r}")
        if is_directory:
            node = parent.get_directory_handle(name, create=True)
        else:
            node = parent.get_file_handle(name, create=True)
        return _Located(node, parent)

    def open_for_write(self, handle: _Located):
        if not isinstance(handle.node, FileHandle):
            raise HandleTypeMismatch(f"{handle.node.name!r} is not a file")
        return handle.node.create_writable()

    def read_bytes(self, handle: _Located) -> bytes:
        if not isinstance(handle.node, FileHandle):
            raise HandleTypeMismatch(f"{handle.node.name!r} is not a file")
        return handle.node.data

    def remove(self, handle: _Located) -> None:
        if handle.parent is None:
            raise BackendError("Cannot remove the picked root")
        node = handle.node
        if isinstance(node, DirectoryHandle) and node.children:
            raise BackendError(f"Directory not empty: {node.name!r}")
        handle.parent.remove_entry(node.name)
