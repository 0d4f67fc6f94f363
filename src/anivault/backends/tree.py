"""Tree backend: a write-capable directory grant on the local filesystem."""

from __future__ import annotations

import logging
import os
from contextlib import AbstractContextManager
from pathlib import Path
from typing import IO

from anivault.backends.base import BackendError, Entry, atomic_sink, check_child_name
from anivault.core.schema import BackendKind, Grant

logger = logging.getLogger(__name__)


class TreeBackend:
    """Handles are absolute Paths inside the granted directory."""

    kind = BackendKind.tree

    def request_grant(self, location: str) -> Grant | None:
        path = Path(location).expanduser()
        try:
            path = path.resolve()
        except OSError:
            return None
        if not path.is_dir() or not os.access(path, os.W_OK):
            logger.debug("Tree grant denied for %s", path)
            return None
        return Grant(kind=self.kind, token=str(path))

    def open_root(self, grant: Grant) -> Path | None:
        path = Path(grant.token)
        if not path.is_dir() or not os.access(path, os.W_OK):
            return None
        return path

    def name_of(self, handle: Path) -> str:
        return handle.name

    def list_children(self, directory: Path) -> list[Entry]:
        try:
            return [
                Entry(name=child.name, is_directory=child.is_dir(), handle=child)
                for child in sorted(directory.iterdir())
            ]
        except OSError as e:
            raise BackendError(f"Cannot list {directory}: {e}") from e

    def create_child(self, directory: Path, name: str, is_directory: bool) -> Path:
        check_child_name(name)
        child = directory / name
        try:
            if is_directory:
                child.mkdir()
            else:
                child.touch(exist_ok=False)
        except OSError as e:
            raise BackendError(f"Cannot create {child}: {e}") from e
        return child

    def open_for_write(self, handle: Path) -> AbstractContextManager[IO[bytes]]:
        return atomic_sink(handle)

    def read_bytes(self, handle: Path) -> bytes:
        try:
            return handle.read_bytes()
        except OSError as e:
            raise BackendError(f"Cannot read {handle}: {e}") from e

    def remove(self, handle: Path) -> None:
        try:
            if handle.is_dir():
                handle.rmdir()
            else:
                handle.unlink()
        except OSError as e:
            raise BackendError(f"Cannot remove {handle}: {e}") from e
