"""StorageBackend: the primitives every storage capability model provides."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Protocol, runtime_checkable

from anivault.core.schema import BackendKind, Grant


class BackendError(Exception):
    pass


def check_child_name(name: str) -> None:
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise BackendError(f"Invalid child name: {name!r}")


@contextmanager
def atomic_sink(path: Path) -> Iterator[IO[bytes]]:
    """Write to a temp file next to path and move it into place on success."""
    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
        ) as tmp:
            tmp_path = Path(tmp.name)
            yield tmp
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, path)
        tmp_path = None
    except OSError as e:
        raise BackendError(f"Cannot write {path}: {e}") from e
    finally:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


@dataclass
class Entry:
    """One child of a directory as reported by list_children."""

    name: str
    is_directory: bool
    handle: Any


@runtime_checkable
class StorageBackend(Protocol):
    """Interface that all storage backends must implement.

    Creation primitives are case-sensitive. Case-insensitive lookup is
    layered on top of list_children by the resolver.
    """

    kind: BackendKind

    def request_grant(self, location: str) -> Grant | None:
        """Run the folder-selection flow for location. None means denied."""
        ...

    def open_root(self, grant: Grant) -> Any | None:
        """Return the granted root handle, or None if the grant no longer works."""
        ...

    def name_of(self, handle: Any) -> str:
        ...

    def list_children(self, directory: Any) -> list[Entry]:
        ...

    def create_child(self, directory: Any, name: str, is_directory: bool) -> Any:
        """Create a child with exactly this name. Raises BackendError on failure."""
        ...

    def open_for_write(self, handle: Any) -> AbstractContextManager[IO[bytes]]:
        """Byte sink replacing the file's content when the block exits cleanly."""
        ...

    def read_bytes(self, handle: Any) -> bytes:
        ...

    def remove(self, handle: Any) -> None:
        ...
