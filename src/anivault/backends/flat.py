"""Flat backend: a public downloads collection with no real directories.

The collection is a list of rows, each carrying a relative_path column
("AnI/Projects/general/Sessions/") and a display name. Rows live in a
`.ani-collection.json` sidecar at the collection root; file payloads sit
at <root>/<relative_path><display_name> so they stay visible to the user.
Directory listings are rebuilt by parsing relative_path segments.
"""

from __future__ import annotations

import json
import logging
import mimetypes
import os
import uuid
from contextlib import AbstractContextManager
from dataclasses import dataclass
from pathlib import Path
from typing import IO

from pydantic import BaseModel, ValidationError

from anivault.backends.base import BackendError, Entry, atomic_sink, check_child_name
from anivault.core.schema import BackendKind, Grant
from anivault.utils.paths import default_downloads_dir

logger = logging.getLogger(__name__)

INDEX_FILENAME = ".ani-collection.json"
DIRECTORY_MIME = "inode/directory"


class CollectionRow(BaseModel):
    id: str
    relative_path: str  # "" for the collection root, otherwise ends with "/"
    display_name: str
    mime_type: str

    @property
    def is_directory(self) -> bool:
        return self.mime_type == DIRECTORY_MIME


@dataclass(frozen=True)
class FlatHandle:
    root: Path
    segments: tuple[str, ...] = ()
    is_directory: bool = True

    @property
    def name(self) -> str:
        return self.segments[-1] if self.segments else self.root.name

    @property
    def prefix(self) -> str:
        """relative_path value of this directory's children."""
        return "".join(f"{s}/" for s in self.segments)

    @property
    def parent_prefix(self) -> str:
        return "".join(f"{s}/" for s in self.segments[:-1])

    def child(self, name: str, is_directory: bool) -> FlatHandle:
        return FlatHandle(self.root, self.segments + (name,), is_directory)

    def payload_path(self) -> Path:
        return self.root.joinpath(*self.segments)


class FlatCollection:
    """Row index for a single collection root."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._path = root / INDEX_FILENAME

    def _read(self) -> list[CollectionRow]:
        if not self._path.is_file():
            return []
        try:
            data = json.loads(self._path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            raise BackendError(f"Unreadable collection index {self._path}: {e}") from e
        if not isinstance(data, list):
            return []
        rows = []
        for raw in data:
            try:
                rows.append(CollectionRow.model_validate(raw))
            except ValidationError:
                logger.warning("Skipping malformed collection row: %r", raw)
        return rows

    def _write(self, rows: list[CollectionRow]) -> None:
        payload = json.dumps([r.model_dump() for r in rows], indent=2) + "\n"
        with atomic_sink(self._path) as sink:
            sink.write(payload.encode("utf-8"))

    def query_by_path_prefix(self, prefix: str) -> list[CollectionRow]:
        return [r for r in self._read() if r.relative_path.startswith(prefix)]

    def find(self, relative_path: str, display_name: str) -> CollectionRow | None:
        for row in self._read():
            if row.relative_path == relative_path and row.display_name == display_name:
                return row
        return None

    def insert(self, path_hint: str, display_name: str, mime_type: str) -> CollectionRow:
        """Add a row, or return the existing one with the same path and name."""
        rows = self._read()
        for row in rows:
            if row.relative_path == path_hint and row.display_name == display_name:
                return row
        row = CollectionRow(
            id=uuid.uuid4().hex,
            relative_path=path_hint,
            display_name=display_name,
            mime_type=mime_type,
        )
        rows.append(row)
        self._write(rows)
        return row

    def delete(self, row_id: str) -> None:
        rows = self._read()
        self._write([r for r in rows if r.id != row_id])


def _guess_mime(name: str) -> str:
    if name.lower().endswith(".md"):
        return "text/markdown"
    return mimetypes.guess_type(name)[0] or "application/octet-stream"


class FlatCollectionBackend:
    kind = BackendKind.flat

    def request_grant(self, location: str) -> Grant | None:
        path = Path(location).expanduser() if location else default_downloads_dir()
        try:
            path = path.resolve()
        except OSError:
            return None
        if not path.is_dir() or not os.access(path, os.W_OK):
            logger.debug("Collection grant denied for %s", path)
            return None
        return Grant(kind=self.kind, token=str(path))

    def open_root(self, grant: Grant) -> FlatHandle | None:
        path = Path(grant.token)
        if not path.is_dir() or not os.access(path, os.W_OK):
            return None
        return FlatHandle(root=path)

    def collection(self, handle: FlatHandle) -> FlatCollection:
        return FlatCollection(handle.root)

    # -- Collection primitives --

    def insert(self, root: FlatHandle, path_hint: str, display_name: str, mime_type: str) -> FlatHandle:
        check_child_name(display_name)
        row = self.collection(root).insert(path_hint, display_name, mime_type)
        segments = tuple(s for s in row.relative_path.split("/") if s) + (row.display_name,)
        return FlatHandle(root.root, segments, row.is_directory)

    def query_by_path_prefix(self, root: FlatHandle, prefix: str) -> list[CollectionRow]:
        return self.collection(root).query_by_path_prefix(prefix)

    # -- StorageBackend --

    def name_of(self, handle: FlatHandle) -> str:
        return handle.name

    def list_children(self, directory: FlatHandle) -> list[Entry]:
        prefix = directory.prefix
        found: dict[str, bool] = {}
        for row in self.query_by_path_prefix(directory, prefix):
            rest = row.relative_path[len(prefix):]
            if rest:
                # a row deeper down implies a directory at this level
                found[rest.split("/", 1)[0]] = True
            else:
                found[row.display_name] = found.get(row.display_name, False) or row.is_directory
        return [
            Entry(name=name, is_directory=is_dir, handle=directory.child(name, is_dir))
            for name, is_dir in sorted(found.items())
            if name
        ]

    def create_child(self, directory: FlatHandle, name: str, is_directory: bool) -> FlatHandle:
        mime = DIRECTORY_MIME if is_directory else _guess_mime(name)
        return self.insert(directory, directory.prefix, name, mime)

    def open_for_write(self, handle: FlatHandle) -> AbstractContextManager[IO[bytes]]:
        if handle.is_directory:
            raise BackendError(f"Cannot write to directory {handle.prefix}")
        self.insert(
            FlatHandle(handle.root), handle.parent_prefix, handle.name, _guess_mime(handle.name)
        )
        target = handle.payload_path()
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackendError(f"Cannot prepare {target.parent}: {e}") from e
        return atomic_sink(target)

    def read_bytes(self, handle: FlatHandle) -> bytes:
        try:
            return handle.payload_path().read_bytes()
        except OSError as e:
            raise BackendError(f"Cannot read {handle.parent_prefix}{handle.name}: {e}") from e

    def remove(self, handle: FlatHandle) -> None:
        coll = self.collection(handle)
        if handle.is_directory and coll.query_by_path_prefix(handle.prefix):
            raise BackendError(f"Directory not empty: {handle.prefix}")
        row = coll.find(handle.parent_prefix, handle.name)
        if row is not None:
            coll.delete(row.id)
        if not handle.is_directory:
            handle.payload_path().unlink(missing_ok=True)
