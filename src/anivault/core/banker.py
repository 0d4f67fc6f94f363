"""SessionWriter: bank a transcript as a Sessions/.md + Exports/.html pair.

The pair is written all-or-nothing. If the second artifact fails, the
first is put back the way it was (previous bytes restored, or the new file
removed). PartialWriteFailure is raised only when that rollback fails too.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from anivault.backends.base import BackendError
from anivault.core.errors import PartialWriteFailure, WriteFailure
from anivault.core.projects import EXPORT_SUFFIX, SESSION_SUFFIX, ProjectStore
from anivault.core.resolver import find_child
from anivault.utils.paths import DEFAULT_BASE_NAME, canonical_key, logical_path

logger = logging.getLogger(__name__)


@dataclass
class _Written:
    handle: Any
    path: str
    previous: bytes | None  # None when the file did not exist before


@dataclass
class BankedPair:
    project: str
    base_name: str
    session_path: str
    export_path: str


class SessionWriter:
    def __init__(self, projects: ProjectStore) -> None:
        self.projects = projects
        self.backend = projects.backend

    def bank_session(
        self, text: str | None, html: str | None, base_name: str | None, project_key: str | None
    ) -> BankedPair:
        base = canonical_key(base_name, default=DEFAULT_BASE_NAME)
        folders = self.projects.ensure_project(project_key)
        sessions_path = logical_path(folders.path, self.backend.name_of(folders.sessions))
        exports_path = logical_path(folders.path, self.backend.name_of(folders.exports))

        first = self._write(folders.sessions, sessions_path, base + SESSION_SUFFIX, text or "")
        try:
            second = self._write(folders.exports, exports_path, base + EXPORT_SUFFIX, html or "")
        except WriteFailure as e:
            try:
                self._rollback(first)
            except BackendError as rb:
                logger.warning("Rollback of %s failed: %s", first.path, rb)
                raise PartialWriteFailure(
                    f"{e}; {first.path} was written and could not be rolled back", orphan=first.path
                ) from e
            logger.debug("Rolled back %s after failed export write", first.path)
            raise

        return BankedPair(
            project=folders.key,
            base_name=base,
            session_path=first.path,
            export_path=second.path,
        )

    def _write(self, directory: Any, directory_path: str, name: str, content: str) -> _Written:
        path = logical_path(directory_path, name)
        created = False
        try:
            handle = find_child(self.backend, directory, name, is_directory=False)
            previous = None
            if handle is not None:
                path = logical_path(directory_path, self.backend.name_of(handle))
                previous = self.backend.read_bytes(handle)
            else:
                handle = self.backend.create_child(directory, name, is_directory=False)
                created = True
            with self.backend.open_for_write(handle) as sink:
                sink.write(content.encode("utf-8"))
        except (BackendError, OSError) as e:
            if created:
                try:
                    self.backend.remove(handle)
                except BackendError:
                    logger.warning("Could not clean up empty %s", path)
            raise WriteFailure(f"Cannot write {path}: {e}") from e
        return _Written(handle=handle, path=path, previous=previous)

    def _rollback(self, written: _Written) -> None:
        if written.previous is None:
            self.backend.remove(written.handle)
            return
        try:
            with self.backend.open_for_write(written.handle) as sink:
                sink.write(written.previous)
        except OSError as e:
            raise BackendError(str(e)) from e
