"""ProjectStore: projects under the Projects container and their sessions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from anivault.backends.base import BackendError, StorageBackend
from anivault.core.errors import ResolutionFailure
from anivault.core.resolver import ProjectsLocation, find_child, find_or_create, locate_projects_container
from anivault.core.schema import SessionDescriptor
from anivault.utils.paths import EXPORTS_DIR, SESSIONS_DIR, canonical_key, logical_path

SESSION_SUFFIX = ".md"
EXPORT_SUFFIX = ".html"


@dataclass
class ProjectFolders:
    key: str
    path: str  # logical path of the project folder
    project: Any
    sessions: Any
    exports: Any


class ProjectStore:
    """Project-level operations on one granted root."""

    def __init__(self, backend: StorageBackend, root: Any) -> None:
        self.backend = backend
        self.root = root

    def locate(self, create: bool) -> ProjectsLocation | None:
        return locate_projects_container(self.backend, self.root, create_if_missing=create)

    def list_projects(self) -> list[str]:
        """Names of project folders, sorted case-insensitively. No defaults added."""
        location = self.locate(create=False)
        if location is None:
            return []
        try:
            entries = self.backend.list_children(location.handle)
        except BackendError as e:
            raise ResolutionFailure(f"Cannot list projects: {e}") from e
        names = [e.name for e in entries if e.is_directory and e.name.strip()]
        return sorted(names, key=lambda n: (n.casefold(), n))

    def _existing_project(self, container: Any, raw_key: str | None) -> Any | None:
        """A folder named as given (e.g. "My Stuff"), else one named by the canonical key."""
        raw = (raw_key or "").strip()
        key = canonical_key(raw_key)
        if raw and raw != key:
            found = find_child(self.backend, container, raw)
            if found is not None:
                return found
        return find_child(self.backend, container, key)

    def ensure_project(self, raw_key: str | None) -> ProjectFolders:
        """Find or create the project folder and both subfolders. Idempotent.

        An existing folder listed under the given name is reused as is; new
        folders always get the canonical key.
        """
        key = canonical_key(raw_key)
        location = self.locate(create=True)
        if location is None:
            raise ResolutionFailure("Projects folder is unavailable")
        try:
            project = self._existing_project(location.handle, raw_key)
        except BackendError as e:
            raise ResolutionFailure(f"Cannot look up project {key!r}: {e}") from e
        if project is None:
            project = find_or_create(self.backend, location.handle, key)
        sessions = find_or_create(self.backend, project, SESSIONS_DIR)
        exports = find_or_create(self.backend, project, EXPORTS_DIR)
        return ProjectFolders(
            key=key,
            path=logical_path(location.path, self.backend.name_of(project)),
            project=project,
            sessions=sessions,
            exports=exports,
        )

    def _sessions_dir(self, raw_key: str | None) -> tuple[str, Any] | None:
        """(project folder name, Sessions handle), or None if either is missing."""
        location = self.locate(create=False)
        if location is None:
            return None
        try:
            project = self._existing_project(location.handle, raw_key)
            if project is None:
                return None
            sessions = find_child(self.backend, project, SESSIONS_DIR)
            if sessions is None:
                return None
            return self.backend.name_of(project), sessions
        except BackendError as e:
            raise ResolutionFailure(f"Cannot open sessions: {e}") from e

    def list_sessions(self, raw_key: str | None) -> list[SessionDescriptor]:
        found = self._sessions_dir(raw_key)
        if found is None:
            return []
        project, sessions = found
        try:
            entries = self.backend.list_children(sessions)
        except BackendError as e:
            raise ResolutionFailure(f"Cannot list sessions: {e}") from e
        names = [
            e.name for e in entries
            if not e.is_directory and e.name.lower().endswith(SESSION_SUFFIX) and not e.name.startswith(".")
        ]
        return [
            SessionDescriptor(name=n, project=project)
            for n in sorted(names, key=lambda n: (n.casefold(), n))
        ]

    def read_session(self, raw_key: str | None, filename: str) -> str:
        """Text of a banked session, or "" when there is no such file."""
        name = (filename or "").strip()
        if not name or "/" in name or "\\" in name:
            return ""
        found = self._sessions_dir(raw_key)
        if found is None:
            return ""
        _, sessions = found
        try:
            handle = find_child(self.backend, sessions, name, is_directory=False)
            if handle is None:
                return ""
            return self.backend.read_bytes(handle).decode("utf-8", errors="replace")
        except BackendError as e:
            raise ResolutionFailure(f"Cannot read session {name!r}: {e}") from e
