"""Locate the Projects container under whatever folder the user granted.

Every lookup goes through find_child/find_or_create so that name matching
is case-insensitive in exactly one place, while creation stays on the
backend's case-sensitive primitives.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from anivault.backends.base import BackendError, StorageBackend
from anivault.core.errors import ResolutionFailure
from anivault.utils.paths import PROJECTS_DIR, VAULT_DIR, logical_path

logger = logging.getLogger(__name__)


def same_name(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def find_child(
    backend: StorageBackend,
    directory: Any,
    name: str,
    case_insensitive: bool = True,
    is_directory: bool | None = True,
) -> Any | None:
    """Return the handle of a child called name, or None.

    An exact match wins over a case-insensitive one. is_directory=None
    accepts either kind. Raises BackendError if the directory can't be listed.
    """
    candidates = [
        e for e in backend.list_children(directory)
        if e.name.strip() and (is_directory is None or e.is_directory == is_directory)
    ]
    for entry in candidates:
        if entry.name == name:
            return entry.handle
    if case_insensitive:
        for entry in candidates:
            if same_name(entry.name, name):
                return entry.handle
    return None


def find_or_create(
    backend: StorageBackend,
    directory: Any,
    name: str,
    create: bool = True,
    is_directory: bool = True,
) -> Any | None:
    """Reuse a case-insensitively matching child, creating it only if absent.

    With create=False a missing child is None, never an error.
    """
    try:
        found = find_child(backend, directory, name, is_directory=is_directory)
    except BackendError as e:
        raise ResolutionFailure(f"Cannot look up {name!r}: {e}") from e
    if found is not None or not create:
        return found

    try:
        return backend.create_child(directory, name, is_directory)
    except BackendError as e:
        # a concurrent caller may have created it since the lookup
        try:
            found = find_child(backend, directory, name, is_directory=is_directory)
        except BackendError:
            found = None
        if found is not None:
            logger.debug("Lost creation race for %r, reusing existing entry", name)
            return found
        raise ResolutionFailure(f"Cannot create {name!r}: {e}") from e


@dataclass(frozen=True)
class ProjectsLocation:
    """The resolved container and the folder names leading to it from the grant root."""

    handle: Any
    segments: tuple[str, ...]

    @property
    def path(self) -> str:
        return logical_path(*self.segments)


def locate_projects_container(
    backend: StorageBackend, grant_root: Any, create_if_missing: bool
) -> ProjectsLocation | None:
    """Map a granted root to its Projects container.

    - a root named Projects is the container itself
    - a root named AnI holds the container
    - any other root gets AnI/Projects beneath it
    - if AnI can't be had but root/Projects exists, use that
    """
    root_name = backend.name_of(grant_root)
    if same_name(root_name, PROJECTS_DIR):
        return ProjectsLocation(grant_root, (root_name,))
    if same_name(root_name, VAULT_DIR):
        projects = find_or_create(backend, grant_root, PROJECTS_DIR, create=create_if_missing)
        if projects is None:
            return None
        return ProjectsLocation(projects, (root_name, backend.name_of(projects)))

    failure: ResolutionFailure | None = None
    try:
        vault = find_or_create(backend, grant_root, VAULT_DIR, create=create_if_missing)
    except ResolutionFailure as e:
        vault, failure = None, e
    if vault is not None:
        projects = find_or_create(backend, vault, PROJECTS_DIR, create=create_if_missing)
        if projects is None:
            return None
        return ProjectsLocation(
            projects, (root_name, backend.name_of(vault), backend.name_of(projects))
        )

    try:
        fallback = find_child(backend, grant_root, PROJECTS_DIR)
    except BackendError:
        fallback = None
    if fallback is not None:
        logger.debug("No %s folder under %r, using its %s folder", VAULT_DIR, root_name, PROJECTS_DIR)
        return ProjectsLocation(fallback, (root_name, backend.name_of(fallback)))
    if failure is not None:
        raise failure
    return None


def resolve_projects_container(
    backend: StorageBackend, grant_root: Any, create_if_missing: bool
) -> Any | None:
    location = locate_projects_container(backend, grant_root, create_if_missing)
    return location.handle if location is not None else None
