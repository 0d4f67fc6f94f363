"""Backend lookup by kind."""

from __future__ import annotations

from anivault.backends.base import StorageBackend
from anivault.backends.flat import FlatCollectionBackend
from anivault.backends.handle import HandleBackend
from anivault.backends.tree import TreeBackend
from anivault.core.schema import BackendKind


_BACKEND_CLASSES = {
    BackendKind.tree: TreeBackend,
    BackendKind.flat: FlatCollectionBackend,
    BackendKind.handle: HandleBackend,
}


def get_backend(kind: BackendKind | str) -> StorageBackend | None:
    """Get a backend instance by kind."""
    try:
        kind = BackendKind(kind)
    except ValueError:
        return None
    return _BACKEND_CLASSES[kind]()


def list_backends() -> list[str]:
    return [k.value for k in _BACKEND_CLASSES]


def default_backends() -> dict[BackendKind, StorageBackend]:
    return {kind: cls() for kind, cls in _BACKEND_CLASSES.items()}
