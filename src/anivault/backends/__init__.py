"""Storage backends, one per capability model.

tree   - a write-capable directory on the local filesystem
flat   - a downloads collection addressed by relative path rows
handle - browser-style directory handles held in process memory
"""

from __future__ import annotations

from anivault.backends.base import BackendError, Entry, StorageBackend

__all__ = ["BackendError", "Entry", "StorageBackend"]
