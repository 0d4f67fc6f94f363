"""GrantStore: the single active grant, kept across restarts."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from anivault.core.schema import Grant
from anivault.utils.config import GRANT_FILENAME, global_config_dir

logger = logging.getLogger(__name__)


@runtime_checkable
class GrantStore(Protocol):
    def get(self) -> Grant | None:
        ...

    def set(self, grant: Grant) -> None:
        ...

    def clear(self) -> None:
        ...


class FileGrantStore:
    """Grant persisted as JSON in the global config directory."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path or global_config_dir() / GRANT_FILENAME

    def get(self) -> Grant | None:
        path = self.path
        if not path.is_file():
            return None
        try:
            return Grant.model_validate_json(path.read_text())
        except (ValidationError, OSError) as e:
            logger.warning("Ignoring unreadable grant file %s: %s", path, e)
            return None

    def set(self, grant: Grant) -> None:
        path = self.path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(grant.model_dump_json(indent=2) + "\n")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class MemoryGrantStore:
    def __init__(self, grant: Grant | None = None) -> None:
        self._grant = grant

    def get(self) -> Grant | None:
        return self._grant

    def set(self, grant: Grant) -> None:
        self._grant = grant

    def clear(self) -> None:
        self._grant = None
