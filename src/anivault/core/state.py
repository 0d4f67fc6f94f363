"""Client-side state file: cached project list, selection, last signature."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from anivault.core.schema import ClientState, _now
from anivault.utils.config import STATE_FILENAME, global_config_dir

logger = logging.getLogger(__name__)


class StateFile:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path or global_config_dir() / STATE_FILENAME

    def load(self) -> ClientState:
        path = self.path
        if not path.is_file():
            return ClientState()
        try:
            return ClientState.model_validate_json(path.read_text())
        except (ValidationError, OSError) as e:
            logger.warning("Resetting unreadable state file %s: %s", path, e)
            return ClientState()

    def save(self, state: ClientState) -> None:
        state.updated_at = _now()
        path = self.path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(state.model_dump_json(indent=2) + "\n")
