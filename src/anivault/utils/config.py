"""Where the vault keeps its own files, and the user-settable settings."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

HOME_ENV = "ANI_VAULT_HOME"
CONFIG_FILENAME = "config.json"
GRANT_FILENAME = "grant.json"
STATE_FILENAME = "state.json"


def global_config_dir() -> Path:
    override = os.environ.get(HOME_ENV)
    home = Path(override).expanduser() if override else Path.home() / ".config" / "ani-vault"
    home.mkdir(parents=True, exist_ok=True)
    return home


class VaultSettings(BaseModel):
    """config.json. Unset keys stay None and fall back to built-in behaviour."""

    default_backend: Optional[Literal["tree", "flat", "handle"]] = None
    autobank: Optional[Literal["on", "off"]] = None

    @classmethod
    def keys(cls) -> list[str]:
        return sorted(cls.model_fields)


def load_settings() -> VaultSettings:
    path = global_config_dir() / CONFIG_FILENAME
    if not path.is_file():
        return VaultSettings()
    try:
        return VaultSettings.model_validate_json(path.read_text())
    except (ValidationError, OSError) as e:
        logger.warning("Ignoring unreadable settings %s: %s", path, e)
        return VaultSettings()


def save_settings(settings: VaultSettings) -> None:
    path = global_config_dir() / CONFIG_FILENAME
    path.write_text(json.dumps(settings.model_dump(exclude_none=True), indent=2) + "\n")


def update_setting(key: str, value: str) -> VaultSettings:
    """Validate and persist one key. Raises KeyError or ValidationError."""
    if key not in VaultSettings.model_fields:
        raise KeyError(key)
    merged = {**load_settings().model_dump(), key: value}
    settings = VaultSettings.model_validate(merged)
    save_settings(settings)
    return settings
