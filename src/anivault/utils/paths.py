"""Vault layout names and key canonicalization."""

from __future__ import annotations

import os
import re
from pathlib import Path


VAULT_DIR = "AnI"
PROJECTS_DIR = "Projects"
SESSIONS_DIR = "Sessions"
EXPORTS_DIR = "Exports"

DEFAULT_PROJECT = "general"
DEFAULT_BASE_NAME = "ani-session"
DEFAULT_SESSION_ID = "default-session"

KEY_MAX_LENGTH = 80


def canonical_key(raw: str | None, default: str = DEFAULT_PROJECT) -> str:
    """Turn a free-form name into a safe, stable storage key.

    Total: every input maps to a non-empty key. Anything outside
    [a-z0-9._-] becomes '-', runs of '-' collapse, and the result is
    capped at KEY_MAX_LENGTH.
    """
    key = (raw or "").strip().lower()
    key = re.sub(r"[^a-z0-9._-]", "-", key)
    key = re.sub(r"-+", "-", key).strip("-")
    key = key[:KEY_MAX_LENGTH].strip("-")
    if not key or key in (".", ".."):
        return default
    return key


def logical_path(*parts: str) -> str:
    """Join vault segments into the '/'-separated path shown to users."""
    return "/".join(p for p in parts if p)


def default_downloads_dir() -> Path:
    """Location of the public downloads collection on this machine."""
    xdg = os.environ.get("XDG_DOWNLOAD_DIR")
    if xdg:
        return Path(xdg).expanduser()
    return Path.home() / "Downloads"
