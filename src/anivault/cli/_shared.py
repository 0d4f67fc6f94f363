"""Shared CLI utilities to avoid circular imports."""

from __future__ import annotations

import typer

from anivault.core.state import StateFile
from anivault.core.store import VaultStore

FORMAT_OPTION = typer.Option(None, "--format", "-F", help="Output format: json or text")


def get_vault() -> VaultStore:
    return VaultStore()


def get_state_file() -> StateFile:
    return StateFile()
