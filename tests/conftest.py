"""Shared fixtures: isolated config home, granted vault roots."""

from __future__ import annotations

from pathlib import Path

import pytest

from anivault.backends import handle as handle_backend
from anivault.core.grants import MemoryGrantStore
from anivault.core.schema import AccessRequest, BackendKind
from anivault.core.store import VaultStore


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Keep grant, state and config files out of the real home directory."""
    home = tmp_path / "ani-home"
    monkeypatch.setenv("ANI_VAULT_HOME", str(home))
    yield home
    handle_backend.forget_all()


@pytest.fixture
def vault_root(tmp_path: Path) -> Path:
    """An arbitrary parent folder the user picked."""
    root = tmp_path / "MyVault"
    root.mkdir()
    return root


@pytest.fixture
def vault(vault_root: Path) -> VaultStore:
    """VaultStore with a tree grant on MyVault."""
    v = VaultStore(grants=MemoryGrantStore())
    assert v.request_access(BackendKind.tree, str(vault_root)) == AccessRequest.pending
    return v


@pytest.fixture
def banked_vault(vault: VaultStore) -> VaultStore:
    """Vault with two projects and a few sessions."""
    vault.bank_session("# One", "<p>One</p>", "s1", "general")
    vault.bank_session("# Two", "<p>Two</p>", "s2", "general")
    vault.bank_session("# Notes", "<p>Notes</p>", "notes", "Research Notes")
    return vault
