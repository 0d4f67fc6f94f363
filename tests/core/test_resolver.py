"""Tests for Projects container resolution and find-or-create."""

from pathlib import Path

import pytest

from anivault.backends.base import BackendError
from anivault.backends.tree import TreeBackend
from anivault.core.errors import ResolutionFailure
from anivault.core.resolver import (
    find_child,
    find_or_create,
    locate_projects_container,
    resolve_projects_container,
)


class NoVaultFolderBackend(TreeBackend):
    """Refuses to create the AnI folder, as a read-only grant would."""

    def create_child(self, directory, name, is_directory):
        if name == "AnI":
            raise BackendError("read-only")
        return super().create_child(directory, name, is_directory)


class RacingBackend(TreeBackend):
    """Another writer creates the folder just before we do."""

    def create_child(self, directory, name, is_directory):
        super().create_child(directory, name, is_directory)
        raise BackendError(f"{name} already exists")


@pytest.fixture
def backend():
    return TreeBackend()


def _children(path: Path) -> list[str]:
    return sorted(p.name for p in path.iterdir())


class TestFindChild:
    def test_case_insensitive(self, backend, tmp_path):
        (tmp_path / "Projects").mkdir()
        assert find_child(backend, tmp_path, "projects") == tmp_path / "Projects"

    def test_case_sensitive_miss(self, backend, tmp_path):
        (tmp_path / "Projects").mkdir()
        assert find_child(backend, tmp_path, "projects", case_insensitive=False) is None

    def test_exact_match_preferred(self, backend, tmp_path):
        (tmp_path / "projects").mkdir()
        (tmp_path / "Projects").mkdir()
        assert find_child(backend, tmp_path, "Projects") == tmp_path / "Projects"

    def test_files_do_not_match_directories(self, backend, tmp_path):
        (tmp_path / "AnI").write_text("not a folder")
        assert find_child(backend, tmp_path, "AnI") is None
        assert find_child(backend, tmp_path, "AnI", is_directory=False) == tmp_path / "AnI"
        assert find_child(backend, tmp_path, "ani", is_directory=None) == tmp_path / "AnI"


class TestFindOrCreate:
    def test_creates_when_missing(self, backend, tmp_path):
        created = find_or_create(backend, tmp_path, "Sessions")
        assert created == tmp_path / "Sessions"
        assert created.is_dir()

    def test_reuses_case_insensitive_match(self, backend, tmp_path):
        (tmp_path / "sessions").mkdir()
        assert find_or_create(backend, tmp_path, "Sessions") == tmp_path / "sessions"
        assert _children(tmp_path) == ["sessions"]

    def test_no_create_returns_none(self, backend, tmp_path):
        assert find_or_create(backend, tmp_path, "Sessions", create=False) is None
        assert _children(tmp_path) == []

    def test_lost_race_reuses_winner(self, tmp_path):
        found = find_or_create(RacingBackend(), tmp_path, "Exports")
        assert found == tmp_path / "Exports"
        assert _children(tmp_path) == ["Exports"]

    def test_failure_raises(self, tmp_path):
        with pytest.raises(ResolutionFailure, match="AnI"):
            find_or_create(NoVaultFolderBackend(), tmp_path, "AnI")

    def test_twice_is_idempotent(self, backend, tmp_path):
        first = find_or_create(backend, tmp_path, "AnI")
        second = find_or_create(backend, tmp_path, "ani")
        assert first == second
        assert _children(tmp_path) == ["AnI"]


class TestResolveProjectsContainer:
    def test_root_named_projects(self, backend, tmp_path):
        root = tmp_path / "projects"
        root.mkdir()
        assert resolve_projects_container(backend, root, create_if_missing=True) == root
        assert _children(root) == []

    def test_root_named_vault_folder(self, backend, tmp_path):
        root = tmp_path / "ani"
        root.mkdir()
        container = resolve_projects_container(backend, root, create_if_missing=True)
        assert container == root / "Projects"
        assert container.is_dir()

    def test_arbitrary_parent(self, backend, tmp_path):
        root = tmp_path / "MyVault"
        root.mkdir()
        location = locate_projects_container(backend, root, create_if_missing=True)
        assert location.handle == root / "AnI" / "Projects"
        assert location.path == "MyVault/AnI/Projects"

    def test_reuses_existing_mixed_case(self, backend, tmp_path):
        root = tmp_path / "MyVault"
        (root / "ANI" / "projects").mkdir(parents=True)
        container = resolve_projects_container(backend, root, create_if_missing=True)
        assert container == root / "ANI" / "projects"
        assert _children(root) == ["ANI"]
        assert _children(root / "ANI") == ["projects"]

    def test_no_create_leaves_storage_untouched(self, backend, tmp_path):
        root = tmp_path / "MyVault"
        root.mkdir()
        assert resolve_projects_container(backend, root, create_if_missing=False) is None
        assert _children(root) == []

    def test_no_create_on_vault_root_without_projects(self, backend, tmp_path):
        root = tmp_path / "AnI"
        root.mkdir()
        assert resolve_projects_container(backend, root, create_if_missing=False) is None

    def test_fallback_to_projects_under_root(self, tmp_path):
        root = tmp_path / "MyVault"
        (root / "Projects").mkdir(parents=True)
        container = resolve_projects_container(NoVaultFolderBackend(), root, create_if_missing=True)
        assert container == root / "Projects"

    def test_fallback_when_not_creating(self, backend, tmp_path):
        root = tmp_path / "MyVault"
        (root / "Projects").mkdir(parents=True)
        location = locate_projects_container(backend, root, create_if_missing=False)
        assert location.handle == root / "Projects"
        assert location.path == "MyVault/Projects"

    def test_unresolvable_raises(self, tmp_path):
        root = tmp_path / "MyVault"
        root.mkdir()
        with pytest.raises(ResolutionFailure):
            resolve_projects_container(NoVaultFolderBackend(), root, create_if_missing=True)
