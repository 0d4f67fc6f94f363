"""Tests for ProjectStore: listing, ensuring and reading projects."""

from pathlib import Path

import pytest

from anivault.backends.tree import TreeBackend
from anivault.core.projects import ProjectStore


@pytest.fixture
def projects(vault_root: Path) -> ProjectStore:
    return ProjectStore(TreeBackend(), vault_root)


def _tree(root: Path) -> list[str]:
    return sorted(str(p.relative_to(root)) for p in root.rglob("*"))


class TestListProjects:
    def test_fresh_root_is_empty(self, projects, vault_root):
        assert projects.list_projects() == []
        assert _tree(vault_root) == []

    def test_sorted_case_insensitively(self, projects, vault_root):
        container = vault_root / "AnI" / "Projects"
        for name in ["beta", "Alpha", "gamma"]:
            (container / name).mkdir(parents=True)
        assert projects.list_projects() == ["Alpha", "beta", "gamma"]

    def test_skips_files(self, projects, vault_root):
        container = vault_root / "AnI" / "Projects"
        (container / "real").mkdir(parents=True)
        (container / "stray.txt").write_text("x")
        assert projects.list_projects() == ["real"]

    def test_no_default_injected(self, projects, vault_root):
        (vault_root / "AnI" / "Projects" / "research").mkdir(parents=True)
        assert "general" not in projects.list_projects()


class TestEnsureProject:
    def test_creates_structure(self, projects, vault_root):
        folders = projects.ensure_project("general")
        base = vault_root / "AnI" / "Projects" / "general"
        assert (base / "Sessions").is_dir()
        assert (base / "Exports").is_dir()
        assert folders.key == "general"
        assert folders.path == "MyVault/AnI/Projects/general"

    def test_idempotent(self, projects, vault_root):
        projects.ensure_project("general")
        before = _tree(vault_root)
        projects.ensure_project("general")
        assert _tree(vault_root) == before

    def test_canonicalizes(self, projects):
        assert projects.ensure_project("My Project!!").key == "my-project"
        assert projects.list_projects() == ["my-project"]

    def test_empty_key_uses_default(self, projects):
        assert projects.ensure_project("   ").key == "general"

    def test_reuses_existing_subfolders_in_other_case(self, projects, vault_root):
        base = vault_root / "AnI" / "Projects" / "general"
        (base / "sessions").mkdir(parents=True)
        projects.ensure_project("general")
        assert sorted(p.name for p in base.iterdir()) == ["Exports", "sessions"]


class TestSessions:
    def test_list_and_read(self, projects, vault_root):
        folders = projects.ensure_project("demo")
        (folders.sessions / "b.md").write_text("B")
        (folders.sessions / "A.md").write_text("A")
        (folders.sessions / "notes.txt").write_text("skip")
        names = [s.name for s in projects.list_sessions("demo")]
        assert names == ["A.md", "b.md"]
        assert projects.read_session("demo", "A.md") == "A"

    def test_read_is_case_insensitive(self, projects):
        folders = projects.ensure_project("demo")
        (folders.sessions / "Test1.md").write_text("# Hi")
        assert projects.read_session("demo", "test1.md") == "# Hi"

    def test_missing_project(self, projects):
        assert projects.list_sessions("nope") == []
        assert projects.read_session("nope", "x.md") == ""

    def test_read_does_not_escape_folder(self, projects, vault_root):
        projects.ensure_project("demo")
        (vault_root / "secret.md").write_text("secret")
        assert projects.read_session("demo", "../../../../secret.md") == ""


class TestListedNames:
    @pytest.fixture
    def legacy(self, vault_root):
        sessions = vault_root / "AnI" / "Projects" / "My Stuff" / "Sessions"
        sessions.mkdir(parents=True)
        (sessions / "a.md").write_text("old notes")
        return sessions

    def test_listed_name_opens_sessions(self, projects, legacy):
        assert projects.list_projects() == ["My Stuff"]
        sessions = projects.list_sessions("My Stuff")
        assert [(s.name, s.project) for s in sessions] == [("a.md", "My Stuff")]
        assert projects.read_session("My Stuff", "a.md") == "old notes"

    def test_ensure_reuses_listed_folder(self, projects, legacy):
        folders = projects.ensure_project("My Stuff")
        assert folders.path == "MyVault/AnI/Projects/My Stuff"
        assert projects.list_projects() == ["My Stuff"]

    def test_canonical_key_still_creates_new(self, projects, legacy):
        projects.ensure_project("my-stuff")
        assert projects.list_projects() == ["My Stuff", "my-stuff"]
