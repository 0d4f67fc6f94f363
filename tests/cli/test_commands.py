"""Integration tests for CLI commands via typer.testing.CliRunner."""

import json

import pytest
from typer.testing import CliRunner

from anivault.cli.main import app

runner = CliRunner()

ROWS = [
    [True, "2025-01-01 10:00:00 UTC", "user", "hello", "", "", "general"],
    [True, "2025-01-01 10:00:01 UTC", "assistant", "hi there", "openai", "gpt", "general"],
    [False, "2025-01-01 10:00:02 UTC", "user", "leave me out", "", "", "general"],
]


@pytest.fixture
def granted(vault_root):
    result = runner.invoke(app, ["grant", str(vault_root), "--kind", "tree"])
    assert result.exit_code == 0
    return vault_root


@pytest.fixture
def transcript(tmp_path):
    path = tmp_path / "chat.json"
    path.write_text(json.dumps({"session_id": "sess-42", "rows": ROWS}))
    return path


def _sessions(root, project="general"):
    return sorted(p.name for p in (root / "AnI" / "Projects" / project / "Sessions").iterdir())


class TestGrant:
    def test_grant(self, vault_root):
        result = runner.invoke(app, ["grant", str(vault_root), "--format", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"kind": "tree", "result": "pending"}

    def test_grant_missing_folder(self, tmp_path):
        result = runner.invoke(app, ["grant", str(tmp_path / "nope")])
        assert result.exit_code == 1

    def test_unknown_kind(self, vault_root):
        result = runner.invoke(app, ["grant", str(vault_root), "--kind", "cloud"])
        assert result.exit_code == 1

    def test_status(self, granted):
        result = runner.invoke(app, ["status", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["access"] == "granted"
        assert data["kind"] == "tree"

    def test_status_without_grant(self):
        result = runner.invoke(app, ["status", "--format", "json"])
        assert json.loads(result.output)["access"] == "not-granted"

    def test_status_text(self, granted):
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "granted" in result.output

    def test_revoke(self, granted):
        result = runner.invoke(app, ["revoke"])
        assert result.exit_code == 0
        status = runner.invoke(app, ["status", "--format", "json"])
        assert json.loads(status.output)["access"] == "not-granted"


class TestProject:
    def test_ensure(self, granted):
        result = runner.invoke(app, ["project", "ensure", "My Project", "--format", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["project"] == "my-project"
        assert (granted / "AnI" / "Projects" / "my-project" / "Exports").is_dir()

    def test_ensure_without_grant(self):
        result = runner.invoke(app, ["project", "ensure", "x", "--format", "json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["status"] == "no_grant"

    def test_list_merges_default(self, granted):
        runner.invoke(app, ["project", "ensure", "work"])
        result = runner.invoke(app, ["project", "list", "--format", "json"])
        assert json.loads(result.output) == {"projects": ["general", "work"], "current": "general"}

    def test_list_raw(self, granted):
        runner.invoke(app, ["project", "ensure", "work"])
        result = runner.invoke(app, ["project", "list", "--raw", "--format", "json"])
        assert json.loads(result.output) == ["work"]

    def test_select_persists(self, granted):
        runner.invoke(app, ["project", "select", "Side Quest"])
        result = runner.invoke(app, ["project", "list", "--format", "json"])
        assert json.loads(result.output)["current"] == "side-quest"


class TestSession:
    def test_bank(self, granted, transcript):
        result = runner.invoke(app, ["session", "bank", str(transcript), "--base", "first", "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["status"] == "ok"
        assert data["path"] == "MyVault/AnI/Projects/general/Sessions/first.md"
        text = (granted / "AnI" / "Projects" / "general" / "Sessions" / "first.md").read_text()
        assert "**Session ID:** sess-42" in text
        assert "leave me out" not in text

    def test_bank_into_selected_project(self, granted, transcript):
        runner.invoke(app, ["project", "select", "research"])
        result = runner.invoke(app, ["session", "bank", str(transcript), "--format", "json"])
        assert result.exit_code == 0
        assert "/research/Sessions/ani-research-" in json.loads(result.output)["path"]

    def test_bank_without_grant(self, transcript):
        result = runner.invoke(app, ["session", "bank", str(transcript), "--format", "json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["status"] == "no_grant"

    def test_if_changed_skips_repeat(self, granted, transcript):
        first = runner.invoke(app, ["session", "bank", str(transcript), "--if-changed", "--format", "json"])
        assert json.loads(first.output)["status"] == "ok"
        second = runner.invoke(app, ["session", "bank", str(transcript), "--if-changed", "--format", "json"])
        assert second.exit_code == 0
        assert json.loads(second.output) == {"status": "unchanged"}
        assert len(_sessions(granted)) == 1

    def test_autobank_enabled_after_first_bank(self, granted, transcript):
        runner.invoke(app, ["session", "bank", str(transcript), "--base", "first"])
        result = runner.invoke(app, ["session", "bank", str(transcript), "--format", "json"])
        assert json.loads(result.output) == {"status": "unchanged"}

    def test_if_changed_with_base(self, granted, transcript):
        runner.invoke(app, ["session", "bank", str(transcript), "--if-changed", "--base", "a"])
        result = runner.invoke(
            app, ["session", "bank", str(transcript), "--if-changed", "--base", "b", "--format", "json"]
        )
        assert result.exit_code == 0
        assert json.loads(result.output) == {"status": "unchanged"}
        assert _sessions(granted) == ["a.md"]

    def test_always(self, granted, transcript):
        runner.invoke(app, ["session", "bank", str(transcript), "--base", "a"])
        result = runner.invoke(app, ["session", "bank", str(transcript), "--always", "--base", "b"])
        assert result.exit_code == 0
        assert _sessions(granted) == ["a.md", "b.md"]

    def test_bad_transcript(self, granted, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{broken")
        result = runner.invoke(app, ["session", "bank", str(bad)])
        assert result.exit_code == 1

    def test_list_and_read(self, granted, transcript):
        runner.invoke(app, ["session", "bank", str(transcript), "--base", "first"])
        listed = runner.invoke(app, ["session", "list", "general", "--format", "json"])
        assert json.loads(listed.output) == [{"name": "first.md", "project": "general"}]
        read = runner.invoke(app, ["session", "read", "general", "FIRST.md", "--format", "json"])
        assert read.exit_code == 0
        assert json.loads(read.output)["text"].startswith("# AnI Session Export")

    def test_read_missing(self, granted):
        result = runner.invoke(app, ["session", "read", "general", "nope.md"])
        assert result.exit_code == 1
