"""Session subcommands: bank, list, read."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from anivault.cli._shared import FORMAT_OPTION, get_state_file, get_vault
from anivault.core.schema import BankStatus
from anivault.core.signature import ChangeDetector
from anivault.core.transcript import prepare_bank
from anivault.utils.config import load_settings
from anivault.utils.output import error, info, output, output_markdown, output_table, success
from anivault.utils.paths import DEFAULT_SESSION_ID

session_app = typer.Typer(no_args_is_help=True)


def _load_transcript(path: Path) -> tuple[list, str]:
    """Rows and session id from a transcript file.

    Accepts a bare list of rows or {"session_id": ..., "rows": [...]}.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        rows = data.get("rows", [])
        session_id = str(data.get("session_id") or "")
    else:
        rows, session_id = data, ""
    if not isinstance(rows, list):
        raise ValueError("'rows' must be a list")
    return rows, session_id


@session_app.command("bank")
def session_bank(
    transcript: Path = typer.Argument(..., help="Transcript JSON file", exists=True, dir_okay=False),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project (default: current)"),
    session_id: Optional[str] = typer.Option(None, "--session-id", "-s", help="Session identifier"),
    base: Optional[str] = typer.Option(None, "--base", "-b", help="Base file name (default: time-stamped)"),
    if_changed: Optional[bool] = typer.Option(
        None, "--if-changed/--always", help="Skip when the content matches the last bank (default: autobank setting)"
    ),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Bank the included rows of a transcript as .md + .html."""
    try:
        rows, file_session = _load_transcript(transcript)
    except (ValueError, OSError) as e:
        error(f"Cannot read transcript {transcript}: {e}")
        raise typer.Exit(1)

    vault = get_vault()
    state_file = get_state_file()
    state = state_file.load()
    if if_changed is None:
        setting = load_settings().autobank
        if_changed = setting == "on" if setting else state.autobank
    proj = project or state.current_project
    sid = session_id or file_session or DEFAULT_SESSION_ID

    if if_changed:
        detector = ChangeDetector(state.last_signature)
        result = vault.autobank(rows, proj, sid, detector, base_name=base)
        if result is None:
            if fmt == "json":
                output({"status": "unchanged"}, fmt="json")
            else:
                info("No changes since the last bank")
            return
        new_signature = detector.last_signature
    else:
        payload = prepare_bank(rows, proj, sid)
        result = vault.bank_session(
            payload.text, payload.html, base or payload.base_name, payload.project_key
        )
        new_signature = payload.signature

    if result.ok:
        state.last_signature = new_signature
        state.autobank = True
        state = vault.refresh_projects(state)
    state_file.save(state)

    if fmt == "json":
        output(result, fmt="json")
    elif result.ok:
        success(result.message)
    else:
        error(result.message)
        if result.status == BankStatus.partial_write_failure:
            info(f"Left on storage: {', '.join(result.written)}")
    if not result.ok:
        raise typer.Exit(1)


@session_app.command("list")
def session_list(
    project: Optional[str] = typer.Argument(None, help="Project (default: current)"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """List banked sessions of a project."""
    proj = project or get_state_file().load().current_project
    sessions = get_vault().list_sessions(proj)
    if not sessions and fmt != "json":
        info(f"No sessions in '{proj}'")
        return
    output_table([s.model_dump() for s in sessions], ["name", "project"], fmt=fmt)


@session_app.command("read")
def session_read(
    project: str = typer.Argument(..., help="Project"),
    filename: str = typer.Argument(..., help="Session file, e.g. ani-general-20250101-120000.md"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Print a banked session."""
    text = get_vault().read_session(project, filename)
    if not text:
        error(f"Session '{filename}' not found in '{project}'")
        raise typer.Exit(1)
    output_markdown(text, fmt=fmt, project=project, filename=filename)
