"""Project subcommands: list, ensure, select."""

from __future__ import annotations

from typing import Optional

import typer

from anivault.cli._shared import FORMAT_OPTION, get_state_file, get_vault
from anivault.core.schema import EnsureStatus
from anivault.utils.output import error, info, output, output_choices, success

project_app = typer.Typer(no_args_is_help=True)


@project_app.command("list")
def project_list(
    raw: bool = typer.Option(False, "--raw", help="Only folders found in storage, no cache or default"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """List projects, merging storage with the cached list."""
    vault = get_vault()
    if raw:
        names = vault.list_projects()
        if fmt == "json":
            output(names, fmt="json")
        elif names:
            for name in names:
                info(name)
        else:
            info("No projects found in the vault")
        return

    state_file = get_state_file()
    state = vault.refresh_projects(state_file.load())
    state_file.save(state)
    if fmt == "json":
        output({"projects": state.projects, "current": state.current_project}, fmt="json")
    else:
        output_choices(state.projects, state.current_project)


@project_app.command("ensure")
def project_ensure(
    key: str = typer.Argument(..., help="Project name"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Create a project and its Sessions/Exports folders if missing."""
    result = get_vault().ensure_project(key)
    if fmt == "json":
        output(result, fmt="json")
    elif result.status == EnsureStatus.ok:
        success(f"Project '{result.project}' ready")
    elif result.status == EnsureStatus.no_grant:
        error("Vault not granted. Run `ani-vault grant` first.")
    else:
        error(f"Could not create project '{result.project}': {result.reason}")
    if not result.ok:
        raise typer.Exit(1)


@project_app.command("select")
def project_select(
    name: str = typer.Argument("", help="Project to bank into (empty for the default)"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Make a project the current one, adding it to the cached list."""
    state_file = get_state_file()
    state = get_vault().select_project(state_file.load(), name)
    state_file.save(state)
    if fmt == "json":
        output({"projects": state.projects, "current": state.current_project}, fmt="json")
    else:
        success(f"Current project: {state.current_project}")
