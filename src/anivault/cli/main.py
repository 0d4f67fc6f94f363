"""Typer app: top-level command groups and root commands (grant, status, revoke)."""

from __future__ import annotations

import logging
from typing import Optional

import typer

from anivault.backends.registry import list_backends
from anivault.cli._shared import FORMAT_OPTION, get_vault
from anivault.core.schema import AccessRequest, AccessStatus
from anivault.utils.config import load_settings
from anivault.utils.output import error, info, output, success

app = typer.Typer(
    name="ani-vault",
    help="AnI Vault: bank chat transcripts into a folder you control.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@app.command()
def grant(
    location: str = typer.Argument("", help="Folder to grant (collection root for 'flat')"),
    kind: Optional[str] = typer.Option(None, "--kind", "-k", help="Backend: tree, flat or handle"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Grant the vault write access to a folder."""
    kind = kind or load_settings().default_backend or "tree"
    if kind not in list_backends():
        error(f"Unknown backend: {kind}. Valid backends: {', '.join(list_backends())}")
        raise typer.Exit(1)

    vault = get_vault()
    result = vault.request_access(kind, location)
    if fmt == "json":
        output({"kind": kind, "result": result.value}, fmt="json")
    elif result == AccessRequest.pending:
        success(f"Vault folder selected ({kind})")
    else:
        error("Vault folder not selected.")
    if result == AccessRequest.denied:
        raise typer.Exit(1)


@app.command()
def status(fmt: Optional[str] = FORMAT_OPTION) -> None:
    """Show whether a vault folder is granted and what it holds."""
    vault = get_vault()
    access = vault.access_status()
    current = vault.current_grant()
    projects = vault.list_projects() if access == AccessStatus.granted else []

    if fmt == "json":
        output(
            {
                "access": access.value,
                "kind": current.kind.value if current else None,
                "projects": projects,
            },
            fmt="json",
        )
        return

    from rich.panel import Panel
    from anivault.utils.output import console

    console.print(Panel(f"[bold]{access.value}[/bold]", title="AnI Vault"))
    if current is not None:
        console.print(f"  Backend: {current.kind.value}")
        console.print(f"  Granted: {current.granted_at:%Y-%m-%d %H:%M UTC}")
    if projects:
        console.print(f"  Projects: {', '.join(projects)}")
    elif access == AccessStatus.granted:
        info("  No projects yet")


@app.command()
def revoke(fmt: Optional[str] = FORMAT_OPTION) -> None:
    """Forget the granted folder."""
    get_vault().revoke()
    if fmt == "json":
        output({"status": "revoked"}, fmt="json")
    else:
        success("Vault access cleared")


@app.command()
def bridge() -> None:
    """Serve the vault bridge over stdio."""
    from anivault.bridge.server import main as bridge_main

    bridge_main()


# Register subcommand groups
from anivault.cli.project_cmd import project_app
from anivault.cli.session_cmd import session_app
from anivault.cli.config_cmd import config_app

app.add_typer(project_app, name="project", help="List, create and select projects")
app.add_typer(session_app, name="session", help="Bank, list and read sessions")
app.add_typer(config_app, name="config", help="Manage global configuration")
