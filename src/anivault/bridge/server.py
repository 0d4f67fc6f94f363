"""MCP bridge exposing VaultStore to a hosting page or agent over stdio.

This is the only place typed records become strings: every tool returns
JSON text (or raw session text for vault_read_session).
"""

from __future__ import annotations

import json
import logging

from mcp.server.fastmcp import FastMCP

from anivault.core.merge import merge_projects, parse_discovered
from anivault.core.store import VaultStore

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "ani-vault",
    instructions=(
        "AnI Vault banks chat transcripts into a folder the user granted. "
        "Call vault_access_status first; bank with vault_bank_session."
    ),
)

_vault: VaultStore | None = None


def _get_vault() -> VaultStore:
    global _vault
    if _vault is None:
        _vault = VaultStore()
    return _vault


def set_vault(vault: VaultStore | None) -> None:
    """Override the module-level vault (used in tests)."""
    global _vault
    _vault = vault


@mcp.tool()
def vault_request_access(kind: str = "tree", location: str = "") -> str:
    """Grant the vault a folder.

    Args:
        kind: Backend kind: tree, flat or handle
        location: Folder path (for flat, the downloads collection; empty means default)
    """
    result = _get_vault().request_access(kind, location)
    return json.dumps({"result": result.value})


@mcp.tool()
def vault_access_status() -> str:
    """Report whether a usable vault folder is granted."""
    return json.dumps({"status": _get_vault().access_status().value})


@mcp.tool()
def vault_revoke_access() -> str:
    """Forget the granted folder."""
    _get_vault().revoke()
    return json.dumps({"status": "revoked"})


@mcp.tool()
def vault_list_projects() -> str:
    """Project folders found in the vault, as a JSON array of names."""
    return json.dumps(_get_vault().list_projects())


@mcp.tool()
def vault_ensure_project(key: str) -> str:
    """Create a project with Sessions/ and Exports/ if it does not exist.

    Args:
        key: Project name; canonicalized to lowercase [a-z0-9._-]
    """
    return _get_vault().ensure_project(key).model_dump_json()


@mcp.tool()
def vault_bank_session(
    md_text: str = "", html_text: str = "", base_name: str = "", project_key: str = ""
) -> str:
    """Write <base>.md into Sessions/ and <base>.html into Exports/ of a project.

    Args:
        md_text: Markdown transcript
        html_text: Rendered HTML transcript
        base_name: File name without extension
        project_key: Project to bank into
    """
    result = _get_vault().bank_session(md_text, html_text, base_name, project_key)
    data = result.model_dump(mode="json")
    data["message"] = result.message
    return json.dumps(data)


@mcp.tool()
def vault_list_sessions(project_key: str = "") -> str:
    """Banked sessions of a project, as a JSON array of {name, project}."""
    sessions = _get_vault().list_sessions(project_key)
    return json.dumps([s.model_dump() for s in sessions])


@mcp.tool()
def vault_read_session(project_key: str, filename: str) -> str:
    """Text of a banked session file; empty when it does not exist."""
    return _get_vault().read_session(project_key, filename)


@mcp.tool()
def vault_merge_projects(discovered_json: str = "[]", cached_json: str = "[]", current: str = "") -> str:
    """Merge a discovered project array with the client's cached array.

    Args:
        discovered_json: JSON array from vault_list_projects
        cached_json: JSON array the client remembered
        current: Currently selected project
    """
    merged, selection = merge_projects(
        parse_discovered(discovered_json), parse_discovered(cached_json), current
    )
    return json.dumps({"projects": merged, "current": selection})


def main():
    """Run the bridge on stdio."""
    logger.debug("Starting vault bridge")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
