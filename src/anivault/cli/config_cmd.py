"""Config subcommands: show and change settings in config.json."""

from __future__ import annotations

from typing import Optional

import typer
from pydantic import ValidationError

from anivault.cli._shared import FORMAT_OPTION
from anivault.utils.config import VaultSettings, load_settings, update_setting
from anivault.utils.output import error, info, output, success

config_app = typer.Typer(no_args_is_help=True)


def _unknown(key: str) -> None:
    error(f"Unknown key: {key}. Valid keys: {', '.join(VaultSettings.keys())}")
    raise typer.Exit(1)


@config_app.command("get")
def config_get(
    key: str = typer.Argument(..., help="Setting name"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Show one setting."""
    if key not in VaultSettings.model_fields:
        _unknown(key)
    value = getattr(load_settings(), key)
    if fmt == "json":
        output({"key": key, "value": value}, fmt="json")
    else:
        info(f"{key}: {value or '(not set)'}")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting name"),
    value: str = typer.Argument(..., help="New value"),
    fmt: Optional[str] = FORMAT_OPTION,
) -> None:
    """Change one setting (default_backend: tree|flat|handle, autobank: on|off)."""
    try:
        update_setting(key, value)
    except KeyError:
        _unknown(key)
    except ValidationError:
        error(f"Invalid value for {key}: {value}")
        raise typer.Exit(1)

    if fmt == "json":
        output({"key": key, "value": value}, fmt="json")
    else:
        success(f"{key} = {value}")


@config_app.command("list")
def config_list(fmt: Optional[str] = FORMAT_OPTION) -> None:
    """Show every setting that has been set."""
    settings = load_settings().model_dump(exclude_none=True)
    if fmt == "json":
        output(settings, fmt="json")
    elif not settings:
        info("No settings changed from the defaults")
    else:
        for k, v in settings.items():
            info(f"{k}: {v}")
