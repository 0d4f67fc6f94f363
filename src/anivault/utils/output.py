"""Output helpers for the CLI: JSON when piped or asked for, rich text otherwise."""

from __future__ import annotations

import json
import sys
from typing import Any

from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

console = Console()
error_console = Console(stderr=True)


def is_piped() -> bool:
    return not sys.stdout.isatty()


def _resolve(fmt: str | None) -> str:
    if fmt is None:
        return "json" if is_piped() else "text"
    return fmt


def to_plain(data: Any) -> Any:
    """Turn pydantic records (also nested in lists/dicts) into JSON-ready values."""
    if hasattr(data, "model_dump"):
        return data.model_dump(mode="json")
    if isinstance(data, list):
        return [to_plain(item) for item in data]
    if isinstance(data, dict):
        return {k: to_plain(v) for k, v in data.items()}
    return data


def output(data: Any, fmt: str | None = None) -> None:
    """Print a record, list or string in the requested format.

    Strings go out verbatim in text mode (no rich markup), so banked
    transcripts are shown as written.
    """
    if _resolve(fmt) == "json":
        plain = to_plain(data)
        if not isinstance(plain, (dict, list)):
            plain = {"value": plain if isinstance(plain, str) else str(plain)}
        print(json.dumps(plain, indent=2, ensure_ascii=False, default=str))
    elif isinstance(data, str):
        console.print(data, markup=False, highlight=False)
    else:
        console.print_json(json.dumps(to_plain(data), default=str))


def output_markdown(text: str, fmt: str | None = None, **extra: Any) -> None:
    """Render a markdown session for the terminal, or wrap it in JSON."""
    if _resolve(fmt) == "json":
        print(json.dumps({**extra, "text": text}, indent=2, ensure_ascii=False))
    else:
        console.print(Markdown(text))


def output_table(rows: list[dict[str, Any]], columns: list[str], fmt: str | None = None) -> None:
    if _resolve(fmt) == "json":
        print(json.dumps(rows, indent=2, default=str))
        return
    table = Table()
    for col in columns:
        table.add_column(col.replace("_", " ").title())
    for row in rows:
        table.add_row(*[str(row.get(col, "")) for col in columns])
    console.print(table)


def output_choices(names: list[str], current: str) -> None:
    """One name per line, the current one starred."""
    for name in names:
        marker = "[green]*[/green]" if name == current else " "
        console.print(f"  {marker} {name}", highlight=False)


def error(msg: str) -> None:
    error_console.print(f"[red]Error:[/red] {msg}")


def success(msg: str) -> None:
    console.print(f"[green]{msg}[/green]")


def info(msg: str) -> None:
    console.print(f"[dim]{msg}[/dim]")
