"""Render transcript rows into the markdown and HTML documents that get banked."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone
from html import escape

from anivault.core.schema import BankPayload, TranscriptRow
from anivault.core.signature import signature_of
from anivault.utils.paths import DEFAULT_PROJECT, DEFAULT_SESSION_ID, canonical_key

TITLE = "AnI Session Export"

_STYLE = (
    "body{font-family:system-ui,-apple-system,Segoe UI,Roboto,Arial,sans-serif;"
    "max-width:900px;margin:24px auto;padding:0 16px;}"
    "h1{margin:0 0 8px;} .meta{color:#555;margin-bottom:16px;} "
    ".msg{border-top:1px solid #ddd;padding:12px 0;} .role{font-weight:700;margin:0 0 6px;} "
    ".small{color:#666;font-size:0.92em;margin:0 0 8px;} "
    "pre{white-space:pre-wrap;word-wrap:break-word;}"
)


def _stamp(now: datetime | None) -> str:
    return (now or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M:%S UTC")


def filter_included(rows: Iterable | None) -> list[TranscriptRow]:
    return [r for r in (TranscriptRow.coerce(raw) for raw in rows or []) if r.include]


def _role_label(row: TranscriptRow) -> str:
    return "User" if row.role == "user" else "Assistant"


def _meta(row: TranscriptRow) -> str:
    bits = []
    if row.ts:
        bits.append(row.ts)
    if row.project:
        bits.append(f"Project: {row.project}")
    return " · ".join(bits)


def render_markdown(
    rows: Iterable | None, project: str, session_id: str, now: datetime | None = None
) -> str:
    lines = [f"# {TITLE}"]
    if project:
        lines.append(f"**Project:** {project}")
    lines.append(f"**Session ID:** {session_id}")
    lines.append(f"**Exported:** {_stamp(now)}")
    lines.extend(["", "---", ""])
    for row in filter_included(rows):
        src = f" ({row.source})" if row.role == "assistant" and row.source else ""
        lines.append(f"## {_role_label(row)}{src}")
        meta = _meta(row)
        if meta:
            lines.append(f"*{meta}*")
        lines.extend(["", row.content, "", "---", ""])
    return "\n".join(lines)


def render_html(
    rows: Iterable | None, project: str, session_id: str, now: datetime | None = None
) -> str:
    parts = [
        "<!doctype html><html><head><meta charset='utf-8'/>",
        "<meta name='viewport' content='width=device-width,initial-scale=1'/>",
        f"<title>{TITLE}</title>",
        f"<style>{_STYLE}</style>",
        "</head><body>",
        f"<h1>{TITLE}</h1>",
        "<div class='meta'>",
    ]
    if project:
        parts.append(f"<div><b>Project:</b> {escape(project)}</div>")
    parts.append(f"<div><b>Session ID:</b> {escape(session_id)}</div>")
    parts.append(f"<div><b>Exported:</b> {escape(_stamp(now))}</div>")
    parts.append("</div>")
    for row in filter_included(rows):
        src = f" — {escape(row.source)}" if row.role == "assistant" and row.source else ""
        parts.append("<div class='msg'>")
        parts.append(f"<div class='role'>{escape(_role_label(row))}{src}</div>")
        meta = _meta(row)
        if meta:
            parts.append(f"<div class='small'>{escape(meta)}</div>")
        parts.append(f"<pre>{escape(row.content)}</pre>")
        parts.append("</div>")
    parts.append("</body></html>")
    return "".join(parts)


def default_base_name(project: str, now: datetime | None = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d-%H%M%S")
    return f"ani-{canonical_key(project)}-{stamp}"


def prepare_bank(
    rows: Iterable | None,
    project: str | None,
    session_id: str | None,
    now: datetime | None = None,
) -> BankPayload:
    """Everything a bank call needs for the included rows of a transcript."""
    included = filter_included(rows)
    project_name = (project or "").strip() or DEFAULT_PROJECT
    sid = session_id or DEFAULT_SESSION_ID
    key = canonical_key(project_name)
    return BankPayload(
        text=render_markdown(included, project_name, sid, now),
        html=render_html(included, project_name, sid, now),
        base_name=default_base_name(project_name, now),
        project_key=key,
        signature=signature_of(key, sid, included),
    )
