"""Merge storage-discovered project names with the client's cached list."""

from __future__ import annotations

import json
from collections.abc import Iterable

from anivault.utils.paths import DEFAULT_PROJECT, canonical_key


def parse_discovered(raw: str | None) -> list[str]:
    """Read the stringified array exchanged at the bridge; [] if malformed."""
    try:
        found = json.loads(raw or "[]")
    except (json.JSONDecodeError, TypeError):
        return []
    if not isinstance(found, list):
        return []
    return [str(x).strip() for x in found if x is not None and str(x).strip()]


def merge_projects(
    discovered: Iterable[str] | None,
    cached: Iterable[str] | None,
    current: str | None,
) -> tuple[list[str], str]:
    """Union of both lists by canonical key, default project first.

    Cached names keep their order, newly discovered ones follow. The current
    selection survives if it is in the result, else falls back to the default.
    """
    merged: list[str] = [DEFAULT_PROJECT]
    seen = {DEFAULT_PROJECT}
    for name in [*(cached or []), *(discovered or [])]:
        if not (name or "").strip():
            continue
        key = canonical_key(name)
        if key not in seen:
            seen.add(key)
            merged.append(key)

    selection = canonical_key(current) if (current or "").strip() else DEFAULT_PROJECT
    if selection not in seen:
        selection = DEFAULT_PROJECT
    return merged, selection
