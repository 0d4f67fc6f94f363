"""ChangeDetector: fingerprint bankable content and skip repeat writes."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable

from anivault.core.schema import TranscriptRow


def signature_of(project_key: str, session_id: str, rows: Iterable) -> str:
    """SHA-256 hex digest over (project, session, rows).

    Keys are sorted inside each record; row order is kept, so reordering
    rows changes the digest.
    """
    payload = {
        "project": project_key or "",
        "session_id": session_id or "",
        "rows": [TranscriptRow.coerce(r).model_dump() for r in rows or []],
    }
    encoded = json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def should_bank(new_signature: str, last_signature: str | None) -> bool:
    return new_signature != (last_signature or "")


class ChangeDetector:
    """Holds the signature of the last confirmed bank.

    Call confirm() only after the write succeeded; a failed write must leave
    the old signature in place so the next trigger retries.
    """

    def __init__(self, last_signature: str = "") -> None:
        self.last_signature = last_signature

    def is_new(self, signature: str) -> bool:
        return should_bank(signature, self.last_signature)

    def confirm(self, signature: str) -> None:
        self.last_signature = signature
