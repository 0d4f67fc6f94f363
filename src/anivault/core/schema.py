"""Pydantic v2 models for grants, transcripts and operation results."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from anivault.utils.paths import DEFAULT_PROJECT


def _now() -> datetime:
    return datetime.now(timezone.utc)


# -- Grants --


class BackendKind(str, Enum):
    tree = "tree"
    flat = "flat"
    handle = "handle"


class Grant(BaseModel):
    kind: BackendKind
    token: str  # opaque to everything above the backend
    granted_at: datetime = Field(default_factory=_now)


class AccessRequest(str, Enum):
    pending = "pending"
    denied = "denied"


class AccessStatus(str, Enum):
    granted = "granted"
    not_granted = "not-granted"


# -- Transcripts --


class TranscriptRow(BaseModel):
    include: bool = True
    ts: str = ""
    role: str = "user"
    content: str = ""
    provider: str = ""
    model: str = ""
    project: str = ""

    @classmethod
    def coerce(cls, raw) -> TranscriptRow:
        """Accept a dict, a model, or the positional list form.

        The list form is [include, ts, role, content, provider, model, project];
        the short legacy form [include, role, content, provider, model] has no
        timestamp or project. Anything else becomes an excluded empty row.
        """
        if isinstance(raw, TranscriptRow):
            return raw
        if isinstance(raw, dict):
            return cls.model_validate(raw)
        if not isinstance(raw, (list, tuple)):
            return cls(include=False)
        if len(raw) >= 7:
            include, ts, role, content, provider, model, project = raw[:7]
            return cls(
                include=bool(include), ts=str(ts), role=str(role), content=str(content),
                provider=str(provider), model=str(model), project=str(project),
            )
        padded = list(raw) + [None] * (5 - len(raw))
        include, role, content, provider, model = padded[:5]
        return cls(
            include=bool(include) if include is not None else False,
            role=str(role) if role is not None else "user",
            content=str(content) if content is not None else "",
            provider=str(provider) if provider is not None else "",
            model=str(model) if model is not None else "",
        )

    @property
    def source(self) -> str:
        return "/".join(p for p in [self.provider, self.model] if p)


class BankPayload(BaseModel):
    text: str
    html: str
    base_name: str
    project_key: str
    signature: str


# -- Vault records --


class ProjectDescriptor(BaseModel):
    name: str


class SessionDescriptor(BaseModel):
    name: str
    project: str = ""


class EnsureStatus(str, Enum):
    ok = "ok"
    no_grant = "no_grant"
    error = "error"


class EnsureResult(BaseModel):
    status: EnsureStatus
    project: str = ""
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.status == EnsureStatus.ok


class BankStatus(str, Enum):
    ok = "ok"
    no_grant = "no_grant"
    resolution_failure = "resolution_failure"
    write_failure = "write_failure"
    partial_write_failure = "partial_write_failure"


class BankResult(BaseModel):
    status: BankStatus
    path: str = ""
    reason: str = ""
    written: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == BankStatus.ok

    @property
    def message(self) -> str:
        if self.ok:
            return f"Saved to {self.path}"
        if self.status == BankStatus.no_grant:
            return "Vault not granted. Grant access to a folder first."
        return f"Vault save failed ({self.status.value}): {self.reason}"


# -- Client-side state --


class ClientState(BaseModel):
    """What the UI layer remembers between runs, independent of storage."""

    projects: list[str] = Field(default_factory=lambda: [DEFAULT_PROJECT])
    current_project: str = DEFAULT_PROJECT
    autobank: bool = False
    last_signature: str = ""
    updated_at: datetime = Field(default_factory=_now)
