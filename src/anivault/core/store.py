"""VaultStore: the surface the CLI and bridge call.

Each public method resolves the active grant, delegates to ProjectStore or
SessionWriter, and turns every failure into a status value.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime

from anivault.backends.base import BackendError, StorageBackend
from anivault.backends.registry import default_backends
from anivault.core.banker import SessionWriter
from anivault.core.errors import (
    GrantMissing,
    PartialWriteFailure,
    ResolutionFailure,
    VaultError,
    WriteFailure,
)
from anivault.core.grants import FileGrantStore, GrantStore
from anivault.core.merge import merge_projects
from anivault.core.projects import ProjectStore
from anivault.core.schema import (
    AccessRequest,
    AccessStatus,
    BackendKind,
    BankResult,
    BankStatus,
    ClientState,
    EnsureResult,
    EnsureStatus,
    Grant,
    SessionDescriptor,
)
from anivault.core.signature import ChangeDetector
from anivault.core.transcript import prepare_bank
from anivault.utils.paths import DEFAULT_PROJECT, canonical_key

logger = logging.getLogger(__name__)

_RECOVERABLE = (VaultError, BackendError, OSError)


class VaultStore:
    def __init__(
        self,
        grants: GrantStore | None = None,
        backends: Mapping[BackendKind, StorageBackend] | None = None,
    ) -> None:
        self.grants = grants if grants is not None else FileGrantStore()
        self.backends = dict(backends) if backends is not None else default_backends()

    # -- Grants --

    def request_access(self, kind: BackendKind | str, location: str = "") -> AccessRequest:
        """Run the backend's folder selection and remember the grant.

        "pending" means a grant was recorded; access_status() confirms it.
        """
        try:
            backend = self.backends.get(BackendKind(kind))
        except ValueError:
            backend = None
        if backend is None:
            return AccessRequest.denied
        try:
            grant = backend.request_grant(location)
        except BackendError as e:
            logger.debug("Grant request failed: %s", e)
            grant = None
        if grant is None:
            return AccessRequest.denied
        self.grants.set(grant)
        return AccessRequest.pending

    def access_status(self) -> AccessStatus:
        try:
            self._open()
        except _RECOVERABLE:
            return AccessStatus.not_granted
        return AccessStatus.granted

    def current_grant(self) -> Grant | None:
        return self.grants.get()

    def revoke(self) -> None:
        self.grants.clear()

    def _open(self) -> ProjectStore:
        grant = self.grants.get()
        if grant is None:
            raise GrantMissing("No vault folder granted")
        backend = self.backends.get(grant.kind)
        if backend is None:
            raise GrantMissing(f"No backend for {grant.kind.value} grants")
        try:
            root = backend.open_root(grant)
        except BackendError as e:
            raise GrantMissing(f"Granted folder cannot be opened: {e}") from e
        if root is None:
            raise GrantMissing("Granted folder is no longer available")
        return ProjectStore(backend, root)

    # -- Projects --

    def list_projects(self) -> list[str]:
        try:
            return self._open().list_projects()
        except _RECOVERABLE as e:
            logger.debug("Listing projects gave nothing: %s", e)
            return []

    def ensure_project(self, key: str | None) -> EnsureResult:
        safe = canonical_key(key)
        try:
            folders = self._open().ensure_project(key)
        except GrantMissing:
            return EnsureResult(status=EnsureStatus.no_grant, project=safe)
        except _RECOVERABLE as e:
            return EnsureResult(status=EnsureStatus.error, project=safe, reason=str(e))
        return EnsureResult(status=EnsureStatus.ok, project=folders.key)

    # -- Sessions --

    def bank_session(
        self, text: str | None, html: str | None, base_name: str | None, project_key: str | None
    ) -> BankResult:
        try:
            writer = SessionWriter(self._open())
            pair = writer.bank_session(text, html, base_name, project_key)
        except GrantMissing as e:
            return BankResult(status=BankStatus.no_grant, reason=str(e))
        except ResolutionFailure as e:
            return BankResult(status=BankStatus.resolution_failure, reason=str(e))
        except PartialWriteFailure as e:
            return BankResult(status=BankStatus.partial_write_failure, reason=str(e), written=[e.orphan])
        except WriteFailure as e:
            return BankResult(status=BankStatus.write_failure, reason=str(e))
        except _RECOVERABLE as e:
            return BankResult(status=BankStatus.write_failure, reason=str(e))
        logger.debug("Banked %s and %s", pair.session_path, pair.export_path)
        return BankResult(
            status=BankStatus.ok,
            path=pair.session_path,
            written=[pair.session_path, pair.export_path],
        )

    def list_sessions(self, project_key: str | None) -> list[SessionDescriptor]:
        try:
            return self._open().list_sessions(project_key)
        except _RECOVERABLE as e:
            logger.debug("Listing sessions gave nothing: %s", e)
            return []

    def read_session(self, project_key: str | None, filename: str) -> str:
        try:
            return self._open().read_session(project_key, filename)
        except _RECOVERABLE as e:
            logger.debug("Reading session gave nothing: %s", e)
            return ""

    # -- Client-side composition --

    def refresh_projects(self, state: ClientState) -> ClientState:
        """Merge what storage holds into the cached list and fix the selection."""
        merged, selection = merge_projects(self.list_projects(), state.projects, state.current_project)
        return state.model_copy(update={"projects": merged, "current_project": selection})

    def select_project(self, state: ClientState, name: str | None) -> ClientState:
        key = canonical_key(name) if (name or "").strip() else DEFAULT_PROJECT
        merged, _ = merge_projects([key], state.projects, key)
        return state.model_copy(update={"projects": merged, "current_project": key})

    def autobank(
        self,
        rows: Iterable | None,
        project: str | None,
        session_id: str | None,
        detector: ChangeDetector,
        now: datetime | None = None,
        base_name: str | None = None,
    ) -> BankResult | None:
        """Bank the included rows unless they match the last confirmed bank.

        Returns None when nothing changed. The detector only advances on success.
        base_name replaces the time-stamped default name.
        """
        payload = prepare_bank(rows, project, session_id, now)
        if not detector.is_new(payload.signature):
            return None
        result = self.bank_session(
            payload.text, payload.html, base_name or payload.base_name, payload.project_key
        )
        if result.ok:
            detector.confirm(payload.signature)
        return result
