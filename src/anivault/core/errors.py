"""Failure taxonomy for vault operations.

These never leave VaultStore: each public operation converts them into a
status value.
"""

from __future__ import annotations


class VaultError(Exception):
    pass


class GrantMissing(VaultError):
    """No active grant, or the granted root no longer opens."""


class ResolutionFailure(VaultError):
    """A container folder could not be located or created."""


class WriteFailure(VaultError):
    """An artifact could not be written."""


class PartialWriteFailure(WriteFailure):
    """One artifact of a pair is on storage and could not be rolled back."""

    def __init__(self, message: str, orphan: str) -> None:
        super().__init__(message)
        self.orphan = orphan
