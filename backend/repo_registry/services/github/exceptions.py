"""Custom exceptions for the repository registry storage layer."""

from __future__ import annotations


class RegistryError(Exception):
    """Base exception for storage failures."""


class NotConfigured(RegistryError):
    """Raised when the remote store is used without complete credentials."""


class RemoteStoreError(RegistryError):
    """Base exception for failures talking to the remote document store."""


class RemoteUnavailable(RemoteStoreError):
    """Raised for network failures and non-success statuses other than 404 on read."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RemoteWriteError(RemoteStoreError):
    """
    Raised when the remote store rejects a write.

    ``message`` carries the upstream error message when one was returned.
    A 409/422 status usually means the version token was stale: another
    client wrote the document between our read and our write.
    """

    CONFLICT_STATUSES = (409, 422)

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_conflict(self) -> bool:
        return self.status_code in self.CONFLICT_STATUSES


class MalformedDocument(RegistryError):
    """Raised when the remote document is not a JSON array."""
