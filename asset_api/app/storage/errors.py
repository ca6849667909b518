"""Exception taxonomy for the asset storage service."""

from __future__ import annotations


class StorageError(Exception):
    """Base class for storage failures."""


class ValidationError(StorageError):
    """Upload rejected before any I/O took place."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class StorageBackendError(StorageError):
    """A backend failed for reasons other than the object being absent."""

    def __init__(self, message: str, *, backend: str | None = None) -> None:
        super().__init__(message)
        self.backend = backend


class StorageTimeoutError(StorageBackendError):
    """A backend call exceeded its timeout."""


__all__ = [
    "StorageError",
    "ValidationError",
    "StorageBackendError",
    "StorageTimeoutError",
]
