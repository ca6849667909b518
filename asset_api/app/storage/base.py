"""Shared storage types and the backend selector."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from config import Settings


class BackendKind(str, Enum):
    """Physical backend that owns an asset."""

    LOCAL = "local"
    CLOUD = "cloud"


@dataclass(frozen=True)
class AssetInfo:
    """Metadata returned by an existence probe."""

    size: Optional[int] = None
    uploaded_at: Optional[datetime] = None


class StorageBackend(Protocol):
    """Minimal capability interface implemented by storage backends."""

    kind: BackendKind

    def put(self, object_key: str, data: bytes, content_type: str) -> str:
        """Persist ``data`` under ``object_key`` and return its public URL."""

    def delete(self, url: str) -> None:
        """Remove the object behind ``url``; absence is not an error."""

    def exists(self, url: str) -> Optional[AssetInfo]:
        """Return metadata for ``url`` or ``None`` when it is absent."""

    def owns(self, url: str) -> bool:
        """Return ``True`` when ``url`` has the shape this backend produces."""


def select_backend(settings: "Settings") -> BackendKind:
    """Pick the backend for one call.

    Cloud storage is used only in a managed environment that also carries a
    write credential; everything else falls back to local disk.
    """

    if settings.is_production and settings.has_cloud_credential:
        return BackendKind.CLOUD
    return BackendKind.LOCAL


__all__ = ["BackendKind", "AssetInfo", "StorageBackend", "select_backend"]
