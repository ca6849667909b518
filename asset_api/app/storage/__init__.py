"""Asset storage backends and the facade that routes between them.

Uploads land on local disk unless the process runs in a managed
environment with a cloud write credential, in which case they go to an
S3-compatible bucket. See :func:`select_backend`.
"""

from __future__ import annotations

from .base import AssetInfo, BackendKind, StorageBackend, select_backend
from .facade import AssetRef, AssetStorage, ExistsResult, UploadResult
from .local_backend import LocalBackend

__all__ = [
    "AssetInfo",
    "AssetRef",
    "AssetStorage",
    "BackendKind",
    "ExistsResult",
    "LocalBackend",
    "StorageBackend",
    "UploadResult",
    "select_backend",
]
