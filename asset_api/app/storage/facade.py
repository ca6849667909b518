"""Single entry point for storing, probing and deleting uploaded assets.

``AssetStorage`` validates and names uploads, picks a backend per call and
routes ``delete``/``exists`` back to whichever backend owns a URL. Callers
that persisted the ``storage_type`` returned by :meth:`AssetStorage.upload`
can pass it back as ``backend``; untagged URLs are classified by shape.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from ..routes_metrics import asset_deletes_total, upload_bytes_total, uploads_total
from . import naming, validation
from .base import AssetInfo, BackendKind, StorageBackend, select_backend
from .errors import StorageBackendError, ValidationError
from .local_backend import LocalBackend

if TYPE_CHECKING:
    from config import Settings

logger = logging.getLogger("api.storage")


@dataclass(frozen=True)
class AssetRef:
    """Value describing one stored upload."""

    url: str
    folder: str
    object_key: str
    filename: str
    backend: BackendKind


@dataclass(frozen=True)
class UploadResult:
    asset: AssetRef
    size: int
    mime_type: str
    original_name: str

    @property
    def url(self) -> str:
        return self.asset.url

    def to_dict(self) -> dict:
        return {
            "success": True,
            "url": self.asset.url,
            "filename": self.asset.filename,
            "originalName": self.original_name,
            "size": self.size,
            "type": self.mime_type,
            "storageType": self.asset.backend.value,
        }


@dataclass(frozen=True)
class ExistsResult:
    exists: bool
    backend: Optional[BackendKind] = None
    size: Optional[int] = None
    uploaded_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        data: dict = {"exists": self.exists}
        if self.size is not None:
            data["size"] = self.size
        if self.uploaded_at is not None:
            data["uploadedAt"] = self.uploaded_at.isoformat()
        return data


class AssetStorage:
    """Route uploads, deletes and existence probes to the right backend."""

    def __init__(
        self,
        settings: "Settings",
        *,
        local: StorageBackend | None = None,
        cloud: StorageBackend | None = None,
    ) -> None:
        self.settings = settings
        self.local = local or LocalBackend(
            settings.uploads_root_path, settings.uploads_url_prefix
        )
        self._cloud = cloud

    @property
    def cloud(self) -> StorageBackend:
        """Return the cloud backend, building the boto3 client on first use."""
        if self._cloud is None:
            from .s3_backend import S3Backend

            self._cloud = S3Backend.from_settings(self.settings)
        return self._cloud

    @property
    def _cloud_enabled(self) -> bool:
        return self._cloud is not None or self.settings.has_cloud_credential

    def _backend(self, kind: BackendKind) -> StorageBackend:
        return self.cloud if kind is BackendKind.CLOUD else self.local

    def classify(self, url: str) -> Optional[BackendKind]:
        """Infer the owning backend from the shape of ``url``."""
        if self.local.owns(url):
            return BackendKind.LOCAL
        if self._cloud_enabled and self.cloud.owns(url):
            return BackendKind.CLOUD
        return None

    def _resolve(self, url: str, backend: BackendKind | str | None) -> Optional[BackendKind]:
        if backend is not None:
            kind = BackendKind(backend)
            if kind is BackendKind.CLOUD and not self._cloud_enabled:
                return None
            return kind
        return self.classify(url)

    def upload(
        self,
        data: bytes,
        mime_type: str | None,
        original_name: str | None,
        folder: str | None = naming.DEFAULT_FOLDER,
    ) -> UploadResult:
        """Validate, name and store ``data``; return the resulting reference."""

        try:
            validation.validate(
                len(data),
                mime_type,
                allowed_types=self.settings.allowed_types,
                max_bytes=self.settings.max_bytes,
            )
            if self.settings.verify_images:
                validation.verify_image(data, mime_type)
            object_key, filename = naming.next_key(original_name, folder)
        except ValidationError as exc:
            uploads_total.labels(backend="none", outcome="rejected").inc()
            logger.info("upload rejected: %s", exc.reason)
            raise

        kind = select_backend(self.settings)
        try:
            url = self._backend(kind).put(object_key, data, mime_type)
        except StorageBackendError:
            uploads_total.labels(backend=kind.value, outcome="error").inc()
            raise
        uploads_total.labels(backend=kind.value, outcome="stored").inc()
        upload_bytes_total.labels(backend=kind.value).inc(len(data))

        asset = AssetRef(
            url=url,
            folder=object_key.rsplit("/", 1)[0],
            object_key=object_key,
            filename=filename,
            backend=kind,
        )
        return UploadResult(
            asset=asset,
            size=len(data),
            mime_type=mime_type,
            original_name=original_name or filename,
        )

    def delete(self, url: str, backend: BackendKind | str | None = None) -> None:
        """Best-effort removal; absent objects and foreign URLs are a no-op."""

        try:
            kind = self._resolve(url, backend)
        except ValueError:
            logger.warning("delete ignored for unknown storage type %r: %s", backend, url)
            return
        if kind is None:
            logger.info("delete ignored for unrecognised url: %s", url)
            return
        self._backend(kind).delete(url)
        asset_deletes_total.labels(backend=kind.value).inc()

    def exists(self, url: str, backend: BackendKind | str | None = None) -> ExistsResult:
        """Advisory existence probe; never raises."""

        try:
            kind = self._resolve(url, backend)
        except ValueError:
            return ExistsResult(exists=False)
        if kind is None:
            return ExistsResult(exists=False)
        try:
            info: AssetInfo | None = self._backend(kind).exists(url)
        except Exception as exc:
            logger.warning("existence probe failed for %s: %s", url, exc)
            return ExistsResult(exists=False, backend=kind)
        if info is None:
            return ExistsResult(exists=False, backend=kind)
        return ExistsResult(
            exists=True,
            backend=kind,
            size=info.size,
            uploaded_at=info.uploaded_at,
        )


__all__ = ["AssetStorage", "AssetRef", "UploadResult", "ExistsResult"]
