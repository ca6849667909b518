"""Filesystem-based storage backend."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

from .base import AssetInfo, BackendKind
from .errors import StorageBackendError

logger = logging.getLogger("api.storage")


class LocalBackend:
    """Save uploads under ``base_dir`` and serve them from ``url_prefix``."""

    kind = BackendKind.LOCAL

    def __init__(self, base_dir: str | Path, url_prefix: str = "/uploads") -> None:
        self.base_dir = Path(base_dir)
        self.url_prefix = "/" + url_prefix.strip("/")

    def url(self, object_key: str) -> str:
        return f"{self.url_prefix}/{object_key}"

    def owns(self, url: str) -> bool:
        return url.startswith(self.url_prefix + "/")

    def _path_for(self, url: str) -> Optional[Path]:
        """Map ``url`` to a path inside ``base_dir`` or ``None`` if it escapes."""
        if not self.owns(url):
            return None
        relative = unquote(url[len(self.url_prefix) + 1 :].split("?", 1)[0])
        if "\x00" in relative:
            return None
        root = self.base_dir.resolve()
        try:
            path = (root / relative).resolve()
        except (OSError, ValueError):
            return None
        if path == root or root not in path.parents:
            return None
        return path

    def put(self, object_key: str, data: bytes, content_type: str = "") -> str:
        path = self.base_dir / object_key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise StorageBackendError(
                f"Failed to write {object_key}: {exc}", backend=self.kind.value
            ) from exc
        logger.info("stored %s (%d bytes) at %s", object_key, len(data), path)
        return self.url(object_key)

    def delete(self, url: str) -> None:
        path = self._path_for(url)
        if path is None:
            logger.info("ignoring delete for path outside uploads root: %s", url)
            return
        if path.is_dir():
            logger.info("ignoring delete for directory: %s", path)
            return
        try:
            path.unlink()
        except FileNotFoundError:
            logger.info("local file already absent: %s", path)
            return
        except OSError as exc:
            raise StorageBackendError(
                f"Failed to delete {url}: {exc}", backend=self.kind.value
            ) from exc
        logger.info("deleted local file %s", path)

    def exists(self, url: str) -> Optional[AssetInfo]:
        path = self._path_for(url)
        if path is None:
            return None
        try:
            st = path.stat()
        except OSError:
            return None
        if not path.is_file():
            return None
        return AssetInfo(
            size=st.st_size,
            uploaded_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )

    def read(self, url: str) -> bytes:
        path = self._path_for(url)
        if path is None:
            raise FileNotFoundError(url)
        return path.read_bytes()


__all__ = ["LocalBackend"]
