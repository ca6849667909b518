"""Startup configuration validation utilities."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import urlparse

if TYPE_CHECKING:
    from config import Settings

logger = logging.getLogger("api.config")


def _mask(value: str) -> str:
    """Return a masked representation of ``value`` for logging."""
    if len(value) <= 4:
        return "*" * len(value)
    return value[:2] + "*" * (len(value) - 4) + value[-2:]


def validate_on_boot(settings: "Settings") -> None:
    """Validate the storage configuration.

    Logs masked credential values for audit and raises :class:`RuntimeError`
    when the cloud credential is half configured, or configured for a
    production deployment without a usable bucket.
    """

    access = settings.s3_access_key
    secret = settings.s3_secret_key
    if bool(access) != bool(secret):
        raise RuntimeError("S3_ACCESS_KEY and S3_SECRET_KEY must be set together")

    if settings.max_bytes <= 0:
        raise RuntimeError("MAX_BYTES must be positive")

    if access and secret:
        logger.info("S3_ACCESS_KEY=%s", _mask(access))
        logger.info("S3_SECRET_KEY=%s", _mask(secret))
        if settings.is_production:
            if not settings.s3_bucket:
                raise RuntimeError("S3_BUCKET must be set when cloud storage is enabled")
            parsed = urlparse(settings.cloud_public_base_url)
            if parsed.scheme not in {"http", "https"} or not parsed.netloc:
                raise RuntimeError("S3_PUBLIC_BASE_URL must be a valid URL")
    elif settings.is_production:
        logger.warning("no cloud storage credential; uploads will be stored locally")

    logger.info(
        "storage: env=%s backend_root=%s max_bytes=%d types=%s",
        settings.app_env,
        settings.uploads_root_path,
        settings.max_bytes,
        ",".join(sorted(settings.allowed_types)),
    )
