# config.py

"""Application configuration utilities.

Values may be loaded from an optional ``config.json`` and are overridden by
environment variables. The :func:`get_settings` helper merges the two sources
and caches the result.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_ALLOWED_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
    }
)


class Settings(BaseSettings):
    """Application settings merged from JSON and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    # Set to "1" by managed hosting platforms
    vercel: str | None = None

    s3_bucket: str = ""
    s3_region: str | None = None
    s3_endpoint: str | None = None
    s3_access_key: str | None = None
    s3_secret_key: str | None = None
    s3_public_base_url: str | None = None
    s3_timeout_secs: float = 10.0
    s3_max_attempts: int = 1

    allowed_types: Annotated[frozenset[str], NoDecode] = DEFAULT_ALLOWED_TYPES
    max_bytes: int = 5 * 1024 * 1024
    uploads_root_path: str = "public/uploads"
    uploads_url_prefix: str = "/uploads"
    verify_images: bool = False

    error_dsn: str | None = None
    log_level: str = "INFO"

    @field_validator("allowed_types", mode="before")
    @classmethod
    def _split_types(cls, value):
        """Accept a comma separated string for ``ALLOWED_TYPES``."""
        if isinstance(value, str):
            value = [v.strip() for v in value.split(",") if v.strip()]
        if not value:
            raise ValueError("allowed_types must list at least one MIME type")
        return frozenset(v.lower() for v in value)

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() in {"prod", "production"} or self.vercel == "1"

    @property
    def has_cloud_credential(self) -> bool:
        return bool(self.s3_access_key and self.s3_secret_key)

    @property
    def cloud_public_base_url(self) -> str:
        """Return the URL prefix under which cloud objects are publicly served."""
        if self.s3_public_base_url:
            return self.s3_public_base_url.rstrip("/")
        if self.s3_endpoint:
            return f"{self.s3_endpoint.rstrip('/')}/{self.s3_bucket}"
        if self.s3_region:
            return f"https://{self.s3_bucket}.s3.{self.s3_region}.amazonaws.com"
        return f"https://{self.s3_bucket}.s3.amazonaws.com"


# Cached singleton to avoid repeated file reads
@lru_cache
def get_settings() -> Settings:
    """Return merged settings with environment variable precedence.

    The configuration is read from ``config.json`` located alongside this file
    when present and fed into :class:`Settings`. Environment variables override
    any values from the JSON file.
    """

    config_path = Path(__file__).with_name("config.json")
    data = json.loads(config_path.read_text()) if config_path.exists() else {}
    env_override = {
        k.lower(): v
        for k, v in os.environ.items()
        if k.lower() in Settings.model_fields
    }
    merged = {**data, **env_override}
    # Environment variables override values from the JSON file.
    return Settings(**merged)
