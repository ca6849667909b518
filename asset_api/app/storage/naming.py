"""Object key generation.

Keys have the shape ``{folder}/{epochMillis}-{token}.{ext}``. The timestamp
plus a short random token keeps concurrent uploads into the same folder
apart without a pre-check against the store.
"""

from __future__ import annotations

import re
import secrets
import string
import time
from typing import Callable, Tuple

from .errors import ValidationError

DEFAULT_FOLDER = "uploads"
DEFAULT_EXTENSION = "jpg"
TOKEN_LENGTH = 6
TOKEN_ALPHABET = string.ascii_lowercase + string.digits

_EXT_RE = re.compile(r"^[a-z0-9]{1,10}$")


def sanitize_folder(folder: str | None) -> str:
    """Strip surrounding slashes from ``folder`` and reject traversal.

    Nested folders (``home/services``) are kept; ``.``/``..`` segments,
    empty inner segments, backslashes and NUL bytes are rejected.
    """

    cleaned = (folder or "").strip().strip("/")
    if not cleaned:
        return DEFAULT_FOLDER
    if "\\" in cleaned or "\x00" in cleaned:
        raise ValidationError("Invalid folder name")
    for segment in cleaned.split("/"):
        if segment in {"", ".", ".."}:
            raise ValidationError("Invalid folder name")
    return cleaned


def extension_for(original_filename: str | None) -> str:
    """Return the lowercased extension of ``original_filename`` or ``jpg``."""

    name = (original_filename or "").rsplit("/", 1)[-1]
    if "." not in name:
        return DEFAULT_EXTENSION
    ext = name.rsplit(".", 1)[1].lower()
    if not _EXT_RE.match(ext):
        return DEFAULT_EXTENSION
    return ext


def random_token(length: int = TOKEN_LENGTH) -> str:
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def next_key(
    original_filename: str | None,
    folder: str | None,
    *,
    clock: Callable[[], float] = time.time,
) -> Tuple[str, str]:
    """Return ``(object_key, filename)`` for a new upload."""

    prefix = sanitize_folder(folder)
    millis = int(clock() * 1000)
    filename = f"{millis}-{random_token()}.{extension_for(original_filename)}"
    return f"{prefix}/{filename}", filename


__all__ = [
    "DEFAULT_FOLDER",
    "sanitize_folder",
    "extension_for",
    "random_token",
    "next_key",
]
