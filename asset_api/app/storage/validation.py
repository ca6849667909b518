"""Upload validation run before any storage I/O."""

from __future__ import annotations

from io import BytesIO
from typing import Iterable

from PIL import Image, UnidentifiedImageError

from .errors import ValidationError

# Pillow format names for the raster types we know how to decode
RASTER_FORMATS = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/gif": "GIF",
    "image/webp": "WEBP",
}


def _human_size(num_bytes: int) -> str:
    mib = num_bytes / (1024 * 1024)
    if mib >= 1:
        return f"{mib:g}MB"
    return f"{num_bytes} bytes"


def validate(
    size: int,
    mime_type: str | None,
    *,
    allowed_types: Iterable[str],
    max_bytes: int,
) -> None:
    """Raise :class:`ValidationError` unless ``size`` and ``mime_type`` are acceptable.

    The declared type is trusted as-is; see :func:`verify_image` for the
    optional decode check.
    """

    allowed = {t.lower() for t in allowed_types}
    if size <= 0:
        raise ValidationError("No file provided")
    if not mime_type or mime_type.lower() not in allowed:
        accepted = ", ".join(sorted(allowed))
        raise ValidationError(f"File type not allowed. Accepted formats: {accepted}")
    if size > max_bytes:
        raise ValidationError(f"File too large. Maximum size: {_human_size(max_bytes)}")


def verify_image(data: bytes, mime_type: str) -> None:
    """Check that raster ``data`` decodes as the declared ``mime_type``.

    Types without a Pillow decoder (SVG, or anything a caller widened the
    allow-list with) pass through untouched.
    """

    expected = RASTER_FORMATS.get(mime_type.lower())
    if expected is None:
        return
    try:
        img = Image.open(BytesIO(data))
        fmt = img.format
        img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ValidationError("File content is not a valid image") from exc
    if fmt != expected:
        raise ValidationError(
            f"File content does not match declared type {mime_type}"
        )


__all__ = ["validate", "verify_image", "RASTER_FORMATS"]
