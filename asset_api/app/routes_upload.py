"""Upload, delete and existence endpoints backed by :class:`AssetStorage`."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from fastapi.responses import JSONResponse

from .obs import capture_exception
from .storage import AssetStorage, BackendKind
from .storage.errors import StorageBackendError, StorageTimeoutError, ValidationError
from .storage.naming import DEFAULT_FOLDER
from .utils.responses import error_response, ok

logger = logging.getLogger("api.upload")

router = APIRouter(prefix="/api", tags=["upload"])


def get_storage(request: Request) -> AssetStorage:
    """Return the storage facade built for this application."""
    return request.app.state.storage


def _backend_failure(storage: AssetStorage, exc: StorageBackendError, message: str) -> JSONResponse:
    if isinstance(exc, StorageTimeoutError):
        logger.error("%s: backend timed out: %s", message, exc)
        return error_response(
            "Storage backend timed out", status.HTTP_504_GATEWAY_TIMEOUT
        )
    capture_exception(exc)
    details = None if storage.settings.is_production else str(exc)
    return error_response(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


@router.post("/upload")
async def upload_file(
    file: Optional[UploadFile] = File(None),
    folder: str = Form(DEFAULT_FOLDER),
    storage: AssetStorage = Depends(get_storage),
):
    """Validate and persist ``file`` and return its public URL."""

    if file is None:
        return error_response("No file provided", status.HTTP_400_BAD_REQUEST)

    # Read one byte past the ceiling so oversize uploads are rejected
    # without buffering the whole body.
    data = await file.read(storage.settings.max_bytes + 1)
    try:
        result = await asyncio.to_thread(
            storage.upload, data, file.content_type, file.filename, folder
        )
    except ValidationError as exc:
        return error_response(exc.reason, status.HTTP_400_BAD_REQUEST)
    except StorageBackendError as exc:
        return _backend_failure(storage, exc, "Failed to store file")

    logger.info(
        "uploaded %s as %s via %s",
        result.original_name,
        result.asset.object_key,
        result.asset.backend.value,
    )
    return result.to_dict()


@router.delete("/upload")
async def delete_file(
    url: Optional[str] = Query(None),
    storage_type: Optional[BackendKind] = Query(None, alias="storageType"),
    storage: AssetStorage = Depends(get_storage),
):
    """Remove the asset behind ``url``; already-absent assets still succeed."""

    if not url:
        return error_response("File URL not provided", status.HTTP_400_BAD_REQUEST)
    try:
        await asyncio.to_thread(storage.delete, url, storage_type)
    except StorageBackendError as exc:
        return _backend_failure(storage, exc, "Failed to delete file")
    return ok("File deleted")


@router.api_route("/upload", methods=["GET", "HEAD"])
async def file_exists(
    url: Optional[str] = Query(None),
    storage_type: Optional[BackendKind] = Query(None, alias="storageType"),
    storage: AssetStorage = Depends(get_storage),
):
    """Report whether ``url`` exists.

    The result is also mirrored into ``X-Asset-*`` headers because HEAD
    responses carry no body for most clients.
    """

    if not url:
        return error_response("File URL not provided", status.HTTP_400_BAD_REQUEST)
    result = await asyncio.to_thread(storage.exists, url, storage_type)
    headers = {"X-Asset-Exists": "true" if result.exists else "false"}
    if result.size is not None:
        headers["X-Asset-Size"] = str(result.size)
    return JSONResponse(result.to_dict(), headers=headers)


__all__ = ["router", "get_storage"]
