from typing import Any, Dict

from fastapi.responses import JSONResponse


def ok(message: str) -> Dict[str, Any]:
    """Return a success envelope."""
    return {"success": True, "message": message}


def err(message: str, details: str | None = None) -> Dict[str, Any]:
    """Return an error envelope."""
    body: Dict[str, Any] = {"error": message}
    if details:
        body["details"] = details
    return body


def error_response(
    message: str, status_code: int, details: str | None = None
) -> JSONResponse:
    return JSONResponse(err(message, details), status_code=status_code)
