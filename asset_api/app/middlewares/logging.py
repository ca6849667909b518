import json
import logging
import time
from datetime import datetime, timezone

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..obs import capture_exception

logger = logging.getLogger("api")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Emit structured inbound/outbound request logs.

    Request bodies are never logged; uploads are binary and may be large.
    """

    async def dispatch(self, request: Request, call_next):
        req_id = getattr(request.state, "request_id", None)

        inbound = {
            "ts": _now(),
            "level": "INFO",
            "req_id": req_id,
            "path": request.url.path,
            "method": request.method,
            "ip": request.client.host if request.client else None,
            "ua": request.headers.get("user-agent"),
        }
        query = dict(request.query_params)
        if query:
            inbound["query"] = query
        logger.info(json.dumps(inbound))

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            capture_exception(exc)
            response = JSONResponse(
                {"error": "Internal Server Error"}, status_code=500
            )
        dur_ms = int((time.perf_counter() - start) * 1000)
        status = response.status_code
        level = "ERROR" if status >= 500 else "INFO"
        outbound = {
            "ts": _now(),
            "level": level,
            "req_id": req_id,
            "route": request.url.path,
            "status": status,
            "latency_ms": dur_ms,
        }
        log_fn = logger.error if level == "ERROR" else logger.info
        log_fn(json.dumps(outbound))
        return response
