import json
import logging
from datetime import datetime, timezone
from typing import Any

from ..middlewares.request_id import request_id_ctx


class RequestIdFilter(logging.Filter):
    """Attach request id from context to log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - trivial
        record.req_id = request_id_ctx.get(None)
        return True


class JsonFormatter(logging.Formatter):
    """Render logs as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "req_id": getattr(record, "req_id", None),
            "msg": record.getMessage(),
        }
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data)


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure root logger with JSON formatting."""

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
