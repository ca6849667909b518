# routes_metrics.py

"""Prometheus metrics and /metrics endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

# Counters
http_requests_total = Counter(
    "http_requests_total", "Total HTTP requests", ["path", "method", "status"]
)

http_errors_total = Counter("http_errors_total", "Total HTTP errors", ["status"])
http_errors_total.labels(status="0").inc(0)

uploads_total = Counter(
    "uploads_total", "Total upload attempts", ["backend", "outcome"]
)
uploads_total.labels(backend="local", outcome="stored").inc(0)

upload_bytes_total = Counter(
    "upload_bytes_total", "Total bytes written by uploads", ["backend"]
)
upload_bytes_total.labels(backend="local").inc(0)

asset_deletes_total = Counter(
    "asset_deletes_total", "Total asset deletes dispatched to a backend", ["backend"]
)
asset_deletes_total.labels(backend="local").inc(0)

router = APIRouter()


@router.get("/metrics")
async def metrics_endpoint() -> Response:
    """Expose Prometheus metrics."""
    data = generate_latest()
    return Response(data, media_type=CONTENT_TYPE_LATEST)
