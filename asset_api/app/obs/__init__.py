"""Observability helpers."""

from .errors import capture_exception, init_sentry  # re-export

__all__ = ["capture_exception", "init_sentry"]
