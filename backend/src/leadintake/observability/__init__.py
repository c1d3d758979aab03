"""Observability: structured logging, request correlation and health checks."""

from .logging_config import configure_logging
from .request_id import get_request_id, set_request_id

__all__ = [
    "configure_logging",
    "get_request_id",
    "set_request_id",
]
