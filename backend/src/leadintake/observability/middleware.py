"""FastAPI middleware for observability.

Provides request ID generation and logging for all HTTP requests.
"""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .request_id import generate_request_id, set_request_id

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to generate and inject request IDs."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with request ID.

        Honors an incoming X-Request-ID (webhook providers may send their own)
        and echoes it on the response.
        """
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)

        start_time = time.time()
        logger.info(f"{request.method} {request.url.path}")

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed after {duration_ms:.2f}ms: {e}",
                exc_info=True
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(f"Request completed: {response.status_code} in {duration_ms:.2f}ms")

        response.headers["X-Request-ID"] = request_id
        return response
