"""
Request logging middleware for the redirect listener.

The query string carries the authorization code, so only method, path and
status are logged.
"""

import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging requests and tracking timing.

    Features:
    - Generates a short request ID for each request
    - Logs request start and completion
    - Adds X-Request-ID header to response
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request with logging and timing."""
        req_id = str(uuid.uuid4())[:8]  # Short ID for readability

        logger.debug(f"[{req_id}] {request.method} {request.url.path}")

        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = time.time() - start_time
            logger.error(
                f"[{req_id}] Request failed after {elapsed:.2f}s: {e}",
                exc_info=True,
            )
            raise

        elapsed = time.time() - start_time
        logger.debug(f"[{req_id}] {response.status_code} in {elapsed:.2f}s")

        response.headers["X-Request-ID"] = req_id
        return response
