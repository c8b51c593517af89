"""
Correlation ID Middleware

Tags each request with a correlation ID so every log line it produces can be
grouped, and writes one summary line per request.
"""

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from ...utils.logger import set_correlation_id, get_logger
from ...utils.idgen import generate_correlation_id

logger = get_logger(__name__)

MAX_CORRELATION_ID_LENGTH = 128


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds correlation ID to all requests.

    - Reuses a client X-Correlation-Id header when it is reasonably sized
    - Sets correlation ID in logging context
    - Echoes it in the X-Correlation-Id response header
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        incoming = request.headers.get("X-Correlation-Id")
        if incoming and len(incoming) <= MAX_CORRELATION_ID_LENGTH:
            correlation_id = incoming
        else:
            correlation_id = generate_correlation_id()

        set_correlation_id(correlation_id)
        started = time.perf_counter()

        response = await call_next(request)

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms}ms)",
            extra={"status": response.status_code}
        )
        response.headers["X-Correlation-Id"] = correlation_id
        return response
