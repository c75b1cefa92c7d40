"""HTTP middlewares: preflight short-circuit and slow-request logging."""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type,Authorization",
    "Access-Control-Max-Age": "86400",
}


class PreflightMiddleware(BaseHTTPMiddleware):
    """Answer every OPTIONS request with 204 before routing, auth or rate limiting."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=PREFLIGHT_HEADERS)
        return await call_next(request)


class SlowRequestMiddleware(BaseHTTPMiddleware):
    """Log requests that take longer than ``threshold_ms``."""

    def __init__(self, app, threshold_ms: int = 1000) -> None:
        super().__init__(app)
        self.threshold_ms = threshold_ms

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        if elapsed_ms > self.threshold_ms:
            logger.warning(
                "Slow request | %s %s | status=%d | %dms",
                request.method, request.url.path, response.status_code, elapsed_ms,
            )
        return response
