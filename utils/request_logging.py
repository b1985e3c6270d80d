# utils/request_logging.py
# Logs every 4xx/5xx response with method, path, status and latency. No request bodies (PII).

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("hr_candidates.request")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        status = response.status_code
        if status >= 400:
            latency_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.warning(
                "%s %s -> %s (%.2f ms)",
                request.method,
                request.url.path,
                status,
                latency_ms,
                extra={
                    "status": status,
                    "path": request.url.path,
                    "method": request.method,
                    "latency_ms": latency_ms,
                },
            )
        return response
