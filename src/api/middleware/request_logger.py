"""
Request logging middleware.
Tags every request with a correlation id and logs method, path, status and duration.
"""
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from utils.logger import get_logger

CORRELATION_HEADER = "x-correlation-id"


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """Logs one line per request and echoes the correlation id back."""

    def __init__(self, app, logger=None):
        super().__init__(app)
        self.logger = logger or get_logger()

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        request.state.correlation_id = correlation_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            self.logger.error(
                f"{correlation_id} {request.method} {request.url.path} failed after {elapsed_ms:.1f}ms",
                component="HTTP", exc_info=True
            )
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        self.logger.info(
            f"{correlation_id} {request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f}ms)",
            component="HTTP"
        )
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
