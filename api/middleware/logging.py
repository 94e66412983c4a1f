# WORKFLOW: Structured logging middleware for request/response monitoring.
# Used by: All API endpoints, operational monitoring, debugging
# Functions:
# 1. _jurisdiction_from_path() - Jurisdiction segment of per-jurisdiction routes
# 2. _log_request() - Log incoming request details (method, path, jurisdiction, body size)
# 3. _log_response() - Log response details (status, timing, content type)
# 4. _log_error() - Log error details with context
#
# Logging flow: Request -> Bind request id -> Log request -> Process -> Log response/error
# Request bodies are not logged: shipments can carry many items, so only the body
# size is recorded. The request id is echoed back in the X-Request-ID header.

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import time
import uuid
import structlog
from typing import Callable, Optional

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"
JURISDICTION_ROUTES = ("find-by-description", "check-export-compliance", "check-import-compliance")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for structured request/response logging."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        start_time = time.time()

        self._log_request(request)

        try:
            response = await call_next(request)
        except Exception as e:
            self._log_error(request, e, time.time() - start_time)
            raise

        self._log_response(request, response, time.time() - start_time)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @staticmethod
    def _jurisdiction_from_path(path: str) -> Optional[str]:
        segments = [s for s in path.split("/") if s]
        if len(segments) >= 2 and segments[-1] in JURISDICTION_ROUTES:
            return segments[-2].upper()
        return None

    def _log_request(self, request: Request):
        logger.info(
            "Incoming request",
            method=request.method,
            path=request.url.path,
            jurisdiction=self._jurisdiction_from_path(request.url.path),
            content_length=request.headers.get("content-length"),
            client_ip=request.client.host if request.client else None,
        )

    def _log_response(self, request: Request, response: Response, process_time: float):
        logger.info(
            "Response sent",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time_ms=round(process_time * 1000, 2),
            content_type=response.headers.get("content-type")
        )

    def _log_error(self, request: Request, error: Exception, process_time: float):
        logger.error(
            "Request failed",
            method=request.method,
            path=request.url.path,
            error_type=type(error).__name__,
            error_message=str(error),
            process_time_ms=round(process_time * 1000, 2)
        )
