"""
Storefront - HTTP Middleware

- RequestLoggingMiddleware: request id, timing headers, one log line per request
- SecurityHeadersMiddleware: static hardening headers
- RequestSizeLimitMiddleware: 413 for bodies over MAX_REQUEST_SIZE
"""

import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from storefront.core.config import settings
from storefront.core.logging_config import generate_request_id, logger, set_request_id, set_user_id

QUIET_PATHS = frozenset({"/", "/health", "/favicon.ico", "/docs", "/redoc", "/openapi.json"})

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def is_quiet_path(path: str) -> bool:
    """Health probes, docs and image bytes are not logged per request"""
    return path in QUIET_PATHS or path.startswith(f"{settings.API_PREFIX}/images/")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags every request with X-Request-ID and reports its duration"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)
        path = request.url.path
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.log_error_with_context(
                exc,
                context=f"{request.method} {path}",
                duration_ms=(time.perf_counter() - started) * 1000,
            )
            raise
        finally:
            set_user_id("")

        duration_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        if not is_quiet_path(path):
            logger.log_request(request.method, path, response.status_code, duration_ms)
            logger.log_performance(f"{request.method} {path}", duration_ms)

        set_request_id("")
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects requests whose declared Content-Length exceeds max_size"""

    def __init__(self, app: ASGIApp, max_size: int):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_size:
            logger.warning(f"[Request] {request.url.path}: body of {declared} bytes over {self.max_size}")
            return JSONResponse(
                status_code=413,
                content={
                    "success": False,
                    "error": {
                        "code": "REQUEST_TOO_LARGE",
                        "message": f"Request body too large. Maximum size is {self.max_size // 1024 // 1024}MB",
                        "details": {"max_size": self.max_size},
                    },
                },
            )
        return await call_next(request)
