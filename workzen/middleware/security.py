"""
WorkZen - Security Middleware

FastAPI middleware for:
1. Rate Limiting (per-IP sliding window on /api)
2. Security Headers
3. Request Logging
"""

import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from workzen.config import settings
from workzen.utils.error_handling import ErrorCode

logger = logging.getLogger(__name__)


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


# ============================================================================
# RATE LIMITING MIDDLEWARE
# ============================================================================

class RateLimitingMiddleware(BaseHTTPMiddleware):
    """
    Rate limiting middleware using in-memory storage.

    One window per client IP covering every path under the prefix.
    """

    def __init__(
        self,
        app: FastAPI,
        max_requests: int = 100,
        window_seconds: float = 900.0,
        path_prefix: str = "/api",
        enabled: bool = True,
    ):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.path_prefix = path_prefix
        self.enabled = enabled

        # {ip: timestamps of requests inside the current window}
        self._requests: Dict[str, Deque[float]] = defaultdict(deque)
        self._last_sweep = time.monotonic()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.enabled or not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        client_ip = _client_ip(request)
        is_limited, retry_after = self._check_rate_limit(client_ip)

        if is_limited:
            logger.warning(f"Rate limit exceeded for {client_ip} on {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                headers={"Retry-After": str(retry_after)},
                content={
                    "error": "Too many requests from this IP, please try again later.",
                    "code": ErrorCode.RATE_LIMITED.value,
                    "retry_after": retry_after,
                },
            )

        self._requests[client_ip].append(time.monotonic())

        response = await call_next(request)
        remaining = self.max_requests - len(self._requests[client_ip])
        response.headers["X-RateLimit-Limit"] = str(self.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(max(0, remaining))
        return response

    def _sweep(self, now: float) -> None:
        """Forget IPs whose newest request has left the window."""
        cutoff = now - self.window_seconds
        stale = [ip for ip, window in self._requests.items() if not window or window[-1] <= cutoff]
        for ip in stale:
            del self._requests[ip]
        self._last_sweep = now

    def _check_rate_limit(self, ip: str) -> tuple:
        """Drop expired entries and report (is_limited, retry_after_seconds)."""
        now = time.monotonic()
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(now)

        window = self._requests.get(ip)
        if window is None:
            return False, 0
        while window and window[0] <= now - self.window_seconds:
            window.popleft()
        if not window:
            del self._requests[ip]
            return False, 0

        if len(window) >= self.max_requests:
            retry_after = int(window[0] + self.window_seconds - now)
            return True, max(1, retry_after)

        return False, 0


# ============================================================================
# SECURITY HEADERS MIDDLEWARE
# ============================================================================

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    Headers:
    - X-Content-Type-Options
    - X-Frame-Options
    - Strict-Transport-Security (production only)
    - Referrer-Policy
    - Permissions-Policy
    """

    def __init__(self, app: FastAPI, development_mode: bool = False):
        super().__init__(app)
        self.development_mode = development_mode

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"

        if not self.development_mode:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"

        return response


# ============================================================================
# REQUEST LOGGING MIDDLEWARE
# ============================================================================

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()
        client_ip = _client_ip(request)
        path = request.url.path
        method = request.method

        response = await call_next(request)

        duration = time.time() - start_time
        log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            log_level,
            f"{method} {path} - {response.status_code} - {duration:.3f}s - {client_ip}",
            extra={
                "method": method,
                "path": path,
                "status": response.status_code,
                "duration": duration,
                "client_ip": client_ip,
            },
        )

        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response


# ============================================================================
# SETUP FUNCTION
# ============================================================================

def setup_security_middleware(app: FastAPI, development_mode: bool = False) -> None:
    """
    Setup all security middleware for the application.

    Rate limiting is switched off when running under APP_ENV=testing.
    """
    # Order matters! Later middleware wraps earlier ones
    app.add_middleware(SecurityHeadersMiddleware, development_mode=development_mode)
    app.add_middleware(
        RateLimitingMiddleware,
        max_requests=settings.rate_limit_max_requests,
        window_seconds=settings.rate_limit_window_ms / 1000,
        path_prefix=settings.api_prefix,
        enabled=not settings.is_testing,
    )
    app.add_middleware(RequestLoggingMiddleware)

    logger.info(
        f"Security middleware configured (rate limiting: {'off' if settings.is_testing else 'on'})"
    )
