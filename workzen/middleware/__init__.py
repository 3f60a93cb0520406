"""
WorkZen - Middleware Package
"""

from workzen.middleware.security import (
    RateLimitingMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    setup_security_middleware,
)
