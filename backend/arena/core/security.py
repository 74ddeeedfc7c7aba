"""
Rate limiting and response hardening shared by all routers.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from arena.core.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.ENVIRONMENT != "development")


def get_security_headers() -> dict[str, str]:
    headers = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "no-referrer",
        "Cache-Control": "no-store",
    }
    if settings.ENVIRONMENT == "production":
        headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains"
    return headers
