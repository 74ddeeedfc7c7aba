"""
Request-scoped dependencies: caller identity and admin gate.

Authentication happens upstream; this service trusts the X-User-Id header
set by the gateway and guards admin routes with a shared key.
"""

import hmac
from uuid import UUID

from fastapi import Header, HTTPException, status

from arena.core.config import settings


async def get_current_user_id(x_user_id: str = Header(...)) -> UUID:
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id must be a valid UUID"
        )


async def require_admin(x_admin_key: str | None = Header(default=None)) -> None:
    if not settings.ADMIN_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API is not configured"
        )
    if not x_admin_key or not hmac.compare_digest(x_admin_key, settings.ADMIN_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
