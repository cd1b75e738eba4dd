"""
Rate limiting for authentication endpoints.
Uses slowapi to slow down brute force attempts against the admin login.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from gallery_api.config import settings


def get_client_identifier(request: Request) -> str:
    """
    Get client identifier for rate limiting.
    Uses forwarded IP if behind proxy, otherwise remote address.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # First IP in the chain is the original client
        return forwarded.split(",")[0].strip()

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_identifier,
    enabled=settings.RATE_LIMIT_ENABLED,
    storage_uri="memory://"  # Per-process; use Redis when running several workers
)


RATE_LIMITS = {
    "login": "5/minute",
    "change_password": "5/minute",
}
