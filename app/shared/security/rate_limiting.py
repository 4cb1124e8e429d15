"""
Per-client throttling with slowapi.

Signed-in callers are counted per API token, so subscribers sharing an
office NAT do not throttle each other; anonymous callers (the payment
webhook, open training listings) are counted per IP. Alert publication
and the webhook opt into `settings.rate_limit_heavy`.
"""

import hashlib

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.core.config import settings

RETRY_AFTER_SECONDS = "60"


def client_key(request: Request) -> str:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and token:
        return "token:" + hashlib.sha256(token.encode()).hexdigest()[:16]
    return "ip:" + get_remote_address(request)


limiter = Limiter(
    key_func=client_key,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)


async def rate_limit_exceeded_handler(
    _request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"error": "Rate limit exceeded", "detail": str(exc.detail)},
        headers={"Retry-After": RETRY_AFTER_SECONDS},
    )
