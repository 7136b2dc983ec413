"""Rate limiting configuration for API endpoints.

Provides a shared Limiter instance that route modules import to apply
per-endpoint limits.

Rate limit tiers:
- Global default: 120/minute per IP (covers every endpoint)
- Webhooks: 60/minute (inbound vendor deliveries)
- Expensive: 10/minute (connection tests, catalog imports)

Usage in route modules:
    from conduit.api.rate_limit import limiter

    @router.post("/{integration_id}/test")
    @limiter.limit("10/minute")
    async def test_integration(request: Request, ...):
        ...
"""

from slowapi import Limiter
from starlette.requests import Request


def _get_real_client_ip(request: Request) -> str:
    """Extract the client IP, respecting X-Forwarded-For from a reverse proxy."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # X-Forwarded-For: client, proxy1, proxy2; the leftmost entry is the client
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "127.0.0.1"


limiter = Limiter(
    key_func=_get_real_client_ip,
    default_limits=["120/minute"],
)

WEBHOOK_LIMIT = "60/minute"
EXPENSIVE_LIMIT = "10/minute"

# Maximum request body size (bytes), enforced by middleware in main.py
MAX_REQUEST_BODY_BYTES = 1_048_576  # 1 MB
