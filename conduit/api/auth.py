"""API key authentication for the management API.

Clients send the key in the ``X-API-Key`` header. Webhook deliveries
are not routed through this dependency; their address is the secret
external platforms are configured with.

If no API key is configured:
- Production: authentication fails closed (rejects all requests)
- Development/testing: authentication is disabled for convenience
"""

import secrets

from fastapi import HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

# Import module (not function) so monkeypatching get_settings in tests works.
import conduit.settings as _settings_mod

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

EXEMPT_ROUTES = {
    "/api/v1/health",
}


async def verify_api_key(
    request: Request,
    header_key: str | None = Security(api_key_header),
) -> str:
    """Verify the X-API-Key header.

    Returns:
        ``"api_key"`` when authenticated, empty string when auth is off.

    Raises:
        HTTPException: 401 Unauthorized if authentication fails
    """
    if request.url.path in EXEMPT_ROUTES:
        return ""

    settings = _settings_mod.get_settings()
    configured_key = settings.api_key.get_secret_value()

    if not configured_key:
        if settings.environment == "production":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication is not configured. Set API_KEY.",
            )
        return ""

    if not header_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required. Provide an X-API-Key header.",
        )
    if not secrets.compare_digest(header_key, configured_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key.",
        )
    return "api_key"
