import hmac

from fastapi import HTTPException, Request

from app.core.config import settings


def require_admin(request: Request) -> None:
    """Guard admin endpoints with the ``ADMIN_API_KEY`` bearer token.

    When no admin key is configured the check is skipped, which keeps local
    development and the test suite free of credentials.
    """
    if not settings.admin_auth_enabled:
        return

    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Authorization header is required")

    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header format")

    raw_key = auth_header[7:]
    if not raw_key:
        raise HTTPException(status_code=401, detail="API key is required")

    if not hmac.compare_digest(raw_key.encode(), settings.ADMIN_API_KEY.encode()):
        raise HTTPException(status_code=401, detail="Invalid API key")
