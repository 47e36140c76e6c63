"""FastAPI dependencies for authenticating housekeeping triggers.

The housekeeping endpoints are called by a scheduler, not by users. The
caller proves itself with a shared secret sent as a bearer token:

    Authorization: Bearer <API_SECRET>

Usage:
    @router.post("/api/house-keeping")
    def run(_: None = Depends(require_api_secret)):
        ...
"""

import hmac
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from config import Settings, get_settings

logger = logging.getLogger(__name__)

# HTTP Bearer token security scheme; missing headers are handled below
security = HTTPBearer(auto_error=False)


def require_api_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject the request unless it carries the configured API secret.

    Args:
        credentials: Bearer token from the Authorization header
        settings: Application settings holding API_SECRET

    Raises:
        HTTPException 503: If no API_SECRET is configured on the server
        HTTPException 401: If the token is missing or does not match
    """
    if not settings.API_SECRET:
        logger.error("Housekeeping trigger rejected: API_SECRET is not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Housekeeping trigger is not configured",
        )

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not hmac.compare_digest(
        credentials.credentials.encode("utf-8"),
        settings.API_SECRET.encode("utf-8"),
    ):
        logger.warning("Housekeeping trigger rejected: invalid bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
