"""Admin API key check for the job trigger and AI cost endpoints.

The key is ``DASHBOARD_API_KEY``; deployments that only set the compliance
API token reuse that value so a single secret guards both sides.
"""

import hmac
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rto_dashboard.config import settings

logger = logging.getLogger(__name__)

admin_bearer = HTTPBearer(description="Dashboard admin API key")


def admin_key() -> str:
    return settings.dashboard_api_key or settings.compliance_api_token


def admin_key_configured() -> bool:
    return bool(admin_key())


async def require_auth(
    credentials: HTTPAuthorizationCredentials = Depends(admin_bearer),
) -> str:
    if not admin_key_configured():
        logger.warning("Admin endpoint called but no admin API key is configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin endpoints are disabled: set DASHBOARD_API_KEY",
        )
    if not hmac.compare_digest(credentials.credentials.encode(), admin_key().encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid dashboard API key",
        )
    return credentials.credentials
