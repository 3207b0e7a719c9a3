"""
Security utilities for optimizer webhook authentication.
"""

import hmac

import structlog
from fastapi import Security
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from optimizer_dashboard.config import settings
from optimizer_dashboard.core.exceptions import ErrorCode, UnauthorizedError

logger = structlog.get_logger(__name__)

# auto_error=False so a missing header reaches our handlers as None and is
# rendered as an UnauthorizedError instead of FastAPI's default 403
bearer_scheme = HTTPBearer(auto_error=False)
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def _matches(candidate: str | None, expected: str) -> bool:
    return candidate is not None and hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def _bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str | None:
    return credentials.credentials if credentials else None


async def verify_api_key(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    x_api_key: str | None = Security(api_key_header),
) -> None:
    """
    Verify the dashboard API key sent by the optimizer.

    Accepts either "Authorization: Bearer <key>" or "X-API-Key: <key>".
    When DASHBOARD_API_KEY is not configured, authentication is skipped
    with a warning so local setups keep working.

    Raises:
        UnauthorizedError: 401 if the key does not match
    """
    expected = settings.dashboard_api_key
    if not expected:
        logger.warning("dashboard_api_key_not_set", message="Skipping authentication")
        return

    if not (_matches(_bearer_token(credentials), expected) or _matches(x_api_key, expected)):
        raise UnauthorizedError()


async def require_api_key(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> None:
    """
    Strict variant: the key must be configured and sent as a Bearer token.

    Used by the error-report webhook, which never accepts anonymous calls.
    """
    expected = settings.dashboard_api_key
    if not expected:
        raise UnauthorizedError(
            "Dashboard API key not configured",
            error_code=ErrorCode.API_KEY_NOT_CONFIGURED,
        )
    if not _matches(_bearer_token(credentials), expected):
        raise UnauthorizedError()
