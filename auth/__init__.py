"""Authentication for the ingest endpoints.

Nodes reporting chain data send the shared API key from settings.conf as a
bearer token. Read endpoints are public.
"""

import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config import get_settings

# Configure logging
logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base exception for authentication errors."""
    pass


class InvalidApiKeyError(AuthError):
    """Raised when a bearer token does not match the API key."""
    pass


def verify_api_key(token: Optional[str], api_key: Optional[str] = None) -> None:
    """Check a bearer token against the configured API key.

    Args:
        token: Token sent by the client
        api_key: Expected key. Defaults to settings.

    Raises:
        InvalidApiKeyError: If the token is missing or wrong, or no key is configured
    """
    expected = api_key if api_key is not None else get_settings()['api_key']
    if not expected:
        raise InvalidApiKeyError("No API key configured")
    if not token or not secrets.compare_digest(token.encode(), expected.encode()):
        raise InvalidApiKeyError("Invalid API key")


# FastAPI security scheme
auth_scheme = HTTPBearer(
    scheme_name="ApiKey",
    description="API key from settings.conf",
    auto_error=False
)


async def require_api_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme)
) -> None:
    """FastAPI dependency guarding write endpoints.

    Raises:
        HTTPException: 401 if the API key is missing or wrong
    """
    try:
        verify_api_key(credentials.credentials if credentials else None)
    except AuthError as e:
        logger.warning(f"Rejected request: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"}
        )


__all__ = [
    'require_api_key',
    'verify_api_key',
    'auth_scheme',
    'AuthError',
    'InvalidApiKeyError'
]
