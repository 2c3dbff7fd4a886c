"""
Bearer token authentication for the uplink webhook.

The network server's webhook integration is configured with a static
``Authorization: Bearer <token>`` header; the expected token comes from
``WEBHOOK_TOKEN``.  Comparison is constant-time via secrets.compare_digest.
An empty configured token disables the check.

CHANGELOG:
- 2026-10-16: Reduce device token map to a single webhook token
"""

import logging
import secrets

from fastapi import HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

logger = logging.getLogger(__name__)


def verify_bearer_token(token: str, expected: str) -> bool:
    """Compare a presented bearer token with the expected one in constant time.

    Args:
        token: The bearer token extracted from the Authorization header.
        expected: The configured webhook token.

    Returns:
        bool: True if both are non-empty and equal.
    """
    if not token or not expected:
        return False
    return secrets.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))


class BearerAuth:
    """FastAPI-compatible Bearer token check for the webhook route.

    Attributes:
        token: Expected token; empty disables authentication.
        scheme: FastAPI HTTPBearer security scheme.
    """

    def __init__(self, token: str) -> None:
        self.token = token
        self.scheme = HTTPBearer(auto_error=False)

    @property
    def enabled(self) -> bool:
        return bool(self.token)

    async def verify(self, request: Request) -> None:
        """FastAPI dependency that validates the webhook bearer token.

        Raises:
            HTTPException: 401 Unauthorized if the token is invalid or missing.
        """
        if not self.enabled:
            return

        credentials: HTTPAuthorizationCredentials | None = await self.scheme(request)
        if credentials is None:
            raise HTTPException(
                status_code=401,
                detail="Missing authorization credentials.",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if not verify_bearer_token(credentials.credentials, self.token):
            logger.warning("Rejected webhook call with invalid token")
            raise HTTPException(
                status_code=401,
                detail="Invalid token.",
                headers={"WWW-Authenticate": "Bearer"},
            )
