"""FastAPI dependencies for caller authentication.

- ``get_current_user``: verifies the bearer JWT and yields a ``UserContext``
  (raises ``UnauthorizedError`` when the token is missing or invalid).
- ``verify_cron_secret``: guards the scheduled sweep endpoint with a shared
  bearer secret.

Tokens are verified with PyJWT against ``AUTH_JWT_SECRET``. The caller id is
the ``sub`` claim.
"""

import hmac
import logging
from dataclasses import dataclass
from typing import Annotated, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from founderos_ai.agent_core.errors import UnauthorizedError

from .config import settings

logger = logging.getLogger(__name__)

# auto_error=False so a missing header goes through UnauthorizedError (401) rather than FastAPI's 403
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class UserContext:
    """Authenticated caller."""

    user_id: str
    email: Optional[str] = None


def decode_token(token: str) -> UserContext:
    """
    Verify a bearer JWT and extract the caller.

    Raises:
        UnauthorizedError: If verification is not configured or the token is invalid.
    """
    auth = settings.auth
    if not auth.jwt_secret:
        logger.error("AUTH_JWT_SECRET is not configured; rejecting request")
        raise UnauthorizedError()
    try:
        claims = jwt.decode(
            token,
            auth.jwt_secret,
            algorithms=[auth.jwt_algorithm],
            audience=auth.jwt_audience or None,
            options={"verify_aud": bool(auth.jwt_audience), "require": ["sub"]},
        )
    except jwt.PyJWTError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise UnauthorizedError() from e
    user_id = str(claims.get("sub") or "")
    if not user_id:
        raise UnauthorizedError()
    return UserContext(user_id=user_id, email=claims.get("email"))


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> UserContext:
    """FastAPI dependency resolving the authenticated caller (401 otherwise)."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()
    return decode_token(credentials.credentials)


async def verify_cron_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> None:
    """FastAPI dependency checking the cron bearer secret."""
    expected = settings.proactive.cron_secret
    if not expected or credentials is None:
        raise UnauthorizedError()
    if not hmac.compare_digest(credentials.credentials.encode(), expected.encode()):
        raise UnauthorizedError()


CurrentUser = Annotated[UserContext, Depends(get_current_user)]
CronAuthorized = Annotated[None, Depends(verify_cron_secret)]
