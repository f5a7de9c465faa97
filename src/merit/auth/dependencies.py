"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from merit.auth.jwt import verify_token
from merit.auth.service import get_user_by_id
from merit.database import get_session
from merit.db.models import User
from merit.errors import Forbidden, Unauthorized

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the bearer token to a User; 401 when there is no valid session."""
    if credentials is None:
        raise Unauthorized("Unauthorized")
    try:
        payload = verify_token(credentials.credentials, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise Unauthorized(str(e)) from e

    user = await get_user_by_id(db, int(payload["sub"]))
    if user is None:
        raise Unauthorized("User not found")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Same as get_current_user, restricted to administrators."""
    if not user.is_admin:
        raise Forbidden("Administrator access required")
    return user
