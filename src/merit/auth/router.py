"""Sign-in router: /api/v1/auth/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from merit.auth.jwt import create_access_token
from merit.auth.schemas import SessionRequest, SessionResponse
from merit.auth.service import sign_in_user
from merit.config import get_settings
from merit.database import get_session
from merit.errors import NotFound
from merit.schemas import ApiResponse
from merit.students.schemas import student_response

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


@router.post("/session", response_model=ApiResponse[SessionResponse])
async def create_session(
    body: SessionRequest,
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[SessionResponse]:
    """Sign in with a verified email and receive an access token.

    Only available when ``dev_login_enabled`` is set outside production;
    production sign-in goes through the identity provider.
    """
    settings = get_settings()
    if not settings.dev_login_enabled or settings.is_production:
        raise NotFound("Not Found")

    user, created = await sign_in_user(db, body.email, name=body.name, image=body.image)
    await db.commit()

    token = create_access_token(user.id, user.email, user.role)
    return ApiResponse(
        data=SessionResponse(
            access_token=token,
            expires_in=settings.jwt_access_token_expire_minutes * 60,
            user=student_response(user),
        ),
        message="Account created" if created else "Signed in",
    )
