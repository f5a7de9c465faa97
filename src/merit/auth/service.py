"""
Sign-in business logic.

Users are created on first sign-in (upsert by email). Only addresses under
the configured university domains may sign in.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from merit.config import get_settings
from merit.db.enums import UserRole
from merit.db.models import User
from merit.errors import Forbidden

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by internal ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Sign-in
# ---------------------------------------------------------------------------


def is_allowed_email(email: str, allowed_domains: list[str]) -> bool:
    """True if the address belongs to one of the allowed domains (exact match)."""
    email = email.lower()
    return any(email.endswith(f"@{domain.lower()}") for domain in allowed_domains)


async def sign_in_user(
    db: AsyncSession,
    email: str,
    name: str | None = None,
    image: str | None = None,
) -> tuple[User, bool]:
    """
    Get or create the user for a verified sign-in.

    Existing users get their name and image refreshed when provided.

    Returns:
        Tuple of (user, created).

    Raises:
        Forbidden: If the email domain is not allowed.
    """
    settings = get_settings()
    if not is_allowed_email(email, settings.allowed_email_domains):
        raise Forbidden("Sign-in is restricted to university accounts")

    user = await get_user_by_email(db, email)
    if user is not None:
        if name:
            user.name = name
        if image:
            user.image = image
        user.email_verified = True
        await db.flush()
        logger.info("user_signed_in", user_id=user.id, created=False)
        return user, False

    user = User(
        email=email.lower(),
        name=name,
        image=image,
        email_verified=True,
        role=UserRole.STUDENT.value,
        total_merit_points=0,
    )
    db.add(user)
    await db.flush()
    logger.info("user_signed_in", user_id=user.id, created=True)
    return user, True
