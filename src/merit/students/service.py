"""Student profile business logic."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from merit.db.models import User
from merit.errors import NotFound, ValidationFailed

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

_PROFILE_FIELDS = ("student_id", "faculty", "year", "program", "enrollment_date")


def has_student_profile(user: User) -> bool:
    """True when every student profile field is filled in."""
    return all(getattr(user, field) for field in _PROFILE_FIELDS)


async def get_student_by_number(db: AsyncSession, student_id: str) -> User:
    """Look up a user by university student number."""
    result = await db.execute(select(User).where(User.student_id == student_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("Student not found")
    return user


async def get_student_by_id(db: AsyncSession, user_id: int) -> User:
    """Look up a user by internal id; only users with a full student profile qualify."""
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("Student not found")
    if not has_student_profile(user):
        raise ValidationFailed("User is not a student")
    return user


async def update_profile(
    db: AsyncSession,
    user: User,
    name: str | None = None,
    student_id: str | None = None,
    faculty: str | None = None,
    year: int | None = None,
    program: str | None = None,
    enrollment_date: date | None = None,
) -> User:
    """
    Update student profile fields.

    Raises:
        ValidationFailed: If the student number already belongs to someone else.
    """
    if student_id is not None and student_id != user.student_id:
        result = await db.execute(select(User.id).where(User.student_id == student_id).where(User.id != user.id))
        if result.scalar_one_or_none() is not None:
            raise ValidationFailed("Student ID already in use")
        user.student_id = student_id

    if name is not None:
        user.name = name
    if faculty is not None:
        user.faculty = faculty
    if year is not None:
        user.year = year
    if program is not None:
        user.program = program
    if enrollment_date is not None:
        user.enrollment_date = enrollment_date

    await db.flush()
    logger.info("profile_updated", user_id=user.id)
    return user
