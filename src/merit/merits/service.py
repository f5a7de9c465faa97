"""Merit ledger writes and aggregate reads."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select, update

from merit.config import get_settings
from merit.db.enums import EventCategory, UserRole
from merit.db.models import Event, MeritRecord, User
from merit.errors import NotFound, ValidationFailed
from merit.merits.aggregation import (
    MeritTotals,
    Summary,
    compute_progress,
    rank_of,
    sort_leaderboard,
    totals_from_records,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


# ---------------------------------------------------------------------------
# Ledger writes
# ---------------------------------------------------------------------------


async def record_merit(
    db: AsyncSession,
    *,
    student_id: int,
    category: str,
    points: int,
    description: str,
    event_id: int | None = None,
    date: datetime | None = None,
    is_verified: bool = False,
    merit_type: str | None = None,
) -> MeritRecord:
    """Append a ledger entry and bump the student's running total.

    Both writes join the caller's transaction; the caller commits.
    """
    record = MeritRecord(
        student_id=student_id,
        event_id=event_id,
        category=category,
        points=points,
        description=description,
        date=date or datetime.now(timezone.utc),
        is_verified=is_verified,
        merit_type=merit_type,
    )
    db.add(record)
    await db.execute(
        update(User)
        .where(User.id == student_id)
        .values(total_merit_points=User.total_merit_points + points)
        .execution_options(synchronize_session="fetch")
    )
    await db.flush()
    logger.info("merit_awarded", student_id=student_id, points=points, category=category, event_id=event_id)
    return record


async def award_merit(
    db: AsyncSession,
    *,
    student_id: int,
    category: EventCategory,
    points: int,
    description: str,
    event_id: int | None = None,
    date: datetime | None = None,
    merit_type: str | None = None,
) -> MeritRecord:
    """
    Manual award by an administrator.

    Raises:
        ValidationFailed: If points fall outside 1..max_award_points.
        NotFound: If the student or the linked event does not exist.
    """
    max_points = get_settings().max_award_points
    if points <= 0 or points > max_points:
        raise ValidationFailed(f"Points must be between 1 and {max_points}")
    if await db.get(User, student_id) is None:
        raise NotFound("Student not found")
    if event_id is not None and await db.get(Event, event_id) is None:
        raise NotFound("Event not found")

    return await record_merit(
        db,
        student_id=student_id,
        category=category.value,
        points=points,
        description=description,
        event_id=event_id,
        date=date,
        is_verified=True,
        merit_type=merit_type,
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def list_records(
    db: AsyncSession,
    student_id: int,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[tuple[MeritRecord, str | None]], int]:
    """A student's ledger, newest first, with linked event titles."""
    total_result = await db.execute(select(func.count(MeritRecord.id)).where(MeritRecord.student_id == student_id))
    result = await db.execute(
        select(MeritRecord, Event.title)
        .outerjoin(Event, Event.id == MeritRecord.event_id)
        .where(MeritRecord.student_id == student_id)
        .order_by(MeritRecord.date.desc(), MeritRecord.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return [(row[0], row[1]) for row in result.all()], int(total_result.scalar_one())


async def load_student_totals(db: AsyncSession) -> list[MeritTotals]:
    """Totals for every STUDENT user, including those with an empty ledger."""
    result = await db.execute(
        select(
            User.id,
            User.student_id,
            User.name,
            User.faculty,
            User.year,
            MeritRecord.category,
            func.coalesce(func.sum(MeritRecord.points), 0),
        )
        .select_from(User)
        .outerjoin(MeritRecord, MeritRecord.student_id == User.id)
        .where(User.role == UserRole.STUDENT.value)
        .group_by(User.id, User.student_id, User.name, User.faculty, User.year, MeritRecord.category)
    )

    by_user: dict[int, MeritTotals] = {}
    for user_id, student_no, name, faculty, year, category, points in result.all():
        totals = by_user.get(user_id)
        if totals is None:
            totals = MeritTotals(
                id=user_id,
                student_id=student_no or "",
                name=name or "",
                faculty=faculty or "",
                year=year or 0,
            )
            by_user[user_id] = totals
        if category is not None:
            totals.add(category, int(points))
    return list(by_user.values())


async def summarize(db: AsyncSession, student_id: int, now: datetime | None = None) -> Summary:
    """
    Category totals, recent activity, progress to target and rank for a user.

    Raises:
        NotFound: If the user does not exist.
    """
    if await db.get(User, student_id) is None:
        raise NotFound("User not found")

    settings = get_settings()
    now = now or datetime.now(timezone.utc)

    sums = await db.execute(
        select(MeritRecord.category, func.sum(MeritRecord.points))
        .where(MeritRecord.student_id == student_id)
        .group_by(MeritRecord.category)
    )
    totals = totals_from_records(student_id, ((category, int(points)) for category, points in sums.all()))

    cutoff = now - timedelta(days=settings.recent_activity_days)
    recent = await db.execute(
        select(func.count(MeritRecord.id))
        .where(MeritRecord.student_id == student_id)
        .where(MeritRecord.date > cutoff)
    )

    everyone = await load_student_totals(db)
    return Summary(
        totals=totals,
        recent_activities=int(recent.scalar_one()),
        rank=rank_of(everyone, student_id),
        total_students=len(everyone),
        target_points=settings.target_points,
        progress=compute_progress(totals.total_points, settings.target_points),
    )


async def leaderboard(db: AsyncSession, sort_by: str = "total", limit: int | None = None) -> list[MeritTotals]:
    """Students ordered by the chosen dimension, optionally truncated to ``limit``."""
    ordered = sort_leaderboard(await load_student_totals(db), sort_by)
    return ordered[:limit] if limit is not None else ordered
