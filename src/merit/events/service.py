"""Event catalogue queries and admin mutations."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import Select, func, or_, select

from merit.db.enums import EventCategory, EventStatus, RegistrationStatus
from merit.db.models import Event, EventRegistration
from merit.errors import NotFound

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


def _status_count(status: RegistrationStatus):  # noqa: ANN202
    """Correlated count of an event's registrations in ``status``."""
    return (
        select(func.count(EventRegistration.id))
        .where(EventRegistration.event_id == Event.id)
        .where(EventRegistration.status == status.value)
        .correlate(Event)
        .scalar_subquery()
    )


def _with_counts() -> Select:  # type: ignore[type-arg]
    return select(
        Event,
        _status_count(RegistrationStatus.REGISTERED).label("registered_count"),
        _status_count(RegistrationStatus.WAITLISTED).label("waitlisted_count"),
    )


async def list_events(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    category: str | None = None,
    status: str | None = None,
    search: str | None = None,
) -> tuple[list[tuple[Event, int, int]], int]:
    """Page through events ordered by date.

    ``category`` and ``status`` are matched case-insensitively; ``search``
    matches title, description or location.

    Returns:
        Tuple of ([(event, registered_count, waitlisted_count), ...], total).
    """
    conditions = []
    if category:
        conditions.append(Event.category == category.upper())
    if status:
        conditions.append(Event.status == status.upper())
    if search:
        pattern = f"%{search.lower()}%"
        conditions.append(
            or_(
                func.lower(Event.title).like(pattern),
                func.lower(Event.description).like(pattern),
                func.lower(Event.location).like(pattern),
            )
        )

    total_result = await db.execute(select(func.count(Event.id)).where(*conditions))
    total = int(total_result.scalar_one())

    result = await db.execute(
        _with_counts()
        .where(*conditions)
        .order_by(Event.date.asc(), Event.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    rows = [(row[0], int(row[1]), int(row[2])) for row in result.all()]
    return rows, total


async def get_event_with_counts(db: AsyncSession, event_id: int) -> tuple[Event, int, int]:
    """Fetch one event with its registered/waitlisted counts."""
    result = await db.execute(_with_counts().where(Event.id == event_id))
    row = result.one_or_none()
    if row is None:
        raise NotFound("Event not found")
    return row[0], int(row[1]), int(row[2])


async def create_event(
    db: AsyncSession,
    *,
    title: str,
    date: datetime,
    category: EventCategory,
    points: int,
    capacity: int,
    description: str = "",
    time: str = "",
    location: str = "",
    organizer: str = "",
    image_url: str | None = None,
) -> Event:
    """Create an UPCOMING event."""
    event = Event(
        title=title,
        description=description,
        date=date,
        time=time,
        location=location,
        organizer=organizer,
        category=category.value,
        points=points,
        capacity=capacity,
        status=EventStatus.UPCOMING.value,
        image_url=image_url,
    )
    db.add(event)
    await db.flush()
    logger.info("event_created", event_id=event.id, category=event.category, capacity=capacity)
    return event


async def update_event_status(db: AsyncSession, event_id: int, status: EventStatus) -> Event:
    """Move an event to a new lifecycle status."""
    event = await db.get(Event, event_id)
    if event is None:
        raise NotFound("Event not found")
    old_status = event.status
    event.status = status.value
    await db.flush()
    logger.info("event_status_changed", event_id=event_id, old_status=old_status, new_status=status.value)
    return event
