"""Registration admission and waitlist promotion.

Admission: a new registration is REGISTERED while the event's REGISTERED
count is below capacity, otherwise WAITLISTED.

Promotion: when a REGISTERED entrant cancels, the WAITLISTED registration
with the earliest ``registration_date`` (then lowest id) becomes REGISTERED.
At most one promotion happens per cancellation.

Promotion happens only on cancellation. Marking attendance takes a seat out of
the REGISTERED count without promoting anyone.

Both sequences start by writing to the event row, which holds the event's
lock until commit, so concurrent registrations and cancellations for one
event are serialised and the REGISTERED count can never exceed capacity.
Transient serialisation failures are retried once before surfacing as
Unavailable.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, TypeVar

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError

from merit.config import get_settings
from merit.db.enums import RegistrationStatus
from merit.db.models import Event, EventRegistration, User
from merit.errors import DuplicateRegistration, InvalidTransition, NotFound, Unavailable, ValidationFailed
from merit.merits.service import record_merit

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

T = TypeVar("T")

# PostgreSQL serialization_failure / deadlock_detected
_RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


@dataclass
class CancellationResult:
    cancelled: EventRegistration
    promoted: EventRegistration | None = None


def _is_retryable(exc: DBAPIError) -> bool:
    orig = exc.orig
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate in _RETRYABLE_SQLSTATES:
        return True
    return "database is locked" in str(orig)


async def run_with_retry(
    db: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    *,
    name: str,
    attempts: int | None = None,
) -> T:
    """Run ``operation`` and commit, retrying transient store conflicts.

    Domain errors and non-transient store errors roll back and propagate
    unchanged.
    """
    attempts = attempts or get_settings().registration_retry_attempts
    for attempt in range(1, attempts + 1):
        try:
            result = await operation()
            await db.commit()
            return result
        except DBAPIError as e:
            await db.rollback()
            if not _is_retryable(e):
                raise
            if attempt == attempts:
                logger.error("registration_conflict_exhausted", operation=name, attempts=attempts)
                raise Unavailable("Registration is busy, please try again") from e
            logger.warning("registration_conflict_retry", operation=name, attempt=attempt)
        except Exception:
            await db.rollback()
            raise
    msg = "attempts must be at least 1"
    raise ValueError(msg)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def _lock_event(db: AsyncSession, event_id: int) -> Event:
    """Take the per-event write lock, then load the event.

    The lock is a write to the event row: a row lock on PostgreSQL and the
    database write lock on SQLite, where ``FOR UPDATE`` is ignored.
    """
    touched = await db.execute(
        update(Event)
        .where(Event.id == event_id)
        .values(updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )
    if touched.rowcount != 1:
        raise NotFound("Event not found")
    result = await db.execute(select(Event).where(Event.id == event_id).execution_options(populate_existing=True))
    return result.scalar_one()


async def get_registration(db: AsyncSession, event_id: int, student_id: int) -> EventRegistration | None:
    result = await db.execute(
        select(EventRegistration)
        .where(EventRegistration.event_id == event_id)
        .where(EventRegistration.student_id == student_id)
    )
    return result.scalar_one_or_none()


async def count_by_status(db: AsyncSession, event_id: int, status: RegistrationStatus) -> int:
    result = await db.execute(
        select(func.count(EventRegistration.id))
        .where(EventRegistration.event_id == event_id)
        .where(EventRegistration.status == status.value)
    )
    return int(result.scalar_one())


async def list_registrations(
    db: AsyncSession,
    *,
    student_id: int | None = None,
    event_id: int | None = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[EventRegistration], int]:
    """Registrations newest first, filtered by student and/or event."""
    conditions = []
    if student_id is not None:
        conditions.append(EventRegistration.student_id == student_id)
    if event_id is not None:
        conditions.append(EventRegistration.event_id == event_id)

    total_result = await db.execute(select(func.count(EventRegistration.id)).where(*conditions))
    result = await db.execute(
        select(EventRegistration)
        .where(*conditions)
        .order_by(EventRegistration.registration_date.desc(), EventRegistration.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), int(total_result.scalar_one())


# ---------------------------------------------------------------------------
# Admission
# ---------------------------------------------------------------------------


async def _admit(db: AsyncSession, event_id: int, student_id: int) -> EventRegistration:
    event = await _lock_event(db, event_id)
    if await db.get(User, student_id) is None:
        raise NotFound("User not found")

    existing = await get_registration(db, event_id, student_id)
    if existing is not None and existing.status != RegistrationStatus.CANCELLED.value:
        raise DuplicateRegistration("Already registered for this event")

    registered = await count_by_status(db, event_id, RegistrationStatus.REGISTERED)
    status = RegistrationStatus.REGISTERED if registered < event.capacity else RegistrationStatus.WAITLISTED
    now = datetime.now(timezone.utc)

    if existing is not None:
        # A cancelled place is re-opened as a fresh admission at the back of the queue.
        registration = existing
        registration.status = status.value
        registration.registration_date = now
        registration.attendance_marked = False
        registration.points_awarded = 0
    else:
        registration = EventRegistration(
            event_id=event_id,
            student_id=student_id,
            status=status.value,
            registration_date=now,
            attendance_marked=False,
            points_awarded=0,
        )
        db.add(registration)
    await db.flush()

    logger.info(
        "registration_created",
        event_id=event_id,
        student_id=student_id,
        status=status.value,
        registered=registered,
        capacity=event.capacity,
        reopened=existing is not None,
    )
    return registration


async def register(db: AsyncSession, event_id: int, student_id: int) -> EventRegistration:
    """
    Register a student for an event, or waitlist them when it is full.

    Raises:
        NotFound: If the event or the student does not exist.
        DuplicateRegistration: If the student already holds an active registration.
        Unavailable: If the store stays contended after the retry.
    """
    try:
        return await run_with_retry(db, lambda: _admit(db, event_id, student_id), name="register")
    except IntegrityError as e:
        # unique (event_id, student_id): the same student registered twice concurrently
        raise DuplicateRegistration("Already registered for this event") from e


# ---------------------------------------------------------------------------
# Cancellation and promotion
# ---------------------------------------------------------------------------


async def _promote_next(db: AsyncSession, event: Event) -> EventRegistration | None:
    """Move the longest-waiting WAITLISTED registration to REGISTERED."""
    if await count_by_status(db, event.id, RegistrationStatus.REGISTERED) >= event.capacity:
        return None

    result = await db.execute(
        select(EventRegistration.id)
        .where(EventRegistration.event_id == event.id)
        .where(EventRegistration.status == RegistrationStatus.WAITLISTED.value)
        .order_by(EventRegistration.registration_date.asc(), EventRegistration.id.asc())
        .limit(1)
    )
    candidate_id = result.scalar_one_or_none()
    if candidate_id is None:
        return None

    # Conditional update: only succeeds while the row is still waitlisted.
    updated = await db.execute(
        update(EventRegistration)
        .where(EventRegistration.id == candidate_id)
        .where(EventRegistration.status == RegistrationStatus.WAITLISTED.value)
        .values(status=RegistrationStatus.REGISTERED.value, updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session="fetch")
    )
    if updated.rowcount != 1:
        return None

    promoted = await db.get(EventRegistration, candidate_id)
    logger.info("waitlist_promoted", event_id=event.id, student_id=promoted.student_id if promoted else None)
    return promoted


async def _cancel(db: AsyncSession, event_id: int, student_id: int) -> CancellationResult:
    event = await _lock_event(db, event_id)
    registration = await get_registration(db, event_id, student_id)
    if registration is None or registration.status == RegistrationStatus.CANCELLED.value:
        raise NotFound("Registration not found")
    if registration.status == RegistrationStatus.ATTENDED.value:
        raise InvalidTransition("Cannot cancel registration after attendance has been marked")

    prior_status = registration.status
    registration.status = RegistrationStatus.CANCELLED.value
    await db.flush()
    logger.info("registration_cancelled", event_id=event_id, student_id=student_id, prior_status=prior_status)

    promoted = None
    if prior_status == RegistrationStatus.REGISTERED.value:
        promoted = await _promote_next(db, event)
    return CancellationResult(cancelled=registration, promoted=promoted)


async def cancel(db: AsyncSession, event_id: int, student_id: int) -> CancellationResult:
    """
    Cancel a student's registration (kept as a CANCELLED row).

    Raises:
        NotFound: If the event or an active registration does not exist.
        InvalidTransition: If attendance has already been marked.
    """
    return await run_with_retry(db, lambda: _cancel(db, event_id, student_id), name="cancel")


# ---------------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------------


async def _mark_attendance(
    db: AsyncSession,
    event_id: int,
    student_id: int,
    points: int | None,
    merit_type: str | None,
) -> EventRegistration:
    event = await _lock_event(db, event_id)
    registration = await get_registration(db, event_id, student_id)
    if registration is None or registration.status == RegistrationStatus.CANCELLED.value:
        raise NotFound("Registration not found")
    if registration.status == RegistrationStatus.ATTENDED.value:
        raise InvalidTransition("Attendance has already been marked")
    if registration.status != RegistrationStatus.REGISTERED.value:
        raise InvalidTransition("Only registered students can be marked as attended")

    award = event.points if points is None else points
    if award <= 0 or award > event.points:
        raise ValidationFailed(f"Points must be between 1 and {event.points}")

    registration.status = RegistrationStatus.ATTENDED.value
    registration.attendance_marked = True
    registration.points_awarded = award
    await record_merit(
        db,
        student_id=student_id,
        category=event.category,
        points=award,
        description=f"Attended {event.title}",
        event_id=event.id,
        is_verified=True,
        merit_type=merit_type,
    )
    logger.info("attendance_marked", event_id=event_id, student_id=student_id, points=award)
    return registration


async def mark_attendance(
    db: AsyncSession,
    event_id: int,
    student_id: int,
    points: int | None = None,
    merit_type: str | None = None,
) -> EventRegistration:
    """
    Mark a REGISTERED student as ATTENDED and award the event's merit points.

    The ledger entry, the student's running total and the registration change
    commit together.
    """
    return await run_with_retry(
        db,
        lambda: _mark_attendance(db, event_id, student_id, points, merit_type),
        name="mark_attendance",
    )
