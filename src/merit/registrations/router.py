"""Registration endpoints: register, cancel, attendance, listing."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from merit.auth.dependencies import get_current_user, require_admin
from merit.database import get_session
from merit.db.enums import RegistrationStatus
from merit.db.models import User
from merit.events.cache import invalidate_event_pages
from merit.redis_client import get_optional_redis
from merit.registrations.schemas import (
    AttendanceRequest,
    CancellationResponse,
    RegistrationResponse,
    registration_response,
)
from merit.registrations.service import cancel, list_registrations, mark_attendance, register
from merit.schemas import ApiResponse, PaginatedResponse, Pagination

router = APIRouter(prefix="/api/v1", tags=["Registrations"])


@router.post("/events/{event_id}/register", response_model=ApiResponse[RegistrationResponse])
async def register_for_event(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[RegistrationResponse]:
    """Register the current user, or add them to the waitlist when the event is full."""
    student_id = user.id
    registration = await register(db, event_id, student_id)
    await invalidate_event_pages(get_optional_redis())

    if registration.status == RegistrationStatus.REGISTERED.value:
        message = "Successfully registered for the event"
    else:
        message = "Added to the waitlist for the event"
    return ApiResponse(data=registration_response(registration, label=True), message=message)


@router.post("/events/{event_id}/cancel", response_model=ApiResponse[CancellationResponse])
async def cancel_registration(
    event_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[CancellationResponse]:
    """Cancel the current user's registration; frees a seat for the waitlist."""
    student_id = user.id
    result = await cancel(db, event_id, student_id)
    await invalidate_event_pages(get_optional_redis())
    return ApiResponse(
        data=CancellationResponse(
            registration=registration_response(result.cancelled),
            promoted=registration_response(result.promoted) if result.promoted else None,
        ),
        message="Registration cancelled successfully",
    )


@router.post("/events/{event_id}/attendance", response_model=ApiResponse[RegistrationResponse])
async def mark_event_attendance(
    event_id: int,
    body: AttendanceRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[RegistrationResponse]:
    """Mark a registered student as attended and award points (administrators only)."""
    registration = await mark_attendance(
        db, event_id, body.student_id, points=body.points, merit_type=body.merit_type
    )
    await invalidate_event_pages(get_optional_redis())
    return ApiResponse(data=registration_response(registration), message="Attendance marked")


@router.get("/registrations", response_model=PaginatedResponse[list[RegistrationResponse]])
async def get_registrations(
    student_id: int | None = Query(None, alias="studentId"),
    event_id: int | None = Query(None, alias="eventId"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PaginatedResponse[list[RegistrationResponse]]:
    """Registrations of an event, or of a student (default: the current user)."""
    if event_id is None and student_id is None:
        student_id = user.id
    rows, total = await list_registrations(db, student_id=student_id, event_id=event_id, page=page, limit=limit)
    return PaginatedResponse(
        data=[registration_response(row) for row in rows],
        pagination=Pagination.build(total, page, limit),
    )
