"""Request/response schemas for registration endpoints."""

from __future__ import annotations

from pydantic import Field

from merit.db.enums import RegistrationStatus
from merit.db.models import EventRegistration
from merit.schemas import CamelModel


class RegistrationResponse(CamelModel):
    id: int
    event_id: int
    student_id: int
    registration_date: str
    status: str
    attendance_marked: bool
    points_awarded: int


class CancellationResponse(CamelModel):
    registration: RegistrationResponse
    promoted: RegistrationResponse | None = None


class AttendanceRequest(CamelModel):
    student_id: int
    points: int | None = Field(None, ge=1)
    merit_type: str | None = Field(None, max_length=64)


def registration_response(registration: EventRegistration, *, label: bool = False) -> RegistrationResponse:
    """Build a RegistrationResponse.

    With ``label`` the status is rendered for display ("Registered"),
    otherwise as the stored enum value ("REGISTERED").
    """
    status = RegistrationStatus(registration.status)
    return RegistrationResponse(
        id=registration.id,
        event_id=registration.event_id,
        student_id=registration.student_id,
        registration_date=registration.registration_date.date().isoformat(),
        status=status.label if label else status.value,
        attendance_marked=registration.attendance_marked,
        points_awarded=registration.points_awarded,
    )
