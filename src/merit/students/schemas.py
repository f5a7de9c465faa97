"""Request/response schemas for student endpoints."""

from __future__ import annotations

from datetime import date

from pydantic import Field

from merit.db.models import User
from merit.schemas import CamelModel


class StudentResponse(CamelModel):
    id: int
    name: str
    email: str
    student_id: str
    faculty: str
    year: int
    program: str
    total_merit_points: int
    enrollment_date: str
    profile_image: str | None = None
    role: str


class ProfileUpdateRequest(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=128)
    student_id: str | None = Field(None, min_length=1, max_length=32)
    faculty: str | None = Field(None, max_length=128)
    year: int | None = Field(None, ge=1, le=10)
    program: str | None = Field(None, max_length=128)
    enrollment_date: date | None = None


def student_response(user: User) -> StudentResponse:
    """Build a StudentResponse; missing profile fields become empty values."""
    return StudentResponse(
        id=user.id,
        name=user.name or "",
        email=user.email,
        student_id=user.student_id or "",
        faculty=user.faculty or "",
        year=user.year or 0,
        program=user.program or "",
        total_merit_points=user.total_merit_points,
        enrollment_date=user.enrollment_date.isoformat() if user.enrollment_date else "",
        profile_image=user.image,
        role=user.role,
    )
