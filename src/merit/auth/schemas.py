"""Request/response schemas for sign-in endpoints."""

from __future__ import annotations

from pydantic import EmailStr, Field

from merit.schemas import CamelModel
from merit.students.schemas import StudentResponse


class SessionRequest(CamelModel):
    """Development sign-in: the identity provider's verified profile."""

    email: EmailStr
    name: str | None = Field(None, max_length=128)
    image: str | None = None


class SessionResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: StudentResponse
