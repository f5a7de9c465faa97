"""Student router: /api/v1/students/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from merit.auth.dependencies import get_current_user
from merit.database import get_session
from merit.db.models import User
from merit.schemas import ApiResponse
from merit.students.schemas import ProfileUpdateRequest, StudentResponse, student_response
from merit.students.service import get_student_by_id, get_student_by_number, update_profile

router = APIRouter(prefix="/api/v1/students", tags=["Students"])


@router.get("/me", response_model=ApiResponse[StudentResponse])
async def get_me(user: User = Depends(get_current_user)) -> ApiResponse[StudentResponse]:
    """Current user's profile."""
    return ApiResponse(data=student_response(user))


@router.patch("/me", response_model=ApiResponse[StudentResponse])
async def update_me(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[StudentResponse]:
    """Fill in or change the current user's student profile."""
    user = await update_profile(db, user, **body.model_dump(exclude_unset=True))
    await db.commit()
    return ApiResponse(data=student_response(user))


@router.get("/by-id/{user_id}", response_model=ApiResponse[StudentResponse])
async def get_by_internal_id(
    user_id: int,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[StudentResponse]:
    """Student by internal user id."""
    return ApiResponse(data=student_response(await get_student_by_id(db, user_id)))


@router.get("/{student_id}", response_model=ApiResponse[StudentResponse])
async def get_by_student_number(
    student_id: str,
    _user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[StudentResponse]:
    """Student by university student number."""
    return ApiResponse(data=student_response(await get_student_by_number(db, student_id)))
