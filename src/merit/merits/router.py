"""Merit ledger, summary and leaderboard endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from merit.auth.dependencies import get_current_user, require_admin
from merit.database import get_session
from merit.db.models import User
from merit.merits.schemas import (
    LeaderboardEntry,
    MeritAwardRequest,
    MeritRecordResponse,
    MeritSummaryResponse,
    SortBy,
    leaderboard_entry,
    record_response,
    summary_response,
)
from merit.merits.service import award_merit, leaderboard, list_records, summarize
from merit.schemas import ApiResponse, PaginatedResponse, Pagination

router = APIRouter(prefix="/api/v1", tags=["Merits"])


@router.get("/merits/records", response_model=PaginatedResponse[list[MeritRecordResponse]])
async def get_records(
    student_id: int | None = Query(None, alias="studentId"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> PaginatedResponse[list[MeritRecordResponse]]:
    """Ledger entries for a student (default: the current user), newest first."""
    rows, total = await list_records(db, student_id or user.id, page=page, limit=limit)
    return PaginatedResponse(
        data=[record_response(record, title) for record, title in rows],
        pagination=Pagination.build(total, page, limit),
    )


@router.post("/merits/records", response_model=ApiResponse[MeritRecordResponse], status_code=201)
async def post_record(
    body: MeritAwardRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[MeritRecordResponse]:
    """Award merit points manually (administrators only)."""
    record = await award_merit(db, **body.model_dump())
    await db.commit()
    return ApiResponse(data=record_response(record), message="Merit points awarded")


@router.get("/merits/summary", response_model=ApiResponse[MeritSummaryResponse])
async def get_summary(
    student_id: int | None = Query(None, alias="studentId"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[MeritSummaryResponse]:
    """Totals by category, progress towards the target, and rank."""
    summary = await summarize(db, student_id or user.id)
    return ApiResponse(data=summary_response(summary))


@router.get("/leaderboard", response_model=ApiResponse[list[LeaderboardEntry]])
async def get_leaderboard(
    sort_by: SortBy = Query("total", alias="sortBy"),
    limit: int | None = Query(None, ge=1, le=500),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[list[LeaderboardEntry]]:
    """Students ranked by total or by one category; ``limit`` keeps the top N."""
    entries = await leaderboard(db, sort_by=sort_by, limit=limit)
    return ApiResponse(data=[leaderboard_entry(entry) for entry in entries])
