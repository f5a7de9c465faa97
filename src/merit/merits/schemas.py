"""Request/response schemas for merit endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from merit.db.enums import EventCategory
from merit.db.models import MeritRecord
from merit.merits.aggregation import MeritTotals, Summary
from merit.schemas import CamelModel

SortBy = Literal["total", "university", "faculty", "college", "club"]


class MeritRecordResponse(CamelModel):
    id: int
    student_id: int
    event_id: int | None = None
    event_title: str | None = None
    category: EventCategory
    points: int
    description: str
    date: str
    is_verified: bool
    merit_type: str | None = None


class MeritAwardRequest(CamelModel):
    student_id: int
    category: EventCategory
    points: int
    description: str = Field(..., min_length=1, max_length=512)
    event_id: int | None = None
    date: datetime | None = None
    merit_type: str | None = Field(None, max_length=64)


class MeritSummaryResponse(CamelModel):
    total_points: int
    university_merit: int
    faculty_merit: int
    college_merit: int
    club_merit: int
    recent_activities: int
    rank: int
    total_students: int
    target_points: int
    progress_percentage: int
    target_achieved: bool
    remaining_points: int
    exceeded_points: int


class LeaderboardEntry(CamelModel):
    id: int
    student_id: str
    name: str
    faculty: str
    year: int
    total_points: int
    university_merit: int
    faculty_merit: int
    college_merit: int
    club_merit: int


def record_response(record: MeritRecord, event_title: str | None = None) -> MeritRecordResponse:
    return MeritRecordResponse(
        id=record.id,
        student_id=record.student_id,
        event_id=record.event_id,
        event_title=event_title,
        category=EventCategory(record.category),
        points=record.points,
        description=record.description,
        date=record.date.date().isoformat(),
        is_verified=record.is_verified,
        merit_type=record.merit_type,
    )


def summary_response(summary: Summary) -> MeritSummaryResponse:
    totals = summary.totals
    return MeritSummaryResponse(
        total_points=totals.total_points,
        university_merit=totals.university_merit,
        faculty_merit=totals.faculty_merit,
        college_merit=totals.college_merit,
        club_merit=totals.club_merit,
        recent_activities=summary.recent_activities,
        rank=summary.rank,
        total_students=summary.total_students,
        target_points=summary.target_points,
        progress_percentage=summary.progress.progress_percentage,
        target_achieved=summary.progress.target_achieved,
        remaining_points=summary.progress.remaining_points,
        exceeded_points=summary.progress.exceeded_points,
    )


def leaderboard_entry(totals: MeritTotals) -> LeaderboardEntry:
    return LeaderboardEntry(**totals.as_dict())
