"""Deterministic merit aggregation: category buckets, progress, ranking.

Every ordering here is total: selected points DESC, then university student
number ASC (students without one sort last), then internal id ASC. Equal
inputs always produce the same ranks.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from merit.db.enums import EventCategory

CATEGORY_FIELDS: dict[str, str] = {
    EventCategory.UNIVERSITY.value: "university_merit",
    EventCategory.FACULTY.value: "faculty_merit",
    EventCategory.COLLEGE.value: "college_merit",
    EventCategory.CLUB.value: "club_merit",
}

SORT_FIELDS: dict[str, str] = {
    "total": "total_points",
    "university": "university_merit",
    "faculty": "faculty_merit",
    "college": "college_merit",
    "club": "club_merit",
}


@dataclass
class MeritTotals:
    """Point totals for one student, overall and per category."""

    id: int
    student_id: str = ""
    name: str = ""
    faculty: str = ""
    year: int = 0
    total_points: int = 0
    university_merit: int = 0
    faculty_merit: int = 0
    college_merit: int = 0
    club_merit: int = 0

    def add(self, category: str | None, points: int) -> None:
        """Add points to the total and to the category bucket (unknown categories count only in the total)."""
        self.total_points += points
        bucket = CATEGORY_FIELDS.get(category or "")
        if bucket:
            setattr(self, bucket, getattr(self, bucket) + points)

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "student_id": self.student_id,
            "name": self.name,
            "faculty": self.faculty,
            "year": self.year,
            "total_points": self.total_points,
            "university_merit": self.university_merit,
            "faculty_merit": self.faculty_merit,
            "college_merit": self.college_merit,
            "club_merit": self.club_merit,
        }


@dataclass
class Progress:
    progress_percentage: int
    target_achieved: bool
    remaining_points: int
    exceeded_points: int


@dataclass
class Summary:
    totals: MeritTotals
    recent_activities: int
    rank: int
    total_students: int
    target_points: int
    progress: Progress


def totals_from_records(user_id: int, records: Iterable[tuple[str | None, int]]) -> MeritTotals:
    """Sum (category, points) pairs into a MeritTotals."""
    totals = MeritTotals(id=user_id)
    for category, points in records:
        totals.add(category, points)
    return totals


def compute_progress(total: int, target: int) -> Progress:
    """Progress towards ``target``; percentage is rounded half-up and capped at 100."""
    if target <= 0:
        return Progress(100, True, 0, max(total, 0))
    percentage = min(math.floor(total * 100 / target + 0.5), 100)
    achieved = total >= target
    return Progress(
        progress_percentage=max(percentage, 0),
        target_achieved=achieved,
        remaining_points=max(target - total, 0),
        exceeded_points=max(total - target, 0),
    )


def _sort_key(entry: MeritTotals, attr: str) -> tuple[int, bool, str, int]:
    return (-getattr(entry, attr), entry.student_id == "", entry.student_id, entry.id)


def sort_leaderboard(entries: Iterable[MeritTotals], sort_by: str = "total") -> list[MeritTotals]:
    """Order students descending by the chosen dimension.

    Raises:
        ValueError: If ``sort_by`` is not one of SORT_FIELDS.
    """
    attr = SORT_FIELDS.get(sort_by)
    if attr is None:
        msg = f"Unknown sort field: {sort_by}"
        raise ValueError(msg)
    return sorted(entries, key=lambda e: _sort_key(e, attr))


def rank_of(entries: Iterable[MeritTotals], user_id: int) -> int:
    """1-based position of ``user_id`` by total points; 1 when not ranked."""
    for position, entry in enumerate(sort_leaderboard(entries, "total"), start=1):
        if entry.id == user_id:
            return position
    return 1
