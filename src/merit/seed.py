"""Demo data: two administrators, five students, eight events and their ledgers.

Run with ``python -m merit.seed``. Existing rows are deleted first, so the
script can be re-run to get back to a known state.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta, timezone

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from merit.config import get_settings
from merit.database import close_db, get_session, init_db
from merit.db.enums import EventCategory, EventStatus, RegistrationStatus, UserRole
from merit.db.models import Event, EventRegistration, MeritRecord, User
from merit.merits.service import record_merit
from merit.middleware.logging import setup_logging
from merit.registrations.service import register

logger = structlog.get_logger()

ADMIN_SEED_DATA: list[dict] = [
    {"name": "Admin User", "email": "admin@upm.edu.my"},
    {"name": "System Administrator", "email": "sysadmin@upm.edu.my"},
]

STUDENT_SEED_DATA: list[dict] = [
    {
        "name": "Ahmad Hafiz bin Abdullah",
        "email": "ahmad.hafiz@student.upm.edu.my",
        "student_id": "S12345678",
        "faculty": "Faculty of Engineering",
        "year": 3,
        "program": "Software Engineering",
        "enrollment_date": date(2022, 9, 1),
    },
    {
        "name": "Siti Nurhaliza binti Hassan",
        "email": "siti.nurhaliza@student.upm.edu.my",
        "student_id": "S23456789",
        "faculty": "Faculty of Computer Science",
        "year": 2,
        "program": "Computer Science",
        "enrollment_date": date(2023, 9, 1),
    },
    {
        "name": "Muhammad Azmi bin Yusof",
        "email": "azmi.yusof@student.upm.edu.my",
        "student_id": "S34567890",
        "faculty": "Faculty of Engineering",
        "year": 4,
        "program": "Electrical Engineering",
        "enrollment_date": date(2021, 9, 1),
    },
    {
        "name": "Nurul Izzah binti Rahman",
        "email": "nurul.izzah@student.upm.edu.my",
        "student_id": "S45678901",
        "faculty": "Faculty of Science",
        "year": 1,
        "program": "Biotechnology",
        "enrollment_date": date(2024, 9, 1),
    },
    {
        "name": "Lee Wei Ming",
        "email": "lee.weiming@student.upm.edu.my",
        "student_id": "S56789012",
        "faculty": "Faculty of Computer Science",
        "year": 3,
        "program": "Information Technology",
        "enrollment_date": date(2022, 9, 1),
    },
]

# ``days`` is the offset from now; negative offsets are past (completed) events.
EVENT_SEED_DATA: list[dict] = [
    {
        "title": "UPM Innovation Summit",
        "description": "Annual summit showcasing student research and projects.",
        "days": 7,
        "time": "09:00 AM - 5:00 PM",
        "location": "Dewan Besar, Canselori Putra",
        "organizer": "Office of Innovation and Commercialization",
        "category": EventCategory.UNIVERSITY,
        "points": 50,
        "capacity": 500,
    },
    {
        "title": "Engineering Faculty Career Fair",
        "description": "Meet employers from engineering industries. Internships available.",
        "days": 14,
        "time": "10:00 AM - 4:00 PM",
        "location": "Faculty of Engineering Hall",
        "organizer": "Faculty of Engineering",
        "category": EventCategory.FACULTY,
        "points": 30,
        "capacity": 300,
    },
    {
        "title": "Hackathon: Code for Change",
        "description": "48-hour coding marathon building solutions for social good.",
        "days": 21,
        "time": "Friday 6:00 PM - Sunday 6:00 PM",
        "location": "Computer Science Lab, Block A",
        "organizer": "Computer Science Students Association",
        "category": EventCategory.COLLEGE,
        "points": 75,
        "capacity": 100,
    },
    {
        "title": "Photography Club Workshop: Portrait Lighting",
        "description": "Professional portrait lighting techniques. Bring your camera.",
        "days": 1,
        "time": "2:00 PM - 5:00 PM",
        "location": "Photography Club Studio, Kolej Tun Dr. Ismail",
        "organizer": "UPM Photography Club",
        "category": EventCategory.CLUB,
        "points": 15,
        "capacity": 2,
    },
    {
        "title": "Research Methodology Seminar",
        "description": "Research methodologies and academic writing for final year students.",
        "days": 10,
        "time": "9:00 AM - 12:00 PM",
        "location": "Bilik Seminar, Perpustakaan Sultanah Zanariah",
        "organizer": "Graduate School",
        "category": EventCategory.UNIVERSITY,
        "points": 40,
        "capacity": 150,
    },
    {
        "title": "UPM Sports Day",
        "description": "Inter-faculty sports competition.",
        "days": -30,
        "time": "8:00 AM - 6:00 PM",
        "location": "UPM Sports Complex",
        "organizer": "Sports and Recreation Unit",
        "category": EventCategory.UNIVERSITY,
        "points": 35,
        "capacity": 1000,
    },
    {
        "title": "Leadership Training Camp",
        "description": "Three-day leadership development camp for student leaders.",
        "days": -7,
        "time": "All Day",
        "location": "Port Dickson, Negeri Sembilan",
        "organizer": "Student Affairs Division",
        "category": EventCategory.UNIVERSITY,
        "points": 60,
        "capacity": 80,
    },
    {
        "title": "Charity Run for Education",
        "description": "10km charity run raising funds for underprivileged students.",
        "days": -37,
        "time": "6:00 AM - 10:00 AM",
        "location": "UPM Campus Loop",
        "organizer": "UPM Volunteer Club",
        "category": EventCategory.CLUB,
        "points": 25,
        "capacity": 500,
    },
]

# (student index, category, points, description, date, merit type)
ADDITIONAL_MERITS: list[tuple[int, EventCategory, int, str, date, str]] = [
    (0, EventCategory.UNIVERSITY, 20, "Dean's List Award", date(2024, 12, 1), "Academic Achievement"),
    (1, EventCategory.FACULTY, 15, "Best Student Project Award", date(2024, 11, 15), "Academic Achievement"),
    (2, EventCategory.CLUB, 10, "Community Service - Beach Cleanup", date(2024, 10, 20), "Volunteer Work"),
    (0, EventCategory.UNIVERSITY, 18, "Inter-University Debate - 2nd Place", date(2024, 9, 30), "Competition"),
]


def _avatar(seed: str) -> str:
    return f"https://api.dicebear.com/7.x/avataaars/svg?seed={seed}"


async def reset(db: AsyncSession) -> None:
    """Delete all rows, children first."""
    for model in (MeritRecord, EventRegistration, Event, User):
        await db.execute(delete(model))
    await db.commit()
    db.expunge_all()


async def seed_users(db: AsyncSession) -> list[User]:
    """Create administrators and students; returns the students."""
    for admin in ADMIN_SEED_DATA:
        db.add(
            User(
                **admin,
                email_verified=True,
                role=UserRole.ADMIN.value,
                image=_avatar(admin["email"].split("@")[0]),
            )
        )

    students = [
        User(
            **data,
            email_verified=True,
            role=UserRole.STUDENT.value,
            total_merit_points=0,
            image=_avatar(data["email"].split(".")[0]),
        )
        for data in STUDENT_SEED_DATA
    ]
    db.add_all(students)
    await db.commit()
    return students


async def seed_events(db: AsyncSession, now: datetime) -> list[Event]:
    events = []
    for data in EVENT_SEED_DATA:
        fields = {k: v for k, v in data.items() if k not in ("days", "category")}
        past = data["days"] < 0
        events.append(
            Event(
                **fields,
                date=now + timedelta(days=data["days"]),
                category=data["category"].value,
                status=(EventStatus.COMPLETED if past else EventStatus.UPCOMING).value,
                image_url=f"https://picsum.photos/seed/{data['title'].split()[0].lower()}/800/400",
            )
        )
    db.add_all(events)
    await db.commit()
    return events


async def seed_attendance(db: AsyncSession, events: list[Event], students: list[User]) -> int:
    """Every student attended every completed event."""
    created = 0
    for event in events:
        if event.status != EventStatus.COMPLETED.value:
            continue
        for student in students:
            db.add(
                EventRegistration(
                    event_id=event.id,
                    student_id=student.id,
                    registration_date=event.date - timedelta(days=7),
                    status=RegistrationStatus.ATTENDED.value,
                    attendance_marked=True,
                    points_awarded=event.points,
                )
            )
            await record_merit(
                db,
                student_id=student.id,
                category=event.category,
                points=event.points,
                description=f"Attended {event.title}",
                event_id=event.id,
                date=event.date,
                is_verified=True,
                merit_type="Event Attendance",
            )
            created += 1
    await db.commit()
    return created


async def seed_upcoming_registrations(db: AsyncSession, events: list[Event], students: list[User]) -> int:
    """Register the first three students for each upcoming event, through normal admission."""
    created = 0
    for event in events:
        if event.status != EventStatus.UPCOMING.value:
            continue
        for student in students[:3]:
            await register(db, event.id, student.id)
            created += 1
    return created


async def seed_additional_merits(db: AsyncSession, students: list[User]) -> int:
    for index, category, points, description, when, merit_type in ADDITIONAL_MERITS:
        await record_merit(
            db,
            student_id=students[index].id,
            category=category.value,
            points=points,
            description=description,
            date=datetime(when.year, when.month, when.day, tzinfo=timezone.utc),
            is_verified=True,
            merit_type=merit_type,
        )
    await db.commit()
    return len(ADDITIONAL_MERITS)


async def seed_all(db: AsyncSession, now: datetime | None = None) -> dict[str, int]:
    """Reset and repopulate the database. Returns row counts per table."""
    now = now or datetime.now(timezone.utc)
    await reset(db)
    students = await seed_users(db)
    events = await seed_events(db, now)
    await seed_attendance(db, events, students)
    await seed_upcoming_registrations(db, events, students)
    await seed_additional_merits(db, students)

    counts = {}
    for model in (User, Event, EventRegistration, MeritRecord):
        result = await db.execute(select(func.count()).select_from(model))
        counts[model.__tablename__] = int(result.scalar_one())
    logger.info("seed_complete", **counts)
    return counts


async def main() -> None:
    settings = get_settings()
    setup_logging(settings)
    await init_db(settings.database_url)
    try:
        async for db in get_session():
            await seed_all(db)
            break
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
