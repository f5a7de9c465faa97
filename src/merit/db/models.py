"""ORM models for users, events, registrations and the merit ledger."""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from merit.db.base import Base, BigIntPK
from merit.db.enums import EventStatus, RegistrationStatus, UserRole


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """A student or administrator. Created on first sign-in (upsert by email)."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=UserRole.STUDENT.value)

    # --- Student profile ---
    student_id: Mapped[str | None] = mapped_column(String(32), unique=True, nullable=True)
    faculty: Mapped[str | None] = mapped_column(String(128), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    program: Mapped[str | None] = mapped_column(String(128), nullable=True)
    enrollment_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Maintained in the same transaction as every MeritRecord insert.
    total_merit_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now(), onupdate=_utcnow
    )

    registrations: Mapped[list[EventRegistration]] = relationship(
        "EventRegistration", back_populates="student", cascade="all, delete-orphan"
    )
    merit_records: Mapped[list[MeritRecord]] = relationship(
        "MeritRecord", back_populates="student", cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class Event(Base):
    """A scheduled activity that awards merit points on attendance."""

    __tablename__ = "events"
    __table_args__ = (Index("idx_events_date", "date"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    time: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    location: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    organizer: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=EventStatus.UPCOMING.value)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now(), onupdate=_utcnow
    )

    registrations: Mapped[list[EventRegistration]] = relationship(
        "EventRegistration", back_populates="event", cascade="all, delete-orphan"
    )


# ---------------------------------------------------------------------------
# Event Registrations
# ---------------------------------------------------------------------------


class EventRegistration(Base):
    """One student's place (confirmed, waitlisted, cancelled or attended) in an event."""

    __tablename__ = "event_registrations"
    __table_args__ = (
        UniqueConstraint("event_id", "student_id", name="uq_event_registrations_event_student"),
        Index("idx_event_registrations_queue", "event_id", "status", "registration_date"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    event_id: Mapped[int] = mapped_column(BigIntPK, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[int] = mapped_column(BigIntPK, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    registration_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=RegistrationStatus.REGISTERED.value)
    attendance_marked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    points_awarded: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now(), onupdate=_utcnow
    )

    event: Mapped[Event] = relationship("Event", back_populates="registrations")
    student: Mapped[User] = relationship("User", back_populates="registrations")


# ---------------------------------------------------------------------------
# Merit Ledger
# ---------------------------------------------------------------------------


class MeritRecord(Base):
    """Immutable ledger entry granting points to a student."""

    __tablename__ = "merit_records"
    __table_args__ = (Index("idx_merit_records_student_date", "student_id", "date"),)

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(BigIntPK, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    event_id: Mapped[int | None] = mapped_column(
        BigIntPK, ForeignKey("events.id", ondelete="SET NULL"), nullable=True
    )
    category: Mapped[str] = mapped_column(String(16), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(String(512), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    merit_type: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    student: Mapped[User] = relationship("User", back_populates="merit_records")
    event: Mapped[Event | None] = relationship("Event")
