"""Initial schema: users, events, event registrations, merit ledger.

Revision ID: 001_initial_schema
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create the four core tables."""
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(128), nullable=True),
        sa.Column("email_verified", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("role", sa.String(16), server_default="STUDENT", nullable=False),
        sa.Column("student_id", sa.String(32), nullable=True),
        sa.Column("faculty", sa.String(128), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("program", sa.String(128), nullable=True),
        sa.Column("enrollment_date", sa.Date(), nullable=True),
        sa.Column("total_merit_points", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("student_id", name="uq_users_student_id"),
        sa.CheckConstraint("role IN ('STUDENT', 'ADMIN')", name="ck_users_role"),
    )

    # --- events ---
    op.create_table(
        "events",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(256), nullable=False),
        sa.Column("description", sa.Text(), server_default="", nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("time", sa.String(32), server_default="", nullable=False),
        sa.Column("location", sa.String(256), server_default="", nullable=False),
        sa.Column("organizer", sa.String(256), server_default="", nullable=False),
        sa.Column("category", sa.String(16), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(16), server_default="UPCOMING", nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("category IN ('UNIVERSITY', 'FACULTY', 'COLLEGE', 'CLUB')", name="ck_events_category"),
        sa.CheckConstraint(
            "status IN ('UPCOMING', 'ONGOING', 'COMPLETED', 'CANCELLED')", name="ck_events_status"
        ),
        sa.CheckConstraint("capacity >= 0", name="ck_events_capacity"),
        sa.CheckConstraint("points >= 0", name="ck_events_points"),
    )
    op.create_index("idx_events_date", "events", ["date"])

    # --- event_registrations ---
    op.create_table(
        "event_registrations",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.BigInteger(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("student_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("registration_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(16), server_default="REGISTERED", nullable=False),
        sa.Column("attendance_marked", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("points_awarded", sa.Integer(), server_default="0", nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("event_id", "student_id", name="uq_event_registrations_event_student"),
        sa.CheckConstraint(
            "status IN ('REGISTERED', 'WAITLISTED', 'CANCELLED', 'ATTENDED')",
            name="ck_event_registrations_status",
        ),
    )
    op.create_index(
        "idx_event_registrations_queue", "event_registrations", ["event_id", "status", "registration_date"]
    )

    # --- merit_records ---
    op.create_table(
        "merit_records",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("student_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_id", sa.BigInteger(), sa.ForeignKey("events.id", ondelete="SET NULL"), nullable=True),
        sa.Column("category", sa.String(16), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(512), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_verified", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("merit_type", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("points > 0", name="ck_merit_records_points"),
    )
    op.create_index("idx_merit_records_student_date", "merit_records", ["student_id", "date"])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index("idx_merit_records_student_date", table_name="merit_records")
    op.drop_table("merit_records")
    op.drop_index("idx_event_registrations_queue", table_name="event_registrations")
    op.drop_table("event_registrations")
    op.drop_index("idx_events_date", table_name="events")
    op.drop_table("events")
    op.drop_table("users")
