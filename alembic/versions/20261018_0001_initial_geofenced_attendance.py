"""initial: users, attendance_locations, work_schedules, user_schedules, attendances

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column(
            "id",
            postgresql.UUID(as_uuid=True),
            nullable=False,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column(
            "role",
            sa.Enum("admin", "user", name="user_role"),
            nullable=False,
            server_default="user",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    # --- attendance_locations ---
    op.create_table(
        "attendance_locations",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("radius", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", postgresql.UUID(as_uuid=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("radius > 0", name="ck_location_radius_positive"),
    )
    op.create_index("ix_location_active", "attendance_locations", ["is_active"])

    # --- work_schedules ---
    op.create_table(
        "work_schedules",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("check_in_start", sa.Time(), nullable=False),
        sa.Column("check_in_end", sa.Time(), nullable=False),
        sa.Column("check_out_start", sa.Time(), nullable=False),
        sa.Column("work_days", postgresql.ARRAY(sa.Integer()), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "check_in_start <= check_in_end AND check_in_end <= check_out_start",
            name="ck_schedule_window_order",
        ),
    )

    # --- user_schedules ---
    op.create_table(
        "user_schedules",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("schedule_id", sa.Integer(), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("effective_to", sa.Date(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["schedule_id"], ["work_schedules.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["location_id"], ["attendance_locations.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "effective_from", name="uq_user_schedule_start"),
    )
    op.create_index("ix_user_schedule_user", "user_schedules", ["user_id"])
    op.create_index("ix_user_schedule_dates", "user_schedules", ["effective_from", "effective_to"])

    # --- attendances ---
    op.create_table(
        "attendances",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("location_id", sa.Integer(), nullable=False),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("check_in_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("check_out_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_in_latitude", sa.Float(), nullable=False),
        sa.Column("check_in_longitude", sa.Float(), nullable=False),
        sa.Column("check_out_latitude", sa.Float(), nullable=True),
        sa.Column("check_out_longitude", sa.Float(), nullable=True),
        sa.Column("distance_from_location", sa.Numeric(10, 2), nullable=False),
        sa.Column(
            "status",
            sa.Enum("present", "late", "half_day", name="attendance_status"),
            nullable=False,
            server_default="present",
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("photo_url", sa.String(500), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["location_id"], ["attendance_locations.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "work_date", name="uq_attendance_user_day"),
    )
    op.create_index("ix_attendance_location", "attendances", ["location_id"])
    op.create_index("ix_attendance_check_in_time", "attendances", ["check_in_time"])
    op.create_index("ix_attendance_status", "attendances", ["status"])


def downgrade() -> None:
    op.drop_index("ix_attendance_status", table_name="attendances")
    op.drop_index("ix_attendance_check_in_time", table_name="attendances")
    op.drop_index("ix_attendance_location", table_name="attendances")
    op.drop_table("attendances")
    op.drop_index("ix_user_schedule_dates", table_name="user_schedules")
    op.drop_index("ix_user_schedule_user", table_name="user_schedules")
    op.drop_table("user_schedules")
    op.drop_table("work_schedules")
    op.drop_index("ix_location_active", table_name="attendance_locations")
    op.drop_table("attendance_locations")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS attendance_status")
    op.execute("DROP TYPE IF EXISTS user_role")
