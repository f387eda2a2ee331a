import uuid
from datetime import date, datetime, time

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Time,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(
        Enum("admin", "user", name="user_role"),
        nullable=False,
        default="user",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    attendances: Mapped[list["Attendance"]] = relationship(
        "Attendance", back_populates="user", lazy="raise"
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"


class AttendanceLocation(Base):
    __tablename__ = "attendance_locations"

    __table_args__ = (
        CheckConstraint("radius > 0", name="ck_location_radius_positive"),
        Index("ix_location_active", "is_active"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    radius: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AttendanceLocation id={self.id} name={self.name} radius={self.radius}>"


class WorkSchedule(Base):
    __tablename__ = "work_schedules"

    __table_args__ = (
        CheckConstraint(
            "check_in_start <= check_in_end AND check_in_end <= check_out_start",
            name="ck_schedule_window_order",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    check_in_start: Mapped[time] = mapped_column(Time, nullable=False)
    check_in_end: Mapped[time] = mapped_column(Time, nullable=False)
    check_out_start: Mapped[time] = mapped_column(Time, nullable=False)
    # ISO weekdays: 1 = Monday ... 7 = Sunday
    work_days: Mapped[list[int]] = mapped_column(ARRAY(Integer), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<WorkSchedule id={self.id} name={self.name}>"


class UserSchedule(Base):
    __tablename__ = "user_schedules"

    __table_args__ = (
        UniqueConstraint("user_id", "effective_from", name="uq_user_schedule_start"),
        Index("ix_user_schedule_user", "user_id"),
        Index("ix_user_schedule_dates", "effective_from", "effective_to"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    schedule_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("work_schedules.id", ondelete="RESTRICT"),
        nullable=False,
    )
    location_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("attendance_locations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    # Exclusive upper bound; NULL means open-ended
    effective_to: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    schedule: Mapped["WorkSchedule"] = relationship("WorkSchedule", lazy="raise")
    location: Mapped["AttendanceLocation"] = relationship("AttendanceLocation", lazy="raise")

    def __repr__(self) -> str:
        return (
            f"<UserSchedule id={self.id} user_id={self.user_id} "
            f"schedule_id={self.schedule_id} from={self.effective_from} to={self.effective_to}>"
        )


class Attendance(Base):
    __tablename__ = "attendances"

    __table_args__ = (
        UniqueConstraint("user_id", "work_date", name="uq_attendance_user_day"),
        Index("ix_attendance_location", "location_id"),
        Index("ix_attendance_check_in_time", "check_in_time"),
        Index("ix_attendance_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    location_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("attendance_locations.id", ondelete="RESTRICT"),
        nullable=False,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    check_in_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    check_out_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    check_in_latitude: Mapped[float] = mapped_column(Float, nullable=False)
    check_in_longitude: Mapped[float] = mapped_column(Float, nullable=False)
    check_out_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    check_out_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    distance_from_location: Mapped[float] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        Enum("present", "late", "half_day", name="attendance_status"),
        nullable=False,
        default="present",
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    user: Mapped["User"] = relationship("User", back_populates="attendances", lazy="raise")
    location: Mapped["AttendanceLocation"] = relationship("AttendanceLocation", lazy="raise")

    def __repr__(self) -> str:
        return (
            f"<Attendance id={self.id} user_id={self.user_id} "
            f"work_date={self.work_date} status={self.status}>"
        )
