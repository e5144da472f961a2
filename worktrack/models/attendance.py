"""
AttendanceRecord model — the attendance ledger.

One row per check-in event, or one placeholder row (no work site) per
employee-day carrying an administrative absence reason.

``work_date`` is the calendar day of ``check_in_time`` in the server timezone.
It is the bucket for the per-day uniqueness constraints and range queries.
Timestamps are stored in UTC.
"""

from __future__ import annotations

import enum
from datetime import date, datetime, timezone

from sqlalchemy import (Column, Date, DateTime, ForeignKey, Index, Integer,
                        String, Text, UniqueConstraint, text)
from sqlalchemy.orm import relationship

from worktrack.db.base import Base


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    LATE = "late"
    ABSENT = "absent"
    SICK = "sick"
    VACATION = "vacation"
    BUSINESS_TRIP = "business_trip"
    NO_REASON = "no_reason"


PRESENCE_STATUSES = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.LATE})
ABSENCE_REASONS = frozenset(
    {
        AttendanceStatus.SICK,
        AttendanceStatus.VACATION,
        AttendanceStatus.BUSINESS_TRIP,
        AttendanceStatus.NO_REASON,
    }
)


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint(
            "employee_id", "work_site_id", "work_date", name="uq_attendance_emp_site_day"
        ),
        # One absence placeholder per employee-day (NULL sites escape the constraint above)
        Index(
            "uq_attendance_placeholder_day",
            "employee_id",
            "work_date",
            unique=True,
            postgresql_where=text("work_site_id IS NULL"),
            sqlite_where=text("work_site_id IS NULL"),
        ),
        Index("ix_attendance_employee_day", "employee_id", "work_date"),
        Index("ix_attendance_employee_open", "employee_id", "check_out_time"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_id: int = Column(Integer, ForeignKey("users.id"), nullable=False)  # type: ignore[assignment]
    work_site_id: int | None = Column(  # type: ignore[assignment]
        Integer, ForeignKey("work_sites.id"), nullable=True
    )
    work_date: date = Column(Date, nullable=False, index=True)  # type: ignore[assignment]
    check_in_time: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]
    check_out_time: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    status: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default=AttendanceStatus.PRESENT.value,
    )
    notes: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    ip_address: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    user_agent: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    deleted_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]

    work_site = relationship("WorkSite", lazy="joined")
