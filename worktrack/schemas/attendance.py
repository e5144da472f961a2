"""Pydantic schemas for check-in/out, absence reasons and reports."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from worktrack.core.config import settings
from worktrack.schemas.user import EmployeeRead
from worktrack.schemas.work_site import WorkSiteSummary
from worktrack.services.clock import ensure_utc

AbsenceReason = Literal["sick", "vacation", "business_trip", "no_reason"]


# ── Check-in / check-out ────────────────────────────────────────────
class CheckInRequest(BaseModel):
    token: str = Field(max_length=64)

    @field_validator("token")
    @classmethod
    def _token(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Check-in code must not be empty")
        return v


class CheckOutRequest(BaseModel):
    check_out_time: datetime | None = None
    notes: str | None = Field(default=None, max_length=1000)


class ManualCheckInRequest(BaseModel):
    employee_id: int
    work_site_id: int
    check_in_time: datetime
    check_out_time: datetime | None = None
    notes: str | None = Field(default=None, max_length=1000)


class AbsenceReasonRequest(BaseModel):
    employee_id: int
    date: date
    reason: AbsenceReason
    notes: str | None = Field(default=None, max_length=1000)


class AttendanceRecordRead(BaseModel):
    id: int
    employee_id: int
    work_site_id: int | None
    work_date: date
    check_in_time: datetime
    check_out_time: datetime | None
    status: str
    notes: str | None
    work_site: WorkSiteSummary | None = None

    model_config = {"from_attributes": True}

    @field_validator("check_in_time", "check_out_time")
    @classmethod
    def _to_server_tz(cls, v: datetime | None) -> datetime | None:
        # SQLite hands back naive UTC
        if v is None:
            return None
        return ensure_utc(v).astimezone(settings.tz)


class CurrentAttendanceResponse(BaseModel):
    attendance: AttendanceRecordRead | None


# ── Calendar grid ───────────────────────────────────────────────────
class GridRowRead(BaseModel):
    employee_id: int
    employee_name: str
    date: date
    status: str
    record_id: int | None
    synthesized: bool
    check_in_time: datetime | None
    check_out_time: datetime | None
    work_site_id: int | None
    work_site_name: str | None
    notes: str | None
    hours: float | None

    model_config = {"from_attributes": True}


class DayBucketRead(BaseModel):
    date: date
    rows: list[GridRowRead]

    model_config = {"from_attributes": True}


class CalendarGridResponse(BaseModel):
    start: date
    end: date
    total_employees: int
    days: list[DayBucketRead]


# ── Tallies ─────────────────────────────────────────────────────────
class TallyRead(BaseModel):
    total_days: int
    present_days: int
    late_days: int
    absent_days: int
    sick_days: int
    vacation_days: int
    business_trip_days: int
    no_reason_days: int
    completed_days: int
    total_hours: float
    average_hours: float

    model_config = {"from_attributes": True}


class EmployeeTallyResponse(BaseModel):
    employee: EmployeeRead
    start: date
    end: date
    stats: TallyRead


class MyStatsResponse(BaseModel):
    start: date
    end: date
    stats: TallyRead
    days: list[GridRowRead]


class EmployeeStats(BaseModel):
    employee: EmployeeRead
    stats: TallyRead


class StatsResponse(BaseModel):
    start: date
    end: date
    total_employees: int
    overall: TallyRead
    employees: list[EmployeeStats]


# ── Health ─────────────────────────────────────────────────────────
class HealthResponse(BaseModel):
    db: bool
    status: str
