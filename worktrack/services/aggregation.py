"""
Calendar grid reconstruction and tallies.

``build_calendar_grid`` turns the ledger rows of a date range into one row per
(employee, working day): recorded days come back verbatim, weekdays without a
record are synthesized as ``absent``, and weekends without a record produce
no row at all. Records are indexed once by (employee_id, day) so the grid is
a single pass over days x employees.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo

from worktrack.models.attendance import AttendanceRecord, AttendanceStatus
from worktrack.models.user import User
from worktrack.services.clock import ensure_utc


@dataclass(frozen=True)
class GridRow:
    employee_id: int
    employee_name: str
    date: date
    status: str
    record_id: int | None = None
    check_in_time: datetime | None = None
    check_out_time: datetime | None = None
    work_site_id: int | None = None
    work_site_name: str | None = None
    notes: str | None = None

    @property
    def synthesized(self) -> bool:
        return self.record_id is None

    @property
    def hours(self) -> float | None:
        if self.check_in_time is None or self.check_out_time is None:
            return None
        return round((self.check_out_time - self.check_in_time).total_seconds() / 3600, 2)


@dataclass(frozen=True)
class DayBucket:
    date: date
    rows: list[GridRow]


def iter_days(start: date, end: date) -> Iterator[date]:
    """Every calendar day from *start* to *end*, inclusive."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5  # Sat=5, Sun=6


def index_records(
    records: Iterable[AttendanceRecord],
) -> dict[tuple[int, date], AttendanceRecord]:
    """Map (employee_id, day) to the record that represents it.

    When several records share a day (multi-site check-ins, a placeholder
    next to a check-in) the earliest check-in wins.
    """
    index: dict[tuple[int, date], AttendanceRecord] = {}
    for rec in records:
        key = (rec.employee_id, rec.work_date)
        current = index.get(key)
        if current is None or ensure_utc(rec.check_in_time) < ensure_utc(current.check_in_time):
            index[key] = rec
    return index


def _recorded_row(employee: User, day: date, rec: AttendanceRecord, tz: tzinfo) -> GridRow:
    site = rec.work_site
    return GridRow(
        employee_id=employee.id,
        employee_name=employee.full_name,
        date=day,
        status=rec.status,
        record_id=rec.id,
        check_in_time=ensure_utc(rec.check_in_time).astimezone(tz),
        check_out_time=ensure_utc(rec.check_out_time).astimezone(tz) if rec.check_out_time else None,
        work_site_id=rec.work_site_id,
        work_site_name=site.name if site is not None else None,
        notes=rec.notes,
    )


def build_calendar_grid(
    employees: Sequence[User],
    records: Iterable[AttendanceRecord],
    start: date,
    end: date,
    tz: tzinfo,
) -> list[DayBucket]:
    if not employees or start > end:
        return []

    index = index_records(records)
    buckets: list[DayBucket] = []
    for day in iter_days(start, end):
        weekend = is_weekend(day)
        rows: list[GridRow] = []
        for emp in employees:
            rec = index.get((emp.id, day))
            if rec is not None:
                rows.append(_recorded_row(emp, day, rec, tz))
            elif not weekend:
                rows.append(
                    GridRow(
                        employee_id=emp.id,
                        employee_name=emp.full_name,
                        date=day,
                        status=AttendanceStatus.ABSENT.value,
                    )
                )
        buckets.append(DayBucket(date=day, rows=rows))
    return buckets


# ── Tallies ─────────────────────────────────────────────────────────
_STATUS_FIELDS = {
    AttendanceStatus.PRESENT.value: "present_days",
    AttendanceStatus.LATE.value: "late_days",
    AttendanceStatus.ABSENT.value: "absent_days",
    AttendanceStatus.SICK.value: "sick_days",
    AttendanceStatus.VACATION.value: "vacation_days",
    AttendanceStatus.BUSINESS_TRIP.value: "business_trip_days",
    AttendanceStatus.NO_REASON.value: "no_reason_days",
}


@dataclass
class Tally:
    total_days: int = 0
    present_days: int = 0
    late_days: int = 0
    absent_days: int = 0
    sick_days: int = 0
    vacation_days: int = 0
    business_trip_days: int = 0
    no_reason_days: int = 0
    completed_days: int = 0
    total_hours: float = 0.0

    @property
    def average_hours(self) -> float:
        if not self.completed_days:
            return 0.0
        return round(self.total_hours / self.completed_days, 2)

    def add(self, row: GridRow) -> None:
        self.total_days += 1
        status_field = _STATUS_FIELDS.get(row.status)
        if status_field is not None:
            setattr(self, status_field, getattr(self, status_field) + 1)
        hours = row.hours
        if hours is not None:
            self.completed_days += 1
            self.total_hours = round(self.total_hours + hours, 2)


@dataclass
class TallyReport:
    per_employee: dict[int, Tally] = field(default_factory=dict)
    overall: Tally = field(default_factory=Tally)


def tally_grid(grid: Iterable[DayBucket], employee_ids: Iterable[int] = ()) -> TallyReport:
    """Count grid rows per employee; *employee_ids* get an entry even with no rows."""
    report = TallyReport(per_employee={eid: Tally() for eid in employee_ids})
    for bucket in grid:
        for row in bucket.rows:
            report.per_employee.setdefault(row.employee_id, Tally()).add(row)
            report.overall.add(row)
    return report
