"""
Attendance Ledger — queries over ``attendance_records``.

The ledger never commits; the lifecycle service owns the transaction.
Soft-deleted rows are invisible to reads, but still occupy their slot in the
per-day uniqueness constraints, so the duplicate check counts them too.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.models.attendance import AttendanceRecord


def _live() -> Select:
    return select(AttendanceRecord).where(AttendanceRecord.deleted_at.is_(None))


class AttendanceLedger:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_site_check_in(
        self, employee_id: int, work_site_id: int, day: date
    ) -> AttendanceRecord | None:
        result = await self.db.execute(
            select(AttendanceRecord)
            .where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.work_site_id == work_site_id,
                AttendanceRecord.work_date == day,
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def has_any_site_check_in(self, employee_id: int, day: date) -> bool:
        result = await self.db.execute(
            _live()
            .where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.work_site_id.is_not(None),
                AttendanceRecord.work_date == day,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def find_latest_open(
        self, employee_id: int, *, lock: bool = False
    ) -> AttendanceRecord | None:
        """Most recent site-bound record without a check-out.

        Several may be open at once (multi-site days, manual entries); the
        latest check-in wins. Absence placeholders are never open.
        """
        stmt = (
            _live()
            .where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.work_site_id.is_not(None),
                AttendanceRecord.check_out_time.is_(None),
            )
            .order_by(AttendanceRecord.check_in_time.desc(), AttendanceRecord.id.desc())
            .limit(1)
        )
        if lock:
            stmt = stmt.with_for_update(of=AttendanceRecord)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_for_day(
        self, employee_id: int, day: date, *, lock: bool = False
    ) -> AttendanceRecord | None:
        """The record that represents *day* for the employee: earliest check-in wins."""
        stmt = (
            _live()
            .where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.work_date == day,
            )
            .order_by(AttendanceRecord.check_in_time.asc(), AttendanceRecord.id.asc())
            .limit(1)
        )
        if lock:
            stmt = stmt.with_for_update(of=AttendanceRecord)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_placeholder(
        self, employee_id: int, day: date, *, lock: bool = False
    ) -> AttendanceRecord | None:
        """The site-less record for *day*, soft-deleted or not.

        It owns the single placeholder slot of that employee-day.
        """
        stmt = select(AttendanceRecord).where(
            AttendanceRecord.employee_id == employee_id,
            AttendanceRecord.work_site_id.is_(None),
            AttendanceRecord.work_date == day,
        )
        if lock:
            stmt = stmt.with_for_update(of=AttendanceRecord)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def site_has_records(self, work_site_id: int) -> bool:
        result = await self.db.execute(
            select(AttendanceRecord.id)
            .where(AttendanceRecord.work_site_id == work_site_id)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_range(
        self,
        employee_ids: Sequence[int],
        start: date,
        end: date,
        *,
        work_site_id: int | None = None,
    ) -> list[AttendanceRecord]:
        """All live records with ``start <= work_date <= end`` in one query.

        With *work_site_id*, check-ins at other sites are left out; site-less
        absence reasons are kept.
        """
        if not employee_ids:
            return []
        stmt = _live().where(
            AttendanceRecord.employee_id.in_(list(employee_ids)),
            AttendanceRecord.work_date >= start,
            AttendanceRecord.work_date <= end,
        )
        if work_site_id is not None:
            stmt = stmt.where(
                or_(
                    AttendanceRecord.work_site_id == work_site_id,
                    AttendanceRecord.work_site_id.is_(None),
                )
            )
        result = await self.db.execute(
            stmt.order_by(AttendanceRecord.work_date, AttendanceRecord.check_in_time)
        )
        return list(result.scalars().all())
