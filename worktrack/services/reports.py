"""
Report service — loads ledger data for a range and runs the aggregation engine.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.core.exceptions import ValidationError
from worktrack.models.user import User
from worktrack.services.aggregation import (DayBucket, Tally, TallyReport,
                                            build_calendar_grid, tally_grid)
from worktrack.services.clock import Clock
from worktrack.services.employee_directory import EmployeeDirectory
from worktrack.services.ledger import AttendanceLedger
from worktrack.services.site_registry import SiteRegistry

logger = logging.getLogger(__name__)


def validate_range(start: date, end: date) -> None:
    if start > end:
        raise ValidationError("Start date must not be after end date")


class ReportService:
    def __init__(self, db: AsyncSession, clock: Clock) -> None:
        self.db = db
        self.clock = clock
        self.ledger = AttendanceLedger(db)
        self.directory = EmployeeDirectory(db)

    async def resolve_employees(self, employee_ids: Sequence[int] | None) -> list[User]:
        """Explicit ids in caller order, or every tracked employee when ``None``.

        An explicit empty selection stays empty.
        """
        if employee_ids is not None:
            return await self.directory.get_many(employee_ids)
        return await self.directory.list_tracked()

    async def build_grid(
        self,
        employees: Sequence[User],
        start: date,
        end: date,
        work_site_id: int | None = None,
    ) -> list[DayBucket]:
        """Grid for *employees*; with *work_site_id*, only that site's check-ins
        and site-less absence reasons count as recorded days."""
        validate_range(start, end)
        if work_site_id is not None:
            await SiteRegistry(self.db).get(work_site_id)
        if not employees:
            return []
        records = await self.ledger.list_range(
            [e.id for e in employees], start, end, work_site_id=work_site_id
        )
        grid = build_calendar_grid(employees, records, start, end, self.clock.tz)
        logger.debug(
            "Grid %s..%s: %d employees, %d records, %d days",
            start,
            end,
            len(employees),
            len(records),
            len(grid),
        )
        return grid

    async def get_calendar_grid(
        self, employee_ids: Sequence[int] | None, start: date, end: date
    ) -> list[DayBucket]:
        validate_range(start, end)
        employees = await self.resolve_employees(employee_ids)
        return await self.build_grid(employees, start, end)

    async def get_employee_tally(self, employee_id: int, start: date, end: date) -> Tally:
        validate_range(start, end)
        employee = await self.directory.get(employee_id)
        grid = await self.build_grid([employee], start, end)
        return tally_grid(grid, [employee.id]).per_employee[employee.id]

    async def get_stats(
        self,
        employee_ids: Sequence[int] | None,
        start: date,
        end: date,
        work_site_id: int | None = None,
    ) -> tuple[list[User], TallyReport]:
        validate_range(start, end)
        employees = await self.resolve_employees(employee_ids)
        grid = await self.build_grid(employees, start, end, work_site_id)
        return employees, tally_grid(grid, [e.id for e in employees])
