"""
Reporting endpoints — calendar grid, CSV export, tallies and health.

Each report loads the range in **one** ledger query and aggregates in Python.
"""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.api.v1.deps import get_db, get_report_service, require_manager
from worktrack.api.v1.serializers import (day_bucket_read, employee_stats,
                                          tally_read)
from worktrack.models.user import User
from worktrack.schemas.attendance import (CalendarGridResponse,
                                          EmployeeTallyResponse,
                                          HealthResponse, StatsResponse)
from worktrack.schemas.user import EmployeeRead
from worktrack.services.export import iter_grid_csv
from worktrack.services.reports import ReportService

router = APIRouter(tags=["reports"])
logger = logging.getLogger(__name__)


# ── Calendar grid ───────────────────────────────────────────────────
@router.get("/reports/grid", response_model=CalendarGridResponse)
async def calendar_grid(
    start: date = Query(...),
    end: date = Query(...),
    employee_ids: list[int] | None = Query(default=None),
    reports: ReportService = Depends(get_report_service),
    _manager: User = Depends(require_manager),
) -> CalendarGridResponse:
    """Day-by-day attendance for the selected (default: all tracked) employees."""
    employees = await reports.resolve_employees(employee_ids)
    grid = await reports.build_grid(employees, start, end)
    return CalendarGridResponse(
        start=start,
        end=end,
        total_employees=len(employees),
        days=[day_bucket_read(b) for b in grid],
    )


@router.get("/reports/grid/csv")
async def calendar_grid_csv(
    start: date = Query(...),
    end: date = Query(...),
    employee_ids: list[int] | None = Query(default=None),
    reports: ReportService = Depends(get_report_service),
    _manager: User = Depends(require_manager),
) -> StreamingResponse:
    """Export the calendar grid as a CSV download."""
    grid = await reports.get_calendar_grid(employee_ids, start, end)
    logger.info("CSV export %s..%s (%d days)", start, end, len(grid))
    return StreamingResponse(
        iter_grid_csv(grid),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f"attachment; filename=attendance_{start}_{end}.csv"
        },
    )


# ── Tallies ─────────────────────────────────────────────────────────
@router.get("/reports/tally/{employee_id}", response_model=EmployeeTallyResponse)
async def employee_tally(
    employee_id: int,
    start: date = Query(...),
    end: date = Query(...),
    reports: ReportService = Depends(get_report_service),
    _manager: User = Depends(require_manager),
) -> EmployeeTallyResponse:
    tally = await reports.get_employee_tally(employee_id, start, end)
    employee = await reports.directory.get(employee_id)
    return EmployeeTallyResponse(
        employee=EmployeeRead.model_validate(employee),
        start=start,
        end=end,
        stats=tally_read(tally),
    )


@router.get("/reports/stats", response_model=StatsResponse)
async def attendance_stats(
    start: date = Query(...),
    end: date = Query(...),
    employee_ids: list[int] | None = Query(default=None),
    work_site_id: int | None = Query(default=None),
    reports: ReportService = Depends(get_report_service),
    _manager: User = Depends(require_manager),
) -> StatsResponse:
    """Per-employee tallies plus the sum over everyone."""
    employees, report = await reports.get_stats(employee_ids, start, end, work_site_id)
    return StatsResponse(
        start=start,
        end=end,
        total_employees=len(employees),
        overall=tally_read(report.overall),
        employees=[employee_stats(e, report.per_employee[e.id]) for e in employees],
    )


# ── Health ──────────────────────────────────────────────────────────
@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Public health check: DB connectivity."""
    try:
        await db.execute(select(1))
    except SQLAlchemyError as e:
        logger.error("Health check DB failure: %s", e)
        return HealthResponse(db=False, status="degraded")
    return HealthResponse(db=True, status="operational")
