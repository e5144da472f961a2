"""
Attendance lifecycle endpoints — check-in, check-out, absence reasons.

- Check-in / check-out / current / my-stats: any authenticated user, for themselves.
- Manual entries, check-out on behalf and absence reasons: managers only.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query, Request

from worktrack.api.v1.deps import (get_attendance_service,
                                   get_current_active_user, get_report_service,
                                   require_manager)
from worktrack.api.v1.serializers import grid_row_read, tally_read
from worktrack.models.attendance import AttendanceRecord
from worktrack.models.user import User
from worktrack.schemas.attendance import (AbsenceReasonRequest,
                                          AttendanceRecordRead,
                                          CheckInRequest, CheckOutRequest,
                                          CurrentAttendanceResponse,
                                          ManualCheckInRequest,
                                          MyStatsResponse)
from worktrack.services.aggregation import tally_grid
from worktrack.services.lifecycle import AttendanceService
from worktrack.services.reports import ReportService

router = APIRouter(prefix="/attendance", tags=["attendance"])
logger = logging.getLogger(__name__)


# ── Self-service ────────────────────────────────────────────────────
@router.post("/check-in", response_model=AttendanceRecordRead, status_code=201)
async def check_in(
    body: CheckInRequest,
    request: Request,
    service: AttendanceService = Depends(get_attendance_service),
    user: User = Depends(get_current_active_user),
) -> AttendanceRecord:
    """Register arrival at the work site whose QR code was scanned."""
    return await service.check_in(
        user.id,
        body.token,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


@router.post("/check-out", response_model=AttendanceRecordRead)
async def check_out(
    body: CheckOutRequest | None = None,
    service: AttendanceService = Depends(get_attendance_service),
    user: User = Depends(get_current_active_user),
) -> AttendanceRecord:
    """Close the caller's most recent open check-in."""
    body = body or CheckOutRequest()
    return await service.check_out(
        user.id, at=body.check_out_time, notes=body.notes, author=user
    )


@router.get("/current", response_model=CurrentAttendanceResponse)
async def current_attendance(
    service: AttendanceService = Depends(get_attendance_service),
    user: User = Depends(get_current_active_user),
) -> CurrentAttendanceResponse:
    record = await service.current_check_in(user.id)
    return CurrentAttendanceResponse(
        attendance=AttendanceRecordRead.model_validate(record) if record else None
    )


@router.get("/my-stats", response_model=MyStatsResponse)
async def my_stats(
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    work_site_id: int | None = Query(default=None),
    reports: ReportService = Depends(get_report_service),
    user: User = Depends(get_current_active_user),
) -> MyStatsResponse:
    """The caller's own grid rows and tally; defaults to the last 30 days.

    With *work_site_id*, only check-ins at that site count as attended days.
    """
    end = end or reports.clock.now().date()
    start = start or end - timedelta(days=29)
    grid = await reports.build_grid([user], start, end, work_site_id)
    tally = tally_grid(grid, [user.id]).per_employee[user.id]
    return MyStatsResponse(
        start=start,
        end=end,
        stats=tally_read(tally),
        days=[grid_row_read(row) for bucket in grid for row in bucket.rows],
    )


# ── Administrative ──────────────────────────────────────────────────
@router.post("/manual", response_model=AttendanceRecordRead, status_code=201)
async def manual_check_in(
    body: ManualCheckInRequest,
    service: AttendanceService = Depends(get_attendance_service),
    manager: User = Depends(require_manager),
) -> AttendanceRecord:
    """Enter a check-in on an employee's behalf (missed scan, broken phone...)."""
    record = await service.record_manual_check_in(
        body.employee_id,
        body.work_site_id,
        body.check_in_time,
        check_out_time=body.check_out_time,
        notes=body.notes,
    )
    logger.info("Manual check-in %d entered by user %d", record.id, manager.id)
    return record


@router.post("/{employee_id}/check-out", response_model=AttendanceRecordRead)
async def check_out_on_behalf(
    employee_id: int,
    body: CheckOutRequest | None = None,
    service: AttendanceService = Depends(get_attendance_service),
    manager: User = Depends(require_manager),
) -> AttendanceRecord:
    body = body or CheckOutRequest()
    await service.directory.get(employee_id)
    return await service.check_out(
        employee_id, at=body.check_out_time, notes=body.notes, author=manager
    )


@router.put("/absence-reason", response_model=AttendanceRecordRead)
async def set_absence_reason(
    body: AbsenceReasonRequest,
    service: AttendanceService = Depends(get_attendance_service),
    manager: User = Depends(require_manager),
) -> AttendanceRecord:
    """Mark a day as sick / vacation / business trip / no reason."""
    record = await service.set_absence_reason(
        body.employee_id, body.date, body.reason, body.notes
    )
    logger.info(
        "User %d set %s for employee %d on %s", manager.id, body.reason, body.employee_id, body.date
    )
    return record
