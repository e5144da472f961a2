"""
Attendance lifecycle — check-in, check-out and absence-reason overrides.

A record moves from *not present* to *checked in* (status ``present`` or
``late``, fixed at creation) to *checked out*. The only way to change a
status afterwards is ``set_absence_reason``.

Uniqueness of (employee, site, day) is enforced by the storage constraint;
the pre-check here only produces a friendlier path for the common case, and
an ``IntegrityError`` on insert is reported the same way. Inserts run in a
savepoint so a lost race leaves the rest of the request session intact.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.core.config import settings
from worktrack.core.exceptions import (DuplicateCheckInError, InvalidSiteError,
                                       NoOpenCheckInError, ValidationError)
from worktrack.models.attendance import (ABSENCE_REASONS, AttendanceRecord,
                                         AttendanceStatus)
from worktrack.models.user import User
from worktrack.models.work_site import WorkSite
from worktrack.services.clock import Clock
from worktrack.services.employee_directory import EmployeeDirectory
from worktrack.services.ledger import AttendanceLedger
from worktrack.services.site_registry import SiteRegistry

logger = logging.getLogger(__name__)


def classify_check_in(local_ts: datetime, cutoff: time) -> AttendanceStatus:
    """``late`` strictly after the cutoff on the same local day, else ``present``."""
    cutoff_at = local_ts.replace(
        hour=cutoff.hour, minute=cutoff.minute, second=0, microsecond=0
    )
    return AttendanceStatus.LATE if local_ts > cutoff_at else AttendanceStatus.PRESENT


def append_note(existing: str | None, note: str, stamp: datetime, author: User | None) -> str:
    prefix = f"[{stamp:%Y-%m-%d %H:%M}]"
    if author is not None:
        prefix = f"{prefix} {author.full_name}:"
    entry = f"{prefix} {note.strip()}"
    return f"{existing}\n{entry}" if existing else entry


def parse_absence_reason(reason: str | AttendanceStatus) -> AttendanceStatus:
    try:
        status = AttendanceStatus(reason)
    except ValueError:
        status = None
    if status not in ABSENCE_REASONS:
        allowed = ", ".join(sorted(s.value for s in ABSENCE_REASONS))
        raise ValidationError(f"Invalid absence reason. Must be one of: {allowed}")
    return status


class AttendanceService:
    def __init__(
        self,
        db: AsyncSession,
        clock: Clock,
        *,
        cutoff: time | None = None,
        allow_multi_site: bool | None = None,
    ) -> None:
        self.db = db
        self.clock = clock
        self.ledger = AttendanceLedger(db)
        self.sites = SiteRegistry(db)
        self.directory = EmployeeDirectory(db)
        self.cutoff = cutoff or settings.check_in_cutoff
        self.allow_multi_site = (
            settings.ALLOW_MULTI_SITE_CHECK_IN if allow_multi_site is None else allow_multi_site
        )

    # ── Check-in ────────────────────────────────────────────────────
    async def check_in(
        self,
        employee_id: int,
        token: str,
        *,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AttendanceRecord:
        """Self-service check-in by scanning a site's QR token."""
        site = await self.sites.resolve_token(token)
        if site is None:
            logger.info("Check-in rejected for employee %d: invalid token", employee_id)
            raise InvalidSiteError()

        return await self._register_check_in(
            employee_id,
            site,
            self.clock.now(),
            ip_address=ip_address,
            user_agent=user_agent,
        )

    async def record_manual_check_in(
        self,
        employee_id: int,
        work_site_id: int,
        check_in_time: datetime,
        *,
        check_out_time: datetime | None = None,
        notes: str | None = None,
    ) -> AttendanceRecord:
        """Administrative entry of a check-in the employee could not scan."""
        await self.directory.get(employee_id)
        site = await self.sites.get(work_site_id)
        check_in_local = self.clock.localize(check_in_time)
        check_out_local = self.clock.localize(check_out_time) if check_out_time else None
        if check_out_local is not None and check_out_local < check_in_local:
            raise ValidationError("Check-out time cannot be earlier than check-in time")

        return await self._register_check_in(
            employee_id,
            site,
            check_in_local,
            check_out_time=check_out_local,
            notes=notes.strip() if notes else None,
        )

    async def _register_check_in(
        self,
        employee_id: int,
        site: WorkSite,
        at: datetime,
        *,
        check_out_time: datetime | None = None,
        notes: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AttendanceRecord:
        site_id = site.id
        local = self.clock.localize(at)
        day = local.date()

        if await self.ledger.find_site_check_in(employee_id, site_id, day) is not None:
            logger.info(
                "Duplicate check-in for employee %d at site %d on %s", employee_id, site_id, day
            )
            raise DuplicateCheckInError()

        if not self.allow_multi_site and await self.ledger.has_any_site_check_in(
            employee_id, day
        ):
            logger.info("Second-site check-in refused for employee %d on %s", employee_id, day)
            raise DuplicateCheckInError("Check-in is already registered today at another work site")

        status = classify_check_in(local, self.cutoff)
        record = AttendanceRecord(
            employee_id=employee_id,
            work_site_id=site_id,
            work_date=day,
            check_in_time=local.astimezone(timezone.utc),
            check_out_time=check_out_time.astimezone(timezone.utc) if check_out_time else None,
            status=status.value,
            notes=notes,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        record.work_site = site
        try:
            # Savepoint: a lost race rolls back the insert only, not the request session
            async with self.db.begin_nested():
                self.db.add(record)
        except IntegrityError:
            logger.info(
                "Concurrent check-in for employee %d at site %d lost the race", employee_id, site_id
            )
            raise DuplicateCheckInError() from None
        await self.db.commit()

        logger.info(
            "Check-in %s: employee %d at site %d (%s)", status.value, employee_id, site_id, local
        )
        return record

    # ── Check-out ───────────────────────────────────────────────────
    async def check_out(
        self,
        employee_id: int,
        *,
        at: datetime | None = None,
        notes: str | None = None,
        author: User | None = None,
    ) -> AttendanceRecord:
        record = await self.ledger.find_latest_open(employee_id, lock=True)
        if record is None:
            logger.info("Check-out rejected for employee %d: nothing open", employee_id)
            raise NoOpenCheckInError()

        out_local = self.clock.localize(at) if at else self.clock.now()
        if out_local < self.clock.to_local(record.check_in_time):
            raise ValidationError("Check-out time cannot be earlier than check-in time")

        record.check_out_time = out_local.astimezone(timezone.utc)
        if notes and notes.strip():
            record.notes = append_note(record.notes, notes, out_local, author)
        await self.db.commit()

        logger.info("Check-out: employee %d, record %d (%s)", employee_id, record.id, out_local)
        return record

    async def current_check_in(self, employee_id: int) -> AttendanceRecord | None:
        return await self.ledger.find_latest_open(employee_id)

    # ── Absence-reason override ─────────────────────────────────────
    async def set_absence_reason(
        self,
        employee_id: int,
        day: date,
        reason: str | AttendanceStatus,
        notes: str | None = None,
    ) -> AttendanceRecord:
        """Classify *day* with an absence reason, in place or via a placeholder.

        Repeating the call with the same arguments leaves a single record in
        the same state.
        """
        status = parse_absence_reason(reason)
        await self.directory.get(employee_id)

        record = await self.ledger.find_for_day(employee_id, day, lock=True)
        if record is None:
            record = await self._claim_placeholder(employee_id, day, status)
        record.status = status.value
        record.notes = notes
        await self.db.commit()

        logger.info(
            "Absence reason %s set for employee %d on %s (record %d)",
            status.value,
            employee_id,
            day,
            record.id,
        )
        return record

    async def _claim_placeholder(
        self, employee_id: int, day: date, status: AttendanceStatus
    ) -> AttendanceRecord:
        """Return the employee-day placeholder, reviving or creating it.

        A soft-deleted placeholder still holds the unique slot, so it is
        brought back rather than shadowed by a new row.
        """
        record = await self.ledger.find_placeholder(employee_id, day, lock=True)
        if record is None:
            record = AttendanceRecord(
                employee_id=employee_id,
                work_site_id=None,
                work_date=day,
                check_in_time=self.clock.start_of_day(day).astimezone(timezone.utc),
                check_out_time=None,
                status=status.value,
            )
            record.work_site = None
            try:
                async with self.db.begin_nested():
                    self.db.add(record)
                return record
            except IntegrityError:
                # Another override created the placeholder first
                record = await self.ledger.find_placeholder(employee_id, day, lock=True)
                if record is None:
                    raise
                logger.info("Placeholder for employee %d on %s created concurrently", employee_id, day)

        if record.deleted_at is not None:
            logger.info("Reviving soft-deleted placeholder %d for employee %d", record.id, employee_id)
            record.deleted_at = None
        return record
