"""
Conversions from service-layer dataclasses to response schemas.
"""

from __future__ import annotations

from dataclasses import asdict

from worktrack.models.user import User
from worktrack.schemas.attendance import (DayBucketRead, EmployeeStats,
                                          GridRowRead, TallyRead)
from worktrack.schemas.user import EmployeeRead
from worktrack.services.aggregation import DayBucket, GridRow, Tally


def grid_row_read(row: GridRow) -> GridRowRead:
    return GridRowRead(**asdict(row), synthesized=row.synthesized, hours=row.hours)


def day_bucket_read(bucket: DayBucket) -> DayBucketRead:
    return DayBucketRead(date=bucket.date, rows=[grid_row_read(r) for r in bucket.rows])


def tally_read(tally: Tally) -> TallyRead:
    return TallyRead(**asdict(tally), average_hours=tally.average_hours)


def employee_stats(employee: User, tally: Tally) -> EmployeeStats:
    return EmployeeStats(employee=EmployeeRead.model_validate(employee), stats=tally_read(tally))
