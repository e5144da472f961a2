"""
CSV rendering of the calendar grid.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Iterator
from datetime import datetime

from worktrack.services.aggregation import DayBucket, GridRow

CSV_HEADER = (
    "date",
    "employee_id",
    "employee_name",
    "status",
    "check_in",
    "check_out",
    "work_site",
    "hours",
    "notes",
)


def _fmt_time(ts: datetime | None) -> str:
    return ts.strftime("%H:%M") if ts is not None else ""


def _csv_line(values: Iterable[object]) -> str:
    buf = io.StringIO()
    csv.writer(buf, lineterminator="\n").writerow(values)
    return buf.getvalue()


def _row_values(row: GridRow) -> tuple[object, ...]:
    hours = row.hours
    return (
        row.date.isoformat(),
        row.employee_id,
        row.employee_name,
        row.status,
        _fmt_time(row.check_in_time),
        _fmt_time(row.check_out_time),
        row.work_site_name or "",
        "" if hours is None else hours,
        row.notes or "",
    )


def iter_grid_csv(grid: Iterable[DayBucket]) -> Iterator[str]:
    """Yield the grid as CSV lines, BOM first so spreadsheets pick up UTF-8."""
    yield "\ufeff" + _csv_line(CSV_HEADER)
    for bucket in grid:
        for row in bucket.rows:
            yield _csv_line(_row_values(row))
