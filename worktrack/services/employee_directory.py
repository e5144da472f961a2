"""
Employee Directory — read-only view over the users table.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.core.config import settings
from worktrack.core.exceptions import NotFoundError
from worktrack.models.user import User


class EmployeeDirectory:
    def __init__(self, db: AsyncSession, tracked_role: str | None = None) -> None:
        self.db = db
        self.tracked_role = tracked_role or settings.TRACKED_ROLE

    async def list_tracked(self) -> list[User]:
        """Active employees with the tracked role, by last name then first name."""
        result = await self.db.execute(
            select(User)
            .where(User.role == self.tracked_role, User.is_active.is_(True))
            .order_by(User.last_name, User.first_name, User.id)
        )
        return list(result.scalars().all())

    async def get(self, employee_id: int) -> User:
        employee = await self.db.get(User, employee_id)
        if employee is None:
            raise NotFoundError("Employee not found")
        return employee

    async def get_many(self, employee_ids: Sequence[int]) -> list[User]:
        """Resolve ids keeping the caller's order; duplicates are dropped."""
        wanted = list(dict.fromkeys(employee_ids))
        if not wanted:
            return []
        result = await self.db.execute(select(User).where(User.id.in_(wanted)))
        by_id = {u.id: u for u in result.scalars().all()}
        missing = [i for i in wanted if i not in by_id]
        if missing:
            raise NotFoundError(f"Employee(s) not found: {', '.join(map(str, missing))}")
        return [by_id[i] for i in wanted]
