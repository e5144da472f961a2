"""
Site Registry — resolves check-in tokens to active work sites.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.core.exceptions import NotFoundError
from worktrack.models.work_site import WorkSite


class SiteRegistry:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def resolve_token(self, token: str) -> WorkSite | None:
        """Return the active site for *token*.

        Unknown and deactivated tokens both yield ``None`` so callers cannot
        tell a mistyped code from a disabled site.
        """
        token = (token or "").strip()
        if not token:
            return None
        result = await self.db.execute(
            select(WorkSite).where(
                WorkSite.check_in_token == token, WorkSite.is_active.is_(True)
            )
        )
        return result.scalar_one_or_none()

    async def get(self, site_id: int) -> WorkSite:
        site = await self.db.get(WorkSite, site_id)
        if site is None:
            raise NotFoundError("Work site not found")
        return site
