"""
Work site administration — managers register sites and manage their QR tokens.

Regenerating a token invalidates every printed QR code for that site.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from worktrack.api.v1.deps import get_db, require_manager
from worktrack.models.user import User
from worktrack.models.work_site import WorkSite, new_check_in_token
from worktrack.schemas.work_site import (DeleteResponse, WorkSiteCreate,
                                         WorkSitePage, WorkSiteRead,
                                         WorkSiteUpdate)
from worktrack.services.ledger import AttendanceLedger
from worktrack.services.site_registry import SiteRegistry

router = APIRouter(prefix="/work-sites", tags=["work-sites"])
logger = logging.getLogger(__name__)


@router.get("", response_model=WorkSitePage)
async def list_work_sites(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    search: str | None = None,
    is_active: bool | None = None,
    db: AsyncSession = Depends(get_db),
    _manager: User = Depends(require_manager),
) -> WorkSitePage:
    query = select(WorkSite)
    if search:
        # Escape SQL LIKE metacharacters to prevent wildcard injection
        safe_search = search.replace("%", r"\%").replace("_", r"\_")
        pattern = f"%{safe_search}%"
        query = query.where(
            or_(
                WorkSite.name.ilike(pattern, escape="\\"),
                WorkSite.address.ilike(pattern, escape="\\"),
            )
        )
    if is_active is not None:
        query = query.where(WorkSite.is_active.is_(is_active))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(
        query.order_by(WorkSite.created_at.desc(), WorkSite.id.desc()).offset(skip).limit(limit)
    )
    return WorkSitePage(
        items=[WorkSiteRead.model_validate(s) for s in result.scalars().all()],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.post("", response_model=WorkSiteRead, status_code=201)
async def create_work_site(
    body: WorkSiteCreate,
    db: AsyncSession = Depends(get_db),
    manager: User = Depends(require_manager),
) -> WorkSite:
    site = WorkSite(**body.model_dump())
    db.add(site)
    await db.commit()
    await db.refresh(site)
    logger.info("Work site %d (%s) created by user %d", site.id, site.name, manager.id)
    return site


@router.get("/{site_id}", response_model=WorkSiteRead)
async def get_work_site(
    site_id: int,
    db: AsyncSession = Depends(get_db),
    _manager: User = Depends(require_manager),
) -> WorkSite:
    return await SiteRegistry(db).get(site_id)


@router.put("/{site_id}", response_model=WorkSiteRead)
async def update_work_site(
    site_id: int,
    body: WorkSiteUpdate,
    db: AsyncSession = Depends(get_db),
    _manager: User = Depends(require_manager),
) -> WorkSite:
    site = await SiteRegistry(db).get(site_id)
    changes = {
        field: value
        for field, value in body.model_dump(exclude_unset=True).items()
        if value is not None or field == "description"
    }
    for field, value in changes.items():
        setattr(site, field, value)
    await db.commit()
    await db.refresh(site)
    logger.info("Work site %d updated: %s", site.id, changes)
    return site


@router.patch("/{site_id}/toggle-status", response_model=WorkSiteRead)
async def toggle_work_site_status(
    site_id: int,
    db: AsyncSession = Depends(get_db),
    _manager: User = Depends(require_manager),
) -> WorkSite:
    site = await SiteRegistry(db).get(site_id)
    site.is_active = not site.is_active
    await db.commit()
    await db.refresh(site)
    logger.info("Work site %d %s", site.id, "activated" if site.is_active else "deactivated")
    return site


@router.post("/{site_id}/regenerate-token", response_model=WorkSiteRead)
async def regenerate_check_in_token(
    site_id: int,
    db: AsyncSession = Depends(get_db),
    manager: User = Depends(require_manager),
) -> WorkSite:
    """Issue a fresh QR token; the old one stops resolving immediately."""
    site = await SiteRegistry(db).get(site_id)
    site.check_in_token = new_check_in_token()
    await db.commit()
    await db.refresh(site)
    logger.warning("Check-in token for work site %d regenerated by user %d", site.id, manager.id)
    return site


@router.delete("/{site_id}", response_model=DeleteResponse)
async def delete_work_site(
    site_id: int,
    db: AsyncSession = Depends(get_db),
    manager: User = Depends(require_manager),
) -> DeleteResponse:
    """Delete an unused site; a site with attendance history is deactivated instead."""
    site = await SiteRegistry(db).get(site_id)
    name = site.name
    if await AttendanceLedger(db).site_has_records(site_id):
        site.is_active = False
        await db.commit()
        logger.info("Work site %d has attendance history; deactivated by user %d", site_id, manager.id)
        return DeleteResponse(success=True, message=f"Work site '{name}' deactivated")

    await db.delete(site)
    await db.commit()
    logger.info("Work site %d (%s) deleted by user %d", site_id, name, manager.id)
    return DeleteResponse(success=True, message=f"Work site '{name}' deleted")
