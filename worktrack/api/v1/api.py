"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from worktrack.api.v1.endpoints import attendance, reports, work_sites

api_router = APIRouter()

# Check-in / check-out, absence reasons
api_router.include_router(attendance.router)

# Site registry administration
api_router.include_router(work_sites.router)

# Calendar grid, tallies, CSV export, health
api_router.include_router(reports.router)
