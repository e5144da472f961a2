"""
User model — the employee directory shared with the user-management service.

Only users with the tracked role (``settings.TRACKED_ROLE``) appear in
attendance reports; managers and admins may still check in.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String

from worktrack.db.base import Base

ROLES = ("employee", "manager", "admin")
MANAGER_ROLES = {"manager", "admin"}


class User(Base):
    __tablename__ = "users"
    __table_args__ = (Index("ix_users_last_first", "last_name", "first_name"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    first_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    last_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    role: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="employee",
        server_default="employee",
    )  # employee | manager | admin
    is_active: bool = Column(Boolean, default=True, server_default="1")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_manager(self) -> bool:
        return self.role in MANAGER_ROLES
