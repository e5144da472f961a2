"""
WorkSite model — registered places employees check in at.

Each site carries an opaque ``check_in_token`` (encoded in the QR code posted
on site). Regenerating the token invalidates every printed code.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from worktrack.db.base import Base


def new_check_in_token() -> str:
    return str(uuid.uuid4())


class WorkSite(Base):
    __tablename__ = "work_sites"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    address: str = Column(Text, nullable=False)  # type: ignore[assignment]
    description: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    check_in_token: str = Column(  # type: ignore[assignment]
        String(64),
        unique=True,
        nullable=False,
        index=True,
        default=new_check_in_token,
    )
    is_active: bool = Column(Boolean, default=True, server_default="1")  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
