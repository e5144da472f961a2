"""Pydantic schemas for the Site Registry administration API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator


def _required_text(v: str, field: str, max_len: int) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{field} must not be empty")
    if len(v) > max_len:
        raise ValueError(f"{field} must not exceed {max_len} characters")
    return v


class WorkSiteCreate(BaseModel):
    name: str
    address: str
    description: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _required_text(v, "Name", 100)

    @field_validator("address")
    @classmethod
    def _address(cls, v: str) -> str:
        return _required_text(v, "Address", 500)


class WorkSiteUpdate(BaseModel):
    name: str | None = None
    address: str | None = None
    description: str | None = None
    is_active: bool | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        return None if v is None else _required_text(v, "Name", 100)

    @field_validator("address")
    @classmethod
    def _address(cls, v: str | None) -> str | None:
        return None if v is None else _required_text(v, "Address", 500)


class WorkSiteSummary(BaseModel):
    """Site as shown to employees; never exposes the check-in token."""

    id: int
    name: str
    address: str

    model_config = {"from_attributes": True}


class WorkSiteRead(WorkSiteSummary):
    description: str | None
    check_in_token: str
    is_active: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


class WorkSitePage(BaseModel):
    items: list[WorkSiteRead]
    total: int
    skip: int
    limit: int


class DeleteResponse(BaseModel):
    success: bool
    message: str
