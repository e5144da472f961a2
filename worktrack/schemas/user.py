"""Pydantic schemas for employees as seen by attendance reports."""

from __future__ import annotations

from pydantic import BaseModel


class EmployeeRead(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    full_name: str
    role: str
    is_active: bool

    model_config = {"from_attributes": True}
