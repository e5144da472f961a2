"""Pydantic schema for decoded JWT access tokens."""

from __future__ import annotations

from pydantic import BaseModel, field_validator


class TokenPayload(BaseModel):
    sub: int | None = None
    type: str | None = None
    exp: int | None = None

    @field_validator("sub", mode="before")
    @classmethod
    def _sub_to_int(cls, v: object) -> object:
        if isinstance(v, str) and v.isdigit():
            return int(v)
        return v
