"""Pydantic schemas for session tokens."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class Token(BaseModel):
    token: str


class Identity(BaseModel):
    """Caller identity decoded from a bearer token."""

    sub: str
    role: Literal["admin", "teacher", "student"]

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
