"""
User model: the single account collection behind auth, profiles and metrics.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, String

from classboard.db.base import Base

ROLES = ("admin", "teacher", "student")
THEMES = ("system", "light", "dark")
DENSITIES = ("comfortable", "compact")

DEFAULT_PREFERENCES = {"theme": "system", "density": "comfortable", "language": "en"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def _default_preferences() -> dict:
    return dict(DEFAULT_PREFERENCES)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (Index("ix_users_role_created_at", "role", "created_at"),)

    id: str = Column(String(32), primary_key=True, default=_new_id)  # type: ignore[assignment]
    name: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    password_hash: str = Column(String(128), nullable=False)  # type: ignore[assignment]
    role: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default="student",
        server_default="student",
        index=True,
    )  # admin | teacher | student
    bio: str | None = Column(String(300), nullable=True)  # type: ignore[assignment]
    avatar_url: str | None = Column(String(2048), nullable=True)  # type: ignore[assignment]
    disabled: bool = Column(  # type: ignore[assignment]
        Boolean, nullable=False, default=False, server_default="false"
    )
    preferences: dict = Column(JSON, nullable=False, default=_default_preferences)  # type: ignore[assignment]
    last_login_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
        index=True,
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )
