"""
User directory: every read and write against the ``users`` table.

Handlers never build statements themselves; they go through a
``UserDirectory`` bound to the request's ``AsyncSession``.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import ColumnElement, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from classboard.core.exceptions import DuplicateEmailError
from classboard.models.user import DEFAULT_PREFERENCES, User

logger = logging.getLogger(__name__)


@dataclass
class BulkResult:
    matched: int
    modified: int


def _ensure_utc(dt: datetime) -> datetime:
    """Normalise a potentially-naive timestamp to UTC-aware."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def merge_preferences(current: Mapping[str, Any] | None, changes: Mapping[str, Any]) -> dict:
    merged = {**DEFAULT_PREFERENCES, **(current or {})}
    merged.update({k: v for k, v in changes.items() if v is not None})
    return merged


def apply_patch(user: User, patch: Mapping[str, Any]) -> User:
    """Copy the fields present in *patch* onto *user*; preferences merge key by key."""
    for field, value in patch.items():
        if field == "preferences":
            user.preferences = merge_preferences(user.preferences, value)
        else:
            setattr(user, field, value)
    return user


class UserDirectory:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ── Single-document reads ───────────────────────────────────────
    async def find_by_email(self, email: str) -> User | None:
        result = await self.session.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: str) -> User | None:
        return await self.session.get(User, user_id)

    # ── Single-document writes ──────────────────────────────────────
    async def create(self, **fields: Any) -> User:
        email = fields["email"].strip().lower()
        if await self.find_by_email(email) is not None:
            raise DuplicateEmailError()

        user = User(**{**fields, "email": email})
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise DuplicateEmailError() from exc
        await self.session.refresh(user)
        return user

    async def update_by_id(self, user_id: str, patch: Mapping[str, Any]) -> User | None:
        user = await self.find_by_id(user_id)
        if user is None:
            return None
        return await self.save(apply_patch(user, patch))

    async def save(self, user: User) -> User:
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def record_login(self, user: User) -> User:
        user.last_login_at = datetime.now(timezone.utc)
        return await self.save(user)

    async def delete_by_id(self, user_id: str) -> bool:
        user = await self.find_by_id(user_id)
        if user is None:
            return False
        await self.session.delete(user)
        await self.session.commit()
        return True

    # ── Collection operations ───────────────────────────────────────
    async def update_many(self, ids: Iterable[str], patch: Mapping[str, Any]) -> BulkResult:
        """Apply *patch* to every existing id. Unknown ids are skipped, not errors."""
        id_list = list(dict.fromkeys(ids))
        if not id_list:
            return BulkResult(matched=0, modified=0)

        matched = await self.count([User.id.in_(id_list)])
        if not patch or matched == 0:
            return BulkResult(matched=matched, modified=0)

        # Only rows whose values actually change count as modified
        differs = or_(*(getattr(User, field) != value for field, value in patch.items()))
        result = await self.session.execute(
            update(User)
            .where(User.id.in_(id_list), differs)
            .values(**patch, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return BulkResult(matched=matched, modified=result.rowcount or 0)

    async def count(self, filters: Iterable[ColumnElement[bool]] = ()) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(User).where(*filters)
        )
        return result.scalar() or 0

    async def count_by_role(self, filters: Iterable[ColumnElement[bool]] = ()) -> dict[str, int]:
        result = await self.session.execute(
            select(User.role, func.count()).where(*filters).group_by(User.role)
        )
        return {role: count for role, count in result.all()}

    async def list(
        self,
        filters: Iterable[ColumnElement[bool]] = (),
        order_by: Iterable[ColumnElement] = (),
        skip: int = 0,
        limit: int = 10,
    ) -> list[User]:
        result = await self.session.execute(
            select(User).where(*filters).order_by(*order_by).offset(skip).limit(limit)
        )
        return list(result.scalars().all())

    async def aggregate_daily_counts(self, start: datetime, end: datetime) -> list[dict]:
        """Signups per UTC calendar day in ``[start, end]``, oldest first, no empty days.

        Rows are bucketed in Python rather than with a SQL date function so the
        same query runs on Postgres and SQLite. Memory grows with the number of
        signups in the window.
        """
        result = await self.session.execute(
            select(User.created_at).where(User.created_at >= start, User.created_at <= end)
        )
        per_day = Counter(
            _ensure_utc(created_at).strftime("%Y-%m-%d") for created_at in result.scalars()
        )
        return [{"date": day, "count": per_day[day]} for day in sorted(per_day)]
