"""
Translate listing parameters into SQLAlchemy filter / sort / page specs.

Keyword search is a case-insensitive ``LIKE``: the keyword is escaped so
``%``, ``_`` and the escape character match literally, then anchored at the
start (``startsWith``) or wrapped on both sides (``contains``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import ColumnElement, or_

from classboard.models.user import User
from classboard.schemas.user import UserListParams

LIKE_ESCAPE = "/"

MAX_PAGE_SIZE = 50
# Largest page whose OFFSET still fits a signed 64-bit integer
MAX_PAGE = (2**63 - 1) // MAX_PAGE_SIZE
MAX_SUGGESTIONS = 20
DEFAULT_SUGGESTIONS = 8

_datetime_adapter = TypeAdapter(datetime)

SORTABLE_FIELDS = {
    "name": User.name,
    "email": User.email,
    "role": User.role,
    "createdAt": User.created_at,
    "updatedAt": User.updated_at,
    "lastLoginAt": User.last_login_at,
}


@dataclass
class UserQuery:
    filters: list[ColumnElement[bool]] = field(default_factory=list)
    order_by: list[ColumnElement] = field(default_factory=list)
    page: int = 1
    offset: int = 0
    limit: int = 10


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def parse_date_or_none(value: str | None) -> datetime | None:
    """Parse an ISO date/datetime string as UTC; ``None`` if absent or invalid."""
    if not value or not value.strip():
        return None
    try:
        parsed = _datetime_adapter.validate_python(value.strip())
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (ValidationError, OverflowError):
        return None


def escape_like(keyword: str) -> str:
    return (
        keyword.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def keyword_filter(keyword: str, scope: str = "name", mode: str = "startsWith") -> ColumnElement[bool]:
    safe = escape_like(keyword)
    pattern = f"{safe}%" if mode == "startsWith" else f"%{safe}%"

    name_match = User.name.ilike(pattern, escape=LIKE_ESCAPE)
    email_match = User.email.ilike(pattern, escape=LIKE_ESCAPE)
    if scope == "name":
        return name_match
    if scope == "email":
        return email_match
    return or_(name_match, email_match)


def created_between(start: datetime | None, end: datetime | None) -> list[ColumnElement[bool]]:
    clauses: list[ColumnElement[bool]] = []
    if start is not None:
        clauses.append(User.created_at >= start)
    if end is not None:
        clauses.append(User.created_at <= end)
    return clauses


def parse_sort(sort: str | None) -> list[ColumnElement]:
    """``"field:dir"`` to an ORDER BY list; anything but ``asc`` sorts descending."""
    field_name, _, direction = (sort or "createdAt:desc").partition(":")
    column = SORTABLE_FIELDS.get(field_name.strip(), User.created_at)
    if direction.strip() == "asc":
        return [column.asc(), User.id.asc()]
    return [column.desc(), User.id.desc()]


def build_user_query(params: UserListParams) -> UserQuery:
    filters: list[ColumnElement[bool]] = []

    if params.role and params.role != "all":
        filters.append(User.role == params.role)

    keyword = (params.keyword or "").strip()
    if keyword:
        filters.append(keyword_filter(keyword, params.scope, params.mode))

    filters.extend(created_between(params.start, params.end))

    page = clamp(params.page, 1, MAX_PAGE)
    limit = clamp(params.limit, 1, MAX_PAGE_SIZE)
    return UserQuery(
        filters=filters,
        order_by=parse_sort(params.sort),
        page=page,
        offset=(page - 1) * limit,
        limit=limit,
    )


def build_suggestion_query(
    keyword: str | None,
    scope: str = "name",
    mode: str = "startsWith",
    limit: int = DEFAULT_SUGGESTIONS,
) -> UserQuery | None:
    """Keyword-only quick match. ``None`` when there is nothing to search for."""
    keyword = (keyword or "").strip()
    if not keyword:
        return None
    return UserQuery(
        filters=[keyword_filter(keyword, scope, mode)],
        order_by=[User.created_at.desc()],
        offset=0,
        limit=clamp(limit, 1, MAX_SUGGESTIONS),
    )
