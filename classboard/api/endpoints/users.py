"""
User directory endpoints.

- GET operations require any authenticated user.
- POST / DELETE / bulk PATCH require admin role.
- PATCH /users/{id} is open to admins (any field) and to the account owner
  (name, bio, avatarUrl, preferences only).
"""

from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query, status

from classboard.api.deps import get_current_identity, get_directory, require_admin
from classboard.core.exceptions import ForbiddenError, NotFoundError
from classboard.core.security import get_password_hash
from classboard.models.user import User
from classboard.schemas.common import OkResponse
from classboard.schemas.token import Identity
from classboard.schemas.user import (
    SELF_EDITABLE_FIELDS,
    BulkUpdateRequest,
    BulkUpdateResponse,
    UserCreate,
    UserListParams,
    UserListResponse,
    UserRead,
    UserSuggestion,
    UserUpdate,
)
from classboard.services.directory import UserDirectory
from classboard.services.query_builder import (
    DEFAULT_SUGGESTIONS,
    build_suggestion_query,
    build_user_query,
    parse_date_or_none,
)

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)

Scope = Literal["name", "email", "any"]
Mode = Literal["startsWith", "contains"]


def user_list_params(
    role: Literal["admin", "teacher", "student", "all"] | None = Query(None),
    q: str | None = Query(None, description="Keyword"),
    scope: Scope = Query("name"),
    mode: Mode = Query("startsWith"),
    start: str | None = Query(None),
    end: str | None = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
    sort: str = Query("createdAt:desc"),
) -> UserListParams:
    """Collect the listing query string. Unparseable dates are ignored."""
    return UserListParams(
        role=role,
        keyword=q.strip() if q else None,
        scope=scope,
        mode=mode,
        start=parse_date_or_none(start),
        end=parse_date_or_none(end),
        page=page,
        limit=limit,
        sort=sort,
    )


# ── Reads ───────────────────────────────────────────────────────────
@router.get("", response_model=UserListResponse)
async def list_users(
    params: UserListParams = Depends(user_list_params),
    directory: UserDirectory = Depends(get_directory),
    _identity: Identity = Depends(get_current_identity),
) -> UserListResponse:
    """Filtered, paginated and sorted user list."""
    query = build_user_query(params)
    total = await directory.count(query.filters)
    users = await directory.list(query.filters, query.order_by, query.offset, query.limit)
    return UserListResponse(
        data=[UserRead.model_validate(u) for u in users],
        page=query.page,
        limit=query.limit,
        total=total,
    )


@router.get("/suggestions", response_model=list[UserSuggestion])
async def user_suggestions(
    q: str | None = Query(None),
    scope: Scope = Query("name"),
    mode: Mode = Query("startsWith"),
    limit: int = Query(DEFAULT_SUGGESTIONS),
    directory: UserDirectory = Depends(get_directory),
    _identity: Identity = Depends(get_current_identity),
) -> list[UserSuggestion]:
    """Keyword-only quick match for global search."""
    query = build_suggestion_query(q, scope, mode, limit)
    if query is None:
        return []
    users = await directory.list(query.filters, query.order_by, query.offset, query.limit)
    return [UserSuggestion.model_validate(u) for u in users]


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: str,
    directory: UserDirectory = Depends(get_directory),
    _identity: Identity = Depends(get_current_identity),
) -> User:
    user = await directory.find_by_id(user_id)
    if user is None:
        raise NotFoundError()
    return user


# ── Admin writes ────────────────────────────────────────────────────
@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    directory: UserDirectory = Depends(get_directory),
    admin: Identity = Depends(require_admin),
) -> User:
    """Create a user with an explicit role (admin only)."""
    user = await directory.create(
        name=body.name,
        email=body.email,
        password_hash=get_password_hash(body.password),
        role=body.role,
        bio=body.bio,
        avatar_url=body.avatar_url,
    )
    logger.info("Admin %s created user %s (%s)", admin.sub, user.id, user.role)
    return user


@router.patch("/bulk", response_model=BulkUpdateResponse)
async def bulk_update_users(
    body: BulkUpdateRequest,
    directory: UserDirectory = Depends(get_directory),
    admin: Identity = Depends(require_admin),
) -> BulkUpdateResponse:
    """Enable/disable or change the role of many users at once."""
    patch = body.model_dump(include={"disabled", "role"}, exclude_none=True)
    result = await directory.update_many(body.ids, patch)
    logger.info(
        "Admin %s bulk-updated %d/%d users with %s",
        admin.sub,
        result.modified,
        len(body.ids),
        patch,
    )
    return BulkUpdateResponse(ids=body.ids, matched=result.matched, modified=result.modified)


@router.patch("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: str,
    body: UserUpdate,
    directory: UserDirectory = Depends(get_directory),
    identity: Identity = Depends(get_current_identity),
) -> User:
    """Admins may change any field; owners only their profile fields."""
    if not identity.is_admin and identity.sub != user_id:
        raise ForbiddenError()

    patch = body.to_patch() if identity.is_admin else body.to_patch(SELF_EDITABLE_FIELDS)
    user = await directory.update_by_id(user_id, patch)
    if user is None:
        raise NotFoundError()
    if identity.is_admin:
        logger.info("Admin %s updated user %s: %s", identity.sub, user_id, sorted(patch))
    return user


@router.delete("/{user_id}", response_model=OkResponse)
async def delete_user(
    user_id: str,
    directory: UserDirectory = Depends(get_directory),
    admin: Identity = Depends(require_admin),
) -> OkResponse:
    """Hard delete (admin only)."""
    if not await directory.delete_by_id(user_id):
        raise NotFoundError()
    logger.info("Admin %s deleted user %s", admin.sub, user_id)
    return OkResponse()
