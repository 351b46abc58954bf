"""Pydantic schemas for User CRUD, profile self-service and auth bodies."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import AfterValidator, AnyHttpUrl, BaseModel, Field, TypeAdapter, ValidationError

from classboard.schemas.common import CamelModel

Role = Literal["admin", "teacher", "student"]
Theme = Literal["system", "light", "dark"]
Density = Literal["comfortable", "compact"]

# Fields a non-admin may change on their own account
SELF_EDITABLE_FIELDS = frozenset({"name", "bio", "avatar_url", "preferences"})

_url_adapter = TypeAdapter(AnyHttpUrl)


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    local, sep, domain = v.partition("@")
    if not sep or not local or "." not in domain:
        raise ValueError("Invalid email address")
    return v


def _validate_url(v: str) -> str:
    try:
        _url_adapter.validate_python(v)
    except ValidationError as exc:
        raise ValueError("Invalid URL") from exc
    return v


Email = Annotated[str, AfterValidator(_normalise_email)]
UrlString = Annotated[str, AfterValidator(_validate_url)]


# ── Preferences ─────────────────────────────────────────────────────
class Preferences(CamelModel):
    theme: Theme = "system"
    density: Density = "comfortable"
    language: str = "en"


class PreferencesUpdate(CamelModel):
    theme: Theme | None = None
    density: Density | None = None
    language: str | None = None


# ── Auth bodies ─────────────────────────────────────────────────────
class RegisterRequest(CamelModel):
    name: str = Field(min_length=2)
    email: Email
    password: str = Field(min_length=6)
    role: Role | None = None


class LoginRequest(CamelModel):
    email: Email
    password: str = Field(min_length=1)


class ChangePasswordRequest(CamelModel):
    current: str = Field(min_length=1)
    next: str = Field(min_length=6)


# ── Admin create ────────────────────────────────────────────────────
class UserCreate(CamelModel):
    name: str = Field(min_length=2)
    email: Email
    password: str = Field(min_length=6)
    role: Role
    bio: str | None = Field(default=None, max_length=300)
    avatar_url: UrlString | None = None


# ── Partial updates ─────────────────────────────────────────────────
class ProfileUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=2)
    bio: str | None = Field(default=None, max_length=300)
    avatar_url: UrlString | None = None
    preferences: PreferencesUpdate | None = None

    def to_patch(self, allowed: frozenset[str] | None = None) -> dict:
        """Explicitly provided, non-null fields, optionally restricted to *allowed*."""
        patch = self.model_dump(exclude_unset=True, exclude_none=True)
        if allowed is not None:
            patch = {k: v for k, v in patch.items() if k in allowed}
        return patch


class UserUpdate(ProfileUpdate):
    role: Role | None = None
    disabled: bool | None = None


class BulkUpdateRequest(CamelModel):
    ids: list[str] = Field(default_factory=list)
    disabled: bool | None = None
    role: Role | None = None


class BulkUpdateResponse(CamelModel):
    ids: list[str]
    matched: int
    modified: int


# ── Reads ───────────────────────────────────────────────────────────
class UserRead(CamelModel):
    id: str
    name: str
    email: str
    role: Role
    bio: str | None = None
    avatar_url: str | None = None
    disabled: bool = False
    preferences: Preferences = Field(default_factory=Preferences)
    last_login_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserSuggestion(CamelModel):
    id: str
    name: str
    email: str
    role: Role


class UserListResponse(CamelModel):
    data: list[UserRead]
    page: int
    limit: int
    total: int


# ── Listing query ───────────────────────────────────────────────────
class UserListParams(BaseModel):
    """Typed listing query. Defaults mirror the query-string defaults."""

    role: Literal["admin", "teacher", "student", "all"] | None = None
    keyword: str | None = None
    scope: Literal["name", "email", "any"] = "name"
    mode: Literal["startsWith", "contains"] = "startsWith"
    start: datetime | None = None
    end: datetime | None = None
    page: int = 1
    limit: int = 10
    sort: str = "createdAt:desc"
