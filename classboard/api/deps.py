"""
FastAPI dependencies: auth guards, database session and user directory.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from classboard.core.exceptions import ForbiddenError, InvalidTokenError, UnauthorizedError
from classboard.core.security import decode_access_token
from classboard.schemas.token import Identity
from classboard.services.directory import UserDirectory

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes our own 401 rather than a 403
bearer_scheme = HTTPBearer(auto_error=False)


# ── Database session ────────────────────────────────────────────────
async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.db.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_directory(db: AsyncSession = Depends(get_db)) -> UserDirectory:
    return UserDirectory(db)


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    """Decode the bearer token from the Authorization header."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()

    try:
        claims = decode_access_token(credentials.credentials)
    except InvalidTokenError as exc:
        logger.debug("Rejected bearer token: %s", exc)
        raise UnauthorizedError() from exc
    return Identity(**claims)


async def require_admin(
    identity: Identity = Depends(get_current_identity),
) -> Identity:
    """Only allow admin role to proceed."""
    if not identity.is_admin:
        raise ForbiddenError()
    return identity
