"""
Profile self-service for the authenticated caller.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from classboard.api.deps import get_current_identity, get_directory
from classboard.core.exceptions import BadRequestError, NotFoundError
from classboard.core.security import get_password_hash, verify_password
from classboard.models.user import User
from classboard.schemas.common import OkResponse
from classboard.schemas.token import Identity
from classboard.schemas.user import ChangePasswordRequest, ProfileUpdate, UserRead
from classboard.services.directory import UserDirectory

router = APIRouter(prefix="/me", tags=["me"])
logger = logging.getLogger(__name__)


@router.get("", response_model=UserRead)
async def read_me(
    identity: Identity = Depends(get_current_identity),
    directory: UserDirectory = Depends(get_directory),
) -> User:
    """Return profile of the currently authenticated user."""
    user = await directory.find_by_id(identity.sub)
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.patch("", response_model=UserRead)
async def update_me(
    body: ProfileUpdate,
    identity: Identity = Depends(get_current_identity),
    directory: UserDirectory = Depends(get_directory),
) -> User:
    user = await directory.update_by_id(identity.sub, body.to_patch())
    if user is None:
        raise NotFoundError("User not found")
    return user


@router.post("/change-password", response_model=OkResponse)
async def change_password(
    body: ChangePasswordRequest,
    identity: Identity = Depends(get_current_identity),
    directory: UserDirectory = Depends(get_directory),
) -> OkResponse:
    user = await directory.find_by_id(identity.sub)
    if user is None:
        raise NotFoundError("User not found")

    if not verify_password(body.current, user.password_hash):
        raise BadRequestError("Current password incorrect")

    user.password_hash = get_password_hash(body.next)
    await directory.save(user)
    logger.info("Password changed for user %s", user.id)
    return OkResponse()
