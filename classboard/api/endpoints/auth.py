"""
Auth endpoints: self-registration and email/password login.
"""

import logging

from fastapi import APIRouter, Depends, Request

from classboard.api.deps import get_directory
from classboard.core.config import settings
from classboard.core.exceptions import InvalidCredentialsError
from classboard.core.rate_limit import limiter
from classboard.core.security import create_access_token, get_password_hash, verify_password
from classboard.schemas.token import Token
from classboard.schemas.user import LoginRequest, RegisterRequest
from classboard.services.directory import UserDirectory

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/register", response_model=Token)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def register(
    request: Request,
    body: RegisterRequest,
    directory: UserDirectory = Depends(get_directory),
) -> Token:
    """Create an account. Admin is never self-grantable; it falls back to student."""
    role = body.role if body.role and body.role != "admin" else "student"

    user = await directory.create(
        name=body.name,
        email=body.email,
        password_hash=get_password_hash(body.password),
        role=role,
    )
    logger.info("Registered user %s (%s)", user.id, role)
    return Token(token=create_access_token(user.id, user.role))


@router.post("/login", response_model=Token)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    directory: UserDirectory = Depends(get_directory),
) -> Token:
    """Verify credentials, stamp lastLoginAt and issue a session token."""
    user = await directory.find_by_email(body.email)

    if user is None or user.disabled or not verify_password(body.password, user.password_hash):
        logger.warning("Failed login attempt for %s", body.email)
        raise InvalidCredentialsError()

    await directory.record_login(user)
    return Token(token=create_access_token(user.id, user.role))
