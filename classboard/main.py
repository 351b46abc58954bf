"""
Classboard: application entry point.

This is the **only** file that assembles the app. All business logic
lives in the `api/`, `services/`, `models/` and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from classboard.api.api import api_router
from classboard.core.config import settings
from classboard.core.exceptions import register_exception_handlers
from classboard.core.rate_limit import limiter
from classboard.core.security import get_password_hash
from classboard.db.session import Database

# Ensure all models are imported so metadata.create_all can see them
from classboard.models.user import User  # noqa: F401
from classboard.services.directory import UserDirectory

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_first_admin(db: Database) -> None:
    """Create the bootstrap admin account if its email is not registered yet."""
    async with db.session_factory() as session:
        directory = UserDirectory(session)
        if await directory.find_by_email(settings.FIRST_ADMIN_EMAIL) is not None:
            return
        await directory.create(
            name=settings.FIRST_ADMIN_NAME,
            email=settings.FIRST_ADMIN_EMAIL,
            password_hash=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
            role="admin",
        )
        logger.info(
            "Default admin created: %s (password: <redacted>)",
            settings.FIRST_ADMIN_EMAIL,
        )


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    db: Database = app.state.db
    # A failure here aborts startup
    await db.connect()
    await seed_first_admin(db)

    logger.info("Classboard v%s started (%s)", settings.VERSION, settings.ENVIRONMENT)
    yield
    await db.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app(database: Database | None = None) -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Classroom management API",
        version=settings.VERSION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    application.state.db = database or Database(settings.DATABASE_URL)

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limiting
    application.state.limiter = limiter
    application.add_middleware(SlowAPIMiddleware)
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    application.include_router(api_router, prefix=settings.API_PREFIX)

    return application


app = create_app()
