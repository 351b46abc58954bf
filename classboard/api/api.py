"""
API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from classboard.api.endpoints import auth, health, me, metrics, users

api_router = APIRouter()

# Registration and login
api_router.include_router(auth.router)

# Own profile
api_router.include_router(me.router)

# Directory listing, search and admin management
api_router.include_router(users.router)

# Signup analytics
api_router.include_router(metrics.router)

# Liveness
api_router.include_router(health.router)
