"""
Top‑level router for version 1 of the API.

This router aggregates the endpoint routers.  When new endpoints are
added, update this file to include their routers.
"""

from fastapi import APIRouter

from .endpoints import health, users

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(health.router, tags=["health"])
