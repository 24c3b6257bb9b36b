"""API route definitions.

Uses a factory pattern to avoid import-time settings loading.
This allows tests to import modules without requiring all environment
variables to be configured upfront.
"""

from fastapi import APIRouter

from switchboard.api.routes.auth import router as auth_router
from switchboard.api.routes.contacts import router as contacts_router
from switchboard.api.routes.groups import router as groups_router
from switchboard.api.routes.health import router as health_router
from switchboard.api.routes.messages import router as messages_router
from switchboard.api.routes.notifications import router as notifications_router


def create_api_router() -> APIRouter:
    """Create and configure the API router.

    Returns:
        Configured APIRouter with all routes registered.
    """
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(auth_router, tags=["user"])
    api_router.include_router(contacts_router, tags=["contacts"])
    api_router.include_router(groups_router, tags=["groups"])
    api_router.include_router(messages_router, tags=["messages"])
    api_router.include_router(notifications_router, tags=["notifications"])
    return api_router


__all__ = ["create_api_router"]
