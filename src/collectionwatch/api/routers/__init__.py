"""API router initialization."""

# Hey future me, api_router is mounted at /api in main.py (JSON API). The web service
# router is mounted separately at /ws/1 and health at the root, so load balancers can
# probe /health without knowing about /api.

from fastapi import APIRouter

from collectionwatch.api.routers import (
    collections,
    health,
    notifications,
    tags,
    webservice,
)

api_router = APIRouter()

api_router.include_router(collections.router, tags=["Collections"])
api_router.include_router(tags.router, tags=["Tags"])
api_router.include_router(notifications.router, tags=["Notifications"])

ws_router = APIRouter()
ws_router.include_router(webservice.router, tags=["Web Service"])

health_router = health.router

__all__ = ["api_router", "health_router", "ws_router"]
