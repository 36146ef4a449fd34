"""Dependency injection for API endpoints."""

import logging
from collections.abc import AsyncGenerator, Callable
from datetime import datetime

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from collectionwatch.application.services import (
    CollectionService,
    NotificationSweepService,
    TagService,
)
from collectionwatch.config import Settings
from collectionwatch.domain.ports.notification import INotificationProvider
from collectionwatch.infrastructure.persistence.database import Database

logger = logging.getLogger(__name__)


def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    settings: Settings = request.app.state.settings
    return settings


def get_database(request: Request) -> Database:
    """Get the database from app state.

    Raises:
        HTTPException: 503 if the lifespan has not opened the database yet
    """
    db: Database | None = getattr(request.app.state, "db", None)
    if db is None:
        raise HTTPException(status_code=503, detail="Database not initialized")
    return db


# Hey future me, ONE session per request, and the request is the transaction! session_scope()
# commits when the endpoint returns and rolls back if anything raises (including domain
# exceptions that the handlers later turn into 404/422), so a half-applied service call can
# never be committed.
async def get_db_session(
    db: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    """Get a transactional database session for this request."""
    async with db.session_scope() as session:
        yield session


def get_clock(request: Request) -> Callable[[], datetime]:
    """Get the application's clock (overridable in tests)."""
    clock: Callable[[], datetime] = request.app.state.clock
    return clock


def get_collection_service(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> CollectionService:
    """Get CollectionService bound to the request session."""
    return CollectionService(session, settings.notifications, clock)


def get_tag_service(session: AsyncSession = Depends(get_db_session)) -> TagService:
    """Get TagService bound to the request session."""
    return TagService(session)


def get_notification_providers(request: Request) -> list[INotificationProvider]:
    providers: list[INotificationProvider] = request.app.state.notification_providers
    return providers


def get_sweep_service(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    clock: Callable[[], datetime] = Depends(get_clock),
    providers: list[INotificationProvider] = Depends(get_notification_providers),
) -> NotificationSweepService:
    """Get NotificationSweepService bound to the request session."""
    return NotificationSweepService(session, providers, settings.notifications, clock)
