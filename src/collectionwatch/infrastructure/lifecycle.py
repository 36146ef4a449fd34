"""Application lifecycle management for startup and shutdown tasks."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from sqlalchemy.engine import make_url

from collectionwatch.config import Settings
from collectionwatch.domain.exceptions import ConfigurationError
from collectionwatch.infrastructure.observability import configure_logging
from collectionwatch.infrastructure.persistence import Database

logger = logging.getLogger(__name__)


def _ensure_sqlite_directory(settings: Settings) -> None:
    """Create the parent directory of a file-based SQLite database."""
    url = make_url(settings.database.url)
    if not url.drivername.startswith("sqlite") or not url.database:
        return
    if url.database == ":memory:":
        return
    parent = Path(url.database).parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to create SQLite database directory '{parent}': {exc}. "
            "Update DATABASE__URL or adjust directory permissions."
        ) from exc


# Listen future me, everything before `yield` runs at STARTUP, everything after at SHUTDOWN.
# The format negotiator is NOT built here - create_app() builds it so a bad
# `webservice.formats` setting fails when the app is created, not on the first request.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Configure logging, open the database, and close it again on shutdown."""
    settings: Settings = app.state.settings

    configure_logging(
        log_level=settings.observability.log_level,
        json_format=settings.observability.json_logs,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    _ensure_sqlite_directory(settings)
    db = Database(settings)
    app.state.db = db
    logger.info("Database initialized: %s", make_url(settings.database.url).render_as_string())

    try:
        if settings.database.auto_create_tables:
            await db.create_tables()
            logger.info("Database tables ensured")
        yield
    finally:
        logger.info("Shutting down application")
        await db.close()
        app.state.db = None
