"""FastAPI application factory."""

from collections.abc import Callable
from datetime import UTC, datetime

from fastapi import FastAPI

from collectionwatch import __version__
from collectionwatch.api.exception_handlers import register_exception_handlers
from collectionwatch.api.negotiation import FormatNegotiator
from collectionwatch.api.routers import api_router, health_router, ws_router
from collectionwatch.config import Settings, get_settings
from collectionwatch.domain.ports.notification import INotificationProvider
from collectionwatch.infrastructure.lifecycle import lifespan
from collectionwatch.infrastructure.notifications import default_providers
from collectionwatch.infrastructure.observability import RequestLoggingMiddleware


def create_app(
    settings: Settings | None = None,
    *,
    clock: Callable[[], datetime] | None = None,
    notification_providers: list[INotificationProvider] | None = None,
) -> FastAPI:
    """Create the application.

    Args:
        settings: Settings to use (default: environment / .env)
        clock: Source of "now" for collection defaults and sweeps (tests pin it)
        notification_providers: Channels the sweep delivers to (default: log only)

    Raises:
        ConfigurationError: If `webservice.formats` names an unknown format
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.clock = clock or (lambda: datetime.now(UTC))
    app.state.negotiator = FormatNegotiator.from_settings(settings)
    app.state.notification_providers = (
        notification_providers
        if notification_providers is not None
        else default_providers()
    )
    app.state.db = None

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(api_router, prefix="/api")
    app.include_router(ws_router, prefix="/ws/1")

    return app
