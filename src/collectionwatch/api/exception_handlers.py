"""Exception handlers turning domain exceptions into HTTP responses.

Hey future me - the JSON API answers errors as {"detail": "..."} like FastAPI's own
errors do. The ONE exception is NotAcceptableError from the web service: its body is
rendered by the serializer the negotiator picked for failures (the first registered
format), so an XML client gets <error><text>...</text></error>.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import IntegrityError

from collectionwatch.api.negotiation import SerializedResponse
from collectionwatch.domain.exceptions import (
    ConfigurationError,
    EntityNotFoundException,
    NotAcceptableError,
    ValidationException,
)

logger = logging.getLogger(__name__)


def _sanitize_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Make pydantic error dicts JSON-serializable (raw bodies arrive as bytes)."""

    def _sanitize_value(value: Any) -> Any:
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        if isinstance(value, dict):
            return {k: _sanitize_value(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [_sanitize_value(item) for item in value]
        if isinstance(value, Exception):
            return str(value)
        return value

    return [_sanitize_value(error) for error in errors]


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain exceptions, request validation and integrity errors."""

    @app.exception_handler(NotAcceptableError)
    async def not_acceptable_handler(
        request: Request, exc: NotAcceptableError
    ) -> Response:
        """Render negotiation failures with 406 in the fallback serializer's format."""
        logger.info(
            "No acceptable format at %s",
            request.url.path,
            extra={
                "path": request.url.path,
                "fmt": request.query_params.get("fmt"),
                "accept": request.headers.get("accept"),
            },
        )
        return SerializedResponse.error(
            exc.message, exc.serializer, status.HTTP_406_NOT_ACCEPTABLE
        )

    @app.exception_handler(ValidationException)
    async def validation_exception_handler(
        request: Request, exc: ValidationException
    ) -> JSONResponse:
        """Handle domain validation exceptions with 422 Unprocessable Entity."""
        logger.warning(
            "Validation error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.message},
        )

    @app.exception_handler(EntityNotFoundException)
    async def entity_not_found_exception_handler(
        request: Request, exc: EntityNotFoundException
    ) -> JSONResponse:
        """Handle entity not found exceptions with 404 Not Found."""
        logger.info(
            "Entity not found at %s: %s %s",
            request.url.path,
            exc.entity_type,
            exc.entity_id,
            extra={
                "path": request.url.path,
                "entity_type": exc.entity_type,
                "entity_id": exc.entity_id,
            },
        )
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": exc.message},
        )

    # Two requests racing to add the same link pair: the unique constraint wins
    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(
        request: Request, exc: IntegrityError
    ) -> JSONResponse:
        """Handle constraint violations with 409 Conflict."""
        logger.warning(
            "Integrity error at %s: %s",
            request.url.path,
            exc.orig,
            extra={"path": request.url.path, "error": str(exc.orig)},
        )
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": "Conflicting write, please retry"},
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        """Handle configuration errors with 503 Service Unavailable."""
        logger.error(
            "Configuration error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle Pydantic request validation errors with 422 Unprocessable Entity."""
        sanitized_errors = _sanitize_validation_errors(list(exc.errors()))
        logger.warning(
            "Request validation error at %s: %s",
            request.url.path,
            sanitized_errors,
            extra={"path": request.url.path, "errors": sanitized_errors},
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": sanitized_errors},
        )
