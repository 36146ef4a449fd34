"""Domain exceptions."""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collectionwatch.domain.ports.serializer import ISerializer


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, message is stored as an attribute so handlers can read it without
    # parsing str(exc). Never raise this directly - use a subclass so callers can
    # catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class EntityNotFoundException(DomainException):
    """Raised when a referenced entity does not exist."""

    # entity_type/entity_id are kept separately so the 404 handler can log them
    # as structured fields.
    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ValidationException(DomainException):
    """Raised when an entity invariant or input rule is violated.

    Examples: unknown release attribute code, an ignore time range whose start
    lies after its end, a last-checked timestamp that moves backwards.
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    HTTP Status: 503 (Service Unavailable)

    Example:
        raise ConfigurationError("Unknown web service format: yaml")
    """

    pass


class NotAcceptableError(DomainException):
    """No registered serializer matches the requested format.

    Carries the serializer that must render the error body (the first
    registered one) so the 406 response always has a well-defined format.

    HTTP Status: 406
    """

    def __init__(self, message: str, serializer: "ISerializer") -> None:
        super().__init__(message)
        self.serializer = serializer


# Short names used by the web service layer and older call sites.
EntityNotFoundError = EntityNotFoundException
NotFoundError = EntityNotFoundException
ValidationError = ValidationException
NegotiationFailure = NotAcceptableError


__all__ = [
    "DomainException",
    "EntityNotFoundException",
    "EntityNotFoundError",
    "NotFoundError",
    "ValidationException",
    "ValidationError",
    "ConfigurationError",
    "NotAcceptableError",
    "NegotiationFailure",
]
