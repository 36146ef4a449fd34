"""Output format negotiation for the web service.

Hey future me - this replaces the old "stash the serializer on the request" trick.
The negotiator is built ONCE at startup from the `webservice.formats` setting and
hung on `app.state.negotiator`. Route handlers get the chosen serializer as a plain
argument through the `get_serializer` dependency, and if nothing matches the
dependency raises NotAcceptableError BEFORE the handler body ever runs.

Rules (in this order):
1. `?fmt=<token>` present: only the token decides. An unknown token fails, we do
   NOT fall back to the Accept header.
2. No `fmt`: match the registered MIME types against the Accept header using RFC
   7231 quality values. Missing or blank Accept means `application/xml`.
3. Ties on quality go to the serializer registered first.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import mimeparse
from fastapi import Request
from fastapi.responses import Response

from collectionwatch.config import Settings
from collectionwatch.domain.exceptions import ConfigurationError, NotAcceptableError
from collectionwatch.domain.ports.serializer import ISerializer
from collectionwatch.infrastructure.serializers import SERIALIZERS

logger = logging.getLogger(__name__)

DEFAULT_ACCEPT = "application/xml"


def _human_join(values: Sequence[str]) -> str:
    if len(values) <= 1:
        return "".join(values)
    return f"{', '.join(values[:-1])} and {values[-1]}"


class FormatNegotiator:
    """Picks one registered serializer per web service request."""

    def __init__(
        self, serializers: Iterable[ISerializer], default_accept: str = DEFAULT_ACCEPT
    ) -> None:
        self._serializers: list[ISerializer] = list(serializers)
        if not self._serializers:
            raise ConfigurationError("At least one web service format must be registered")

        tokens = [s.fmt for s in self._serializers]
        mime_types = [s.mime_type for s in self._serializers]
        if len(set(tokens)) != len(tokens):
            raise ConfigurationError(f"Duplicate web service format token in {tokens}")
        if len(set(mime_types)) != len(mime_types):
            raise ConfigurationError(f"Duplicate web service MIME type in {mime_types}")

        self._by_token = {s.fmt: s for s in self._serializers}
        self.default_accept = default_accept
        self.failure_message = (
            "Invalid format. Either set an Accept header (recognized mime types are "
            f"{_human_join(mime_types)}), or include a fmt= argument in the query "
            f"string (valid values for fmt are {_human_join(tokens)})."
        )

    @classmethod
    def from_tokens(
        cls, tokens: Iterable[str], default_accept: str = DEFAULT_ACCEPT
    ) -> "FormatNegotiator":
        """Build a negotiator from format tokens, preserving their order.

        Raises:
            ConfigurationError: If a token has no serializer
        """
        serializers = []
        for token in tokens:
            serializer_cls = SERIALIZERS.get(token)
            if serializer_cls is None:
                raise ConfigurationError(
                    f"Unknown web service format '{token}' "
                    f"(available: {', '.join(sorted(SERIALIZERS))})"
                )
            serializers.append(serializer_cls())
        return cls(serializers, default_accept=default_accept)

    @classmethod
    def from_settings(cls, settings: Settings) -> "FormatNegotiator":
        """Build the negotiator described by the `webservice` settings section."""
        negotiator = cls.from_tokens(
            settings.webservice.formats,
            default_accept=settings.webservice.default_accept,
        )
        logger.info(
            "Web service formats registered: %s",
            ", ".join(s.fmt for s in negotiator.serializers),
        )
        return negotiator

    @property
    def serializers(self) -> list[ISerializer]:
        return list(self._serializers)

    @property
    def default_serializer(self) -> ISerializer:
        """The first registered serializer, which renders negotiation failures."""
        return self._serializers[0]

    def select(self, fmt: str | None, accept: str | None) -> ISerializer | None:
        """Return the serializer for this request, or None if nothing matches."""
        if fmt is not None:
            return self._by_token.get(fmt)

        if accept is None or not accept.strip():
            accept = self.default_accept

        best: ISerializer | None = None
        best_quality = 0.0
        for serializer in self._serializers:
            try:
                quality = mimeparse.quality(serializer.mime_type, accept)
            except ValueError:
                # Malformed media ranges match nothing
                logger.debug("Unparseable Accept header: %r", accept)
                return None
            if quality > best_quality:
                best, best_quality = serializer, quality
        return best

    def negotiate(self, fmt: str | None, accept: str | None) -> ISerializer:
        """Like select(), but raises instead of returning None.

        Raises:
            NotAcceptableError: If no registered serializer matches
        """
        serializer = self.select(fmt, accept)
        if serializer is None:
            logger.info(
                "Format negotiation failed",
                extra={"fmt": fmt, "accept": accept},
            )
            raise NotAcceptableError(
                self.failure_message, serializer=self.default_serializer
            )
        return serializer


def get_negotiator(request: Request) -> FormatNegotiator:
    """Get the negotiator built at application startup."""
    negotiator: FormatNegotiator = request.app.state.negotiator
    return negotiator


def get_serializer(request: Request) -> ISerializer:
    """FastAPI dependency resolving the response serializer for this request."""
    return get_negotiator(request).negotiate(
        request.query_params.get("fmt"),
        request.headers.get("accept"),
    )


class SerializedResponse(Response):
    """Response rendered by a negotiated serializer."""

    def __init__(
        self,
        data: Mapping[str, Any],
        serializer: ISerializer,
        status_code: int = 200,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            content=serializer.output(data),
            status_code=status_code,
            headers=dict(headers) if headers else None,
            media_type=serializer.content_type,
        )

    @classmethod
    def error(
        cls, message: str, serializer: ISerializer, status_code: int
    ) -> Response:
        """Render an error body in the serializer's format."""
        return Response(
            content=serializer.output_error(message),
            status_code=status_code,
            media_type=serializer.content_type,
        )
