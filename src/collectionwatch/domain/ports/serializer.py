"""Serializer port for web service output formats.

Hey future me - every output format of the web service implements this. A
serializer has exactly one short `fmt` token (used by the `?fmt=` override) and
exactly one MIME type (used for Accept negotiation). It must be able to render an
error body on its own, because the FIRST registered serializer renders the 406
response when negotiation fails.

Payload convention (keeps XML and JSON output in step):
- mapping keys become element / object names
- keys starting with "@" are attributes in XML and plain keys in JSON
- a list under key "artist" is rendered as <artist-list count="n"><artist/>...</artist-list>
  in XML and as "artist-list": [...] in JSON
- None values are omitted
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any


class ISerializer(ABC):
    """Renders web service payloads in one wire format."""

    @property
    @abstractmethod
    def fmt(self) -> str:
        """Short format token, e.g. "xml"."""

    @property
    @abstractmethod
    def mime_type(self) -> str:
        """MIME type, e.g. "application/xml"."""

    @abstractmethod
    def output(self, data: Mapping[str, Any]) -> str:
        """Render a payload."""

    @abstractmethod
    def output_error(self, message: str) -> str:
        """Render an error body carrying message."""

    @property
    def content_type(self) -> str:
        """Content-Type header value for responses in this format."""
        return f"{self.mime_type}; charset=utf-8"
