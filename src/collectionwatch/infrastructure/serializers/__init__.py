"""Web service output serializers."""

from collectionwatch.domain.ports.serializer import ISerializer

from .json_serializer import JSONSerializer
from .xml_serializer import XMLSerializer

# Token -> serializer class. The web service only offers the tokens listed in the
# `webservice.formats` setting, in that order.
SERIALIZERS: dict[str, type[ISerializer]] = {
    "xml": XMLSerializer,
    "json": JSONSerializer,
}

__all__ = [
    "SERIALIZERS",
    "JSONSerializer",
    "XMLSerializer",
]
