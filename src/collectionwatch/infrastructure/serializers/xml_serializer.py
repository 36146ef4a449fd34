"""XML serializer for web service responses."""

import re
from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any
from xml.etree import ElementTree as ET

from collectionwatch.domain.ports.serializer import ISerializer

MMD_NAMESPACE = "http://musicbrainz.org/ns/mmd-2.0#"

# Characters XML 1.0 cannot carry at all, not even escaped
_ILLEGAL_XML_CHARS = re.compile(
    "[^\u0009\u000A\u000D\u0020-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]"
)


def _clean(text: str) -> str:
    return _ILLEGAL_XML_CHARS.sub("\uFFFD", text)


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return _clean(str(value.value))
    return _clean(str(value))


class XMLSerializer(ISerializer):
    """Renders payloads as `<metadata>` documents.

    Example:
        {"collection": {"@id": 1, "public": True, "artist": [4, 5]}}

    becomes

        <metadata xmlns="http://musicbrainz.org/ns/mmd-2.0#">
          <collection id="1"><public>true</public>
            <artist-list count="2"><artist>4</artist><artist>5</artist></artist-list>
          </collection>
        </metadata>
    """

    @property
    def fmt(self) -> str:
        return "xml"

    @property
    def mime_type(self) -> str:
        return "application/xml"

    def _append(self, parent: ET.Element, key: str, value: Any) -> None:
        if value is None:
            return
        if isinstance(value, Mapping):
            element = ET.SubElement(parent, key)
            self._fill(element, value)
        elif isinstance(value, (list, tuple, set, frozenset)):
            items = sorted(value) if isinstance(value, (set, frozenset)) else list(value)
            wrapper = ET.SubElement(parent, f"{key}-list", count=str(len(items)))
            for item in items:
                self._append(wrapper, key, item)
        else:
            ET.SubElement(parent, key).text = _text(value)

    def _fill(self, element: ET.Element, data: Mapping[str, Any]) -> None:
        for key, value in data.items():
            if key.startswith("@"):
                if value is not None:
                    element.set(key[1:], _text(value))
            else:
                self._append(element, key, value)

    def _document(self, root: ET.Element) -> str:
        body = ET.tostring(root, encoding="unicode")
        return f'<?xml version="1.0" encoding="UTF-8"?>{body}'

    def output(self, data: Mapping[str, Any]) -> str:
        root = ET.Element("metadata", xmlns=MMD_NAMESPACE)
        self._fill(root, data)
        return self._document(root)

    def output_error(self, message: str) -> str:
        root = ET.Element("error")
        ET.SubElement(root, "text").text = _clean(message)
        return self._document(root)
