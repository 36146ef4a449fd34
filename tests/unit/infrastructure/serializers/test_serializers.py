"""Unit tests for the XML and JSON web service serializers."""

import json
from datetime import UTC, datetime
from xml.etree import ElementTree as ET

from collectionwatch.domain.value_objects import ReleaseAttribute
from collectionwatch.infrastructure.serializers import (
    SERIALIZERS,
    JSONSerializer,
    XMLSerializer,
)

NS = "{http://musicbrainz.org/ns/mmd-2.0#}"

PAYLOAD = {
    "collection": {
        "@id": 7,
        "owner": 1,
        "public": True,
        "last-checked": datetime(2026, 3, 1, 12, 0, tzinfo=UTC),
        "ignore-time-range": None,
        "watched-artist": [10, 11],
        "ignored-attribute": frozenset({ReleaseAttribute.LIVE, ReleaseAttribute.EP}),
    }
}


def _parse(body: str) -> ET.Element:
    return ET.fromstring(body.encode("utf-8"))


class TestXMLSerializer:
    def test_identity(self) -> None:
        serializer = XMLSerializer()
        assert serializer.fmt == "xml"
        assert serializer.mime_type == "application/xml"
        assert serializer.content_type == "application/xml; charset=utf-8"

    def test_output_is_a_metadata_document(self) -> None:
        body = XMLSerializer().output(PAYLOAD)

        assert body.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        root = _parse(body)
        assert root.tag == f"{NS}metadata"

    def test_attributes_elements_and_lists(self) -> None:
        root = _parse(XMLSerializer().output(PAYLOAD))
        collection = root.find(f"{NS}collection")

        assert collection is not None
        assert collection.get("id") == "7"
        assert collection.findtext(f"{NS}owner") == "1"
        assert collection.findtext(f"{NS}public") == "true"
        assert collection.findtext(f"{NS}last-checked") == "2026-03-01T12:00:00+00:00"

        artists = collection.find(f"{NS}watched-artist-list")
        assert artists is not None
        assert artists.get("count") == "2"
        assert [e.text for e in artists.findall(f"{NS}watched-artist")] == ["10", "11"]

    def test_sets_are_sorted(self) -> None:
        root = _parse(XMLSerializer().output(PAYLOAD))
        attrs = root.find(f"{NS}collection/{NS}ignored-attribute-list")

        assert attrs is not None
        assert [e.text for e in attrs] == ["3", "9"]

    def test_none_values_are_omitted(self) -> None:
        root = _parse(XMLSerializer().output(PAYLOAD))
        assert root.find(f"{NS}collection/{NS}ignore-time-range") is None

    def test_empty_list_keeps_count(self) -> None:
        root = _parse(XMLSerializer().output({"tags": {"tag": []}}))
        tag_list = root.find(f"{NS}tags/{NS}tag-list")

        assert tag_list is not None
        assert tag_list.get("count") == "0"
        assert len(tag_list) == 0

    def test_false_renders_as_false(self) -> None:
        root = _parse(XMLSerializer().output({"collection": {"public": False}}))
        assert root.findtext(f"{NS}collection/{NS}public") == "false"

    def test_error_document(self) -> None:
        body = XMLSerializer().output_error("Not <found> & gone")
        root = _parse(body)

        assert root.tag == "error"
        assert root.findtext("text") == "Not <found> & gone"

    def test_control_characters_are_replaced(self) -> None:
        body = XMLSerializer().output_error("Unknown tag target '\x01'")
        root = _parse(body)

        assert root.findtext("text") == "Unknown tag target '\ufffd'"

    def test_control_characters_in_values_and_attributes(self) -> None:
        body = XMLSerializer().output({"tag": {"@name": "a\x00b", "value": "c\x1fd"}})
        root = _parse(body)

        tag = root.find(f"{NS}tag")
        assert tag.get("name") == "a\ufffdb"
        assert tag.findtext(f"{NS}value") == "c\ufffdd"


class TestJSONSerializer:
    def test_identity(self) -> None:
        serializer = JSONSerializer()
        assert serializer.fmt == "json"
        assert serializer.mime_type == "application/json"
        assert serializer.content_type == "application/json; charset=utf-8"

    def test_same_naming_as_xml(self) -> None:
        data = json.loads(JSONSerializer().output(PAYLOAD))

        assert data == {
            "collection": {
                "id": 7,
                "owner": 1,
                "public": True,
                "last-checked": "2026-03-01T12:00:00+00:00",
                "watched-artist-list": [10, 11],
                "ignored-attribute-list": [3, 9],
            }
        }

    def test_nested_list_items(self) -> None:
        payload = {"artist": {"@id": 10, "tag": [{"@id": 5, "@count": 2, "weight": 1.0}]}}
        data = json.loads(JSONSerializer().output(payload))

        assert data == {
            "artist": {"id": 10, "tag-list": [{"id": 5, "count": 2, "weight": 1.0}]}
        }

    def test_non_ascii_is_kept(self) -> None:
        body = JSONSerializer().output({"artist": {"name": "Sigur Rós"}})
        assert "Sigur Rós" in body

    def test_error_document(self) -> None:
        assert json.loads(JSONSerializer().output_error("nope")) == {"error": "nope"}


def test_registry_order_puts_xml_first() -> None:
    assert list(SERIALIZERS) == ["xml", "json"]
