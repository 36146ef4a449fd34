"""JSON serializer for web service responses."""

import json
from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any

from collectionwatch.domain.ports.serializer import ISerializer


def _convert(value: Any) -> Any:
    if isinstance(value, Mapping):
        converted: dict[str, Any] = {}
        for key, item in value.items():
            if item is None:
                continue
            name = key[1:] if key.startswith("@") else key
            if isinstance(item, (list, tuple, set, frozenset)):
                converted[f"{name}-list"] = _convert(item)
            else:
                converted[name] = _convert(item)
        return converted
    if isinstance(value, (set, frozenset)):
        return [_convert(item) for item in sorted(value)]
    if isinstance(value, (list, tuple)):
        return [_convert(item) for item in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


class JSONSerializer(ISerializer):
    """Renders payloads as JSON objects following the same naming as XML output."""

    @property
    def fmt(self) -> str:
        return "json"

    @property
    def mime_type(self) -> str:
        return "application/json"

    def output(self, data: Mapping[str, Any]) -> str:
        return json.dumps(_convert(data), ensure_ascii=False)

    def output_error(self, message: str) -> str:
        return json.dumps({"error": message}, ensure_ascii=False)
