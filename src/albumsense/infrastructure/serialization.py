"""JSON serializer for metadata payloads."""

import json
from typing import Any

from albumsense.domain.ports import IMetadataSerializer


class JsonMetadataSerializer(IMetadataSerializer):
    """UTF-8 JSON with stable key order, pretty-printed for humans browsing the library."""

    def __init__(self, indent: int | None = 2) -> None:
        self.indent = indent

    def serialize(self, obj: Any) -> bytes:
        return json.dumps(
            obj, ensure_ascii=False, indent=self.indent, sort_keys=True, default=str
        ).encode("utf-8")

    def deserialize(self, data: bytes) -> Any:
        return json.loads(data.decode("utf-8"))
