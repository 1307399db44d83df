"""Tests for the JSON metadata serializer."""

from albumsense.infrastructure.serialization import JsonMetadataSerializer


class TestJsonMetadataSerializer:
    """Test JSON encoding of Last.fm payloads."""

    def test_keeps_non_ascii_text(self) -> None:
        data = JsonMetadataSerializer().serialize({"artist": "Sigur Rós"})

        assert "Sigur Rós".encode() in data

    def test_sorted_keys(self) -> None:
        data = JsonMetadataSerializer(indent=None).serialize({"b": 1, "a": 2})

        assert data == b'{"a": 2, "b": 1}'

    def test_deserialize(self) -> None:
        serializer = JsonMetadataSerializer()
        payload = {"name": "Ágætis byrjun", "tags": {"tag": [{"name": "post-rock"}]}}

        assert serializer.deserialize(serializer.serialize(payload)) == payload
