"""External service integrations."""

from albumsense.infrastructure.integrations.lastfm_client import LastfmClient

__all__ = ["LastfmClient"]
