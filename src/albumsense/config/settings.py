"""Application settings.

Settings are read from environment variables (prefix ``ALBUMSENSE_``) and an
optional ``.env`` file. Nested groups use ``__`` as delimiter, e.g.
``ALBUMSENSE_LASTFM__API_KEY=...`` or ``ALBUMSENSE_METADATA__SAVE_LOCAL_METADATA=false``.
"""

from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LastfmSettings(BaseModel):
    """Last.fm web service configuration."""

    api_key: str = ""
    api_base_url: str = "https://ws.audioscrobbler.com/2.0/"
    # Hey future me - this is the size of the SHARED pool, not per client!
    # Every album refresh running in parallel competes for these slots.
    max_concurrent_requests: int = Field(default=4, ge=1)
    timeout: float = Field(default=30.0, gt=0)
    autocorrect: bool = False

    @property
    def is_configured(self) -> bool:
        """Check whether an API key is available."""
        return bool(self.api_key.strip())


class MetadataSettings(BaseModel):
    """Local metadata handling."""

    save_local_metadata: bool = True
    local_metadata_filename: str = "lastfm_album.json"
    refresh_interval_days: int = Field(default=30, ge=0)
    # Albums Last.fm didn't know about get re-checked sooner
    not_found_retry_days: int = Field(default=7, ge=0)

    @field_validator("local_metadata_filename")
    @classmethod
    def _plain_filename(cls, value: str) -> str:
        if not value.strip() or "/" in value or "\\" in value:
            raise ValueError("local_metadata_filename must be a plain file name")
        return value.strip()


class DatabaseSettings(BaseModel):
    """Provider state database."""

    url: str = "sqlite+aiosqlite:///./albumsense.db"
    echo: bool = False


class ObservabilitySettings(BaseModel):
    """Logging output options."""

    log_json_format: bool = False


class Settings(BaseSettings):
    """Root settings object."""

    model_config = SettingsConfigDict(
        env_prefix="ALBUMSENSE_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app_name: str = "albumsense"
    log_level: str = "INFO"

    lastfm: LastfmSettings = Field(default_factory=LastfmSettings)
    metadata: MetadataSettings = Field(default_factory=MetadataSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
