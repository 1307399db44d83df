"""Configuration module for albumsense."""

from .settings import (
    DatabaseSettings,
    LastfmSettings,
    MetadataSettings,
    ObservabilitySettings,
    Settings,
    get_settings,
)

__all__ = [
    "DatabaseSettings",
    "LastfmSettings",
    "MetadataSettings",
    "ObservabilitySettings",
    "Settings",
    "get_settings",
]
