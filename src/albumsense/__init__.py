"""albumsense - Last.fm album metadata enrichment for local music libraries."""

__version__ = "0.1.0"
