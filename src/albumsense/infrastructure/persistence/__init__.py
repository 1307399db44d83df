"""Persistence adapters."""

from .database import Database
from .repositories import (
    InMemoryProviderStateRepository,
    SqlAlchemyProviderStateRepository,
)

__all__ = [
    "Database",
    "InMemoryProviderStateRepository",
    "SqlAlchemyProviderStateRepository",
]
