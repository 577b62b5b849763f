"""Storage collaborators for finalize-time writes."""

from .base import CatalogRepository, DuplicateKeyError
from .memory import InMemoryCatalogRepository
from .sqlite import SQLiteCatalogRepository

__all__ = ["CatalogRepository", "DuplicateKeyError", "InMemoryCatalogRepository", "SQLiteCatalogRepository"]
