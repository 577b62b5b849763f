"""
Storage interface the finalize step writes through.

Concrete repositories must enforce uniqueness on item names and on
(store_id, alias) pairs; conflicts surface as DuplicateKeyError and the
*_ignore_conflict helpers turn them into "already there" results.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from src.models import Alias, CanonicalItem, PriceObservation, SkuRecord


class DuplicateKeyError(Exception):
    """Raised when an insert violates a uniqueness constraint."""


class CatalogRepository(ABC):
    """Abstract catalog / alias / price-history store."""

    @abstractmethod
    def list_items(self) -> List[CanonicalItem]:
        ...

    @abstractmethod
    def list_aliases(self, store_id: Optional[str] = None) -> List[Alias]:
        """Global aliases plus, when store_id is given, that store's aliases."""
        ...

    @abstractmethod
    def find_item_by_name(self, name: str) -> Optional[CanonicalItem]:
        """Exact, case-insensitive name lookup."""
        ...

    @abstractmethod
    def insert_item(self, item: CanonicalItem) -> CanonicalItem:
        """Inserts an item; raises DuplicateKeyError if the name is taken."""
        ...

    @abstractmethod
    def insert_alias(self, alias: Alias) -> Alias:
        """Inserts an alias; raises DuplicateKeyError on (store_id, alias) conflict."""
        ...

    @abstractmethod
    def upsert_sku(self, record: SkuRecord) -> SkuRecord:
        ...

    @abstractmethod
    def record_prices(self, observations: Sequence[PriceObservation]) -> int:
        """Persists price observations, returns how many were written."""
        ...

    def insert_item_ignore_conflict(self, item: CanonicalItem) -> Tuple[CanonicalItem, bool]:
        """
        Insert, and on a name conflict return the row that won the race.

        Returns:
            (stored item, True if this call created it)
        """
        try:
            return self.insert_item(item), True
        except DuplicateKeyError:
            existing = self.find_item_by_name(item.name)
            if existing is None:
                raise
            return existing, False

    def insert_alias_ignore_conflict(self, alias: Alias) -> bool:
        """Returns False when the alias was already learned."""
        try:
            self.insert_alias(alias)
            return True
        except DuplicateKeyError:
            return False
