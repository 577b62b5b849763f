"""
In-memory CatalogRepository with the same uniqueness rules as the
hosted database. Used by tests and local runs.
"""

import threading
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from src.models import Alias, CanonicalItem, PriceObservation, SkuRecord
from src.storage.base import CatalogRepository, DuplicateKeyError
from src.utils.normalization import normalize_key


class InMemoryCatalogRepository(CatalogRepository):
    """Thread-safe dict-backed store; every write holds a single lock."""

    def __init__(self, items: Iterable[CanonicalItem] = (), aliases: Iterable[Alias] = ()):
        self._lock = threading.Lock()
        self._items: Dict[str, CanonicalItem] = {}
        self._items_by_name: Dict[str, str] = {}
        self._aliases: Dict[Tuple[Optional[str], str], Alias] = {}
        self._skus: Dict[Tuple[str, str], SkuRecord] = {}
        self.price_history: List[PriceObservation] = []

        for item in items:
            self.insert_item(item)
        for alias in aliases:
            self.insert_alias_ignore_conflict(alias)

    def list_items(self) -> List[CanonicalItem]:
        with self._lock:
            return sorted(self._items.values(), key=lambda i: i.name.lower())

    def list_aliases(self, store_id: Optional[str] = None) -> List[Alias]:
        with self._lock:
            return [
                a for (scope, _), a in self._aliases.items()
                if scope is None or scope == store_id
            ]

    def find_item_by_name(self, name: str) -> Optional[CanonicalItem]:
        with self._lock:
            item_id = self._items_by_name.get(normalize_key(name))
            return self._items.get(item_id) if item_id else None

    def get_item(self, item_id: str) -> Optional[CanonicalItem]:
        with self._lock:
            return self._items.get(item_id)

    def insert_item(self, item: CanonicalItem) -> CanonicalItem:
        key = normalize_key(item.name)
        with self._lock:
            if key in self._items_by_name or item.id in self._items:
                raise DuplicateKeyError(f"item '{item.name}' already exists")
            self._items[item.id] = item
            self._items_by_name[key] = item.id
            return item

    def rename_item(self, item_id: str, new_name: str) -> CanonicalItem:
        """Renames in place; the id stays stable so aliases keep pointing at it."""
        key = normalize_key(new_name)
        with self._lock:
            current = self._items[item_id]
            owner = self._items_by_name.get(key)
            if owner is not None and owner != item_id:
                raise DuplicateKeyError(f"item '{new_name}' already exists")
            renamed = current.model_copy(update={'name': new_name.strip()})
            del self._items_by_name[normalize_key(current.name)]
            self._items[item_id] = renamed
            self._items_by_name[key] = item_id
            return renamed

    def insert_alias(self, alias: Alias) -> Alias:
        key = (alias.store_id, normalize_key(alias.alias))
        with self._lock:
            if key in self._aliases:
                raise DuplicateKeyError(f"alias '{alias.alias}' already exists for store {alias.store_id}")
            self._aliases[key] = alias
            return alias

    def upsert_sku(self, record: SkuRecord) -> SkuRecord:
        with self._lock:
            self._skus[(record.store_id, record.item_id)] = record
            return record

    def get_sku(self, store_id: str, item_id: str) -> Optional[SkuRecord]:
        with self._lock:
            return self._skus.get((store_id, item_id))

    def record_prices(self, observations: Sequence[PriceObservation]) -> int:
        with self._lock:
            self.price_history.extend(observations)
            return len(observations)
