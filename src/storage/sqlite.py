"""
SQLite-backed CatalogRepository.

Uniqueness lives in the schema (case-insensitive item names, one alias per
store scope) so concurrent finalize runs rely on the database rather than
on a check-then-insert in Python.
"""

import sqlite3
import threading
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import List, Optional, Sequence, Union

from src.models import Alias, CanonicalItem, PriceObservation, SkuRecord
from src.storage.base import CatalogRepository, DuplicateKeyError
from src.utils.logging_config import logger

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS items (
  id           TEXT PRIMARY KEY,
  name         TEXT NOT NULL,
  unit         TEXT,
  is_weighted  INTEGER NOT NULL DEFAULT 0,
  created_at   TEXT DEFAULT (datetime('now'))
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_items_name ON items(LOWER(TRIM(name)));

-- store_id NULL is the global scope
CREATE TABLE IF NOT EXISTS item_aliases (
  alias      TEXT NOT NULL,
  item_id    TEXT NOT NULL REFERENCES items(id) ON DELETE CASCADE,
  store_id   TEXT,
  created_at TEXT DEFAULT (datetime('now'))
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_aliases_scope ON item_aliases(
  COALESCE(store_id, ''),
  LOWER(TRIM(alias))
);

CREATE TABLE IF NOT EXISTS store_item_sku (
  store_id   TEXT NOT NULL,
  item_id    TEXT NOT NULL REFERENCES items(id) ON DELETE CASCADE,
  store_sku  TEXT NOT NULL,
  PRIMARY KEY (store_id, item_id)
);

CREATE TABLE IF NOT EXISTS price_history (
  id             INTEGER PRIMARY KEY,
  item_id        TEXT NOT NULL REFERENCES items(id) ON DELETE CASCADE,
  item_name      TEXT NOT NULL,
  raw_name       TEXT,
  price          TEXT NOT NULL,   -- Decimal as text, never REAL
  quantity       TEXT NOT NULL,
  unit           TEXT,
  is_weighted    INTEGER NOT NULL DEFAULT 0,
  store_id       TEXT NOT NULL,
  recorded_date  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_price_history_item ON price_history(item_id, store_id);
"""


class SQLiteCatalogRepository(CatalogRepository):
    """Single-connection repository; writes are serialized by a lock."""

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._conn.executescript(SCHEMA_SQL)
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()

    def list_items(self) -> List[CanonicalItem]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT id, name, unit, is_weighted FROM items ORDER BY LOWER(name)"
            ).fetchall()
        return [self._item_from_row(r) for r in rows]

    def list_aliases(self, store_id: Optional[str] = None) -> List[Alias]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT alias, item_id, store_id FROM item_aliases "
                "WHERE store_id IS NULL OR store_id = ? ORDER BY rowid",
                (store_id,)
            ).fetchall()
        return [Alias(alias=r["alias"], item_id=r["item_id"], store_id=r["store_id"]) for r in rows]

    def find_item_by_name(self, name: str) -> Optional[CanonicalItem]:
        with self._lock:
            row = self._conn.execute(
                "SELECT id, name, unit, is_weighted FROM items WHERE LOWER(TRIM(name)) = LOWER(TRIM(?))",
                (name,)
            ).fetchone()
        return self._item_from_row(row) if row else None

    def insert_item(self, item: CanonicalItem) -> CanonicalItem:
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute(
                        "INSERT INTO items (id, name, unit, is_weighted) VALUES (?, ?, ?, ?)",
                        (item.id, item.name, item.unit, int(item.is_weighted))
                    )
            except sqlite3.IntegrityError as e:
                _raise_duplicate(e)
        return item

    def insert_alias(self, alias: Alias) -> Alias:
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute(
                        "INSERT INTO item_aliases (alias, item_id, store_id) VALUES (?, ?, ?)",
                        (alias.alias, alias.item_id, alias.store_id)
                    )
            except sqlite3.IntegrityError as e:
                _raise_duplicate(e)
        return alias

    def insert_alias_ignore_conflict(self, alias: Alias) -> bool:
        with self._lock:
            with self._conn:
                cur = self._conn.execute(
                    "INSERT OR IGNORE INTO item_aliases (alias, item_id, store_id) VALUES (?, ?, ?)",
                    (alias.alias, alias.item_id, alias.store_id)
                )
        return cur.rowcount == 1

    def upsert_sku(self, record: SkuRecord) -> SkuRecord:
        with self._lock:
            with self._conn:
                self._conn.execute(
                    "INSERT INTO store_item_sku (store_id, item_id, store_sku) VALUES (?, ?, ?) "
                    "ON CONFLICT(store_id, item_id) DO UPDATE SET store_sku = excluded.store_sku",
                    (record.store_id, record.item_id, record.store_sku)
                )
        return record

    def get_sku(self, store_id: str, item_id: str) -> Optional[SkuRecord]:
        with self._lock:
            row = self._conn.execute(
                "SELECT store_id, item_id, store_sku FROM store_item_sku WHERE store_id = ? AND item_id = ?",
                (store_id, item_id)
            ).fetchone()
        return SkuRecord(**dict(row)) if row else None

    def record_prices(self, observations: Sequence[PriceObservation]) -> int:
        rows = [
            (
                o.item_id, o.item_name, o.raw_name, str(o.price), str(o.quantity),
                o.unit, int(o.is_weighted), o.store_id, o.recorded_date.isoformat()
            )
            for o in observations
        ]
        with self._lock:
            with self._conn:
                self._conn.executemany(
                    "INSERT INTO price_history (item_id, item_name, raw_name, price, quantity, unit, "
                    "is_weighted, store_id, recorded_date) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    rows
                )
        logger.debug(f"Recorded {len(rows)} price observations")
        return len(rows)

    def list_price_history(self, item_id: str) -> List[dict]:
        """Stored observations for an item, oldest first."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM price_history WHERE item_id = ? ORDER BY recorded_date, id",
                (item_id,)
            ).fetchall()
        history = []
        for r in rows:
            entry = dict(r)
            entry["price"] = Decimal(entry["price"])
            entry["quantity"] = Decimal(entry["quantity"])
            entry["recorded_date"] = date.fromisoformat(entry["recorded_date"])
            history.append(entry)
        return history

    @staticmethod
    def _item_from_row(row: sqlite3.Row) -> CanonicalItem:
        return CanonicalItem(
            id=row["id"],
            name=row["name"],
            unit=row["unit"],
            is_weighted=bool(row["is_weighted"])
        )


def _raise_duplicate(error: sqlite3.IntegrityError) -> None:
    """Re-raises UNIQUE/PRIMARY KEY violations as DuplicateKeyError, anything else unchanged."""
    if "UNIQUE constraint failed" in str(error):
        raise DuplicateKeyError(str(error)) from error
    raise error
