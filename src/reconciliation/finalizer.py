"""
Alias Learning - the finalize step of a reconciliation.

Turns confirmed rows into storage writes:
- creates catalog items for rows marked new (reusing an existing item with
  the same name if one appeared meanwhile)
- learns a store-scoped alias whenever the receipt text differs from the
  canonical name, so the next scan resolves on strategy 1
- emits one price observation per row, with its normalized unit price
- upserts store SKUs seen on the receipt

Duplicate item/alias inserts from concurrent finalize runs are absorbed by
the repository's insert-ignore-conflict semantics, never raised.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence, Union

from dateutil import parser as date_parser

from src.models import (
    Alias,
    CanonicalItem,
    FinalizeResult,
    MatchStatus,
    PriceObservation,
    ReconciliationRow,
    RejectedRow,
    SkuRecord,
)
from src.reconciliation.errors import MissingStoreError
from src.storage.base import CatalogRepository
from src.units import compute_unit_price
from src.utils.logging_config import logger
from src.utils.normalization import normalize_key
from src.utils.settings import load_settings


def parse_recorded_date(value: Union[date, datetime, str, None]) -> date:
    """Accepts a date, datetime or OCR date string; defaults to today."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return date.today()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date_parser.parse(value).date()


class Finalizer:
    """Applies confirmed reconciliation rows to a CatalogRepository."""

    def __init__(self, repository: CatalogRepository, default_unit: Optional[str] = None):
        self.repository = repository
        self.default_unit = default_unit or load_settings().default_item_unit

    def finalize(
        self,
        rows: Sequence[ReconciliationRow],
        store_id: str,
        recorded_date: Union[date, datetime, str, None] = None
    ) -> FinalizeResult:
        """
        Persists the outcome of a review.

        Args:
            rows: Reviewed rows; only confirmed ones are applied
            store_id: Store the receipt came from
            recorded_date: Purchase date (date or OCR string), defaults to today

        Returns:
            FinalizeResult describing what was written, skipped and rejected
        """
        if not store_id:
            raise MissingStoreError("A store must be selected before finalizing")

        day = parse_recorded_date(recorded_date)
        result = FinalizeResult()

        for row in rows:
            if not row.is_confirmed:
                result.skipped_rows.append(row)
                continue

            reason = self._rejection_reason(row)
            if reason:
                logger.warning(f"Rejecting row '{row.ocr_name}': {reason}")
                result.rejected_rows.append(RejectedRow(row=row, reason=reason))
                continue

            item = self._resolve_item(row, result)
            self._learn_alias(row, item, store_id, result)

            result.price_observations.append(PriceObservation(
                item_id=item.id,
                item_name=item.name,
                raw_name=row.ocr_name,
                price=row.ocr_price,
                quantity=row.ocr_quantity,
                unit=row.ocr_unit or self.default_unit,
                is_weighted=row.is_weighted,
                store_id=store_id,
                recorded_date=day,
                unit_price=compute_unit_price(item.name, row.ocr_price),
            ))

            if row.ocr_sku and row.ocr_sku.strip():
                sku = self.repository.upsert_sku(
                    SkuRecord(store_id=store_id, item_id=item.id, store_sku=row.ocr_sku.strip())
                )
                result.sku_records.append(sku)

        if result.price_observations:
            self.repository.record_prices(result.price_observations)

        logger.info(
            f"Finalized store {store_id}: {len(result.price_observations)} prices, "
            f"{len(result.created_items)} new items, {len(result.learned_aliases)} aliases learned, "
            f"{len(result.skipped_rows)} skipped, {len(result.rejected_rows)} rejected"
        )
        return result

    @staticmethod
    def _rejection_reason(row: ReconciliationRow) -> Optional[str]:
        # Comparing NaN raises InvalidOperation, so finiteness is checked first
        if row.ocr_price is None or not row.ocr_price.is_finite():
            return "price must be a finite number"
        if row.ocr_quantity is None or not row.ocr_quantity.is_finite():
            return "quantity must be a finite number"
        if row.ocr_price <= Decimal('0'):
            return "price must be positive"
        if row.ocr_quantity <= Decimal('0'):
            return "quantity must be positive"
        if row.status == MatchStatus.NEW and not (row.new_item_name and row.new_item_name.strip()):
            return "new item has no name"
        if row.status == MatchStatus.MATCHED and not row.selected_item_id:
            return "no item selected"
        if row.status == MatchStatus.UNRESOLVED:
            return "no item selected"
        return None

    def _resolve_item(self, row: ReconciliationRow, result: FinalizeResult) -> CanonicalItem:
        if row.status == MatchStatus.MATCHED:
            return CanonicalItem(
                id=row.selected_item_id,
                name=row.selected_item_name or row.ocr_name,
                unit=row.ocr_unit or self.default_unit,
                is_weighted=row.is_weighted,
            )

        name = row.new_item_name.strip()
        existing = self.repository.find_item_by_name(name)
        if existing is not None:
            logger.debug(f"Reusing existing item '{existing.name}' for new row '{row.ocr_name}'")
            return existing

        item, created = self.repository.insert_item_ignore_conflict(CanonicalItem(
            name=name,
            unit=row.ocr_unit or self.default_unit,
            is_weighted=row.is_weighted,
        ))
        if created:
            result.created_items.append(item)
        return item

    def _learn_alias(
        self,
        row: ReconciliationRow,
        item: CanonicalItem,
        store_id: str,
        result: FinalizeResult
    ) -> None:
        if normalize_key(row.ocr_name) == normalize_key(item.name):
            return

        alias = Alias(alias=row.ocr_name, item_id=item.id, store_id=store_id)
        if self.repository.insert_alias_ignore_conflict(alias):
            result.learned_aliases.append(alias)
        else:
            logger.warning(f"Alias '{row.ocr_name}' already learned for store {store_id}; ignoring")
