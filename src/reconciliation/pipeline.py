"""
Reconciliation Pipeline - resolves OCR line items to catalog items.

Each line runs through an ordered list of evidence producers and stops at
the first one that finds a match:

1. Exact alias (store-scoped, then global)      -> high confidence
2. Exact catalog name (case-insensitive)        -> high confidence
3. Fuzzy match against known alias texts        -> low confidence
4. Fuzzy match against catalog names            -> low confidence
5. External semantic hint naming a catalog item -> low confidence
6. Fallback: new item named after the receipt text

The pipeline is stateless: every call works on the catalog and alias
snapshots it is given and never caches them between runs.
"""

from collections import Counter
from typing import Callable, Dict, List, Optional, Sequence

from src.matching import AliasIndex, FuzzyMatcher
from src.models import (
    Alias,
    CanonicalItem,
    EvidenceKind,
    MatchEvidence,
    MatchStatus,
    OCRLineItem,
    ReconciliationRow,
)
from src.utils.logging_config import logger
from src.utils.normalization import normalize_key, to_title_case
from src.utils.settings import ReconcilerSettings, load_settings

# Catalog units that say nothing about package size
GENERIC_UNITS = frozenset({'count', 'each'})


class CatalogSnapshot:
    """Lookup tables over one run's catalog and alias collections."""

    def __init__(self, catalog: Sequence[CanonicalItem], aliases: Sequence[Alias]):
        self.items_by_id: Dict[str, CanonicalItem] = {}
        self.items_by_name: Dict[str, CanonicalItem] = {}
        for item in catalog:
            self.items_by_id.setdefault(item.id, item)
            self.items_by_name.setdefault(normalize_key(item.name), item)
        self.names: List[str] = [item.name for item in self.items_by_id.values()]
        self.aliases = AliasIndex(aliases)

    def item(self, item_id: Optional[str]) -> Optional[CanonicalItem]:
        return self.items_by_id.get(item_id) if item_id else None

    def item_named(self, name: Optional[str]) -> Optional[CanonicalItem]:
        return self.items_by_name.get(normalize_key(name)) if name else None


EvidenceProducer = Callable[[OCRLineItem, CatalogSnapshot, Optional[str]], Optional[MatchEvidence]]


class ReconciliationPipeline:
    """
    Turns a batch of OCR line items into reviewable ReconciliationRows.

    Args:
        matcher: FuzzyMatcher used by the fuzzy strategies. Defaults to one
            built from environment settings.
    """

    def __init__(self, matcher: Optional[FuzzyMatcher] = None, settings: Optional[ReconcilerSettings] = None):
        self.settings = settings or load_settings()
        self.matcher = matcher or FuzzyMatcher.from_settings(self.settings)
        self.strategies: List[EvidenceProducer] = [
            self._match_alias_exact,
            self._match_catalog_exact,
            self._match_fuzzy_alias,
            self._match_fuzzy_catalog,
            self._match_external_hint,
        ]

    def reconcile(
        self,
        lines: Sequence[OCRLineItem],
        catalog: Sequence[CanonicalItem],
        aliases: Sequence[Alias],
        store_id: Optional[str] = None
    ) -> List[ReconciliationRow]:
        """
        Produces one ReconciliationRow per line, in input order.

        Args:
            lines: OCR or manually entered line items
            catalog: Snapshot of canonical items
            aliases: Snapshot of learned aliases (any scope)
            store_id: Store the receipt came from; scopes alias lookups

        Returns:
            Rows with is_confirmed False, ready for review
        """
        snapshot = CatalogSnapshot(catalog, aliases)
        rows = [self.reconcile_line(line, snapshot, store_id) for line in lines]

        counts = Counter(row.evidence.kind.value for row in rows)
        logger.info(
            f"Reconciled {len(rows)} line items for store {store_id}: "
            f"{dict(counts)}"
        )
        return rows

    def reconcile_line(
        self,
        line: OCRLineItem,
        snapshot: CatalogSnapshot,
        store_id: Optional[str] = None
    ) -> ReconciliationRow:
        for strategy in self.strategies:
            evidence = strategy(line, snapshot, store_id)
            if evidence is not None:
                logger.debug(f"'{line.raw_name}' matched via {evidence.kind.value} → '{evidence.item_name}'")
                return self._matched_row(line, snapshot.item(evidence.item_id), evidence)
        return self._new_row(line)

    # --- Evidence producers, in priority order ---

    def _match_alias_exact(self, line, snapshot, store_id):
        alias = snapshot.aliases.lookup(line.raw_name, store_id)
        if alias is None:
            return None
        return self._evidence(EvidenceKind.ALIAS_EXACT, snapshot.item(alias.item_id), alias.alias)

    def _match_catalog_exact(self, line, snapshot, store_id):
        item = snapshot.item_named(line.catalog_name)
        return self._evidence(EvidenceKind.CATALOG_EXACT, item, line.catalog_name)

    def _match_fuzzy_alias(self, line, snapshot, store_id):
        # Only aliases that resolve to an item in this snapshot can match
        texts = [
            text for text in snapshot.aliases.texts
            if snapshot.item(snapshot.aliases.item_for_text(text, store_id)) is not None
        ]
        if not texts:
            return None
        result = self.matcher.best_match_with_score(line.raw_name, texts)
        if result is None:
            return None
        alias_text, score = result
        item = snapshot.item(snapshot.aliases.item_for_text(alias_text, store_id))
        return self._evidence(EvidenceKind.FUZZY_ALIAS, item, alias_text, score)

    def _match_fuzzy_catalog(self, line, snapshot, store_id):
        if not snapshot.names:
            return None
        result = self.matcher.best_match_with_score(line.catalog_name, snapshot.names)
        if result is None:
            return None
        name, score = result
        return self._evidence(EvidenceKind.FUZZY_CATALOG, snapshot.item_named(name), name, score)

    def _match_external_hint(self, line, snapshot, store_id):
        if not line.ai_match:
            return None
        # Advisory only: an unknown hint is dropped, never turned into an item
        item = snapshot.item_named(line.ai_match)
        if item is None:
            logger.debug(f"Ignoring hint '{line.ai_match}' for '{line.raw_name}': not in catalog")
            return None
        return self._evidence(EvidenceKind.EXTERNAL_HINT, item, line.ai_match)

    @staticmethod
    def _evidence(
        kind: EvidenceKind,
        item: Optional[CanonicalItem],
        matched_text: str,
        score: Optional[float] = None
    ) -> Optional[MatchEvidence]:
        # Aliases can point at items missing from this snapshot; treat as no match
        if item is None:
            return None
        return MatchEvidence(kind=kind, item_id=item.id, item_name=item.name, matched_text=matched_text, score=score)

    # --- Row builders ---

    @staticmethod
    def _matched_row(line: OCRLineItem, item: CanonicalItem, evidence: MatchEvidence) -> ReconciliationRow:
        unit = item.unit if item.unit and item.unit.lower() not in GENERIC_UNITS else line.unit
        return ReconciliationRow(
            ocr_name=line.raw_name,
            ocr_normalized_name=line.normalized_name,
            ocr_price=line.price,
            ocr_quantity=line.quantity,
            ocr_unit=unit,
            ocr_sku=line.sku,
            is_weighted=item.is_weighted,
            status=MatchStatus.MATCHED,
            selected_item_id=item.id,
            selected_item_name=item.name,
            confidence=evidence.confidence,
            is_confirmed=False,
            evidence=evidence,
        )

    @staticmethod
    def _new_row(line: OCRLineItem) -> ReconciliationRow:
        return ReconciliationRow(
            ocr_name=line.raw_name,
            ocr_normalized_name=line.normalized_name,
            ocr_price=line.price,
            ocr_quantity=line.quantity,
            ocr_unit=line.unit,
            ocr_sku=line.sku,
            is_weighted=bool(line.is_weighted),
            status=MatchStatus.NEW,
            new_item_name=to_title_case(line.catalog_name),
            is_confirmed=False,
            evidence=MatchEvidence(kind=EvidenceKind.NONE),
        )


def candidate_names(catalog: Sequence[CanonicalItem], limit: Optional[int] = None) -> List[str]:
    """
    Catalog names handed to the OCR collaborator for semantic hinting,
    sorted case-insensitively and capped (500 by default).
    """
    if limit is None:
        limit = load_settings().ocr_candidate_limit
    names = sorted({item.name for item in catalog}, key=str.lower)
    return names[:limit]


def reconcile(
    lines: Sequence[OCRLineItem],
    catalog: Sequence[CanonicalItem],
    aliases: Sequence[Alias],
    store_id: Optional[str] = None
) -> List[ReconciliationRow]:
    """Convenience entry point using default settings."""
    return ReconciliationPipeline().reconcile(lines, catalog, aliases, store_id)
