"""
Data models for catalog items, aliases and receipt reconciliation.

CanonicalItem and Alias mirror the storage collaborator's records. OCRLineItem
is the immutable input from the OCR collaborator; ReconciliationRow is the
reviewable output of the pipeline.
"""

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.units import UnitPrice


class MatchStatus(str, Enum):
    MATCHED = "matched"
    NEW = "new"
    UNRESOLVED = "unresolved"


class Confidence(str, Enum):
    """high = exact textual match; low = inferred, needs confirmation."""
    HIGH = "high"
    LOW = "low"


class EvidenceKind(str, Enum):
    """Which strategy produced a row's match, in pipeline order."""
    ALIAS_EXACT = "alias_exact"
    CATALOG_EXACT = "catalog_exact"
    FUZZY_ALIAS = "fuzzy_alias"
    FUZZY_CATALOG = "fuzzy_catalog"
    EXTERNAL_HINT = "external_hint"
    REVIEWER = "reviewer"
    NONE = "none"


HIGH_CONFIDENCE_KINDS = frozenset({
    EvidenceKind.ALIAS_EXACT,
    EvidenceKind.CATALOG_EXACT,
    EvidenceKind.REVIEWER,
})


class CanonicalItem(BaseModel):
    """A deduplicated catalog record that prices are tracked against."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    unit: Optional[str] = "count"
    is_weighted: bool = False

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Item name must not be blank')
        return v.strip()


class Alias(BaseModel):
    """
    An alternate receipt spelling for a canonical item.
    store_id None means the alias applies to every store.
    """
    model_config = ConfigDict(frozen=True)

    alias: str
    item_id: str
    store_id: Optional[str] = None

    @field_validator('alias')
    @classmethod
    def validate_alias(cls, v):
        if not v or not v.strip():
            raise ValueError('Alias text must not be blank')
        return v.strip()


class OCRLineItem(BaseModel):
    """A single line item as produced by OCR or manual entry."""
    model_config = ConfigDict(frozen=True)

    raw_name: str
    price: Decimal = Field(ge=0)
    quantity: Decimal = Field(default=Decimal('1'), gt=0)
    ai_match: Optional[str] = None
    normalized_name: Optional[str] = None
    unit: Optional[str] = None
    sku: Optional[str] = None
    is_weighted: Optional[bool] = None

    @field_validator('raw_name')
    @classmethod
    def validate_raw_name(cls, v):
        if not v or not v.strip():
            raise ValueError('Line item name must not be blank')
        return v.strip()

    @property
    def catalog_name(self) -> str:
        """Name used for catalog matching: the OCR cleanup when present."""
        if self.normalized_name and self.normalized_name.strip():
            return self.normalized_name.strip()
        return self.raw_name


class MatchEvidence(BaseModel):
    """Why a row points at a particular catalog item."""
    model_config = ConfigDict(frozen=True)

    kind: EvidenceKind
    item_id: Optional[str] = None
    item_name: Optional[str] = None
    matched_text: Optional[str] = None
    score: Optional[float] = None

    @property
    def confidence(self) -> Confidence:
        if self.kind in HIGH_CONFIDENCE_KINDS:
            return Confidence.HIGH
        return Confidence.LOW


class ReconciliationRow(BaseModel):
    """
    One reviewable decision per OCR line item.
    Prices are not validated here: reviewers may type anything and the
    finalize step rejects rows with non-positive amounts.
    """
    ocr_name: str
    ocr_normalized_name: Optional[str] = None
    ocr_price: Decimal
    ocr_quantity: Decimal = Decimal('1')
    ocr_unit: Optional[str] = None
    ocr_sku: Optional[str] = None
    is_weighted: bool = False
    status: MatchStatus
    selected_item_id: Optional[str] = None
    selected_item_name: Optional[str] = None
    new_item_name: Optional[str] = None
    confidence: Confidence = Confidence.LOW
    is_confirmed: bool = False
    evidence: MatchEvidence = Field(default_factory=lambda: MatchEvidence(kind=EvidenceKind.NONE))

    @property
    def resolved_name(self) -> Optional[str]:
        """Canonical name this row will be recorded under."""
        if self.status == MatchStatus.MATCHED:
            return self.selected_item_name
        if self.status == MatchStatus.NEW:
            return self.new_item_name
        return None

    @property
    def line_total(self) -> Decimal:
        return self.ocr_price * self.ocr_quantity


class PriceObservation(BaseModel):
    """A price record handed to storage on finalize."""
    item_id: str
    item_name: str
    raw_name: str
    price: Decimal
    quantity: Decimal
    unit: str
    is_weighted: bool = False
    store_id: str
    recorded_date: date
    unit_price: Optional[UnitPrice] = None


class SkuRecord(BaseModel):
    """Store-specific SKU for an item; one per (store_id, item_id)."""
    store_id: str
    item_id: str
    store_sku: str


class RejectedRow(BaseModel):
    row: ReconciliationRow
    reason: str


class FinalizeResult(BaseModel):
    """Everything a finalize run wrote or declined to write."""
    created_items: List[CanonicalItem] = Field(default_factory=list)
    learned_aliases: List[Alias] = Field(default_factory=list)
    price_observations: List[PriceObservation] = Field(default_factory=list)
    sku_records: List[SkuRecord] = Field(default_factory=list)
    skipped_rows: List[ReconciliationRow] = Field(default_factory=list)
    rejected_rows: List[RejectedRow] = Field(default_factory=list)
