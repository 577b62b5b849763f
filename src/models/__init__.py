"""
Data models for item reconciliation and unit pricing.
"""

from .units import Unit, Axis, UnitInfo, UnitPrice, NO_UNIT
from .catalog import (
    CanonicalItem,
    Alias,
    OCRLineItem,
    ReconciliationRow,
    MatchStatus,
    Confidence,
    EvidenceKind,
    MatchEvidence,
    PriceObservation,
    SkuRecord,
    RejectedRow,
    FinalizeResult,
)

__all__ = [
    "Unit", "Axis", "UnitInfo", "UnitPrice", "NO_UNIT",
    "CanonicalItem", "Alias", "OCRLineItem", "ReconciliationRow",
    "MatchStatus", "Confidence", "EvidenceKind", "MatchEvidence",
    "PriceObservation", "SkuRecord", "RejectedRow", "FinalizeResult",
]
