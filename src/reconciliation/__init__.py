"""Receipt line reconciliation: matching, review edits and finalize."""

from .errors import (
    ReconciliationError,
    RowIndexError,
    InvalidSelectionError,
    InvalidAmountError,
    MissingStoreError,
)
from .pipeline import ReconciliationPipeline, CatalogSnapshot, candidate_names, reconcile
from .finalizer import Finalizer, parse_recorded_date

__all__ = [
    "ReconciliationError", "RowIndexError", "InvalidSelectionError", "InvalidAmountError",
    "MissingStoreError", "ReconciliationPipeline", "CatalogSnapshot", "candidate_names",
    "reconcile", "Finalizer", "parse_recorded_date",
]
