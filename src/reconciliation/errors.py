"""Errors raised by reviewer edits and the finalize step."""


class ReconciliationError(Exception):
    """Base class for reconciliation failures."""


class RowIndexError(ReconciliationError, IndexError):
    """A reviewer edit referenced a row that does not exist."""


class InvalidSelectionError(ReconciliationError):
    """A reviewer picked an item that is not in the catalog snapshot."""


class InvalidAmountError(ReconciliationError, ValueError):
    """A reviewer typed a price or quantity that is not a number."""


class MissingStoreError(ReconciliationError):
    """Finalize needs a store to scope learned aliases and prices."""
