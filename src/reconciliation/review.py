"""
Reviewer edits on reconciliation rows.

Every function takes the current row list and returns a new list with one
row replaced; inputs are never mutated, so a UI can keep undo history by
holding on to earlier lists.
"""

from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence, Union

from src.models import (
    CanonicalItem,
    Confidence,
    EvidenceKind,
    MatchEvidence,
    MatchStatus,
    ReconciliationRow,
)
from src.reconciliation.errors import InvalidAmountError, InvalidSelectionError, RowIndexError
from src.utils.normalization import normalize_key

Amount = Union[Decimal, int, float, str]


def _replace(rows: Sequence[ReconciliationRow], index: int, **updates) -> List[ReconciliationRow]:
    if not 0 <= index < len(rows):
        raise RowIndexError(f"No reconciliation row at index {index}")
    new_rows = list(rows)
    new_rows[index] = rows[index].model_copy(update=updates)
    return new_rows


def _to_amount(value: Amount, field: str) -> Decimal:
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidAmountError(f"{field} must be a number, got {value!r}")
    # Decimal accepts "NaN" and "Infinity"
    if not amount.is_finite():
        raise InvalidAmountError(f"{field} must be a finite number, got {value!r}")
    return amount


def select_item(
    rows: Sequence[ReconciliationRow],
    index: int,
    item_id: str,
    catalog: Sequence[CanonicalItem]
) -> List[ReconciliationRow]:
    """Reviewer picked an existing catalog item; that choice is high confidence."""
    item = next((i for i in catalog if i.id == item_id), None)
    if item is None:
        raise InvalidSelectionError(f"Item {item_id} is not in the catalog")

    return _replace(
        rows, index,
        status=MatchStatus.MATCHED,
        selected_item_id=item.id,
        selected_item_name=item.name,
        new_item_name=None,
        is_weighted=item.is_weighted,
        confidence=Confidence.HIGH,
        evidence=MatchEvidence(kind=EvidenceKind.REVIEWER, item_id=item.id, item_name=item.name),
    )


def select_item_by_name(
    rows: Sequence[ReconciliationRow],
    index: int,
    name: str,
    catalog: Sequence[CanonicalItem]
) -> List[ReconciliationRow]:
    """
    Reviewer typed a name. An exact (case-insensitive) catalog hit selects
    that item; anything else becomes a new item with the typed name.
    """
    key = normalize_key(name)
    item = next((i for i in catalog if normalize_key(i.name) == key), None)
    if item is not None:
        return select_item(rows, index, item.id, catalog)
    return mark_new(rows, index, name)


def mark_new(rows: Sequence[ReconciliationRow], index: int, name: Optional[str] = None) -> List[ReconciliationRow]:
    """Switch a row to "create new item", optionally with an edited name."""
    if not 0 <= index < len(rows):
        raise RowIndexError(f"No reconciliation row at index {index}")
    new_name = (name if name is not None else rows[index].ocr_name).strip()
    return _replace(
        rows, index,
        status=MatchStatus.NEW,
        new_item_name=new_name,
        selected_item_id=None,
        selected_item_name=None,
        confidence=Confidence.LOW,
        evidence=MatchEvidence(kind=EvidenceKind.NONE),
    )


def toggle_new(rows: Sequence[ReconciliationRow], index: int) -> List[ReconciliationRow]:
    """
    Flip between "new item" and "pick an existing item".

    Leaving new mode clears the selection; the row stays unresolved until
    the reviewer selects an item.
    """
    if not 0 <= index < len(rows):
        raise RowIndexError(f"No reconciliation row at index {index}")
    if rows[index].status == MatchStatus.NEW:
        return _replace(
            rows, index,
            status=MatchStatus.UNRESOLVED,
            new_item_name=None,
            selected_item_id=None,
            selected_item_name=None,
            confidence=Confidence.LOW,
            evidence=MatchEvidence(kind=EvidenceKind.NONE),
        )
    return mark_new(rows, index, rows[index].ocr_name)


def update_amounts(
    rows: Sequence[ReconciliationRow],
    index: int,
    price: Optional[Amount] = None,
    quantity: Optional[Amount] = None
) -> List[ReconciliationRow]:
    """Edit price and/or quantity. Values are range-checked at finalize, not here."""
    updates = {}
    if price is not None:
        updates['ocr_price'] = _to_amount(price, 'price')
    if quantity is not None:
        updates['ocr_quantity'] = _to_amount(quantity, 'quantity')
    return _replace(rows, index, **updates)


def confirm(rows: Sequence[ReconciliationRow], index: int, confirmed: bool = True) -> List[ReconciliationRow]:
    return _replace(rows, index, is_confirmed=confirmed)


def unconfirm(rows: Sequence[ReconciliationRow], index: int) -> List[ReconciliationRow]:
    return confirm(rows, index, confirmed=False)


def confirm_all(rows: Sequence[ReconciliationRow]) -> List[ReconciliationRow]:
    return [row.model_copy(update={'is_confirmed': True}) for row in rows]


def subtotal(rows: Sequence[ReconciliationRow]) -> Decimal:
    """Sum of price x quantity over every row."""
    return sum((row.line_total for row in rows), Decimal('0'))


def confirmed_total(rows: Sequence[ReconciliationRow]) -> Decimal:
    """Sum of price x quantity over confirmed rows only."""
    return subtotal([row for row in rows if row.is_confirmed])
