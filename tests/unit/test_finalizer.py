import pytest
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal

from src.models import CanonicalItem, MatchStatus, ReconciliationRow
from src.reconciliation import Finalizer, parse_recorded_date
from src.reconciliation.errors import MissingStoreError
from src.storage import InMemoryCatalogRepository


@pytest.fixture
def repo():
    return InMemoryCatalogRepository(items=[
        CanonicalItem(id="eggs", name="Eggs (18 ct)"),
        CanonicalItem(id="bananas", name="Bananas", unit="lb", is_weighted=True),
    ])


@pytest.fixture
def finalizer(repo):
    return Finalizer(repo, default_unit="count")


def matched(ocr_name, item_id, item_name, price="5.40", quantity="1", **kwargs):
    return ReconciliationRow(
        ocr_name=ocr_name, ocr_price=Decimal(price), ocr_quantity=Decimal(quantity),
        status=MatchStatus.MATCHED, selected_item_id=item_id, selected_item_name=item_name,
        is_confirmed=True, **kwargs
    )


def new(ocr_name, new_name, price="2.49", **kwargs):
    return ReconciliationRow(
        ocr_name=ocr_name, ocr_price=Decimal(price), status=MatchStatus.NEW,
        new_item_name=new_name, is_confirmed=True, **kwargs
    )


def test_unconfirmed_rows_are_skipped(finalizer, repo):
    row = matched("EGGS 18CT", "eggs", "Eggs (18 ct)").model_copy(update={'is_confirmed': False})
    result = finalizer.finalize([row], "costco", date(2024, 3, 5))
    assert result.skipped_rows == [row]
    assert result.price_observations == []
    assert repo.price_history == []
    assert repo.list_aliases("costco") == []


def test_matched_row_learns_alias_and_records_price(finalizer, repo):
    result = finalizer.finalize([matched("EGGS 18CT", "eggs", "Eggs (18 ct)")], "costco", date(2024, 3, 5))

    [alias] = result.learned_aliases
    assert alias.alias == "EGGS 18CT"
    assert alias.item_id == "eggs"
    assert alias.store_id == "costco"

    [obs] = result.price_observations
    assert obs.item_id == "eggs"
    assert obs.raw_name == "EGGS 18CT"
    assert obs.price == Decimal("5.40")
    assert obs.unit == "count"
    assert obs.recorded_date == date(2024, 3, 5)
    assert str(obs.unit_price) == "$0.30/ea"
    assert repo.price_history == [obs]


def test_no_alias_when_names_match_case_insensitively(finalizer, repo):
    result = finalizer.finalize([matched("BANANAS", "bananas", "Bananas", price="1.47")], "costco")
    assert result.learned_aliases == []
    assert result.price_observations[0].unit_price is None


def test_new_row_creates_item(finalizer, repo):
    result = finalizer.finalize([new("BNNAS ORG", "Bananas Organic", ocr_unit="lb")], "costco")

    [item] = result.created_items
    assert item.name == "Bananas Organic"
    assert item.unit == "lb"
    assert repo.find_item_by_name("bananas organic") == item
    assert result.learned_aliases[0].item_id == item.id
    assert result.price_observations[0].item_id == item.id


def test_new_row_reuses_existing_item(finalizer, repo):
    result = finalizer.finalize([new("EGGS", "eggs (18 CT)")], "costco")
    assert result.created_items == []
    assert result.price_observations[0].item_id == "eggs"
    assert len(repo.list_items()) == 2


def test_duplicate_alias_is_silently_ignored(finalizer, repo):
    row = matched("EGGS 18CT", "eggs", "Eggs (18 ct)")
    finalizer.finalize([row], "costco")
    second = finalizer.finalize([row], "costco")

    assert second.learned_aliases == []
    assert len(second.price_observations) == 1
    assert len(repo.list_aliases("costco")) == 1


@pytest.mark.parametrize("price, quantity", [("0", "1"), ("-1.00", "1"), ("2.00", "0")])
def test_non_positive_amounts_are_rejected(finalizer, repo, price, quantity):
    row = matched("EGGS 18CT", "eggs", "Eggs (18 ct)", price=price, quantity=quantity)
    result = finalizer.finalize([row], "costco")
    assert len(result.rejected_rows) == 1
    assert result.price_observations == []
    assert repo.price_history == []
    assert result.learned_aliases == []


@pytest.mark.parametrize("field", ["ocr_price", "ocr_quantity"])
@pytest.mark.parametrize("value", ["NaN", "Infinity", "-Infinity"])
def test_non_finite_amounts_are_rejected_before_any_write(finalizer, repo, field, value):
    # Rows edited after creation bypass model validation
    bad = new("NEW THING", "New Thing").model_copy(update={field: Decimal(value)})
    rows = [new("BNNAS ORG", "Bananas Org"), bad]

    result = finalizer.finalize(rows, "costco")

    assert [r.row.ocr_name for r in result.rejected_rows] == ["NEW THING"]
    assert "finite" in result.rejected_rows[0].reason
    assert [item.name for item in result.created_items] == ["Bananas Org"]
    assert repo.find_item_by_name("New Thing") is None
    assert len(repo.price_history) == 1


def test_rows_without_a_target_are_rejected(finalizer):
    rows = [
        new("???", "   "),
        ReconciliationRow(ocr_name="X", ocr_price=Decimal("1"), status=MatchStatus.UNRESOLVED, is_confirmed=True),
        ReconciliationRow(ocr_name="Y", ocr_price=Decimal("1"), status=MatchStatus.MATCHED, is_confirmed=True),
    ]
    result = finalizer.finalize(rows, "costco")
    assert len(result.rejected_rows) == 3


def test_store_is_required(finalizer):
    with pytest.raises(MissingStoreError):
        finalizer.finalize([], "")


def test_sku_is_upserted(finalizer, repo):
    result = finalizer.finalize([matched("EGGS 18CT", "eggs", "Eggs (18 ct)", ocr_sku=" 1234567 ")], "costco")
    assert result.sku_records[0].store_sku == "1234567"
    assert repo.get_sku("costco", "eggs").store_sku == "1234567"


def test_lost_creation_race_reuses_winner(repo):
    """The pre-check misses, but the insert conflicts with a concurrent winner."""
    winner = CanonicalItem(id="winner", name="Paper Towels")

    class RacingRepository(InMemoryCatalogRepository):
        def find_item_by_name(self, name):
            if not getattr(self, "_raced", False):
                self._raced = True
                self.insert_item(winner)
                return None
            return super().find_item_by_name(name)

    racing = RacingRepository()
    result = Finalizer(racing, default_unit="count").finalize([new("PAPER TOWEL", "Paper Towels")], "costco")

    assert result.created_items == []
    assert result.price_observations[0].item_id == "winner"


def test_concurrent_finalize_learns_once():
    repo = InMemoryCatalogRepository()
    finalizer = Finalizer(repo, default_unit="count")
    row = new("PPR TWL", "Paper Towels", price="19.99")

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: finalizer.finalize([row], "costco"), range(16)))

    assert sum(len(r.created_items) for r in results) == 1
    assert sum(len(r.learned_aliases) for r in results) == 1
    assert len(repo.list_items()) == 1
    assert len(repo.list_aliases("costco")) == 1
    assert len(repo.price_history) == 16


def test_parse_recorded_date():
    assert parse_recorded_date("2024-03-05") == date(2024, 3, 5)
    assert parse_recorded_date("03/05/2024") == date(2024, 3, 5)
    assert parse_recorded_date(date(2024, 1, 2)) == date(2024, 1, 2)
    assert parse_recorded_date(None) == date.today()
