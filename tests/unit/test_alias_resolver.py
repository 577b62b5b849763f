import pytest

from src.matching import AliasIndex, resolve
from src.models import Alias


@pytest.fixture
def aliases():
    return [
        Alias(alias="ks almond mlk", item_id="global-item"),
        Alias(alias="KS ALMOND MLK", item_id="costco-item", store_id="costco"),
        Alias(alias="ORG BANANAS", item_id="bananas", store_id="trader-joes"),
    ]


def test_store_scoped_alias_beats_global(aliases):
    assert resolve("KS ALMOND MLK", "costco", aliases) == "costco-item"


def test_global_alias_used_for_other_stores(aliases):
    assert resolve("KS ALMOND MLK", "safeway", aliases) == "global-item"
    assert resolve("KS ALMOND MLK", None, aliases) == "global-item"


def test_lookup_is_case_insensitive_and_trimmed(aliases):
    assert resolve("  Ks Almond Mlk ", "costco", aliases) == "costco-item"


def test_other_stores_aliases_are_not_exact_matches(aliases):
    assert resolve("ORG BANANAS", "costco", aliases) is None
    assert resolve("ORG BANANAS", "trader-joes", aliases) == "bananas"


def test_no_fuzzy_matching_at_this_layer(aliases):
    assert resolve("KS ALMOND MILK", "costco", aliases) is None
    assert resolve("", "costco", aliases) is None


def test_first_duplicate_wins():
    index = AliasIndex([
        Alias(alias="EGGS", item_id="first", store_id="costco"),
        Alias(alias="eggs", item_id="second", store_id="costco"),
    ])
    assert index.resolve("Eggs", "costco") == "first"
    assert len(index) == 1


def test_texts_are_distinct(aliases):
    index = AliasIndex(aliases)
    assert index.texts == ["ks almond mlk", "ORG BANANAS"]


def test_item_for_text_falls_back_to_other_stores(aliases):
    index = AliasIndex(aliases)
    assert index.item_for_text("KS ALMOND MLK", "costco") == "costco-item"
    assert index.item_for_text("ORG BANANAS", "costco") == "bananas"
    assert index.item_for_text("unknown", "costco") is None
