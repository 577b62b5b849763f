"""
Property-based tests using hypothesis for edge case discovery.
Tests system invariants that should always hold true.
"""
import pytest
from decimal import Decimal
from hypothesis import given, strategies as st, settings, assume

from src.matching import AliasIndex, FuzzyMatcher
from src.models import Alias, MatchStatus, OCRLineItem, Unit
from src.reconciliation import ReconciliationPipeline
from src.storage import InMemoryCatalogRepository
from src.units import parse_unit_info, compute_unit_price
from src.utils.normalization import to_title_case
from src.utils.settings import ReconcilerSettings

words = st.text(alphabet="abcdefghijklmnopqrstuvwxyz", min_size=1, max_size=12)
names = st.lists(words, min_size=1, max_size=4).map(" ".join)


class TestUnitParsingProperties:
    """Invariants of the unit notation parser."""

    @given(name=st.text(max_size=60))
    @settings(max_examples=200)
    def test_parse_is_pure(self, name):
        """Parsing never fails and is deterministic."""
        first = parse_unit_info(name)
        assert first == parse_unit_info(name)
        assert first.quantity >= 0

    @given(
        quantity=st.integers(min_value=1, max_value=500),
        spelling=st.sampled_from([
            ("lb", Unit.LB), ("oz", Unit.OZ), ("ct", Unit.CT), ("doz", Unit.DOZ),
            ("qt", Unit.QT), ("gal", Unit.GAL), ("pt", Unit.PT), ("ml", Unit.ML),
            ("L", Unit.L), ("fl oz", Unit.FZ), ("pk", Unit.CT), ("sq ft", Unit.SQFT),
        ]),
        product=names
    )
    @settings(max_examples=100)
    def test_bracketed_quantity_roundtrip(self, quantity, spelling, product):
        text, unit = spelling
        info = parse_unit_info(f"{product} ({quantity} {text})")
        assert info.quantity == Decimal(quantity)
        assert info.unit == unit

    @given(
        count=st.integers(min_value=2, max_value=48),
        size=st.integers(min_value=1, max_value=64)
    )
    def test_multi_pack_multiplies(self, count, size):
        info = parse_unit_info(f"Broth ({count}/{size} oz)")
        assert info.quantity == Decimal(count * size)
        assert info.unit == Unit.OZ

    @given(
        quantity=st.integers(min_value=1, max_value=100),
        price=st.decimals(min_value=Decimal("0.01"), max_value=Decimal("500"), places=2)
    )
    def test_unit_price_times_quantity_is_price(self, quantity, price):
        result = compute_unit_price(f"Eggs ({quantity} ct)", price)
        assert result.unit_price * result.quantity == pytest.approx(price)


class TestMatchingProperties:
    """Invariants of fuzzy matching and alias lookup."""

    @given(a=st.text(max_size=40), b=st.text(max_size=40))
    @settings(max_examples=200)
    def test_score_is_bounded(self, a, b):
        score = FuzzyMatcher().score(a, b)
        assert 0.0 <= score <= 1.0

    @given(query=names, candidates=st.lists(names, min_size=1, max_size=8))
    def test_best_match_is_a_candidate(self, query, candidates):
        result = FuzzyMatcher(threshold=0.01).best_match(query, candidates)
        assert result is None or result in candidates

    @given(query=names, candidate=names)
    def test_threshold_equal_to_score_is_accepted(self, query, candidate):
        matcher = FuzzyMatcher()
        score = matcher.score(query, candidate)
        assume(score > 0.0)
        assert matcher.best_match(query, [candidate], threshold=score) == candidate

    @given(text=names, store=words)
    def test_store_alias_always_wins(self, text, store):
        index = AliasIndex([
            Alias(alias=text, item_id="global"),
            Alias(alias=text.upper(), item_id="scoped", store_id=store),
        ])
        assert index.resolve(text, store) == "scoped"
        assert index.resolve(text, store + "-other") == "global"

    @given(text=names, store=st.one_of(st.none(), words))
    def test_alias_insert_is_idempotent(self, text, store):
        repo = InMemoryCatalogRepository()
        alias = Alias(alias=text, item_id="item", store_id=store)
        repo.insert_alias_ignore_conflict(alias)
        repo.insert_alias_ignore_conflict(alias)
        assert len(repo.list_aliases(store)) == 1


class TestPipelineProperties:

    @given(raw=names)
    @settings(max_examples=50)
    def test_empty_catalog_falls_back_to_title_case(self, raw):
        pipeline = ReconciliationPipeline(settings=ReconcilerSettings())
        [row] = pipeline.reconcile([OCRLineItem(raw_name=raw, price=Decimal("1"))], [], [], "store")
        assert row.status == MatchStatus.NEW
        assert row.new_item_name == to_title_case(raw)
        assert row.is_confirmed is False
