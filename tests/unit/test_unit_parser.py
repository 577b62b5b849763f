import pytest
from decimal import Decimal

from src.models import Unit, NO_UNIT
from src.units import UnitNotationParser, parse_unit_info, canonical_unit


@pytest.fixture
def parser():
    return UnitNotationParser()


@pytest.mark.parametrize("name, quantity, unit, raw", [
    ("Almond Milk (6/32 oz)", "192", Unit.OZ, "6/32 oz"),
    ("Almond Milk (6x32 oz)", "192", Unit.OZ, "6x32 oz"),
    ("Broth, Chicken (6*32 oz)", "192", Unit.OZ, "6*32 oz"),
    ("Broth, Chicken (6-32 oz)", "192", Unit.OZ, "6-32 oz"),
    ("Sparkling Water (12/12 fl oz)", "144", Unit.FZ, "12/12 fl oz"),
    ("Coconut Water (6/16.9 floz)", "101.4", Unit.FZ, "6/16.9 floz"),
    ("Soda (2x2 L)", "4", Unit.L, "2x2 L"),
    ("Ground Beef (3/2 lb)", "6", Unit.LB, "3/2 lb"),
])
def test_multi_pack_weight_volume(parser, name, quantity, unit, raw):
    info = parser.parse(name)
    assert info.quantity == Decimal(quantity)
    assert info.unit == unit
    assert info.raw_text == raw


@pytest.mark.parametrize("name", ["Milk (half gallon)", "Milk (1/2 gallon)", "Milk (Half Gal)"])
def test_half_gallon_literal(parser, name):
    info = parser.parse(name)
    assert info.quantity == Decimal("0.5")
    assert info.unit == Unit.GAL


@pytest.mark.parametrize("name, quantity, unit", [
    ("Yogurt (4x6 pk)", "24", Unit.CT),
    ("Eggs (2*12 ct)", "24", Unit.CT),
    ("Eggs (2/1 doz)", "2", Unit.DOZ),
])
def test_multi_pack_count(parser, name, quantity, unit):
    info = parser.parse(name)
    assert info.quantity == Decimal(quantity)
    assert info.unit == unit


@pytest.mark.parametrize("name, quantity, unit, raw", [
    ("Apples, Honeycrisp (4 lb)", "4", Unit.LB, "4 lb"),
    ("Eggs (18 ct)", "18", Unit.CT, "18 ct"),
    ("Eggs, 5 doz.", "5", Unit.DOZ, "5 doz"),
    ("Eggs, 1 doz, large", "1", Unit.DOZ, "1 doz"),
    ("Ice Cream (1.5 qt)", "1.5", Unit.QT, "1.5 qt"),
    ("Parchment Paper (50 sq ft)", "50", Unit.SQFT, "50 sq ft"),
    ("Foil Sheets (100 sq in)", "100", Unit.SQIN, "100 sq in"),
    ("Cream (1 pt)", "1", Unit.PT, "1 pt"),
    ("Water (500 ML)", "500", Unit.ML, "500 ML"),
    ("Juice (1.75 l)", "1.75", Unit.L, "1.75 l"),
    ("Lemonade (1 Gallon)", "1", Unit.GAL, "1 Gallon"),
    ("Cola (8 pk)", "8", Unit.CT, "8 pk"),
])
def test_simple_bracketed_quantity(parser, name, quantity, unit, raw):
    info = parser.parse(name)
    assert info.quantity == Decimal(quantity)
    assert info.unit == unit
    assert info.raw_text == raw


def test_linear_units_are_not_area_units(parser):
    """A bare "in" or "ft" is a length, not something we price by."""
    assert parser.parse("Ruler (12 in)") == NO_UNIT
    assert parser.parse("Rope (50 ft)") == NO_UNIT


@pytest.mark.parametrize("name, quantity, unit, raw", [
    ("Chicken Breast 5lb", "5", Unit.LB, "5lb"),
    ("Sparkling Water 8pk", "8", Unit.CT, "8pk"),
    ("Peanut Butter 40OZ", "40", Unit.OZ, "40OZ"),
    ("Olive Oil 1.5L", "1.5", Unit.L, "1.5L"),
])
def test_compact_concatenation(parser, name, quantity, unit, raw):
    info = parser.parse(name)
    assert info.quantity == Decimal(quantity)
    assert info.unit == unit
    assert info.raw_text == raw


def test_unit_only_means_one(parser):
    info = parser.parse("Ground Beef (lb)")
    assert info.quantity == Decimal("1")
    assert info.unit == Unit.LB


def test_precedence_multi_pack_before_simple(parser):
    info = parser.parse("Water (24/16.9 fl oz), 2lb")
    assert info.unit == Unit.FZ
    assert info.quantity == Decimal("405.6")


@pytest.mark.parametrize("name", ["Butter", "KS ALMOND MLK 64Z", "", "Eggs", "Bananas organic"])
def test_no_unit_sentinel(parser, name):
    info = parser.parse(name)
    assert info == NO_UNIT
    assert info.unit is None
    assert info.quantity == Decimal("0")
    assert not info.has_unit


def test_module_level_wrapper_matches_class():
    assert parse_unit_info("Eggs (18 ct)") == UnitNotationParser().parse("Eggs (18 ct)")


@pytest.mark.parametrize("token, unit", [
    ("fl oz", Unit.FZ),
    ("FL. OZ", Unit.FZ),
    ("floz", Unit.FZ),
    ("Gallon", Unit.GAL),
    ("PK", Unit.CT),
    ("l", Unit.L),
    ("lbs", Unit.LB),
    ("sq ft", Unit.SQFT),
    ("furlong", None),
])
def test_canonical_unit(token, unit):
    assert canonical_unit(token) == unit
