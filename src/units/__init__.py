"""Unit notation parsing and unit price normalization."""

from .parser import UnitNotationParser, parse_unit_info, canonical_unit
from .normalizer import compute_unit_price, format_unit_price, get_formatted_unit_price

__all__ = [
    "UnitNotationParser", "parse_unit_info", "canonical_unit",
    "compute_unit_price", "format_unit_price", "get_formatted_unit_price",
]
