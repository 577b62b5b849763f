"""
Package-size extraction from item display names.

Turns names like "Broth, Chicken (6/32 oz)" or "Eggs (18 ct)" into a
UnitInfo. Patterns are tried in a fixed order and the first hit wins, so
multi-pack notation is never mistaken for a single size.
"""

import re
from decimal import Decimal
from typing import Optional

from src.models import Unit, UnitInfo, NO_UNIT


# Spellings accepted in names, keyed after lowercasing and removing dots/spaces
UNIT_SPELLINGS = {
    'lb': Unit.LB,
    'lbs': Unit.LB,
    'oz': Unit.OZ,
    'fz': Unit.FZ,
    'floz': Unit.FZ,
    'ct': Unit.CT,
    'pk': Unit.CT,
    'doz': Unit.DOZ,
    'ea': Unit.EA,
    'qt': Unit.QT,
    'gal': Unit.GAL,
    'gallon': Unit.GAL,
    'pt': Unit.PT,
    'l': Unit.L,
    'ml': Unit.ML,
    'sqft': Unit.SQFT,
    'sqin': Unit.SQIN,
}

_NUM = r'(\d+(?:\.\d+)?)'
_SEP = r'\s*[/x*\-]\s*'

# Alternations list longer spellings first so "lbs" is not read as "l"
_WEIGHT_VOLUME = r'fl\.?\s*oz|floz|fz|lbs|lb|oz|qt|gallon|gal|ml|l'
_COUNT = r'ct|doz|pk|ea'
_SIMPLE = r'sq\.?\s*ft|sq\.?\s*in|fl\.?\s*oz|floz|fz|lbs|lb|oz|ct|doz|pk|ea|qt|gallon|gal|pt|ml|l'
_COMPACT = r'floz|fz|lbs|lb|oz|ct|doz|pk|ea|qt|gallon|gal|pt|ml|l'
_UNIT_ONLY = r'fl\.?\s*oz|floz|fz|lbs|lb|oz|ct|doz|pk|ea|qt|gallon|gal|pt|ml|l'


def canonical_unit(token: str) -> Optional[Unit]:
    """Maps any accepted spelling ("fl. oz", "Gallon", "PK") to its Unit."""
    if not token:
        return None
    return UNIT_SPELLINGS.get(re.sub(r'[\s.]', '', token.lower()))


class UnitNotationParser:
    """
    Layered regex parser for package-size notation.

    Matching precedence:
    1. Multi-pack weight/volume: "(6/32 oz)", "(2x1.5 L)"
    2. Half-gallon literal: "(half gallon)", "(1/2 gallon)"
    3. Multi-pack count: "(4x6 pk)", "(2*12 ct)"
    4. Bracketed or comma-led quantity: "(4 lb)", ", 5 doz.", "(50 sq ft)"
    5. Compact concatenation: "5lb", "8pk"
    6. Unit only: "(lb)" meaning one unit
    """

    # "(1/2 gallon)" is the half-gallon literal, not a 1 x 2 gallon multi-pack
    MULTI_PACK_PATTERN = re.compile(
        r'\((?!\s*1\s*/\s*2\s*gal)\s*' + _NUM + _SEP + _NUM + r'\s*(' + _WEIGHT_VOLUME + r')\s*\)',
        re.IGNORECASE
    )
    HALF_GALLON_PATTERN = re.compile(
        r'\(\s*(half|1\s*/\s*2)\s*gal(?:lon)?\s*\)',
        re.IGNORECASE
    )
    MULTI_PACK_COUNT_PATTERN = re.compile(
        r'\(\s*' + _NUM + _SEP + _NUM + r'\s*(' + _COUNT + r')\s*\)',
        re.IGNORECASE
    )
    SIMPLE_PATTERN = re.compile(
        r'[(,]\s*' + _NUM + r'\s*(' + _SIMPLE + r')\s*(?=[),.])',
        re.IGNORECASE
    )
    COMPACT_PATTERN = re.compile(
        _NUM + r'(' + _COMPACT + r')\b',
        re.IGNORECASE
    )
    UNIT_ONLY_PATTERN = re.compile(
        r'\(\s*(' + _UNIT_ONLY + r')\s*\)',
        re.IGNORECASE
    )

    def parse(self, name: str) -> UnitInfo:
        """
        Extracts a (quantity, unit) pair from an item name.

        Never raises; names without recognizable notation return NO_UNIT
        (quantity 0, unit None).

        Examples:
            >>> parse("Apples, Honeycrisp (4 lb)")
            UnitInfo(quantity=Decimal('4'), unit=<Unit.LB: 'lb'>, raw_text='4 lb')
            >>> parse("Broth, Chicken (6/32 oz)")
            UnitInfo(quantity=Decimal('192'), unit=<Unit.OZ: 'oz'>, raw_text='6/32 oz')
        """
        if not name:
            return NO_UNIT

        for strategy in (
            self._parse_multi_pack,
            self._parse_half_gallon,
            self._parse_multi_pack_count,
            self._parse_simple,
            self._parse_compact,
            self._parse_unit_only,
        ):
            info = strategy(name)
            if info is not None:
                return info

        return NO_UNIT

    def _parse_multi_pack(self, name: str) -> Optional[UnitInfo]:
        match = self.MULTI_PACK_PATTERN.search(name)
        if not match:
            return None
        return self._multiplied(match)

    def _parse_half_gallon(self, name: str) -> Optional[UnitInfo]:
        match = self.HALF_GALLON_PATTERN.search(name)
        if not match:
            return None
        return UnitInfo(quantity=Decimal('0.5'), unit=Unit.GAL, raw_text=_strip_brackets(match.group(0)))

    def _parse_multi_pack_count(self, name: str) -> Optional[UnitInfo]:
        match = self.MULTI_PACK_COUNT_PATTERN.search(name)
        if not match:
            return None
        return self._multiplied(match)

    def _parse_simple(self, name: str) -> Optional[UnitInfo]:
        match = self.SIMPLE_PATTERN.search(name)
        if not match:
            return None
        return UnitInfo(
            quantity=Decimal(match.group(1)),
            unit=canonical_unit(match.group(2)),
            raw_text=_strip_brackets(match.group(0))
        )

    def _parse_compact(self, name: str) -> Optional[UnitInfo]:
        match = self.COMPACT_PATTERN.search(name)
        if not match:
            return None
        return UnitInfo(
            quantity=Decimal(match.group(1)),
            unit=canonical_unit(match.group(2)),
            raw_text=match.group(0).strip()
        )

    def _parse_unit_only(self, name: str) -> Optional[UnitInfo]:
        match = self.UNIT_ONLY_PATTERN.search(name)
        if not match:
            return None
        return UnitInfo(
            quantity=Decimal('1'),
            unit=canonical_unit(match.group(1)),
            raw_text=_strip_brackets(match.group(0))
        )

    @staticmethod
    def _multiplied(match: re.Match) -> UnitInfo:
        count = Decimal(match.group(1))
        size = Decimal(match.group(2))
        return UnitInfo(
            quantity=count * size,
            unit=canonical_unit(match.group(3)),
            raw_text=_strip_brackets(match.group(0))
        )


def _strip_brackets(text: str) -> str:
    return re.sub(r'[(),]', '', text).strip()


_default_parser = UnitNotationParser()


def parse_unit_info(name: str) -> UnitInfo:
    """Module-level convenience wrapper around UnitNotationParser.parse."""
    return _default_parser.parse(name)
