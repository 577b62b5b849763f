"""
Unit price normalization.

Converts a parsed package size onto one of four comparison axes (lb, fl oz,
ea, sqft) so that differently packaged items can be compared by price.
Arithmetic stays in Decimal end to end.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple, Union

from src.models import Axis, Unit, UnitInfo, UnitPrice
from src.units.parser import parse_unit_info

Number = Union[Decimal, int, float, str]

# unit -> (axis, factor); quantity is multiplied by the factor
MULTIPLIERS = {
    Unit.LB: (Axis.LB, Decimal('1')),
    Unit.FZ: (Axis.FL_OZ, Decimal('1')),
    Unit.QT: (Axis.FL_OZ, Decimal('32')),
    Unit.GAL: (Axis.FL_OZ, Decimal('128')),
    Unit.PT: (Axis.FL_OZ, Decimal('16')),
    Unit.L: (Axis.FL_OZ, Decimal('33.814')),
    Unit.ML: (Axis.FL_OZ, Decimal('0.033814')),
    Unit.CT: (Axis.EA, Decimal('1')),
    Unit.EA: (Axis.EA, Decimal('1')),
    Unit.DOZ: (Axis.EA, Decimal('12')),
    Unit.SQFT: (Axis.SQFT, Decimal('1')),
}

# unit -> (axis, divisor); kept separate so 16 oz is exactly 1 lb
DIVISORS = {
    Unit.OZ: (Axis.LB, Decimal('16')),
    Unit.SQIN: (Axis.SQFT, Decimal('144')),
}


def to_decimal(value: Number) -> Decimal:
    """Coerces prices from floats, ints or strings without float drift."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Not a valid amount: {value!r}")


def convert_quantity(info: UnitInfo) -> Optional[Tuple[Axis, Decimal]]:
    """Returns (axis, quantity in axis units) or None when not convertible."""
    if not info.has_unit:
        return None
    if info.unit in DIVISORS:
        axis, divisor = DIVISORS[info.unit]
        return axis, info.quantity / divisor
    axis, factor = MULTIPLIERS[info.unit]
    return axis, info.quantity * factor


def compute_unit_price(name: str, price: Number) -> Optional[UnitPrice]:
    """
    Calculates the normalized unit price for an item.

    Args:
        name: Full item name, e.g. "Eggs (18 ct)" or "Almond Milk (6/32 fz)"
        price: Package price

    Returns:
        UnitPrice on the item's axis, or None when the name carries no
        usable unit (absence of a unit price is a valid display state).
    """
    converted = convert_quantity(parse_unit_info(name))
    if converted is None:
        return None

    axis, quantity = converted
    if quantity == 0:
        return None

    return UnitPrice(unit_price=to_decimal(price) / quantity, axis=axis, quantity=quantity)


def format_unit_price(result: Optional[UnitPrice]) -> Optional[str]:
    """Formats as "$X.XX/<axis>", e.g. "$2.00/lb" or "$0.05/fl oz"."""
    if result is None:
        return None
    return str(result)


def get_formatted_unit_price(name: str, price: Number) -> Optional[str]:
    return format_unit_price(compute_unit_price(name, price))
