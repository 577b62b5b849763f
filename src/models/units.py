"""
Package-size and unit-price models.

UnitInfo is derived from an item's display name on demand and is never
persisted; UnitPrice is the normalized comparison value built from it.
"""

from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Unit(str, Enum):
    """Canonical unit tokens produced by the notation parser."""
    LB = "lb"
    OZ = "oz"
    FZ = "fz"
    CT = "ct"
    DOZ = "doz"
    EA = "ea"
    QT = "qt"
    GAL = "gal"
    PT = "pt"
    L = "L"
    ML = "ml"
    SQFT = "sqft"
    SQIN = "sqin"


class Axis(str, Enum):
    """The four comparison axes unit prices are normalized onto."""
    LB = "lb"
    EA = "ea"
    FL_OZ = "fl oz"
    SQFT = "sqft"


class UnitInfo(BaseModel):
    """Quantity and unit extracted from an item name."""
    model_config = ConfigDict(frozen=True)

    quantity: Decimal = Field(default=Decimal('0'), ge=0)
    unit: Optional[Unit] = None
    raw_text: str = ""

    @property
    def has_unit(self) -> bool:
        """True when a unit was recognized with a usable quantity."""
        return self.unit is not None and self.quantity > 0


# Sentinel for names with no recognizable package size
NO_UNIT = UnitInfo()


class UnitPrice(BaseModel):
    """Price per canonical axis unit, e.g. $2.00 per lb."""
    model_config = ConfigDict(frozen=True)

    unit_price: Decimal
    axis: Axis
    quantity: Decimal = Field(description="Package size expressed in axis units")

    def rounded(self) -> Decimal:
        """Unit price rounded half-up to cents."""
        return self.unit_price.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    def __str__(self) -> str:
        return f"${self.rounded()}/{self.axis.value}"
