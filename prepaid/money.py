"""
Amount conversion between boundary decimals and ledger minor units.

The ledger keeps every amount as an integer count of minor units (pence).
Decimals only appear at the API boundary.
"""

from decimal import Decimal, ROUND_HALF_EVEN
from typing import Union

MINOR_UNIT = Decimal("0.01")
MINOR_UNITS_PER_MAJOR = 100


def to_minor_units(amount: Union[Decimal, int, str]) -> int:
    quantized = Decimal(str(amount)).quantize(MINOR_UNIT, rounding=ROUND_HALF_EVEN)
    return int(quantized * MINOR_UNITS_PER_MAJOR)


def from_minor_units(amount: int) -> Decimal:
    return (Decimal(amount) / MINOR_UNITS_PER_MAJOR).quantize(MINOR_UNIT)


def format_amount(amount: int, currency: str) -> str:
    return f"{from_minor_units(amount)} {currency}"
