from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

CENT = Decimal("0.01")

# Largest amount a NUMERIC(10, 2) column holds
MAX_AMOUNT = Decimal("99999999.99")


def quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Optional[Decimal]) -> Optional[str]:
    """Serialize a money amount as a two-decimal string ("12.50")."""
    if value is None:
        return None
    return str(quantize(Decimal(value)))
