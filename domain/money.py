from __future__ import annotations

from decimal import ROUND_DOWN, Decimal

CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    """Round an amount down to whole cents."""

    return amount.quantize(CENT, rounding=ROUND_DOWN)
