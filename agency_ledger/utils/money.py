"""Fixed-point money helpers"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Maximum drift allowed between a project budget and its installment total
AMOUNT_TOLERANCE = Decimal("0.01")


def to_money(value) -> Decimal:
    """Convert int/str/float/Decimal to a Decimal rounded to cents.

    Floats go through ``str`` first so 0.1 becomes Decimal("0.10") rather than
    its binary expansion.
    """
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, float):
        amount = Decimal(str(value))
    else:
        amount = Decimal(value)
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Decimal]) -> Decimal:
    """Sum amounts exactly, then round the result to cents"""
    return to_money(sum(values, Decimal("0")))
