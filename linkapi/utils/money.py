from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CENT = Decimal("0.01")


def to_money(value: Any) -> Decimal:
    """Decimal rounded to cents; None and empty aggregates become 0.00.

    SQLite returns SUM() over NUMERIC as float, so values go through str first.
    """
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
