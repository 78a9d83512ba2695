from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """
    Lenient numeric coercion for aggregates.

    None, blanks, booleans, NaN/Infinity and anything unparsable become 0.
    Never raises. Floats go through str() so 0.1 stays 0.1.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return ZERO
    return result if result.is_finite() else ZERO


def quantize_money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_json(value: Any) -> float:
    """Cent-rounded JSON number."""
    return float(quantize_money(value))


def optional_money_json(value: Any) -> Optional[float]:
    return None if value is None else money_json(value)
