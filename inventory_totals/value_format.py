"""Fixed-point rendering of inventory value."""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from inventory_totals.common import as_decimal

VALUE_SCALE = Decimal("0.01")
ZERO_VALUE = "0.00"


def format_inventory_value(count: int, unit_price: Any) -> str:
    """Render ``count * unit_price`` with two fraction digits, rounding half up.

    A missing or blank unit price renders as ``"0.00"``. Stored and calculated
    values are always compared in this string form.
    """
    if unit_price is None or str(unit_price).strip() == "":
        return ZERO_VALUE
    value = (Decimal(int(count)) * as_decimal(unit_price)).quantize(VALUE_SCALE, rounding=ROUND_HALF_UP)
    if value == 0:
        value = abs(value)
    return format(value, "f")


def normalize_stored_value(raw: Any) -> str | None:
    """Render a stored NUMERIC value in the canonical two-digit string form."""
    if raw is None:
        return None
    text = str(raw).strip()
    if text == "":
        return None
    return format(as_decimal(text).quantize(VALUE_SCALE, rounding=ROUND_HALF_UP), "f")
