"""Invoice totals engine.

Tax applies per line to the post-discount amount, never to the aggregate.
Sums are accumulated unrounded; only the four outputs are rounded.
"""

import math
import sys
from typing import Any, Iterable, Mapping

from core.models.invoice import InvoiceTotals, LineItem

_EPSILON = sys.float_info.epsilon


def round_money(value: float) -> float:
    """
    Round to 2 decimals, half away from zero.

    The epsilon nudge counters binary representation error, so 0.145
    (stored as 0.14499999...) rounds to 0.15.
    """
    rounded = math.floor((abs(value) + _EPSILON) * 100 + 0.5) / 100
    if value < 0 and rounded:
        return -rounded
    return rounded


def _field(item: LineItem | Mapping[str, Any], snake: str, camel: str) -> Any:
    if isinstance(item, LineItem):
        return getattr(item, snake)
    if snake in item:
        return item[snake]
    return item.get(camel)


def compute_totals(items: Iterable[LineItem | Mapping[str, Any]]) -> InvoiceTotals:
    """
    Compute subtotal, tax, discount and grand total for a list of line items.

    Args:
        items: LineItem models or plain mappings (camelCase or snake_case keys)

    Returns:
        InvoiceTotals with every field rounded to 2 decimals. grand_total may
        be negative; it is not clamped.
    """
    subtotal = 0.0
    tax_total = 0.0
    discount_total = 0.0

    for item in items:
        qty = _field(item, "qty", "qty")
        unit_price = _field(item, "unit_price", "unitPrice")
        discount = _field(item, "discount", "discount") or 0
        tax_rate = _field(item, "tax_rate", "taxRate") or 0

        item_subtotal = qty * unit_price
        discount_amount = item_subtotal * discount / 100
        taxable_amount = item_subtotal - discount_amount
        tax_amount = taxable_amount * tax_rate / 100

        subtotal += item_subtotal
        discount_total += discount_amount
        tax_total += tax_amount

    grand_total = subtotal - discount_total + tax_total

    return InvoiceTotals(
        subtotal=round_money(subtotal),
        tax_total=round_money(tax_total),
        discount_total=round_money(discount_total),
        grand_total=round_money(grand_total),
    )
