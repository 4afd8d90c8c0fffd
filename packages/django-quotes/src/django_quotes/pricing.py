"""Server-side pricing for quote line items.

recompute() is the single entry point for every monetary field on a quote.
Client-supplied line totals are never trusted: each total is rebuilt from
quantity x unit_price.
"""

from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from .line_items import LineItem, to_decimal


@dataclass(frozen=True)
class PricedQuote:
    """Recomputed line items and totals, all in integer minor units."""

    line_items: tuple[LineItem, ...]
    subtotal: int
    tax: int
    total: int


def line_total(quantity, unit_price) -> int:
    """
    Return quantity x unit_price as whole minor units.

    Fractional quantities are rounded half away from zero (ROUND_HALF_UP
    in Decimal terms) so 0.5 x 3 gives 2, not 1.
    """
    amount = to_decimal(quantity) * to_decimal(unit_price)
    return int(amount.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def recompute(line_items: Iterable[LineItem], tax: Optional[int] = None) -> PricedQuote:
    """
    Price a line item collection.

    Args:
        line_items: Validated line items (totals are ignored and rebuilt)
        tax: Caller-supplied tax amount in minor units (defaults to 0)

    Returns:
        PricedQuote where subtotal == sum of line totals and
        total == subtotal + tax.
    """
    tax = int(tax or 0)

    priced = tuple(
        replace(
            item,
            unit_price=int(item.unit_price),
            total=line_total(item.quantity, item.unit_price),
        )
        for item in line_items
    )
    subtotal = sum(item.total for item in priced)

    return PricedQuote(
        line_items=priced,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
    )
