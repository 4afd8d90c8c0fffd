"""Line item value object, validation and storage encoding.

Validators are pure functions used by the services AND tests directly.
Encoding to and from the stored JSON text lives here so that nothing else
depends on the serialization format.
"""

import json
import logging
import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Union

from .conf import get_setting
from .exceptions import (
    EmptyDescription,
    InvalidQuantity,
    InvalidTotal,
    InvalidUnitPrice,
    LineItemError,
    MalformedLineItem,
    MissingField,
    TotalMismatch,
)

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]

# Monetary columns are signed 64-bit integers.
MAX_AMOUNT = 2 ** 63 - 1


@dataclass(frozen=True)
class LineItem:
    """
    One priced row of a quote.

    unit_price and total are integer minor currency units (cents for USD).
    quantity may be fractional. total is None when the caller did not send one.
    """

    description: Any
    quantity: Any
    unit_price: Any
    total: Any = None

    @classmethod
    def from_dict(cls, data: Mapping) -> "LineItem":
        """Build from a wire/storage mapping (camelCase or snake_case keys)."""
        unit_price = data.get("unitPrice", data.get("unit_price"))
        return cls(
            description=data.get("description"),
            quantity=data.get("quantity"),
            unit_price=unit_price,
            total=data.get("total"),
        )

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "quantity": _plain_number(self.quantity),
            "unitPrice": _plain_number(self.unit_price),
            "total": _plain_number(self.total),
        }


def as_line_item(value) -> LineItem:
    """Coerce a LineItem or mapping into a LineItem."""
    if isinstance(value, LineItem):
        return value
    if isinstance(value, Mapping):
        return LineItem.from_dict(value)
    raise MalformedLineItem(
        "Each line item must have description, quantity, and unitPrice"
    )


# =============================================================================
# Validation
# =============================================================================

def validate_line_item(item: LineItem, tolerance: Optional[Number] = None) -> Optional[LineItemError]:
    """
    Check a single line item's shape and arithmetic.

    Returns the first failure (unbound to any index) or None if valid.

    Checks, in order:
    - description is a non-blank string
    - quantity is a finite number > 0
    - unit_price is a finite, whole number of minor units >= 0
    - quantity x unit_price fits in a monetary column
    - total, when present, is a finite number >= 0
    - total is within `tolerance` minor units of quantity x unit_price
    """
    if tolerance is None:
        tolerance = get_setting('TOTAL_TOLERANCE')

    if not isinstance(item.description, str) or not item.description.strip():
        return EmptyDescription(
            "Line item description is required and must be a non-empty string"
        )

    if not _is_finite_number(item.quantity):
        return InvalidQuantity("Line item quantity must be a valid number")
    if item.quantity <= 0:
        return InvalidQuantity("Line item quantity must be greater than 0")

    if not _is_finite_number(item.unit_price):
        return InvalidUnitPrice("Line item unit price must be a valid number")
    if item.unit_price < 0:
        return InvalidUnitPrice("Line item unit price must be non-negative")
    unit_price = to_decimal(item.unit_price)
    if unit_price != unit_price.to_integral_value():
        return InvalidUnitPrice(
            "Line item unit price must be a whole number of minor currency units"
        )
    if unit_price > MAX_AMOUNT:
        return InvalidUnitPrice("Line item unit price exceeds the maximum supported amount")
    expected = to_decimal(item.quantity) * unit_price
    if expected > MAX_AMOUNT:
        return InvalidQuantity(
            "Line item quantity x unit price exceeds the maximum supported amount"
        )

    if item.total is None:
        return None

    if not _is_finite_number(item.total):
        return InvalidTotal("Line item total must be a valid number")
    if item.total < 0:
        return InvalidTotal("Line item total must be non-negative")

    if abs(to_decimal(item.total) - expected) > to_decimal(tolerance):
        return TotalMismatch(
            f"Line item total ({item.total}) does not match quantity x unit price "
            f"({item.quantity} x {item.unit_price} = {expected.normalize():f})"
        )

    return None


def validate_line_items(raw_items: Optional[Iterable]) -> list[LineItem]:
    """
    Validate a submitted line item list.

    Returns the coerced LineItems. Raises MissingField for anything that is
    not a non-empty list and the first LineItemError bound to its index
    otherwise.
    """
    if not isinstance(raw_items, (list, tuple)):
        raise MissingField("lineItems", "At least one line item is required")

    items = []
    for index, raw in enumerate(raw_items):
        try:
            item = as_line_item(raw)
        except LineItemError as e:
            raise e.at(index)

        error = validate_line_item(item)
        if error is not None:
            raise error.at(index)
        items.append(item)

    if not items:
        raise MissingField("lineItems", "At least one line item is required")

    return items


# =============================================================================
# Storage encoding
# =============================================================================

def dumps_line_items(items: Iterable[LineItem]) -> str:
    """Encode line items as the stored JSON array."""
    return json.dumps([item.to_dict() for item in items])


def loads_line_items(raw: Optional[str], quote_id=None) -> list[LineItem]:
    """
    Decode stored line items.

    Corrupted data, including rows that are no longer valid line items,
    degrades to an empty list and is logged; the read path never raises.
    """
    if not raw:
        return []

    try:
        data = json.loads(raw)
        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            raise ValueError("expected a JSON array of objects")
    except ValueError as e:
        logger.warning(f"Invalid line items data for quote {quote_id}: {e}")
        return []

    items = [LineItem.from_dict(row) for row in data]
    for index, item in enumerate(items):
        # Stored totals are rounded, so they sit within one unit of the product.
        error = validate_line_item(item, tolerance=1)
        if error is not None:
            logger.warning(f"Invalid line items data for quote {quote_id}: {error.at(index)}")
            return []

    return items


# =============================================================================
# Number helpers
# =============================================================================

def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def _is_finite_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, Decimal):
        return value.is_finite()
    return True


def _plain_number(value):
    """JSON-friendly number: int when whole, float otherwise."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return value
    try:
        decimal_value = to_decimal(value)
        if decimal_value.is_finite() and decimal_value == decimal_value.to_integral_value():
            return int(decimal_value)
    except (InvalidOperation, ValueError):
        return value
    return float(value)
