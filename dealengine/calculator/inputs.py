# dealengine/calculator/inputs.py
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Tuple
from pydantic import ValidationError
from ..exceptions import InvalidOrderError
from ..models.order import OrderItem

def to_amount(value: Any) -> Decimal:
    """Convert a caller supplied amount to Decimal without float noise"""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise InvalidOrderError(f"Invalid amount: {value!r}") from e

def validate_order(order_items: Iterable[Any], subtotal: Any) -> Tuple[List[OrderItem], Decimal]:
    """Coerce order lines and subtotal, raising InvalidOrderError on bad input"""
    if order_items is None:
        raise InvalidOrderError("Order items are required")

    subtotal = to_amount(subtotal)
    if not subtotal.is_finite() or subtotal < 0:
        raise InvalidOrderError(f"Subtotal must be a non-negative amount, got {subtotal}")

    items = []
    for index, item in enumerate(order_items):
        try:
            items.append(OrderItem.model_validate(item))
        except ValidationError as e:
            raise InvalidOrderError(f"Invalid order item at position {index}: {e}") from e

    return items, subtotal
