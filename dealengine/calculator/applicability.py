# dealengine/calculator/applicability.py
from decimal import Decimal
from typing import Iterable, List
from ..models.deal import Deal
from ..models.order import OrderItem

def applicable_items(deal: Deal, order_items: Iterable[OrderItem]) -> List[OrderItem]:
    """Order lines the deal may act on, in input order"""
    scope = deal.scope
    if not scope.is_restricted:
        return list(order_items)

    return [
        item for item in order_items
        if item.menu_item_id in scope.menu_item_ids
        or (item.category_id is not None and item.category_id in scope.category_ids)
    ]

def items_total(order_items: Iterable[OrderItem]) -> Decimal:
    return sum((item.total_price for item in order_items), Decimal(0))
