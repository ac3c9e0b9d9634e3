# dealengine/calculator/discounts.py
"""Per-variant discount calculators.

Every calculator takes ``(deal, order_items, subtotal)`` and returns a
:class:`DiscountOutcome`. A deal that does not apply yields
``deal_applied=False`` with a reason; nothing here raises for business
conditions and nothing mutates the deal or the order lines.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional
from ..models.deal import (
    Deal, DealType, PercentageTerms, FixedTerms, ComboTerms,
    BuyXGetYTerms, MinimumPurchaseTerms
)
from ..models.order import OrderItem
from ..models.outcome import DiscountOutcome
from .applicability import applicable_items, items_total
from .inputs import validate_order
from .validity import validity_reason

logger = logging.getLogger(__name__)

NO_APPLICABLE_ITEMS = "Order does not contain any item this deal applies to"

def _find_line(order_items: List[OrderItem], menu_item_id: int) -> Optional[OrderItem]:
    return next((item for item in order_items if item.menu_item_id == menu_item_id), None)

def calculate_percentage_discount(deal: Deal, order_items: List[OrderItem],
                                  subtotal: Decimal) -> DiscountOutcome:
    terms: PercentageTerms = deal.terms
    percentage = terms.discount_percentage

    if not deal.scope.is_restricted:
        discount_amount = subtotal * percentage / 100
        return DiscountOutcome(
            deal_applied=True,
            discount_amount=min(discount_amount, subtotal),
            deal_type=DealType.PERCENTAGE_DISCOUNT
        )

    items = applicable_items(deal, order_items)
    if not items:
        return DiscountOutcome.not_applied(DealType.PERCENTAGE_DISCOUNT, NO_APPLICABLE_ITEMS)

    discount_amount = sum(
        (item.total_price * percentage / 100 for item in items),
        Decimal(0)
    )
    return DiscountOutcome(
        deal_applied=True,
        discount_amount=discount_amount,
        deal_type=DealType.PERCENTAGE_DISCOUNT,
        affected_items=[item.menu_item_id for item in items]
    )

def calculate_fixed_discount(deal: Deal, order_items: List[OrderItem],
                             subtotal: Decimal) -> DiscountOutcome:
    terms: FixedTerms = deal.terms

    if not deal.scope.is_restricted:
        return DiscountOutcome(
            deal_applied=True,
            discount_amount=min(terms.discount_amount, subtotal),
            deal_type=DealType.FIXED_DISCOUNT
        )

    items = applicable_items(deal, order_items)
    if not items:
        return DiscountOutcome.not_applied(DealType.FIXED_DISCOUNT, NO_APPLICABLE_ITEMS)

    return DiscountOutcome(
        deal_applied=True,
        discount_amount=min(terms.discount_amount, items_total(items)),
        deal_type=DealType.FIXED_DISCOUNT,
        affected_items=[item.menu_item_id for item in items]
    )

def calculate_combo_discount(deal: Deal, order_items: List[OrderItem],
                             subtotal: Decimal) -> DiscountOutcome:
    terms: ComboTerms = deal.terms
    if not terms.combo_items:
        return DiscountOutcome.not_applied(DealType.COMBO, "Combo has no items")

    original_price = Decimal(0)
    for combo_line in terms.combo_items:
        order_line = _find_line(order_items, combo_line.menu_item_id)
        if order_line is None or order_line.quantity < combo_line.quantity:
            return DiscountOutcome.not_applied(
                DealType.COMBO, "Order does not contain all required combo items"
            )
        original_price += order_line.unit_price * combo_line.quantity

    return DiscountOutcome(
        deal_applied=True,
        discount_amount=max(Decimal(0), original_price - terms.combo_price),
        deal_type=DealType.COMBO,
        affected_items=[line.menu_item_id for line in terms.combo_items],
        combo_price=terms.combo_price,
        original_price=original_price
    )

def calculate_buy_x_get_y_discount(deal: Deal, order_items: List[OrderItem],
                                   subtotal: Decimal) -> DiscountOutcome:
    terms: BuyXGetYTerms = deal.terms

    buy_line = _find_line(order_items, terms.buy_menu_item_id)
    if buy_line is None or buy_line.quantity < terms.buy_quantity:
        return DiscountOutcome.not_applied(
            DealType.BUY_X_GET_Y,
            f"Need to buy {terms.buy_quantity} of the required item"
        )

    sets = buy_line.quantity // terms.buy_quantity

    get_item_id = terms.effective_get_item_id
    get_line = _find_line(order_items, get_item_id)
    if get_line is None:
        return DiscountOutcome.not_applied(
            DealType.BUY_X_GET_Y, "Order does not contain the free item"
        )

    free_items = min(sets * terms.get_quantity, get_line.quantity)
    return DiscountOutcome(
        deal_applied=True,
        discount_amount=get_line.unit_price * free_items,
        deal_type=DealType.BUY_X_GET_Y,
        affected_items=[get_item_id],
        free_items=free_items
    )

def calculate_minimum_purchase_discount(deal: Deal, order_items: List[OrderItem],
                                        subtotal: Decimal) -> DiscountOutcome:
    terms: MinimumPurchaseTerms = deal.terms
    if subtotal < terms.minimum_purchase_amount:
        return DiscountOutcome.not_applied(
            DealType.MINIMUM_PURCHASE,
            f"Minimum purchase of {terms.minimum_purchase_amount:.2f} required"
        )

    return DiscountOutcome(
        deal_applied=True,
        discount_amount=min(terms.discount_amount, subtotal),
        deal_type=DealType.MINIMUM_PURCHASE
    )

CALCULATORS: Dict[DealType, Callable[[Deal, List[OrderItem], Decimal], DiscountOutcome]] = {
    DealType.PERCENTAGE_DISCOUNT: calculate_percentage_discount,
    DealType.FIXED_DISCOUNT: calculate_fixed_discount,
    DealType.COMBO: calculate_combo_discount,
    DealType.BUY_X_GET_Y: calculate_buy_x_get_y_discount,
    DealType.MINIMUM_PURCHASE: calculate_minimum_purchase_discount,
}

def calculate_deal_discount(deal: Deal, order_items: Iterable[Any], subtotal: Any,
                            now: Optional[datetime] = None) -> DiscountOutcome:
    """Calculate the discount one deal gives an order.

    Raises InvalidOrderError for a negative subtotal or malformed order
    lines. When ``now`` is given the deal's validity is checked first.
    """
    items, subtotal = validate_order(order_items, subtotal)

    if now is not None:
        reason = validity_reason(deal, now)
        if reason:
            return DiscountOutcome.not_applied(deal.deal_type, reason)

    calculator = CALCULATORS.get(deal.deal_type)
    if calculator is None:
        logger.warning(f"Deal {deal.deal_id} has unsupported type {deal.deal_type}")
        return DiscountOutcome.not_applied(reason="Unsupported deal type")

    return calculator(deal, items, subtotal)
