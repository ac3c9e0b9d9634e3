"""Pure deal calculation: validity, applicability, discounts, usage limits and selection"""
from .applicability import applicable_items, items_total
from .discounts import (
    calculate_deal_discount,
    calculate_percentage_discount,
    calculate_fixed_discount,
    calculate_combo_discount,
    calculate_buy_x_get_y_discount,
    calculate_minimum_purchase_discount,
)
from .inputs import validate_order
from .selection import rank_candidates, select_best
from .usage import check_usage_limit, total_usage
from .validity import is_valid, validity_reason

__all__ = [
    'applicable_items',
    'items_total',
    'calculate_deal_discount',
    'calculate_percentage_discount',
    'calculate_fixed_discount',
    'calculate_combo_discount',
    'calculate_buy_x_get_y_discount',
    'calculate_minimum_purchase_discount',
    'validate_order',
    'rank_candidates',
    'select_best',
    'check_usage_limit',
    'total_usage',
    'is_valid',
    'validity_reason',
]
