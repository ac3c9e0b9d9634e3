"""Deal storage and checkout services"""
from .deal_service import DealService
from .usage_service import DealUsageService
from .checkout_service import DealCheckoutService

__all__ = [
    'DealService',
    'DealUsageService',
    'DealCheckoutService',
]
