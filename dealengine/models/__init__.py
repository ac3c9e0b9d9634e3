"""Deal, usage, order and outcome models"""
from .deal import (
    Deal, DealType, DealTerms, ItemScope, ScopeKind, SalesChannel,
    PercentageTerms, FixedTerms, ComboLine, ComboTerms,
    BuyXGetYTerms, MinimumPurchaseTerms
)
from .deal_usage import DealUsage, UsageCheck
from .order import OrderItem
from .outcome import AppliedDeals, DealCandidate, DiscountOutcome

__all__ = [
    'Deal',
    'DealType',
    'DealTerms',
    'ItemScope',
    'ScopeKind',
    'SalesChannel',
    'PercentageTerms',
    'FixedTerms',
    'ComboLine',
    'ComboTerms',
    'BuyXGetYTerms',
    'MinimumPurchaseTerms',
    'DealUsage',
    'UsageCheck',
    'OrderItem',
    'AppliedDeals',
    'DealCandidate',
    'DiscountOutcome',
]
