# dealengine/calculator/selection.py
from decimal import Decimal
from typing import Iterable, List
from ..models.outcome import AppliedDeals, DealCandidate

def rank_candidates(candidates: Iterable[DealCandidate]) -> List[DealCandidate]:
    """Positive candidates, largest realized discount first.

    The sort is stable, so candidates with equal discounts keep the order
    they arrived in (the storage query orders by declared priority).
    """
    positive = [candidate for candidate in candidates if candidate.outcome.is_positive]
    return sorted(positive, key=lambda candidate: candidate.discount_amount, reverse=True)

def select_best(candidates: Iterable[DealCandidate], allow_stacking: bool = False) -> AppliedDeals:
    """Pick the deal(s) that apply to the order.

    Without stacking only the single best candidate applies. With stacking
    every stackable candidate applies and non-stackable ones are dropped,
    even when one of them alone beats the stacked total.
    """
    ranked = rank_candidates(candidates)
    if not ranked:
        return AppliedDeals()

    if not allow_stacking:
        best = ranked[0]
        return AppliedDeals(total_discount=best.discount_amount, applied_deals=[best])

    stackable = [c for c in ranked if c.deal.can_stack_with_other_deals]
    total_discount = sum((c.discount_amount for c in stackable), Decimal(0))
    return AppliedDeals(total_discount=total_discount, applied_deals=stackable)
