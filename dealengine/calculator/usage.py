# dealengine/calculator/usage.py
from typing import Iterable
from ..models.deal import Deal
from ..models.deal_usage import DealUsage, UsageCheck

def total_usage(usage_records: Iterable[DealUsage]) -> int:
    return sum(record.usage_count for record in usage_records)

def check_usage_limit(deal: Deal, current_usage: int) -> UsageCheck:
    """Decide whether a customer with ``current_usage`` prior uses may use the deal again"""
    if not deal.has_customer_limit:
        return UsageCheck(allowed=True, current_usage=current_usage)

    limit = deal.max_usage_per_customer
    if current_usage >= limit:
        return UsageCheck(
            allowed=False,
            reason=f"Maximum usage limit reached ({limit} times)",
            current_usage=current_usage
        )

    return UsageCheck(
        allowed=True,
        current_usage=current_usage,
        remaining_uses=limit - current_usage
    )
