# dealengine/models/deal_usage.py
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field
from .base import TimeStampedModel

class DealUsage(TimeStampedModel):
    """One application of a deal to a customer's order"""
    usage_id: int
    deal_id: int
    customer_id: int
    order_id: int
    usage_count: int = Field(default=1, ge=1)
    discount_applied: Decimal = Field(ge=0)

class UsageCheck(BaseModel):
    """Answer of the per-customer usage limit check"""
    allowed: bool
    reason: Optional[str] = None
    current_usage: int = 0
    remaining_uses: Optional[int] = None
