# dealengine/models/outcome.py
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from .deal import Deal, DealType

class DiscountOutcome(BaseModel):
    """Result of running one deal against an order"""
    deal_applied: bool = False
    discount_amount: Decimal = Decimal(0)
    deal_type: Optional[DealType] = None
    affected_items: List[int] = Field(default_factory=list)  # empty = whole order
    reason: Optional[str] = None

    # combo
    combo_price: Optional[Decimal] = None
    original_price: Optional[Decimal] = None
    # buy x get y
    free_items: Optional[int] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def not_applied(cls, deal_type: Optional[DealType] = None,
                    reason: Optional[str] = None) -> "DiscountOutcome":
        return cls(deal_type=deal_type, reason=reason)

    @property
    def is_positive(self) -> bool:
        return self.deal_applied and self.discount_amount > 0

class DealCandidate(BaseModel):
    """A deal paired with the outcome it produced for the current order"""
    deal: Deal
    outcome: DiscountOutcome

    model_config = ConfigDict(frozen=True)

    @property
    def discount_amount(self) -> Decimal:
        return self.outcome.discount_amount

class AppliedDeals(BaseModel):
    """Deals chosen for an order and the discount they add up to"""
    total_discount: Decimal = Decimal(0)
    applied_deals: List[DealCandidate] = Field(default_factory=list)
