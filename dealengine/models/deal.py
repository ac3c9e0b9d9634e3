# dealengine/models/deal.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, FrozenSet, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator
from .base import TimeStampedModel

TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"

class DealType(str, Enum):
    """Deal variants"""
    PERCENTAGE_DISCOUNT = "percentage_discount"  # 20% off
    FIXED_DISCOUNT = "fixed_discount"  # 5.00 off
    COMBO = "combo"  # burger + fries + drink for 10.00
    BUY_X_GET_Y = "buy_x_get_y"  # buy 2, get 1 free
    MINIMUM_PURCHASE = "minimum_purchase"  # spend 20.00, get 5.00 off

class SalesChannel(str, Enum):
    """Front end asking for deals"""
    POS = "pos"
    WEBSITE = "website"

class ScopeKind(str, Enum):
    """Which order lines a deal may act on"""
    ALL = "all"
    RESTRICTED = "restricted"

class ItemScope(BaseModel):
    """Menu item / category restriction of a deal"""
    kind: ScopeKind = ScopeKind.ALL
    menu_item_ids: FrozenSet[int] = frozenset()
    category_ids: FrozenSet[int] = frozenset()

    model_config = ConfigDict(frozen=True)

    @classmethod
    def restricted(cls, menu_item_ids=(), category_ids=()) -> "ItemScope":
        return cls(
            kind=ScopeKind.RESTRICTED,
            menu_item_ids=frozenset(menu_item_ids),
            category_ids=frozenset(category_ids)
        )

    @classmethod
    def from_ids(cls, menu_item_ids=None, category_ids=None) -> "ItemScope":
        """Storage keeps two id lists; both empty means every item."""
        if not menu_item_ids and not category_ids:
            return cls()
        return cls.restricted(menu_item_ids or (), category_ids or ())

    @property
    def is_restricted(self) -> bool:
        return self.kind == ScopeKind.RESTRICTED

class _Terms(BaseModel):
    model_config = ConfigDict(frozen=True)

class PercentageTerms(_Terms):
    deal_type: Literal["percentage_discount"] = "percentage_discount"
    discount_percentage: Decimal = Field(ge=0, le=100)

class FixedTerms(_Terms):
    deal_type: Literal["fixed_discount"] = "fixed_discount"
    discount_amount: Decimal = Field(ge=0)

class ComboLine(_Terms):
    """One required line of a combo"""
    menu_item_id: int
    quantity: int = Field(default=1, ge=1)

class ComboTerms(_Terms):
    deal_type: Literal["combo"] = "combo"
    combo_items: List[ComboLine] = Field(default_factory=list)
    combo_price: Decimal = Field(ge=0)

class BuyXGetYTerms(_Terms):
    deal_type: Literal["buy_x_get_y"] = "buy_x_get_y"
    buy_menu_item_id: int
    buy_quantity: int = Field(ge=1)
    get_quantity: int = Field(ge=1)
    get_menu_item_id: Optional[int] = None  # same as the buy item when unset

    @property
    def effective_get_item_id(self) -> int:
        if self.get_menu_item_id is None:
            return self.buy_menu_item_id
        return self.get_menu_item_id

class MinimumPurchaseTerms(_Terms):
    deal_type: Literal["minimum_purchase"] = "minimum_purchase"
    minimum_purchase_amount: Decimal = Field(ge=0)
    discount_amount: Decimal = Field(ge=0)

DealTerms = Annotated[
    Union[PercentageTerms, FixedTerms, ComboTerms, BuyXGetYTerms, MinimumPurchaseTerms],
    Field(discriminator="deal_type")
]

class Deal(TimeStampedModel):
    """Promotional deal of a restaurant"""
    deal_id: int
    restaurant_id: int
    branch_ids: FrozenSet[int] = frozenset()  # empty = every branch
    name: str
    description: Optional[str] = None
    badge_text: Optional[str] = None
    terms: DealTerms
    scope: ItemScope = ItemScope()

    # time restrictions
    start_date: datetime
    end_date: datetime
    start_time: Optional[str] = Field(default=None, pattern=TIME_OF_DAY_PATTERN)
    end_time: Optional[str] = Field(default=None, pattern=TIME_OF_DAY_PATTERN)
    days_of_week: FrozenSet[int] = frozenset()  # 0 = Sunday ... 6 = Saturday

    # usage limits, 0 or None = unlimited
    max_usage_per_customer: Optional[int] = Field(default=None, ge=0)
    max_total_usage: Optional[int] = Field(default=None, ge=0)
    current_usage_count: int = Field(default=0, ge=0)

    priority: int = 0
    can_stack_with_other_deals: bool = False
    is_active: bool = True
    show_on_pos: bool = True
    show_on_website: bool = True

    @field_validator("days_of_week")
    @classmethod
    def _check_days_of_week(cls, value: FrozenSet[int]) -> FrozenSet[int]:
        if any(day < 0 or day > 6 for day in value):
            raise ValueError("days_of_week must contain numbers between 0 (Sunday) and 6 (Saturday)")
        return value

    @property
    def deal_type(self) -> DealType:
        return DealType(self.terms.deal_type)

    @property
    def has_customer_limit(self) -> bool:
        return bool(self.max_usage_per_customer)

    @property
    def has_total_limit(self) -> bool:
        return bool(self.max_total_usage)
