# dealengine/models/order.py
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

class OrderItem(BaseModel):
    """Order line supplied by the caller for a single calculation"""
    menu_item_id: int
    category_id: Optional[int] = None
    quantity: int = Field(gt=0)
    unit_price: Decimal = Field(ge=0)
    name: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def total_price(self) -> Decimal:
        return self.unit_price * self.quantity
