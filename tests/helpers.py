from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from dealengine.calculator import check_usage_limit, total_usage
from dealengine.models import (
    Deal, DealUsage, DiscountOutcome, DealCandidate, ItemScope, OrderItem, UsageCheck
)

# a Wednesday
NOW = datetime(2026, 3, 18, 17, 30, tzinfo=timezone.utc)

_next_id = [100]


def make_deal(terms, **overrides):
    _next_id[0] += 1
    data = dict(
        deal_id=_next_id[0],
        restaurant_id=1,
        name=f"deal-{_next_id[0]}",
        terms=terms,
        start_date=NOW - timedelta(days=7),
        end_date=NOW + timedelta(days=7),
    )
    data.update(overrides)
    return Deal(**data)


def percentage(pct, **overrides):
    return make_deal({"deal_type": "percentage_discount", "discount_percentage": pct}, **overrides)


def fixed(amount, **overrides):
    return make_deal({"deal_type": "fixed_discount", "discount_amount": amount}, **overrides)


def combo(lines, price, **overrides):
    return make_deal({
        "deal_type": "combo",
        "combo_items": [{"menu_item_id": m, "quantity": q} for m, q in lines],
        "combo_price": price,
    }, **overrides)


def buy_x_get_y(buy_item, buy_qty, get_qty, get_item=None, **overrides):
    return make_deal({
        "deal_type": "buy_x_get_y",
        "buy_menu_item_id": buy_item,
        "buy_quantity": buy_qty,
        "get_quantity": get_qty,
        "get_menu_item_id": get_item,
    }, **overrides)


def minimum_purchase(minimum, amount, **overrides):
    return make_deal({
        "deal_type": "minimum_purchase",
        "minimum_purchase_amount": minimum,
        "discount_amount": amount,
    }, **overrides)


def restricted(menu_items=(), categories=()):
    return ItemScope.restricted(menu_items, categories)


def line(menu_item_id, price, quantity=1, category_id=None):
    return OrderItem(
        menu_item_id=menu_item_id,
        category_id=category_id,
        quantity=quantity,
        unit_price=Decimal(str(price)),
    )


def candidate(deal, amount):
    return DealCandidate(
        deal=deal,
        outcome=DiscountOutcome(
            deal_applied=True,
            discount_amount=Decimal(str(amount)),
            deal_type=deal.deal_type,
        ),
    )


class StubDealService:
    """In-memory rule source"""

    def __init__(self, deals=()):
        self.deals = list(deals)
        self.queries = []

    async def find_applicable_deals(self, restaurant_id, branch_id, now,
                                    deal_type=None, menu_item_id=None, channel=None):
        self.queries.append((restaurant_id, branch_id, now, channel))
        return sorted(
            (d for d in self.deals if d.restaurant_id == restaurant_id),
            key=lambda d: -d.priority,
        )

    async def get_deal(self, deal_id):
        return next((d for d in self.deals if d.deal_id == deal_id), None)


class StubUsageService:
    """In-memory usage log with the same cap rules as DealUsageService"""

    def __init__(self):
        self.records = []

    async def can_use(self, deal, customer_id):
        if not deal.has_customer_limit:
            return UsageCheck(allowed=True)
        used = total_usage(
            r for r in self.records
            if r.deal_id == deal.deal_id and r.customer_id == customer_id
        )
        return check_usage_limit(deal, used)

    async def record_usage(self, deal_id, customer_id, order_id, discount_applied, usage_count=1):
        if any(r.deal_id == deal_id and r.customer_id == customer_id and r.order_id == order_id
               for r in self.records):
            return {"success": False, "error": "Usage already recorded for this order"}
        record = DealUsage(
            usage_id=len(self.records) + 1,
            deal_id=deal_id,
            customer_id=customer_id,
            order_id=order_id,
            usage_count=usage_count,
            discount_applied=discount_applied,
        )
        self.records.append(record)
        return {"success": True, "usage_id": record.usage_id}


class StubConnection:
    """Stands in for an asyncpg connection, replaying canned results"""

    def __init__(self, rows=None, fetchrow_results=None, fetchval_results=None):
        self.rows = rows or []
        self.fetchrow_results = list(fetchrow_results or [])
        self.fetchval_results = list(fetchval_results or [])
        self.calls = []
        self.transactions = 0

    async def fetch(self, query, *params):
        self.calls.append((query, params))
        return self.rows

    async def fetchrow(self, query, *params):
        self.calls.append((query, params))
        return self.fetchrow_results.pop(0) if self.fetchrow_results else None

    async def fetchval(self, query, *params):
        self.calls.append((query, params))
        return self.fetchval_results.pop(0) if self.fetchval_results else None

    async def execute(self, query, *params):
        self.calls.append((query, params))
        return "OK"

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        yield


class StubPool:
    def __init__(self, conn):
        self.conn = conn

    @asynccontextmanager
    async def acquire(self):
        yield self.conn


class StubDB:
    def __init__(self, conn):
        self.pool = StubPool(conn)
