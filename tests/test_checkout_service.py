import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest

from helpers import (
    NOW, StubDealService, StubUsageService, combo, fixed, line, minimum_purchase, percentage
)
from dealengine.exceptions import InvalidOrderError
from dealengine.services import DealCheckoutService

BURGER, FRIES, DRINK = 1, 2, 3
ITEMS = [line(BURGER, 6), line(FRIES, 3), line(DRINK, 2)]
SUBTOTAL = Decimal("11")


def build(deals, usage=None):
    return DealCheckoutService(StubDealService(deals), usage or StubUsageService())


class TestFindBestDeals:
    def test_sorted_by_discount_not_priority(self):
        low = fixed("1.00", priority=10)
        high = percentage(50, priority=0)
        service = build([low, high])

        found = asyncio.run(service.find_best_deals(1, 5, ITEMS, SUBTOTAL, now=NOW))

        assert [c.deal.deal_id for c in found] == [high.deal_id, low.deal_id]
        assert found[0].discount_amount == Decimal("5.5")

    def test_skips_invalid_and_zero_deals(self):
        expired = percentage(50, end_date=NOW - timedelta(days=1))
        happy_hour = percentage(50, start_time="20:00", end_time="22:00")
        unreachable = minimum_purchase(100, 5)
        overpriced_combo = combo([(BURGER, 1), (FRIES, 1)], "12.00")
        good = fixed("2.00")
        service = build([expired, happy_hour, unreachable, overpriced_combo, good])

        found = asyncio.run(service.find_best_deals(1, 5, ITEMS, SUBTOTAL, now=NOW))

        assert [c.deal.deal_id for c in found] == [good.deal_id]

    def test_customer_at_cap_is_skipped(self):
        capped = percentage(50, max_usage_per_customer=1)
        usage = StubUsageService()
        service = build([capped], usage)

        async def scenario():
            await usage.record_usage(capped.deal_id, 7, order_id=1, discount_applied=Decimal("1"))
            anonymous = await service.find_best_deals(1, 5, ITEMS, SUBTOTAL, now=NOW)
            returning = await service.find_best_deals(1, 5, ITEMS, SUBTOTAL, customer_id=7, now=NOW)
            other = await service.find_best_deals(1, 5, ITEMS, SUBTOTAL, customer_id=8, now=NOW)
            return anonymous, returning, other

        anonymous, returning, other = asyncio.run(scenario())
        assert len(anonymous) == 1
        assert returning == []
        assert len(other) == 1

    def test_invalid_input_propagates(self):
        service = build([fixed(1)])
        with pytest.raises(InvalidOrderError):
            asyncio.run(service.find_best_deals(1, 5, ITEMS, -5, now=NOW))

    def test_uses_current_time_when_not_given(self):
        deals = StubDealService([])
        service = DealCheckoutService(deals, StubUsageService())
        asyncio.run(service.find_best_deals(1, 5, ITEMS, SUBTOTAL))
        assert deals.queries[0][2].tzinfo is not None

    def test_naive_now_is_localized(self, monkeypatch):
        from dealengine.config import Config
        monkeypatch.setattr(Config, "TIMEZONE", "UTC")
        deal = fixed(1)
        deals = StubDealService([deal])
        service = DealCheckoutService(deals, StubUsageService())

        found = asyncio.run(service.find_best_deals(1, 5, ITEMS, SUBTOTAL, now=NOW.replace(tzinfo=None)))

        assert [c.deal.deal_id for c in found] == [deal.deal_id]
        assert deals.queries[0][2] == NOW


class TestApplyAndCommit:
    def test_apply_then_commit_records_usage(self):
        exclusive = fixed("4.00")
        stack_a = percentage(10, can_stack_with_other_deals=True)
        stack_b = fixed("1.00", can_stack_with_other_deals=True)
        usage = StubUsageService()
        service = build([exclusive, stack_a, stack_b], usage)

        async def scenario():
            found = await service.find_best_deals(1, 5, ITEMS, SUBTOTAL, customer_id=7, now=NOW)
            applied = service.apply_best_deals(found, allow_stacking=True)
            results = await service.commit_applied_deals(applied, order_id=42, customer_id=7)
            return applied, results

        applied, results = asyncio.run(scenario())

        assert applied.total_discount == Decimal("2.10")
        assert {c.deal.deal_id for c in applied.applied_deals} == {stack_a.deal_id, stack_b.deal_id}
        assert all(r["success"] for r in results)
        assert [r.deal_id for r in usage.records] == [c.deal.deal_id for c in applied.applied_deals]
        assert all(r.order_id == 42 for r in usage.records)

    def test_stacking_defaults_to_config(self, monkeypatch):
        from dealengine.config import Config
        monkeypatch.setattr(Config, "ALLOW_DEAL_STACKING", False)
        best = fixed("4.00")
        other = fixed("1.00", can_stack_with_other_deals=True)
        service = build([best, other])

        found = asyncio.run(service.find_best_deals(1, 5, ITEMS, SUBTOTAL, now=NOW))
        applied = service.apply_best_deals(found)

        assert [c.deal.deal_id for c in applied.applied_deals] == [best.deal_id]

    def test_second_commit_of_same_order_is_refused(self):
        deal = fixed("1.00")
        usage = StubUsageService()
        service = build([deal], usage)

        async def scenario():
            found = await service.find_best_deals(1, 5, ITEMS, SUBTOTAL, now=NOW)
            applied = service.apply_best_deals(found, allow_stacking=False)
            await service.commit_applied_deals(applied, order_id=42, customer_id=7)
            return await service.commit_applied_deals(applied, order_id=42, customer_id=7)

        second = asyncio.run(scenario())
        assert second[0]["success"] is False
        assert len(usage.records) == 1


class TestEligibility:
    def test_unknown_deal(self):
        result = asyncio.run(build([]).check_eligibility(999, ITEMS, SUBTOTAL, now=NOW))
        assert result == {"eligible": False, "reason": "Deal not found"}

    def test_minimum_purchase_reports_remaining(self):
        deal = minimum_purchase("20.00", "5.00")
        result = asyncio.run(build([deal]).check_eligibility(deal.deal_id, ITEMS, SUBTOTAL, now=NOW))
        assert not result["eligible"]
        assert result["remaining"] == Decimal("9.00")

    def test_eligible_with_remaining_uses(self):
        deal = percentage(10, max_usage_per_customer=3)
        result = asyncio.run(
            build([deal]).check_eligibility(deal.deal_id, ITEMS, SUBTOTAL, customer_id=7, now=NOW)
        )
        assert result["eligible"]
        assert result["remaining_uses"] == 3
        assert result["discount_amount"] == Decimal("1.1")

    def test_inactive_deal(self):
        deal = percentage(10, is_active=False)
        result = asyncio.run(build([deal]).check_eligibility(deal.deal_id, ITEMS, SUBTOTAL, now=NOW))
        assert result == {"eligible": False, "reason": "Deal is not active"}


class TestAvailableDeals:
    def test_lists_only_currently_usable_deals(self):
        open_deal = percentage(10)
        closed_today = percentage(10, days_of_week={0})
        capped = percentage(10, max_usage_per_customer=2)
        service = build([open_deal, closed_today, capped])

        available = asyncio.run(service.get_available_deals(1, 5, customer_id=7, now=NOW))

        assert [entry["deal"].deal_id for entry in available] == [open_deal.deal_id, capped.deal_id]
        assert available[1]["remaining_uses"] == 2
        assert "remaining_uses" not in available[0]
