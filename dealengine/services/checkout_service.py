# dealengine/services/checkout_service.py
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional
import pytz
from ..calculator import (
    calculate_deal_discount, rank_candidates, select_best,
    validate_order, validity_reason
)
from ..config import Config
from ..models.deal import DealType, SalesChannel
from ..models.outcome import AppliedDeals, DealCandidate
from ..utils.formatters import describe_outcome, format_datetime, format_price, localize

class DealCheckoutService:
    """Finds, selects and commits deals for an order at checkout"""

    def __init__(self, deal_service, usage_service):
        self.deal_service = deal_service
        self.usage_service = usage_service
        self.tz = pytz.timezone(Config.TIMEZONE)
        self.logger = logging.getLogger(__name__)

    def current_time(self) -> datetime:
        return datetime.now(self.tz)

    async def find_best_deals(self, restaurant_id: int, branch_id: int,
                              order_items: Iterable[Any], subtotal: Any,
                              customer_id: Optional[int] = None,
                              now: Optional[datetime] = None) -> List[DealCandidate]:
        """Deals that discount this order, largest discount first.

        Only positive outcomes are returned, and deals whose per-customer
        cap is used up are left out when ``customer_id`` is given.
        """
        items, subtotal = validate_order(order_items, subtotal)
        now = localize(now) if now else self.current_time()

        self.logger.debug(f"Finding deals for branch {branch_id} at {format_datetime(now)}")
        deals = await self.deal_service.find_applicable_deals(restaurant_id, branch_id, now)

        candidates = []
        for deal in deals:
            reason = validity_reason(deal, now)
            if reason:
                self.logger.debug(f"Skipping deal {deal.deal_id}: {reason}")
                continue

            outcome = calculate_deal_discount(deal, items, subtotal)
            if not outcome.is_positive:
                self.logger.debug(f"Deal {deal.deal_id} gives no discount: {outcome.reason}")
                continue

            if customer_id is not None and deal.has_customer_limit:
                usage = await self.usage_service.can_use(deal, customer_id)
                if not usage.allowed:
                    self.logger.debug(f"Skipping deal {deal.deal_id} for customer {customer_id}: {usage.reason}")
                    continue

            candidates.append(DealCandidate(deal=deal, outcome=outcome))

        return rank_candidates(candidates)

    def apply_best_deals(self, candidates: Iterable[DealCandidate],
                         allow_stacking: Optional[bool] = None) -> AppliedDeals:
        """Choose the deal(s) to apply; stacking defaults to Config.ALLOW_DEAL_STACKING"""
        if allow_stacking is None:
            allow_stacking = Config.ALLOW_DEAL_STACKING

        applied = select_best(candidates, allow_stacking)
        for candidate in applied.applied_deals:
            self.logger.info(f"Applying deal {describe_outcome(candidate)}")
        self.logger.info(f"Total discount applied: {format_price(applied.total_discount)}")
        return applied

    async def commit_applied_deals(self, applied: AppliedDeals, order_id: int,
                                   customer_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Record usage of every applied deal once the order is committed"""
        results = []
        for candidate in applied.applied_deals:
            result = await self.usage_service.record_usage(
                deal_id=candidate.deal.deal_id,
                customer_id=customer_id,
                order_id=order_id,
                discount_applied=candidate.discount_amount
            )
            if not result["success"]:
                self.logger.warning(
                    f"Usage of deal {candidate.deal.deal_id} not recorded for order {order_id}: {result['error']}"
                )
            results.append({"deal_id": candidate.deal.deal_id, **result})
        return results

    async def check_eligibility(self, deal_id: int, order_items: Iterable[Any], subtotal: Any,
                                customer_id: Optional[int] = None,
                                now: Optional[datetime] = None) -> Dict[str, Any]:
        """Explain whether one deal applies to a cart"""
        items, subtotal = validate_order(order_items, subtotal)
        now = localize(now) if now else self.current_time()

        deal = await self.deal_service.get_deal(deal_id)
        if not deal:
            return {"eligible": False, "reason": "Deal not found"}

        reason = validity_reason(deal, now)
        if reason:
            return {"eligible": False, "reason": reason}

        result: Dict[str, Any] = {}
        if customer_id is not None and deal.has_customer_limit:
            usage = await self.usage_service.can_use(deal, customer_id)
            if not usage.allowed:
                return {
                    "eligible": False,
                    "reason": usage.reason,
                    "current_usage": usage.current_usage
                }
            result["current_usage"] = usage.current_usage
            result["remaining_uses"] = usage.remaining_uses

        outcome = calculate_deal_discount(deal, items, subtotal)
        if not outcome.deal_applied:
            response = {"eligible": False, "reason": outcome.reason}
            if deal.deal_type == DealType.MINIMUM_PURCHASE:
                response["current_amount"] = subtotal
                response["remaining"] = deal.terms.minimum_purchase_amount - subtotal
            return response

        return {
            "eligible": True,
            "deal": deal,
            "discount_amount": outcome.discount_amount,
            **result
        }

    async def get_available_deals(self, restaurant_id: int, branch_id: int,
                                  customer_id: Optional[int] = None,
                                  now: Optional[datetime] = None,
                                  channel: Optional[SalesChannel] = None) -> List[Dict[str, Any]]:
        """Deals a customer can use right now, for display before ordering"""
        now = localize(now) if now else self.current_time()
        deals = await self.deal_service.find_applicable_deals(
            restaurant_id, branch_id, now, channel=channel
        )

        available = []
        for deal in deals:
            if validity_reason(deal, now):
                continue

            entry: Dict[str, Any] = {"deal": deal}
            if customer_id is not None and deal.has_customer_limit:
                usage = await self.usage_service.can_use(deal, customer_id)
                if not usage.allowed:
                    continue
                entry["customer_usage"] = usage.current_usage
                entry["remaining_uses"] = usage.remaining_uses
            available.append(entry)

        return available
