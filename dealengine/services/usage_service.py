# dealengine/services/usage_service.py
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional
from ..calculator.usage import check_usage_limit
from ..models.deal import Deal
from ..models.deal_usage import DealUsage, UsageCheck

class DealUsageService:
    """Per-customer usage records and the deal usage counter"""

    def __init__(self, db):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def get_customer_usage(self, deal_id: int, customer_id: int) -> int:
        """Total uses of a deal by one customer"""
        async with self.db.pool.acquire() as conn:
            return await conn.fetchval("""
                SELECT COALESCE(SUM(usage_count), 0)
                FROM deal_usage
                WHERE deal_id = $1 AND customer_id = $2
            """, deal_id, customer_id)

    async def get_usage_records(self, deal_id: int,
                                customer_id: Optional[int] = None) -> List[DealUsage]:
        """Usage records of a deal, newest first"""
        query = """
            SELECT *
            FROM deal_usage
            WHERE deal_id = $1
        """
        params = [deal_id]
        if customer_id is not None:
            query += " AND customer_id = $2"
            params.append(customer_id)
        query += " ORDER BY created_at DESC"

        async with self.db.pool.acquire() as conn:
            records = await conn.fetch(query, *params)
            return [DealUsage(**dict(record)) for record in records]

    async def can_use(self, deal: Deal, customer_id: int) -> UsageCheck:
        """Check the per-customer cap of a deal"""
        if not deal.has_customer_limit:
            return UsageCheck(allowed=True)

        current_usage = await self.get_customer_usage(deal.deal_id, customer_id)
        return check_usage_limit(deal, current_usage)

    async def record_usage(self, deal_id: int, customer_id: Optional[int], order_id: int,
                           discount_applied: Decimal, usage_count: int = 1) -> Dict[str, Any]:
        """Record one application of a deal to a committed order.

        The deal row stays locked for the whole transaction, so concurrent
        orders against the same deal re-check both caps one at a time.
        """
        async with self.db.pool.acquire() as conn:
            async with conn.transaction():
                deal = await conn.fetchrow("""
                    SELECT max_usage_per_customer, max_total_usage, current_usage_count
                    FROM deals
                    WHERE deal_id = $1
                    FOR UPDATE
                """, deal_id)

                if not deal:
                    return {
                        "success": False,
                        "error": "Deal not found"
                    }

                max_total = deal['max_total_usage']
                if max_total and deal['current_usage_count'] + usage_count > max_total:
                    return {
                        "success": False,
                        "error": f"Deal usage limit reached ({max_total} times)"
                    }

                usage_id = None
                if customer_id is not None:
                    max_per_customer = deal['max_usage_per_customer']
                    if max_per_customer:
                        used = await conn.fetchval("""
                            SELECT COALESCE(SUM(usage_count), 0)
                            FROM deal_usage
                            WHERE deal_id = $1 AND customer_id = $2
                        """, deal_id, customer_id)
                        if used + usage_count > max_per_customer:
                            return {
                                "success": False,
                                "error": f"Maximum usage limit reached ({max_per_customer} times)"
                            }

                    usage_id = await conn.fetchval("""
                        INSERT INTO deal_usage (
                            deal_id, customer_id, order_id, usage_count, discount_applied
                        ) VALUES ($1, $2, $3, $4, $5)
                        ON CONFLICT (deal_id, customer_id, order_id) DO NOTHING
                        RETURNING usage_id
                    """, deal_id, customer_id, order_id, usage_count, discount_applied)

                    if usage_id is None:
                        return {
                            "success": False,
                            "error": "Usage already recorded for this order"
                        }

                current_usage_count = await conn.fetchval("""
                    UPDATE deals
                    SET current_usage_count = current_usage_count + $2
                    WHERE deal_id = $1
                    RETURNING current_usage_count
                """, deal_id, usage_count)

                self.logger.info(
                    f"Recorded usage of deal {deal_id} for order {order_id} "
                    f"(customer {customer_id}, discount {discount_applied})"
                )
                return {
                    "success": True,
                    "usage_id": usage_id,
                    "current_usage_count": current_usage_count
                }

    async def get_usage_stats(self, deal_id: int) -> Optional[Dict[str, Any]]:
        """Usage statistics of a deal"""
        async with self.db.pool.acquire() as conn:
            stats = await conn.fetchrow("""
                SELECT
                    d.current_usage_count as total_usage,
                    COALESCE(SUM(du.discount_applied), 0) as total_discount_given,
                    COUNT(DISTINCT du.customer_id) as unique_customers
                FROM deals d
                LEFT JOIN deal_usage du ON du.deal_id = d.deal_id
                WHERE d.deal_id = $1
                GROUP BY d.deal_id
            """, deal_id)

            if not stats:
                return None

            stats = dict(stats)
            total_usage = stats['total_usage']
            stats['average_discount_per_use'] = (
                stats['total_discount_given'] / total_usage if total_usage > 0 else Decimal(0)
            )
            return stats
