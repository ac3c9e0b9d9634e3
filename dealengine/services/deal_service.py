# dealengine/services/deal_service.py
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import TypeAdapter, ValidationError
from ..models.deal import Deal, DealTerms, DealType, ItemScope, SalesChannel

_terms_adapter = TypeAdapter(DealTerms)

class DealService:
    """Storage of deal definitions"""

    def __init__(self, db):
        self.db = db
        self.logger = logging.getLogger(__name__)

    async def create_deal(self, deal_data: Dict[str, Any]) -> int:
        """Insert a new deal and return its id"""
        terms = _terms_adapter.validate_python(deal_data['terms'])

        async with self.db.pool.acquire() as conn:
            deal_id = await conn.fetchval("""
                INSERT INTO deals (
                    restaurant_id, branch_ids, name, description, badge_text,
                    deal_type, terms, applicable_menu_items, applicable_categories,
                    start_date, end_date, start_time, end_time, days_of_week,
                    max_usage_per_customer, max_total_usage, priority,
                    can_stack_with_other_deals, is_active, show_on_pos, show_on_website
                ) VALUES (
                    $1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11,
                    $12, $13, $14, $15, $16, $17, $18, $19, $20, $21
                )
                RETURNING deal_id
            """,
                deal_data['restaurant_id'],
                list(deal_data.get('branch_ids') or []),
                deal_data['name'],
                deal_data.get('description'),
                deal_data.get('badge_text'),
                terms.deal_type,
                terms.model_dump_json(),
                list(deal_data.get('applicable_menu_items') or []),
                list(deal_data.get('applicable_categories') or []),
                deal_data['start_date'],
                deal_data['end_date'],
                deal_data.get('start_time'),
                deal_data.get('end_time'),
                list(deal_data.get('days_of_week') or []),
                deal_data.get('max_usage_per_customer'),
                deal_data.get('max_total_usage'),
                deal_data.get('priority', 0),
                deal_data.get('can_stack_with_other_deals', False),
                deal_data.get('is_active', True),
                deal_data.get('show_on_pos', True),
                deal_data.get('show_on_website', True)
            )
            self.logger.info(f"Created deal {deal_id} ({terms.deal_type})")
            return deal_id

    async def get_deal(self, deal_id: int) -> Optional[Deal]:
        """Load one deal"""
        async with self.db.pool.acquire() as conn:
            row = await conn.fetchrow("""
                SELECT *
                FROM deals
                WHERE deal_id = $1
            """, deal_id)
            return self._row_to_deal(row) if row else None

    async def find_applicable_deals(self, restaurant_id: int, branch_id: int, now: datetime,
                                    deal_type: Optional[DealType] = None,
                                    menu_item_id: Optional[int] = None,
                                    channel: Optional[SalesChannel] = None) -> List[Deal]:
        """Active, in-date deals of a restaurant that cover the branch, highest priority first.

        Time-of-day, weekday and usage caps are not filtered here; the
        calculator checks them against the same ``now``.
        """
        query = """
            SELECT *
            FROM deals
            WHERE restaurant_id = $1
            AND is_active = true
            AND start_date <= $3
            AND end_date >= $3
            AND (cardinality(branch_ids) = 0 OR $2 = ANY(branch_ids))
        """
        params = [restaurant_id, branch_id, now]
        param_index = 4

        if deal_type is not None:
            query += f" AND deal_type = ${param_index}"
            params.append(DealType(deal_type).value)
            param_index += 1

        if menu_item_id is not None:
            query += (
                f" AND (cardinality(applicable_menu_items) = 0"
                f" OR ${param_index} = ANY(applicable_menu_items))"
            )
            params.append(menu_item_id)
            param_index += 1

        if channel is not None:
            if SalesChannel(channel) == SalesChannel.POS:
                query += " AND show_on_pos = true"
            else:
                query += " AND show_on_website = true"

        query += " ORDER BY priority DESC, deal_id"

        async with self.db.pool.acquire() as conn:
            rows = await conn.fetch(query, *params)

        deals = []
        for row in rows:
            deal = self._row_to_deal(row)
            if deal is not None:
                deals.append(deal)
        return deals

    async def toggle_deal(self, deal_id: int) -> Optional[bool]:
        """Flip the active flag, returning the new value"""
        async with self.db.pool.acquire() as conn:
            return await conn.fetchval("""
                UPDATE deals
                SET is_active = NOT is_active, updated_at = NOW()
                WHERE deal_id = $1
                RETURNING is_active
            """, deal_id)

    def _row_to_deal(self, row) -> Optional[Deal]:
        """Build a Deal from a row; rows whose terms do not fit their type are skipped"""
        data = dict(row)
        terms = data.pop('terms')
        deal_type = data.pop('deal_type')

        try:
            if isinstance(terms, str):
                terms = json.loads(terms)
        except json.JSONDecodeError as e:
            self.logger.warning(f"Skipping deal {data.get('deal_id')} with unreadable terms: {e}")
            return None

        if not isinstance(terms, dict):
            self.logger.warning(f"Skipping deal {data.get('deal_id')}: terms are not an object")
            return None
        terms['deal_type'] = deal_type

        try:
            return Deal(
                terms=terms,
                scope=ItemScope.from_ids(
                    data.pop('applicable_menu_items', None),
                    data.pop('applicable_categories', None)
                ),
                **data
            )
        except ValidationError as e:
            self.logger.warning(f"Skipping malformed deal {data.get('deal_id')}: {e}")
            return None
