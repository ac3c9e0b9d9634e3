# dealengine/calculator/validity.py
from datetime import datetime
from typing import Optional
from ..models.deal import Deal
from ..utils.formatters import localize

def weekday_index(moment: datetime) -> int:
    """Weekday with Sunday = 0 ... Saturday = 6"""
    return (moment.weekday() + 1) % 7

def validity_reason(deal: Deal, now: datetime) -> Optional[str]:
    """Return why the deal cannot fire at ``now``, or None when it can.

    ``now`` must already be in the restaurant's local time: the weekday and
    the ``HH:MM`` window are read straight off it. A naive ``now`` is taken
    to be in Config.TIMEZONE.
    """
    now = localize(now)

    if not deal.is_active:
        return "Deal is not active"

    if now < localize(deal.start_date) or now > localize(deal.end_date):
        return "Deal is outside its date range"

    if deal.has_total_limit and deal.current_usage_count >= deal.max_total_usage:
        return f"Deal usage limit reached ({deal.max_total_usage} times)"

    if deal.days_of_week and weekday_index(now) not in deal.days_of_week:
        return "Deal is not available on this day"

    if deal.start_time or deal.end_time:
        # zero-padded HH:MM compares correctly as a string; a window that
        # wraps past midnight never matches
        current_time = now.strftime("%H:%M")
        if deal.start_time and current_time < deal.start_time:
            return f"Deal starts at {deal.start_time}"
        if deal.end_time and current_time > deal.end_time:
            return f"Deal ended at {deal.end_time}"

    return None

def is_valid(deal: Deal, now: datetime) -> bool:
    return validity_reason(deal, now) is None
