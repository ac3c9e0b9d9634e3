# dealengine/utils/formatters.py
from datetime import datetime
import pytz
from decimal import Decimal
from ..config import Config
from ..models.outcome import DealCandidate

def format_price(amount: Decimal) -> str:
    """Format an amount for log lines"""
    return f"{amount:,.2f}"

def localize(dt: datetime) -> datetime:
    """Attach the restaurant timezone to a naive timestamp; aware ones pass through"""
    if dt.tzinfo is None:
        return pytz.timezone(Config.TIMEZONE).localize(dt)
    return dt

def format_datetime(dt: datetime) -> str:
    """Format a timestamp in the restaurant timezone"""
    local_time = localize(dt).astimezone(pytz.timezone(Config.TIMEZONE))
    return local_time.strftime("%Y-%m-%d %H:%M:%S")

def describe_outcome(candidate: DealCandidate) -> str:
    """One-line summary of a deal and its discount"""
    outcome = candidate.outcome
    deal_type = outcome.deal_type.value if outcome.deal_type else "unknown"
    return f"{candidate.deal.name}: -{format_price(outcome.discount_amount)} ({deal_type})"
