"""
utils/time_utils.py

Purpose: Time and calendar-day helpers

- Ledger day keys in the configured timezone

"""

from datetime import datetime, date
from typing import Optional
from zoneinfo import ZoneInfo


def current_day(timezone_name: str = "UTC", now: Optional[datetime] = None) -> str:
    """
    Returns today's calendar day as an ISO string (YYYY-MM-DD).

    Args:
        timezone_name: IANA timezone the day boundary is evaluated in
        now: Aware datetime to evaluate instead of the current time
    """
    tz = ZoneInfo(timezone_name)
    moment = now.astimezone(tz) if now else datetime.now(tz)
    return moment.date().isoformat()


def parse_day(value: str) -> date:
    """
    Parses a ledger day key. Raises ValueError on malformed input.
    """
    return date.fromisoformat(value)

