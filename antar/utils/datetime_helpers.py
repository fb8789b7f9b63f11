"""
Date/Time Handling Utilities

- All DB timestamps are stored in UTC (use now_utc())
- "Today" for a completion is the user's local calendar day
  (use today_for_timezone())
- Analytics and greetings take an explicit reference time so callers and
  tests control the clock
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from antar.exceptions import ValidationError
from antar.models.leaderboard import DateRange

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"

ANALYTICS_RANGES = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "3months": timedelta(days=90),
}

# Start of the "all" analytics range; predates any stored data
ANALYTICS_EPOCH = datetime(2020, 1, 1, tzinfo=ZoneInfo("UTC"))


def now_utc() -> datetime:
    """Current datetime in UTC (timezone-aware)"""
    return datetime.now(ZoneInfo("UTC"))


def get_zone(tz_name: Optional[str]) -> ZoneInfo:
    """ZoneInfo for a profile's timezone, falling back to UTC if unset or invalid"""
    if not tz_name:
        return ZoneInfo(DEFAULT_TIMEZONE)

    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.error(f"Invalid timezone '{tz_name}': {e}")
        return ZoneInfo(DEFAULT_TIMEZONE)


def validate_timezone(tz_name: str) -> str:
    """
    Return tz_name if it is a known IANA zone

    Raises:
        ValidationError: Unknown or malformed zone name
    """
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        raise ValidationError("Unknown timezone", field="timezone", value=tz_name)
    return tz_name


def today_for_timezone(tz_name: Optional[str], now: Optional[datetime] = None) -> date:
    """
    Calendar date in the given timezone

    Args:
        tz_name: IANA timezone name from the profile (e.g. "Europe/Stockholm")
        now: Reference time (defaults to current UTC time)
    """
    if now is None:
        now = now_utc()
    if now.tzinfo is None:
        now = now.replace(tzinfo=ZoneInfo("UTC"))
    return now.astimezone(get_zone(tz_name)).date()


def get_time_based_greeting(now: Optional[datetime] = None) -> str:
    """Greeting for the hour of the given (local) time"""
    if now is None:
        now = datetime.now()

    if now.hour < 12:
        return "Good morning"
    if now.hour < 18:
        return "Good afternoon"
    return "Good evening"


def get_analytics_date_range(range_name: str, now: Optional[datetime] = None) -> DateRange:
    """
    Resolve an analytics window ending now

    Args:
        range_name: week (7 days), month (30 days), 3months (90 days) or all
        now: Reference time (defaults to current UTC time)

    Raises:
        ValidationError: For any other range name
    """
    if now is None:
        now = now_utc()

    if range_name == "all":
        start = ANALYTICS_EPOCH if now.tzinfo else ANALYTICS_EPOCH.replace(tzinfo=None)
        return DateRange(start=start, end=now)

    if range_name not in ANALYTICS_RANGES:
        raise ValidationError(
            "Range must be one of week, month, 3months, all",
            field="range",
            value=range_name
        )

    return DateRange(start=now - ANALYTICS_RANGES[range_name], end=now)
