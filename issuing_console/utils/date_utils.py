"""Date helpers for utilization windows and transaction date filters"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo


def _zone(tz_name: str) -> tzinfo:
    if tz_name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(tz_name)


def today_in(tz_name: str) -> date:
    """Current calendar date in the given IANA timezone"""
    return datetime.now(_zone(tz_name)).date()


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """yyyy-MM-dd -> date; blank stays None, anything else raises ValueError"""
    if value is None or not value.strip():
        return None
    return date.fromisoformat(value.strip())


def day_bounds_ms(day: date, tz_name: str) -> Tuple[int, int]:
    """
    Epoch milliseconds for the first and last instant of a calendar day.

    The transaction search takes filter:from_date / filter:to_date as epoch
    milliseconds, inclusive on both ends.

    Example:
        2025-01-01 in UTC -> (1735689600000, 1735775999999)
    """
    start = datetime.combine(day, time.min, tzinfo=_zone(tz_name))
    end = start + timedelta(days=1)
    return int(start.timestamp() * 1000), int(end.timestamp() * 1000) - 1
