"""Wall-clock helpers for the booking timezone"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ..config import BOOKING_TIMEZONE
from .validators import validate_date_string, validate_time_string


def utcnow() -> datetime:
    """Naive UTC timestamp, as stored in DateTime columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def booking_zone(tz_name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(tz_name or BOOKING_TIMEZONE)


def localize_appointment(date_str: str, time_str: str, tz_name: Optional[str] = None) -> datetime:
    """Combine an appointment's date and time fields into an aware datetime"""
    day = validate_date_string(date_str)
    hour, minute = validate_time_string(time_str)
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=booking_zone(tz_name))


def reminder_bucket(
    now: datetime, lookahead_minutes: int, tz_name: Optional[str] = None
) -> tuple[str, str]:
    """
    Date and top-of-the-hour time ("HH:00") of now + lookahead, in the booking timezone.
    A naive `now` is taken as UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    target = (now + timedelta(minutes=lookahead_minutes)).astimezone(booking_zone(tz_name))
    return target.strftime("%Y-%m-%d"), f"{target.hour:02d}:00"
