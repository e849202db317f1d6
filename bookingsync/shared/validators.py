"""Shared validation utilities"""

import math
import re
from datetime import date, datetime
from typing import Any

from ..exceptions import ValidationError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^\d{1,2}:\d{2}$")

APPOINTMENT_STATUSES = (
    "pending",
    "awaiting_confirmation",
    "confirmed",
    "in_service",
    "completed",
    "cancelled",
)


def validate_date_string(value: Any) -> date:
    """
    Parse an appointment date in YYYY-MM-DD format.

    Raises:
        ValidationError: If the date is missing or malformed
    """
    if not isinstance(value, str) or not DATE_PATTERN.match(value.strip()):
        raise ValidationError(f"Invalid appointment date: {value!r}")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError as e:
        raise ValidationError(f"Invalid appointment date: {value!r}") from e


def validate_time_string(value: Any) -> tuple[int, int]:
    """
    Parse an appointment time in 24h HH:MM format.

    Returns:
        (hour, minute)

    Raises:
        ValidationError: If the time is missing or out of range
    """
    if not isinstance(value, str) or not TIME_PATTERN.match(value.strip()):
        raise ValidationError(f"Invalid appointment time: {value!r}")

    hour_str, minute_str = value.strip().split(":")
    hour, minute = int(hour_str), int(minute_str)
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValidationError(f"Invalid appointment time: {value!r}")
    return hour, minute


def parse_duration_minutes(value: Any, service_name: str = "") -> float:
    """
    Service durations arrive as numbers or numeric strings ("60").
    Anything that is not a finite positive number is rejected.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"Invalid duration value for service: {service_name}")
    try:
        duration = float(str(value).strip())
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid duration value for service: {service_name}") from e

    if not math.isfinite(duration) or duration <= 0:
        raise ValidationError(f"Invalid duration value for service: {service_name}")
    return duration


def validate_status(status: str) -> str:
    if status not in APPOINTMENT_STATUSES:
        raise ValidationError(f"Unknown appointment status: {status}")
    return status
