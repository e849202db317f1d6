"""Display helpers shared by calendar payloads and messages"""

from typing import Any, Optional


def customer_display_name(customer_info: Optional[dict], default: str = "Customer") -> str:
    """fullName, else "first last", else the LINE display name"""
    info = customer_info or {}
    if info.get("fullName"):
        return str(info["fullName"]).strip()
    if info.get("firstName"):
        return f"{info['firstName']} {info.get('lastName') or ''}".strip()
    if info.get("name"):
        return str(info["name"]).strip()
    if info.get("displayName"):
        return str(info["displayName"]).strip()
    return default


def format_price(value: Any) -> str:
    """1500 -> "1,500", 99.5 -> "99.50", garbage is shown as-is"""
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return str(value) if value is not None else "0"
    if amount.is_integer():
        return f"{int(amount):,}"
    return f"{amount:,.2f}"


def short_reference(appointment_id: str) -> str:
    return appointment_id[:6].upper()
