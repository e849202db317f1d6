"""
LINE message templates for every notification event type
Each builder returns a LINE message object (or list of them) ready for push
"""

from typing import Optional

from ..config import PAYMENT_LIFF_ID, REVIEW_LIFF_ID, SHOP_NAME
from ..models import Appointment
from ..shared.formatting import customer_display_name, format_price, short_reference

# Customer-facing event types
APPOINTMENT_CONFIRMED = "appointmentConfirmed"
APPOINTMENT_CANCELLED = "appointmentCancelled"
APPOINTMENT_REMINDER = "appointmentReminder"
REVIEW_REQUEST = "reviewRequest"
PAYMENT_INVOICE = "paymentInvoice"
SERVICE_COMPLETED = "serviceCompleted"

# Admin-facing event types
NEW_BOOKING = "newBooking"
BOOKING_CANCELLED = "bookingCancelled"
PAYMENT_RECEIVED = "paymentReceived"
CUSTOMER_CONFIRMED = "customerConfirmed"

CUSTOMER_EVENT_TYPES = (
    APPOINTMENT_CONFIRMED,
    APPOINTMENT_CANCELLED,
    APPOINTMENT_REMINDER,
    REVIEW_REQUEST,
    PAYMENT_INVOICE,
    SERVICE_COMPLETED,
)
ADMIN_EVENT_TYPES = (NEW_BOOKING, BOOKING_CANCELLED, PAYMENT_RECEIVED, CUSTOMER_CONFIRMED)

BRAND_COLOR = "#553734"


def review_url(appointment_id: str) -> str:
    return f"https://liff.line.me/{REVIEW_LIFF_ID}/{appointment_id}"


def payment_url(appointment_id: str) -> str:
    return f"https://liff.line.me/{PAYMENT_LIFF_ID}/{appointment_id}"


def booking_summary(appointment: Appointment, total_price: Optional[float] = None) -> dict:
    """Fields shared by admin notifications"""
    service_info = appointment.service_info or {}
    price = total_price
    if price is None:
        price = appointment.total_price or service_info.get("price") or 0
    return {
        "customerName": customer_display_name(appointment.customer_info),
        "serviceName": service_info.get("name") or "Service",
        "appointmentDate": appointment.date,
        "appointmentTime": appointment.time,
        "totalPrice": price,
    }


# ============================================================================
# ADMIN MESSAGES
# ============================================================================


def admin_booking_message(event_type: str, summary: dict) -> dict:
    """Text message for the admin group, mirroring the booking summary"""
    customer = f"👤 Customer: {summary['customerName']}\n"
    service = f"💅 Service: {summary['serviceName']}\n"
    when = f"📅 Date: {summary['appointmentDate']}\n⏰ Time: {summary['appointmentTime']}"

    if event_type == NEW_BOOKING:
        text = (
            f"🆕 New booking\n{customer}{service}{when}\n"
            f"💰 Price: {format_price(summary['totalPrice'])}"
        )
    elif event_type == CUSTOMER_CONFIRMED:
        text = f"✅ Customer confirmed appointment\n{customer}{service}{when}"
    elif event_type == BOOKING_CANCELLED:
        text = f"❌ Booking cancelled\n{customer}{service}{when}"
    elif event_type == PAYMENT_RECEIVED:
        text = (
            f"💳 Payment received\n{customer}{service}"
            f"💰 Amount: {format_price(summary['totalPrice'])}\n"
            f"📅 Booked for: {summary['appointmentDate']} {summary['appointmentTime']}"
        )
    else:
        text = "Notification from the booking system"

    return {"type": "text", "text": text}


# ============================================================================
# CUSTOMER MESSAGES
# ============================================================================


def _detail_row(label: str, value: str) -> dict:
    return {
        "type": "box",
        "layout": "baseline",
        "spacing": "sm",
        "contents": [
            {"type": "text", "text": label, "color": "#aaaaaa", "size": "sm", "flex": 2},
            {"type": "text", "text": value, "wrap": True, "color": "#666666", "size": "sm", "flex": 5},
        ],
    }


def _bubble(alt_text: str, title: str, rows: list[dict], button: Optional[dict] = None) -> dict:
    bubble = {
        "type": "bubble",
        "header": {
            "type": "box",
            "layout": "vertical",
            "backgroundColor": BRAND_COLOR,
            "contents": [{"type": "text", "text": title, "weight": "bold", "color": "#ffffff"}],
        },
        "body": {"type": "box", "layout": "vertical", "spacing": "sm", "contents": rows},
    }
    if button:
        bubble["footer"] = {
            "type": "box",
            "layout": "vertical",
            "contents": [{"type": "button", "style": "primary", "color": BRAND_COLOR, "action": button}],
        }
    return {"type": "flex", "altText": alt_text, "contents": bubble}


def appointment_reminder_message(reminder_data: dict) -> dict:
    service_name = reminder_data.get("serviceName") or "Service"
    shop_name = reminder_data.get("shopName") or SHOP_NAME
    return _bubble(
        alt_text=f"Reminder: {service_name} at {reminder_data.get('appointmentTime')}",
        title="⏰ Appointment reminder",
        rows=[
            _detail_row("Service", service_name),
            _detail_row("Date", str(reminder_data.get("appointmentDate"))),
            _detail_row("Time", str(reminder_data.get("appointmentTime"))),
            _detail_row("Shop", shop_name),
        ],
    )


def appointment_confirmed_message(appointment: Appointment) -> dict:
    service_name = (appointment.service_info or {}).get("name") or "Service"
    return _bubble(
        alt_text=f"Your {service_name} appointment is confirmed",
        title="✅ Appointment confirmed",
        rows=[
            _detail_row("Booking", short_reference(appointment.id)),
            _detail_row("Service", service_name),
            _detail_row("Date", appointment.date),
            _detail_row("Time", appointment.time),
        ],
    )


def appointment_cancelled_message(appointment: Appointment, reason: Optional[str] = None) -> dict:
    text = f"Your appointment (ID: {short_reference(appointment.id)}) has been cancelled."
    if reason:
        text += f'\nReason: "{reason}"'
    return {"type": "text", "text": text}


def service_completed_message(appointment: Appointment) -> dict:
    service_name = (appointment.service_info or {}).get("name") or "Service"
    return {
        "type": "text",
        "text": f"Your {service_name} service is complete.\nThank you for visiting {SHOP_NAME}!",
    }


def review_request_message(appointment: Appointment) -> dict:
    return _bubble(
        alt_text="How was your visit? Leave us a review",
        title="⭐ Review your visit",
        rows=[_detail_row("Booking", short_reference(appointment.id))],
        button={"type": "uri", "label": "Write a review", "uri": review_url(appointment.id)},
    )


def payment_invoice_message(appointment: Appointment, amount: float) -> dict:
    customer_name = customer_display_name(appointment.customer_info)
    return _bubble(
        alt_text=f"Invoice {format_price(amount)} for booking {short_reference(appointment.id)}",
        title="🧾 Payment invoice",
        rows=[
            _detail_row("Customer", customer_name),
            _detail_row("Booking", short_reference(appointment.id)),
            _detail_row("Amount", format_price(amount)),
        ],
        button={"type": "uri", "label": "Pay now", "uri": payment_url(appointment.id)},
    )
