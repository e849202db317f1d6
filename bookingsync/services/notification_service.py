"""
Unified Notification Service
Every outbound LINE message goes through the same gate and fan-out:
global switch AND audience switch AND per-event-type switch must all be on,
then each recipient is attempted independently.
"""

import asyncio
import logging
from typing import Any, Optional, Sequence

from sqlalchemy.orm import Session

from ..config import SHOP_NAME
from ..domain.appointments.repository import AppointmentRepository
from ..domain.settings.repository import SettingsRepository
from ..domain.settings.schemas import NotificationSettings
from ..models import Appointment
from ..schemas import DispatchOutcome, DispatchResult
from . import message_templates as templates
from .line_service import LineMessagingClient, line_client

logger = logging.getLogger(__name__)

CUSTOMER = "customer"
ADMIN = "admin"

SUPPRESSED_ERROR = "Suppressed by configuration"


def is_notification_enabled(settings: NotificationSettings, audience: str, event_type: str) -> bool:
    """Conjunctive gate; an unknown audience or event type is closed"""
    if not settings.allNotifications.enabled:
        return False

    if audience == CUSTOMER:
        audience_settings = settings.customerNotifications
    elif audience == ADMIN:
        audience_settings = settings.adminNotifications
    else:
        return False

    if not audience_settings.enabled:
        return False
    # The audience switch itself is not an event type
    return audience_settings.event_flags().get(event_type) is True


async def _deliver(
    messaging: LineMessagingClient, recipient: str, payload: Any, event_type: str
) -> DispatchOutcome:
    if not recipient or not str(recipient).strip():
        return DispatchOutcome(recipient=recipient or "", success=False, error="Missing recipient")
    try:
        await messaging.push_message(recipient, payload)
        return DispatchOutcome(recipient=recipient, success=True)
    except Exception as e:
        logger.error(f"❌ Failed to send {event_type} to {recipient}: {e}")
        return DispatchOutcome(recipient=recipient, success=False, error=str(e))


async def dispatch(
    db: Session,
    event_type: str,
    recipients: Sequence[str],
    payload: Any,
    audience: str = CUSTOMER,
    messaging: Optional[LineMessagingClient] = None,
    settings: Optional[NotificationSettings] = None,
) -> DispatchResult:
    """
    Gate, then fan out one message to many recipients.

    Args:
        db: Database session used to load notification settings
        event_type: Per-type flag name, e.g. "appointmentReminder"
        recipients: LINE user IDs
        payload: Text, one LINE message object, or a list of them
        audience: "customer" or "admin"
        messaging: Messaging client (defaults to the shared LINE client)
        settings: Already-loaded settings for this unit of work

    Returns:
        DispatchResult. success=True means the gate passed; inspect
        per_recipient for who was actually reached.
    """
    messaging = messaging or line_client
    try:
        if settings is None:
            settings = SettingsRepository.get_notification_settings(db)
    except Exception as e:
        logger.error(f"❌ Could not load notification settings: {e}")
        return DispatchResult(success=False, error=f"Failed to load notification settings: {e}")

    if not is_notification_enabled(settings, audience, event_type):
        logger.debug(f"ℹ️ {audience} notification {event_type} disabled, not sending")
        return DispatchResult(success=False, suppressed=True, error=SUPPRESSED_ERROR)

    outcomes = await asyncio.gather(
        *(_deliver(messaging, recipient, payload, event_type) for recipient in recipients)
    )

    result = DispatchResult(success=True, per_recipient=list(outcomes))
    logger.info(
        f"📱 {event_type} dispatch complete: {result.success_count} sent, {result.failure_count} failed"
    )
    return result


# ============================================================================
# EVENT HELPERS
# ============================================================================


async def notify_customer(
    db: Session,
    event_type: str,
    appointment: Appointment,
    payload: Any,
    messaging: Optional[LineMessagingClient] = None,
) -> DispatchResult:
    if not appointment.user_id:
        logger.debug(f"⚠️ Appointment {appointment.id} has no LINE user ID, skipping {event_type}")
        return DispatchResult(success=False, error="No recipient address")
    return await dispatch(db, event_type, [appointment.user_id], payload, CUSTOMER, messaging)


async def notify_admins(
    db: Session,
    event_type: str,
    appointment: Appointment,
    total_price: Optional[float] = None,
    messaging: Optional[LineMessagingClient] = None,
) -> DispatchResult:
    payload = templates.admin_booking_message(
        event_type, templates.booking_summary(appointment, total_price)
    )
    admin_ids = AppointmentRepository.get_admin_line_ids(db)
    if not admin_ids:
        logger.warning("⚠️ No admins with lineUserId found to notify.")
    return await dispatch(db, event_type, admin_ids, payload, ADMIN, messaging)


async def send_new_booking_notification(db, appointment, messaging=None) -> DispatchResult:
    return await notify_admins(db, templates.NEW_BOOKING, appointment, messaging=messaging)


async def send_payment_received_notification(
    db, appointment, amount: float, messaging=None
) -> DispatchResult:
    return await notify_admins(
        db, templates.PAYMENT_RECEIVED, appointment, total_price=amount, messaging=messaging
    )


async def send_booking_cancelled_notification(db, appointment, messaging=None) -> DispatchResult:
    return await notify_admins(db, templates.BOOKING_CANCELLED, appointment, messaging=messaging)


async def send_customer_confirmed_notification(db, appointment, messaging=None) -> DispatchResult:
    return await notify_admins(db, templates.CUSTOMER_CONFIRMED, appointment, messaging=messaging)


async def send_appointment_confirmed_notification(db, appointment, messaging=None) -> DispatchResult:
    return await notify_customer(
        db,
        templates.APPOINTMENT_CONFIRMED,
        appointment,
        templates.appointment_confirmed_message(appointment),
        messaging,
    )


async def send_appointment_cancelled_notification(
    db, appointment, reason: Optional[str] = None, messaging=None
) -> DispatchResult:
    return await notify_customer(
        db,
        templates.APPOINTMENT_CANCELLED,
        appointment,
        templates.appointment_cancelled_message(appointment, reason),
        messaging,
    )


async def send_service_completed_notification(db, appointment, messaging=None) -> DispatchResult:
    return await notify_customer(
        db,
        templates.SERVICE_COMPLETED,
        appointment,
        templates.service_completed_message(appointment),
        messaging,
    )


async def send_review_request(db, appointment, messaging=None) -> DispatchResult:
    """Ask for a review once the service is completed and not yet reviewed"""
    if appointment.status != "completed":
        return DispatchResult(success=False, error="Appointment is not completed")
    if (appointment.review_info or {}).get("submitted"):
        return DispatchResult(success=False, error="Appointment already reviewed")
    return await notify_customer(
        db,
        templates.REVIEW_REQUEST,
        appointment,
        templates.review_request_message(appointment),
        messaging,
    )


async def send_payment_invoice(db, appointment, amount: float, messaging=None) -> DispatchResult:
    return await notify_customer(
        db,
        templates.PAYMENT_INVOICE,
        appointment,
        templates.payment_invoice_message(appointment, amount),
        messaging,
    )


def reminder_payload(appointment: Appointment) -> dict:
    return templates.appointment_reminder_message(
        {
            "serviceName": (appointment.service_info or {}).get("name") or "Service",
            "appointmentDate": appointment.date,
            "appointmentTime": appointment.time,
            "shopName": SHOP_NAME,
        }
    )
