"""
Appointment reminders
Called by an external hourly trigger (ARQ cron or the /cron/reminders endpoint).
Each run looks for confirmed appointments starting in the hour bucket one
lookahead from now and sends each customer a single reminder.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ..config import REMINDER_LOOKAHEAD_MINUTES
from ..domain.appointments.repository import AppointmentRepository
from ..domain.settings.repository import SettingsRepository
from ..domain.settings.schemas import NotificationSettings
from ..models import Appointment
from ..schemas import ReminderOutcome, ReminderSweepResult
from ..shared.timeutils import reminder_bucket, utcnow
from .line_service import LineMessagingClient
from .message_templates import APPOINTMENT_REMINDER
from .notification_service import CUSTOMER, dispatch, is_notification_enabled, reminder_payload

logger = logging.getLogger(__name__)


async def _send_reminder(
    db: Session,
    appointment: Appointment,
    settings: NotificationSettings,
    messaging: Optional[LineMessagingClient],
) -> Optional[ReminderOutcome]:
    """
    Claim, send, and release the claim on failure.
    Returns None when another sweep already claimed this appointment.
    """
    sent_at = utcnow()
    if not AppointmentRepository.claim_reminder(db, appointment.id, sent_at):
        logger.info(f"ℹ️ Reminder for appointment {appointment.id} already claimed, skipping")
        return None

    result = await dispatch(
        db,
        APPOINTMENT_REMINDER,
        [appointment.user_id],
        reminder_payload(appointment),
        audience=CUSTOMER,
        messaging=messaging,
        settings=settings,
    )

    if result.delivered:
        logger.info(f"✅ Reminder sent successfully to {appointment.user_id}")
        return ReminderOutcome(appointment_id=appointment.id, success=True)

    error = result.error or next(
        (outcome.error for outcome in result.per_recipient if not outcome.success), None
    )
    AppointmentRepository.release_reminder(db, appointment.id, sent_at)
    logger.error(f"❌ Failed to send reminder to {appointment.user_id}: {error}")
    return ReminderOutcome(appointment_id=appointment.id, success=False, error=error)


async def run_reminder_sweep(
    db: Session,
    now: Optional[datetime] = None,
    messaging: Optional[LineMessagingClient] = None,
    lookahead_minutes: Optional[int] = None,
) -> ReminderSweepResult:
    """
    Send reminders for confirmed appointments at exactly now + lookahead, truncated to the hour.

    Only a failure to load settings or query appointments fails the sweep;
    individual send failures are counted and leave reminder_sent_at unset.
    """
    now = now or datetime.now(timezone.utc)
    lookahead = REMINDER_LOOKAHEAD_MINUTES if lookahead_minutes is None else lookahead_minutes

    try:
        target_date, target_time = reminder_bucket(now, lookahead)
        logger.info(f"🔄 Looking for appointments on {target_date} at {target_time}")

        matches = AppointmentRepository.find_by_fields(
            db, status="confirmed", date=target_date, time=target_time
        )
        settings = SettingsRepository.get_notification_settings(db)
    except Exception as e:
        logger.error(f"❌ Error in reminder sweep: {e}")
        return ReminderSweepResult(success=False, error=str(e))

    if not matches:
        logger.info("ℹ️ No appointments found for reminder time")
        return ReminderSweepResult(success=True, target_date=target_date, target_time=target_time)

    logger.info(f"📅 Found {len(matches)} appointments to send reminders for")

    due = []
    skipped = 0
    for appointment in matches:
        if appointment.reminder_sent_at is not None:
            skipped += 1
            logger.debug(f"ℹ️ Appointment {appointment.id} already reminded, skipping")
        elif not appointment.user_id:
            skipped += 1
            logger.info(f"⚠️ Appointment {appointment.id} has no LINE ID, skipping reminder")
        else:
            due.append(appointment)

    if due and not is_notification_enabled(settings, CUSTOMER, APPOINTMENT_REMINDER):
        logger.info(f"ℹ️ Reminder notifications disabled, {len(due)} reminders not sent")
        skipped += len(due)
        due = []

    outcomes = await asyncio.gather(
        *(_send_reminder(db, appointment, settings, messaging) for appointment in due)
    )

    results = []
    for outcome in outcomes:
        if outcome is None:
            skipped += 1
        else:
            results.append(outcome)

    success_count = sum(1 for r in results if r.success)
    failure_count = len(results) - success_count
    logger.info(
        f"📊 Reminder sending completed: {success_count} successful, {failure_count} failed, {skipped} skipped"
    )

    return ReminderSweepResult(
        success=True,
        total_matched=len(matches),
        success_count=success_count,
        failure_count=failure_count,
        skipped_count=skipped,
        target_date=target_date,
        target_time=target_time,
        results=results,
    )
