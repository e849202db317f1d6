"""Appointment service - Booking mutations and their side effects"""

import datetime
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...config import PROMPTPAY_ID
from ...exceptions import (
    AppointmentNotFoundError,
    BookingSyncError,
    NotAllowedError,
    InvalidStatusTransition,
    SlotUnavailableError,
)
from ...models import Appointment
from ...schemas import DispatchResult, SyncResult
from ...services import notification_service as notifications
from ...services.google_calendar_service import (
    GoogleCalendarClient,
    remove_appointment_sync,
    sync_appointment,
)
from ...services.line_service import LineMessagingClient
from ...services.qr_service import generate_promptpay_qr
from ...shared.timeutils import utcnow
from ..settings.repository import SettingsRepository
from .repository import AppointmentRepository
from .schemas import AppointmentCreate

logger = logging.getLogger(__name__)

# Bookings in these states occupy their slot
SLOT_HOLDING_STATUSES = ("pending", "confirmed", "awaiting_confirmation")

# Allowed manual transitions; completed and cancelled are terminal
VALID_TRANSITIONS = {
    "pending": ["awaiting_confirmation", "confirmed", "cancelled"],
    "awaiting_confirmation": ["confirmed", "cancelled"],
    "confirmed": ["in_service", "completed", "cancelled"],
    "in_service": ["completed", "cancelled"],
    "completed": [],
    "cancelled": [],
}


def validate_status_transition(current_status: str, new_status: str) -> bool:
    return new_status in VALID_TRANSITIONS.get(current_status, [])


class AppointmentService:
    """
    Service layer for appointment business logic.

    Calendar sync and notifications are side effects: their failures are
    logged and never undo or fail the booking mutation itself.
    """

    def __init__(
        self,
        db: Session,
        calendar: Optional[GoogleCalendarClient] = None,
        messaging: Optional[LineMessagingClient] = None,
    ):
        self.db = db
        self.repo = AppointmentRepository()
        self.calendar = calendar
        self.messaging = messaging

    def get_appointment(self, appointment_id: str) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise AppointmentNotFoundError(appointment_id)
        return appointment

    def _transition(self, appointment: Appointment, new_status: str, **updates) -> Appointment:
        if not validate_status_transition(appointment.status, new_status):
            raise InvalidStatusTransition(appointment.status, new_status)

        logger.info(f"✅ Appointment {appointment.id} transitioned: {appointment.status} → {new_status}")
        return self.repo.update_fields(self.db, appointment, status=new_status, **updates)

    async def _sync_calendar(self, appointment: Appointment) -> SyncResult:
        result = await sync_appointment(self.db, appointment.id, calendar=self.calendar)
        if not result.success:
            logger.warning(f"⚠️ Calendar sync failed for appointment {appointment.id}: {result.error}")
        self.db.refresh(appointment)
        return result

    def _log_dispatch(self, label: str, appointment: Appointment, result: DispatchResult) -> None:
        if result.suppressed:
            logger.debug(f"ℹ️ {label} skipped for {appointment.id}: {result.error}")
        elif not result.success or result.failure_count:
            logger.warning(f"⚠️ {label} not fully delivered for {appointment.id}: {result.error}")

    def check_slot_available(self, date: str, time: str) -> None:
        """
        Reject a slot on a closed day, outside opening hours, or already
        holding as many active bookings as its queue allows.

        Raises:
            SlotUnavailableError: If the slot cannot take another booking
        """
        settings = SettingsRepository.get_booking_settings(self.db)

        day_of_week = (datetime.date.fromisoformat(date).weekday() + 1) % 7  # 0 = Sunday
        day = settings.weeklySchedule.get(str(day_of_week))
        if day is not None:
            if not day.isOpen:
                raise SlotUnavailableError("The selected day is closed, please choose another day")
            if not (day.openTime <= time <= day.closeTime):
                raise SlotUnavailableError(
                    f"The selected time is outside opening hours ({day.openTime} - {day.closeTime})"
                )

        capacity = settings.slot_capacity(time)
        booked = self.repo.count_in_slot(self.db, date, time, SLOT_HOLDING_STATUSES)
        if booked >= capacity:
            logger.info(f"⛔ Slot {date} {time} full ({booked}/{capacity})")
            raise SlotUnavailableError("This time slot is fully booked, please choose another time")

    async def create_appointment(self, data: AppointmentCreate) -> Appointment:
        logger.info(f"📥 Creating appointment on {data.date} at {data.time}")
        self.check_slot_available(data.date, data.time)

        appointment = self.repo.create(
            self.db,
            user_id=data.userId,
            customer_info=data.customerInfo,
            service_id=data.serviceId,
            service_info=data.serviceInfo.model_dump(),
            date=data.date,
            time=data.time,
            status="pending",
            total_price=data.totalPrice if data.totalPrice is not None else data.serviceInfo.price,
        )

        result = await notifications.send_new_booking_notification(
            self.db, appointment, messaging=self.messaging
        )
        self._log_dispatch("New booking notification", appointment, result)

        await self._sync_calendar(appointment)
        return appointment

    async def confirm_appointment(self, appointment_id: str, amount: float, method: str) -> Appointment:
        """Confirm the appointment and record its payment"""
        appointment = self.get_appointment(appointment_id)
        payment_info = dict(appointment.payment_info or {})
        payment_info.update(
            {
                "paymentStatus": "paid",
                "paidAt": utcnow().isoformat(),
                "amountPaid": amount,
                "paymentMethod": method,
            }
        )
        appointment = self._transition(appointment, "confirmed", payment_info=payment_info)

        result = await notifications.send_appointment_confirmed_notification(
            self.db, appointment, messaging=self.messaging
        )
        self._log_dispatch("Confirmation message", appointment, result)

        result = await notifications.send_payment_received_notification(
            self.db, appointment, amount, messaging=self.messaging
        )
        self._log_dispatch("Payment notification", appointment, result)

        await self._sync_calendar(appointment)
        return appointment

    async def start_service(self, appointment_id: str) -> Appointment:
        appointment = self._transition(self.get_appointment(appointment_id), "in_service")
        await self._sync_calendar(appointment)
        return appointment

    async def complete_appointment(self, appointment_id: str, notes: Optional[str] = None) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        appointment = self._transition(
            appointment,
            "completed",
            completion_info={"timestamp": utcnow().isoformat(), "notes": notes or ""},
        )

        result = await notifications.send_service_completed_notification(
            self.db, appointment, messaging=self.messaging
        )
        self._log_dispatch("Completion message", appointment, result)

        result = await notifications.send_review_request(self.db, appointment, messaging=self.messaging)
        self._log_dispatch("Review request", appointment, result)

        await self._sync_calendar(appointment)
        return appointment

    async def reschedule_appointment(self, appointment_id: str, date: str, time: str) -> Appointment:
        """Move the appointment; a new slot gets its own reminder"""
        appointment = self.get_appointment(appointment_id)
        if appointment.status in ("completed", "cancelled"):
            raise InvalidStatusTransition(appointment.status, appointment.status)

        appointment = self.repo.update_fields(
            self.db, appointment, date=date, time=time, reminder_sent_at=None
        )
        logger.info(f"📅 Appointment {appointment.id} rescheduled to {date} {time}")

        await self._sync_calendar(appointment)
        return appointment

    async def cancel_appointment(
        self,
        appointment_id: str,
        cancelled_by: str = "admin",
        reason: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if cancelled_by == "customer" and appointment.user_id != user_id:
            raise NotAllowedError("Not allowed to cancel this appointment")

        appointment = self._transition(
            appointment,
            "cancelled",
            cancellation_info={
                "cancelledBy": cancelled_by,
                "reason": reason or f"Cancelled by {cancelled_by}.",
                "timestamp": utcnow().isoformat(),
            },
        )

        result = await notifications.send_appointment_cancelled_notification(
            self.db, appointment, reason, messaging=self.messaging
        )
        self._log_dispatch("Cancellation message", appointment, result)

        result = await notifications.send_booking_cancelled_notification(
            self.db, appointment, messaging=self.messaging
        )
        self._log_dispatch("Cancellation notification", appointment, result)

        sync_result = await remove_appointment_sync(
            self.db, appointment.google_calendar_event_id, calendar=self.calendar
        )
        if not sync_result.success:
            logger.warning(
                f"⚠️ Calendar event removal failed for appointment {appointment.id}: {sync_result.error}"
            )
        self.db.refresh(appointment)
        return appointment

    def submit_review(
        self, appointment_id: str, user_id: str, rating: int, comment: Optional[str] = None
    ) -> Appointment:
        """Record the customer's review; each appointment takes one review from its own customer"""
        appointment = self.get_appointment(appointment_id)
        if appointment.user_id != user_id:
            raise NotAllowedError("Not allowed to review this appointment")
        if (appointment.review_info or {}).get("submitted"):
            raise BookingSyncError("Appointment already reviewed")

        review_info = {
            "submitted": True,
            "rating": rating,
            "comment": comment or "",
            "submittedAt": utcnow().isoformat(),
        }
        logger.info(f"⭐ Review submitted for appointment {appointment.id} ({rating}/5)")
        return self.repo.update_fields(self.db, appointment, review_info=review_info)

    async def send_payment_invoice(self, appointment_id: str) -> DispatchResult:
        """Mark the payment as invoiced and send the customer the payment link"""
        appointment = self.get_appointment(appointment_id)
        if appointment.status in ("completed", "cancelled"):
            raise InvalidStatusTransition(appointment.status, "invoiced")

        payment_info = dict(appointment.payment_info or {})
        payment_info["paymentStatus"] = "invoiced"
        appointment = self.repo.update_fields(self.db, appointment, payment_info=payment_info)

        amount = appointment.total_price or (appointment.service_info or {}).get("price") or 0
        result = await notifications.send_payment_invoice(
            self.db, appointment, amount, messaging=self.messaging
        )
        self._log_dispatch("Invoice", appointment, result)
        return result

    def payment_qr_code(self, appointment_id: str) -> dict:
        appointment = self.get_appointment(appointment_id)
        if not PROMPTPAY_ID:
            raise BookingSyncError("PromptPay ID not configured")

        amount = appointment.total_price or (appointment.service_info or {}).get("price") or 0
        return {"qrCode": generate_promptpay_qr(PROMPTPAY_ID, amount), "amount": amount}
