"""Appointment router - FastAPI endpoints for booking mutations"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...schemas import DispatchResult
from ...services.google_calendar_service import GoogleCalendarClient, get_calendar_client
from ...services.line_service import LineMessagingClient, get_messaging_client
from .schemas import (
    AppointmentCreate,
    AppointmentResponse,
    CancelAppointmentRequest,
    CompleteAppointmentRequest,
    ConfirmAppointmentRequest,
    RescheduleAppointmentRequest,
    SubmitReviewRequest,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(
    db: Session = Depends(get_db),
    calendar: GoogleCalendarClient = Depends(get_calendar_client),
    messaging: LineMessagingClient = Depends(get_messaging_client),
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, calendar=calendar, messaging=messaging)


# ============================================================================
# CORE OPERATIONS
# ============================================================================


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    data: AppointmentCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = await service.create_appointment(data)
    return AppointmentResponse.from_model(appointment)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.from_model(service.get_appointment(appointment_id))


# ============================================================================
# STATUS TRANSITIONS
# ============================================================================


@router.post("/{appointment_id}/confirm", response_model=AppointmentResponse)
async def confirm_appointment(
    appointment_id: str,
    data: ConfirmAppointmentRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Confirm the booking and record payment"""
    appointment = await service.confirm_appointment(appointment_id, data.amount, data.method)
    return AppointmentResponse.from_model(appointment)


@router.post("/{appointment_id}/start", response_model=AppointmentResponse)
async def start_service(
    appointment_id: str,
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = await service.start_service(appointment_id)
    return AppointmentResponse.from_model(appointment)


@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_appointment(
    appointment_id: str,
    data: CompleteAppointmentRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = await service.complete_appointment(appointment_id, data.notes)
    return AppointmentResponse.from_model(appointment)


@router.post("/{appointment_id}/reschedule", response_model=AppointmentResponse)
async def reschedule_appointment(
    appointment_id: str,
    data: RescheduleAppointmentRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = await service.reschedule_appointment(appointment_id, data.date, data.time)
    return AppointmentResponse.from_model(appointment)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: str,
    data: CancelAppointmentRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = await service.cancel_appointment(
        appointment_id, data.cancelledBy, data.reason, data.userId
    )
    return AppointmentResponse.from_model(appointment)


@router.post("/{appointment_id}/review", response_model=AppointmentResponse)
async def submit_review(
    appointment_id: str,
    data: SubmitReviewRequest,
    service: AppointmentService = Depends(get_appointment_service),
):
    appointment = service.submit_review(appointment_id, data.userId, data.rating, data.comment)
    return AppointmentResponse.from_model(appointment)


# ============================================================================
# PAYMENT
# ============================================================================


@router.post("/{appointment_id}/invoice", response_model=DispatchResult)
async def send_payment_invoice(
    appointment_id: str,
    service: AppointmentService = Depends(get_appointment_service),
):
    return await service.send_payment_invoice(appointment_id)


@router.get("/{appointment_id}/payment-qr")
async def get_payment_qr(
    appointment_id: str,
    service: AppointmentService = Depends(get_appointment_service),
):
    """PromptPay QR for the appointment's total price, as a PNG data URL"""
    return service.payment_qr_code(appointment_id)
