"""Appointment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_date_string, validate_time_string


class ServiceInfo(BaseModel):
    name: str
    duration: Any = None  # minutes; validated when the calendar event is built
    price: Optional[float] = None


class AppointmentCreate(BaseModel):
    """Schema for creating a new appointment"""

    userId: Optional[str] = None
    customerInfo: dict[str, Any] = Field(default_factory=dict)
    serviceId: Optional[str] = None
    serviceInfo: ServiceInfo
    date: str
    time: str
    totalPrice: Optional[float] = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        validate_date_string(v)
        return v

    @field_validator("time")
    @classmethod
    def validate_time(cls, v):
        hour, minute = validate_time_string(v)
        return f"{hour:02d}:{minute:02d}"


class ConfirmAppointmentRequest(BaseModel):
    amount: float
    method: str = "cash"


class CompleteAppointmentRequest(BaseModel):
    notes: Optional[str] = None


class RescheduleAppointmentRequest(BaseModel):
    date: str
    time: str

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        validate_date_string(v)
        return v

    @field_validator("time")
    @classmethod
    def validate_time(cls, v):
        hour, minute = validate_time_string(v)
        return f"{hour:02d}:{minute:02d}"


class CancelAppointmentRequest(BaseModel):
    cancelledBy: str = Field("admin", pattern="^(admin|customer)$")
    reason: Optional[str] = None
    userId: Optional[str] = None


class SubmitReviewRequest(BaseModel):
    userId: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class AppointmentResponse(BaseModel):
    """Schema for appointment response"""

    id: str
    userId: Optional[str]
    customerInfo: Optional[dict]
    serviceInfo: Optional[dict]
    date: str
    time: str
    status: str
    totalPrice: Optional[float]
    paymentInfo: Optional[dict]
    reviewInfo: Optional[dict]
    googleCalendarEventId: Optional[str]
    reminderSentAt: Optional[datetime]

    @classmethod
    def from_model(cls, appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            userId=appointment.user_id,
            customerInfo=appointment.customer_info,
            serviceInfo=appointment.service_info,
            date=appointment.date,
            time=appointment.time,
            status=appointment.status,
            totalPrice=appointment.total_price,
            paymentInfo=appointment.payment_info,
            reviewInfo=appointment.review_info,
            googleCalendarEventId=appointment.google_calendar_event_id,
            reminderSentAt=appointment.reminder_sent_at,
        )
