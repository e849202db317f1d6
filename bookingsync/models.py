import uuid

from sqlalchemy import JSON, Column, DateTime, Float, String
from sqlalchemy.sql import func

from .database import Base


def generate_document_id():
    """Generate an opaque document ID"""
    return uuid.uuid4().hex


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(64), primary_key=True, default=generate_document_id)
    user_id = Column(String(64), nullable=True, index=True)  # LINE user ID of the customer
    customer_info = Column(JSON, nullable=True)  # {"fullName", "firstName", "lastName", "phone", ...}
    service_id = Column(String(64), nullable=True)
    service_info = Column(JSON, nullable=True)  # {"name", "duration", "price"}
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD in booking timezone
    time = Column(String(5), nullable=False, index=True)  # HH:MM in booking timezone
    # pending, awaiting_confirmation, confirmed, in_service, completed, cancelled
    status = Column(String(32), nullable=False, default="pending", index=True)
    total_price = Column(Float, nullable=True)
    payment_info = Column(JSON, nullable=True)
    review_info = Column(JSON, nullable=True)
    completion_info = Column(JSON, nullable=True)
    cancellation_info = Column(JSON, nullable=True)

    # Set only after Google confirms the event exists; cleared after a confirmed delete
    google_calendar_event_id = Column(String(1024), nullable=True)
    # Set at most once per appointment
    reminder_sent_at = Column(DateTime, nullable=True)  # naive UTC

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Admin(Base):
    __tablename__ = "admins"

    id = Column(String(64), primary_key=True, default=generate_document_id)
    name = Column(String(255), nullable=True)
    line_user_id = Column(String(64), nullable=True)

    created_at = Column(DateTime, server_default=func.now())


class SettingsDocument(Base):
    """Singleton settings documents keyed by name ("calendar", "notifications")"""

    __tablename__ = "settings"

    id = Column(String(64), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)

    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
