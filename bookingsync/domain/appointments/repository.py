"""Appointment repository - Database operations for appointments and admins"""

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from ...models import Admin, Appointment


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_by_id(db: Session, appointment_id: str) -> Optional[Appointment]:
        return db.get(Appointment, appointment_id)

    @staticmethod
    def find_by_fields(db: Session, **filters) -> list[Appointment]:
        """Equality query over appointment columns, e.g. status="confirmed", date="2026-01-01\""""
        query = db.query(Appointment)
        for field, value in filters.items():
            query = query.filter(getattr(Appointment, field) == value)
        return query.order_by(Appointment.id).all()

    @staticmethod
    def count_in_slot(db: Session, date: str, time: str, statuses: Iterable[str]) -> int:
        return (
            db.query(func.count(Appointment.id))
            .filter(
                Appointment.date == date,
                Appointment.time == time,
                Appointment.status.in_(list(statuses)),
            )
            .scalar()
        )

    @staticmethod
    def create(db: Session, **appointment_data) -> Appointment:
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def update_fields(db: Session, appointment: Appointment, **updates) -> Appointment:
        """Set the given fields; None is written as-is so fields can be cleared"""
        for key, value in updates.items():
            if hasattr(appointment, key):
                setattr(appointment, key, value)

        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def set_calendar_event_id(db: Session, appointment_id: str, event_id: Optional[str]) -> None:
        db.execute(
            update(Appointment)
            .where(Appointment.id == appointment_id)
            .values(google_calendar_event_id=event_id)
        )
        db.commit()

    @staticmethod
    def clear_calendar_event_id(db: Session, event_id: str) -> int:
        """Unlink every appointment still pointing at a deleted event"""
        result = db.execute(
            update(Appointment)
            .where(Appointment.google_calendar_event_id == event_id)
            .values(google_calendar_event_id=None)
        )
        db.commit()
        return result.rowcount

    @staticmethod
    def claim_reminder(db: Session, appointment_id: str, sent_at: datetime) -> bool:
        """
        Compare-and-set reminder_sent_at. Returns False when another sweep
        already holds the claim or the reminder was already sent.
        """
        result = db.execute(
            update(Appointment)
            .where(Appointment.id == appointment_id, Appointment.reminder_sent_at.is_(None))
            .values(reminder_sent_at=sent_at)
        )
        db.commit()
        return result.rowcount == 1

    @staticmethod
    def release_reminder(db: Session, appointment_id: str, sent_at: datetime) -> None:
        """Undo our own claim after a failed send so a later sweep can retry"""
        db.execute(
            update(Appointment)
            .where(Appointment.id == appointment_id, Appointment.reminder_sent_at == sent_at)
            .values(reminder_sent_at=None)
        )
        db.commit()

    @staticmethod
    def get_admin_line_ids(db: Session) -> list[str]:
        admins = db.query(Admin).filter(Admin.line_user_id.isnot(None)).all()
        return [admin.line_user_id for admin in admins if admin.line_user_id]
