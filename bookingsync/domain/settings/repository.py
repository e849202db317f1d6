"""Settings repository - Database operations for settings documents"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import SettingsDocument
from .schemas import BookingSettings, CalendarSyncSettings, NotificationSettings

logger = logging.getLogger(__name__)

CALENDAR_SETTINGS_ID = "calendar"
NOTIFICATION_SETTINGS_ID = "notifications"
BOOKING_SETTINGS_ID = "booking"


def deep_merge(base: dict, updates: dict) -> dict:
    """Return a new dict with updates merged into base; nested dicts merge key by key"""
    merged = dict(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class SettingsRepository:
    """Repository for settings document operations"""

    @staticmethod
    def get_document(db: Session, document_id: str) -> Optional[dict]:
        """Read one settings document; None when it does not exist"""
        document = db.get(SettingsDocument, document_id)
        if not document:
            return None
        return dict(document.data or {})

    @staticmethod
    def merge_document(db: Session, document_id: str, data: dict) -> dict:
        """Merge fields into a settings document, creating it if needed"""
        document = db.get(SettingsDocument, document_id)
        if document is None:
            document = SettingsDocument(id=document_id, data={})
            db.add(document)

        document.data = deep_merge(document.data or {}, data)
        db.commit()
        db.refresh(document)
        return dict(document.data)

    @classmethod
    def get_calendar_settings(cls, db: Session) -> CalendarSyncSettings:
        data = cls.get_document(db, CALENDAR_SETTINGS_ID)
        return CalendarSyncSettings(**(data or {}))

    @classmethod
    def get_notification_settings(cls, db: Session) -> NotificationSettings:
        data = cls.get_document(db, NOTIFICATION_SETTINGS_ID)
        if data is None:
            logger.debug("ℹ️ No notification settings document, all notifications disabled")
        return NotificationSettings(**(data or {}))

    @classmethod
    def get_booking_settings(cls, db: Session) -> BookingSettings:
        data = cls.get_document(db, BOOKING_SETTINGS_ID)
        return BookingSettings(**(data or {}))
