"""Settings router - read and merge-save the singleton settings documents"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from .repository import (
    BOOKING_SETTINGS_ID,
    CALENDAR_SETTINGS_ID,
    NOTIFICATION_SETTINGS_ID,
    SettingsRepository,
)
from .schemas import BookingSettings, CalendarSyncSettings, NotificationSettings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["Settings"])

# PUT bodies are partial: only the fields the caller sent are merged into the stored document


@router.get("/calendar", response_model=CalendarSyncSettings)
async def get_calendar_settings(db: Session = Depends(get_db)):
    return SettingsRepository.get_calendar_settings(db)


@router.put("/calendar", response_model=CalendarSyncSettings)
async def save_calendar_settings(data: CalendarSyncSettings, db: Session = Depends(get_db)):
    saved = SettingsRepository.merge_document(
        db, CALENDAR_SETTINGS_ID, data.model_dump(exclude_unset=True)
    )
    logger.info("✅ Calendar settings saved")
    return CalendarSyncSettings(**saved)


@router.get("/notifications", response_model=NotificationSettings)
async def get_notification_settings(db: Session = Depends(get_db)):
    return SettingsRepository.get_notification_settings(db)


@router.put("/notifications", response_model=NotificationSettings)
async def save_notification_settings(data: NotificationSettings, db: Session = Depends(get_db)):
    saved = SettingsRepository.merge_document(
        db, NOTIFICATION_SETTINGS_ID, data.model_dump(exclude_unset=True)
    )
    logger.info("✅ Notification settings saved")
    return NotificationSettings(**saved)


@router.get("/booking", response_model=BookingSettings)
async def get_booking_settings(db: Session = Depends(get_db)):
    return SettingsRepository.get_booking_settings(db)


@router.put("/booking", response_model=BookingSettings)
async def save_booking_settings(data: BookingSettings, db: Session = Depends(get_db)):
    saved = SettingsRepository.merge_document(
        db, BOOKING_SETTINGS_ID, data.model_dump(exclude_unset=True)
    )
    logger.info("✅ Booking settings saved")
    return BookingSettings(**saved)
