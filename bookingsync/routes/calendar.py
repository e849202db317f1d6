"""
Calendar sync endpoints
Manual re-sync and unlink of an appointment's Google Calendar event
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import SyncResult
from ..services.google_calendar_service import (
    GoogleCalendarClient,
    get_calendar_client,
    remove_appointment_sync,
    sync_appointment,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calendar", tags=["Google Calendar"])


@router.post("/sync/{appointment_id}", response_model=SyncResult, response_model_by_alias=True)
async def sync_appointment_event(
    appointment_id: str,
    appointment_data: Optional[dict[str, Any]] = Body(None),
    db: Session = Depends(get_db),
    calendar: GoogleCalendarClient = Depends(get_calendar_client),
):
    """
    Create or update the event for an appointment.
    Sync failures are returned in the body, not as HTTP errors.
    """
    result = await sync_appointment(db, appointment_id, appointment_data, calendar=calendar)
    if not result.success:
        logger.warning(f"⚠️ Manual calendar sync failed for {appointment_id}: {result.error}")
    return result


@router.delete("/events/{event_id}", response_model=SyncResult, response_model_by_alias=True)
async def delete_calendar_event(
    event_id: str,
    db: Session = Depends(get_db),
    calendar: GoogleCalendarClient = Depends(get_calendar_client),
):
    return await remove_appointment_sync(db, event_id, calendar=calendar)
