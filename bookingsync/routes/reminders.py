"""
Reminder trigger endpoint
For external schedulers (hosted cron) that call in once an hour instead of
running the ARQ worker. Authorized with Authorization: Bearer <CRON_SECRET>.
"""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException
from sqlalchemy.orm import Session

from .. import config
from ..database import get_db
from ..schemas import ReminderSweepRequest, ReminderSweepResult
from ..services.line_service import LineMessagingClient, get_messaging_client
from ..services.reminder_service import run_reminder_sweep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["Cron"])


def constant_time_compare(a: Optional[str], b: Optional[str]) -> bool:
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Reject the call unless CRON_SECRET is configured and presented"""
    if not config.CRON_SECRET:
        logger.error("❌ CRON_SECRET not configured, refusing reminder trigger")
        raise HTTPException(status_code=401, detail="Unauthorized")

    if not constant_time_compare(authorization, f"Bearer {config.CRON_SECRET}"):
        logger.warning("⚠️ Reminder trigger called with invalid credentials")
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.post(
    "/reminders",
    response_model=ReminderSweepResult,
    dependencies=[Depends(verify_cron_secret)],
)
async def trigger_reminders(
    sweep: Optional[ReminderSweepRequest] = Body(None),
    db: Session = Depends(get_db),
    messaging: LineMessagingClient = Depends(get_messaging_client),
):
    now = sweep.now if sweep else None
    result = await run_reminder_sweep(db, now=now, messaging=messaging)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.error or "Reminder sweep failed")
    return result


@router.get(
    "/reminders",
    response_model=ReminderSweepResult,
    dependencies=[Depends(verify_cron_secret)],
)
async def trigger_reminders_get(
    db: Session = Depends(get_db),
    messaging: LineMessagingClient = Depends(get_messaging_client),
):
    """Same sweep for schedulers that can only issue GET requests"""
    result = await run_reminder_sweep(db, messaging=messaging)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.error or "Reminder sweep failed")
    return result
