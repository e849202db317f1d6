"""Ad-hoc notification dispatch through the same gate as booking events"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import DispatchRequest, DispatchResult
from ..services.line_service import LineMessagingClient, get_messaging_client
from ..services.notification_service import dispatch

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post("/dispatch", response_model=DispatchResult)
async def dispatch_notification(
    request: DispatchRequest,
    db: Session = Depends(get_db),
    messaging: LineMessagingClient = Depends(get_messaging_client),
):
    logger.info(
        f"📱 Dispatch requested: {request.event_type} to {len(request.recipients)} {request.audience} recipient(s)"
    )
    return await dispatch(
        db,
        request.event_type,
        request.recipients,
        request.payload,
        audience=request.audience,
        messaging=messaging,
    )
