"""
Google Calendar Service
Keeps each appointment linked to at most one Google Calendar event
"""

import logging
import time
from datetime import timedelta
from typing import Any, Optional

import httpx
from cryptography.hazmat.primitives import serialization
from jose import jwt
from sqlalchemy.orm import Session

from ..config import BOOKING_TIMEZONE, GOOGLE_CLIENT_EMAIL, GOOGLE_PRIVATE_KEY
from ..domain.appointments.repository import AppointmentRepository
from ..domain.settings.repository import SettingsRepository
from ..exceptions import CalendarAPIError, ValidationError
from ..models import Appointment
from ..schemas import SyncResult
from ..shared.formatting import customer_display_name, format_price
from ..shared.timeutils import localize_appointment
from ..shared.validators import parse_duration_minutes

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"  # noqa: S105 - OAuth endpoint URL
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"
GOOGLE_CALENDAR_SCOPE = "https://www.googleapis.com/auth/calendar"


class GoogleCalendarClient:
    """Minimal Calendar v3 client authenticated as a service account"""

    def __init__(
        self,
        client_email: Optional[str] = None,
        private_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 15.0,
    ):
        self.client_email = client_email or GOOGLE_CLIENT_EMAIL
        self.private_key = private_key or GOOGLE_PRIVATE_KEY
        self.transport = transport
        self.timeout = timeout
        self._access_token: Optional[str] = None
        self._token_expires_at = 0.0

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=self.timeout)

    async def get_access_token(self) -> str:
        """Exchange a signed JWT assertion for an access token, reusing it until near expiry"""
        if self._access_token and self._token_expires_at > time.time() + 300:
            return self._access_token

        if not self.client_email or not self.private_key:
            raise CalendarAPIError("Missing Google service account credentials")

        try:
            serialization.load_pem_private_key(self.private_key.encode(), password=None)
        except (TypeError, ValueError) as e:
            raise CalendarAPIError("Invalid Google service account private key") from e

        issued_at = int(time.time())
        assertion = jwt.encode(
            {
                "iss": self.client_email,
                "scope": GOOGLE_CALENDAR_SCOPE,
                "aud": GOOGLE_TOKEN_URL,
                "iat": issued_at,
                "exp": issued_at + 3600,
            },
            self.private_key,
            algorithm="RS256",
        )

        logger.info("🔄 Requesting Google Calendar access token...")
        async with self._http_client() as client:
            response = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "grant_type": "urn:ietf:params:oauth:grant-type:jwt-bearer",
                    "assertion": assertion,
                },
            )

        if response.status_code != 200:
            logger.error(f"❌ Google token request failed: {response.text}")
            raise CalendarAPIError(
                f"Failed to obtain Google access token: {response.status_code}",
                status_code=response.status_code,
            )

        tokens = response.json()
        access_token = tokens.get("access_token")
        if not access_token:
            raise CalendarAPIError("No access token in Google token response")

        self._access_token = access_token
        self._token_expires_at = issued_at + int(tokens.get("expires_in", 3600))
        return access_token

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> httpx.Response:
        access_token = await self.get_access_token()
        try:
            async with self._http_client() as client:
                response = await client.request(
                    method,
                    f"{GOOGLE_CALENDAR_API}{path}",
                    headers={"Authorization": f"Bearer {access_token}"},
                    json=json,
                )
        except httpx.HTTPError as e:
            raise CalendarAPIError(f"Google Calendar request failed: {e}") from e

        if response.status_code >= 400:
            raise CalendarAPIError(
                _error_message(response), status_code=response.status_code
            )
        return response

    async def create_event(self, calendar_id: str, event: dict) -> dict:
        response = await self._request("POST", f"/calendars/{calendar_id}/events", json=event)
        return response.json()

    async def update_event(self, calendar_id: str, event_id: str, event: dict) -> dict:
        response = await self._request(
            "PUT", f"/calendars/{calendar_id}/events/{event_id}", json=event
        )
        return response.json()

    async def delete_event(self, calendar_id: str, event_id: str) -> None:
        await self._request("DELETE", f"/calendars/{calendar_id}/events/{event_id}")


def _error_message(response: httpx.Response) -> str:
    try:
        error = response.json().get("error", {})
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
    except ValueError:
        pass
    return f"Google Calendar API error {response.status_code}: {response.text[:200]}"


calendar_client = GoogleCalendarClient()


def get_calendar_client() -> GoogleCalendarClient:
    return calendar_client


def appointment_to_sync_data(appointment: Appointment) -> dict:
    """Shape a stored appointment the way booking handlers pass appointment data"""
    return {
        "customerInfo": appointment.customer_info or {},
        "serviceInfo": appointment.service_info or {},
        "date": appointment.date,
        "time": appointment.time,
        "status": appointment.status,
    }


def build_event_payload(appointment_data: dict, tz_name: Optional[str] = None) -> dict:
    """
    Build the Calendar event body for one appointment.

    Raises:
        ValidationError: On a bad date, time, or service duration
    """
    tz_name = tz_name or BOOKING_TIMEZONE
    customer_info = appointment_data.get("customerInfo") or {}
    service_info = appointment_data.get("serviceInfo") or {}
    service_name = service_info.get("name") or "Service"

    duration = parse_duration_minutes(service_info.get("duration"), service_name)
    start = localize_appointment(appointment_data.get("date"), appointment_data.get("time"), tz_name)
    end = start + timedelta(minutes=duration)

    customer_name = customer_display_name(customer_info)
    description = (
        f"Customer: {customer_name}\n"
        f"Phone: {customer_info.get('phone') or '-'}\n"
        f"Service: {service_name}\n"
        f"Price: {format_price(service_info.get('price'))}\n"
        f"Status: {appointment_data.get('status') or 'pending'}"
    )

    return {
        "summary": f"{service_name} - {customer_name}",
        "description": description,
        "start": {"dateTime": start.isoformat(), "timeZone": tz_name},
        "end": {"dateTime": end.isoformat(), "timeZone": tz_name},
    }


async def sync_appointment(
    db: Session,
    appointment_id: str,
    appointment_data: Optional[dict[str, Any]] = None,
    calendar: Optional[GoogleCalendarClient] = None,
) -> SyncResult:
    """
    Create or update the calendar event for an appointment.
    Never raises: every failure comes back as SyncResult(success=False).
    """
    calendar = calendar or calendar_client
    try:
        settings = SettingsRepository.get_calendar_settings(db)
        if not settings.is_active:
            logger.info("ℹ️ Calendar sync is disabled. Skipping event creation.")
            return SyncResult(success=True, message="Calendar sync disabled.")

        appointment = AppointmentRepository.get_by_id(db, appointment_id)
        if not appointment:
            logger.error(f"❌ Cannot sync calendar event, appointment not found: {appointment_id}")
            return SyncResult(success=False, error=f"Appointment not found: {appointment_id}")

        if appointment_data is None:
            appointment_data = appointment_to_sync_data(appointment)

        event = build_event_payload(appointment_data)
        existing_event_id = appointment.google_calendar_event_id

        if existing_event_id:
            try:
                updated = await calendar.update_event(settings.calendarId, existing_event_id, event)
                event_id = updated.get("id") or existing_event_id
                logger.info(f"✅ Google Calendar event updated: {event_id}")
            except CalendarAPIError as e:
                if not e.is_gone:
                    raise
                # Removed on Google's side; link a fresh event instead
                logger.warning(
                    f"⚠️ Event {existing_event_id} no longer exists, creating a new one for {appointment_id}"
                )
                created = await calendar.create_event(settings.calendarId, event)
                event_id = created["id"]
                logger.info(f"✅ Google Calendar event created: {event_id}")
        else:
            created = await calendar.create_event(settings.calendarId, event)
            event_id = created["id"]
            logger.info(f"✅ Google Calendar event created: {event_id}")

        if event_id != existing_event_id:
            AppointmentRepository.set_calendar_event_id(db, appointment_id, event_id)

        return SyncResult(success=True, event_id=event_id)

    except ValidationError as e:
        logger.error(f"❌ Invalid appointment data for {appointment_id}: {e}")
        return SyncResult(success=False, error=str(e))
    except Exception as e:
        logger.error(f"❌ Error creating/updating calendar event: {e}")
        return SyncResult(success=False, error=str(e))


async def remove_appointment_sync(
    db: Session,
    event_id: Optional[str],
    calendar: Optional[GoogleCalendarClient] = None,
) -> SyncResult:
    """
    Delete a calendar event. Deleting an event Google no longer has counts as success.
    """
    calendar = calendar or calendar_client
    try:
        settings = SettingsRepository.get_calendar_settings(db)
        if not settings.is_active or not event_id:
            logger.info(
                "ℹ️ Cannot delete calendar event. Sync disabled, missing calendarId, or missing eventId."
            )
            return SyncResult(success=True, message="Deletion skipped.")

        try:
            await calendar.delete_event(settings.calendarId, event_id)
            message = None
            logger.info(f"✅ Google Calendar event deleted: {event_id}")
        except CalendarAPIError as e:
            if not e.is_gone:
                raise
            message = "Event already deleted."
            logger.info(f"ℹ️ Event {event_id} was already deleted or not found. Continuing.")

        AppointmentRepository.clear_calendar_event_id(db, event_id)
        return SyncResult(success=True, event_id=event_id, message=message)

    except Exception as e:
        logger.error(f"❌ Error deleting calendar event: {e}")
        return SyncResult(success=False, error=str(e))
