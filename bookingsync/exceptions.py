"""
Error types raised inside the sync and notification services.
They never leave a service boundary: each entry point catches them and
returns a result object with success=False.
"""

from typing import Optional


class BookingSyncError(Exception):
    """Base class for all bookingsync errors"""

    pass


class ValidationError(BookingSyncError, ValueError):
    """Malformed appointment data (duration, date, time, missing field)"""

    pass


class AppointmentNotFoundError(BookingSyncError):
    def __init__(self, appointment_id: str):
        self.appointment_id = appointment_id
        super().__init__(f"Appointment not found: {appointment_id}")


class InvalidStatusTransition(BookingSyncError):
    def __init__(self, current_status: str, new_status: str):
        self.current_status = current_status
        self.new_status = new_status
        super().__init__(f"Cannot change appointment status from {current_status} to {new_status}")


class RemoteAPIError(BookingSyncError):
    """Error response or transport failure from an external API"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class CalendarAPIError(RemoteAPIError):
    @property
    def is_gone(self) -> bool:
        """Google answers 404 or 410 for events that no longer exist"""
        return self.status_code in (404, 410)


class LineAPIError(RemoteAPIError):
    pass


class NotAllowedError(BookingSyncError):
    """Caller may not act on this appointment"""

    pass


class SlotUnavailableError(BookingSyncError):
    """Requested date/time is closed or already fully booked"""

    pass
