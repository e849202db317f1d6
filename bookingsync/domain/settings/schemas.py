"""Settings document schemas - Pydantic models for the singleton settings"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import validate_time_string


class CalendarSyncSettings(BaseModel):
    """settings/calendar - sync is a no-op unless enabled AND calendarId are set"""

    model_config = ConfigDict(extra="ignore")

    enabled: bool = False
    calendarId: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return bool(self.enabled and self.calendarId)


class GlobalNotificationSettings(BaseModel):
    enabled: bool = False


class AudienceNotificationSettings(BaseModel):
    """Audience switch plus per-event-type flags"""

    # Unknown event types stored in the document are kept and gate like known ones
    model_config = ConfigDict(extra="allow")
    __pydantic_extra__: dict[str, bool]

    enabled: bool = False

    def event_flags(self) -> dict[str, bool]:
        return self.model_dump(exclude={"enabled"})


class CustomerNotificationSettings(AudienceNotificationSettings):
    appointmentConfirmed: bool = False
    appointmentCancelled: bool = False
    appointmentReminder: bool = False
    reviewRequest: bool = False
    paymentInvoice: bool = False
    serviceCompleted: bool = False


class AdminNotificationSettings(AudienceNotificationSettings):
    newBooking: bool = False
    bookingCancelled: bool = False
    paymentReceived: bool = False
    customerConfirmed: bool = False


class NotificationSettings(BaseModel):
    """settings/notifications - every flag defaults to disabled"""

    model_config = ConfigDict(extra="ignore")

    allNotifications: GlobalNotificationSettings = Field(default_factory=GlobalNotificationSettings)
    customerNotifications: CustomerNotificationSettings = Field(
        default_factory=CustomerNotificationSettings
    )
    adminNotifications: AdminNotificationSettings = Field(default_factory=AdminNotificationSettings)


class DaySchedule(BaseModel):
    isOpen: bool = True
    openTime: str = "00:00"
    closeTime: str = "23:59"

    @field_validator("openTime", "closeTime")
    @classmethod
    def normalize_time(cls, v):
        hour, minute = validate_time_string(v)
        return f"{hour:02d}:{minute:02d}"


class TimeQueue(BaseModel):
    time: str
    count: int = Field(1, ge=0)

    @field_validator("time")
    @classmethod
    def normalize_time(cls, v):
        hour, minute = validate_time_string(v)
        return f"{hour:02d}:{minute:02d}"


class BookingSettings(BaseModel):
    """
    settings/booking - weekly opening hours and per-slot capacity.

    weeklySchedule is keyed by day of week as a string, "0" = Sunday.
    A day with no entry is open all day. A slot with no timeQueues entry
    holds one booking.
    """

    model_config = ConfigDict(extra="ignore")

    weeklySchedule: dict[str, DaySchedule] = Field(default_factory=dict)
    timeQueues: list[TimeQueue] = Field(default_factory=list)

    def slot_capacity(self, time: str) -> int:
        for queue in self.timeQueues:
            if queue.time == time and queue.count:
                return queue.count
        return 1
