from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class SyncResult(BaseModel):
    """Outcome of a calendar sync or unsync call"""

    success: bool
    event_id: Optional[str] = Field(None, serialization_alias="eventId")
    message: Optional[str] = None
    error: Optional[str] = None


class DispatchOutcome(BaseModel):
    recipient: str
    success: bool
    error: Optional[str] = None


class DispatchResult(BaseModel):
    """
    success is True whenever the gate passed, even if individual recipients failed.
    suppressed distinguishes "not sent because disabled" from "tried and failed".
    """

    success: bool
    suppressed: bool = False
    per_recipient: List[DispatchOutcome] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def success_count(self) -> int:
        return sum(1 for outcome in self.per_recipient if outcome.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for outcome in self.per_recipient if not outcome.success)

    @property
    def delivered(self) -> bool:
        """Gate passed and every recipient was reached"""
        return self.success and bool(self.per_recipient) and self.failure_count == 0


class ReminderOutcome(BaseModel):
    appointment_id: str
    success: bool
    error: Optional[str] = None


class ReminderSweepResult(BaseModel):
    success: bool
    total_matched: int = 0
    success_count: int = 0
    failure_count: int = 0
    skipped_count: int = 0
    target_date: Optional[str] = None
    target_time: Optional[str] = None
    results: List[ReminderOutcome] = Field(default_factory=list)
    error: Optional[str] = None


class DispatchRequest(BaseModel):
    event_type: str
    recipients: List[str]
    audience: str = Field("customer", pattern="^(customer|admin)$")
    payload: Any


class ReminderSweepRequest(BaseModel):
    # Override for manual runs; defaults to the current time
    now: Optional[datetime] = None
