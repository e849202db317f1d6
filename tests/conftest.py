"""
Shared pytest fixtures for all tests.

Provides an in-memory database session, fake calendar and messaging
clients, and helpers for writing settings documents.
"""

import os
from typing import Generator, Iterable, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure test environment before the package reads its config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BOOKING_TIMEZONE"] = "Asia/Bangkok"
os.environ["REMINDER_LOOKAHEAD_MINUTES"] = "60"

from bookingsync import models  # noqa: E402
from bookingsync.database import Base  # noqa: E402
from bookingsync.domain.settings.repository import (  # noqa: E402
    CALENDAR_SETTINGS_ID,
    NOTIFICATION_SETTINGS_ID,
    SettingsRepository,
)
from bookingsync.exceptions import CalendarAPIError, LineAPIError  # noqa: E402
from bookingsync.services.message_templates import (  # noqa: E402
    ADMIN_EVENT_TYPES,
    CUSTOMER_EVENT_TYPES,
)


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine) -> Generator[Session, None, None]:
    """Fresh database session per test"""
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# ============================================================================
# FAKE EXTERNAL CLIENTS
# ============================================================================


class FakeCalendar:
    """In-memory stand-in for GoogleCalendarClient"""

    def __init__(self):
        self.events: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self.fail_with: Optional[CalendarAPIError] = None
        self._counter = 0

    def _maybe_fail(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def create_event(self, calendar_id: str, event: dict) -> dict:
        self.calls.append(("create", calendar_id, None))
        self._maybe_fail()
        self._counter += 1
        event_id = f"evt-{self._counter}"
        self.events[event_id] = event
        return {"id": event_id, **event}

    async def update_event(self, calendar_id: str, event_id: str, event: dict) -> dict:
        self.calls.append(("update", calendar_id, event_id))
        self._maybe_fail()
        if event_id not in self.events:
            raise CalendarAPIError("Not Found", status_code=404)
        self.events[event_id] = event
        return {"id": event_id, **event}

    async def delete_event(self, calendar_id: str, event_id: str) -> None:
        self.calls.append(("delete", calendar_id, event_id))
        self._maybe_fail()
        if event_id not in self.events:
            raise CalendarAPIError("Resource has been deleted", status_code=410)
        del self.events[event_id]

    def count(self, kind: str) -> int:
        return sum(1 for call in self.calls if call[0] == kind)


class FakeMessaging:
    """Records pushes; recipients in `failing` raise LineAPIError"""

    def __init__(self, failing: Iterable[str] = ()):
        self.failing = set(failing)
        self.sent: list[tuple[str, object]] = []

    async def push_message(self, to: str, payload) -> None:
        if to in self.failing:
            raise LineAPIError("The user hasn't added the LINE Official Account", status_code=400)
        self.sent.append((to, payload))

    def recipients(self) -> list[str]:
        return [to for to, _ in self.sent]


@pytest.fixture
def calendar() -> FakeCalendar:
    return FakeCalendar()


@pytest.fixture
def messaging() -> FakeMessaging:
    return FakeMessaging()


# ============================================================================
# SETTINGS HELPERS
# ============================================================================


def write_calendar_settings(db: Session, enabled: bool = True, calendar_id: Optional[str] = "cal-1"):
    SettingsRepository.merge_document(
        db, CALENDAR_SETTINGS_ID, {"enabled": enabled, "calendarId": calendar_id}
    )


def write_notification_settings(
    db: Session,
    global_enabled: bool = True,
    customer_enabled: bool = True,
    admin_enabled: bool = True,
    customer_types: Iterable[str] = CUSTOMER_EVENT_TYPES,
    admin_types: Iterable[str] = ADMIN_EVENT_TYPES,
):
    customer = {"enabled": customer_enabled}
    customer.update({event_type: True for event_type in customer_types})
    admin = {"enabled": admin_enabled}
    admin.update({event_type: True for event_type in admin_types})

    SettingsRepository.merge_document(
        db,
        NOTIFICATION_SETTINGS_ID,
        {
            "allNotifications": {"enabled": global_enabled},
            "customerNotifications": customer,
            "adminNotifications": admin,
        },
    )


@pytest.fixture
def calendar_enabled(db_session):
    write_calendar_settings(db_session)


@pytest.fixture
def notifications_enabled(db_session):
    write_notification_settings(db_session)


# ============================================================================
# TEST DATA
# ============================================================================


def make_appointment(db: Session, **overrides) -> models.Appointment:
    data = {
        "user_id": "U-customer-1",
        "customer_info": {"fullName": "Somchai Jaidee", "phone": "0812345678"},
        "service_id": "svc-1",
        "service_info": {"name": "Haircut", "duration": 60, "price": 1500},
        "date": "2026-01-15",
        "time": "10:00",
        "status": "confirmed",
        "total_price": 1500,
    }
    data.update(overrides)
    appointment = models.Appointment(**data)
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def make_admin(db: Session, line_user_id: Optional[str], name: str = "Admin") -> models.Admin:
    admin = models.Admin(name=name, line_user_id=line_user_id)
    db.add(admin)
    db.commit()
    return admin
