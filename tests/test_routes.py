"""HTTP surface tests"""

import pytest
from fastapi.testclient import TestClient

from bookingsync import config
from bookingsync.database import get_db
from bookingsync.main import app
from bookingsync.services.google_calendar_service import get_calendar_client
from bookingsync.services.line_service import get_messaging_client

from conftest import make_appointment


@pytest.fixture
def client(db_session, calendar, messaging):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_calendar_client] = lambda: calendar
    app.dependency_overrides[get_messaging_client] = lambda: messaging
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def cron_secret(monkeypatch):
    monkeypatch.setattr(config, "CRON_SECRET", "s3cret")
    return "s3cret"


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


class TestAppointmentRoutes:
    def test_create_and_fetch(self, client):
        response = client.post(
            "/appointments",
            json={
                "userId": "U1",
                "customerInfo": {"fullName": "Ploy"},
                "serviceInfo": {"name": "Haircut", "duration": 60, "price": 500},
                "date": "2026-03-01",
                "time": "10:00",
            },
        )

        assert response.status_code == 201
        created = response.json()
        assert created["status"] == "pending"

        fetched = client.get(f"/appointments/{created['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["serviceInfo"]["name"] == "Haircut"

    def test_invalid_date_is_rejected(self, client):
        response = client.post(
            "/appointments",
            json={"serviceInfo": {"name": "Haircut"}, "date": "01/03/2026", "time": "10:00"},
        )
        assert response.status_code == 422

    def test_unknown_appointment_is_404(self, client):
        assert client.get("/appointments/missing").status_code == 404

    def test_invalid_transition_is_400(self, client, db_session):
        appointment = make_appointment(db_session, status="completed")

        response = client.post(f"/appointments/{appointment.id}/start")

        assert response.status_code == 400
        assert "completed" in response.json()["detail"]

    def test_customer_cancel_of_other_booking_is_403(self, client, db_session):
        appointment = make_appointment(db_session)

        response = client.post(
            f"/appointments/{appointment.id}/cancel",
            json={"cancelledBy": "customer", "userId": "U-other"},
        )

        assert response.status_code == 403

    def test_full_slot_is_409(self, client, db_session):
        make_appointment(db_session, date="2026-03-01", time="10:00", status="pending")

        response = client.post(
            "/appointments",
            json={"serviceInfo": {"name": "Haircut"}, "date": "2026-03-01", "time": "10:00"},
        )

        assert response.status_code == 409
        assert "fully booked" in response.json()["detail"]

    def test_submit_review(self, client, db_session):
        appointment = make_appointment(db_session, status="completed")
        url = f"/appointments/{appointment.id}/review"

        first = client.post(url, json={"userId": "U-customer-1", "rating": 4, "comment": "Nice"})
        second = client.post(url, json={"userId": "U-customer-1", "rating": 5})
        wrong_user = client.post(url, json={"userId": "U-other", "rating": 5})
        bad_rating = client.post(url, json={"userId": "U-customer-1", "rating": 6})

        assert first.status_code == 200
        assert first.json()["reviewInfo"]["rating"] == 4
        assert second.status_code == 400
        assert wrong_user.status_code == 403
        assert bad_rating.status_code == 422

    def test_confirm(self, client, db_session):
        appointment = make_appointment(db_session, status="pending")

        response = client.post(
            f"/appointments/{appointment.id}/confirm", json={"amount": 1500, "method": "promptpay"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"
        assert response.json()["paymentInfo"]["paymentMethod"] == "promptpay"


class TestCalendarRoutes:
    def test_sync_reports_result_in_body(self, client, db_session, calendar_enabled):
        appointment = make_appointment(db_session)

        response = client.post(f"/calendar/sync/{appointment.id}")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["eventId"] == "evt-1"

    def test_sync_failure_is_not_an_http_error(self, client, db_session, calendar_enabled):
        appointment = make_appointment(db_session, service_info={"name": "Haircut", "duration": "abc"})

        response = client.post(f"/calendar/sync/{appointment.id}")

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["error"] == "Invalid duration value for service: Haircut"

    def test_delete_event_twice(self, client, db_session, calendar, calendar_enabled):
        appointment = make_appointment(db_session)
        client.post(f"/calendar/sync/{appointment.id}")

        first = client.delete("/calendar/events/evt-1")
        second = client.delete("/calendar/events/evt-1")

        assert first.json()["success"] is True
        assert second.json() == {
            "success": True,
            "eventId": "evt-1",
            "message": "Event already deleted.",
            "error": None,
        }


class TestCronRoutes:
    def test_requires_secret(self, client, cron_secret):
        assert client.post("/cron/reminders").status_code == 401
        assert (
            client.post("/cron/reminders", headers={"Authorization": "Bearer wrong"}).status_code
            == 401
        )

    def test_unconfigured_secret_rejects_everything(self, client, monkeypatch):
        monkeypatch.setattr(config, "CRON_SECRET", None)
        response = client.get("/cron/reminders")
        assert response.status_code == 401

    def test_runs_sweep(self, client, db_session, messaging, cron_secret, notifications_enabled):
        make_appointment(db_session)

        response = client.post(
            "/cron/reminders",
            headers={"Authorization": f"Bearer {cron_secret}"},
            json={"now": "2026-01-15T02:30:00Z"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["success_count"] == 1
        assert messaging.recipients() == ["U-customer-1"]

    def test_get_trigger(self, client, cron_secret):
        response = client.get("/cron/reminders", headers={"Authorization": f"Bearer {cron_secret}"})

        assert response.status_code == 200
        assert response.json()["success"] is True


class TestNotificationRoutes:
    def test_dispatch_fan_out(self, client, messaging, notifications_enabled):
        response = client.post(
            "/notifications/dispatch",
            json={
                "event_type": "paymentInvoice",
                "recipients": ["U1", "U2"],
                "payload": {"type": "text", "text": "Your invoice is ready"},
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [o["success"] for o in body["per_recipient"]] == [True, True]
        assert messaging.recipients() == ["U1", "U2"]

    def test_dispatch_suppressed(self, client, messaging):
        response = client.post(
            "/notifications/dispatch",
            json={"event_type": "newBooking", "audience": "admin", "recipients": ["A1"], "payload": "hi"},
        )

        assert response.json()["suppressed"] is True
        assert messaging.sent == []


class TestSettingsRoutes:
    def test_missing_documents_read_as_disabled(self, client):
        assert client.get("/settings/calendar").json() == {"enabled": False, "calendarId": None}
        notifications = client.get("/settings/notifications").json()
        assert notifications["allNotifications"]["enabled"] is False
        assert notifications["customerNotifications"]["appointmentReminder"] is False

    def test_save_calendar_settings(self, client):
        response = client.put("/settings/calendar", json={"enabled": True, "calendarId": "cal-9"})

        assert response.json() == {"enabled": True, "calendarId": "cal-9"}
        assert client.get("/settings/calendar").json()["calendarId"] == "cal-9"

    def test_partial_calendar_save_keeps_other_fields(self, client):
        client.put("/settings/calendar", json={"enabled": True, "calendarId": "cal-9"})

        response = client.put("/settings/calendar", json={"enabled": False})

        assert response.json() == {"enabled": False, "calendarId": "cal-9"}

    def test_partial_notification_save_keeps_other_flags(self, client):
        client.put(
            "/settings/notifications",
            json={
                "allNotifications": {"enabled": True},
                "customerNotifications": {"enabled": True, "appointmentReminder": True},
                "adminNotifications": {"enabled": True, "newBooking": True},
            },
        )

        client.put("/settings/notifications", json={"allNotifications": {"enabled": False}})
        client.put("/settings/notifications", json={"customerNotifications": {"reviewRequest": True}})

        saved = client.get("/settings/notifications").json()
        assert saved["allNotifications"]["enabled"] is False
        assert saved["customerNotifications"]["enabled"] is True
        assert saved["customerNotifications"]["appointmentReminder"] is True
        assert saved["customerNotifications"]["reviewRequest"] is True
        assert saved["adminNotifications"]["newBooking"] is True

    def test_custom_flag_must_be_boolean(self, client):
        response = client.put(
            "/settings/notifications",
            json={"customerNotifications": {"promoBlast": "sometimes"}},
        )

        assert response.status_code == 422

    def test_booking_settings(self, client):
        assert client.get("/settings/booking").json() == {"weeklySchedule": {}, "timeQueues": []}

        client.put("/settings/booking", json={"timeQueues": [{"time": "9:00", "count": 3}]})
        client.put("/settings/booking", json={"weeklySchedule": {"1": {"isOpen": False}}})

        saved = client.get("/settings/booking").json()
        assert saved["timeQueues"] == [{"time": "09:00", "count": 3}]
        assert saved["weeklySchedule"]["1"]["isOpen"] is False
