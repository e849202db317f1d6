"""Tests for the hourly reminder sweep"""

import asyncio
from datetime import datetime, timezone

import pytest

from bookingsync.services.message_templates import PAYMENT_INVOICE
from bookingsync.services.reminder_service import run_reminder_sweep
from bookingsync.shared.timeutils import reminder_bucket

from conftest import FakeMessaging, make_appointment, write_notification_settings

# 02:30 UTC is 09:30 in Bangkok; one hour ahead falls in the 10:00 bucket
NOW = datetime(2026, 1, 15, 2, 30, tzinfo=timezone.utc)


def test_reminder_bucket_truncates_to_the_hour():
    assert reminder_bucket(NOW, 60, "Asia/Bangkok") == ("2026-01-15", "10:00")


def test_reminder_bucket_crosses_midnight():
    late = datetime(2026, 1, 15, 16, 45, tzinfo=timezone.utc)  # 23:45 local
    assert reminder_bucket(late, 60, "Asia/Bangkok") == ("2026-01-16", "00:00")


def test_naive_now_is_utc():
    assert reminder_bucket(NOW.replace(tzinfo=None), 60, "Asia/Bangkok") == ("2026-01-15", "10:00")


@pytest.mark.asyncio
async def test_each_appointment_is_reminded_once(db_session, messaging, notifications_enabled):
    appointment = make_appointment(db_session)

    first = await run_reminder_sweep(db_session, now=NOW, messaging=messaging)
    second = await run_reminder_sweep(db_session, now=NOW, messaging=messaging)

    assert first.success is True
    assert first.success_count == 1
    assert first.target_date == "2026-01-15"
    assert first.target_time == "10:00"
    assert second.success_count == 0
    assert second.skipped_count == 1
    assert messaging.recipients() == ["U-customer-1"]

    db_session.refresh(appointment)
    assert appointment.reminder_sent_at is not None


@pytest.mark.asyncio
async def test_only_confirmed_appointments_in_the_bucket(db_session, messaging, notifications_enabled):
    make_appointment(db_session, user_id="U-due")
    make_appointment(db_session, user_id="U-pending", status="pending")
    make_appointment(db_session, user_id="U-later", time="11:00")
    make_appointment(db_session, user_id="U-half-past", time="10:30")
    make_appointment(db_session, user_id="U-other-day", date="2026-01-16")

    result = await run_reminder_sweep(db_session, now=NOW, messaging=messaging)

    assert result.total_matched == 1
    assert messaging.recipients() == ["U-due"]


@pytest.mark.asyncio
async def test_missing_user_id_is_skipped(db_session, messaging, notifications_enabled):
    walk_in = make_appointment(db_session, user_id=None)

    result = await run_reminder_sweep(db_session, now=NOW, messaging=messaging)

    assert result.success is True
    assert result.skipped_count == 1
    assert result.failure_count == 0
    assert messaging.sent == []
    db_session.refresh(walk_in)
    assert walk_in.reminder_sent_at is None


@pytest.mark.asyncio
async def test_failed_send_can_be_retried(db_session, notifications_enabled):
    appointment = make_appointment(db_session, user_id="U-blocked")
    make_appointment(db_session, user_id="U-ok")

    result = await run_reminder_sweep(
        db_session, now=NOW, messaging=FakeMessaging(failing={"U-blocked"})
    )

    assert result.success is True
    assert result.success_count == 1
    assert result.failure_count == 1
    failed = [r for r in result.results if not r.success]
    assert failed[0].appointment_id == appointment.id
    db_session.refresh(appointment)
    assert appointment.reminder_sent_at is None

    retry_messaging = FakeMessaging()
    retry = await run_reminder_sweep(db_session, now=NOW, messaging=retry_messaging)

    assert retry.success_count == 1
    assert retry_messaging.recipients() == ["U-blocked"]


@pytest.mark.asyncio
async def test_zero_matches(db_session, messaging, notifications_enabled):
    result = await run_reminder_sweep(db_session, now=NOW, messaging=messaging)

    assert result.success is True
    assert result.total_matched == 0
    assert result.success_count == 0
    assert result.failure_count == 0


@pytest.mark.asyncio
async def test_disabled_reminders_are_not_marked_sent(db_session, messaging):
    write_notification_settings(db_session, customer_types=[PAYMENT_INVOICE])
    appointment = make_appointment(db_session)

    result = await run_reminder_sweep(db_session, now=NOW, messaging=messaging)

    assert result.success is True
    assert result.skipped_count == 1
    assert messaging.sent == []
    db_session.refresh(appointment)
    assert appointment.reminder_sent_at is None


@pytest.mark.asyncio
async def test_overlapping_sweeps_send_once(db_session, messaging, notifications_enabled):
    make_appointment(db_session)

    first, second = await asyncio.gather(
        run_reminder_sweep(db_session, now=NOW, messaging=messaging),
        run_reminder_sweep(db_session, now=NOW, messaging=messaging),
    )

    assert first.success_count + second.success_count == 1
    assert len(messaging.sent) == 1


@pytest.mark.asyncio
async def test_reminder_message_content(db_session, messaging, notifications_enabled):
    make_appointment(db_session)

    await run_reminder_sweep(db_session, now=NOW, messaging=messaging)

    payload = messaging.sent[0][1]
    assert payload["type"] == "flex"
    assert "Haircut" in payload["altText"]
    assert "10:00" in payload["altText"]


@pytest.mark.asyncio
async def test_store_failure_fails_the_sweep(db_session, messaging, monkeypatch):
    from bookingsync.services import reminder_service

    def broken(db, **filters):
        raise RuntimeError("query failed")

    monkeypatch.setattr(reminder_service.AppointmentRepository, "find_by_fields", broken)

    result = await run_reminder_sweep(db_session, now=NOW, messaging=messaging)

    assert result.success is False
    assert result.error == "query failed"