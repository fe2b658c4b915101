"""Tests for the exam registration workflow."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from core.enums import NotificationType
from core.exceptions import (
    AlreadyRegistered,
    CalendarCredentialsExpired,
    ExamNotFound,
    UserNotFound,
)
from core.timezone import ensure_utc


AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth?state=abc"


@pytest_asyncio.fixture
async def transports():
    """Patch every channel transport and the calendar entry points."""
    from core import registration

    registration._user_locks.clear()
    registration._lock_users.clear()
    with patch(
        "core.notifications.channels.email.send_email", return_value=True
    ) as mock_email, patch(
        "core.notifications.channels.sms.send_sms", return_value=True
    ), patch(
        "core.notifications.channels.in_app.send_in_app", AsyncMock(return_value=True)
    ), patch(
        "core.registration.is_calendar_configured", return_value=True
    ), patch(
        "core.registration.start_calendar_sync", return_value=AUTH_URL
    ) as mock_start, patch(
        "core.registration.insert_exam_event", AsyncMock(return_value="evt-1")
    ) as mock_insert:
        yield {"email": mock_email, "start": mock_start, "insert": mock_insert}


async def _notifications(user_id):
    from core.database import get_connection
    from core.queries.notifications import get_user_notifications

    async with get_connection() as conn:
        return await get_user_notifications(conn, user_id)


class TestRegisterForExam:
    @pytest.mark.asyncio
    async def test_without_credential_returns_auth_url(
        self, make_user, make_exam, transports
    ):
        from core.registration import register_for_exam

        user = await make_user()
        exam = await make_exam()

        response = await register_for_exam(user["user_id"], exam["exam_id"])

        assert response["authUrl"] == AUTH_URL
        assert "calendarEventId" not in response
        transports["insert"].assert_not_called()
        transports["start"].assert_called_once_with(user["user_id"], exam["exam_id"])
        assert response["message"] == (
            "Registered successfully. Please authorize to add event to calendar."
        )

    @pytest.mark.asyncio
    async def test_with_credential_inserts_event(
        self, make_user, make_exam, transports
    ):
        from core.registration import register_for_exam

        user = await make_user(calendar_refresh_token="refresh-token")
        exam = await make_exam()

        response = await register_for_exam(user["user_id"], exam["exam_id"])

        assert "authUrl" not in response
        assert response["calendarEventId"] == "evt-1"
        transports["insert"].assert_called_once()
        assert transports["insert"].call_args.args[0] == "refresh-token"
        transports["start"].assert_not_called()

    @pytest.mark.asyncio
    async def test_expired_credential_falls_back_to_auth_url(
        self, make_user, make_exam, transports
    ):
        from core.registration import register_for_exam

        user = await make_user(calendar_refresh_token="revoked")
        exam = await make_exam()
        transports["insert"].side_effect = CalendarCredentialsExpired("invalid_grant")

        response = await register_for_exam(user["user_id"], exam["exam_id"])

        assert response["authUrl"] == AUTH_URL
        assert "warnings" not in response

    @pytest.mark.asyncio
    async def test_failed_insert_is_a_warning(self, make_user, make_exam, transports):
        from core.registration import register_for_exam

        user = await make_user(calendar_refresh_token="refresh-token")
        exam = await make_exam()
        transports["insert"].return_value = None

        response = await register_for_exam(user["user_id"], exam["exam_id"])

        assert response["warnings"] == ["Could not add the exam to your calendar"]
        assert [e["id"] for e in response["registeredExams"]] == [exam["exam_id"]]

    @pytest.mark.asyncio
    async def test_calendar_not_configured_is_a_warning(
        self, make_user, make_exam, transports
    ):
        from core.registration import register_for_exam

        user = await make_user()
        exam = await make_exam()

        with patch("core.registration.is_calendar_configured", return_value=False):
            response = await register_for_exam(user["user_id"], exam["exam_id"])

        assert "authUrl" not in response
        assert response["warnings"] == ["Calendar sync is not available"]

    @pytest.mark.asyncio
    async def test_duplicate_registration_rejected(
        self, make_user, make_exam, transports
    ):
        from core.registration import register_for_exam

        user = await make_user()
        exam = await make_exam()
        await register_for_exam(user["user_id"], exam["exam_id"])

        with pytest.raises(AlreadyRegistered):
            await register_for_exam(user["user_id"], exam["exam_id"])

        notifications = await _notifications(user["user_id"])
        assert len(notifications) == 5

    @pytest.mark.asyncio
    async def test_unknown_exam_writes_nothing(self, make_user, transports):
        from core.registration import register_for_exam

        user = await make_user()

        with pytest.raises(ExamNotFound):
            await register_for_exam(user["user_id"], 404)

        assert await _notifications(user["user_id"]) == []

    @pytest.mark.asyncio
    async def test_unknown_user(self, make_exam, transports):
        from core.registration import register_for_exam

        exam = await make_exam()

        with pytest.raises(UserNotFound):
            await register_for_exam(999, exam["exam_id"])

    @pytest.mark.asyncio
    async def test_partitions_exam_lists(self, make_user, make_exam, transports):
        from core.registration import register_for_exam

        user = await make_user()
        algebra = await make_exam(name="Algebra")
        geometry = await make_exam(
            name="Geometry",
            exam_date=datetime(2025, 7, 1, 9, 0, tzinfo=timezone.utc),
        )

        response = await register_for_exam(user["user_id"], geometry["exam_id"])

        assert [e["name"] for e in response["registeredExams"]] == ["Geometry"]
        assert [e["name"] for e in response["availableExams"]] == ["Algebra"]
        assert algebra["exam_id"] not in [e["id"] for e in response["registeredExams"]]

    @pytest.mark.asyncio
    async def test_confirmation_failure_does_not_undo_registration(
        self, make_user, make_exam, transports
    ):
        from core.registration import register_for_exam

        user = await make_user()
        exam = await make_exam()
        transports["email"].return_value = False

        response = await register_for_exam(user["user_id"], exam["exam_id"])

        assert response["warnings"] == ["Confirmation could not be delivered via email"]
        assert [e["id"] for e in response["registeredExams"]] == [exam["exam_id"]]


class TestUserLocks:
    @pytest.mark.asyncio
    async def test_lock_map_is_empty_after_registrations(
        self, make_user, make_exam, transports
    ):
        from core import registration

        exam = await make_exam()
        for i in range(5):
            user = await make_user(name=f"User {i}", email=f"user{i}@example.com")
            await registration.register_for_exam(user["user_id"], exam["exam_id"])

        assert registration._user_locks == {}
        assert registration._lock_users == {}

    @pytest.mark.asyncio
    async def test_lock_released_when_registration_fails(
        self, make_user, transports
    ):
        from core import registration

        user = await make_user()

        with pytest.raises(ExamNotFound):
            await registration.register_for_exam(user["user_id"], 404)

        assert registration._user_locks == {}

    @pytest.mark.asyncio
    async def test_concurrent_duplicate_registers_once(
        self, make_user, make_exam, transports
    ):
        from core import registration

        user = await make_user()
        exam = await make_exam()

        results = await asyncio.gather(
            registration.register_for_exam(user["user_id"], exam["exam_id"]),
            registration.register_for_exam(user["user_id"], exam["exam_id"]),
            return_exceptions=True,
        )

        assert sum(isinstance(r, AlreadyRegistered) for r in results) == 1
        assert len(await _notifications(user["user_id"])) == 5
        assert registration._user_locks == {}


class TestAlgebraScenario:
    @pytest.mark.asyncio
    async def test_exam_announcement_registration_and_sweep(
        self, make_user, transports
    ):
        from core.exams import create_exam
        from core.notifications.dispatcher import send_pending_notifications
        from core.registration import register_for_exam

        other = await make_user(name="Bob", email="bob@example.com")

        exam = await create_exam(
            name="Algebra",
            exam_date=datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc),
            venue="Hall A",
        )

        # Existing users hear about the new exam right away
        announced = await _notifications(other["user_id"])
        assert len(announced) == 1
        assert announced[0]["delivered"]
        assert announced[0]["message"] == (
            'New exam "Algebra" has been scheduled for Sunday, June 1, 2025.'
        )

        user = await make_user()
        await register_for_exam(user["user_id"], exam["exam_id"])

        notifications = await _notifications(user["user_id"])
        assert len(notifications) == 5

        reminders = [
            n for n in notifications if n["notification_type"] == NotificationType.reminder
        ]
        assert sorted(ensure_utc(n["scheduled_at"]).date().isoformat() for n in reminders) == [
            "2025-05-02",
            "2025-05-25",
            "2025-05-31",
            "2025-06-01",
        ]
        assert not any(n["delivered"] for n in reminders)

        (confirmation,) = [
            n for n in notifications if n["notification_type"] != NotificationType.reminder
        ]
        assert confirmation["delivered"]
        assert confirmation["message"] == (
            "You have successfully registered for the exam: "
            "Algebra on Sunday, June 1, 2025."
        )

        summary = await send_pending_notifications()
        assert summary["delivered"] == 4
        assert all(n["delivered"] for n in await _notifications(user["user_id"]))


class TestAddToCalendar:
    @pytest.mark.asyncio
    async def test_with_credential(self, make_user, make_exam, transports):
        from core.registration import add_to_calendar

        user = await make_user(calendar_refresh_token="refresh-token")
        exam = await make_exam()

        response = await add_to_calendar(user["user_id"], exam["exam_id"])

        assert response == {
            "message": "Event added to calendar",
            "calendarEventId": "evt-1",
        }

    @pytest.mark.asyncio
    async def test_without_credential(self, make_user, make_exam, transports):
        from core.registration import add_to_calendar

        user = await make_user()
        exam = await make_exam()

        response = await add_to_calendar(user["user_id"], exam["exam_id"])

        assert response["authUrl"] == AUTH_URL
        transports["insert"].assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_exam(self, make_user, transports):
        from core.registration import add_to_calendar

        user = await make_user()

        with pytest.raises(ExamNotFound):
            await add_to_calendar(user["user_id"], 404)
