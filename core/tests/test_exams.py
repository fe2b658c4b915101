"""Tests for exam creation, announcements and materials."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

from core.enums import NotificationType
from core.exceptions import ExamNotFound, ValidationError


@pytest_asyncio.fixture
async def mock_email():
    with patch(
        "core.notifications.channels.email.send_email", return_value=True
    ) as mock_send, patch(
        "core.notifications.channels.in_app.send_in_app", AsyncMock(return_value=True)
    ):
        yield mock_send


async def _register(user_id, exam_id):
    from core.database import get_transaction
    from core.queries.exams import add_registration

    async with get_transaction() as conn:
        await add_registration(conn, user_id, exam_id)


class TestCreateExam:
    @pytest.mark.asyncio
    async def test_announces_to_every_user(self, make_user, mock_email):
        from core.exams import create_exam

        await make_user(name="Alice", email="alice@example.com")
        await make_user(name="Bob", email="bob@example.com")

        exam = await create_exam(
            name="Algebra",
            exam_date=datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc),
            venue="Hall A",
            materials=["Chapter 1"],
            announcements=["Bring a calculator"],
        )

        assert exam["materials"] == ["Chapter 1"]
        assert exam["announcements"] == ["Bring a calculator"]
        recipients = sorted(call.args[0] for call in mock_email.call_args_list)
        assert recipients == ["alice@example.com", "bob@example.com"]
        assert {call.args[1] for call in mock_email.call_args_list} == {
            "New Exam Scheduled"
        }

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, test_db, mock_email):
        from core.exams import create_exam

        with pytest.raises(ValidationError):
            await create_exam(name="  ", exam_date=datetime(2025, 6, 1, 9, 0))

    @pytest.mark.asyncio
    async def test_blank_materials_dropped(self, test_db, mock_email):
        from core.exams import create_exam, get_exam

        exam = await create_exam(
            name="Algebra",
            exam_date=datetime(2025, 6, 1, 9, 0),
            materials=["", "Chapter 1", "   "],
        )

        assert (await get_exam(exam["exam_id"]))["materials"] == ["Chapter 1"]


class TestListAndGet:
    @pytest.mark.asyncio
    async def test_list_is_date_ordered(self, make_exam):
        from core.exams import list_exams

        await make_exam(name="Later", exam_date=datetime(2025, 9, 1, tzinfo=timezone.utc))
        await make_exam(name="Sooner", exam_date=datetime(2025, 3, 1, tzinfo=timezone.utc))

        assert [e["name"] for e in await list_exams()] == ["Sooner", "Later"]

    @pytest.mark.asyncio
    async def test_get_unknown_exam(self, test_db):
        from core.exams import get_exam

        with pytest.raises(ExamNotFound):
            await get_exam(404)


class TestAddAnnouncement:
    @pytest.mark.asyncio
    async def test_notifies_registered_users_only(
        self, make_user, make_exam, mock_email
    ):
        from core.database import get_connection
        from core.exams import add_announcement, get_exam
        from core.queries.notifications import get_user_notifications

        registered = await make_user(name="Alice", email="alice@example.com")
        await make_user(name="Bob", email="bob@example.com")
        exam = await make_exam()
        await _register(registered["user_id"], exam["exam_id"])

        notified = await add_announcement(exam["exam_id"], "Room changed to Hall B")

        assert notified == 1
        mock_email.assert_called_once_with(
            "alice@example.com", "Exam Announcement", "Room changed to Hall B"
        )
        assert (await get_exam(exam["exam_id"]))["announcements"] == [
            "Room changed to Hall B"
        ]
        async with get_connection() as conn:
            (notification,) = await get_user_notifications(conn, registered["user_id"])
        assert notification["notification_type"] == NotificationType.announcement
        assert notification["delivered"]

    @pytest.mark.asyncio
    async def test_appends_in_order(self, make_exam, mock_email):
        from core.exams import add_announcement, get_exam

        exam = await make_exam(announcements=["First"])
        await add_announcement(exam["exam_id"], "Second")

        assert (await get_exam(exam["exam_id"]))["announcements"] == ["First", "Second"]

    @pytest.mark.asyncio
    async def test_unknown_exam(self, test_db, mock_email):
        from core.exams import add_announcement

        with pytest.raises(ExamNotFound):
            await add_announcement(404, "Hello")

    @pytest.mark.asyncio
    async def test_empty_text_rejected(self, make_exam, mock_email):
        from core.exams import add_announcement

        exam = await make_exam()
        with pytest.raises(ValidationError):
            await add_announcement(exam["exam_id"], "")


class TestAddMaterial:
    @pytest.mark.asyncio
    async def test_notifies_with_material_type(self, make_user, make_exam, mock_email):
        from core.database import get_connection
        from core.exams import add_material
        from core.queries.notifications import get_user_notifications

        user = await make_user()
        exam = await make_exam()
        await _register(user["user_id"], exam["exam_id"])

        assert await add_material(exam["exam_id"], "Past paper 2024") == 1

        mock_email.assert_called_once_with(
            "alice@example.com",
            "Exam Material",
            "New preparation material available: Past paper 2024",
        )
        async with get_connection() as conn:
            (notification,) = await get_user_notifications(conn, user["user_id"])
        assert notification["notification_type"] == NotificationType.material
