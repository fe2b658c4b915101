"""Tests for the /users endpoints."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

from core.enums import (
    DeliveryStatus,
    NotificationChannel,
    NotificationType,
    ReminderFrequency,
)
from core.exceptions import (
    NotificationNotFound,
    PersistenceFailure,
    UserNotFound,
    ValidationError,
)
from web_api.auth import verify_jwt


USER = {
    "user_id": 1,
    "name": "Alice",
    "email": "alice@example.com",
    "phone_number": None,
    "email_notifications_enabled": True,
    "sms_notifications_enabled": False,
    "in_app_notifications_enabled": False,
    "reminder_frequency": ReminderFrequency.daily,
    "calendar_refresh_token": "secret-refresh-token",
    "is_admin": False,
}


class TestCreateUser:
    def test_sets_session_cookie(self, client):
        with patch("core.users.create_user", AsyncMock(return_value=USER)):
            response = client.post(
                "/users", json={"name": "Alice", "email": "alice@example.com"}
            )

        assert response.status_code == 201
        assert response.json()["id"] == 1
        assert verify_jwt(response.cookies["session"])["sub"] == "1"

    def test_validation_error(self, client):
        with patch(
            "core.users.create_user",
            AsyncMock(side_effect=ValidationError("Name is required")),
        ):
            response = client.post("/users", json={"name": ""})

        assert response.status_code == 400
        assert response.json() == {"message": "Name is required"}


    def test_malformed_body_is_400_with_message(self, client):
        response = client.post("/users", json={"email": "alice@example.com"})

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid request: name: Field required"}


class TestGetProfile:
    def test_profile_hides_credential(self, client, as_user):
        with patch("core.users.get_user", AsyncMock(return_value=USER)), patch(
            "core.users.get_registered_exam_ids", AsyncMock(return_value=[3, 5])
        ):
            response = client.get("/users")

        body = response.json()
        assert response.status_code == 200
        assert body["calendarConnected"] is True
        assert body["examRegistrations"] == [3, 5]
        assert body["notificationPreferences"] == ["email"]
        assert "secret-refresh-token" not in response.text

    def test_unknown_user_is_404(self, client, as_user):
        with patch("core.users.get_user", AsyncMock(side_effect=UserNotFound(1))):
            response = client.get("/users")

        assert response.status_code == 404

    def test_database_error_is_500_with_message(self, client, as_user):
        with patch(
            "core.users.get_user",
            AsyncMock(side_effect=PersistenceFailure("connection refused")),
        ):
            response = client.get("/users")

        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error"}


class TestNotifications:
    def test_lists_notifications(self, client, as_user):
        notification = {
            "notification_id": 10,
            "user_id": 1,
            "exam_id": 3,
            "message": 'Your exam "Algebra" is today.',
            "notification_type": NotificationType.reminder,
            "scheduled_at": datetime(2025, 6, 1, 9, 0),
            "delivered": False,
            "delivered_at": None,
        }
        with patch(
            "core.users.get_notifications", AsyncMock(return_value=[notification])
        ) as mock_get:
            response = client.get("/users/notifications")

        assert response.json() == [
            {
                "id": 10,
                "userId": 1,
                "examId": 3,
                "message": 'Your exam "Algebra" is today.',
                "type": "reminder",
                "date": "2025-06-01T09:00:00Z",
                "delivered": False,
                "deliveredAt": None,
            }
        ]
        mock_get.assert_awaited_once_with(as_user)

    def test_notification_detail_includes_delivery_log(self, client, as_user):
        notification = {
            "notification_id": 10,
            "user_id": 1,
            "exam_id": 3,
            "message": 'Your exam "Algebra" is today.',
            "notification_type": NotificationType.reminder,
            "scheduled_at": datetime(2025, 6, 1, 9, 0),
            "delivered": True,
            "delivered_at": datetime(2025, 6, 1, 9, 5),
            "delivery_log": [
                {
                    "channel": NotificationChannel.email,
                    "status": DeliveryStatus.failed,
                    "error_message": "timed out",
                    "created_at": datetime(2025, 6, 1, 9, 5),
                }
            ],
        }
        with patch(
            "core.users.get_notification_detail",
            AsyncMock(return_value=notification),
        ) as mock_get:
            response = client.get("/users/notifications/10")

        assert response.status_code == 200
        body = response.json()
        assert body["delivered"] is True
        assert body["deliveryLog"] == [
            {
                "channel": "email",
                "status": "failed",
                "error": "timed out",
                "attemptedAt": "2025-06-01T09:05:00Z",
            }
        ]
        mock_get.assert_awaited_once_with(as_user, 10)

    def test_unknown_notification_is_404(self, client, as_user):
        with patch(
            "core.users.get_notification_detail",
            AsyncMock(side_effect=NotificationNotFound(99)),
        ):
            response = client.get("/users/notifications/99")

        assert response.status_code == 404
        assert response.json() == {"message": "Notification not found"}


class TestUpdatePreferences:
    def test_updates(self, client, as_user):
        updated = {
            **USER,
            "email_notifications_enabled": False,
            "sms_notifications_enabled": True,
            "reminder_frequency": ReminderFrequency.weekly,
        }
        with patch(
            "core.users.update_preferences", AsyncMock(return_value=updated)
        ) as mock_update:
            response = client.post(
                "/users/updatePreferences",
                json={"notificationPreferences": ["sms"], "reminderFrequency": "weekly"},
            )

        assert response.status_code == 200
        assert response.json()["notificationPreferences"] == ["sms"]
        assert response.json()["reminderFrequency"] == "weekly"
        mock_update.assert_awaited_once_with(as_user, ["sms"], "weekly")

    def test_unknown_channel_is_400(self, client, as_user):
        with patch(
            "core.users.update_preferences",
            AsyncMock(side_effect=ValidationError("Unknown notification channel: fax")),
        ):
            response = client.post(
                "/users/updatePreferences",
                json={"notificationPreferences": ["fax"], "reminderFrequency": "daily"},
            )

        assert response.status_code == 400
