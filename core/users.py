"""User profile, preferences and per-user read paths."""

import logging

from .database import get_connection, get_transaction
from .enums import (
    CHANNEL_PREFERENCE_COLUMNS,
    NotificationChannel,
    ReminderFrequency,
)
from .exceptions import NotificationNotFound, UserNotFound, ValidationError
from .queries import exams as exam_queries
from .queries import notifications as notification_queries
from .queries import users as user_queries

logger = logging.getLogger(__name__)


async def create_user(
    name: str,
    email: str | None = None,
    phone_number: str | None = None,
) -> dict:
    """Create a user with the default preferences (email only, daily)."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required")
    if not email and not phone_number:
        raise ValidationError("An email address or phone number is required")

    async with get_transaction() as conn:
        user = await user_queries.create_user(conn, name, email, phone_number)
    logger.info(f"Created user {user['user_id']}")
    return user


async def get_user(user_id: int) -> dict:
    """
    Load a user.

    Raises:
        UserNotFound: If no such user exists
    """
    async with get_connection() as conn:
        user = await user_queries.get_user_by_id(conn, user_id)
    if not user:
        raise UserNotFound(user_id)
    return user


def parse_channels(values: list[str]) -> set[NotificationChannel]:
    """Validate a channel list; only the three known kinds are accepted."""
    channels = set()
    for value in values:
        try:
            channels.add(NotificationChannel(value))
        except ValueError:
            raise ValidationError(f"Unknown notification channel: {value}")
    return channels


def parse_reminder_frequency(value: str) -> ReminderFrequency:
    try:
        return ReminderFrequency(value)
    except ValueError:
        raise ValidationError(f"Unknown reminder frequency: {value}")


async def update_preferences(
    user_id: int,
    notification_preferences: list[str],
    reminder_frequency: str,
) -> dict:
    """
    Replace the user's channel set and reminder cadence.

    Raises:
        ValidationError: Unknown channel or cadence
        UserNotFound: If no such user exists
    """
    channels = parse_channels(notification_preferences)
    frequency = parse_reminder_frequency(reminder_frequency)

    updates = {
        column: channel in channels
        for channel, column in CHANNEL_PREFERENCE_COLUMNS.items()
    }
    async with get_transaction() as conn:
        user = await user_queries.update_user(
            conn, user_id, reminder_frequency=frequency, **updates
        )
    if not user:
        raise UserNotFound(user_id)

    logger.info(
        f"Updated preferences for user {user_id}: "
        f"{sorted(c.value for c in channels)}, {frequency.value}"
    )
    return user


async def get_registered_exams(user_id: int) -> list[dict]:
    """The user's registered exams, in registration order."""
    async with get_connection() as conn:
        if not await user_queries.get_user_by_id(conn, user_id):
            raise UserNotFound(user_id)
        exam_ids = await exam_queries.get_registered_exam_ids(conn, user_id)
        exams = []
        for exam_id in exam_ids:
            exam = await exam_queries.get_exam_by_id(conn, exam_id)
            if exam:
                exams.append(exam)
    return exams


async def get_registered_exam_ids(user_id: int) -> list[int]:
    async with get_connection() as conn:
        return await exam_queries.get_registered_exam_ids(conn, user_id)


async def get_notifications(user_id: int) -> list[dict]:
    """The user's notifications, latest scheduled date first."""
    async with get_connection() as conn:
        if not await user_queries.get_user_by_id(conn, user_id):
            raise UserNotFound(user_id)
        return await notification_queries.get_user_notifications(conn, user_id)


async def get_notification_detail(user_id: int, notification_id: int) -> dict:
    """
    One of the user's notifications with its channel attempts.

    Raises:
        NotificationNotFound: Unknown id, or a notification of another user
    """
    async with get_connection() as conn:
        notification = await notification_queries.get_notification_by_id(
            conn, notification_id
        )
        if not notification or notification["user_id"] != user_id:
            raise NotificationNotFound(notification_id)
        notification["delivery_log"] = await notification_queries.get_delivery_log(
            conn, notification_id
        )
    return notification
