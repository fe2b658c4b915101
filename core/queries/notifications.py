"""Notification database queries using SQLAlchemy Core."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncConnection

from ..enums import DeliveryStatus, NotificationChannel, NotificationType
from ..tables import notification_log, notifications


async def create_notification(
    conn: AsyncConnection,
    user_id: int,
    exam_id: int,
    message: str,
    notification_type: NotificationType,
    scheduled_at: datetime,
    reminder_offset_days: int | None = None,
) -> dict[str, Any]:
    """Insert an undelivered notification and return the created record."""
    result = await conn.execute(
        insert(notifications)
        .values(
            user_id=user_id,
            exam_id=exam_id,
            message=message,
            notification_type=notification_type,
            scheduled_at=scheduled_at,
            reminder_offset_days=reminder_offset_days,
            delivered=False,
        )
        .returning(notifications)
    )
    return dict(result.mappings().first())


async def get_existing_reminder_offsets(
    conn: AsyncConnection,
    user_id: int,
    exam_id: int,
) -> set[int]:
    """Reminder offsets (days) already scheduled for this user and exam."""
    result = await conn.execute(
        select(notifications.c.reminder_offset_days)
        .where(notifications.c.user_id == user_id)
        .where(notifications.c.exam_id == exam_id)
        .where(notifications.c.notification_type == NotificationType.reminder)
        .where(notifications.c.reminder_offset_days.is_not(None))
    )
    return {row[0] for row in result}


async def get_notification_by_id(
    conn: AsyncConnection,
    notification_id: int,
) -> dict[str, Any] | None:
    result = await conn.execute(
        select(notifications).where(notifications.c.notification_id == notification_id)
    )
    row = result.mappings().first()
    return dict(row) if row else None


async def get_user_notifications(
    conn: AsyncConnection,
    user_id: int,
) -> list[dict[str, Any]]:
    """All notifications for a user, latest scheduled date first."""
    result = await conn.execute(
        select(notifications)
        .where(notifications.c.user_id == user_id)
        .order_by(
            notifications.c.scheduled_at.desc(),
            notifications.c.notification_id.desc(),
        )
    )
    return [dict(row) for row in result.mappings()]


async def get_undelivered_notifications(
    conn: AsyncConnection,
    due_before: datetime | None = None,
) -> list[dict[str, Any]]:
    """
    Notifications still waiting for delivery.

    Args:
        due_before: If given, only rows scheduled at or before this time
    """
    query = select(notifications).where(notifications.c.delivered.is_(False))
    if due_before is not None:
        query = query.where(notifications.c.scheduled_at <= due_before)
    result = await conn.execute(
        query.order_by(notifications.c.scheduled_at, notifications.c.notification_id)
    )
    return [dict(row) for row in result.mappings()]


async def mark_delivered(
    conn: AsyncConnection,
    notification_id: int,
) -> bool:
    """
    Flip delivered false -> true.

    Returns:
        True if this call flipped the flag, False if it was already set
    """
    result = await conn.execute(
        update(notifications)
        .where(notifications.c.notification_id == notification_id)
        .where(notifications.c.delivered.is_(False))
        .values(delivered=True, delivered_at=datetime.now(timezone.utc))
    )
    return result.rowcount == 1


async def log_channel_attempt(
    conn: AsyncConnection,
    user_id: int | None,
    channel: NotificationChannel,
    success: bool,
    notification_id: int | None = None,
    error_message: str | None = None,
) -> None:
    """Record one channel send attempt."""
    await conn.execute(
        insert(notification_log).values(
            notification_id=notification_id,
            user_id=user_id,
            channel=channel,
            status=DeliveryStatus.sent if success else DeliveryStatus.failed,
            error_message=error_message,
        )
    )


async def get_delivery_log(
    conn: AsyncConnection,
    notification_id: int,
) -> list[dict[str, Any]]:
    """Channel attempts recorded for a notification, oldest first."""
    result = await conn.execute(
        select(notification_log)
        .where(notification_log.c.notification_id == notification_id)
        .order_by(notification_log.c.log_id)
    )
    return [dict(row) for row in result.mappings()]
