"""
Notification dispatcher - fans a message out to every channel a user enabled.

Two entry points:
- send_immediate: create a notification row and deliver it right away
  (announcements, materials, registration confirmations)
- send_pending_notifications: batch sweep over undelivered rows; each row
  is claimed by flipping its delivered flag before any channel is tried
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from core.config import get_channel_send_timeout
from core.database import get_connection, get_transaction
from core.enums import NotificationChannel, NotificationType, enabled_channels
from core.exceptions import ChannelDeliveryFailure, PersistenceFailure
from core.notifications.channels import ChannelSender, get_sender
from core.notifications.templates import load_templates
from core.queries.notifications import (
    create_notification,
    get_undelivered_notifications,
    log_channel_attempt,
    mark_delivered,
)
from core.queries.users import get_user_by_id

logger = logging.getLogger(__name__)


# Template used for the subject line of stored notifications
SUBJECT_TEMPLATES = {
    NotificationType.reminder: "exam_reminder",
    NotificationType.announcement: "exam_announcement",
    NotificationType.material: "exam_material",
    NotificationType.result: "exam_result",
}


@dataclass
class DeliveryReport:
    """Outcome of one fan-out: per-channel success plus collected failures."""

    notification_id: int | None = None
    results: dict[str, bool] = field(default_factory=dict)
    failures: list[ChannelDeliveryFailure] = field(default_factory=list)
    marked_delivered: bool = False

    @property
    def attempted(self) -> list[str]:
        return list(self.results)

    @property
    def ok(self) -> bool:
        return not self.failures


async def _attempt_channel(
    sender: ChannelSender,
    user: dict,
    subject: str,
    body: str,
) -> tuple[NotificationChannel, bool, str | None]:
    """Send on one channel. Never raises; failures come back as a reason."""
    destination = sender.destination(user)
    if not destination:
        return sender.channel, False, f"no {sender.channel.value} destination"

    try:
        ok = await asyncio.wait_for(
            sender.send(destination, subject, body),
            timeout=get_channel_send_timeout(),
        )
    except asyncio.TimeoutError:
        return sender.channel, False, "timed out"
    except Exception as e:
        return sender.channel, False, str(e) or e.__class__.__name__

    if not ok:
        return sender.channel, False, "transport reported failure"
    return sender.channel, True, None


async def _log_attempts(
    user_id: int | None,
    notification_id: int | None,
    outcomes: list[tuple[NotificationChannel, bool, str | None]],
) -> None:
    try:
        async with get_transaction() as conn:
            for channel, success, error in outcomes:
                await log_channel_attempt(
                    conn,
                    user_id=user_id,
                    channel=channel,
                    success=success,
                    notification_id=notification_id,
                    error_message=error,
                )
    except PersistenceFailure as e:
        # Don't let logging failures break notification sending
        logger.warning(f"Failed to log delivery for notification {notification_id}: {e}")


async def dispatch_message(
    user: dict,
    subject: str,
    body: str,
    notification_id: int | None = None,
) -> DeliveryReport:
    """
    Send a message on every channel the user has enabled.

    Channel sends run concurrently and independently: a failure or timeout on
    one channel never skips another. Failures are collected and returned once
    every attempt has finished.

    Args:
        user: User record (needs user_id, contact fields, channel switches)
        subject: Subject line (email subject, SMS prefix)
        body: Message body
        notification_id: Stored notification this send belongs to, if any

    Returns:
        DeliveryReport with one entry per attempted channel
    """
    report = DeliveryReport(notification_id=notification_id)
    channels = enabled_channels(user)
    if not channels:
        return report

    outcomes = await asyncio.gather(
        *(
            _attempt_channel(get_sender(channel), user, subject, body)
            for channel in channels
        )
    )

    for channel, success, error in outcomes:
        report.results[channel.value] = success
        if not success:
            failure = ChannelDeliveryFailure(
                channel.value, error or "unknown", user_id=user.get("user_id")
            )
            report.failures.append(failure)
            logger.warning(
                f"Channel delivery failed for user {user.get('user_id')} "
                f"(notification {notification_id}): {failure}"
            )

    await _log_attempts(user.get("user_id"), notification_id, list(outcomes))
    return report


async def _mark_delivered(report: DeliveryReport) -> None:
    if report.notification_id is None:
        return
    async with get_transaction() as conn:
        report.marked_delivered = await mark_delivered(conn, report.notification_id)


async def send_immediate(
    user: dict,
    exam_id: int,
    notification_type: NotificationType,
    message: str,
    subject: str,
) -> DeliveryReport:
    """
    Create a notification and deliver it now.

    The row is marked delivered once every channel has been attempted,
    whatever the channel outcomes.
    """
    async with get_transaction() as conn:
        notification = await create_notification(
            conn,
            user_id=user["user_id"],
            exam_id=exam_id,
            message=message,
            notification_type=notification_type,
            scheduled_at=datetime.now(timezone.utc),
        )

    report = await dispatch_message(
        user, subject, message, notification_id=notification["notification_id"]
    )
    await _mark_delivered(report)
    return report


async def deliver_notification(
    notification: dict,
    user: dict | None = None,
) -> DeliveryReport:
    """
    Claim one stored notification, then deliver it.

    The delivered flag is flipped before any channel is attempted, so when
    sweeps overlap only the one that wins the flip sends. A notification
    whose user no longer exists is claimed without any channel attempt.
    """
    notification_id = notification["notification_id"]
    async with get_transaction() as conn:
        claimed = await mark_delivered(conn, notification_id)
    if not claimed:
        logger.info(f"Notification {notification_id} already delivered, skipping")
        return DeliveryReport(notification_id=notification_id)

    if user is None:
        async with get_connection() as conn:
            user = await get_user_by_id(conn, notification["user_id"])

    if user is None:
        logger.warning(
            f"User {notification['user_id']} not found for notification "
            f"{notification_id}, marking delivered"
        )
        report = DeliveryReport(notification_id=notification_id)
    else:
        template = SUBJECT_TEMPLATES.get(
            notification["notification_type"], "exam_reminder"
        )
        report = await dispatch_message(
            user,
            load_templates()[template].subject,
            notification["message"],
            notification_id=notification_id,
        )

    report.marked_delivered = True
    return report


async def send_pending_notifications(due_only: bool = False) -> dict:
    """
    Batch sweep: deliver every notification whose delivered flag is false.

    Safe to re-run: rows already marked delivered are never picked up again,
    and each row is claimed before sending, so overlapping sweeps (the
    endpoint and the scheduled job) never deliver it twice.

    Args:
        due_only: Only deliver rows scheduled at or before now

    Returns:
        Summary counts for the sweep
    """
    due_before = datetime.now(timezone.utc) if due_only else None
    async with get_connection() as conn:
        pending = await get_undelivered_notifications(conn, due_before=due_before)

    users: dict[int, dict | None] = {}
    delivered = 0
    failed_channels = 0

    for notification in pending:
        user_id = notification["user_id"]
        if user_id not in users:
            async with get_connection() as conn:
                users[user_id] = await get_user_by_id(conn, user_id)

        report = await deliver_notification(notification, users[user_id])
        failed_channels += len(report.failures)
        if report.marked_delivered:
            delivered += 1

    logger.info(
        f"Notification sweep processed {len(pending)}, delivered {delivered}, "
        f"{failed_channels} channel failures"
    )
    return {
        "processed": len(pending),
        "delivered": delivered,
        "failedChannels": failed_channels,
    }
