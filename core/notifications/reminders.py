"""
Exam reminder schedule.

Reminders are written as undelivered notification rows dated ahead of the
exam; the batch sweep delivers them later.
"""

import logging
from datetime import timedelta

from sqlalchemy.ext.asyncio import AsyncConnection

from core.enums import NotificationType
from core.notifications.templates import get_subject_and_body
from core.queries.notifications import (
    create_notification,
    get_existing_reminder_offsets,
)
from core.timezone import ensure_utc

logger = logging.getLogger(__name__)


# =============================================================================
# Reminder configuration - SINGLE SOURCE OF TRUTH
# =============================================================================

# (days before the exam, human-readable label), furthest first
REMINDER_OFFSETS: list[tuple[int, str]] = [
    (30, "1 month"),
    (7, "1 week"),
    (1, "1 day"),
    (0, "today"),
]


def reminder_message(exam_name: str, offset_days: int, label: str) -> str:
    if offset_days == 0:
        return get_subject_and_body(
            "exam_reminder_today", {"exam_name": exam_name}
        ).body
    return get_subject_and_body(
        "exam_reminder", {"exam_name": exam_name, "label": label}
    ).body


def build_reminder_schedule(user_id: int, exam: dict) -> list[dict]:
    """
    Build the reminder rows for one user and exam without writing them.

    Returns:
        One dict per offset in REMINDER_OFFSETS, each undelivered and
        scheduled at exam_date - offset
    """
    exam_date = ensure_utc(exam["exam_date"])
    return [
        {
            "user_id": user_id,
            "exam_id": exam["exam_id"],
            "message": reminder_message(exam["name"], offset_days, label),
            "notification_type": NotificationType.reminder,
            "reminder_offset_days": offset_days,
            "scheduled_at": exam_date - timedelta(days=offset_days),
            "delivered": False,
        }
        for offset_days, label in REMINDER_OFFSETS
    ]


async def create_exam_reminders(
    conn: AsyncConnection,
    user_id: int,
    exam: dict,
) -> list[dict]:
    """
    Persist the reminder schedule for a user and exam.

    Keyed on (user, exam, offset): offsets that already exist are skipped, so
    calling this twice never duplicates reminders.

    Returns:
        The newly created notification records
    """
    existing = await get_existing_reminder_offsets(conn, user_id, exam["exam_id"])
    created = []
    for reminder in build_reminder_schedule(user_id, exam):
        if reminder["reminder_offset_days"] in existing:
            continue
        created.append(
            await create_notification(
                conn,
                user_id=reminder["user_id"],
                exam_id=reminder["exam_id"],
                message=reminder["message"],
                notification_type=reminder["notification_type"],
                scheduled_at=reminder["scheduled_at"],
                reminder_offset_days=reminder["reminder_offset_days"],
            )
        )

    if existing:
        logger.info(
            f"Skipped {len(existing)} existing reminders for user {user_id}, "
            f"exam {exam['exam_id']}"
        )
    return created
