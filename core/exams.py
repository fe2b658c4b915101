"""
Exam lifecycle: creation, announcements and preparation materials.

Each change is pushed immediately to the affected users: a new exam to every
user, announcements and materials to the users registered for that exam.
"""

import logging
from datetime import datetime

from .database import get_connection, get_transaction
from .enums import NotificationType
from .exceptions import ExamNotFound, ValidationError
from .notifications.dispatcher import DeliveryReport, send_immediate
from .notifications.templates import get_subject_and_body
from .queries import exams as exam_queries
from .queries import users as user_queries
from .timezone import ensure_utc, format_exam_date

logger = logging.getLogger(__name__)


def _clean_text(value: str | None, field: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field} must not be empty")
    return text


async def _notify_users(
    users: list[dict],
    exam_id: int,
    notification_type: NotificationType,
    template: str,
    context: dict,
) -> list[DeliveryReport]:
    message = get_subject_and_body(template, context)
    reports = []
    for user in users:
        reports.append(
            await send_immediate(
                user, exam_id, notification_type, message.body, message.subject
            )
        )
    failed = sum(1 for report in reports if not report.ok)
    if failed:
        logger.warning(
            f"{failed} of {len(reports)} users had channel failures for "
            f"{template} on exam {exam_id}"
        )
    return reports


async def create_exam(
    name: str,
    exam_date: datetime,
    venue: str | None = None,
    materials: list[str] | None = None,
    announcements: list[str] | None = None,
) -> dict:
    """
    Create an exam and announce it to every user.

    Raises:
        ValidationError: Empty name
    """
    name = _clean_text(name, "Exam name")
    exam_date = ensure_utc(exam_date)

    async with get_transaction() as conn:
        exam = await exam_queries.create_exam(
            conn,
            name=name,
            exam_date=exam_date,
            venue=venue,
            materials=[m for m in (materials or []) if m and m.strip()],
            announcements=[a for a in (announcements or []) if a and a.strip()],
        )
    logger.info(f"Created exam {exam['exam_id']} ({name})")

    async with get_connection() as conn:
        users = await user_queries.get_all_users(conn)

    await _notify_users(
        users,
        exam["exam_id"],
        NotificationType.announcement,
        "exam_scheduled",
        {"exam_name": name, "exam_date": format_exam_date(exam_date)},
    )
    return exam


async def get_exam(exam_id: int) -> dict:
    async with get_connection() as conn:
        exam = await exam_queries.get_exam_by_id(conn, exam_id)
    if not exam:
        raise ExamNotFound(exam_id)
    return exam


async def list_exams() -> list[dict]:
    async with get_connection() as conn:
        return await exam_queries.get_all_exams(conn)


async def add_announcement(exam_id: int, announcement: str) -> int:
    """
    Append an announcement and send it to every registered user.

    Returns:
        Number of users notified
    """
    announcement = _clean_text(announcement, "Announcement")

    async with get_transaction() as conn:
        if not await exam_queries.get_exam_by_id(conn, exam_id):
            raise ExamNotFound(exam_id)
        await exam_queries.add_exam_announcement(conn, exam_id, announcement)
    async with get_connection() as conn:
        users = await user_queries.get_users_registered_for_exam(conn, exam_id)

    await _notify_users(
        users,
        exam_id,
        NotificationType.announcement,
        "exam_announcement",
        {"announcement": announcement},
    )
    return len(users)


async def add_material(exam_id: int, material: str) -> int:
    """
    Append a preparation material and notify every registered user.

    Returns:
        Number of users notified
    """
    material = _clean_text(material, "Material")

    async with get_transaction() as conn:
        if not await exam_queries.get_exam_by_id(conn, exam_id):
            raise ExamNotFound(exam_id)
        await exam_queries.add_exam_material(conn, exam_id, material)
    async with get_connection() as conn:
        users = await user_queries.get_users_registered_for_exam(conn, exam_id)

    await _notify_users(
        users,
        exam_id,
        NotificationType.material,
        "exam_material",
        {"material": material},
    )
    return len(users)
