"""
Exam registration workflow.

register_for_exam runs these steps in order, each logging its own outcome:

1. validate   - user and exam exist, not already registered
2. persist    - append the registration (committed on its own)
3. schedule   - reminder notifications (idempotent)
4. confirm    - immediate confirmation on the user's channels
5. calendar   - insert the event if the user has a calendar credential,
                otherwise return a consent URL for the OAuth flow
6. respond    - available / registered exam lists for the client

Steps 3-5 are best effort: once the registration is committed, a later
failure is logged and reported in `warnings`, never rolled back.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from .calendar.client import is_calendar_configured
from .calendar.events import insert_exam_event
from .calendar.sync import start_calendar_sync
from .database import get_connection, get_transaction
from .enums import NotificationType
from .exceptions import (
    AlreadyRegistered,
    CalendarCredentialsExpired,
    ExamNotFound,
    UserNotFound,
)
from .notifications.dispatcher import send_immediate
from .notifications.reminders import create_exam_reminders
from .notifications.templates import get_subject_and_body
from .queries import exams as exam_queries
from .queries import users as user_queries
from .serializers import serialize_exam
from .timezone import format_exam_date

logger = logging.getLogger(__name__)

# Serializes registrations per user within this process. An entry lives
# only while someone holds or waits on that user's lock.
_user_locks: dict[int, asyncio.Lock] = {}
_lock_users: dict[int, int] = {}


@asynccontextmanager
async def _user_lock(user_id: int):
    lock = _user_locks.setdefault(user_id, asyncio.Lock())
    _lock_users[user_id] = _lock_users.get(user_id, 0) + 1
    try:
        async with lock:
            yield
    finally:
        _lock_users[user_id] -= 1
        if not _lock_users[user_id]:
            del _lock_users[user_id]
            del _user_locks[user_id]


async def _load_user_and_exam(user_id: int, exam_id: int) -> tuple[dict, dict]:
    async with get_connection() as conn:
        user = await user_queries.get_user_by_id(conn, user_id)
        exam = await exam_queries.get_exam_by_id(conn, exam_id)
    if not user:
        raise UserNotFound(user_id)
    if not exam:
        raise ExamNotFound(exam_id)
    return user, exam


async def get_exam_partitions(user_id: int) -> tuple[list[dict], list[dict]]:
    """
    Split all exams into (available, registered) for a user.

    Registered exams keep registration order; available exams keep date order.
    """
    async with get_connection() as conn:
        all_exams = await exam_queries.get_all_exams(conn)
        registered_ids = await exam_queries.get_registered_exam_ids(conn, user_id)

    by_id = {exam["exam_id"]: exam for exam in all_exams}
    registered = [by_id[exam_id] for exam_id in registered_ids if exam_id in by_id]
    registered_set = set(registered_ids)
    available = [exam for exam in all_exams if exam["exam_id"] not in registered_set]
    return available, registered


async def _sync_calendar(user: dict, exam: dict) -> dict:
    """
    Calendar branch shared by registration and add-to-calendar.

    Returns:
        {"auth_url", "event_id", "warning"}, each possibly None
    """
    user_id = user["user_id"]
    refresh_token = user.get("calendar_refresh_token")

    if refresh_token:
        try:
            event_id = await insert_exam_event(refresh_token, exam)
        except CalendarCredentialsExpired as e:
            logger.warning(
                f"Calendar credentials expired for user {user_id}, "
                f"asking for re-authorization: {e}"
            )
        else:
            if event_id is None:
                return {
                    "auth_url": None,
                    "event_id": None,
                    "warning": "Could not add the exam to your calendar",
                }
            return {"auth_url": None, "event_id": event_id, "warning": None}

    if not is_calendar_configured():
        logger.warning("Calendar sync requested but Google OAuth is not configured")
        return {
            "auth_url": None,
            "event_id": None,
            "warning": "Calendar sync is not available",
        }

    auth_url = start_calendar_sync(user_id, exam["exam_id"])
    logger.info(f"Issued calendar authorization URL for user {user_id}")
    return {"auth_url": auth_url, "event_id": None, "warning": None}


async def register_for_exam(user_id: int, exam_id: int) -> dict:
    """
    Register a user for an exam.

    Raises:
        UserNotFound / ExamNotFound: Validation failed (nothing written)
        AlreadyRegistered: The user is already registered for this exam

    Returns:
        {message, authUrl?, calendarEventId?, availableExams, registeredExams,
        warnings?}
    """
    async with _user_lock(user_id):
        # 1. validate
        user, exam = await _load_user_and_exam(user_id, exam_id)
        async with get_connection() as conn:
            if await exam_queries.is_registered(conn, user_id, exam_id):
                raise AlreadyRegistered(exam_id)

        # 2. persist
        async with get_transaction() as conn:
            await exam_queries.add_registration(conn, user_id, exam_id)
        logger.info(f"User {user_id} registered for exam {exam_id}")

        warnings: list[str] = []

        # 3. schedule
        try:
            async with get_transaction() as conn:
                reminders = await create_exam_reminders(conn, user_id, exam)
            logger.info(
                f"Scheduled {len(reminders)} reminders for user {user_id}, exam {exam_id}"
            )
        except Exception as e:
            logger.error(f"Reminder scheduling failed for user {user_id}, exam {exam_id}: {e}")
            warnings.append("Reminders could not be scheduled")

        # 4. confirm
        context = {
            "exam_name": exam["name"],
            "exam_date": format_exam_date(exam["exam_date"]),
        }
        try:
            confirmation = get_subject_and_body("registration_confirmation", context)
            report = await send_immediate(
                user,
                exam_id,
                NotificationType.announcement,
                confirmation.body,
                confirmation.subject,
            )
            if not report.ok:
                channels = ", ".join(f.channel for f in report.failures)
                warnings.append(f"Confirmation could not be delivered via {channels}")
        except Exception as e:
            logger.error(f"Registration confirmation failed for user {user_id}: {e}")
            warnings.append("Confirmation could not be sent")

        # 5. calendar
        try:
            calendar = await _sync_calendar(user, exam)
        except Exception as e:
            logger.error(f"Calendar step failed for user {user_id}, exam {exam_id}: {e}")
            calendar = {
                "auth_url": None,
                "event_id": None,
                "warning": "Could not add the exam to your calendar",
            }
        if calendar["warning"]:
            warnings.append(calendar["warning"])

    # 6. respond
    available, registered = await get_exam_partitions(user_id)

    message = "Registered successfully."
    if calendar["auth_url"]:
        message += " Please authorize to add event to calendar."
    elif calendar["event_id"]:
        message += " Exam added to your calendar."

    response = {
        "message": message,
        "availableExams": [serialize_exam(e) for e in available],
        "registeredExams": [serialize_exam(e) for e in registered],
    }
    if calendar["auth_url"]:
        response["authUrl"] = calendar["auth_url"]
    if calendar["event_id"]:
        response["calendarEventId"] = calendar["event_id"]
    if warnings:
        response["warnings"] = warnings
    return response


async def add_to_calendar(user_id: int, exam_id: int) -> dict:
    """
    Add an exam to the user's calendar, or start authorization if needed.

    Returns:
        {message, authUrl?, calendarEventId?}
    """
    user, exam = await _load_user_and_exam(user_id, exam_id)
    calendar = await _sync_calendar(user, exam)

    if calendar["event_id"]:
        return {
            "message": "Event added to calendar",
            "calendarEventId": calendar["event_id"],
        }
    if calendar["auth_url"]:
        return {
            "message": "Please authorize to add event to calendar.",
            "authUrl": calendar["auth_url"],
        }
    return {"message": calendar["warning"] or "Could not add the exam to your calendar"}
