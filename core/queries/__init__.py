"""Query layer for database operations using SQLAlchemy Core."""

from .exams import (
    add_exam_announcement,
    add_exam_material,
    add_registration,
    create_exam,
    get_all_exams,
    get_exam_by_id,
    get_latest_registered_exam_id,
    get_registered_exam_ids,
    is_registered,
)
from .notifications import (
    create_notification,
    get_existing_reminder_offsets,
    get_undelivered_notifications,
    get_user_notifications,
    log_channel_attempt,
    mark_delivered,
)
from .users import (
    create_user,
    get_all_users,
    get_user_by_id,
    get_users_registered_for_exam,
    set_calendar_token,
    update_user,
)

__all__ = [
    # Users
    "get_user_by_id",
    "get_all_users",
    "create_user",
    "update_user",
    "set_calendar_token",
    "get_users_registered_for_exam",
    # Exams
    "create_exam",
    "get_exam_by_id",
    "get_all_exams",
    "add_exam_material",
    "add_exam_announcement",
    # Registrations
    "add_registration",
    "is_registered",
    "get_registered_exam_ids",
    "get_latest_registered_exam_id",
    # Notifications
    "create_notification",
    "get_existing_reminder_offsets",
    "get_user_notifications",
    "get_undelivered_notifications",
    "mark_delivered",
    "log_channel_attempt",
]
