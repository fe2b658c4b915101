"""
Notification system: reminder scheduling and multi-channel delivery.

Public API:
    build_reminder_schedule(user_id, exam) - Reminder rows for an exam (pure)
    create_exam_reminders(conn, user_id, exam) - Persist reminders (idempotent)
    dispatch_message(user, subject, body) - Fan out to enabled channels
    send_immediate(user, exam_id, type, message, subject) - Create + deliver now
    send_pending_notifications(due_only) - Batch sweep over undelivered rows
    init_scheduler(minutes) / shutdown_scheduler() - Optional periodic sweep
"""

from .dispatcher import (
    DeliveryReport,
    deliver_notification,
    dispatch_message,
    send_immediate,
    send_pending_notifications,
)
from .reminders import REMINDER_OFFSETS, build_reminder_schedule, create_exam_reminders
from .scheduler import init_scheduler, shutdown_scheduler

__all__ = [
    "REMINDER_OFFSETS",
    "build_reminder_schedule",
    "create_exam_reminders",
    "DeliveryReport",
    "dispatch_message",
    "send_immediate",
    "deliver_notification",
    "send_pending_notifications",
    "init_scheduler",
    "shutdown_scheduler",
]
