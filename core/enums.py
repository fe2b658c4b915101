"""SQLAlchemy enum definitions for the database schema."""

import enum

from sqlalchemy import Enum as SQLEnum


# =====================================================
# Python Enum Classes
# =====================================================


class NotificationChannel(str, enum.Enum):
    email = "email"
    sms = "sms"
    in_app = "in-app"


class ReminderFrequency(str, enum.Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


class NotificationType(str, enum.Enum):
    reminder = "reminder"
    announcement = "announcement"
    material = "material"
    result = "result"


class DeliveryStatus(str, enum.Enum):
    sent = "sent"
    failed = "failed"


# Column holding the on/off switch for each channel on the users table
CHANNEL_PREFERENCE_COLUMNS = {
    NotificationChannel.email: "email_notifications_enabled",
    NotificationChannel.sms: "sms_notifications_enabled",
    NotificationChannel.in_app: "in_app_notifications_enabled",
}


def enabled_channels(user: dict) -> list[NotificationChannel]:
    """Channels switched on for a user row, in a fixed order."""
    return [
        channel
        for channel, column in CHANNEL_PREFERENCE_COLUMNS.items()
        if user.get(column)
    ]


# =====================================================
# SQLAlchemy Enum Types
# Stored as VARCHAR + value so the schema also works on SQLite in tests
# =====================================================


def _values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


reminder_frequency_enum = SQLEnum(
    ReminderFrequency,
    name="reminder_frequency",
    native_enum=False,
    values_callable=_values,
)
notification_type_enum = SQLEnum(
    NotificationType,
    name="notification_type",
    native_enum=False,
    values_callable=_values,
)
notification_channel_enum = SQLEnum(
    NotificationChannel,
    name="notification_channel",
    native_enum=False,
    values_callable=_values,
)
delivery_status_enum = SQLEnum(
    DeliveryStatus,
    name="delivery_status",
    native_enum=False,
    values_callable=_values,
)
