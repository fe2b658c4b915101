"""SQLAlchemy Core table definitions for the database schema."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    false,
    func,
    true,
)

from .enums import (
    delivery_status_enum,
    notification_channel_enum,
    notification_type_enum,
    reminder_frequency_enum,
)

# Naming convention for constraints (helps Alembic generate better names)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
metadata = MetaData(naming_convention=convention)


# =====================================================
# 1. USERS
# =====================================================
users = Table(
    "users",
    metadata,
    Column("user_id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text),
    Column("email", Text),
    Column("phone_number", Text),
    Column("email_notifications_enabled", Boolean, server_default=true()),
    Column("sms_notifications_enabled", Boolean, server_default=false()),
    Column("in_app_notifications_enabled", Boolean, server_default=false()),
    Column("reminder_frequency", reminder_frequency_enum, server_default="daily"),
    # Refresh token from the calendar OAuth flow; NULL until authorized once
    Column("calendar_refresh_token", Text),
    Column("calendar_connected_at", DateTime(timezone=True)),
    Column("is_admin", Boolean, server_default=false()),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now()),
    Index("idx_users_email", "email"),
)


# =====================================================
# 2. EXAMS
# =====================================================
exams = Table(
    "exams",
    metadata,
    Column("exam_id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False),
    Column("exam_date", DateTime(timezone=True), nullable=False),
    Column("venue", Text),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Index("idx_exams_exam_date", "exam_date"),
)

# Append-only; order is id order
exam_materials = Table(
    "exam_materials",
    metadata,
    Column("material_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "exam_id",
        Integer,
        ForeignKey("exams.exam_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("material", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Index("idx_exam_materials_exam_id", "exam_id"),
)

exam_announcements = Table(
    "exam_announcements",
    metadata,
    Column("announcement_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "exam_id",
        Integer,
        ForeignKey("exams.exam_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("announcement", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Index("idx_exam_announcements_exam_id", "exam_id"),
)


# =====================================================
# 3. REGISTRATIONS
# =====================================================
# registration_id order = registration order
exam_registrations = Table(
    "exam_registrations",
    metadata,
    Column("registration_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "exam_id",
        Integer,
        ForeignKey("exams.exam_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("registered_at", DateTime(timezone=True), server_default=func.now()),
    UniqueConstraint("user_id", "exam_id", name="uq_exam_registrations_user_exam"),
    Index("idx_exam_registrations_exam_id", "exam_id"),
)


# =====================================================
# 4. NOTIFICATIONS
# =====================================================
notifications = Table(
    "notifications",
    metadata,
    Column("notification_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "exam_id",
        Integer,
        ForeignKey("exams.exam_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("message", Text, nullable=False),
    Column("notification_type", notification_type_enum, nullable=False),
    # Days before the exam; only set for reminders
    Column("reminder_offset_days", Integer),
    Column("scheduled_at", DateTime(timezone=True), nullable=False),
    Column("delivered", Boolean, nullable=False, server_default=false()),
    Column("delivered_at", DateTime(timezone=True)),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    UniqueConstraint(
        "user_id",
        "exam_id",
        "reminder_offset_days",
        name="uq_notifications_reminder_offset",
    ),
    Index("idx_notifications_user_id", "user_id"),
    Index("idx_notifications_delivered", "delivered"),
)

# One row per channel attempt
notification_log = Table(
    "notification_log",
    metadata,
    Column("log_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "notification_id",
        Integer,
        ForeignKey("notifications.notification_id", ondelete="SET NULL"),
    ),
    Column(
        "user_id",
        Integer,
        ForeignKey("users.user_id", ondelete="CASCADE"),
    ),
    Column("channel", notification_channel_enum, nullable=False),
    Column("status", delivery_status_enum, nullable=False),
    Column("error_message", Text),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Index("idx_notification_log_notification_id", "notification_id"),
)
